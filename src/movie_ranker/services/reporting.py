"""Report generation for finished or in-progress ranking sessions."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from statistics import mean

from tabulate import tabulate

from movie_ranker.core.config import DEFAULT_ELO_RATING
from movie_ranker.core.progress import SessionProgress
from movie_ranker.ranking import LeaderboardEntry, elo_to_rating

SCORE_BUCKETS: tuple[tuple[str, float], ...] = (
    ("9-10", 9.0),
    ("8-8.9", 8.0),
    ("7-7.9", 7.0),
    ("6-6.9", 6.0),
    ("5-5.9", 5.0),
    ("Below 5", float("-inf")),
)

CSV_FIELDS = ["rank", "item_id", "title", "rating", "score", "wins", "losses", "battles"]


@dataclass
class RatingStats:
    """Summary of a leaderboard on the 1-10 score scale."""

    total_rated: int
    average_elo: float
    average_score: float
    distribution: dict[str, int] = field(default_factory=dict)


def format_progress(progress: SessionProgress) -> str:
    """One-line progress summary, e.g. ``3/6 battles (50.0%)``."""
    if progress.target_battles is None:
        return f"{progress.completed_battles} battles (no target)"
    line = f"{progress.completed_battles}/{progress.target_battles} battles"
    if progress.completion_percent is not None:
        line += f" ({progress.completion_percent:.1f}%)"
    return line


def rating_stats(entries: list[LeaderboardEntry]) -> RatingStats:
    """Summarize leaderboard ratings and bucket them by 1-10 score."""
    distribution = {label: 0 for label, _ in SCORE_BUCKETS}
    if not entries:
        return RatingStats(
            total_rated=0,
            average_elo=DEFAULT_ELO_RATING,
            average_score=0.0,
            distribution=distribution,
        )

    scores = [elo_to_rating(e.rating) for e in entries]
    for score in scores:
        label = next(label for label, floor in SCORE_BUCKETS if score >= floor)
        distribution[label] += 1

    return RatingStats(
        total_rated=len(entries),
        average_elo=mean(e.rating for e in entries),
        average_score=mean(scores),
        distribution=distribution,
    )


def leaderboard_rows(entries: list[LeaderboardEntry]) -> list[tuple]:
    return [
        (
            rank,
            e.title or e.item_id,
            f"{e.rating:.1f}",
            f"{elo_to_rating(e.rating):.1f}",
            e.wins,
            e.losses,
        )
        for rank, e in enumerate(entries, start=1)
    ]


def generate_leaderboard_report(
    title: str,
    entries: list[LeaderboardEntry],
    progress: SessionProgress | None = None,
) -> str:
    """Generate a markdown leaderboard.

    Args:
        title: Report title (markdown heading).
        entries: Leaderboard entries sorted by rating.
        progress: Optional progress line shown under the title.

    Returns:
        Markdown report content.
    """
    lines = [f"# {title}", ""]
    if progress is not None:
        lines.extend([f"Progress: {format_progress(progress)}", ""])
    lines.append(
        tabulate(
            leaderboard_rows(entries),
            headers=("#", "Movie", "Elo", "Score", "W", "L"),
            tablefmt="github",
            disable_numparse=True,
        )
    )
    return "\n".join(lines)


def write_leaderboard_csv(path: str | Path, entries: list[LeaderboardEntry]) -> Path:
    """Export a leaderboard as CSV and return the written path."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for rank, e in enumerate(entries, start=1):
            writer.writerow(
                {
                    "rank": rank,
                    "item_id": e.item_id,
                    "title": e.title or "",
                    "rating": e.rating,
                    "score": round(elo_to_rating(e.rating), 2),
                    "wins": e.wins,
                    "losses": e.losses,
                    "battles": e.battles,
                }
            )
    return output
