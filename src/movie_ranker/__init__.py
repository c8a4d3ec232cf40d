"""Movie Ranker.

Rank watched movies through head-to-head versus battles scored with Elo.
"""

from movie_ranker.ranking import ComparableItem, RankingSession

__version__ = "0.1.0"
__all__ = [
    "ComparableItem",
    "RankingSession",
    "__version__",
]
