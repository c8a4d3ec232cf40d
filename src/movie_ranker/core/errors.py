"""Custom exceptions for ranking sessions and their configuration."""

from __future__ import annotations


class RankingError(Exception):
    """Base exception for ranking errors with optional suggestions."""

    label = "Ranking Error"

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"[{self.label}] {self.message}"
        if self.suggestion:
            msg += f"\n[Suggestion] {self.suggestion}"
        return msg


class ConfigurationError(RankingError):
    """Base exception for configuration errors."""

    label = "Configuration Error"


class InvalidConfigError(ConfigurationError):
    """Error when a session configuration cannot be started."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        super().__init__(f"Invalid value for '{field}'", reason)


class InvalidBattleError(RankingError):
    """Error when a battle outcome cannot be recorded."""

    label = "Invalid Battle"


class SessionStateError(RankingError):
    """Error when a status transition is not supported."""

    label = "Session State Error"

    def __init__(self, action: str, status: str) -> None:
        self.action = action
        self.status = status
        super().__init__(
            f"Cannot {action} a session that is {status}",
            _TRANSITION_HINTS.get(action),
        )


class SessionNotFoundError(RankingError):
    """Error when a session id cannot be loaded from the store."""

    label = "Session Not Found"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(
            f"No ranking session with id '{session_id}'",
            "List stored sessions with `movie-ranker sessions --db <path>`.",
        )


_TRANSITION_HINTS = {
    "pause": "Only active sessions can be paused.",
    "resume": "Only paused sessions can be resumed.",
    "finish": "Resume a paused session before finishing it.",
}
