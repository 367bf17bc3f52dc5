"""Domain models for client-side player sessions."""

from dataclasses import dataclass

from life4today.domain.topics import Topic


@dataclass(frozen=True)
class Session:
    """Locally persisted record of the player's seat in a game.

    Timestamps are epoch milliseconds.
    """

    game_id: str
    player_id: str
    player_name: str
    topics: tuple[Topic, ...]
    locked_topics: tuple[Topic, ...]
    created_at: int
    last_active: int
    renewals: int = 0


@dataclass(frozen=True)
class SessionInfo:
    """Read-only snapshot of session status for display."""

    active: bool
    time_remaining: int
    can_renew: bool
    renewals_left: int
