"""Domain models for games, players and photos."""

from dataclasses import dataclass, field
from datetime import datetime

from life4today.domain.topics import Topic


@dataclass(frozen=True)
class Photo:
    """A stored photo answering one topic."""

    id: str
    filename: str
    url: str
    topic: Topic
    uploaded_at: datetime


@dataclass
class Player:
    """A participant in a game and the photos they uploaded."""

    id: str
    name: str
    last_active: datetime
    photos: list[Photo] = field(default_factory=list)

    @property
    def completed_topics(self) -> list[Topic]:
        """Topics that already have a photo, in upload order."""
        return [photo.topic for photo in self.photos]

    @property
    def photo_count(self) -> int:
        """Number of uploaded photos."""
        return len(self.photos)

    def photo_for(self, topic: Topic) -> Photo | None:
        """Return the photo stored for a topic, if any."""
        return next((photo for photo in self.photos if photo.topic == topic), None)


@dataclass
class Game:
    """A game session; the unit of garbage collection."""

    id: str
    created_at: datetime
    last_activity: datetime
    players: list[Player] = field(default_factory=list)

    def find_player(self, player_id: str) -> Player | None:
        """Return the player with the given id, if present."""
        return next((p for p in self.players if p.id == player_id), None)


@dataclass(frozen=True)
class ShareSummary:
    """Share text with completion counts for a player."""

    text: str
    completed_count: int
    missing_count: int


@dataclass(frozen=True)
class CreatedGame:
    """Identifier and topic catalog returned when a game is created."""

    game_id: str
    topics: list[Topic]


@dataclass(frozen=True)
class PlayerSummary:
    """Another player's progress as listed in a game snapshot."""

    id: str
    name: str
    photo_count: int
    completed_topics: list[Topic]
    last_active: datetime


@dataclass(frozen=True)
class GameSnapshot:
    """Server view of a game as seen by clients."""

    id: str
    players: list[PlayerSummary]
    topics: list[Topic]

    def find_player(self, player_id: str) -> PlayerSummary | None:
        """Return the summary for a player id, if listed."""
        return next((p for p in self.players if p.id == player_id), None)
