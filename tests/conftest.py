"""Shared test fixtures."""

import random
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from life4today.adapters.game_api_client import GameApiClient
from life4today.adapters.in_memory_game_repository import InMemoryGameRepository
from life4today.config import Settings
from life4today.containers import AppContainer
from life4today.domain.errors import TransportError
from life4today.domain.games import (
    CreatedGame,
    GameSnapshot,
    Photo,
    Player,
    PlayerSummary,
    ShareSummary,
)
from life4today.domain.topics import ALL_TOPICS, Topic
from life4today.services.games import GameService, PhotoStorage
from life4today.services.key_value import InMemoryKeyValueStore
from life4today.services.session_store import SessionStore

START = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
START_MS = int(START.timestamp() * 1000)


@dataclass
class FakeClock:
    """Settable clock returning aware datetimes."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class FakeMillisClock:
    """Settable clock returning epoch milliseconds."""

    now: int = START_MS

    def __call__(self) -> int:
        return self.now

    def advance(self, milliseconds: int) -> None:
        self.now += milliseconds


@dataclass
class InMemoryPhotoStorage(PhotoStorage):
    """Photo storage that keeps bytes in a dict and records deletions."""

    files: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    counter: int = 0

    def save(self, content: bytes, original_filename: str | None) -> str:
        self.counter += 1
        filename = f"photo-{self.counter}.jpg"
        self.files[filename] = content
        return filename

    def delete(self, filename: str) -> None:
        if filename in self.failing:
            raise OSError(f"cannot delete {filename}")
        self.files.pop(filename, None)
        self.deleted.append(filename)

    def url_for(self, filename: str) -> str:
        return f"/uploads/{filename}"


@dataclass
class InProcessGameApiClient(GameApiClient):
    """Game API client that calls a GameService directly."""

    service: GameService
    offline: bool = False
    calls: list[str] = field(default_factory=list)

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if self.offline:
            raise TransportError("Network unreachable")

    async def create_game(self) -> CreatedGame:
        self._check("create_game")
        game = self.service.create_game()
        return CreatedGame(game_id=game.id, topics=list(ALL_TOPICS))

    async def get_game(self, game_id: str) -> GameSnapshot:
        self._check("get_game")
        game = self.service.get_game(game_id)
        return GameSnapshot(
            id=game.id,
            players=[
                PlayerSummary(
                    id=player.id,
                    name=player.name,
                    photo_count=player.photo_count,
                    completed_topics=player.completed_topics,
                    last_active=player.last_active,
                )
                for player in game.players
            ],
            topics=list(ALL_TOPICS),
        )

    async def join_game(
        self, game_id: str, player_name: str, player_id: str | None
    ) -> Player:
        self._check("join_game")
        return self.service.upsert_player(game_id, player_id, player_name)

    async def upload_photo(  # noqa: PLR0913
        self,
        game_id: str,
        player_id: str,
        topic: Topic,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> Photo:
        self._check("upload_photo")
        return self.service.upload_photo(
            game_id, player_id, str(topic), content, filename, content_type
        )

    async def list_photos(self, game_id: str, player_id: str) -> list[Photo]:
        self._check("list_photos")
        return self.service.list_photos(game_id, player_id)

    async def delete_photo(self, game_id: str, player_id: str, photo_id: str) -> None:
        self._check("delete_photo")
        self.service.delete_photo(game_id, player_id, photo_id)

    async def share_text(self, game_id: str, player_id: str, kind: str) -> ShareSummary:
        self._check("share_text")
        return self.service.share_text(game_id, player_id, kind)


@dataclass
class SequenceIds:
    """Deterministic game id factory."""

    ids: list[str]

    def __call__(self) -> str:
        return self.ids.pop(0)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        upload_dir=tmp_path / "uploads",
        session_file=tmp_path / "session.json",
        environment="test",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def millis_clock() -> FakeMillisClock:
    return FakeMillisClock()


@pytest.fixture
def photo_storage() -> InMemoryPhotoStorage:
    return InMemoryPhotoStorage()


@pytest.fixture
def game_service(photo_storage: InMemoryPhotoStorage, clock: FakeClock) -> GameService:
    return GameService(
        repository=InMemoryGameRepository(),
        storage=photo_storage,
        clock=clock,
    )


@pytest.fixture
def session_store(millis_clock: FakeMillisClock) -> SessionStore:
    return SessionStore(store=InMemoryKeyValueStore(), clock=millis_clock)


@pytest.fixture
def api_client(game_service: GameService) -> InProcessGameApiClient:
    return InProcessGameApiClient(service=game_service)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(4)


@pytest.fixture
def container(settings: Settings, game_service: GameService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        game_service=game_service,
        close_resources=close_resources,
    )
