"""Authoritative registry of games, players and photos."""

import copy
import logging
import secrets
import string
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import uuid4

from life4today.domain.errors import InvalidInputError, NotFoundError
from life4today.domain.games import Game, Photo, Player, ShareSummary
from life4today.domain.topics import ALL_TOPICS, parse_topic
from life4today.services.topics import missing_topics

GAME_ID_LENGTH = 6
DEFAULT_GAME_TTL = timedelta(hours=24)
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
SHARE_KINDS = frozenset({"completed", "reminder"})

_GAME_ID_ALPHABET = string.ascii_uppercase + string.digits

_logger = logging.getLogger(__name__)


class GameRepository(Protocol):
    """Storage interface for games."""

    def add(self, game: Game) -> None:
        """Register a new game."""

    def get(self, game_id: str) -> Game | None:
        """Return a game by id, if present."""

    def save(self, game: Game) -> None:
        """Persist changes made to a game."""

    def remove(self, game_id: str) -> None:
        """Delete a game."""

    def list_games(self) -> list[Game]:
        """Return every registered game."""

    def count(self) -> int:
        """Return the number of registered games."""


class PhotoStorage(Protocol):
    """Backing file storage for uploaded photos."""

    def save(self, content: bytes, original_filename: str | None) -> str:
        """Store photo bytes and return the stored filename."""

    def delete(self, filename: str) -> None:
        """Release a stored photo file."""

    def url_for(self, filename: str) -> str:
        """Return the public URL for a stored filename."""


def generate_game_id() -> str:
    """Return a short uppercase alphanumeric game id."""
    return "".join(secrets.choice(_GAME_ID_ALPHABET) for _ in range(GAME_ID_LENGTH))


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class GameService:
    """Creates games and applies player and photo mutations.

    Every mutation of a game runs under that game's lock, and the reaper takes
    the same lock before removing a game, so uploads, deletes and reaping of
    one game never interleave.
    """

    repository: GameRepository
    storage: PhotoStorage
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    clock: Callable[[], datetime] = _utcnow
    id_factory: Callable[[], str] = generate_game_id
    _locks: dict[str, threading.Lock] = field(
        default_factory=dict, init=False, repr=False
    )
    _registry_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def create_game(self) -> Game:
        """Register an empty game under a fresh id."""
        now = self.clock()
        with self._registry_lock:
            game_id = self.id_factory()
            while self.repository.get(game_id) is not None:
                game_id = self.id_factory()
            game = Game(id=game_id, created_at=now, last_activity=now)
            self.repository.add(game)
        _logger.info("Created game %s", game_id)
        return copy.deepcopy(game)

    def get_game(self, game_id: str) -> Game:
        """Return a snapshot of a game."""
        with self._game_lock(game_id):
            return copy.deepcopy(self._require_game(game_id))

    def upsert_player(self, game_id: str, player_id: str | None, name: str) -> Player:
        """Add a player, or rename and touch an existing one."""
        if not name or not name.strip():
            raise InvalidInputError("Player name is required")
        with self._game_lock(game_id):
            game = self._require_game(game_id)
            now = self.clock()
            player = game.find_player(player_id) if player_id else None
            if player is None:
                player = Player(id=player_id or str(uuid4()), name=name, last_active=now)
                game.players.append(player)
                _logger.info("Player %s joined game %s", player.id, game_id)
            else:
                player.name = name
                player.last_active = now
            game.last_activity = now
            self.repository.save(game)
            return copy.deepcopy(player)

    def upload_photo(  # noqa: PLR0913
        self,
        game_id: str,
        player_id: str,
        topic: str | None,
        content: bytes | None,
        original_filename: str | None = None,
        content_type: str | None = None,
    ) -> Photo:
        """Store a photo for a topic, replacing the player's previous one."""
        if not content:
            raise InvalidInputError("No photo uploaded")
        parsed_topic = parse_topic(topic or "")
        if parsed_topic is None:
            raise InvalidInputError("Invalid topic")
        if content_type is not None and not content_type.startswith("image/"):
            raise InvalidInputError("Only image files are allowed")
        if len(content) > self.max_upload_bytes:
            raise InvalidInputError("Photo is too large")

        with self._game_lock(game_id):
            game = self._require_game(game_id)
            player = self._require_player(game, player_id)
            filename = self.storage.save(content, original_filename)
            previous = player.photo_for(parsed_topic)
            if previous is not None:
                self._release(previous)
                player.photos.remove(previous)
            now = self.clock()
            photo = Photo(
                id=str(uuid4()),
                filename=filename,
                url=self.storage.url_for(filename),
                topic=parsed_topic,
                uploaded_at=now,
            )
            player.photos.append(photo)
            player.last_active = now
            game.last_activity = now
            self.repository.save(game)
        _logger.info(
            "Player %s uploaded %s in game %s", player_id, parsed_topic, game_id
        )
        return photo

    def delete_photo(self, game_id: str, player_id: str, photo_id: str) -> None:
        """Remove a photo and release its backing file."""
        with self._game_lock(game_id):
            game = self._require_game(game_id)
            player = self._require_player(game, player_id)
            photo = next((p for p in player.photos if p.id == photo_id), None)
            if photo is None:
                raise NotFoundError("Photo not found")
            self._release(photo)
            player.photos.remove(photo)
            now = self.clock()
            player.last_active = now
            game.last_activity = now
            self.repository.save(game)

    def list_photos(self, game_id: str, player_id: str) -> list[Photo]:
        """Return a player's photos."""
        with self._game_lock(game_id):
            game = self._require_game(game_id)
            return list(self._require_player(game, player_id).photos)

    def share_text(
        self, game_id: str, player_id: str, kind: str, origin: str | None = None
    ) -> ShareSummary:
        """Build the shareable progress text for a player."""
        if kind not in SHARE_KINDS:
            raise InvalidInputError("Share type must be 'completed' or 'reminder'")
        with self._game_lock(game_id):
            game = self._require_game(game_id)
            player = copy.deepcopy(self._require_player(game, player_id))
        completed = player.completed_topics
        missing = missing_topics(completed)
        total = len(ALL_TOPICS)
        link = f"{origin or 'your-app-url'}?game={game_id}"
        if kind == "completed":
            text = (
                "🎯 Life4Today Challenge Complete! \n"
                f"Game ID: {game_id}\n"
                f"Player: {player.name}\n"
                f"✅ Completed all {len(completed)}/{total} topics!\n"
                "\n"
                f"Join the fun: {link}"
            )
        else:
            missing_lines = "\n".join(f"❌ {topic}" for topic in missing)
            text = (
                "📸 Life4Today Reminder!\n"
                f"Game ID: {game_id}\n"
                f"Player: {player.name}\n"
                "\n"
                "Still need photos for:\n"
                f"{missing_lines}\n"
                "\n"
                f"Completed: {len(completed)}/{total}\n"
                f"Join the game: {link}"
            )
        return ShareSummary(
            text=text, completed_count=len(completed), missing_count=len(missing)
        )

    def reap_expired(self, ttl: timedelta = DEFAULT_GAME_TTL) -> list[str]:
        """Remove games inactive for longer than ``ttl`` and their photo files."""
        reaped: list[str] = []
        for candidate in self.repository.list_games():
            if self.clock() - candidate.last_activity <= ttl:
                continue
            with self._game_lock(candidate.id):
                game = self.repository.get(candidate.id)
                if game is None or self.clock() - game.last_activity <= ttl:
                    continue
                for player in game.players:
                    for photo in player.photos:
                        self._release(photo)
                self.repository.remove(game.id)
            reaped.append(game.id)
        if reaped:
            _logger.info("Reaped %s inactive games", len(reaped))
        return reaped

    def active_game_count(self) -> int:
        """Number of games currently registered."""
        return self.repository.count()

    @contextmanager
    def _game_lock(self, game_id: str) -> Iterator[None]:
        with self._registry_lock:
            lock = self._locks.setdefault(game_id, threading.Lock())
        try:
            with lock:
                yield
        finally:
            if self.repository.get(game_id) is None:
                with self._registry_lock:
                    self._locks.pop(game_id, None)

    def _require_game(self, game_id: str) -> Game:
        game = self.repository.get(game_id)
        if game is None:
            raise NotFoundError("Game not found")
        return game

    def _require_player(self, game: Game, player_id: str) -> Player:
        player = game.find_player(player_id)
        if player is None:
            raise NotFoundError("Player not found")
        return player

    def _release(self, photo: Photo) -> None:
        try:
            self.storage.delete(photo.filename)
        except OSError:
            _logger.exception("Failed to delete photo file %s", photo.filename)
