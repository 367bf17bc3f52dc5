"""Reconciles the locally stored session with the authoritative game server.

The server owns completion: which topics have a photo. The client owns
assignment: which four topics the player sees and which ones they locked by
hand. ``merge_player_state`` is the single place where the two are combined.
"""

import asyncio
import logging
import random
from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from uuid import uuid4

from life4today.adapters.game_api_client import GameApiClient
from life4today.domain.errors import GameError, NotFoundError, SessionExpiredError
from life4today.domain.games import GameSnapshot, Photo, Player, ShareSummary
from life4today.domain.sessions import Session
from life4today.domain.topics import Topic
from life4today.services import topics as topic_rules
from life4today.services.session_store import SessionStore

DEFAULT_POLL_INTERVAL_SECONDS = 10

_logger = logging.getLogger(__name__)


class GameView(StrEnum):
    """Screens of the game client."""

    SETUP = "setup"
    PLAYING = "playing"
    VIEWING = "viewing"


POLLING_VIEWS = frozenset({GameView.PLAYING, GameView.VIEWING})


@dataclass(frozen=True)
class PlayerState:
    """Merged local view of the current player."""

    player: Player
    topics: list[Topic]
    locked: set[Topic]

    @property
    def completed_topics(self) -> list[Topic]:
        """Topics completed according to the server."""
        return self.player.completed_topics


def merge_player_state(
    player: Player, topics: Sequence[Topic], manually_locked: Collection[Topic]
) -> PlayerState:
    """Combine server photos with locally chosen topics and locks."""
    return PlayerState(
        player=player,
        topics=list(topics),
        locked=topic_rules.derive_locked(player.completed_topics, manually_locked),
    )


@dataclass
class ReconciliationClient:
    """Drives session restore, sync and local topic changes."""

    api: GameApiClient
    sessions: SessionStore
    rng: random.Random = field(default_factory=random.Random)

    async def create_game(self, player_name: str) -> PlayerState:
        """Create a game on the server and join it as its first player."""
        created = await self.api.create_game()
        return await self.join_game(created.game_id, player_name)

    async def join_game(
        self, game_id: str, player_name: str, player_id: str | None = None
    ) -> PlayerState:
        """Join a game, assign topics and start a fresh local session."""
        player = await self.api.join_game(
            game_id, player_name, player_id or str(uuid4())
        )
        previous = self.sessions.load()
        if (
            previous is not None
            and previous.game_id == game_id
            and previous.player_id == player.id
        ):
            topics = topic_rules.initialize_topics(previous.topics, rng=self.rng)
            manual = previous.locked_topics
        else:
            topics = topic_rules.initialize_topics(rng=self.rng)
            manual = ()
        state = merge_player_state(player, topics, manual)
        self.sessions.create(
            game_id=game_id,
            player_id=player.id,
            player_name=player.name,
            topics=state.topics,
            locked_topics=_locked_in_order(state),
        )
        return state

    async def restore_from_session(self, session: Session | None = None) -> PlayerState:
        """Rebuild the player from the stored session and the server.

        Any failure to reach the game or the player clears the stored session.
        """
        session = session or self._require_session()
        if self.sessions.is_expired(session):
            self.sessions.clear()
            raise SessionExpiredError("Session expired")
        try:
            player = await self.sync(session.game_id, session.player_id)
        except GameError:
            _logger.warning(
                "Could not restore session for game %s", session.game_id, exc_info=True
            )
            self.sessions.clear()
            raise
        topics = topic_rules.initialize_topics(session.topics, rng=self.rng)
        manual = [topic for topic in session.locked_topics if topic in topics]
        state = merge_player_state(player, topics, manual)
        self._persist(state)
        return state

    async def sync(self, game_id: str, player_id: str) -> Player:
        """Fetch the player's authoritative photos and game membership."""
        photos = await self.api.list_photos(game_id, player_id)
        snapshot = await self.api.get_game(game_id)
        summary = snapshot.find_player(player_id)
        if summary is None:
            raise NotFoundError("Player not found in game")
        return Player(
            id=summary.id,
            name=summary.name,
            last_active=summary.last_active,
            photos=photos,
        )

    async def refresh(self, state: PlayerState) -> PlayerState:
        """Sync with the server and recompute the derived lock set."""
        player = await self.sync(*self._session_ids())
        refreshed = merge_player_state(player, state.topics, state.locked)
        self._persist(refreshed)
        return refreshed

    async def upload_photo(
        self,
        state: PlayerState,
        topic: Topic,
        content: bytes,
        filename: str,
        content_type: str = "image/jpeg",
    ) -> PlayerState:
        """Upload a photo for a topic, then re-sync completion."""
        game_id, player_id = self._session_ids()
        await self.api.upload_photo(
            game_id, player_id, topic, content, filename, content_type
        )
        return await self.refresh(state)

    async def delete_photo(self, state: PlayerState, photo: Photo) -> PlayerState:
        """Delete one of the player's photos, then re-sync completion."""
        game_id, player_id = self._session_ids()
        await self.api.delete_photo(game_id, player_id, photo.id)
        return await self.refresh(state)

    async def share_text(self, kind: str) -> ShareSummary:
        """Fetch share text for the current player."""
        game_id, player_id = self._session_ids()
        return await self.api.share_text(game_id, player_id, kind)

    def toggle_lock(self, state: PlayerState, topic: Topic) -> PlayerState:
        """Lock or unlock a topic; completed topics stay locked."""
        locked = topic_rules.toggle_lock(state.locked, topic, state.completed_topics)
        updated = replace(state, locked=locked)
        self._persist(updated)
        return updated

    def shuffle(self, state: PlayerState, target: Topic | None = None) -> PlayerState:
        """Redraw one topic, or every unlocked topic when no target is given."""
        if target is None:
            topics = topic_rules.shuffle_unlocked(state.topics, state.locked, self.rng)
        elif target in state.locked:
            return state
        else:
            topics = topic_rules.shuffle_one(
                state.topics, state.locked, target, self.rng
            )
        updated = replace(state, topics=topics)
        self._persist(updated)
        return updated

    def _require_session(self) -> Session:
        session = self.sessions.load()
        if session is None:
            raise SessionExpiredError("No active session")
        return session

    def _session_ids(self) -> tuple[str, str]:
        session = self._require_session()
        return session.game_id, session.player_id

    def _persist(self, state: PlayerState) -> None:
        self.sessions.update(
            topics=tuple(state.topics), locked_topics=_locked_in_order(state)
        )


def _locked_in_order(state: PlayerState) -> tuple[Topic, ...]:
    return tuple(topic for topic in state.topics if topic in state.locked)


@dataclass
class GamePoller:
    """Refreshes game info on an interval while a game screen is shown."""

    api: GameApiClient
    game_id: str
    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    on_update: Callable[[GameSnapshot], None] | None = None
    latest: GameSnapshot | None = None
    _task: "asyncio.Task[None] | None" = field(default=None, init=False, repr=False)

    @property
    def running(self) -> bool:
        """Return true while the polling task is active."""
        return self._task is not None and not self._task.done()

    def set_view(self, view: GameView) -> None:
        """Start polling on game screens and stop everywhere else."""
        if view in POLLING_VIEWS:
            self.start()
        else:
            self.stop()

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the polling task."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def poll_once(self) -> GameSnapshot | None:
        """Fetch the game once; failures keep the last good snapshot."""
        try:
            snapshot = await self.api.get_game(self.game_id)
        except GameError as exc:
            _logger.warning("Polling game %s failed: %s", self.game_id, exc.message)
            return None
        self.latest = snapshot
        if self.on_update is not None:
            self.on_update(snapshot)
        return snapshot

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                _logger.exception("Unexpected error polling game %s", self.game_id)
            await asyncio.sleep(self.interval_seconds)
