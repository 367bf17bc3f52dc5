"""Client-side session persistence with expiry and renewal."""

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from life4today.domain.sessions import Session, SessionInfo
from life4today.domain.topics import Topic, parse_topic
from life4today.services.key_value import KeyValueStore

SESSION_KEY = "life4today_session"
DEFAULT_SESSION_DURATION_MS = 12 * 60 * 60 * 1000
DEFAULT_MAX_RENEWALS = 2

_HOUR_MS = 60 * 60 * 1000
_MINUTE_MS = 60 * 1000

_logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(datetime.now(tz=UTC).timestamp() * 1000)


def format_time_remaining(milliseconds: int) -> str:
    """Format a duration as ``"{h}h {m}m"`` or ``"{m}m"`` under an hour."""
    hours = milliseconds // _HOUR_MS
    minutes = (milliseconds % _HOUR_MS) // _MINUTE_MS
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


@dataclass
class SessionStore:
    """Persists the player's session in a single key/value slot.

    A session expires ``session_duration_ms`` after creation; each renewal
    extends the window by another full duration counted from ``created_at``.
    """

    store: KeyValueStore
    session_duration_ms: int = DEFAULT_SESSION_DURATION_MS
    max_renewals: int = DEFAULT_MAX_RENEWALS
    clock: Callable[[], int] = now_ms
    key: str = SESSION_KEY

    format_time_remaining = staticmethod(format_time_remaining)

    def create(
        self,
        game_id: str,
        player_id: str,
        player_name: str,
        topics: Sequence[Topic],
        locked_topics: Sequence[Topic] = (),
    ) -> Session:
        """Start a fresh session and persist it."""
        now = self.clock()
        session = Session(
            game_id=game_id,
            player_id=player_id,
            player_name=player_name,
            topics=tuple(topics),
            locked_topics=tuple(locked_topics),
            created_at=now,
            last_active=now,
        )
        return self.save(session)

    def save(self, session: Session) -> Session:
        """Persist a session, stamping ``last_active`` with the current time."""
        stamped = replace(session, last_active=self.clock())
        try:
            self.store.set(self.key, json.dumps(_to_record(stamped)))
        except OSError:
            _logger.warning("Failed to save session", exc_info=True)
        return stamped

    def load(self) -> Session | None:
        """Return the stored session, purging it if malformed or expired."""
        raw = self.store.get(self.key)
        if raw is None:
            return None
        try:
            session = _from_record(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            _logger.warning("Discarding malformed session record")
            self.clear()
            return None
        if self.is_expired(session):
            _logger.info("Session for game %s expired", session.game_id)
            self.clear()
            return None
        return session

    def update(self, **changes: object) -> Session | None:
        """Merge changes into the stored session; no-op when there is none."""
        session = self.load()
        if session is None:
            return None
        return self.save(replace(session, **changes))

    def clear(self) -> None:
        """Remove the stored session."""
        try:
            self.store.remove(self.key)
        except OSError:
            _logger.warning("Failed to clear session", exc_info=True)

    def expires_at(self, session: Session) -> int:
        """Epoch milliseconds at which the session stops being valid."""
        return session.created_at + self.session_duration_ms * (session.renewals + 1)

    def is_expired(self, session: Session) -> bool:
        """Return true once the session is past its renewed window."""
        return self.clock() - session.created_at > self.session_duration_ms * (
            session.renewals + 1
        )

    def can_renew(self, session: Session) -> bool:
        """Return true while renewals remain."""
        return session.renewals < self.max_renewals

    def renew(self) -> bool:
        """Extend the stored session by one more duration, if allowed."""
        session = self.load()
        if session is None or not self.can_renew(session):
            return False
        self.save(replace(session, renewals=session.renewals + 1))
        return True

    def info(self) -> SessionInfo:
        """Return a snapshot of the stored session's status."""
        session = self.load()
        if session is None:
            return SessionInfo(
                active=False, time_remaining=0, can_renew=False, renewals_left=0
            )
        remaining = max(0, self.expires_at(session) - self.clock())
        return SessionInfo(
            active=not self.is_expired(session),
            time_remaining=remaining,
            can_renew=self.can_renew(session),
            renewals_left=max(0, self.max_renewals - session.renewals),
        )


def _to_record(session: Session) -> dict[str, object]:
    return {
        "gameId": session.game_id,
        "playerId": session.player_id,
        "playerName": session.player_name,
        "playerTopics": [str(topic) for topic in session.topics],
        "lockedTopics": [str(topic) for topic in session.locked_topics],
        "createdAt": session.created_at,
        "lastActive": session.last_active,
        "renewals": session.renewals,
    }


def _from_record(record: object) -> Session:
    if not isinstance(record, dict):
        raise TypeError("session record must be an object")
    raw_topics = record.get("playerTopics", record.get("topics", []))
    created_at = int(record["createdAt"])
    return Session(
        game_id=str(record["gameId"]),
        player_id=str(record["playerId"]),
        player_name=str(record.get("playerName", "")),
        topics=_known_topics(raw_topics),
        locked_topics=_known_topics(record.get("lockedTopics", [])),
        created_at=created_at,
        last_active=int(record.get("lastActive", created_at)),
        renewals=max(0, int(record.get("renewals") or 0)),
    )


def _known_topics(values: object) -> tuple[Topic, ...]:
    if not isinstance(values, list):
        raise TypeError("topic list must be an array")
    parsed = (parse_topic(str(value)) for value in values)
    return tuple(topic for topic in parsed if topic is not None)
