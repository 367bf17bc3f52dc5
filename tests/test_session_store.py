"""Tests for client session persistence."""

import json

from life4today.domain.sessions import Session
from life4today.domain.topics import Topic
from life4today.services.key_value import InMemoryKeyValueStore
from life4today.services.session_store import (
    DEFAULT_SESSION_DURATION_MS,
    SESSION_KEY,
    SessionStore,
    format_time_remaining,
)
from tests.conftest import START_MS, FakeMillisClock

TOPICS = (Topic.FOOD, Topic.VIEWS, Topic.DRINKS, Topic.SELFIES)


def _session(**overrides: object) -> Session:
    values: dict[str, object] = {
        "game_id": "ABC123",
        "player_id": "player-1",
        "player_name": "Alice",
        "topics": TOPICS,
        "locked_topics": (Topic.FOOD,),
        "created_at": START_MS,
        "last_active": START_MS,
        "renewals": 0,
    }
    values.update(overrides)
    return Session(**values)  # type: ignore[arg-type]


def test_save_then_load_refreshes_last_active(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    original = _session()
    millis_clock.advance(5_000)

    session_store.save(original)
    loaded = session_store.load()

    assert loaded is not None
    assert loaded.last_active == START_MS + 5_000
    assert loaded == _session(last_active=START_MS + 5_000)


def test_load_returns_none_when_missing(session_store: SessionStore) -> None:
    assert session_store.load() is None


def test_load_purges_malformed_record(
    session_store: SessionStore,
) -> None:
    store = session_store.store
    assert isinstance(store, InMemoryKeyValueStore)
    store.set(SESSION_KEY, "{not json")

    assert session_store.load() is None
    assert store.get(SESSION_KEY) is None


def test_load_backfills_missing_renewals(session_store: SessionStore) -> None:
    legacy = {
        "gameId": "ABC123",
        "playerId": "player-1",
        "playerName": "Alice",
        "playerTopics": ["food", "views", "drinks", "selfies"],
        "lockedTopics": ["food", "unknown topic"],
        "createdAt": START_MS,
        "lastActive": START_MS,
    }
    session_store.store.set(SESSION_KEY, json.dumps(legacy))

    loaded = session_store.load()

    assert loaded is not None
    assert loaded.renewals == 0
    assert loaded.topics == TOPICS
    assert loaded.locked_topics == (Topic.FOOD,)


def test_is_expired_boundaries(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    session = _session()

    millis_clock.now = START_MS + DEFAULT_SESSION_DURATION_MS - 1
    assert not session_store.is_expired(session)

    millis_clock.now = START_MS + DEFAULT_SESSION_DURATION_MS + 1
    assert session_store.is_expired(session)


def test_load_purges_expired_session(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    session_store.save(_session())
    millis_clock.now = START_MS + DEFAULT_SESSION_DURATION_MS + 1

    assert session_store.load() is None
    assert session_store.store.get(SESSION_KEY) is None


def test_update_merges_fields_and_is_noop_without_session(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    assert session_store.update(player_name="Bob") is None

    session_store.save(_session())
    millis_clock.advance(1_000)
    updated = session_store.update(locked_topics=(Topic.FOOD, Topic.VIEWS))

    assert updated is not None
    assert updated.locked_topics == (Topic.FOOD, Topic.VIEWS)
    assert updated.last_active == START_MS + 1_000
    assert session_store.load() == updated


def test_clear_removes_record(session_store: SessionStore) -> None:
    session_store.save(_session())

    session_store.clear()

    assert session_store.load() is None


def test_renew_extends_window_from_created_at(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    session_store.save(_session())

    assert session_store.renew() is True
    millis_clock.now = START_MS + 2 * DEFAULT_SESSION_DURATION_MS - 1
    loaded = session_store.load()
    assert loaded is not None
    assert loaded.renewals == 1

    millis_clock.now = START_MS + 2 * DEFAULT_SESSION_DURATION_MS + 1
    assert session_store.load() is None


def test_renew_stops_at_max_renewals(session_store: SessionStore) -> None:
    session_store.save(_session())

    assert session_store.renew() is True
    assert session_store.renew() is True
    assert session_store.renew() is False

    loaded = session_store.load()
    assert loaded is not None
    assert loaded.renewals == session_store.max_renewals
    assert not session_store.can_renew(loaded)


def test_renew_without_session_fails(session_store: SessionStore) -> None:
    assert session_store.renew() is False


def test_info_reports_remaining_time(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    assert session_store.info().active is False

    session_store.save(_session(renewals=1))
    millis_clock.advance(60 * 60 * 1000)
    info = session_store.info()

    assert info.active is True
    assert info.time_remaining == 2 * DEFAULT_SESSION_DURATION_MS - 60 * 60 * 1000
    assert info.can_renew is True
    assert info.renewals_left == 1


def test_create_stamps_times(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    session = session_store.create("ABC123", "player-1", "Alice", TOPICS)

    assert session.created_at == millis_clock.now
    assert session.locked_topics == ()
    assert session_store.load() == session


def test_custom_policy_is_honoured(millis_clock: FakeMillisClock) -> None:
    four_hours = 4 * 60 * 60 * 1000
    store = SessionStore(
        store=InMemoryKeyValueStore(),
        session_duration_ms=four_hours,
        max_renewals=1,
        clock=millis_clock,
    )
    store.save(_session())

    assert store.renew() is True
    assert store.renew() is False
    assert store.expires_at(_session(renewals=1)) == START_MS + 2 * four_hours


def test_format_time_remaining() -> None:
    assert format_time_remaining(2 * 60 * 60 * 1000 + 5 * 60 * 1000) == "2h 5m"
    assert format_time_remaining(45 * 60 * 1000 + 59_000) == "45m"
    assert format_time_remaining(0) == "0m"
    assert SessionStore.format_time_remaining(60 * 60 * 1000) == "1h 0m"


def test_info_agrees_with_load_at_expiry_instant(
    session_store: SessionStore, millis_clock: FakeMillisClock
) -> None:
    session_store.save(_session())
    millis_clock.now = START_MS + DEFAULT_SESSION_DURATION_MS

    info = session_store.info()

    assert session_store.load() is not None
    assert info.active is True
    assert info.time_remaining == 0
