"""Topic assignment, reshuffling and lock handling.

All functions are pure apart from the random source, which callers may pass
in as a seeded ``random.Random`` to get deterministic draws.
"""

import random
from collections.abc import Collection, Iterable, Sequence

from life4today.domain.topics import ALL_TOPICS, TOPICS_PER_PLAYER, Topic, parse_topic

_default_rng = random.Random()


def random_topics(
    exclude: Collection[Topic] = (),
    rng: random.Random | None = None,
    catalog: Sequence[Topic] = ALL_TOPICS,
) -> list[Topic]:
    """Sample up to four distinct topics from the catalog minus ``exclude``."""
    pool = [topic for topic in catalog if topic not in exclude]
    return (rng or _default_rng).sample(pool, min(TOPICS_PER_PLAYER, len(pool)))


def initialize_topics(
    existing: Sequence[str] | None = None,
    rng: random.Random | None = None,
    catalog: Sequence[Topic] = ALL_TOPICS,
) -> list[Topic]:
    """Reuse a valid stored topic set, or draw a fresh one."""
    if existing is not None and len(existing) == TOPICS_PER_PLAYER:
        parsed = [parse_topic(value) for value in existing]
        valid = [topic for topic in parsed if topic is not None and topic in catalog]
        if len(set(valid)) == TOPICS_PER_PLAYER:
            return valid
    return random_topics(rng=rng, catalog=catalog)


def shuffle_one(
    current: Sequence[Topic],
    locked: Collection[Topic],
    target: Topic,
    rng: random.Random | None = None,
    catalog: Sequence[Topic] = ALL_TOPICS,
) -> list[Topic]:
    """Replace ``target`` with a topic that is neither current nor locked."""
    if target not in current:
        return list(current)
    candidates = [
        topic for topic in catalog if topic not in current and topic not in locked
    ]
    if not candidates:
        return list(current)
    replacement = (rng or _default_rng).choice(candidates)
    return [replacement if topic == target else topic for topic in current]


def shuffle_unlocked(
    current: Sequence[Topic],
    locked: Collection[Topic],
    rng: random.Random | None = None,
    catalog: Sequence[Topic] = ALL_TOPICS,
) -> list[Topic]:
    """Redraw every unlocked slot, keeping locked topics in place.

    Replacements are topics not currently assigned and not locked. When the
    pool runs short the remaining unlocked slots keep their old topic, so the
    result always has the same length as ``current`` and no duplicates.
    """
    result = list(current)
    unlocked_slots = [
        index for index, topic in enumerate(current) if topic not in locked
    ]
    pool = [topic for topic in catalog if topic not in locked and topic not in current]
    draws = (rng or _default_rng).sample(pool, min(len(pool), len(unlocked_slots)))
    for index, topic in zip(unlocked_slots, draws, strict=False):
        result[index] = topic
    return result


def toggle_lock(
    locked: Collection[Topic], topic: Topic, completed: Collection[Topic]
) -> set[Topic]:
    """Flip the lock on ``topic`` unless a photo already completes it."""
    updated = set(locked)
    if topic in completed:
        return updated
    if topic in updated:
        updated.discard(topic)
    else:
        updated.add(topic)
    return updated


def derive_locked(
    completed: Iterable[Topic], manually_locked: Iterable[Topic]
) -> set[Topic]:
    """Completed topics are always locked on top of the manual choices."""
    return set(completed) | set(manually_locked)


def missing_topics(
    completed: Collection[Topic], catalog: Sequence[Topic] = ALL_TOPICS
) -> list[Topic]:
    """Catalog topics without a photo, in catalog order."""
    return [topic for topic in catalog if topic not in completed]
