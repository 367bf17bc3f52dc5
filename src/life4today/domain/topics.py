"""Photo challenge topic catalog."""

from enum import StrEnum


class Topic(StrEnum):
    """One of the fixed photo-challenge categories."""

    FOOD = "food"
    OOTD = "ootd"
    CUTE_ANIMALS = "cute animals"
    TRENDING_TOPICS = "trending topics"
    SELFIES = "selfies"
    VIEWS = "views"
    DRINKS = "drinks"
    WATCHING_LISTENING = "watching/listening"
    QUOTE_OF_THE_DAY = "quote of the day"
    WORKSTATION = "workstation"
    TRANSPORTATION = "transportation"


ALL_TOPICS: tuple[Topic, ...] = tuple(Topic)

TOPICS_PER_PLAYER = 4


def parse_topic(value: str) -> Topic | None:
    """Return the catalog topic for a raw string, if it is one."""
    try:
        return Topic(value)
    except ValueError:
        return None
