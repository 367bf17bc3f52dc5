"""HTTP client for the Life4Today game API."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

import httpx

from life4today.domain.errors import InvalidInputError, NotFoundError, TransportError
from life4today.domain.games import (
    CreatedGame,
    GameSnapshot,
    Photo,
    Player,
    PlayerSummary,
    ShareSummary,
)
from life4today.domain.topics import Topic, parse_topic


class GameApiClient(Protocol):
    """Interface for the game server's REST operations."""

    async def create_game(self) -> CreatedGame:
        """Create a game and return its id and topic catalog."""

    async def get_game(self, game_id: str) -> GameSnapshot:
        """Fetch a game with every player's progress."""

    async def join_game(
        self, game_id: str, player_name: str, player_id: str | None
    ) -> Player:
        """Join a game or update an existing player."""

    async def upload_photo(  # noqa: PLR0913
        self,
        game_id: str,
        player_id: str,
        topic: Topic,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> Photo:
        """Upload a photo for a topic."""

    async def list_photos(self, game_id: str, player_id: str) -> list[Photo]:
        """Fetch a player's photos."""

    async def delete_photo(self, game_id: str, player_id: str, photo_id: str) -> None:
        """Delete one of a player's photos."""

    async def share_text(self, game_id: str, player_id: str, kind: str) -> ShareSummary:
        """Fetch share text for a player."""


@dataclass
class HttpxGameApiClient(GameApiClient):
    """Game API client implemented with httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10

    @classmethod
    def create(cls, base_url: str) -> "HttpxGameApiClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def create_game(self) -> CreatedGame:
        """Create a new game."""
        path = "/games"
        payload = await self._request("POST", path)
        with _parsing(path):
            return CreatedGame(
                game_id=str(payload["gameId"]),
                topics=[Topic(topic) for topic in payload.get("topics", [])],
            )

    async def get_game(self, game_id: str) -> GameSnapshot:
        """Fetch game info."""
        path = f"/games/{game_id}"
        payload = await self._request("GET", path)
        with _parsing(path):
            game = payload["game"]
            return GameSnapshot(
                id=str(game["id"]),
                players=[_parse_player_summary(player) for player in game["players"]],
                topics=[Topic(topic) for topic in game.get("topics", [])],
            )

    async def join_game(
        self, game_id: str, player_name: str, player_id: str | None
    ) -> Player:
        """Join a game or update the player's name."""
        path = f"/games/{game_id}/players"
        payload = await self._request(
            "POST", path, json={"playerName": player_name, "playerId": player_id}
        )
        with _parsing(path):
            player = payload["player"]
            return Player(
                id=str(player["id"]),
                name=str(player["name"]),
                last_active=_parse_timestamp(player.get("lastActive")),
                photos=[_parse_photo(photo) for photo in player.get("photos", [])],
            )

    async def upload_photo(  # noqa: PLR0913
        self,
        game_id: str,
        player_id: str,
        topic: Topic,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> Photo:
        """Upload a photo as multipart form data."""
        path = f"/games/{game_id}/players/{player_id}/photos"
        payload = await self._request(
            "POST",
            path,
            data={"topic": str(topic)},
            files={"photo": (filename, content, content_type)},
        )
        with _parsing(path):
            return _parse_photo(payload["photo"])

    async def list_photos(self, game_id: str, player_id: str) -> list[Photo]:
        """Fetch the player's photos."""
        path = f"/games/{game_id}/players/{player_id}/photos"
        payload = await self._request("GET", path)
        with _parsing(path):
            return [_parse_photo(photo) for photo in payload.get("photos", [])]

    async def delete_photo(self, game_id: str, player_id: str, photo_id: str) -> None:
        """Delete a photo."""
        await self._request(
            "DELETE", f"/games/{game_id}/players/{player_id}/photos/{photo_id}"
        )

    async def share_text(self, game_id: str, player_id: str, kind: str) -> ShareSummary:
        """Request share text for the player."""
        path = f"/games/{game_id}/players/{player_id}/share"
        payload = await self._request("POST", path, json={"type": kind})
        with _parsing(path):
            return ShareSummary(
                text=str(payload["shareText"]),
                completed_count=int(payload["completedCount"]),
                missing_count=int(payload["missingCount"]),
            )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _request(
        self, method: str, path: str, **kwargs: object
    ) -> dict[str, Any]:
        try:
            response = await self.http_client.request(
                method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {path} failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"Unreadable response from {path}") from exc
        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected response from {path}")
        message = str(payload.get("message") or "Request failed")
        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(message)
        if response.status_code == httpx.codes.BAD_REQUEST:
            raise InvalidInputError(message)
        if response.is_error or not payload.get("success"):
            raise TransportError(message)
        return payload


@contextmanager
def _parsing(path: str) -> Iterator[None]:
    try:
        yield
    except (KeyError, TypeError, ValueError) as exc:
        raise TransportError(f"Malformed response from {path}") from exc


def _parse_timestamp(value: object) -> datetime:
    if value is None:
        return datetime.now(tz=UTC)
    return datetime.fromisoformat(str(value))


def _parse_photo(data: dict[str, Any]) -> Photo:
    return Photo(
        id=str(data["id"]),
        filename=str(data["filename"]),
        url=str(data["url"]),
        topic=Topic(str(data["topic"])),
        uploaded_at=_parse_timestamp(data.get("uploadedAt")),
    )


def _parse_player_summary(data: dict[str, Any]) -> PlayerSummary:
    completed = data.get("completedTopics", [])
    return PlayerSummary(
        id=str(data["id"]),
        name=str(data["name"]),
        photo_count=int(data.get("photoCount", 0)),
        completed_topics=[
            topic
            for topic in (parse_topic(str(value)) for value in completed)
            if topic is not None
        ],
        last_active=_parse_timestamp(data.get("lastActive")),
    )
