"""Game, player and photo endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool

from life4today.api.models import JoinGameRequest, ShareRequest
from life4today.domain.topics import ALL_TOPICS

if TYPE_CHECKING:
    from life4today.containers import AppContainer
    from life4today.domain.games import Game, Photo, Player

router = APIRouter(prefix="/api", tags=["games"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/health")
def health(request: Request) -> dict[str, object]:
    """Health check with the number of live games."""
    return {
        "success": True,
        "message": "Life4Today API is running!",
        "activeGames": _container(request).game_service.active_game_count(),
    }


@router.post("/games")
def create_game(request: Request) -> dict[str, object]:
    """Create a new game."""
    game = _container(request).game_service.create_game()
    return {"success": True, "gameId": game.id, "topics": _topic_catalog()}


@router.get("/games/{game_id}")
def get_game(game_id: str, request: Request) -> dict[str, object]:
    """Return a game with every player's progress."""
    game = _container(request).game_service.get_game(game_id)
    return {"success": True, "game": _game_payload(game)}


@router.post("/games/{game_id}/players")
def join_game(
    game_id: str, body: JoinGameRequest, request: Request
) -> dict[str, object]:
    """Join a game, or update the player when the id already exists."""
    player = _container(request).game_service.upsert_player(
        game_id, body.player_id, body.player_name
    )
    return {"success": True, "player": _player_payload(player)}


@router.post("/games/{game_id}/players/{player_id}/photos")
async def upload_photo(
    game_id: str,
    player_id: str,
    request: Request,
    topic: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
) -> dict[str, object]:
    """Upload a photo for a topic, replacing any earlier one."""
    service = _container(request).game_service
    content = (
        await photo.read(service.max_upload_bytes + 1) if photo is not None else None
    )
    stored = await run_in_threadpool(
        service.upload_photo,
        game_id,
        player_id,
        topic,
        content,
        original_filename=photo.filename if photo is not None else None,
        content_type=photo.content_type if photo is not None else None,
    )
    return {"success": True, "photo": _photo_payload(stored)}


@router.get("/games/{game_id}/players/{player_id}/photos")
def list_photos(
    game_id: str, player_id: str, request: Request
) -> dict[str, object]:
    """Return a player's photos."""
    photos = _container(request).game_service.list_photos(game_id, player_id)
    return {"success": True, "photos": [_photo_payload(photo) for photo in photos]}


@router.delete("/games/{game_id}/players/{player_id}/photos/{photo_id}")
def delete_photo(
    game_id: str, player_id: str, photo_id: str, request: Request
) -> dict[str, object]:
    """Delete a photo."""
    _container(request).game_service.delete_photo(game_id, player_id, photo_id)
    return {"success": True}


@router.post("/games/{game_id}/players/{player_id}/share")
def share(
    game_id: str, player_id: str, body: ShareRequest, request: Request
) -> dict[str, object]:
    """Generate share text for a player's progress."""
    summary = _container(request).game_service.share_text(
        game_id, player_id, body.type, origin=request.headers.get("origin")
    )
    return {
        "success": True,
        "shareText": summary.text,
        "completedCount": summary.completed_count,
        "missingCount": summary.missing_count,
    }


def _topic_catalog() -> list[str]:
    return [str(topic) for topic in ALL_TOPICS]


def _photo_payload(photo: Photo) -> dict[str, object]:
    return {
        "id": photo.id,
        "filename": photo.filename,
        "url": photo.url,
        "topic": str(photo.topic),
        "uploadedAt": photo.uploaded_at.isoformat(),
    }


def _player_payload(player: Player) -> dict[str, object]:
    return {
        "id": player.id,
        "name": player.name,
        "photos": [_photo_payload(photo) for photo in player.photos],
        "lastActive": player.last_active.isoformat(),
    }


def _game_payload(game: Game) -> dict[str, object]:
    return {
        "id": game.id,
        "players": [
            {
                "id": player.id,
                "name": player.name,
                "photoCount": player.photo_count,
                "completedTopics": [str(topic) for topic in player.completed_topics],
                "lastActive": player.last_active.isoformat(),
            }
            for player in game.players
        ],
        "topics": _topic_catalog(),
    }
