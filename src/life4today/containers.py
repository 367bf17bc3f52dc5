"""Dependency container wiring for the application."""

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from life4today.adapters.game_api_client import HttpxGameApiClient
from life4today.adapters.in_memory_game_repository import InMemoryGameRepository
from life4today.adapters.json_file_store import JsonFileKeyValueStore
from life4today.adapters.local_photo_storage import LocalPhotoStorage
from life4today.config import Settings
from life4today.services.games import GameService
from life4today.services.reconciliation import GamePoller, ReconciliationClient
from life4today.services.session_store import SessionStore


@dataclass
class AppContainer:
    """Holds server-wide dependencies."""

    settings: Settings
    game_service: GameService
    close_resources: Callable[[], Awaitable[None]]


@dataclass
class ClientContainer:
    """Holds the game client's dependencies."""

    settings: Settings
    api_client: HttpxGameApiClient
    session_store: SessionStore
    reconciliation_client: ReconciliationClient

    async def close(self) -> None:
        """Release the HTTP session."""
        await self.api_client.close()

    def poller(self, game_id: str) -> GamePoller:
        """Create a poller for a game using the configured interval."""
        return GamePoller(
            api=self.api_client,
            game_id=game_id,
            interval_seconds=self.settings.poll_interval_seconds,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default server container."""
    resolved_settings = settings or Settings()
    game_service = GameService(
        repository=InMemoryGameRepository(),
        storage=LocalPhotoStorage(
            base_dir=resolved_settings.upload_dir,
            url_prefix=resolved_settings.uploads_url_prefix,
        ),
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        game_service=game_service,
        close_resources=close_resources,
    )


def build_client_container(
    settings: Settings | None = None, rng: random.Random | None = None
) -> ClientContainer:
    """Create the default game client container."""
    resolved_settings = settings or Settings()
    api_client = HttpxGameApiClient.create(resolved_settings.api_base_url)
    session_store = SessionStore(
        store=JsonFileKeyValueStore(resolved_settings.session_file),
        session_duration_ms=resolved_settings.session_duration_ms,
        max_renewals=resolved_settings.max_renewals,
    )
    reconciliation_client = ReconciliationClient(
        api=api_client,
        sessions=session_store,
        rng=rng or random.Random(),
    )
    return ClientContainer(
        settings=resolved_settings,
        api_client=api_client,
        session_store=session_store,
        reconciliation_client=reconciliation_client,
    )
