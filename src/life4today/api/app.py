"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from life4today.api.games import router as games_router
from life4today.app_logging import configure_logging
from life4today.containers import AppContainer
from life4today.domain.errors import GameError, InvalidInputError, NotFoundError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    settings = container.settings
    game_ttl = timedelta(hours=settings.game_ttl_hours)

    def reap_expired_games() -> None:
        try:
            container.game_service.reap_expired(game_ttl)
        except Exception:
            logger.exception("Reaping inactive games failed")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            reap_expired_games,
            "interval",
            minutes=settings.reaper_interval_minutes,
            id="reap-expired-games",
        )
        scheduler.start()
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            await app.state.container.close_resources()

    app = FastAPI(title="Life4Today API", lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _failure(status.HTTP_404_NOT_FOUND, exc.message)

    @app.exception_handler(InvalidInputError)
    async def invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        return _failure(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(GameError)
    async def game_error(request: Request, exc: GameError) -> JSONResponse:
        return _failure(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid request")

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _failure(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
        )

    app.include_router(games_router)
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.uploads_url_prefix,
        StaticFiles(directory=settings.upload_dir),
        name="uploads",
    )
    return app


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "message": message}
    )
