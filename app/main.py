"""Entry point for the FastAPI-powered series player service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Path, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .models import (
    TITLE_ID_PATTERN,
    CreateSessionRequest,
    ManualSelectionRequest,
    SeasonRequest,
    SessionView,
)
from .services.imdb import ImdbApiClient
from .services.playback import build_embed_url
from .services.series_session import FallbackInactiveError, SeriesSession
from .services.session_registry import SessionRegistry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    metadata_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.metadata_base_url,
            timeout=httpx.Timeout(settings.metadata_timeout_seconds, connect=5.0),
            headers={"Accept": "application/json"},
        )
    )
    metadata_client = ImdbApiClient(settings, metadata_http_client)
    fastapi_app.state.session_registry = SessionRegistry(settings, metadata_client)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Season and episode browsing for embedded series playback",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_session_registry(app: FastAPI) -> SessionRegistry:
    registry = getattr(app.state, "session_registry", None)
    if not isinstance(registry, SessionRegistry):
        raise RuntimeError("Session registry not initialised")
    return registry


def register_routes(fastapi_app: FastAPI) -> None:
    def _session(session_id: str) -> SeriesSession:
        registry = get_session_registry(fastapi_app)
        try:
            return registry.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Session not found") from exc

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/sessions", status_code=201, response_model=SessionView)
    async def create_session(payload: CreateSessionRequest) -> SessionView:
        registry = get_session_registry(fastapi_app)
        session = await registry.create(payload.title_id)
        return session.view()

    @fastapi_app.get("/sessions/{session_id}", response_model=SessionView)
    async def read_session(
        session_id: str, q: str = Query(default="", max_length=200)
    ) -> SessionView:
        return _session(session_id).view(q)

    @fastapi_app.delete("/sessions/{session_id}", status_code=204)
    async def delete_session(session_id: str) -> Response:
        registry = get_session_registry(fastapi_app)
        if not registry.discard(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return Response(status_code=204)

    @fastapi_app.put("/sessions/{session_id}/title", response_model=SessionView)
    async def change_title(
        session_id: str, payload: CreateSessionRequest
    ) -> SessionView:
        session = _session(session_id)
        await session.load_title(payload.title_id)
        return session.view()

    @fastapi_app.put("/sessions/{session_id}/season", response_model=SessionView)
    async def change_season(session_id: str, payload: SeasonRequest) -> SessionView:
        session = _session(session_id)
        try:
            await session.change_season(payload.season)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return session.view()

    @fastapi_app.post(
        "/sessions/{session_id}/episodes/{episode_id}/select",
        response_model=SessionView,
    )
    async def select_episode(session_id: str, episode_id: str) -> SessionView:
        session = _session(session_id)
        try:
            session.select_episode(episode_id)
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return session.view()

    @fastapi_app.post("/sessions/{session_id}/next", response_model=SessionView)
    async def next_episode(session_id: str) -> SessionView:
        session = _session(session_id)
        session.next_episode()
        return session.view()

    @fastapi_app.post("/sessions/{session_id}/previous", response_model=SessionView)
    async def previous_episode(session_id: str) -> SessionView:
        session = _session(session_id)
        session.previous_episode()
        return session.view()

    @fastapi_app.post(
        "/sessions/{session_id}/player/loaded", response_model=SessionView
    )
    async def player_loaded(session_id: str) -> SessionView:
        session = _session(session_id)
        session.mark_player_loaded()
        return session.view()

    @fastapi_app.put("/sessions/{session_id}/manual", response_model=SessionView)
    async def manual_selection(
        session_id: str, payload: ManualSelectionRequest
    ) -> SessionView:
        session = _session(session_id)
        try:
            session.choose_manual(payload.season, payload.episode)
        except FallbackInactiveError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return session.view()

    @fastapi_app.get("/embed/tv/{title_id}")
    async def embed_address(
        title_id: str = Path(max_length=32, pattern=TITLE_ID_PATTERN),
        season: int = Query(default=1, ge=1),
        episode: int = Query(default=1, ge=1),
    ) -> dict[str, Any]:
        return {
            "src": build_embed_url(settings.embed_domain, title_id, season, episode),
            "season": season,
            "episode": episode,
        }


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
