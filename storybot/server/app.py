from __future__ import annotations
import uuid
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from storybot.channels.manager import ChannelManager, UnknownChannel
from storybot.config import Settings
from storybot.conversation.context_manager import ContextManager, MemoryContextStore, SqlContextStore
from storybot.conversation.loader import load_stories
from storybot.conversation.story_manager import StoryManager
from storybot.core.bot import Bot
from storybot.observability.logging import bind_request, clear_request, configure_logging, get_logger
from storybot.persistence.db import make_engine, make_session_factory
from storybot.persistence.migrations import init_db

log = get_logger("app")

def create_app(
    settings: Settings,
    story_manager: StoryManager | None = None,
    context_manager: ContextManager | None = None,
    channel_manager: ChannelManager | None = None,
) -> FastAPI:
    configure_logging(settings.log_level, settings.json_logs)
    app = FastAPI(title="storybot", version="0.1.0")

    stories = story_manager or StoryManager()
    channels = channel_manager or ChannelManager(settings.channels)

    engine = None
    if context_manager is None:
        if settings.context_store == "sqlite":
            engine = make_engine(settings)
            context_manager = ContextManager(SqlContextStore(make_session_factory(engine)))
        else:
            context_manager = ContextManager(MemoryContextStore())
    contexts = context_manager

    @app.on_event("startup")
    async def _startup():
        if engine is not None:
            await init_db(engine)
        if story_manager is None:
            load_stories(settings.story_dir, stories)
        log.info("storybot_started", host=settings.host, port=settings.port, channels=[c.name for c in channels.all()])

    @app.on_event("shutdown")
    async def _shutdown():
        if engine is not None:
            await engine.dispose()

    @app.get(settings.health_path)
    async def healthz():
        return {"ok": True, "service": "storybot", "version": "0.1.0"}

    @app.get(settings.metrics_path)
    async def metrics_endpoint():
        return PlainTextResponse(generate_latest().decode("utf-8"), media_type=CONTENT_TYPE_LATEST)

    async def _handle(channel_name: str, payload: dict, headers: dict[str, str]) -> Response:
        try:
            channel = channels.get(channel_name)
        except UnknownChannel:
            raise HTTPException(status_code=404, detail="unknown channel")

        bind_request(channel.name, uuid.uuid4().hex[:12])
        driver = channels.create_driver(channel)
        driver.fill(channel.parameters, payload, headers)
        try:
            result = await Bot(channel, driver, contexts, stories).process()
        finally:
            await driver.aclose()
            clear_request()
        if result is None:
            return Response(status_code=200)
        return PlainTextResponse(result)

    @app.post(settings.webhook_path)
    async def webhook(channel: str, request: Request):
        try:
            payload = await request.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return await _handle(channel, payload, dict(request.headers))

    # handshakes arrive as GET with query parameters
    @app.get(settings.webhook_path)
    async def webhook_verification(channel: str, request: Request):
        return await _handle(channel, dict(request.query_params), dict(request.headers))

    return app
