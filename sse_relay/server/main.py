"""
MODULE OVERVIEW:
The FastAPI application factory.

WHAT IS HAPPENING HERE:
We use a `lifespan` context manager. When Uvicorn starts the server, we enter the lifespan
and build the relay core: a `SessionRegistry`, the Jinja2 `MessageRenderer`, the session id
policy and the `DeliveryBroker` that ties them together. They live on `app.state`, not in
module globals, so each app (and each test) gets its own empty registry.
When the server shuts down, the lifespan closes every channel still registered so any
sender waiting on a slot fails fast instead of hanging.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.sessions import SessionMiddleware

from sse_relay.server.delivery_broker import DeliveryBroker
from sse_relay.server.dependencies import get_broker
from sse_relay.server.middleware import TimingMiddleware
from sse_relay.server.rendering import MessageRenderer
from sse_relay.server.routes import messages, pages, sse
from sse_relay.server.session_registry import SessionRegistry
from sse_relay.shared.config import Settings, settings as default_settings
from sse_relay.shared.errors import RegistryUnavailable, SessionNotFound
from sse_relay.shared.identity import SessionIdPolicy
from sse_relay.shared.logging import configure_logging
from sse_relay.shared.models import RelayStats

def build_broker(settings: Settings) -> DeliveryBroker:
    return DeliveryBroker(
        SessionRegistry(),
        renderer=MessageRenderer(),
        policy=SessionIdPolicy(settings.SESSION_ID_BITS, settings.SESSION_BINDING),
        settings=settings,
    )

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # STARTUP
        configure_logging(settings.LOG_LEVEL)
        app.state.broker = build_broker(settings)
        logger.info(
            f"SSE relay starting up: binding={settings.SESSION_BINDING} "
            f"id_bits={settings.SESSION_ID_BITS} echo={settings.ECHO_TO_SENDER}"
        )

        yield

        # SHUTDOWN
        registry = app.state.broker.registry
        logger.info(f"Server shutting down. Closing {len(registry)} open channels...")
        registry.close_all()
        app.state.broker = None
        logger.info("Shutdown complete.")

    app = FastAPI(
        title="SSE Relay",
        description="Point-to-point message delivery between anonymous sessions over Server-Sent Events",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Add Middlewares
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SessionNotFound)
    async def session_not_found_handler(request: Request, exc: SessionNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RegistryUnavailable)
    async def registry_unavailable_handler(request: Request, exc: RegistryUnavailable):
        logger.error(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    # Route registrations
    app.include_router(pages.router, tags=["Pages"])
    app.include_router(sse.router, tags=["Relay"])
    app.include_router(messages.router, tags=["Relay"])

    @app.get("/healthz", tags=["Ops"])
    async def health_check():
        return {"status": "ok"}

    @app.get("/stats", tags=["Ops"], response_model=RelayStats)
    async def get_stats(request: Request):
        return get_broker(request).get_stats()

    return app

app = create_app()
