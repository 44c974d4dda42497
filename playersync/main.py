from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from playersync import __version__
from playersync.api.routes import players_ws, router
from playersync.relay import Relay
from playersync.settings import RelaySettings, relay_settings_from_env

logger = logging.getLogger(__name__)


def create_app(settings: RelaySettings | None = None) -> FastAPI:
    settings = settings or relay_settings_from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.relay = Relay(send_timeout_s=settings.send_timeout_s)
        logger.info("Multiplayer WS ready at ws://<host>:%d%s", settings.port, settings.path)
        yield
        await app.state.relay.drain()
        app.state.relay = None

    app = FastAPI(title="playersync", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.include_router(router)
    app.add_api_websocket_route(settings.path, players_ws)
    return app


_settings = relay_settings_from_env()

# Configure logging
logging.basicConfig(level=_settings.log_level)

app = create_app(_settings)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=_settings.host, port=_settings.port, log_level=_settings.log_level.lower())


if __name__ == "__main__":
    run()
