from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket

from playersync import __version__
from playersync.api.deps import get_relay
from playersync.api.models import RosterResponse
from playersync.relay import Relay

router = APIRouter()


async def players_ws(websocket: WebSocket, relay: Relay = Depends(get_relay)) -> None:
    # Mounted at the configured path by `create_app`; admission happens on handshake.
    await relay.handle_connection(websocket)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/info")
async def info(relay: Relay = Depends(get_relay)) -> dict[str, str | int]:
    return {"name": "playersync", "version": __version__, "participants": relay.participant_count}


@router.get("/roster", response_model=RosterResponse)
async def roster(relay: Relay = Depends(get_relay)) -> RosterResponse:
    return RosterResponse(players=await relay.roster())
