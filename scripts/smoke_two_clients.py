"""Two-client smoke test against a running relay.

Contract
- Inputs: a relay reachable at `PLAYERSYNC_URL` (default ws://localhost:8081/players).
- Connects two headless clients, each walking in a small circle.
- Passes when both report `Players: 2` and each has seen the other move.
- Exits non-zero on timeout.

Usage:
    uv run playersync-relay &
    uv run python scripts/smoke_two_clients.py
"""

from __future__ import annotations

import asyncio
import logging
import math
import sys
import time
from typing import Any

from playersync.api.models import Transform
from playersync.client import RemoteAvatar, SyncClient
from playersync.settings import client_settings_from_env

logger = logging.getLogger("smoke")

TIMEOUT_S = 15.0


class HeadlessScene:
    def __init__(self, label: str) -> None:
        self.label = label

    def add_avatar(self, avatar: RemoteAvatar) -> Any:
        logger.info("[%s] + %s (%s)", self.label, avatar.name, avatar.id)
        return avatar.id

    def remove_avatar(self, handle: Any) -> None:
        logger.info("[%s] - %s", self.label, handle)


class CircleWalker:
    def __init__(self, phase: float) -> None:
        self.phase = phase

    def read_transform(self) -> Transform:
        t = time.monotonic() + self.phase
        return Transform(position=(math.cos(t), 1.6, math.sin(t)), rotation=(0.0, t % math.tau, 0.0))


def _has_seen_movement(client: SyncClient) -> bool:
    return any(a.transform != Transform() for a in client.avatars.values())


async def main() -> int:
    settings = client_settings_from_env()
    clients = [
        SyncClient(scene=HeadlessScene("p1"), transform_source=CircleWalker(0.0), settings=settings),
        SyncClient(scene=HeadlessScene("p2"), transform_source=CircleWalker(math.pi), settings=settings),
    ]
    for c in clients:
        await c.connect()

    try:
        deadline = time.monotonic() + TIMEOUT_S
        while time.monotonic() < deadline:
            for c in clients:
                c.tick()
            counts = [c.tracker.player_count for c in clients]
            if counts == [2, 2] and all(_has_seen_movement(c) for c in clients):
                for i, c in enumerate(clients, start=1):
                    logger.info("[p%d] Players: %d", i, c.tracker.player_count)
                logger.info("Two-client multiplayer smoke passed.")
                return 0
            await asyncio.sleep(1 / 60)

        logger.error("Timed out; player counts %s", [c.tracker.player_count for c in clients])
        return 1
    finally:
        for c in clients:
            await c.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main()))
