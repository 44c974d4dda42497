from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

from playersync.api.models import StateReport
from playersync.client.avatars import AvatarTracker, RemoteAvatar, Scene, TransformSource
from playersync.client.fsm import ConnectionFSM, ConnectionPhase
from playersync.settings import ClientSettings

logger = logging.getLogger(__name__)

# Anything with async `send(str)`, async `close()` and async iteration over inbound frames.
Connector = Callable[[str], Awaitable[Any]]


async def _websockets_connect(url: str) -> Any:
    return await websockets.connect(url)


class SyncClient:
    """One live relay connection plus the local view of remote participants.

    Runs on the caller's event loop: inbound events are applied by a reader task,
    `tick` is called from the frame loop. Nothing here needs locking.
    """

    def __init__(
        self,
        *,
        scene: Scene,
        transform_source: TransformSource,
        settings: ClientSettings | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.tracker = AvatarTracker(scene)
        self._source = transform_source
        self._connector = connector or _websockets_connect
        self._fsm = ConnectionFSM()
        self._ws: Any = None
        self._reader: asyncio.Task[None] | None = None
        self._handshake: asyncio.Future[Any] | None = None
        self._sending: asyncio.Task[None] | None = None
        self._last_sent_at: float | None = None

    @property
    def phase(self) -> ConnectionPhase:
        return self._fsm.phase

    @property
    def avatars(self) -> Mapping[str, RemoteAvatar]:
        return self.tracker.avatars

    async def connect(self, url: str | None = None) -> None:
        """Open a fresh connection, closing any previous one first.

        A handshake still in progress is abandoned; its connection, if it opens
        anyway, is closed and that earlier `connect` call returns without effect.
        Raises whatever the transport raises if the handshake fails; the client is
        left `disconnected` in that case.
        """
        await self.close()

        url = url or self.settings.url
        self._fsm.begin()
        handshake = asyncio.ensure_future(self._connector(url))
        self._handshake = handshake
        try:
            ws = await handshake
        except asyncio.CancelledError:
            if self._handshake is handshake:
                self._handshake = None
                self._set_disconnected()
                raise
            # Superseded by a later connect() or close().
            if asyncio.current_task().cancelling():
                raise
            return
        except BaseException:
            if self._handshake is not handshake:
                logger.debug("Superseded handshake to %s failed", url)
                return
            self._handshake = None
            self._set_disconnected()
            raise

        if self._handshake is not handshake:
            await self._close_quietly(ws)
            return

        self._handshake = None
        self._ws = ws
        self._last_sent_at = None
        self._fsm.established()
        logger.info("Connected to relay at %s", url)
        self._reader = asyncio.get_running_loop().create_task(self._read_loop(ws))

    async def close(self) -> None:
        ws, reader, handshake, sending = self._ws, self._reader, self._handshake, self._sending
        self._ws = None
        self._reader = None
        self._handshake = None
        self._sending = None

        for task in (handshake, sending):
            if task is not None:
                task.cancel()
        self._set_disconnected()

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                # Only swallow the reader's own cancellation, not one aimed at us.
                if asyncio.current_task().cancelling():
                    raise
        if ws is not None:
            await self._close_quietly(ws)

    def tick(self, now: float | None = None) -> bool:
        """Publish the local transform if the connection is open and the interval elapsed.

        Never blocks: the send is scheduled on the running loop and dropped if it fails.
        While the previous report is still being written nothing new is scheduled.

        Returns:
            True if a state report was scheduled.
        """
        ws = self._ws
        if ws is None or self.phase is not ConnectionPhase.open:
            return False
        if self._sending is not None and not self._sending.done():
            return False

        if now is None:
            now = time.monotonic()
        if self._last_sent_at is not None and now - self._last_sent_at < self.settings.min_publish_interval_s:
            return False

        transform = self._source.read_transform()
        report = StateReport(type="state", position=transform.position, rotation=transform.rotation)
        self._sending = asyncio.get_running_loop().create_task(self._send(ws, report.model_dump_json(by_alias=True)))
        self._last_sent_at = now
        return True

    async def _send(self, ws: Any, data: str) -> None:
        try:
            await ws.send(data)
        except ConnectionClosed:
            logger.debug("Dropped state report, connection closed")

    async def _close_quietly(self, ws: Any) -> None:
        try:
            await ws.close()
        except Exception as e:
            logger.debug("Error while closing relay connection: %r", e)

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                self.tracker.apply_raw(raw)
        except ConnectionClosed as e:
            logger.info("Relay connection closed: %s", e)
        except Exception:
            logger.exception("Relay reader failed")
        finally:
            # `close()` already handled it if this connection was replaced or closed locally.
            if ws is self._ws:
                self._ws = None
                self._reader = None
                self._set_disconnected()

    def _set_disconnected(self) -> None:
        if self.phase is ConnectionPhase.disconnected:
            return
        self._fsm.drop()
        self.tracker.clear()
        logger.info("Disconnected from relay")
