from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from playersync.api.models import PlayerInfo, PlayerSnapshot, Transform
from playersync.identity import assign_display_identity

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Participant:
    """Authoritative record for one open connection."""

    id: str
    name: str
    color: int
    connection: WebSocket
    state: Transform = field(default_factory=Transform)
    # Serializes writes to `connection`; held during the welcome so nothing overtakes it.
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    # At most one `state` update queued or in flight per recipient; newer ones are dropped.
    _state_in_flight: bool = field(default=False, init=False, repr=False)

    def info(self) -> PlayerInfo:
        return PlayerInfo(id=self.id, name=self.name, color=self.color)

    def snapshot(self) -> PlayerSnapshot:
        return PlayerSnapshot(id=self.id, name=self.name, color=self.color, state=self.state)

    @property
    def is_open(self) -> bool:
        ws = self.connection
        return (
            ws.client_state == WebSocketState.CONNECTED
            and ws.application_state == WebSocketState.CONNECTED
        )

    async def send_locked(self, payload: dict[str, Any]) -> None:
        """Write one message; caller must already hold `send_lock`."""
        await self.connection.send_json(payload)

    async def send(self, payload: dict[str, Any], *, timeout: float) -> bool:
        """Send a message to this participant.

        Returns:
            True if sent, False if the connection is closed, the send failed or timed out.
        """
        if not self.is_open:
            return False

        async def _serialized() -> None:
            async with self.send_lock:
                await self.send_locked(payload)

        try:
            await asyncio.wait_for(_serialized(), timeout)
            return True
        except Exception as e:
            logger.debug("Failed to send to participant %s: %r", self.id, e)
            return False

    def send_state_nowait(self, payload: dict[str, Any], *, timeout: float) -> asyncio.Task[bool] | None:
        """Schedule a lossy state update without waiting for it.

        Returns None (update dropped) while the previous one is still pending, so a
        stuck connection costs the sender nothing and never accumulates a backlog.
        """
        if self._state_in_flight or not self.is_open:
            return None
        self._state_in_flight = True
        task = asyncio.get_running_loop().create_task(self.send(payload, timeout=timeout))
        task.add_done_callback(self._state_sent)
        return task

    def _state_sent(self, _task: asyncio.Task[bool]) -> None:
        self._state_in_flight = False


class ParticipantRegistry:
    """Participants keyed by id.

    Not synchronized itself; the relay owning it serializes all access.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, Participant] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._by_id

    def admit(self, connection: WebSocket) -> Participant:
        identity = assign_display_identity({p.name for p in self._by_id.values()})
        participant = Participant(
            id=str(next(self._ids)),
            name=identity.name,
            color=identity.color,
            connection=connection,
        )
        self._by_id[participant.id] = participant
        return participant

    def evict(self, participant_id: str) -> Participant | None:
        return self._by_id.pop(participant_id, None)

    def update_state(self, participant_id: str, state: Transform) -> bool:
        participant = self._by_id.get(participant_id)
        if participant is None:
            return False
        participant.state = state
        return True

    def snapshot(self, *, exclude_id: str | None = None) -> list[PlayerSnapshot]:
        return [p.snapshot() for pid, p in self._by_id.items() if pid != exclude_id]

    def recipients(self, *, exclude_id: str | None = None) -> list[Participant]:
        return [p for pid, p in self._by_id.items() if pid != exclude_id]
