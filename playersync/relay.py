from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from playersync.api.models import (
    JoinMessage,
    LeaveMessage,
    PlayerSnapshot,
    StateMessage,
    StateReport,
    WelcomeMessage,
    WireModel,
)
from playersync.registry import Participant, ParticipantRegistry

logger = logging.getLogger(__name__)


class Relay:
    """Presence relay for one implicit room.

    Contract:
      - `admit` a websocket -> the participant gets `welcome`, everybody else `join`.
      - inbound `state` reports are stored and fanned out to all other participants.
      - `disconnect` evicts the participant and announces `leave` (idempotent).

    Registry mutations and recipient snapshots happen under one asyncio lock;
    sends happen outside it, bounded by `send_timeout_s` per recipient. State
    updates are fire-and-forget and lossy per recipient, so the sender's receive
    loop never waits on another peer.
    """

    def __init__(self, *, send_timeout_s: float = 1.0, registry: ParticipantRegistry | None = None) -> None:
        self.registry = registry if registry is not None else ParticipantRegistry()
        self.send_timeout_s = send_timeout_s
        self._lock = asyncio.Lock()
        self._state_sends: set[asyncio.Task[bool]] = set()

    @property
    def participant_count(self) -> int:
        return len(self.registry)

    async def roster(self) -> list[PlayerSnapshot]:
        async with self._lock:
            return self.registry.snapshot()

    async def admit(self, websocket: WebSocket) -> Participant:
        await websocket.accept()

        async with self._lock:
            others = self.registry.snapshot()
            participant = self.registry.admit(websocket)
            # Uncontended on a fresh lock, so this does not yield while we hold `_lock`.
            await participant.send_lock.acquire()

        logger.info(
            "Participant %s (%s) admitted, %d connected",
            participant.id,
            participant.name,
            self.participant_count,
        )

        try:
            welcome = WelcomeMessage(self_info=participant.info(), players=others)
            try:
                await asyncio.wait_for(participant.send_locked(welcome.to_wire()), self.send_timeout_s)
            except Exception as e:
                logger.warning("Failed to send welcome to participant %s: %r", participant.id, e)
            finally:
                participant.send_lock.release()

            await self.broadcast(JoinMessage(player=participant.info()), exclude=participant)
        except BaseException:
            # Cancelled before the caller could own the participant: undo the admission.
            await asyncio.shield(self.disconnect(participant))
            raise
        return participant

    async def handle_message(self, participant: Participant, raw: str | bytes) -> bool:
        """Apply one inbound message from `participant`.

        Returns True if it was a valid state report that got relayed.
        Malformed input is dropped without telling the sender.
        """
        try:
            report = StateReport.model_validate_json(raw)
        except ValueError:
            # pydantic.ValidationError is a ValueError
            logger.debug("Discarding malformed message from participant %s", participant.id)
            return False

        state = report.transform()
        async with self._lock:
            if not self.registry.update_state(participant.id, state):
                return False
            recipients = self.registry.recipients(exclude_id=participant.id)

        payload = StateMessage(id=participant.id, state=state).to_wire()
        for recipient in recipients:
            task = recipient.send_state_nowait(payload, timeout=self.send_timeout_s)
            if task is not None:
                self._state_sends.add(task)
                task.add_done_callback(self._state_sends.discard)
        return True

    async def disconnect(self, participant: Participant) -> None:
        async with self._lock:
            evicted = self.registry.evict(participant.id)
            if evicted is None:
                return
            recipients = self.registry.recipients()

        logger.info(
            "Participant %s (%s) left, %d connected",
            participant.id,
            participant.name,
            self.participant_count,
        )
        await self._deliver(recipients, LeaveMessage(id=participant.id))

    async def broadcast(self, message: WireModel, *, exclude: Participant | None = None) -> int:
        """Send `message` to every participant except `exclude`.

        Returns:
            Number of participants the message was delivered to.
        """
        async with self._lock:
            recipients = self.registry.recipients(exclude_id=exclude.id if exclude else None)
        return await self._deliver(recipients, message)

    async def drain(self) -> None:
        """Wait for state updates already handed to recipients."""
        while self._state_sends:
            await asyncio.gather(*self._state_sends, return_exceptions=True)

    async def _deliver(self, recipients: list[Participant], message: WireModel) -> int:
        if not recipients:
            return 0
        payload = message.to_wire()
        results = await asyncio.gather(*(p.send(payload, timeout=self.send_timeout_s) for p in recipients))
        return sum(1 for ok in results if ok)

    async def handle_connection(self, websocket: WebSocket) -> None:
        """Run one websocket from handshake to teardown."""
        participant = await self.admit(websocket)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                await self.handle_message(participant, raw)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error("WebSocket error for participant %s: %r", participant.id, e)
        finally:
            await self.disconnect(participant)
