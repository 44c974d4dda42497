from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class ConnectionPhase(StrEnum):
    disconnected = "disconnected"
    connecting = "connecting"
    open = "open"


class ConnectionFSM(StateMachine):
    """Client connection lifecycle.

    disconnected -> connecting -> open -> disconnected, plus connecting -> disconnected
    when the handshake fails. The FSM only guards transitions; `SyncClient` runs the
    side effects (teardown) around them.
    """

    disconnected = State(
        ConnectionPhase.disconnected.value,
        value=ConnectionPhase.disconnected.value,
        initial=True,
    )
    connecting = State(ConnectionPhase.connecting.value, value=ConnectionPhase.connecting.value)
    open = State(ConnectionPhase.open.value, value=ConnectionPhase.open.value)

    begin = disconnected.to(connecting)
    established = connecting.to(open)
    drop = connecting.to(disconnected) | open.to(disconnected)

    @property
    def phase(self) -> ConnectionPhase:
        return ConnectionPhase(str(self.current_state.value))
