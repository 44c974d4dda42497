from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol

from playersync.api.models import (
    JoinMessage,
    LeaveMessage,
    PlayerInfo,
    ServerEvent,
    StateMessage,
    Transform,
    WelcomeMessage,
    server_event_adapter,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RemoteAvatar:
    """Local stand-in for another participant."""

    id: str
    name: str
    color: int
    transform: Transform
    # Whatever the scene returned from `add_avatar` (mesh, node, label...).
    handle: Any = None


class Scene(Protocol):
    def add_avatar(self, avatar: RemoteAvatar) -> Any: ...

    def remove_avatar(self, handle: Any) -> None: ...


class TransformSource(Protocol):
    def read_transform(self) -> Transform: ...


class AvatarTracker:
    """Reconciles relay events into a map of participant id -> RemoteAvatar.

    Every operation is idempotent against duplicate or stale events: a second
    `join` for a tracked id, a `state` for an unknown id and a `leave` for an
    unknown id are all no-ops.
    """

    def __init__(self, scene: Scene) -> None:
        self._scene = scene
        self._avatars: dict[str, RemoteAvatar] = {}
        self.self_info: PlayerInfo | None = None

    @property
    def avatars(self) -> Mapping[str, RemoteAvatar]:
        return MappingProxyType(self._avatars)

    @property
    def player_count(self) -> int:
        """Participants in the room as seen locally (remote avatars plus ourselves once welcomed)."""
        return len(self._avatars) + (1 if self.self_info is not None else 0)

    def apply_raw(self, raw: str | bytes) -> bool:
        try:
            event = server_event_adapter.validate_json(raw)
        except ValueError:
            logger.debug("Discarding malformed relay event")
            return False
        self.apply(event)
        return True

    def apply(self, event: ServerEvent) -> None:
        if isinstance(event, WelcomeMessage):
            self.self_info = event.self_info
            for p in event.players:
                self._track(p, p.state)
        elif isinstance(event, JoinMessage):
            self._track(event.player, Transform())
        elif isinstance(event, StateMessage):
            avatar = self._avatars.get(event.id)
            if avatar is not None:
                avatar.transform = event.state
        elif isinstance(event, LeaveMessage):
            avatar = self._avatars.pop(event.id, None)
            if avatar is not None:
                self._scene.remove_avatar(avatar.handle)
                logger.info("Participant %s (%s) left", avatar.id, avatar.name)

    def clear(self) -> None:
        """Destroy every avatar; used when the local connection goes away."""
        avatars = list(self._avatars.values())
        self._avatars.clear()
        self.self_info = None
        for avatar in avatars:
            self._scene.remove_avatar(avatar.handle)

    def _track(self, info: PlayerInfo, transform: Transform) -> None:
        if info.id in self._avatars:
            return
        if self.self_info is not None and info.id == self.self_info.id:
            return
        avatar = RemoteAvatar(id=info.id, name=info.name, color=info.color, transform=transform)
        avatar.handle = self._scene.add_avatar(avatar)
        self._avatars[avatar.id] = avatar
        logger.info("Participant %s (%s) joined", avatar.id, avatar.name)
