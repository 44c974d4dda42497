"""Client side of the relay: connection lifecycle, rate-limited publishing and avatar reconciliation.

Kept free of any rendering engine; the scene and the local transform are supplied by the caller.
"""

from playersync.client.avatars import AvatarTracker, RemoteAvatar, Scene, TransformSource
from playersync.client.client import SyncClient
from playersync.client.fsm import ConnectionFSM, ConnectionPhase

__all__ = [
    "AvatarTracker",
    "ConnectionFSM",
    "ConnectionPhase",
    "RemoteAvatar",
    "Scene",
    "SyncClient",
    "TransformSource",
]
