from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DisplayIdentity:
    name: str
    color: int


# The first two seats always get these; everybody else is numbered.
RESERVED_IDENTITIES: tuple[DisplayIdentity, ...] = (
    DisplayIdentity(name="spieler rot", color=0xFF3333),
    DisplayIdentity(name="spieler blau", color=0x3333FF),
)
FALLBACK_COLOR = 0xCCCCCC


def assign_display_identity(names_in_use: Collection[str]) -> DisplayIdentity:
    """Pick the display identity for the next participant.

    Pure function of the names currently held by registered participants:
    a free reserved identity wins; otherwise `spieler N`, where N starts at
    the registry size + 1 and is bumped past any name still taken.
    """

    for identity in RESERVED_IDENTITIES:
        if identity.name not in names_in_use:
            return identity

    n = len(names_in_use) + 1
    while f"spieler {n}" in names_in_use:
        n += 1
    return DisplayIdentity(name=f"spieler {n}", color=FALLBACK_COLOR)
