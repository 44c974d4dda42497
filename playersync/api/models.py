from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

Vec3 = tuple[float, float, float]

SPAWN_POSITION: Vec3 = (0.0, 1.6, 0.5)
SPAWN_ROTATION: Vec3 = (0.0, 0.0, 0.0)


class WireModel(BaseModel):
    # Wire names are short (`p`/`r`); Python code uses the long field names.
    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Transform(WireModel):
    """Position plus Euler rotation (radians)."""

    position: Vec3 = Field(default=SPAWN_POSITION, alias="p")
    rotation: Vec3 = Field(default=SPAWN_ROTATION, alias="r")


class PlayerInfo(WireModel):
    id: str
    name: str
    color: int


class PlayerSnapshot(PlayerInfo):
    state: Transform = Field(default_factory=Transform)


# client -> server


class StateReport(WireModel):
    type: Literal["state"]
    position: Vec3 = Field(alias="p")
    rotation: Vec3 = Field(alias="r")

    def transform(self) -> Transform:
        return Transform(position=self.position, rotation=self.rotation)


# server -> client


class WelcomeMessage(WireModel):
    type: Literal["welcome"] = "welcome"
    self_info: PlayerInfo = Field(alias="self")
    players: list[PlayerSnapshot] = Field(default_factory=list)


class JoinMessage(WireModel):
    type: Literal["join"] = "join"
    player: PlayerInfo


class StateMessage(WireModel):
    type: Literal["state"] = "state"
    id: str
    state: Transform


class LeaveMessage(WireModel):
    type: Literal["leave"] = "leave"
    id: str


ServerEvent = Annotated[
    Union[WelcomeMessage, JoinMessage, StateMessage, LeaveMessage],
    Field(discriminator="type"),
]
server_event_adapter: TypeAdapter[ServerEvent] = TypeAdapter(ServerEvent)


class RosterResponse(BaseModel):
    players: list[PlayerSnapshot]
