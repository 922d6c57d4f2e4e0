"""Pydantic models describing a persisted world snapshot.

Used to validate a snapshot before any of it is applied to a world.
Shape and types are checked here; cross references (cities, templates,
aircraft) are checked by the loader.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


AircraftTypeName = Literal["fighter", "bomber"]
AircraftStatusName = Literal["idle", "on_raid", "destroyed"]
RaidStatusName = Literal["enroute", "engaging", "attacking", "returning", "completed"]


# ===================================================================
# Meta
# ===================================================================


class MetaModel(BaseModel):
    version: int
    saved_at: str = ""
    saved_at_unix: float = 0.0


class CountersModel(BaseModel):
    aircraft: int = Field(ge=0)
    template: int = Field(ge=0)
    raid: int = Field(ge=0)


# ===================================================================
# Teams
# ===================================================================


class TemplateProductionModel(BaseModel):
    allocation: float = Field(ge=0, le=100)
    progress: float = Field(ge=0)


class TeamModel(BaseModel):
    name: str
    color: str = "#888888"
    is_bot: bool = False
    production_accumulated: float
    production_per_minute: float = 0.0
    delivery_point_city_id: Optional[str] = None
    city_ids: List[str] = Field(default_factory=list)
    aircraft_ids: List[str] = Field(default_factory=list)
    template_ids: List[str] = Field(default_factory=list)
    template_production: Dict[str, TemplateProductionModel] = Field(default_factory=dict)


# ===================================================================
# Cities
# ===================================================================


class OrdersModel(BaseModel):
    target_city_id: str
    distance: float = Field(ge=0)


class AirbaseModel(BaseModel):
    owner: str
    build_progress_m: float = Field(ge=0)
    complete: bool
    delivery_point: bool = False
    orders: Optional[OrdersModel] = None
    escort_allocation: float = Field(ge=0, le=1)


class CityStateModel(BaseModel):
    id: str
    owner: Optional[str] = None
    hp: float = Field(ge=-100, le=100)
    has_airbase: bool = False
    airbase: Optional[AirbaseModel] = None


# ===================================================================
# Aircraft, templates, raids
# ===================================================================


class TemplateModel(BaseModel):
    id: str
    type: AircraftTypeName
    cost_m: float = Field(gt=0)
    range_points: int
    offense: int
    defense: int
    name: str = ""
    is_default: bool = False


class AircraftModel(BaseModel):
    id: str
    type: AircraftTypeName
    template_id: str
    home_city_id: str
    location_city_id: str
    status: AircraftStatusName
    hp: int = Field(ge=0, le=1)
    owner: str


class RaidModel(BaseModel):
    id: str
    from_city_id: str
    to_city_id: str
    team: str
    bomber_ids: List[str]
    escort_ids: List[str] = Field(default_factory=list)
    distance: float = Field(ge=0)
    speed: float = Field(gt=0)
    progress: float = Field(ge=0, le=1)
    start_time: float = 0.0
    status: RaidStatusName
    has_engaged_defenders: bool = False


# ===================================================================
# Snapshot
# ===================================================================


class StateSnapshot(BaseModel):
    meta: MetaModel
    seed: int
    rng_state: int = Field(ge=0, le=0xFFFFFFFF)
    tick_count: int = Field(ge=0)
    elapsed_seconds: float = Field(ge=0)
    speed_multiplier: float = Field(default=1.0, gt=0)
    counters: CountersModel
    teams: List[TeamModel]
    cities: List[CityStateModel]
    aircraft: List[AircraftModel] = Field(default_factory=list)
    templates: List[TemplateModel] = Field(default_factory=list)
    raids: List[RaidModel] = Field(default_factory=list)
    last_dispatch: Dict[str, float] = Field(default_factory=dict)
