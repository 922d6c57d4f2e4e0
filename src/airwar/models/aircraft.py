"""Aircraft models — stat templates and the aircraft instances built from them.

Aircraft are never removed from the world's aircraft arena.  A destroyed
aircraft keeps its record with ``hp == 0`` and ``status == DESTROYED``;
every query filters on ``hp > 0``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AircraftType(Enum):
    """Role of an aircraft."""

    FIGHTER = "fighter"
    BOMBER = "bomber"


class AircraftStatus(Enum):
    """Lifecycle of an aircraft instance."""

    IDLE = "idle"
    ON_RAID = "on_raid"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class Template:
    """Immutable stat blueprint shared by reference (via id) by all its aircraft.

    Attributes:
        id: Unique template ID (``tmpl-N``).
        type: Fighter or bomber.
        cost_m: Procurement cost in millions.
        range_points: Range stat; km = points * range_km_per_point.
        offense: Attack strength.
        defense: Defensive strength.
        name: Display name.
        is_default: True for the two templates every team starts with.
    """

    id: str
    type: AircraftType
    cost_m: float
    range_points: int
    offense: int
    defense: int
    name: str = ""
    is_default: bool = False


@dataclass
class Aircraft:
    """One aircraft.

    Attributes:
        id: Unique aircraft ID (``plane-N``), monotonically assigned.
        type: Copied from the template at creation.
        template_id: Template the stats are read from.
        home_city_id: Assigned airbase; kept while in flight.
        location_city_id: Ground location; only meaningful while idle.
        status: Idle, on a raid, or destroyed.
        hp: 1 = alive, 0 = destroyed.
        owner: Team name.
    """

    id: str
    type: AircraftType
    template_id: str
    home_city_id: str
    location_city_id: str
    owner: str
    status: AircraftStatus = AircraftStatus.IDLE
    hp: int = 1

    @property
    def alive(self) -> bool:
        return self.hp > 0

    def destroy(self) -> None:
        """Mark the aircraft as destroyed (soft delete)."""
        self.hp = 0
        self.status = AircraftStatus.DESTROYED
