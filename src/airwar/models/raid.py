"""Raid model — state machine of one bombing sortie.

    ENROUTE → ENGAGING → ATTACKING → RETURNING → COMPLETED

ENGAGING is entered once, at the midpoint interception; a raid keeps
flying while ENGAGING.  RETURNING only lasts while survivors are sent
home in the arrival tick.  COMPLETED raids are purged from the world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RaidStatus(Enum):
    """Phases of a raid."""

    ENROUTE = "enroute"
    ENGAGING = "engaging"
    ATTACKING = "attacking"
    RETURNING = "returning"
    COMPLETED = "completed"


@dataclass
class Raid:
    """State of an in-flight raid.

    Attributes:
        id: Unique raid ID (``raid-N``).
        from_city_id: Launching airbase; survivors return here.
        to_city_id: Target city.
        team: Attacking team name.
        bomber_ids: Bombers in dispatch order.
        escort_ids: Escort fighters in dispatch order.
        distance: Great-circle distance in km.
        speed: km per game minute.
        progress: 0 at launch, 1 over the target.
        start_time: Elapsed game seconds at dispatch.
        status: Current phase.
        has_engaged_defenders: Midpoint interception already resolved.
    """

    id: str
    from_city_id: str
    to_city_id: str
    team: str
    bomber_ids: list[str] = field(default_factory=list)
    escort_ids: list[str] = field(default_factory=list)
    distance: float = 0.0
    speed: float = 500.0
    progress: float = 0.0
    start_time: float = 0.0
    status: RaidStatus = RaidStatus.ENROUTE
    has_engaged_defenders: bool = False

    @property
    def duration_minutes(self) -> float:
        """Flight time to the target in game minutes."""
        return self.distance / self.speed if self.speed > 0 else 0.0

    @property
    def is_airborne(self) -> bool:
        return self.status in (RaidStatus.ENROUTE, RaidStatus.ENGAGING)

    @property
    def aircraft_ids(self) -> list[str]:
        return [*self.bomber_ids, *self.escort_ids]
