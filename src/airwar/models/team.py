"""Team model — one side of the conflict.

A team owns cities and aircraft by membership lists of IDs.  The
``owner`` field on each city/aircraft must always agree with them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TemplateProduction:
    """Procurement queue entry for one template.

    Attributes:
        allocation: Weight (0..100) of production directed to this template.
        progress: Percent towards the next aircraft; may briefly exceed
            100 within a tick before spawning.
    """

    allocation: float = 0.0
    progress: float = 0.0


@dataclass
class Team:
    """Complete state of one team.

    Attributes:
        name: Team name, also used as the owner key on cities/aircraft.
        color: Display colour.
        is_bot: True if an AI policy drives this team.
        city_ids: Owned cities in acquisition order.
        aircraft_ids: Every aircraft ever built by this team (dead ones included).
        template_ids: Templates this team may produce.
        production_accumulated: Banked capital in millions.
        production_per_minute: Current production rate (recomputed each tick).
        delivery_point_city_id: City whose airbase receives new aircraft.
        template_production: Per-template allocation and progress.
    """

    name: str
    color: str = "#888888"
    is_bot: bool = False
    city_ids: list[str] = field(default_factory=list)
    aircraft_ids: list[str] = field(default_factory=list)
    template_ids: list[str] = field(default_factory=list)
    production_accumulated: float = 0.0
    production_per_minute: float = 0.0
    delivery_point_city_id: Optional[str] = None
    template_production: dict[str, TemplateProduction] = field(default_factory=dict)

    # -- Helpers ---------------------------------------------------------

    def total_allocation(self) -> float:
        return sum(tp.allocation for tp in self.template_production.values())

    def remove_city(self, city_id: str) -> None:
        self.city_ids = [cid for cid in self.city_ids if cid != city_id]

    def add_city(self, city_id: str) -> None:
        if city_id not in self.city_ids:
            self.city_ids.append(city_id)
