"""City model — a production site and potential airbase on the world map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class BomberOrders:
    """Standing raid orders of an airbase."""

    target_city_id: str
    distance: float


@dataclass
class Airbase:
    """An airbase under construction or in service.

    Attributes:
        owner: Team that built it.
        build_progress_m: Funds invested so far, in millions.
        complete: True once build_progress_m reached the airbase cost.
        delivery_point: True if newly built aircraft of the owner spawn here.
        orders: Standing bomber orders, or None.
        escort_allocation: Share (0..1) of idle fighters sent as raid escorts;
            the rest stay for local defence.
    """

    owner: str
    build_progress_m: float = 0.0
    complete: bool = False
    delivery_point: bool = False
    orders: Optional[BomberOrders] = None
    escort_allocation: float = 0.5


@dataclass
class City:
    """A city on the world map.

    Attributes:
        id: Unique city ID.
        name: Display name.
        lat: Latitude in degrees.
        lon: Longitude in degrees.
        population: Inhabitants; drives production.
        country: Name of the country the city belongs to.
        is_placeholder: Generated filler city without population.
        owner: Owning team name, or None for neutral.
        hp: Integrity in [hp_min, hp_max]; reaching hp_min means capture.
        has_airbase: True only while a *complete* airbase stands here.
        airbase: Airbase record (also set while under construction).
    """

    id: str
    name: str
    lat: float
    lon: float
    population: int = 0
    country: str = ""
    is_placeholder: bool = False
    owner: Optional[str] = None
    hp: float = 100.0
    has_airbase: bool = False
    airbase: Optional[Airbase] = None

    # -- Helpers ---------------------------------------------------------

    @property
    def has_complete_airbase(self) -> bool:
        return self.has_airbase and self.airbase is not None and self.airbase.complete

    @property
    def is_building_airbase(self) -> bool:
        return self.airbase is not None and not self.airbase.complete

    def destroy_airbase(self) -> None:
        self.has_airbase = False
        self.airbase = None
