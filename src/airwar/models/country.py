"""Country model — a named group of cities.

A country has no owner of its own; control is derived from the owners
of its member cities (see ``World.get_country_controller``).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Country:
    """A country on the world map.

    Attributes:
        name: Unique country name.
        outline: ``[[lon, lat], ...]`` vertices, used only to place
            placeholder cities.
        city_ids: Member cities (real and placeholder).
    """

    name: str
    outline: list[list[float]] = field(default_factory=list)
    city_ids: list[str] = field(default_factory=list)
