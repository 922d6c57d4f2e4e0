"""World model — the per-session game context.

The World owns every entity of one game: the seeded RNG, both teams,
the city and country tables, the template registry, the aircraft arena
and the list of active raids.  Engine services receive the World by
reference; nothing is stored in module globals, so several games can
run side by side in one process.

Aircraft live in an insertion-ordered arena (id → Aircraft).  They are
never removed, so iteration order doubles as the "standing order" used
for escort and defender selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from airwar.models.aircraft import Aircraft, AircraftStatus, AircraftType, Template
from airwar.models.city import City
from airwar.models.country import Country
from airwar.models.raid import Raid
from airwar.models.team import Team
from airwar.util.rng import DeterministicRNG


@dataclass
class World:
    """Complete mutable state of one game session.

    Attributes:
        seed: Seed the RNG was created from.
        rng: The single random stream every engine draw comes from.
        teams: Exactly two teams, in a fixed order.
        cities: City table in load order.
        countries: Country table in load order.
        templates: Template registry (defaults and custom designs).
        aircraft: Aircraft arena; destroyed aircraft stay in place.
        raids: Active raids in dispatch order.
        tick_count: Logical ticks executed so far.
        elapsed_seconds: Game time, derived from tick_count.
        last_dispatch: Airbase city id → elapsed seconds of its last dispatch.
        aircraft_counter / template_counter / raid_counter: ID sequences.
    """

    seed: int = 0
    rng: DeterministicRNG = field(default_factory=lambda: DeterministicRNG(0))
    teams: dict[str, Team] = field(default_factory=dict)
    cities: dict[str, City] = field(default_factory=dict)
    countries: dict[str, Country] = field(default_factory=dict)
    templates: dict[str, Template] = field(default_factory=dict)
    aircraft: dict[str, Aircraft] = field(default_factory=dict)
    raids: list[Raid] = field(default_factory=list)
    tick_count: int = 0
    elapsed_seconds: float = 0.0
    last_dispatch: dict[str, float] = field(default_factory=dict)
    aircraft_counter: int = 0
    template_counter: int = 0
    raid_counter: int = 0

    # -- Lookups ---------------------------------------------------------

    def get_city(self, city_id: str) -> Optional[City]:
        return self.cities.get(city_id)

    def get_template(self, template_id: str) -> Optional[Template]:
        return self.templates.get(template_id)

    def get_team(self, team_name: Optional[str]) -> Optional[Team]:
        if team_name is None:
            return None
        return self.teams.get(team_name)

    def get_aircraft(self, aircraft_id: str) -> Optional[Aircraft]:
        return self.aircraft.get(aircraft_id)

    def get_raid(self, raid_id: str) -> Optional[Raid]:
        for raid in self.raids:
            if raid.id == raid_id:
                return raid
        return None

    def get_team_cities(self, team_name: str) -> list[City]:
        """Cities owned by *team_name*, in acquisition order."""
        team = self.teams.get(team_name)
        if team is None:
            return []
        return [self.cities[cid] for cid in team.city_ids if cid in self.cities]

    def enemy_of(self, team_name: str) -> Optional[str]:
        """Name of the other team, or None if *team_name* is unknown."""
        if team_name not in self.teams:
            return None
        for name in self.teams:
            if name != team_name:
                return name
        return None

    # -- Aircraft queries (alive only) ------------------------------------

    def live_aircraft(self) -> Iterator[Aircraft]:
        return (a for a in self.aircraft.values() if a.hp > 0)

    def get_aircraft_at_city(self, city_id: str) -> list[Aircraft]:
        """Idle, alive aircraft on the ground at *city_id*, in standing order."""
        return [
            a for a in self.live_aircraft()
            if a.location_city_id == city_id and a.status == AircraftStatus.IDLE
        ]

    def get_fighters_at_city(self, city_id: str) -> list[Aircraft]:
        return [a for a in self.get_aircraft_at_city(city_id) if a.type == AircraftType.FIGHTER]

    def get_bombers_at_city(self, city_id: str) -> list[Aircraft]:
        return [a for a in self.get_aircraft_at_city(city_id) if a.type == AircraftType.BOMBER]

    def get_aircraft_assigned_to_city(self, city_id: str) -> list[Aircraft]:
        """Alive aircraft whose home base is *city_id*, including those in flight."""
        return [a for a in self.live_aircraft() if a.home_city_id == city_id]

    def get_bombers_assigned_to_city(self, city_id: str) -> list[Aircraft]:
        return [
            a for a in self.get_aircraft_assigned_to_city(city_id)
            if a.type == AircraftType.BOMBER
        ]

    # -- Country control ---------------------------------------------------

    def _country_owners(self, country_name: str) -> Optional[list[Optional[str]]]:
        country = self.countries.get(country_name)
        if country is None or not country.city_ids:
            return None
        return [self.cities[cid].owner for cid in country.city_ids if cid in self.cities]

    def get_country_controller(self, country_name: str) -> Optional[str]:
        """Team owning every city of the country, or None."""
        owners = self._country_owners(country_name)
        if not owners:
            return None
        first = owners[0]
        if first is None:
            return None
        return first if all(o == first for o in owners) else None

    def is_country_contested(self, country_name: str) -> bool:
        """True if at least two different teams own cities in the country."""
        owners = self._country_owners(country_name)
        if not owners:
            return False
        return len({o for o in owners if o is not None}) > 1
