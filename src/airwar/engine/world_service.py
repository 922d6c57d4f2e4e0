"""World service — setup and bookkeeping commands on the world model.

Responsibilities:
- Default template pair shared by both teams
- Country → team assignment and initial airbases
- Template registration (custom designs)
- Aircraft creation (engine-invoked)
- Rebasing idle aircraft between a team's airbases

All methods operate on a World passed in by the caller. No I/O.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from airwar.models.aircraft import Aircraft, AircraftStatus, AircraftType, Template
from airwar.models.city import Airbase
from airwar.models.team import TemplateProduction
from airwar.util.constants import AIRCRAFT_ID_PREFIX, TEMPLATE_ID_PREFIX

if TYPE_CHECKING:
    from airwar.loaders.game_config_loader import GameConfig, TemplateSpec
    from airwar.models.world import World

log = logging.getLogger(__name__)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class WorldService:
    """Service for world setup and entity creation.

    Args:
        game_config: Stat bounds, airbase cost and default templates.
    """

    def __init__(self, game_config: GameConfig) -> None:
        self._cfg = game_config

    # -- Templates -------------------------------------------------------

    def create_default_templates(self, world: World) -> list[Template]:
        """Register the default fighter and bomber and give them to every team."""
        created = []
        for spec in (self._cfg.default_fighter, self._cfg.default_bomber):
            template = self._register_template(world, spec_to_dict(spec), is_default=True)
            created.append(template)
            for team in world.teams.values():
                team.template_ids.append(template.id)
                team.template_production[template.id] = TemplateProduction(
                    allocation=self._cfg.default_allocation, progress=0.0,
                )
        return created

    def create_template(self, world: World, team_name: str, specs: Mapping[str, Any]) -> Optional[Template]:
        """Register a custom template for one team (allocation starts at 0)."""
        team = world.get_team(team_name)
        if team is None:
            log.debug("create_template: unknown team %r", team_name)
            return None
        try:
            template = self._register_template(world, specs, is_default=False)
        except (KeyError, ValueError, TypeError) as exc:
            log.debug("create_template: invalid specs %r (%s)", specs, exc)
            return None
        team.template_ids.append(template.id)
        team.template_production[template.id] = TemplateProduction()
        return template

    def _register_template(self, world: World, specs: Mapping[str, Any], is_default: bool) -> Template:
        cfg = self._cfg
        ttype = AircraftType(specs["type"])
        cost = float(specs["cost_m"])
        if cost <= 0:
            raise ValueError("cost_m must be positive")
        template = Template(
            id=f"{TEMPLATE_ID_PREFIX}{world.template_counter}",
            type=ttype,
            cost_m=cost,
            range_points=int(_clamp(int(specs["range_points"]), cfg.range_min, cfg.range_max)),
            offense=int(_clamp(int(specs["offense"]), cfg.offense_min, cfg.offense_max)),
            defense=int(_clamp(int(specs["defense"]), cfg.defense_min, cfg.defense_max)),
            name=specs.get("name") or f"Custom {ttype.value}",
            is_default=is_default,
        )
        world.template_counter += 1
        world.templates[template.id] = template
        return template

    # -- Countries -------------------------------------------------------

    def assign_countries(self, world: World, allocation: Mapping[str, Optional[str]]) -> None:
        """Hand each country's cities to a team (or leave them neutral).

        Team city lists are rebuilt from scratch.  Each team's most
        populous city receives a complete airbase and becomes its
        delivery point.
        """
        for team in world.teams.values():
            team.city_ids = []
            team.delivery_point_city_id = None

        for city in world.cities.values():
            team_name = allocation.get(city.country)
            if team_name is not None and team_name in world.teams:
                city.owner = team_name
                world.teams[team_name].city_ids.append(city.id)
            else:
                city.owner = None

        for team in world.teams.values():
            cities = world.get_team_cities(team.name)
            if not cities:
                continue
            largest = cities[0]
            for city in cities[1:]:
                if city.population > largest.population:
                    largest = city
            largest.airbase = Airbase(
                owner=team.name,
                build_progress_m=self._cfg.airbase_cost_m,
                complete=True,
                delivery_point=True,
                escort_allocation=self._cfg.default_escort_allocation,
            )
            largest.has_airbase = True
            team.delivery_point_city_id = largest.id
            log.info("Team %s starts at %s (%d cities)", team.name, largest.name, len(cities))

    # -- Aircraft --------------------------------------------------------

    def create_aircraft(self, world: World, template_id: str, city_id: str, team_name: str) -> Optional[Aircraft]:
        """Instantiate one aircraft of *template_id* idle at *city_id*."""
        template = world.get_template(template_id)
        team = world.get_team(team_name)
        if template is None or team is None:
            log.warning("create_aircraft: bad reference template=%s team=%s", template_id, team_name)
            return None
        aircraft = Aircraft(
            id=f"{AIRCRAFT_ID_PREFIX}{world.aircraft_counter}",
            type=template.type,
            template_id=template_id,
            home_city_id=city_id,
            location_city_id=city_id,
            owner=team_name,
        )
        world.aircraft_counter += 1
        world.aircraft[aircraft.id] = aircraft
        team.aircraft_ids.append(aircraft.id)
        return aircraft

    def _is_own_airbase(self, world: World, city_id: str, team_name: str) -> bool:
        city = world.get_city(city_id)
        return city is not None and city.owner == team_name and city.has_complete_airbase

    def rebase_aircraft(self, world: World, aircraft_id: str, city_id: str, team_name: str) -> bool:
        """Move one idle aircraft to another of the team's airbases."""
        aircraft = world.get_aircraft(aircraft_id)
        if aircraft is None or not aircraft.alive or aircraft.owner != team_name:
            return False
        if aircraft.status != AircraftStatus.IDLE:
            return False
        if not self._is_own_airbase(world, city_id, team_name):
            return False
        aircraft.home_city_id = city_id
        aircraft.location_city_id = city_id
        return True

    def rebase_all_aircraft(self, world: World, from_city_id: str, to_city_id: str, team_name: str) -> int:
        """Move every idle aircraft of the team from one airbase to another.

        Returns the number of aircraft moved.
        """
        if from_city_id == to_city_id or not self._is_own_airbase(world, to_city_id, team_name):
            return 0
        moved = 0
        for aircraft in world.get_aircraft_at_city(from_city_id):
            if aircraft.owner != team_name:
                continue
            aircraft.home_city_id = to_city_id
            aircraft.location_city_id = to_city_id
            moved += 1
        if moved:
            log.info("Team %s rebased %d aircraft %s → %s", team_name, moved, from_city_id, to_city_id)
        return moved


def spec_to_dict(spec: TemplateSpec) -> dict[str, Any]:
    """Template specs as the plain mapping ``create_template`` accepts."""
    return {
        "type": spec.type,
        "cost_m": spec.cost_m,
        "range_points": spec.range_points,
        "offense": spec.offense,
        "defense": spec.defense,
        "name": spec.name,
    }
