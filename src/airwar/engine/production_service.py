"""Production service — the wartime economy.

Responsibilities:
- City and team production rates
- Per-tick capital accumulation
- Airbase construction funding (one build per team at a time)
- Allocation-weighted aircraft procurement at the delivery point
- Player/bot commands: buy, design, build, orders, allocations

Commands validate their preconditions and return False instead of
raising; callers must check the result.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any, Mapping, Optional

from airwar.models.city import Airbase, BomberOrders
from airwar.util.events import AircraftBuilt, AirbaseCompleted, TemplateDesigned
from airwar.util.geo import great_circle_distance

if TYPE_CHECKING:
    from airwar.engine.world_service import WorldService
    from airwar.loaders.game_config_loader import GameConfig
    from airwar.models.city import City
    from airwar.models.team import Team
    from airwar.models.world import World
    from airwar.util.events import EventBus

log = logging.getLogger(__name__)


class ProductionService:
    """Service for production, procurement and economy commands.

    Args:
        event_bus: Receives AircraftBuilt / AirbaseCompleted / TemplateDesigned.
        game_config: Economy constants.
        world_service: Creates aircraft and templates.
    """

    def __init__(self, event_bus: EventBus, game_config: GameConfig,
                 world_service: WorldService) -> None:
        self._events = event_bus
        self._cfg = game_config
        self._world_service = world_service
        # Production of the current tick per team, consumed by airbase builds
        self._produced_this_tick: dict[str, float] = {}

    # -- Rates -----------------------------------------------------------

    def city_production(self, world: World, city: City, team_name: str) -> float:
        """Production in M per minute that *city* yields for *team_name*.

        The delivery point always yields full value.  Other cities scale
        with hp / 100, floored at zero while being captured.
        """
        if city.owner != team_name:
            return 0.0
        base = city.population / self._cfg.pop_scale
        team = world.get_team(team_name)
        if team is not None and team.delivery_point_city_id == city.id:
            return base
        return max(0.0, base * (city.hp / 100.0))

    def team_production(self, world: World, team_name: str) -> float:
        """Sum of city production over the team's cities."""
        return sum(self.city_production(world, city, team_name)
                   for city in world.get_team_cities(team_name))

    # -- Tick ------------------------------------------------------------

    def update_production(self, world: World, dt_ms: float) -> None:
        """Accumulate this tick's production and run procurement queues."""
        dt_min = dt_ms / 60000.0
        for team in world.teams.values():
            team.production_per_minute = self.team_production(world, team.name)
            produced = team.production_per_minute * dt_min
            self._produced_this_tick[team.name] = produced
            team.production_accumulated += produced

            # An airbase under construction takes this tick's production
            if self._find_airbase_build(world, team) is not None:
                continue
            self._process_allocation(world, team, produced)

    def _process_allocation(self, world: World, team: Team, produced: float) -> None:
        total = team.total_allocation()
        if total <= 0 or produced <= 0:
            return

        for template_id, tp in team.template_production.items():
            template = world.get_template(template_id)
            if template is None or tp.allocation <= 0 or template.cost_m <= 0:
                continue
            share = produced * (tp.allocation / total)
            team.production_accumulated = max(0.0, team.production_accumulated - share)
            tp.progress += share / template.cost_m * 100.0

            while tp.progress >= 100.0:
                tp.progress -= 100.0
                dp = self._delivery_city(world, team)
                if dp is None:
                    continue
                aircraft = self._world_service.create_aircraft(world, template_id, dp.id, team.name)
                if aircraft is not None:
                    log.debug("Team %s built %s (%s) at %s",
                              team.name, aircraft.id, template.name, dp.name)
                    self._events.emit(AircraftBuilt(
                        team=team.name, aircraft_id=aircraft.id,
                        template_id=template_id, city_id=dp.id,
                    ))

    def process_airbase_builds(self, world: World, dt_ms: float) -> None:
        """Fund the first incomplete airbase of each team."""
        dt_min = dt_ms / 60000.0
        for team in world.teams.values():
            city = self._find_airbase_build(world, team)
            if city is None:
                continue
            airbase = city.airbase
            produced = self._produced_this_tick.get(team.name, team.production_per_minute * dt_min)
            needed = self._cfg.airbase_cost_m - airbase.build_progress_m
            used = max(0.0, min(produced, needed, team.production_accumulated))
            airbase.build_progress_m += used
            team.production_accumulated -= used

            if airbase.build_progress_m >= self._cfg.airbase_cost_m:
                airbase.complete = True
                city.has_airbase = True
                log.info("Team %s completed airbase at %s", team.name, city.name)
                self._events.emit(AirbaseCompleted(team=team.name, city_id=city.id))
        self._produced_this_tick.clear()

    @staticmethod
    def _find_airbase_build(world: World, team: Team) -> Optional[City]:
        for city in world.get_team_cities(team.name):
            if city.is_building_airbase:
                return city
        return None

    @staticmethod
    def _delivery_city(world: World, team: Team) -> Optional[City]:
        if team.delivery_point_city_id is None:
            return None
        city = world.get_city(team.delivery_point_city_id)
        if city is None or city.owner != team.name or not city.has_complete_airbase:
            return None
        return city

    # -- Design ----------------------------------------------------------

    def calculate_design_points(self, cost_m: float) -> int:
        """Stat points a design costing *cost_m* may distribute."""
        return math.floor(self._cfg.design_base_points * math.log10(cost_m + 1))

    def get_design_cost(self, world: World, team_name: str) -> float:
        """One minute of the team's current income."""
        team = world.get_team(team_name)
        if team is None:
            return 0.0
        return team.production_per_minute * self._cfg.design_cost_multiplier

    # -- Commands --------------------------------------------------------

    def try_produce_aircraft(self, world: World, team_name: str, template_id: str) -> bool:
        """Buy one aircraft outright from banked capital."""
        team = world.get_team(team_name)
        template = world.get_template(template_id)
        if team is None or template is None:
            log.debug("try_produce_aircraft: unknown team %s or template %s", team_name, template_id)
            return False
        if template_id not in team.template_ids:
            log.debug("try_produce_aircraft: %s not available to %s", template_id, team_name)
            return False
        if team.production_accumulated < template.cost_m:
            return False
        dp = self._delivery_city(world, team)
        if dp is None:
            log.debug("try_produce_aircraft: %s has no delivery point", team_name)
            return False

        team.production_accumulated -= template.cost_m
        aircraft = self._world_service.create_aircraft(world, template_id, dp.id, team_name)
        if aircraft is None:
            return False
        self._events.emit(AircraftBuilt(
            team=team_name, aircraft_id=aircraft.id, template_id=template_id, city_id=dp.id,
        ))
        return True

    def start_design(self, world: World, team_name: str, specs: Mapping[str, Any]) -> bool:
        """Pay the design cost and register a custom template."""
        team = world.get_team(team_name)
        if team is None:
            return False
        cost = self.get_design_cost(world, team_name)
        if team.production_accumulated < cost:
            log.debug("start_design: %s cannot afford %.1fM", team_name, cost)
            return False
        template = self._world_service.create_template(world, team_name, specs)
        if template is None:
            return False
        team.production_accumulated -= cost
        log.info("Team %s designed %s for %.1fM", team_name, template.name, cost)
        self._events.emit(TemplateDesigned(team=team_name, template_id=template.id, cost_m=cost))
        return True

    def build_airbase(self, world: World, city_id: str, team_name: str) -> bool:
        """Start construction of an airbase at an owned city."""
        city = world.get_city(city_id)
        if city is None or city.owner != team_name:
            return False
        if city.has_airbase or city.airbase is not None:
            return False
        # Placeholders must recover to non-negative HP first
        if city.is_placeholder and city.hp < 0:
            return False
        city.airbase = Airbase(owner=team_name, escort_allocation=self._cfg.default_escort_allocation)
        log.info("Team %s started airbase at %s", team_name, city.name)
        return True

    def set_delivery_point(self, world: World, city_id: str, team_name: str) -> bool:
        """Make a complete, owned airbase the team's delivery point."""
        city = world.get_city(city_id)
        team = world.get_team(team_name)
        if city is None or team is None:
            return False
        if not city.has_complete_airbase or city.owner != team_name:
            return False

        old = world.get_city(team.delivery_point_city_id) if team.delivery_point_city_id else None
        if old is not None and old.airbase is not None:
            old.airbase.delivery_point = False
        team.delivery_point_city_id = city.id
        city.airbase.delivery_point = True
        return True

    def set_bomber_orders(self, world: World, city_id: str, target_city_id: str) -> bool:
        """Give an airbase a standing raid target."""
        city = world.get_city(city_id)
        target = world.get_city(target_city_id)
        if city is None or target is None or city.id == target.id:
            return False
        if not city.has_complete_airbase:
            return False
        distance = great_circle_distance(city.lat, city.lon, target.lat, target.lon)
        city.airbase.orders = BomberOrders(target_city_id=target.id, distance=distance)
        log.debug("Orders %s → %s (%.0f km)", city.name, target.name, distance)
        return True

    def clear_bomber_orders(self, world: World, city_id: str) -> bool:
        city = world.get_city(city_id)
        if city is None or city.airbase is None:
            return False
        city.airbase.orders = None
        return True

    def set_allocation(self, world: World, team_name: str, template_id: str, allocation: float) -> bool:
        """Set a template's procurement weight (0..100)."""
        team = world.get_team(team_name)
        if team is None or template_id not in team.template_production:
            return False
        if not 0 <= allocation <= 100:
            return False
        team.template_production[template_id].allocation = float(allocation)
        return True

    def set_escort_allocation(self, world: World, city_id: str, team_name: str, fraction: float) -> bool:
        """Set the share (0..1) of an airbase's fighters that fly as escorts."""
        city = world.get_city(city_id)
        if city is None or city.owner != team_name or not city.has_complete_airbase:
            return False
        if not 0 <= fraction <= 1:
            return False
        city.airbase.escort_allocation = float(fraction)
        return True
