"""AI service — pluggable decision policies for bot teams.

The engine only knows the ``AIPolicy`` interface: once per tick, after
all raids are resolved, the game loop calls ``update`` on the policy of
each bot team.  Policies act exclusively through the same production
commands a human player uses.

=== AggressiveBot ==========================================================

Every ``bot_decision_interval_s`` seconds, in this order:

0.  **Delivery point** – if the team has lost its delivery point, move it
    to the most populous owned city with a complete airbase.
1.  **Airbases** – start one airbase at the first city without one once
    capital reaches ``airbase_cost × bot_airbase_build_threshold``.
2.  **Designs** – with income ≥ ``bot_min_production_for_design`` and
    capital ≥ 2 × design cost, a ``bot_design_chance`` roll designs a
    bomber 50 % more expensive than the current best, spending design
    points 50 % offense / 30 % range / rest defense.
3.  **Targets** – each complete airbase with bombers targets the best
    enemy city within its longest bomber range, scored as
    ``population × max(0, hp/100) × bias / (distance + 1)``.  Without
    enemy targets it goes for neutral cities, placeholders first.
    Escort allocation is raised to ``bot_escort_allocation``.
4.  **Procurement** – while capital lasts, buy the most expensive bomber
    (``bot_bomber_chance``) or fighter.  Skipped while an airbase is
    being built.

The bot zeroes its team's allocation weights so all income banks into
capital for the procurement step.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Optional

from airwar.models.aircraft import AircraftType
from airwar.util.geo import great_circle_distance

if TYPE_CHECKING:
    from airwar.engine.production_service import ProductionService
    from airwar.loaders.game_config_loader import GameConfig
    from airwar.models.aircraft import Template
    from airwar.models.city import City
    from airwar.models.world import World

log = logging.getLogger(__name__)


class AIPolicy:
    """Decision policy for one bot team."""

    def __init__(self, team_name: str) -> None:
        self.team_name = team_name

    def update(self, world: World, elapsed_seconds: float) -> None:
        """Called once per tick after raid resolution."""

    def on_restore(self, world: World) -> None:
        """Called after the world was replaced by a loaded snapshot."""


class AggressiveBot(AIPolicy):
    """Expansionist bomber-heavy opponent.

    Args:
        team_name: Team the bot plays.
        production_service: Command surface the bot acts through.
        game_config: Bot tunables.
    """

    def __init__(self, team_name: str, production_service: ProductionService,
                 game_config: GameConfig) -> None:
        super().__init__(team_name)
        self._production = production_service
        self._cfg = game_config
        self.last_decision_time: float = 0.0
        self.decisions_made: int = 0

    def update(self, world: World, elapsed_seconds: float) -> None:
        if elapsed_seconds - self.last_decision_time >= self._cfg.bot_decision_interval_s:
            self.make_decisions(world)
            self.last_decision_time = elapsed_seconds

    def on_restore(self, world: World) -> None:
        interval = self._cfg.bot_decision_interval_s
        if interval > 0:
            self.last_decision_time = math.floor(world.elapsed_seconds / interval) * interval
        else:
            self.last_decision_time = world.elapsed_seconds

    def make_decisions(self, world: World) -> None:
        team = world.get_team(self.team_name)
        if team is None:
            return
        self.decisions_made += 1
        for template_id in team.template_production:
            self._production.set_allocation(world, self.team_name, template_id, 0)

        self.ensure_delivery_point(world)
        self.consider_airbase_builds(world)
        self.consider_designs(world)
        self.set_bomber_targets(world)
        self.allocate_production(world)

    # -- Priorities --------------------------------------------------------

    def ensure_delivery_point(self, world: World) -> None:
        team = world.get_team(self.team_name)
        current = world.get_city(team.delivery_point_city_id) if team.delivery_point_city_id else None
        if current is not None and current.owner == self.team_name and current.has_complete_airbase:
            return
        best = None
        for city in world.get_team_cities(self.team_name):
            if not city.has_complete_airbase:
                continue
            if best is None or city.population > best.population:
                best = city
        if best is not None and self._production.set_delivery_point(world, best.id, self.team_name):
            log.info("Bot %s moved delivery point to %s", self.team_name, best.name)

    def consider_airbase_builds(self, world: World) -> None:
        team = world.get_team(self.team_name)
        threshold = self._cfg.airbase_cost_m * self._cfg.bot_airbase_build_threshold
        if team.production_accumulated < threshold:
            return
        for city in world.get_team_cities(self.team_name):
            if city.has_airbase or city.airbase is not None:
                continue
            if city.is_placeholder and city.hp < 0:
                continue
            if self._production.build_airbase(world, city.id, self.team_name):
                log.debug("Bot %s building airbase at %s", self.team_name, city.name)
            return

    def consider_designs(self, world: World) -> None:
        cfg = self._cfg
        team = world.get_team(self.team_name)
        if team.production_per_minute < cfg.bot_min_production_for_design:
            return
        design_cost = self._production.get_design_cost(world, self.team_name)
        if team.production_accumulated < design_cost * 2:
            return
        if not world.rng.next_bool(cfg.bot_design_chance):
            return

        best_cost = cfg.default_bomber.cost_m
        bomber_count = 0
        for template in self._templates(world, AircraftType.BOMBER):
            bomber_count += 1
            best_cost = max(best_cost, template.cost_m)

        new_cost = best_cost * 1.5
        points = self._production.calculate_design_points(new_cost)
        offense = min(cfg.offense_max, math.floor(points * 0.5))
        range_points = min(cfg.range_max, math.floor(points * 0.3))
        defense = min(cfg.defense_max, points - offense - range_points)
        specs = {
            "type": AircraftType.BOMBER.value,
            "cost_m": new_cost,
            "range_points": range_points,
            "offense": offense,
            "defense": defense,
            "name": f"Bot Bomber Mk{bomber_count + 1}",
        }
        self._production.start_design(world, self.team_name, specs)

    def set_bomber_targets(self, world: World) -> None:
        for city in world.get_team_cities(self.team_name):
            if not city.has_complete_airbase:
                continue
            target = self.find_best_bomber_target(world, city)
            if target is None:
                continue
            self._production.set_bomber_orders(world, city.id, target.id)
            self._production.set_escort_allocation(
                world, city.id, self.team_name, self._cfg.bot_escort_allocation,
            )

    def find_best_bomber_target(self, world: World, from_city: City) -> Optional[City]:
        bombers = world.get_bombers_at_city(from_city.id)
        if not bombers:
            return None
        max_range = 0.0
        for bomber in bombers:
            template = world.get_template(bomber.template_id)
            if template is not None:
                max_range = max(max_range, template.range_points * self._cfg.range_km_per_point)

        def in_range(target: City) -> bool:
            return target.id != from_city.id and great_circle_distance(
                from_city.lat, from_city.lon, target.lat, target.lon) <= max_range

        enemies = [c for c in world.cities.values()
                   if c.owner is not None and c.owner != self.team_name and in_range(c)]
        if enemies:
            return self.select_best_target(from_city, enemies)

        neutrals = [c for c in world.cities.values() if c.owner is None and in_range(c)]
        if not neutrals:
            return None
        placeholders = [c for c in neutrals if c.is_placeholder]
        return self.select_best_target(from_city, placeholders or neutrals)

    def select_best_target(self, from_city: City, candidates: list[City]) -> Optional[City]:
        best = None
        best_score = -math.inf
        for target in candidates:
            distance = great_circle_distance(from_city.lat, from_city.lon, target.lat, target.lon)
            value = target.population * max(0.0, target.hp / 100.0)
            score = value * self._cfg.bot_attack_bias / (distance + 1)
            if score > best_score:
                best_score = score
                best = target
        return best

    def allocate_production(self, world: World) -> None:
        team = world.get_team(self.team_name)
        if any(c.is_building_airbase for c in world.get_team_cities(self.team_name)):
            return

        while team.production_accumulated > 0:
            best_bomber = self._most_expensive(world, AircraftType.BOMBER)
            best_fighter = self._most_expensive(world, AircraftType.FIGHTER)
            if best_bomber is None and best_fighter is None:
                break
            produce_bomber = world.rng.next_bool(self._cfg.bot_bomber_chance)
            if produce_bomber and best_bomber is not None:
                choice = best_bomber
            elif best_fighter is not None:
                choice = best_fighter
            else:
                break
            if not self._production.try_produce_aircraft(world, self.team_name, choice.id):
                break

    # -- Helpers -----------------------------------------------------------

    def _templates(self, world: World, ttype: AircraftType) -> list[Template]:
        team = world.get_team(self.team_name)
        result = []
        for tid in team.template_ids:
            template = world.get_template(tid)
            if template is not None and template.type == ttype:
                result.append(template)
        return result

    def _most_expensive(self, world: World, ttype: AircraftType) -> Optional[Template]:
        best = None
        for template in self._templates(world, ttype):
            if best is None or template.cost_m > best.cost_m:
                best = template
        return best
