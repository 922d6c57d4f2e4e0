"""Raid service — dispatch, flight, interception and arrival of raids.

Raid lifecycle:
    ENROUTE → ENGAGING → ATTACKING → RETURNING → COMPLETED

- Dispatch: every ``raid_dispatch_interval_s`` per airbase with orders.
- Flight: progress advances by dt / duration, clamped at 1.
- ENGAGING: once, the first tick progress ≥ 0.5 (midpoint interception).
- ATTACKING: the first tick progress ≥ 1 (bombing).
- RETURNING: survivors go back to idle at their home airbase.
- COMPLETED: purged from the active list the same tick.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from airwar.models.aircraft import AircraftStatus
from airwar.models.raid import Raid, RaidStatus
from airwar.util.constants import RAID_ID_PREFIX
from airwar.util.events import RaidArrived, RaidDispatched, RaidIntercepted
from airwar.util.geo import great_circle_distance

if TYPE_CHECKING:
    from airwar.engine.combat_service import CombatService
    from airwar.loaders.game_config_loader import GameConfig
    from airwar.models.aircraft import Aircraft
    from airwar.models.city import City
    from airwar.models.world import World
    from airwar.util.events import EventBus

log = logging.getLogger(__name__)


class RaidService:
    """Service driving every active raid.

    Args:
        event_bus: Receives RaidDispatched / RaidIntercepted / RaidArrived.
        game_config: Dispatch interval, speed, interception factor.
        combat_service: Resolves engagements and city transitions.
    """

    def __init__(self, event_bus: EventBus, game_config: GameConfig,
                 combat_service: CombatService) -> None:
        self._events = event_bus
        self._cfg = game_config
        self._combat = combat_service

    # -- Dispatch ----------------------------------------------------------

    def process_dispatch_schedules(self, world: World) -> list[Raid]:
        """Launch a raid from every airbase whose dispatch interval elapsed.

        The airbase timer only resets when a raid actually launched, so an
        airbase without bombers retries on the next tick.
        """
        launched = []
        interval = self._cfg.raid_dispatch_interval_s
        for city in world.cities.values():
            if not city.has_complete_airbase or city.airbase.orders is None:
                continue
            last = world.last_dispatch.get(city.id, 0.0)
            if world.elapsed_seconds - last < interval:
                continue
            raid = self.dispatch_raid(world, city)
            if raid is not None:
                world.last_dispatch[city.id] = world.elapsed_seconds
                launched.append(raid)
        return launched

    def dispatch_raid(self, world: World, city: City) -> Optional[Raid]:
        """Send every idle bomber at *city* plus its escort share at the target."""
        if city.airbase is None or city.airbase.orders is None or city.owner is None:
            return None
        target = world.get_city(city.airbase.orders.target_city_id)
        if target is None:
            log.warning("Airbase %s has orders for missing city %s",
                        city.id, city.airbase.orders.target_city_id)
            return None

        bombers = [b for b in world.get_bombers_at_city(city.id) if b.owner == city.owner]
        if not bombers:
            return None

        fighters = [f for f in world.get_fighters_at_city(city.id) if f.owner == city.owner]
        num_escorts = int(len(fighters) * city.airbase.escort_allocation)
        # Stable sort: equal ranges keep standing order
        fighters.sort(key=lambda f: -self._range_points(world, f))
        escorts = fighters[:num_escorts]

        distance = great_circle_distance(city.lat, city.lon, target.lat, target.lon)
        raid = Raid(
            id=f"{RAID_ID_PREFIX}{world.raid_counter}",
            from_city_id=city.id,
            to_city_id=target.id,
            team=city.owner,
            bomber_ids=[b.id for b in bombers],
            escort_ids=[e.id for e in escorts],
            distance=distance,
            speed=self._cfg.raid_speed_km_per_min,
            start_time=world.elapsed_seconds,
        )
        world.raid_counter += 1
        for aircraft in (*bombers, *escorts):
            aircraft.status = AircraftStatus.ON_RAID
        world.raids.append(raid)

        log.info("%s dispatched %s %s → %s: %d bombers, %d escorts, %.0f km",
                 raid.team, raid.id, city.name, target.name, len(bombers), len(escorts), distance)
        self._events.emit(RaidDispatched(
            raid_id=raid.id, team=raid.team, from_city_id=city.id, to_city_id=target.id,
            bombers=len(bombers), escorts=len(escorts),
        ))
        return raid

    @staticmethod
    def _range_points(world: World, aircraft: Aircraft) -> int:
        template = world.get_template(aircraft.template_id)
        return template.range_points if template is not None else 0

    # -- Flight ------------------------------------------------------------

    def move_raids(self, world: World, dt_ms: float) -> None:
        dt_min = dt_ms / 60000.0
        for raid in world.raids:
            if not raid.is_airborne:
                continue
            duration = raid.duration_minutes
            if duration <= 0:
                raid.progress = 1.0
            else:
                raid.progress = min(1.0, raid.progress + dt_min / duration)

    def _alive(self, world: World, ids: list[str]) -> list[Aircraft]:
        result = []
        for aid in ids:
            aircraft = world.get_aircraft(aid)
            if aircraft is not None and aircraft.hp > 0:
                result.append(aircraft)
        return result

    # -- Midpoint interception ---------------------------------------------

    def resolve_in_air_encounters(self, world: World) -> None:
        for raid in world.raids:
            if raid.status != RaidStatus.ENROUTE or raid.has_engaged_defenders:
                continue
            if raid.progress >= 0.5:
                raid.status = RaidStatus.ENGAGING
                self._resolve_defender_engagement(world, raid)
                raid.has_engaged_defenders = True

    def _resolve_defender_engagement(self, world: World, raid: Raid) -> None:
        from_city = world.get_city(raid.from_city_id)
        to_city = world.get_city(raid.to_city_id)
        if from_city is None or to_city is None:
            log.warning("Raid %s references a missing city", raid.id)
            return

        defender_team = to_city.owner
        if defender_team is None or defender_team == raid.team:
            return
        defenders = self._combat.get_defending_fighters(world, from_city, to_city, defender_team)
        if not defenders:
            return

        escort_losses: list = []
        defender_losses: list = []
        escorts = self._alive(world, raid.escort_ids)
        if escorts:
            escort_losses, defender_losses = self._combat.resolve_fighter_vs_fighter(
                world, escorts, defenders,
            )

        bomber_losses = 0
        surviving = [d for d in defenders if d.hp > 0]
        if surviving:
            offense = 0.0
            for d in surviving:
                template = world.get_template(d.template_id)
                offense += template.offense if template is not None else 0
            for bomber in self._alive(world, raid.bomber_ids):
                template = world.get_template(bomber.template_id)
                if template is None:
                    continue
                p_loss = offense / (template.defense + offense + self._cfg.epsilon)
                if world.rng.next_bool(p_loss * self._cfg.interception_loss_factor):
                    bomber.destroy()
                    bomber_losses += 1

        log.debug("Raid %s intercepted by %d: escorts lost %d, defenders lost %d, bombers lost %d",
                  raid.id, len(defenders), len(escort_losses), len(defender_losses), bomber_losses)
        self._events.emit(RaidIntercepted(
            raid_id=raid.id, team=raid.team, defender_team=defender_team,
            defenders=len(defenders), escort_losses=len(escort_losses),
            defender_losses=len(defender_losses), bomber_losses=bomber_losses,
        ))

    # -- Arrival -----------------------------------------------------------

    def resolve_arrivals(self, world: World) -> None:
        for raid in world.raids:
            if not raid.is_airborne or raid.progress < 1.0:
                continue
            raid.status = RaidStatus.ATTACKING
            self._resolve_raid_attack(world, raid)
            raid.status = RaidStatus.RETURNING
            self._return_survivors(world, raid)
            raid.status = RaidStatus.COMPLETED

        world.raids = [r for r in world.raids if r.status != RaidStatus.COMPLETED]

    def _resolve_raid_attack(self, world: World, raid: Raid) -> None:
        target = world.get_city(raid.to_city_id)
        if target is None:
            log.warning("Raid %s target %s no longer exists", raid.id, raid.to_city_id)
            return
        if target.owner == raid.team:
            log.debug("Raid %s target %s already friendly", raid.id, target.name)
            return

        bombers = self._alive(world, raid.bomber_ids)
        if not bombers:
            log.info("Raid %s arrived at %s with no surviving bombers", raid.id, target.name)
            return

        defense = self._combat.city_defense(world, target)
        losses, damage = self._combat.resolve_bomber_attack(world, bombers, defense)

        if target.owner is None:
            self._combat.join_enemy(world, target, raid.team)
            damage = 0
        elif damage > 0:
            self._combat.apply_city_damage(world, target, damage, raid.team)

        log.info("Raid %s hit %s: %d bombers, %d damage, %d lost",
                 raid.id, target.name, len(bombers), damage, len(losses))
        self._events.emit(RaidArrived(
            raid_id=raid.id, team=raid.team, to_city_id=target.id,
            bombers=len(bombers), bomber_losses=len(losses), damage=damage,
        ))

    def _return_survivors(self, world: World, raid: Raid) -> None:
        """Land survivors at home; they are lost if home fell to another team."""
        home = world.get_city(raid.from_city_id)
        for aircraft in self._alive(world, raid.aircraft_ids):
            if home is None or home.owner != aircraft.owner:
                aircraft.destroy()
                continue
            aircraft.status = AircraftStatus.IDLE
            aircraft.location_city_id = home.id

    # -- Commands ----------------------------------------------------------

    def cancel_raid(self, world: World, raid_id: str) -> bool:
        """Abort an airborne raid; survivors return home without any combat."""
        raid = world.get_raid(raid_id)
        if raid is None or not raid.is_airborne:
            return False
        raid.status = RaidStatus.RETURNING
        self._return_survivors(world, raid)
        raid.status = RaidStatus.COMPLETED
        world.raids = [r for r in world.raids if r.id != raid_id]
        log.info("Raid %s cancelled", raid_id)
        return True
