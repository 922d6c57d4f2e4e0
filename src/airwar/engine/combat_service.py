"""Combat service — probabilistic engagements and ownership transitions.

Responsibilities:
- Fighter vs fighter (independent Bernoulli casualties on both sides)
- Bombers vs city (per-bomber hit roll, then loss roll)
- City damage, capture and neutral-join-enemy transitions
- HP recovery
- Discovery of fighters able to intercept a raid path

Every random draw comes from ``world.rng`` in a fixed order: defenders
before attackers, and per bomber the hit roll before the loss roll.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from airwar.util.events import CityCaptured, CountryJoinedEnemy
from airwar.util.geo import is_path_within_range

if TYPE_CHECKING:
    from airwar.loaders.game_config_loader import GameConfig
    from airwar.models.aircraft import Aircraft
    from airwar.models.city import City
    from airwar.models.world import World
    from airwar.util.events import EventBus

log = logging.getLogger(__name__)


class CombatService:
    """Service for combat resolution.

    Args:
        event_bus: Receives CityCaptured / CountryJoinedEnemy.
        game_config: Combat and HP constants.
    """

    def __init__(self, event_bus: EventBus, game_config: GameConfig) -> None:
        self._events = event_bus
        self._cfg = game_config

    # -- Strength helpers --------------------------------------------------

    def _sum_stat(self, world: World, aircraft: Sequence[Aircraft], stat: str) -> float:
        total = 0.0
        for a in aircraft:
            template = world.get_template(a.template_id)
            if template is not None:
                total += getattr(template, stat)
        return total

    def city_defense(self, world: World, city: City) -> float:
        """Sum of defense of all idle fighters on the ground at *city*."""
        return self._sum_stat(world, world.get_fighters_at_city(city.id), "defense")

    # -- Engagements -------------------------------------------------------

    def resolve_fighter_vs_fighter(
        self, world: World, attackers: Sequence[Aircraft], defenders: Sequence[Aircraft],
    ) -> tuple[list[Aircraft], list[Aircraft]]:
        """Resolve one fighter engagement.

        Each defender dies with p = A / (A + D + eps), each attacker with
        p = D / (A + D + eps), where A is the attackers' summed offense and
        D the defenders' summed defense.  Both sides can lose aircraft.

        Returns:
            (attacker_losses, defender_losses)
        """
        if not attackers or not defenders:
            return [], []

        a_off = self._sum_stat(world, attackers, "offense")
        d_def = self._sum_stat(world, defenders, "defense")
        denom = a_off + d_def + self._cfg.epsilon
        p_attacker_wins = a_off / denom
        p_defender_wins = d_def / denom

        defender_losses = []
        for defender in defenders:
            if world.rng.next_bool(p_attacker_wins):
                defender.destroy()
                defender_losses.append(defender)

        attacker_losses = []
        for attacker in attackers:
            if world.rng.next_bool(p_defender_wins):
                attacker.destroy()
                attacker_losses.append(attacker)

        log.debug("Fighter combat: %d (A=%.0f) vs %d (D=%.0f) → losses %d/%d",
                  len(attackers), a_off, len(defenders), d_def,
                  len(attacker_losses), len(defender_losses))
        return attacker_losses, defender_losses

    def resolve_bomber_attack(
        self, world: World, bombers: Sequence[Aircraft], city_defense: float,
    ) -> tuple[list[Aircraft], int]:
        """Bomb a city.

        Per alive bomber: hit with p = off / (off + city_defense + base);
        a hit deals ``damage_base + off // damage_scale``.  Then the bomber
        is lost with p = city_defense / (def + city_defense + eps).

        Returns:
            (bomber_losses, total_damage)
        """
        cfg = self._cfg
        losses = []
        damage = 0
        for bomber in bombers:
            if bomber.hp <= 0:
                continue
            template = world.get_template(bomber.template_id)
            if template is None:
                log.warning("Bomber %s references missing template %s", bomber.id, bomber.template_id)
                continue

            p_hit = template.offense / (template.offense + city_defense + cfg.city_base_defense)
            if world.rng.next_bool(p_hit):
                damage += cfg.bomber_damage_base + template.offense // cfg.bomber_damage_scale

            p_loss = city_defense / (template.defense + city_defense + cfg.epsilon)
            if world.rng.next_bool(p_loss):
                bomber.destroy()
                losses.append(bomber)
        return losses, damage

    # -- City transitions --------------------------------------------------

    def apply_city_damage(self, world: World, city: City, damage: float, attacker: str) -> bool:
        """Subtract damage, clamp HP, and capture at the minimum.

        Returns True if the city changed hands.
        """
        cfg = self._cfg
        city.hp = max(cfg.hp_min, min(cfg.hp_max, city.hp - damage))
        log.debug("%s took %s damage, hp now %.1f", city.name, damage, city.hp)
        if city.hp <= cfg.hp_min:
            self.capture_city(world, city, attacker)
            return True
        return False

    def capture_city(self, world: World, city: City, new_owner: str) -> None:
        """Transfer *city* to *new_owner* in one step.

        The city leaves the old owner's list and joins the new owner's,
        HP resets to 0, every standing order targeting it is cleared, and
        its airbase and idle aircraft are destroyed.
        """
        old_owner = city.owner
        old_team = world.get_team(old_owner)
        if old_team is not None:
            old_team.remove_city(city.id)
            if old_team.delivery_point_city_id == city.id:
                old_team.delivery_point_city_id = None

        city.owner = new_owner
        new_team = world.get_team(new_owner)
        if new_team is not None:
            new_team.add_city(city.id)
        city.hp = 0.0

        for other in world.cities.values():
            if other.airbase is not None and other.airbase.orders is not None \
                    and other.airbase.orders.target_city_id == city.id:
                other.airbase.orders = None

        city.destroy_airbase()
        for aircraft in world.get_aircraft_at_city(city.id):
            aircraft.destroy()

        log.info("%s captured %s from %s", new_owner, city.name, old_owner or "neutral")
        self._events.emit(CityCaptured(city_id=city.id, old_owner=old_owner, new_owner=new_owner))

    def join_enemy(self, world: World, city: City, attacker: str) -> list[str]:
        """Bombing a neutral city pushes its country into the enemy camp.

        Every still-neutral city of the country goes to the attacker's
        enemy at full HP.  No damage is applied.

        Returns the ids of the flipped cities.
        """
        enemy = world.enemy_of(attacker)
        enemy_team = world.get_team(enemy)
        if enemy_team is None:
            log.warning("join_enemy: attacker %r has no enemy", attacker)
            return []

        country = world.countries.get(city.country)
        member_ids = list(country.city_ids) if country is not None else []
        if city.id not in member_ids:
            member_ids.append(city.id)

        flipped = []
        for cid in member_ids:
            member = world.get_city(cid)
            if member is None or member.owner is not None:
                continue
            member.owner = enemy_team.name
            member.hp = self._cfg.hp_max
            enemy_team.add_city(member.id)
            flipped.append(member.id)

        log.info("Bombing by %s pushed %s (%d cities) to %s",
                 attacker, city.country or city.name, len(flipped), enemy_team.name)
        self._events.emit(CountryJoinedEnemy(
            country=city.country, attacker=attacker,
            new_owner=enemy_team.name, city_ids=tuple(flipped),
        ))
        return flipped

    def recover_hp(self, world: World) -> None:
        """Every damaged city regains one tick of HP, neutral ones included."""
        gain = self._cfg.hp_recovery_per_tick
        hp_max = self._cfg.hp_max
        for city in world.cities.values():
            if city.hp < hp_max:
                city.hp = min(hp_max, city.hp + gain)

    # -- Interception ------------------------------------------------------

    def get_defending_fighters(
        self, world: World, from_city: City, to_city: City, defender_team: Optional[str],
    ) -> list[Aircraft]:
        """Fighters of *defender_team* able to intercept the path from → to.

        At each complete airbase of the team the first
        ``floor(count * (1 - escort_allocation))`` idle fighters in
        standing order are on defence duty; each joins if the airbase
        lies within its range of some sampled point of the path.
        """
        if defender_team is None:
            return []
        defenders = []
        for city in world.get_team_cities(defender_team):
            if not city.has_complete_airbase:
                continue
            fighters = world.get_fighters_at_city(city.id)
            defend_share = 1.0 - city.airbase.escort_allocation
            on_duty = fighters[:int(len(fighters) * defend_share)]
            for fighter in on_duty:
                template = world.get_template(fighter.template_id)
                if template is None:
                    continue
                range_km = template.range_points * self._cfg.range_km_per_point
                if is_path_within_range(
                    from_city.lat, from_city.lon, to_city.lat, to_city.lon,
                    city.lat, city.lon, range_km, samples=self._cfg.path_samples,
                ):
                    defenders.append(fighter)
        return defenders
