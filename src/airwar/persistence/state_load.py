"""State load — restores a world from a YAML snapshot.

Restoring is all-or-nothing: the snapshot is validated (pydantic schema
plus cross-reference checks) and applied to a deep copy of the base
world.  Any fault raises :class:`SnapshotError` and leaves the caller's
live world untouched.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from airwar.models.aircraft import Aircraft, AircraftStatus, AircraftType, Template
from airwar.models.city import Airbase, BomberOrders
from airwar.models.raid import Raid, RaidStatus
from airwar.models.team import TemplateProduction
from airwar.persistence.schema import StateSnapshot
from airwar.persistence.state_save import DEFAULT_STATE_PATH
from airwar.util.constants import SNAPSHOT_VERSION
from airwar.util.rng import DeterministicRNG

if TYPE_CHECKING:
    from airwar.models.world import World

log = logging.getLogger(__name__)


class SnapshotError(Exception):
    """A snapshot is malformed or references entities that do not exist."""


# ===================================================================
# Public API
# ===================================================================


async def load_state(path: str = DEFAULT_STATE_PATH) -> Optional[dict[str, Any]]:
    """Read a raw snapshot from a YAML file.

    Returns None if the file does not exist.

    Raises:
        SnapshotError: The file exists but is not a YAML mapping.
    """
    state_file = Path(path)
    if not state_file.exists():
        log.info("No state file found at %s", path)
        return None

    try:
        raw = yaml.safe_load(state_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SnapshotError(f"cannot parse {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise SnapshotError(f"state file {path} has unexpected format (not a mapping)")
    meta = raw.get("meta") or {}
    log.info("Read state from %s (saved at %s, version %s)",
             path, meta.get("saved_at", "?"), meta.get("version", "?"))
    return raw


def restore_world(base: World, raw: Mapping[str, Any]) -> tuple[World, float]:
    """Apply a snapshot to a copy of *base*.

    Returns:
        (restored world, speed multiplier)

    Raises:
        SnapshotError: On any schema or reference fault.
    """
    try:
        snap = StateSnapshot.model_validate(raw)
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot: {exc}") from exc
    if snap.meta.version != SNAPSHOT_VERSION:
        raise SnapshotError(f"unsupported snapshot version {snap.meta.version}")

    world = copy.deepcopy(base)
    _restore_templates(world, snap)
    _restore_cities(world, snap)
    _restore_teams(world, snap)
    _restore_aircraft(world, snap)
    _restore_raids(world, snap)
    _check_conservation(world)

    world.seed = snap.seed
    world.rng = DeterministicRNG(snap.seed)
    world.rng.set_state(snap.rng_state)
    world.tick_count = snap.tick_count
    world.elapsed_seconds = snap.elapsed_seconds
    world.aircraft_counter = snap.counters.aircraft
    world.template_counter = snap.counters.template
    world.raid_counter = snap.counters.raid
    for city_id in snap.last_dispatch:
        _require(city_id in world.cities, f"last_dispatch references unknown city {city_id}")
    world.last_dispatch = dict(snap.last_dispatch)

    log.info("Snapshot applied: tick %d, %d aircraft, %d raids",
             world.tick_count, len(world.aircraft), len(world.raids))
    return world, snap.speed_multiplier


# ===================================================================
# Helpers
# ===================================================================

def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SnapshotError(message)


def _restore_templates(world: World, snap: StateSnapshot) -> None:
    for t in snap.templates:
        world.templates[t.id] = Template(
            id=t.id,
            type=AircraftType(t.type),
            cost_m=t.cost_m,
            range_points=t.range_points,
            offense=t.offense,
            defense=t.defense,
            name=t.name,
            is_default=t.is_default,
        )


def _restore_cities(world: World, snap: StateSnapshot) -> None:
    for c in snap.cities:
        city = world.cities.get(c.id)
        _require(city is not None, f"unknown city {c.id}")
        _require(c.owner is None or c.owner in world.teams, f"city {c.id}: unknown owner {c.owner}")
        city.owner = c.owner
        city.hp = c.hp
        city.has_airbase = c.has_airbase
        if c.airbase is None:
            _require(not c.has_airbase, f"city {c.id}: has_airbase without airbase")
            city.airbase = None
            continue
        _require(c.airbase.complete or not c.has_airbase, f"city {c.id}: incomplete airbase in service")
        orders = None
        if c.airbase.orders is not None:
            _require(c.airbase.orders.target_city_id in world.cities,
                     f"city {c.id}: orders target unknown city")
            orders = BomberOrders(target_city_id=c.airbase.orders.target_city_id,
                                  distance=c.airbase.orders.distance)
        city.airbase = Airbase(
            owner=c.airbase.owner,
            build_progress_m=c.airbase.build_progress_m,
            complete=c.airbase.complete,
            delivery_point=c.airbase.delivery_point,
            orders=orders,
            escort_allocation=c.airbase.escort_allocation,
        )


def _restore_teams(world: World, snap: StateSnapshot) -> None:
    names = [t.name for t in snap.teams]
    _require(sorted(names) == sorted(world.teams), f"snapshot teams {names} do not match world")
    for t in snap.teams:
        team = world.teams[t.name]
        for cid in t.city_ids:
            _require(cid in world.cities and world.cities[cid].owner == t.name,
                     f"team {t.name}: city {cid} missing or not owned")
        for tid in (*t.template_ids, *t.template_production):
            _require(tid in world.templates, f"team {t.name}: unknown template {tid}")
        _require(t.delivery_point_city_id is None or t.delivery_point_city_id in world.cities,
                 f"team {t.name}: unknown delivery point {t.delivery_point_city_id}")

        team.color = t.color
        team.is_bot = t.is_bot
        team.production_accumulated = t.production_accumulated
        team.production_per_minute = t.production_per_minute
        team.delivery_point_city_id = t.delivery_point_city_id
        team.city_ids = list(t.city_ids)
        team.aircraft_ids = list(t.aircraft_ids)
        team.template_ids = list(t.template_ids)
        team.template_production = {
            tid: TemplateProduction(allocation=tp.allocation, progress=tp.progress)
            for tid, tp in t.template_production.items()
        }

    # Ownership membership must agree with the city table
    for city in world.cities.values():
        if city.owner is not None:
            _require(city.id in world.teams[city.owner].city_ids,
                     f"city {city.id} owned by {city.owner} but not in its list")


def _restore_aircraft(world: World, snap: StateSnapshot) -> None:
    world.aircraft = {}
    for a in snap.aircraft:
        _require(a.template_id in world.templates, f"aircraft {a.id}: unknown template {a.template_id}")
        _require(a.home_city_id in world.cities and a.location_city_id in world.cities,
                 f"aircraft {a.id}: unknown city")
        _require(a.owner in world.teams, f"aircraft {a.id}: unknown owner {a.owner}")
        _require(a.id in world.teams[a.owner].aircraft_ids,
                 f"aircraft {a.id} missing from team {a.owner}")
        world.aircraft[a.id] = Aircraft(
            id=a.id,
            type=AircraftType(a.type),
            template_id=a.template_id,
            home_city_id=a.home_city_id,
            location_city_id=a.location_city_id,
            owner=a.owner,
            status=AircraftStatus(a.status),
            hp=a.hp,
        )
    for team in world.teams.values():
        for aid in team.aircraft_ids:
            _require(aid in world.aircraft, f"team {team.name}: unknown aircraft {aid}")


def _restore_raids(world: World, snap: StateSnapshot) -> None:
    world.raids = []
    for r in snap.raids:
        _require(r.from_city_id in world.cities and r.to_city_id in world.cities,
                 f"raid {r.id}: unknown city")
        _require(r.team in world.teams, f"raid {r.id}: unknown team {r.team}")
        for aid in (*r.bomber_ids, *r.escort_ids):
            _require(aid in world.aircraft, f"raid {r.id}: unknown aircraft {aid}")
        world.raids.append(Raid(
            id=r.id,
            from_city_id=r.from_city_id,
            to_city_id=r.to_city_id,
            team=r.team,
            bomber_ids=list(r.bomber_ids),
            escort_ids=list(r.escort_ids),
            distance=r.distance,
            speed=r.speed,
            progress=r.progress,
            start_time=r.start_time,
            status=RaidStatus(r.status),
            has_engaged_defenders=r.has_engaged_defenders,
        ))


def _check_conservation(world: World) -> None:
    """Every on-raid aircraft belongs to exactly one raid."""
    seen: dict[str, str] = {}
    for raid in world.raids:
        for aid in raid.aircraft_ids:
            _require(aid not in seen, f"aircraft {aid} in raids {seen.get(aid)} and {raid.id}")
            seen[aid] = raid.id
    for aircraft in world.aircraft.values():
        if aircraft.status == AircraftStatus.ON_RAID:
            _require(aircraft.id in seen, f"aircraft {aircraft.id} on raid but in no raid")
