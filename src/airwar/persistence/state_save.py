"""State save — serializes a world snapshot to YAML.

The snapshot is lossless: raids keep their bomber/escort id lists, so
aircraft in flight keep ``on_raid`` status across a save/load cycle.
Default templates are not written; the base world recreates them.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from airwar.util.constants import SNAPSHOT_VERSION

if TYPE_CHECKING:
    from airwar.models.aircraft import Aircraft, Template
    from airwar.models.city import Airbase, City
    from airwar.models.raid import Raid
    from airwar.models.team import Team
    from airwar.models.world import World

log = logging.getLogger(__name__)

# Default path for the state file (relative to working directory)
DEFAULT_STATE_PATH = "state.yaml"


# ===================================================================
# Public API
# ===================================================================


def serialize_state(world: World, speed_multiplier: float = 1.0) -> dict[str, Any]:
    """Build the plain-dict snapshot of *world*."""
    return {
        "meta": _serialize_meta(),
        "seed": world.seed,
        "rng_state": world.rng.get_state(),
        "tick_count": world.tick_count,
        "elapsed_seconds": world.elapsed_seconds,
        "speed_multiplier": speed_multiplier,
        "counters": {
            "aircraft": world.aircraft_counter,
            "template": world.template_counter,
            "raid": world.raid_counter,
        },
        "teams": [_serialize_team(t) for t in world.teams.values()],
        "cities": [_serialize_city(c) for c in world.cities.values()],
        "aircraft": [_serialize_aircraft(a) for a in world.aircraft.values()],
        "templates": [_serialize_template(t) for t in world.templates.values() if not t.is_default],
        "raids": [_serialize_raid(r) for r in world.raids],
        "last_dispatch": dict(world.last_dispatch),
    }


async def save_state(
    world: World,
    speed_multiplier: float = 1.0,
    path: str = DEFAULT_STATE_PATH,
    snapshot: Optional[dict[str, Any]] = None,
) -> None:
    """Write a snapshot of *world* to a YAML file atomically.

    Args:
        world: World to save.
        speed_multiplier: Current game speed, stored with the snapshot.
        path: Output file path.
        snapshot: Pre-built snapshot to write instead of serializing *world*.
    """
    state = snapshot if snapshot is not None else serialize_state(world, speed_multiplier)

    out = Path(path)
    tmp = out.with_suffix(".yaml.tmp")
    try:
        tmp.write_text(
            yaml.dump(state, default_flow_style=False, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        tmp.replace(out)
        log.info("Game state saved to %s (tick %d, %d aircraft, %d raids)",
                 path, state["tick_count"], len(state["aircraft"]), len(state["raids"]))
    except Exception:
        log.exception("Failed to save game state to %s", path)
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


# ===================================================================
# Meta
# ===================================================================

def _serialize_meta() -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "saved_at": time.strftime("%Y-%m-%dT%H:%M:%S"),
        "saved_at_unix": time.time(),
    }


# ===================================================================
# Entities
# ===================================================================

def _serialize_team(team: Team) -> dict[str, Any]:
    return {
        "name": team.name,
        "color": team.color,
        "is_bot": team.is_bot,
        "production_accumulated": team.production_accumulated,
        "production_per_minute": team.production_per_minute,
        "delivery_point_city_id": team.delivery_point_city_id,
        "city_ids": list(team.city_ids),
        "aircraft_ids": list(team.aircraft_ids),
        "template_ids": list(team.template_ids),
        "template_production": {
            tid: {"allocation": tp.allocation, "progress": tp.progress}
            for tid, tp in team.template_production.items()
        },
    }


def _serialize_airbase(airbase: Optional[Airbase]) -> Optional[dict[str, Any]]:
    if airbase is None:
        return None
    orders = None
    if airbase.orders is not None:
        orders = {"target_city_id": airbase.orders.target_city_id,
                  "distance": airbase.orders.distance}
    return {
        "owner": airbase.owner,
        "build_progress_m": airbase.build_progress_m,
        "complete": airbase.complete,
        "delivery_point": airbase.delivery_point,
        "orders": orders,
        "escort_allocation": airbase.escort_allocation,
    }


def _serialize_city(city: City) -> dict[str, Any]:
    return {
        "id": city.id,
        "owner": city.owner,
        "hp": city.hp,
        "has_airbase": city.has_airbase,
        "airbase": _serialize_airbase(city.airbase),
    }


def _serialize_aircraft(a: Aircraft) -> dict[str, Any]:
    return {
        "id": a.id,
        "type": a.type.value,
        "template_id": a.template_id,
        "home_city_id": a.home_city_id,
        "location_city_id": a.location_city_id,
        "status": a.status.value,
        "hp": a.hp,
        "owner": a.owner,
    }


def _serialize_template(t: Template) -> dict[str, Any]:
    return {
        "id": t.id,
        "type": t.type.value,
        "cost_m": t.cost_m,
        "range_points": t.range_points,
        "offense": t.offense,
        "defense": t.defense,
        "name": t.name,
        "is_default": t.is_default,
    }


def _serialize_raid(r: Raid) -> dict[str, Any]:
    return {
        "id": r.id,
        "from_city_id": r.from_city_id,
        "to_city_id": r.to_city_id,
        "team": r.team,
        "bomber_ids": list(r.bomber_ids),
        "escort_ids": list(r.escort_ids),
        "distance": r.distance,
        "speed": r.speed,
        "progress": r.progress,
        "start_time": r.start_time,
        "status": r.status.value,
        "has_engaged_defenders": r.has_engaged_defenders,
    }
