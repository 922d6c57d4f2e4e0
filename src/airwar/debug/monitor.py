"""State summary collector — gathers engine state for debugging.

Pulls data from the game loop and statistics into a plain dict that
can be printed or dumped as YAML.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from airwar.engine.game_loop import GameLoop
    from airwar.engine.statistics import StatisticsService


def collect_snapshot(game_loop: GameLoop, statistics: Optional[StatisticsService] = None) -> dict[str, Any]:
    """Build a plain-dict summary of the running game.

    Args:
        game_loop: Loop owning the live world.
        statistics: Optional statistics service.

    Returns:
        Nested dict with loop, team, raid and statistics data.
    """
    snap: dict[str, Any] = {}
    snap["game_loop"] = _game_loop_info(game_loop)
    snap["teams"] = _teams_info(game_loop)
    snap["raids"] = _raids_info(game_loop)
    snap["statistics"] = statistics.summary() if statistics is not None else {}
    return snap


def format_snapshot(snap: dict[str, Any]) -> str:
    """One line per section, for terminal output."""
    gl = snap["game_loop"]
    lines = [f"tick {gl['tick_count']}  t={gl['elapsed_fmt']}  speed {gl['speed']}x"
             f"{'  (paused)' if gl['paused'] else ''}"]
    for name, t in snap["teams"].items():
        lines.append(
            f"  {name:<6} cities {t['cities']:>3}  airbases {t['airbases']:>2}  "
            f"aircraft {t['fighters']}F/{t['bombers']}B  capital {t['capital_m']:.1f}M  "
            f"rate {t['production_per_minute']:.1f}M/min"
        )
    lines.append(f"  raids in flight: {len(snap['raids'])}")
    for name, stats in snap["statistics"].items():
        lines.append(f"  {name:<6} " + ", ".join(f"{k}={v}" for k, v in stats.items()))
    return "\n".join(lines)


# -------------------------------------------------------------------
# Section collectors
# -------------------------------------------------------------------


def _game_loop_info(game_loop: GameLoop) -> dict[str, Any]:
    world = game_loop.world
    return {
        "running": game_loop.is_running,
        "paused": game_loop.paused,
        "speed": game_loop.speed_multiplier,
        "tick_count": world.tick_count,
        "elapsed_seconds": world.elapsed_seconds,
        "elapsed_fmt": _fmt_duration(world.elapsed_seconds),
        "avg_tick_ms": round(game_loop.avg_tick_duration_ms, 3),
        "rng_state": world.rng.get_state(),
    }


def _teams_info(game_loop: GameLoop) -> dict[str, Any]:
    world = game_loop.world
    result = {}
    for team in world.teams.values():
        cities = world.get_team_cities(team.name)
        alive = [world.aircraft[aid] for aid in team.aircraft_ids
                 if aid in world.aircraft and world.aircraft[aid].alive]
        result[team.name] = {
            "cities": len(cities),
            "airbases": sum(1 for c in cities if c.has_complete_airbase),
            "fighters": sum(1 for a in alive if a.type.value == "fighter"),
            "bombers": sum(1 for a in alive if a.type.value == "bomber"),
            "capital_m": team.production_accumulated,
            "production_per_minute": team.production_per_minute,
            "delivery_point": team.delivery_point_city_id,
        }
    return result


def _raids_info(game_loop: GameLoop) -> list[dict[str, Any]]:
    return [
        {
            "id": r.id,
            "team": r.team,
            "from": r.from_city_id,
            "to": r.to_city_id,
            "progress": round(r.progress, 3),
            "status": r.status.value,
            "bombers": len(r.bomber_ids),
            "escorts": len(r.escort_ids),
        }
        for r in game_loop.world.raids
    ]


def _fmt_duration(seconds: float) -> str:
    """Format seconds as 'Xh Ym Zs'."""
    s = int(seconds)
    h, s = divmod(s, 3600)
    m, s = divmod(s, 60)
    if h:
        return f"{h}h {m}m {s}s"
    if m:
        return f"{m}m {s}s"
    return f"{s}s"
