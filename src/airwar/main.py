"""Simulation entry point.

Initializes all components and runs the game:
1. Load configuration (game config, world definition)
2. Create engine services and the game loop
3. Wire the event bus
4. Restore a previous state if a state file exists
5. Run headless for N ticks, or in real time until interrupted
6. Save state on exit

Usage:
    python -m airwar.main --world config/worlds/demo.yaml --ticks 6000
    # or via entry point:
    airwar --world config/worlds/demo.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import copy
import logging
import signal
from dataclasses import dataclass, field
from typing import Optional

from airwar.debug.monitor import collect_snapshot, format_snapshot
from airwar.engine.ai_service import AggressiveBot, AIPolicy
from airwar.engine.combat_service import CombatService
from airwar.engine.game_loop import GameLoop
from airwar.engine.production_service import ProductionService
from airwar.engine.raid_service import RaidService
from airwar.engine.statistics import StatisticsService
from airwar.engine.world_service import WorldService
from airwar.loaders.game_config_loader import DEFAULT_GAME_CONFIG_PATH, GameConfig, load_game_config
from airwar.loaders.world_loader import load_world
from airwar.models.world import World
from airwar.persistence.state_load import SnapshotError, load_state
from airwar.persistence.state_save import DEFAULT_STATE_PATH, save_state
from airwar.util.events import AirbaseCompleted, CityCaptured, CountryJoinedEnemy, EventBus

log = logging.getLogger(__name__)

DEFAULT_WORLD_PATH = "config/worlds/demo.yaml"


# ---------------------------------------------------------------------------
# Container for all services (makes passing around easier)
# ---------------------------------------------------------------------------


@dataclass
class Services:
    """Holds references to all engine services."""

    game_config: GameConfig
    event_bus: EventBus
    world_service: WorldService
    production_service: ProductionService
    combat_service: CombatService
    raid_service: RaidService
    statistics: StatisticsService
    policies: dict[str, AIPolicy] = field(default_factory=dict)
    game_loop: Optional[GameLoop] = None


# ===================================================================
# 1. Create engine services
# ===================================================================


def create_services(game_config: GameConfig, event_bus: Optional[EventBus] = None) -> Services:
    """Instantiate all engine services with dependency injection.

    Wiring order matters: services that are injected into others are
    created first.  The game loop is created by :func:`create_game`
    once a world exists.
    """
    event_bus = event_bus or EventBus()
    world_service = WorldService(game_config)
    production_service = ProductionService(event_bus, game_config, world_service)
    combat_service = CombatService(event_bus, game_config)
    raid_service = RaidService(event_bus, game_config, combat_service)
    return Services(
        game_config=game_config,
        event_bus=event_bus,
        world_service=world_service,
        production_service=production_service,
        combat_service=combat_service,
        raid_service=raid_service,
        statistics=StatisticsService(),
    )


def create_game(services: Services, world: World) -> GameLoop:
    """Attach bot policies for every bot team and build the game loop."""
    for team in world.teams.values():
        if team.is_bot and team.name not in services.policies:
            services.policies[team.name] = AggressiveBot(
                team.name, services.production_service, services.game_config,
            )
    services.game_loop = GameLoop(
        world,
        services.game_config,
        services.production_service,
        services.combat_service,
        services.raid_service,
        policies=services.policies,
        base_world=copy.deepcopy(world),
    )
    return services.game_loop


# ===================================================================
# 2. Wire up event handlers
# ===================================================================


def wire_events(services: Services) -> None:
    """Register event handlers on the bus."""
    bus = services.event_bus
    services.statistics.attach(bus)

    bus.on(AirbaseCompleted, lambda evt: log.info("[%s] airbase ready at %s", evt.team, evt.city_id))
    bus.on(CityCaptured, lambda evt: log.info("[%s] captured %s", evt.new_owner, evt.city_id))
    bus.on(CountryJoinedEnemy, lambda evt: log.info(
        "%s joined %s after bombing by %s", evt.country, evt.new_owner, evt.attacker))


# ===================================================================
# 3. Run
# ===================================================================


async def _start(args: argparse.Namespace) -> int:
    game_config = load_game_config(args.config)
    services = create_services(game_config)
    wire_events(services)

    world = load_world(args.world, services.world_service, game_config, seed=args.seed)
    game_loop = create_game(services, world)

    if args.state_file:
        try:
            raw = await load_state(args.state_file)
            if raw is not None:
                game_loop.restore(raw)
        except SnapshotError:
            log.exception("State file %s rejected — starting fresh", args.state_file)

    if args.speed is not None and not game_loop.set_speed(args.speed):
        log.warning("Ignoring invalid speed %s", args.speed)

    if args.ticks is not None:
        game_loop.advance(args.ticks)
    else:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, game_loop.stop)
        log.info("Game loop running (%.0f ms tick, %sx)", game_config.tick_ms, game_loop.speed_multiplier)
        await game_loop.run()

    print(format_snapshot(collect_snapshot(game_loop, services.statistics)))

    if args.state_file:
        await save_state(game_loop.world, game_loop.speed_multiplier, path=args.state_file)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="airwar", description="Deterministic air-war simulation")
    parser.add_argument("--world", default=DEFAULT_WORLD_PATH, help="world definition YAML")
    parser.add_argument("--config", default=DEFAULT_GAME_CONFIG_PATH, help="game config YAML")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed (overrides the world file)")
    parser.add_argument("--ticks", type=int, default=None, help="run N ticks headless and exit")
    parser.add_argument("--speed", type=float, default=None, help="wall-clock speed multiplier")
    parser.add_argument("--state_file", default=None,
                        help=f"resume from and save to this file (e.g. {DEFAULT_STATE_PATH})")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the simulation."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== airwar starting ===")
    return asyncio.run(_start(args))


if __name__ == "__main__":
    raise SystemExit(main())
