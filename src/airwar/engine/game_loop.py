"""Main game loop — fixed-order logical ticks.

Per tick, strictly in this order:
1. Time update (tick count, elapsed seconds)
2. Production and procurement
3. Airbase construction
4. HP recovery
5. Raid dispatch scheduling
6. Raid movement
7. Midpoint interceptions
8. Arrivals (bombing, capture, return)
9. Bot policies

Reordering changes outcomes.  The logical tick is always ``tick_ms``
long; the speed multiplier only changes how much wall-clock time the
async runner waits between ticks, so a replay of N ticks is identical
at any speed.  Commands (player, bot, save/load) run between ticks.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from typing import TYPE_CHECKING, Any, Mapping, Optional

from airwar.persistence.state_load import restore_world
from airwar.persistence.state_save import serialize_state

if TYPE_CHECKING:
    from airwar.engine.ai_service import AIPolicy
    from airwar.engine.combat_service import CombatService
    from airwar.engine.production_service import ProductionService
    from airwar.engine.raid_service import RaidService
    from airwar.loaders.game_config_loader import GameConfig
    from airwar.models.world import World

log = logging.getLogger(__name__)


class GameLoop:
    """Owns the world and advances it tick by tick.

    Args:
        world: The live game world.
        game_config: Tick length.
        production_service: Economy step.
        combat_service: HP recovery.
        raid_service: Raid lifecycle.
        policies: Team name → bot policy; only consulted for bot teams.
        base_world: Pristine world snapshots are restored onto.  Defaults
            to a copy of *world* taken now.
    """

    def __init__(
        self,
        world: World,
        game_config: GameConfig,
        production_service: ProductionService,
        combat_service: CombatService,
        raid_service: RaidService,
        policies: Optional[Mapping[str, AIPolicy]] = None,
        base_world: Optional[World] = None,
    ) -> None:
        self.world = world
        self._cfg = game_config
        self._production = production_service
        self._combat = combat_service
        self._raids = raid_service
        self._policies: dict[str, AIPolicy] = dict(policies or {})
        self._base_world = base_world if base_world is not None else copy.deepcopy(world)
        self._running = False
        self.paused = False
        self.speed_multiplier: float = 1.0

        # --- Debug / monitoring counters ---
        self.started_at: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self._tick_duration_sum: float = 0.0
        self._ticks_timed: int = 0

    # -- Stepping ----------------------------------------------------------

    @property
    def tick_count(self) -> int:
        return self.world.tick_count

    def tick(self) -> bool:
        """Execute one logical tick.  Returns False (no-op) while paused."""
        if self.paused:
            return False
        t0 = time.monotonic()
        self._step(self._cfg.tick_ms)

        elapsed_ms = (time.monotonic() - t0) * 1000
        self._ticks_timed += 1
        self.last_tick_duration_ms = elapsed_ms
        self._tick_duration_sum += elapsed_ms
        self.avg_tick_duration_ms = self._tick_duration_sum / self._ticks_timed
        return True

    def _step(self, dt_ms: float) -> None:
        world = self.world

        # 1. Time
        world.tick_count += 1
        world.elapsed_seconds = world.tick_count * self._cfg.tick_ms / 1000.0

        # 2-3. Economy
        self._production.update_production(world, dt_ms)
        self._production.process_airbase_builds(world, dt_ms)

        # 4. HP recovery
        self._combat.recover_hp(world)

        # 5-8. Raids
        self._raids.process_dispatch_schedules(world)
        self._raids.move_raids(world, dt_ms)
        self._raids.resolve_in_air_encounters(world)
        self._raids.resolve_arrivals(world)

        # 9. Bots
        for team in world.teams.values():
            policy = self._policies.get(team.name)
            if team.is_bot and policy is not None:
                policy.update(world, world.elapsed_seconds)

    def advance(self, ticks: int) -> int:
        """Run *ticks* logical ticks; returns how many actually executed."""
        executed = 0
        for _ in range(ticks):
            if self.tick():
                executed += 1
        return executed

    def advance_seconds(self, seconds: float) -> int:
        """Run as many ticks as cover *seconds* of game time."""
        return self.advance(round(seconds * 1000.0 / self._cfg.tick_ms))

    # -- Wall-clock runner -------------------------------------------------

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """Drive ticks at ``tick_ms / speed`` wall-clock cadence until stop()."""
        self._running = True
        self.started_at = time.monotonic()
        executed = 0
        while self._running:
            if self.tick():
                executed += 1
                if max_ticks is not None and executed >= max_ticks:
                    break
            await asyncio.sleep(self._cfg.tick_ms / 1000.0 / self.speed_multiplier)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def uptime_seconds(self) -> float:
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    def stop(self) -> None:
        self._running = False

    # -- Controls ----------------------------------------------------------

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def toggle_pause(self) -> bool:
        self.paused = not self.paused
        log.info("Game %s", "paused" if self.paused else "resumed")
        return self.paused

    def set_speed(self, multiplier: float) -> bool:
        """Change the wall-clock cadence.  The logical tick is unaffected."""
        if multiplier <= 0:
            return False
        self.speed_multiplier = float(multiplier)
        log.info("Game speed set to %sx", multiplier)
        return True

    def set_policy(self, team_name: str, policy: AIPolicy) -> None:
        self._policies[team_name] = policy

    # -- Snapshots ---------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Plain serialisable snapshot of the live world."""
        return serialize_state(self.world, self.speed_multiplier)

    def restore(self, raw: Mapping[str, Any]) -> None:
        """Replace the live world with a snapshot.

        The snapshot is applied to a copy of the base world; the live
        world is only swapped in once it fully validated.

        Raises:
            SnapshotError: The snapshot is malformed or inconsistent.
        """
        world, speed = restore_world(self._base_world, raw)
        self.world = world
        self.speed_multiplier = speed
        for policy in self._policies.values():
            policy.on_restore(world)
        log.info("Restored snapshot at tick %d", world.tick_count)
