"""Statistics service — per-team war counters fed by the event bus.

Counters are observational only: they are never persisted and never
read by the simulation.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import TYPE_CHECKING, Any

from airwar.util.events import (
    AircraftBuilt,
    CityCaptured,
    CountryJoinedEnemy,
    RaidArrived,
    RaidDispatched,
    RaidIntercepted,
)

if TYPE_CHECKING:
    from airwar.util.events import EventBus


@dataclass
class TeamStats:
    aircraft_built: int = 0
    aircraft_lost: int = 0
    raids_dispatched: int = 0
    damage_dealt: int = 0
    cities_captured: int = 0
    cities_gained_by_diplomacy: int = 0


class StatisticsService:
    """Aggregates war statistics per team."""

    def __init__(self) -> None:
        self._teams: dict[str, TeamStats] = {}

    def attach(self, event_bus: EventBus) -> None:
        """Subscribe to all relevant events."""
        event_bus.on(AircraftBuilt, self._on_aircraft_built)
        event_bus.on(RaidDispatched, self._on_raid_dispatched)
        event_bus.on(RaidIntercepted, self._on_raid_intercepted)
        event_bus.on(RaidArrived, self._on_raid_arrived)
        event_bus.on(CityCaptured, self._on_city_captured)
        event_bus.on(CountryJoinedEnemy, self._on_country_joined)

    def team(self, name: str) -> TeamStats:
        if name not in self._teams:
            self._teams[name] = TeamStats()
        return self._teams[name]

    def summary(self) -> dict[str, dict[str, Any]]:
        return {name: asdict(stats) for name, stats in self._teams.items()}

    def reset(self) -> None:
        self._teams.clear()

    # -- Handlers ----------------------------------------------------------

    def _on_aircraft_built(self, event: AircraftBuilt) -> None:
        self.team(event.team).aircraft_built += 1

    def _on_raid_dispatched(self, event: RaidDispatched) -> None:
        self.team(event.team).raids_dispatched += 1

    def _on_raid_intercepted(self, event: RaidIntercepted) -> None:
        self.team(event.team).aircraft_lost += event.escort_losses + event.bomber_losses
        self.team(event.defender_team).aircraft_lost += event.defender_losses

    def _on_raid_arrived(self, event: RaidArrived) -> None:
        stats = self.team(event.team)
        stats.aircraft_lost += event.bomber_losses
        stats.damage_dealt += event.damage

    def _on_city_captured(self, event: CityCaptured) -> None:
        self.team(event.new_owner).cities_captured += 1

    def _on_country_joined(self, event: CountryJoinedEnemy) -> None:
        self.team(event.new_owner).cities_gained_by_diplomacy += len(event.city_ids)
