"""Typed event bus — decoupled notifications out of the simulation.

Engine services emit events after a state transition has been fully
applied.  Handlers must not mutate the world; they are for logging,
statistics and UI refresh.  Emitting never touches the RNG, so
attaching or removing handlers cannot change a replay.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, TypeVar

T = TypeVar("T")


# -- Production events ---------------------------------------------------

@dataclass(frozen=True)
class AircraftBuilt:
    """A production queue crossed 100 % and spawned an aircraft."""
    team: str
    aircraft_id: str
    template_id: str
    city_id: str


@dataclass(frozen=True)
class AirbaseCompleted:
    """An airbase build reached its cost."""
    team: str
    city_id: str


@dataclass(frozen=True)
class TemplateDesigned:
    """A team paid for and registered a custom template."""
    team: str
    template_id: str
    cost_m: float


# -- Raid events ---------------------------------------------------------

@dataclass(frozen=True)
class RaidDispatched:
    """A raid left its airbase."""
    raid_id: str
    team: str
    from_city_id: str
    to_city_id: str
    bombers: int
    escorts: int


@dataclass(frozen=True)
class RaidIntercepted:
    """Defenders engaged a raid at the midpoint."""
    raid_id: str
    team: str
    defender_team: str
    defenders: int
    escort_losses: int
    defender_losses: int
    bomber_losses: int


@dataclass(frozen=True)
class RaidArrived:
    """A raid bombed its target."""
    raid_id: str
    team: str
    to_city_id: str
    bombers: int
    bomber_losses: int
    damage: int


# -- Ownership events ----------------------------------------------------

@dataclass(frozen=True)
class CityCaptured:
    """A city's HP crossed the minimum and it changed hands."""
    city_id: str
    old_owner: Optional[str]
    new_owner: str


@dataclass(frozen=True)
class CountryJoinedEnemy:
    """Bombing a neutral city pushed its country to the attacker's enemy."""
    country: str
    attacker: str
    new_owner: str
    city_ids: tuple


# -- Event Bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(CityCaptured, lambda e: print(e.city_id))
        bus.emit(CityCaptured(city_id="city-3", old_owner="Red", new_owner="Blue"))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._handlers.get(type(event), []):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()

    def handler_count(self, event_type: Optional[type] = None) -> int:
        """Number of registered handlers (for one type, or all)."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(h) for h in self._handlers.values())
