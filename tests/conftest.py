"""Shared fixtures for the airwar test suite."""

from __future__ import annotations

import copy
from typing import Any, Optional

import pytest

from airwar.loaders.game_config_loader import GameConfig
from airwar.loaders.world_loader import build_world
from airwar.main import Services, create_game, create_services
from airwar.models.world import World


class ScriptedRNG:
    """RNG double returning a fixed sequence of draws."""

    def __init__(self, values: list[float]) -> None:
        self._values = list(values)
        self.draws = 0

    def next(self) -> float:
        self.draws += 1
        return self._values.pop(0)

    def next_bool(self, p: float = 0.5) -> bool:
        return self.next() < p

    def get_state(self) -> int:
        return 0


def two_city_data(**overrides: Any) -> dict[str, Any]:
    """Red owns X (0°, 0°), Blue owns Y (0°, 5°), ~556 km apart."""
    data: dict[str, Any] = {
        "teams": [
            {"name": "Red", "color": "#cc0000", "is_bot": False},
            {"name": "Blue", "color": "#0066cc", "is_bot": False},
        ],
        "countries": [{"name": "Westland"}, {"name": "Eastland"}],
        "cities": [
            {"id": "X", "name": "Xville", "lat": 0.0, "lon": 0.0,
             "population": 1_000_000, "country": "Westland"},
            {"id": "Y", "name": "Yton", "lat": 0.0, "lon": 5.0,
             "population": 1_000_000, "country": "Eastland"},
        ],
        "allocation": {"Westland": "Red", "Eastland": "Blue"},
    }
    data.update(overrides)
    return data


def neutral_data() -> dict[str, Any]:
    """Two-city world plus a neutral two-city country to the north."""
    data = two_city_data()
    data["countries"] = data["countries"] + [{"name": "Neutralia"}]
    data["cities"] = data["cities"] + [
        {"id": "N1", "name": "Nordby", "lat": 3.0, "lon": 0.0,
         "population": 500_000, "country": "Neutralia"},
        {"id": "N2", "name": "Nordhavn", "lat": 4.0, "lon": 1.0,
         "population": 200_000, "country": "Neutralia"},
    ]
    data["allocation"] = {"Westland": "Red", "Eastland": "Blue", "Neutralia": None}
    return data


def make_game(data: Optional[dict[str, Any]] = None, seed: int = 42,
              config: Optional[GameConfig] = None) -> tuple[Services, World]:
    """Build services plus a world (no game loop)."""
    services = create_services(config or GameConfig())
    world = build_world(copy.deepcopy(data or two_city_data()),
                        services.world_service, services.game_config, seed=seed)
    return services, world


def make_loop(data: Optional[dict[str, Any]] = None, seed: int = 42,
              config: Optional[GameConfig] = None):
    services, world = make_game(data, seed, config)
    loop = create_game(services, world)
    return services, loop


def zero_allocations(services: Services, world: World, team_name: str) -> None:
    for template_id in world.teams[team_name].template_production:
        services.production_service.set_allocation(world, team_name, template_id, 0)


@pytest.fixture
def config() -> GameConfig:
    return GameConfig()


@pytest.fixture
def game() -> tuple[Services, World]:
    return make_game()
