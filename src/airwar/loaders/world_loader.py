"""World loader — builds a World from a YAML world definition.

Format::

    seed: 42                      # optional, overridden by the caller
    teams:                        # optional, defaults to Red / Blue
      - {name: Red, color: "#cc0000", is_bot: false}
      - {name: Blue, color: "#0066cc", is_bot: true}
    countries:
      - name: Westland
        outline: [[lon, lat], ...]   # optional, enables placeholders
    cities:
      - {id: city-0, name: Harbor, lat: 0.0, lon: 0.0,
         population: 1000000, country: Westland}
    allocation:                   # country → team name (or null)
      Westland: Red

Placeholder cities (population 0) are added per country with an
outline by sampling outline vertices from the world RNG and rejecting
candidates closer than ``placeholder_min_spacing_km`` to any city.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

import yaml

from airwar.models.city import City
from airwar.models.country import Country
from airwar.models.team import Team
from airwar.models.world import World
from airwar.util.constants import CITY_ID_PREFIX, DEFAULT_TEAMS, TEAM_COUNT
from airwar.util.geo import great_circle_distance, random_polygon_vertex
from airwar.util.rng import DeterministicRNG

if TYPE_CHECKING:
    from airwar.engine.world_service import WorldService
    from airwar.loaders.game_config_loader import GameConfig

log = logging.getLogger(__name__)


class WorldLoadError(Exception):
    """The world definition is malformed."""


def load_world(
    path: str | Path,
    world_service: WorldService,
    game_config: GameConfig,
    seed: Optional[int] = None,
) -> World:
    """Load a world definition file.

    Args:
        path: Path to the world YAML file.
        world_service: Creates default templates and assigns countries.
        game_config: Placeholder tunables.
        seed: RNG seed; falls back to the file's ``seed`` key, then 0.

    Raises:
        WorldLoadError: The file is missing or malformed.
    """
    path = Path(path)
    if not path.exists():
        raise WorldLoadError(f"world file not found: {path}")
    with path.open() as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise WorldLoadError(f"cannot parse {path}: {exc}") from exc
    world = build_world(data, world_service, game_config, seed)
    log.info("Loaded world %s: %d cities, %d countries, seed %d",
             path, len(world.cities), len(world.countries), world.seed)
    return world


def build_world(
    data: Mapping[str, Any],
    world_service: WorldService,
    game_config: GameConfig,
    seed: Optional[int] = None,
) -> World:
    """Build a World from an already parsed definition."""
    if not isinstance(data, Mapping):
        raise WorldLoadError("world definition must be a mapping")
    if seed is None:
        seed = int(data.get("seed", 0))

    world = World(seed=seed, rng=DeterministicRNG(seed))
    try:
        _load_teams(world, data.get("teams") or list(DEFAULT_TEAMS))
        _load_countries(world, data.get("countries") or [])
        _load_cities(world, data.get("cities") or [])
    except (KeyError, TypeError, ValueError) as exc:
        raise WorldLoadError(f"malformed world definition: {exc!r}") from exc

    generate_placeholders(world, game_config)
    world_service.create_default_templates(world)

    allocation = data.get("allocation") or {}
    for country, team in allocation.items():
        if country not in world.countries:
            raise WorldLoadError(f"allocation names unknown country {country!r}")
        if team is not None and team not in world.teams:
            raise WorldLoadError(f"allocation names unknown team {team!r}")
    world_service.assign_countries(world, allocation)
    return world


# ===================================================================
# Sections
# ===================================================================

def _load_teams(world: World, raw_teams: list[Mapping[str, Any]]) -> None:
    if len(raw_teams) != TEAM_COUNT:
        raise WorldLoadError(f"exactly {TEAM_COUNT} teams required, got {len(raw_teams)}")
    for t in raw_teams:
        name = str(t["name"])
        if name in world.teams:
            raise WorldLoadError(f"duplicate team {name!r}")
        world.teams[name] = Team(
            name=name,
            color=str(t.get("color", "#888888")),
            is_bot=bool(t.get("is_bot", False)),
        )


def _load_countries(world: World, raw_countries: list[Mapping[str, Any]]) -> None:
    for c in raw_countries:
        name = str(c["name"])
        if name in world.countries:
            raise WorldLoadError(f"duplicate country {name!r}")
        outline = [[float(v[0]), float(v[1])] for v in c.get("outline") or []]
        world.countries[name] = Country(name=name, outline=outline)


def _load_cities(world: World, raw_cities: list[Mapping[str, Any]]) -> None:
    declared = bool(world.countries)
    for i, c in enumerate(raw_cities):
        city_id = str(c.get("id", f"{CITY_ID_PREFIX}{i}"))
        if city_id in world.cities:
            raise WorldLoadError(f"duplicate city id {city_id!r}")
        country = str(c.get("country", ""))
        if country not in world.countries:
            if declared:
                raise WorldLoadError(f"city {city_id!r} names unknown country {country!r}")
            world.countries[country] = Country(name=country)
        population = int(c.get("population", 0))
        if population < 0:
            raise WorldLoadError(f"city {city_id!r} has negative population")

        city = City(
            id=city_id,
            name=str(c.get("name", city_id)),
            lat=float(c["lat"]),
            lon=float(c["lon"]),
            population=population,
            country=country,
        )
        world.cities[city_id] = city
        world.countries[country].city_ids.append(city_id)


# ===================================================================
# Placeholders
# ===================================================================

def _next_city_id(world: World, counter: int) -> tuple[str, int]:
    while f"{CITY_ID_PREFIX}{counter}" in world.cities:
        counter += 1
    return f"{CITY_ID_PREFIX}{counter}", counter + 1


def generate_placeholders(world: World, game_config: GameConfig) -> list[City]:
    """Add population-0 filler cities to every country with an outline."""
    created: list[City] = []
    counter = len(world.cities)
    spacing = game_config.placeholder_min_spacing_km
    for country in world.countries.values():
        if not country.outline:
            continue
        for i in range(game_config.placeholder_cities_per_country):
            pos = random_polygon_vertex(country.outline, world.rng)
            too_close = any(
                great_circle_distance(pos.lat, pos.lon, other.lat, other.lon) < spacing
                for other in world.cities.values()
            )
            if too_close:
                continue
            city_id, counter = _next_city_id(world, counter)
            city = City(
                id=city_id,
                name=f"{country.name} Placeholder {i + 1}",
                lat=pos.lat,
                lon=pos.lon,
                population=0,
                country=country.name,
                is_placeholder=True,
            )
            world.cities[city_id] = city
            country.city_ids.append(city_id)
            created.append(city)
    if created:
        log.debug("Generated %d placeholder cities", len(created))
    return created
