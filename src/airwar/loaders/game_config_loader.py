"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then injected into every engine service.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class TemplateSpec:
    """Stats of a default aircraft template."""
    type: str = "fighter"
    cost_m: float = 1.0
    range_points: int = 50
    offense: int = 30
    defense: int = 30
    name: str = "Default Fighter"


def _default_fighter() -> TemplateSpec:
    return TemplateSpec(type="fighter", cost_m=1.0, range_points=50,
                        offense=30, defense=30, name="Default Fighter")


def _default_bomber() -> TemplateSpec:
    return TemplateSpec(type="bomber", cost_m=3.0, range_points=50,
                        offense=30, defense=20, name="Default Bomber")


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the engine can run even without the file.
    """

    # -- Timing ------------------------------------------------------
    tick_ms: float = 100.0
    raid_dispatch_interval_s: float = 20.0

    # -- HP ----------------------------------------------------------
    hp_min: float = -100.0
    hp_max: float = 100.0
    hp_recovery_per_min: float = 60.0

    # -- Production --------------------------------------------------
    pop_scale: float = 1000.0
    airbase_cost_m: float = 50.0

    # -- Design ------------------------------------------------------
    design_base_points: float = 18.0
    design_cost_multiplier: float = 1.0

    # -- Template stat bounds ----------------------------------------
    range_min: int = 10
    range_max: int = 100
    offense_min: int = 1
    offense_max: int = 100
    defense_min: int = 1
    defense_max: int = 100
    range_km_per_point: float = 10.0

    # -- Combat ------------------------------------------------------
    epsilon: float = 1.0
    city_base_defense: float = 50.0
    bomber_damage_base: int = 1
    bomber_damage_scale: int = 10
    interception_loss_factor: float = 0.3
    path_samples: int = 20

    # -- Raids -------------------------------------------------------
    raid_speed_km_per_min: float = 500.0
    default_escort_allocation: float = 0.5

    # -- Default templates -------------------------------------------
    default_fighter: TemplateSpec = field(default_factory=_default_fighter)
    default_bomber: TemplateSpec = field(default_factory=_default_bomber)
    default_allocation: float = 50.0

    # -- Bot ---------------------------------------------------------
    bot_attack_bias: float = 1.3
    bot_airbase_build_threshold: float = 0.8
    bot_min_production_for_design: float = 100.0
    bot_design_chance: float = 0.1
    bot_decision_interval_s: float = 5.0
    bot_escort_allocation: float = 0.7
    bot_bomber_chance: float = 0.7

    # -- World generation --------------------------------------------
    placeholder_cities_per_country: int = 3
    placeholder_min_spacing_km: float = 500.0

    @property
    def hp_recovery_per_tick(self) -> float:
        """HP regained by a damaged city in one logical tick."""
        return self.hp_recovery_per_min * self.tick_ms / 60000.0


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s — using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    # Nested template specs
    fighter_raw = raw.pop("default_fighter", None)
    bomber_raw = raw.pop("default_bomber", None)
    fighter = _merge_spec(_default_fighter(), fighter_raw)
    bomber = _merge_spec(_default_bomber(), bomber_raw)

    cfg = GameConfig(default_fighter=fighter, default_bomber=bomber, **{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
    return cfg


def _merge_spec(base: TemplateSpec, raw: object) -> TemplateSpec:
    if not isinstance(raw, dict):
        return base
    merged = dict(base.__dict__)
    merged.update({k: v for k, v in raw.items() if k in TemplateSpec.__dataclass_fields__})
    return TemplateSpec(**merged)
