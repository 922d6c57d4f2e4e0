"""Tests for game config loading."""

import pytest

from airwar.loaders.game_config_loader import GameConfig, load_game_config


class TestDefaults:
    def test_tick_and_recovery(self):
        """Default tick is 100 ms with 0.1 HP recovered per tick."""
        cfg = GameConfig()
        assert cfg.tick_ms == 100.0
        assert cfg.hp_recovery_per_tick == pytest.approx(0.1)

    def test_default_templates(self):
        """Default fighter and bomber templates are populated."""
        cfg = GameConfig()
        assert cfg.default_fighter.type == "fighter"
        assert cfg.default_fighter.cost_m == 1.0
        assert cfg.default_bomber.type == "bomber"
        assert cfg.default_bomber.cost_m == 3.0
        assert cfg.default_bomber.defense == 20


class TestLoad:
    def test_missing_file_returns_defaults(self, tmp_path):
        """A missing config file yields pure defaults."""
        cfg = load_game_config(str(tmp_path / "nope.yaml"))
        assert cfg == GameConfig()

    def test_partial_override(self, tmp_path):
        """Keys in the file override defaults, the rest stay."""
        path = tmp_path / "game.yaml"
        path.write_text("tick_ms: 50\nairbase_cost_m: 10\n")
        cfg = load_game_config(str(path))
        assert cfg.tick_ms == 50
        assert cfg.airbase_cost_m == 10
        assert cfg.hp_max == 100.0
        assert cfg.hp_recovery_per_tick == pytest.approx(0.05)

    def test_unknown_keys_ignored(self, tmp_path):
        """Unknown keys are skipped."""
        path = tmp_path / "game.yaml"
        path.write_text("not_a_setting: 3\nepsilon: 2\n")
        assert load_game_config(str(path)).epsilon == 2

    def test_nested_template_merge(self, tmp_path):
        """Template overrides merge into the default template."""
        path = tmp_path / "game.yaml"
        path.write_text("default_bomber:\n  cost_m: 5\n  wingspan: 40\n")
        cfg = load_game_config(str(path))
        assert cfg.default_bomber.cost_m == 5
        assert cfg.default_bomber.type == "bomber"
        assert cfg.default_fighter.cost_m == 1.0

    def test_empty_file(self, tmp_path):
        """An empty file yields pure defaults."""
        path = tmp_path / "game.yaml"
        path.write_text("")
        assert load_game_config(str(path)) == GameConfig()

    def test_shipped_config_matches_defaults(self):
        """config/game.yaml carries the default balance."""
        from pathlib import Path
        shipped = Path(__file__).resolve().parent.parent / "config" / "game.yaml"
        assert load_game_config(str(shipped)) == GameConfig()
