"""
Tests for level configuration loading and validation.
"""

import copy
import os

import pytest
import yaml

from coopflow.flow_core.config_loader import get_config, load_config, reload_config


DEFAULT_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "coopflow", "level_config.yaml"
)


@pytest.fixture
def raw():
    with open(DEFAULT_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def write_config(tmp_path, data):
    path = tmp_path / "level_config.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f)
    return str(path)


class TestDefaultConfig:
    """Test the shipped level table."""

    def test_loads(self):
        """Default config should load and validate."""
        config = load_config()
        assert config.grid.size == 6
        assert config.puzzle_level_count == 6

    def test_level_kinds(self):
        """Levels 3 and 5 are randomized, the rest fixed."""
        config = load_config()
        randomized = [lvl.index for lvl in config.levels if lvl.is_randomized]
        assert randomized == [3, 5]

    def test_level_one_layout(self):
        """Level 1 is a single corner-to-corner pair on an empty board."""
        level = load_config().get_level(1)
        assert level.obstacles == ()
        assert len(level.pairs) == 1
        assert level.pairs[0].source == (0, 0)
        assert level.pairs[0].target == (5, 5)
        assert level.pairs[0].source_tag == "bolt"
        assert level.pairs[0].target_tag == "goal"

    def test_shared_tag(self):
        """A single `tag` applies to both endpoints."""
        pair = load_config().get_level(2).pairs[0]
        assert pair.source_tag == pair.target_tag == "red"

    def test_unknown_level_uses_default(self):
        """Indices outside the table fall back to the default layout."""
        config = load_config()
        assert config.get_level(0) is config.default_level
        assert config.get_level(99) is config.default_level

    def test_power_keys_exclude_movement(self):
        """A and D are reserved for movement."""
        keys = load_config().power.keys
        assert len(keys) == 24
        assert "A" not in keys
        assert "D" not in keys

    def test_level_five_range(self):
        """Level 5 draws two or three pairs."""
        level = load_config().get_level(5)
        assert level.pair_count == (2, 3)
        assert level.max_pairs == 3


class TestValidation:
    """Test rejection of malformed configs."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_custom_path(self, tmp_path, raw):
        """A copy of the default loads from another location."""
        config = load_config(write_config(tmp_path, raw))
        assert config.puzzle_level_count == 6

    def test_endpoint_on_obstacle(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][1]["obstacles"].append([0, 0])
        with pytest.raises(ValueError, match="obstacle"):
            load_config(write_config(tmp_path, data))

    def test_endpoint_out_of_bounds(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][0]["pairs"][0]["target"] = [6, 6]
        with pytest.raises(ValueError, match="out of bounds"):
            load_config(write_config(tmp_path, data))

    def test_shared_endpoint_cell(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][1]["pairs"][1]["target"] = [2, 5]
        with pytest.raises(ValueError, match="share"):
            load_config(write_config(tmp_path, data))

    def test_too_many_pairs(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][4]["pair_count"] = [2, 4]
        data["levels"][4]["tags"] = ["a", "b", "c", "d"]
        with pytest.raises(ValueError, match="max_pairs"):
            load_config(write_config(tmp_path, data))

    def test_missing_tags(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][4]["tags"] = ["red"]
        with pytest.raises(ValueError, match="tags"):
            load_config(write_config(tmp_path, data))

    def test_inverted_range(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][2]["obstacle_count"] = [4, 3]
        with pytest.raises(ValueError, match="exceeds max"):
            load_config(write_config(tmp_path, data))

    def test_unknown_kind(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][0]["kind"] = "maze"
        with pytest.raises(ValueError, match="kind"):
            load_config(write_config(tmp_path, data))

    def test_non_sequential_indices(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["levels"][2]["index"] = 7
        with pytest.raises(ValueError, match="sequential"):
            load_config(write_config(tmp_path, data))

    def test_empty_key_pool(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["power"]["keys"] = []
        with pytest.raises(ValueError, match="keys"):
            load_config(write_config(tmp_path, data))


class TestSingleton:
    """Test cached config access."""

    def test_get_config_cached(self):
        assert get_config() is get_config()

    def test_reload_replaces_cache(self, tmp_path, raw):
        data = copy.deepcopy(raw)
        data["caps"]["max_clicks"] = 50
        try:
            config = reload_config(write_config(tmp_path, data))
            assert config.caps.max_clicks == 50
            assert get_config() is config
        finally:
            reload_config()
