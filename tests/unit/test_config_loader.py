"""Tests for YAML configuration loading and layer merging."""

import pytest

from ga4_foundry.lib.config_loader import load_layer, load_layers, merge_layers
from ga4_foundry.lib.errors import ConfigurationError, ValidationError


class TestLoadLayer:
    """Tests for loading one layer from YAML."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "client.yaml"
        path.write_text(
            "data_stream_type: both\n"
            "web_params:\n"
            "  - {name: page_location, type: string, consolidated_name: screen_location}\n"
        )
        layer = load_layer(path)
        assert layer["data_stream_type"] == "both"
        assert layer["web_params"][0]["consolidated_name"] == "screen_location"

    def test_env_vars_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GA4_TEST_DATASET", "analytics_42")
        path = tmp_path / "client.yaml"
        path.write_text("source_dataset: ${GA4_TEST_DATASET}\n")
        assert load_layer(path) == {"source_dataset": "analytics_42"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_layer(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("web_params: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_layer(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_layer(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_layer(path) == {}

    def test_load_layers_keeps_order(self, tmp_path):
        first = tmp_path / "a.yaml"
        second = tmp_path / "b.yaml"
        first.write_text("rolling_refresh_days: 3\n")
        second.write_text("rolling_refresh_days: 5\n")
        assert load_layers([first, second]) == [
            {"rolling_refresh_days": 3},
            {"rolling_refresh_days": 5},
        ]


class TestMergeLayers:
    """Tests for the shallow layer merge."""

    def test_later_layer_wins(self):
        merged = merge_layers({"rolling_refresh_days": 3}, {"rolling_refresh_days": 5})
        assert merged["rolling_refresh_days"] == 5

    def test_unset_keys_do_not_override(self):
        merged = merge_layers(
            {"rolling_refresh_days": 3, "use_fresh_daily": True},
            {"rolling_refresh_days": 5},
        )
        assert merged["use_fresh_daily"] is True

    def test_arrays_replaced_wholesale(self):
        """Parameter arrays are never concatenated."""
        merged = merge_layers(
            {"custom_params": [{"name": "a", "type": "string"}, {"name": "b", "type": "int"}]},
            {"custom_params": [{"name": "c", "type": "float"}]},
        )
        assert merged["custom_params"] == [{"name": "c", "type": "float"}]

    def test_properties_replaced_wholesale(self):
        merged = merge_layers(
            {"properties": {"a": {"source_dataset": "analytics_1"}}},
            {"properties": {"b": {"source_dataset": "analytics_2"}}},
        )
        assert list(merged["properties"]) == ["b"]

    def test_none_layer_skipped(self):
        assert merge_layers(None, {"has_ecommerce": True}) == {"has_ecommerce": True}

    def test_bad_layer_named_in_error(self):
        with pytest.raises(ValidationError, match="property.yaml"):
            merge_layers({}, {"bogus": 1}, names=["client.yaml", "property.yaml"])
