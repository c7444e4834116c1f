"""Tests for web/app parameter consolidation."""

import logging

from ga4_foundry.lib.catalog import ParamType, ParameterSpec
from ga4_foundry.lib.consolidation import consolidate, consolidated_names


def _spec(name, consolidated_name=None, param_type=ParamType.STRING):
    return ParameterSpec(name, param_type, consolidated_name)


class TestConsolidate:
    """Tests for consolidate()."""

    def test_disabled_returns_empty(self, catalog):
        assert consolidate(catalog.web_params, catalog.app_params, False) == []

    def test_one_field_per_shared_name(self, catalog):
        """Paired parameters produce exactly one field, web first."""
        fields = consolidate(catalog.web_params, catalog.app_params, True)

        by_name = {f.name: f for f in fields}
        assert [f.name for f in fields].count("screen_location") == 1
        assert by_name["screen_location"].sql == (
            "COALESCE(page_location, firebase_screen) AS screen_location"
        )

    def test_web_preferred_over_app(self):
        (field,) = consolidate([_spec("w", "unified")], [_spec("a", "unified")], True)
        assert field.sources == ["w", "a"]
        assert field.expression == "COALESCE(w, a)"

    def test_single_sided_names_pass_through(self, catalog):
        fields = {f.name: f for f in consolidate(catalog.web_params, catalog.app_params, True)}
        assert fields["screen_referrer"].expression == "COALESCE(page_referrer)"
        assert fields["build_number"].expression == "COALESCE(app_version_code)"
        assert fields["build_number"].type == ParamType.INT

    def test_unconsolidated_params_excluded(self, catalog):
        """Parameters without a consolidated name stay out."""
        fields = consolidate(catalog.web_params, catalog.app_params, True)
        sources = [s for f in fields for s in f.sources]
        assert "content_group" not in sources
        assert "firebase_screen_class" not in sources

    def test_first_declared_order(self, catalog):
        fields = consolidate(catalog.web_params, catalog.app_params, True)
        assert [f.name for f in fields] == ["screen_location", "screen_referrer", "build_number"]

    def test_no_consolidated_names(self):
        assert consolidate([_spec("w")], [_spec("a")], True) == []

    def test_type_mismatch_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ga4_foundry.lib.consolidation"):
            (field,) = consolidate(
                [_spec("w", "unified")], [_spec("a", "unified", ParamType.INT)], True
            )
        assert field.type == ParamType.STRING
        assert "web type wins" in caplog.text


class TestConsolidatedNames:
    """Tests for consolidated_names()."""

    def test_distinct_in_order(self):
        names = consolidated_names(
            [_spec("a", "x"), _spec("b", "y")],
            [_spec("c", "y"), _spec("d", "z"), _spec("e")],
        )
        assert names == ["x", "y", "z"]
