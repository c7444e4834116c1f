"""Tests for refresh window planning.

These tests cover the three planning modes:
- Rolling refresh: trailing window, newest day finalized
- Initial load: trailing window sized by initial_load_days
- Backfill: explicit range, finalized only, never today or later
"""

from __future__ import annotations

from datetime import date

import pytest

from ga4_foundry.lib.errors import ConfigurationError
from ga4_foundry.lib.refresh import (
    BackfillWindow,
    RefreshMode,
    RefreshPlan,
    RefreshPlanEntry,
    SourceKind,
    plan,
    plan_for,
)
from ga4_foundry.lib.resolver import resolve

TODAY = date(2025, 3, 10)


def _kinds(p: RefreshPlan):
    return [(e.calendar_day, e.source_kind) for e in p]


class TestRollingMode:
    """Tests for the steady-state rolling window."""

    def test_three_day_window_with_fresh(self) -> None:
        """Newest day reads finalized, older days read fresh."""
        p = plan(TODAY, 3, True)

        assert p.mode == RefreshMode.ROLLING
        assert _kinds(p) == [
            (date(2025, 3, 8), SourceKind.FRESH),
            (date(2025, 3, 9), SourceKind.FRESH),
            (date(2025, 3, 10), SourceKind.FINALIZED),
        ]
        assert all(e.in_scope for e in p)

    def test_without_fresh_everything_finalized(self) -> None:
        p = plan(TODAY, 3, False)
        assert {e.source_kind for e in p} == {SourceKind.FINALIZED}

    def test_one_day_window(self) -> None:
        p = plan(TODAY, 1, True)
        assert _kinds(p) == [(TODAY, SourceKind.FINALIZED)]

    def test_crosses_month_boundary(self) -> None:
        p = plan(date(2025, 3, 1), 3, False)
        assert p.in_scope_days == [date(2025, 2, 27), date(2025, 2, 28), date(2025, 3, 1)]

    def test_ordered_oldest_first(self) -> None:
        days = plan(TODAY, 10, True).in_scope_days
        assert days == sorted(days)
        assert len(set(days)) == 10

    def test_stateless(self) -> None:
        """Re-planning the same day gives the same plan."""
        assert plan(TODAY, 3, True) == plan(TODAY, 3, True)

    @pytest.mark.parametrize("days", [0, -1])
    def test_non_positive_window(self, days) -> None:
        with pytest.raises(ConfigurationError, match="rolling_refresh_days"):
            plan(TODAY, days, True)

    def test_non_integer_window(self) -> None:
        with pytest.raises(ConfigurationError, match="integer"):
            plan(TODAY, 2.5, True)  # type: ignore[arg-type]


class TestInitialLoadMode:
    """Tests for the first load of a missing destination table."""

    def test_uses_initial_load_days(self) -> None:
        p = plan(TODAY, 3, True, initial_load=True)
        assert p.mode == RefreshMode.INITIAL_LOAD
        assert len(p) == 7
        assert p[0].calendar_day == date(2025, 3, 4)
        assert p[-1].source_kind == SourceKind.FINALIZED
        assert all(e.source_kind == SourceKind.FRESH for e in p.entries[:-1])

    def test_custom_length(self) -> None:
        p = plan(TODAY, 3, False, initial_load=True, initial_load_days=14)
        assert len(p) == 14

    def test_non_positive_length(self) -> None:
        with pytest.raises(ConfigurationError, match="initial_load_days"):
            plan(TODAY, 3, False, initial_load=True, initial_load_days=0)


class TestBackfillMode:
    """Tests for explicit backfills."""

    def test_three_days_all_finalized(self) -> None:
        """Backfill ignores the rolling window and the fresh flag."""
        window = BackfillWindow(active=True, start_date=date(2024, 1, 1), end_date=date(2024, 1, 3))
        for rolling, fresh in [(3, True), (30, False), (1, True)]:
            p = plan(TODAY, rolling, fresh, window)
            assert p.mode == RefreshMode.BACKFILL
            assert _kinds(p) == [
                (date(2024, 1, 1), SourceKind.FINALIZED),
                (date(2024, 1, 2), SourceKind.FINALIZED),
                (date(2024, 1, 3), SourceKind.FINALIZED),
            ]

    def test_wins_over_initial_load(self) -> None:
        window = BackfillWindow(active=True, start_date=date(2024, 1, 1), end_date=date(2024, 1, 1))
        assert plan(TODAY, 3, True, window, initial_load=True).mode == RefreshMode.BACKFILL

    def test_inactive_window_ignored(self) -> None:
        window = BackfillWindow(active=False, start_date=date(2024, 1, 1), end_date=date(2024, 1, 3))
        assert plan(TODAY, 3, True, window).mode == RefreshMode.ROLLING

    def test_today_and_later_excluded(self) -> None:
        """Days without a finalized shard are planned but never read."""
        window = BackfillWindow(active=True, start_date=date(2025, 3, 9), end_date=date(2025, 3, 11))
        p = plan(TODAY, 3, True, window)
        assert [e.in_scope for e in p] == [True, False, False]
        assert p[1].source_kind == SourceKind.EXCLUDED_INTRADAY
        assert p.in_scope_days == [date(2025, 3, 9)]

    def test_entirely_future_window_is_empty(self) -> None:
        window = BackfillWindow(active=True, start_date=date(2025, 4, 1), end_date=date(2025, 4, 2))
        p = plan(TODAY, 3, True, window)
        assert p.is_empty
        assert p.delete_range is None

    def test_start_after_end(self) -> None:
        window = BackfillWindow(active=True, start_date=date(2024, 1, 5), end_date=date(2024, 1, 1))
        with pytest.raises(ConfigurationError, match="after end"):
            plan(TODAY, 3, True, window)

    def test_unresolved_dates(self) -> None:
        with pytest.raises(ConfigurationError, match="resolved start and end"):
            plan(TODAY, 3, True, BackfillWindow(active=True))


class TestRefreshPlan:
    """Tests for RefreshPlan helpers."""

    def test_delete_range(self) -> None:
        assert plan(TODAY, 3, True).delete_range == (date(2025, 3, 8), TODAY)

    def test_days_for(self) -> None:
        p = plan(TODAY, 3, True)
        assert p.days_for(SourceKind.FRESH) == [date(2025, 3, 8), date(2025, 3, 9)]
        assert p.days_for(SourceKind.FINALIZED) == [TODAY]

    def test_table_suffix(self) -> None:
        entry = RefreshPlanEntry(date(2025, 3, 8), True, SourceKind.FRESH)
        assert entry.table_suffix == "20250308"


class TestPlanFor:
    """Tests for planning from a resolved configuration."""

    def test_uses_resolved_values(self) -> None:
        config = resolve({"rolling_refresh_days": 5, "use_fresh_daily": True}, today=TODAY)
        p = plan_for(config)
        assert len(p) == 5
        assert p[-1].calendar_day == TODAY

    def test_default_backfill_range(self) -> None:
        """Backfill defaults run from 13 months ago through yesterday."""
        config = resolve({"force_full_backfill": True}, today=TODAY)
        p = plan_for(config)
        assert p.mode == RefreshMode.BACKFILL
        assert p[0].calendar_day == date(2024, 2, 10)
        assert p[-1].calendar_day == date(2025, 3, 9)
        assert all(e.in_scope and e.source_kind == SourceKind.FINALIZED for e in p)

    def test_per_stream_fresh_flag(self, advanced_layer) -> None:
        config = resolve(advanced_layer, today=TODAY)
        web, app, _ = config.included_streams
        assert plan_for(config, stream=web).days_for(SourceKind.FRESH)
        assert not plan_for(config, stream=app).days_for(SourceKind.FRESH)

    def test_initial_load(self) -> None:
        config = resolve({"initial_load_days": 4}, today=TODAY)
        assert len(plan_for(config, initial_load=True)) == 4

    def test_explicit_today(self) -> None:
        config = resolve({}, today=TODAY)
        assert plan_for(config, today=date(2025, 4, 1))[-1].calendar_day == date(2025, 4, 1)

    def test_backfill_stops_before_today(self) -> None:
        """Days from the run date on are planned but not in scope."""
        config = resolve(
            {
                "force_full_backfill": True,
                "backfill_start_date": "20240101",
                "backfill_end_date": "20240103",
            },
            today=date(2024, 1, 2),
        )
        p = plan_for(config)
        assert p.in_scope_days == [date(2024, 1, 1)]
        assert [e.source_kind for e in p][1:] == [SourceKind.EXCLUDED_INTRADAY] * 2
        assert p.delete_range == (date(2024, 1, 1), date(2024, 1, 1))
