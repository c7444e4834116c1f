"""Refresh window planning for the daily events table.

Decides, for each calendar day in scope, which GA4 export partition to read.
The planner is stateless: every run re-derives its window from "today" and
the caller deletes the planned days before reinserting them, so each run is
idempotent over its own window.

Modes, highest priority first:
- backfill      explicit, out-of-band reload of [start, end]; finalized only
- initial load  destination table does not exist yet; last N days
- rolling       steady state; last N days absorb late-arriving events

Per-day source rule (initial load and rolling):
- the most recent day always reads the finalized ``events_*`` shard, because
  ``events_fresh_*`` never holds the current day
- every other day reads ``events_fresh_*`` when fresh daily tables are enabled
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

from ga4_foundry.lib.errors import ConfigurationError

if TYPE_CHECKING:
    from ga4_foundry.lib.resolver import EffectiveConfig
    from ga4_foundry.lib.streams import StreamRef

logger = logging.getLogger(__name__)

__all__ = [
    "BackfillWindow",
    "RefreshMode",
    "RefreshPlan",
    "RefreshPlanEntry",
    "SourceKind",
    "plan",
    "plan_for",
]


class SourceKind(Enum):
    """Which export partition a planned day is read from."""

    FRESH = "fresh"  # events_fresh_YYYYMMDD, low latency
    FINALIZED = "finalized"  # events_YYYYMMDD, authoritative
    EXCLUDED_INTRADAY = "excluded_intraday"  # only an intraday shard exists


class RefreshMode(Enum):
    BACKFILL = "backfill"
    INITIAL_LOAD = "initial_load"
    ROLLING = "rolling"


@dataclass(frozen=True)
class BackfillWindow:
    """Backfill switch and its fully resolved date range."""

    active: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def __str__(self) -> str:
        if not self.active:
            return "off"
        return f"{self.start_date} .. {self.end_date}"


@dataclass(frozen=True)
class RefreshPlanEntry:
    """One calendar day of a refresh plan."""

    calendar_day: date
    in_scope: bool
    source_kind: SourceKind

    @property
    def table_suffix(self) -> str:
        """Shard suffix of the day, e.g. 20250310."""
        return self.calendar_day.strftime("%Y%m%d")


@dataclass(frozen=True)
class RefreshPlan:
    """Ordered refresh plan, oldest day first."""

    mode: RefreshMode
    entries: Tuple[RefreshPlanEntry, ...]

    def __iter__(self) -> Iterator[RefreshPlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> RefreshPlanEntry:
        return self.entries[index]

    @property
    def in_scope_days(self) -> List[date]:
        return [e.calendar_day for e in self.entries if e.in_scope]

    @property
    def is_empty(self) -> bool:
        """True when no day is in scope: nothing to do, not an error."""
        return not self.in_scope_days

    def days_for(self, kind: SourceKind) -> List[date]:
        """In-scope days read from one source kind."""
        return [e.calendar_day for e in self.entries if e.in_scope and e.source_kind == kind]

    @property
    def delete_range(self) -> Optional[Tuple[date, date]]:
        """First and last destination day to delete before reinsertion."""
        days = self.in_scope_days
        if not days:
            return None
        return days[0], days[-1]


def _day_range(start: date, end: date) -> List[date]:
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def _validate_window(
    rolling_window_days: int,
    backfill: BackfillWindow,
    initial_load: bool,
    initial_load_days: int,
) -> None:
    """Reject invalid windows before any entry is produced."""
    if isinstance(rolling_window_days, bool) or not isinstance(rolling_window_days, int):
        raise ConfigurationError(
            "rolling_refresh_days must be an integer",
            field="rolling_refresh_days",
            value=rolling_window_days,
        )
    if rolling_window_days <= 0:
        raise ConfigurationError(
            "rolling_refresh_days must be positive",
            field="rolling_refresh_days",
            value=rolling_window_days,
        )
    if initial_load and initial_load_days <= 0:
        raise ConfigurationError(
            "initial_load_days must be positive",
            field="initial_load_days",
            value=initial_load_days,
        )
    if backfill.active:
        if backfill.start_date is None or backfill.end_date is None:
            raise ConfigurationError(
                "Active backfill needs a resolved start and end date",
                field="backfill",
                value=backfill,
                suggestion="Build the plan from a resolved EffectiveConfig",
            )
        if backfill.start_date > backfill.end_date:
            raise ConfigurationError(
                f"Backfill start {backfill.start_date} is after end {backfill.end_date}",
                field="backfill_start_date",
                value=backfill.start_date,
            )


def _trailing_window(today: date, days: int, use_fresh_daily: bool) -> Tuple[RefreshPlanEntry, ...]:
    window = _day_range(today - timedelta(days=days - 1), today)
    entries = []
    for day in window:
        if day == window[-1] or not use_fresh_daily:
            kind = SourceKind.FINALIZED
        else:
            kind = SourceKind.FRESH
        entries.append(RefreshPlanEntry(calendar_day=day, in_scope=True, source_kind=kind))
    return tuple(entries)


def _backfill_window(today: date, backfill: BackfillWindow) -> Tuple[RefreshPlanEntry, ...]:
    entries = []
    for day in _day_range(backfill.start_date, backfill.end_date):  # type: ignore[arg-type]
        if day >= today:
            # no finalized shard yet; intraday shards are never read
            entries.append(
                RefreshPlanEntry(
                    calendar_day=day, in_scope=False, source_kind=SourceKind.EXCLUDED_INTRADAY
                )
            )
        else:
            entries.append(
                RefreshPlanEntry(calendar_day=day, in_scope=True, source_kind=SourceKind.FINALIZED)
            )
    return tuple(entries)


def plan(
    today: date,
    rolling_window_days: int,
    use_fresh_daily: bool,
    backfill: Optional[BackfillWindow] = None,
    initial_load: bool = False,
    initial_load_days: int = 7,
) -> RefreshPlan:
    """Plan which days to (re)materialize and where to read them from.

    A backfill covers every day of ``[start, end]`` from the finalized
    tables, except days on or after ``today``: those have no finalized
    shard yet and are kept in the plan as ``in_scope=False`` with
    ``SourceKind.EXCLUDED_INTRADAY``. They are never read or deleted, so a
    window lying entirely in the future gives an empty plan.

    Args:
        today: Run date
        rolling_window_days: Trailing days reprocessed on every run
        use_fresh_daily: Whether the stream's fresh daily tables may be read
        backfill: Resolved backfill window (highest priority when active)
        initial_load: True when the destination table does not exist yet
        initial_load_days: Trailing days loaded on the first run

    Returns:
        RefreshPlan with entries ordered oldest day first

    Raises:
        ConfigurationError: if the window is invalid; no plan is produced

    Example:
        >>> p = plan(date(2025, 3, 10), 3, True)
        >>> [(e.table_suffix, e.source_kind.value) for e in p]
        [('20250308', 'fresh'), ('20250309', 'fresh'), ('20250310', 'finalized')]
    """
    backfill = backfill or BackfillWindow()
    _validate_window(rolling_window_days, backfill, initial_load, initial_load_days)

    if backfill.active:
        mode = RefreshMode.BACKFILL
        entries = _backfill_window(today, backfill)
    elif initial_load:
        mode = RefreshMode.INITIAL_LOAD
        entries = _trailing_window(today, initial_load_days, use_fresh_daily)
    else:
        mode = RefreshMode.ROLLING
        entries = _trailing_window(today, rolling_window_days, use_fresh_daily)

    result = RefreshPlan(mode=mode, entries=entries)
    if result.is_empty:
        logger.warning("Refresh plan (%s) has no day in scope", mode.value)
    else:
        first, last = result.delete_range  # type: ignore[misc]
        logger.info(
            "Refresh plan: mode=%s, %d day(s) in scope (%s .. %s)",
            mode.value,
            len(result.in_scope_days),
            first,
            last,
        )
    return result


def plan_for(
    config: "EffectiveConfig",
    *,
    initial_load: bool = False,
    today: Optional[date] = None,
    stream: Optional["StreamRef"] = None,
) -> RefreshPlan:
    """Plan from a resolved configuration.

    Args:
        config: Resolved configuration (all defaults already applied)
        initial_load: True when the destination table does not exist yet
        today: Run date; defaults to the date the config was resolved for
        stream: Plan for one stream, using its own fresh daily flag
    """
    use_fresh = stream.use_fresh_daily if stream is not None else config.use_fresh_daily
    return plan(
        today or config.today,
        config.rolling_window_days,
        use_fresh,
        config.backfill,
        initial_load=initial_load,
        initial_load_days=config.initial_load_days,
    )
