"""Small SQL text helpers shared by the generators."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List

from ga4_foundry.lib.errors import ConfigurationError

__all__ = [
    "exclude_intraday_filter",
    "quote_literal",
    "replace_null_string",
    "suffix_filter",
]

NOT_SET = "(not set)"


def quote_literal(value: str) -> str:
    """Single-quoted SQL string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def replace_null_string(expr: str) -> str:
    """Replace NULL and '' with '(not set)'.

    Example:
        >>> replace_null_string("device.category")
        "IF(device.category IS NULL OR device.category = '', '(not set)', device.category)"
    """
    return f"IF({expr} IS NULL OR {expr} = '', '{NOT_SET}', {expr})"


def exclude_intraday_filter() -> str:
    """Predicate dropping the intraday shard family from a wildcard read."""
    return "_TABLE_SUFFIX NOT LIKE 'intraday%'"


def suffix_filter(days: Iterable[date]) -> str:
    """``_TABLE_SUFFIX`` predicate reading exactly the given days.

    Contiguous days render as a BETWEEN; anything else as an IN list.

    Raises:
        ConfigurationError: if no day is given
    """
    ordered: List[date] = sorted(set(days))
    if not ordered:
        raise ConfigurationError("Cannot build a partition filter for zero days")

    suffixes = [d.strftime("%Y%m%d") for d in ordered]
    contiguous = (ordered[-1] - ordered[0]).days == len(ordered) - 1

    if len(suffixes) == 1:
        return f"_TABLE_SUFFIX = '{suffixes[0]}'"
    if contiguous:
        return f"_TABLE_SUFFIX BETWEEN '{suffixes[0]}' AND '{suffixes[-1]}'"
    return "_TABLE_SUFFIX IN (" + ", ".join(f"'{s}'" for s in suffixes) + ")"
