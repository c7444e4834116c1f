"""Deterministic event identity key.

The event key is a delimiter-joined concatenation of event attributes that
the caller hashes into a fixed-width identifier. Component order defines the
hash domain:

    user_id, session id, event_timestamp, event_name,
    server timestamp offset, batch index, bundle sequence id,
    core params, web/app params, custom params

Changing the order (or the catalog) changes every key already written for
previously processed events; treat it as a breaking change.

Null safety: event_timestamp and event_name are always present and cast
verbatim. Every other component is coalesced to '' so one null parameter
never nulls out the whole CONCAT.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping

from ga4_foundry.lib.catalog import ParamType, ParameterSpec
from ga4_foundry.lib.consolidation import consolidate

if TYPE_CHECKING:
    from ga4_foundry.lib.resolver import EffectiveConfig

logger = logging.getLogger(__name__)

__all__ = [
    "KEY_SEPARATOR",
    "KeyComponent",
    "build_key_components",
    "evaluate_key_components",
    "key_components",
    "render_key_concat",
]

KEY_SEPARATOR = "-"


@dataclass(frozen=True)
class KeyComponent:
    """One identity key component and how it is rendered."""

    column: str
    nullable: bool = True
    is_string: bool = False

    @property
    def sql(self) -> str:
        value = self.column if self.is_string else f"CAST({self.column} AS STRING)"
        if not self.nullable:
            return value
        return f"COALESCE({value}, '')"

    def evaluate(self, record: Mapping[str, Any]) -> str:
        """Apply the same rendering rule to an in-memory record."""
        value = record.get(self.column)
        if value is None:
            if not self.nullable:
                raise ValueError(f"Identity key column '{self.column}' is required but missing")
            return ""
        return str(value)


_LEADING_COMPONENTS = (
    KeyComponent("user_id", is_string=True),
    KeyComponent("ga_session_id"),
    KeyComponent("event_timestamp", nullable=False),
    KeyComponent("event_name", nullable=False, is_string=True),
    # dedup diagnostics: tell apart events sharing a timestamp
    KeyComponent("event_server_timestamp_offset"),
    KeyComponent("batch_event_index"),
    KeyComponent("event_bundle_sequence_id"),
)


def _param_components(params: Iterable[ParameterSpec]) -> List[KeyComponent]:
    return [KeyComponent(spec.name) for spec in params]


def key_components(config: "EffectiveConfig") -> List[KeyComponent]:
    """Ordered identity key components for a resolved configuration."""
    catalog = config.catalog
    stream_type = config.effective_stream_type

    components = list(_LEADING_COMPONENTS)
    components += _param_components(catalog.core_params)

    if config.consolidate:
        components += _param_components(s for s in catalog.web_params if not s.consolidated_name)
        components += _param_components(s for s in catalog.app_params if not s.consolidated_name)
        for merged in consolidate(catalog.web_params, catalog.app_params, True):
            components.append(
                KeyComponent(merged.name, is_string=merged.type == ParamType.STRING)
            )
    else:
        if stream_type.includes_web:
            components += _param_components(catalog.web_params)
        if stream_type.includes_app:
            components += _param_components(catalog.app_params)

    components += _param_components(catalog.custom_params)
    return components


def build_key_components(config: "EffectiveConfig") -> List[str]:
    """Ordered SQL value expressions of the identity key.

    Two calls with the same configuration return identical lists.
    """
    components = [c.sql for c in key_components(config)]
    logger.debug("Identity key has %d component(s)", len(components))
    return components


def render_key_concat(components: Iterable[str]) -> str:
    """Join key components with the separator into one CONCAT expression.

    Example:
        >>> render_key_concat(["COALESCE(user_id, '')", "event_name"])
        "CONCAT(COALESCE(user_id, ''), '-', event_name)"
    """
    return "CONCAT(" + f", '{KEY_SEPARATOR}', ".join(components) + ")"


def evaluate_key_components(config: "EffectiveConfig", record: Mapping[str, Any]) -> List[str]:
    """Render the key components of one event record held in memory.

    Missing or null optional values become ''. Raises ValueError if
    event_timestamp or event_name is missing.
    """
    return [c.evaluate(record) for c in key_components(config)]
