"""Configuration resolution.

``resolve()`` merges the framework defaults, the client layer and any
property/stream layer into one immutable ``EffectiveConfig``. Every default
(backfill range, window lengths, fresh daily fallback) is applied here, so
downstream components only ever see fully resolved values and never read
ambient configuration.

Example:
    from ga4_foundry.lib.resolver import resolve
    from ga4_foundry.lib.settings import RunOverrides

    config = resolve(client_layer, overrides=RunOverrides())
    if config.consolidate:
        ...
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ga4_foundry.lib.catalog import ParameterCatalog
from ga4_foundry.lib.config_loader import merge_layers
from ga4_foundry.lib.defaults import DEFAULT_BACKFILL_LOOKBACK_MONTHS, framework_defaults
from ga4_foundry.lib.errors import ConfigurationError
from ga4_foundry.lib.refresh import BackfillWindow
from ga4_foundry.lib.settings import PropertyConfig, RunOverrides, parse_config_date
from ga4_foundry.lib.streams import StreamRef, StreamType, resolve_streams

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigMode",
    "EffectiveConfig",
    "months_before",
    "resolve",
]


class ConfigMode(Enum):
    SIMPLE = "simple"  # one dataset from the source_dataset setting
    ADVANCED = "advanced"  # explicit properties/streams tree


@dataclass(frozen=True)
class EffectiveConfig:
    """Read-only snapshot of the resolved configuration.

    ``consolidate`` is only ever True when the effective stream type is
    ``both``.
    """

    mode: ConfigMode
    effective_stream_type: StreamType
    consolidate: bool
    included_streams: Tuple[StreamRef, ...]
    rolling_window_days: int
    use_fresh_daily: bool
    backfill: BackfillWindow
    initial_load_days: int
    catalog: ParameterCatalog
    today: date
    properties: Optional[Mapping[str, PropertyConfig]] = None
    use_custom_traffic_source: bool = False
    has_ecommerce: bool = False
    transaction_events: Tuple[str, ...] = ()
    ecommerce_item_events: Tuple[str, ...] = ()
    source_project: Optional[str] = None
    source_dataset: Optional[str] = None
    destination_dataset: Optional[str] = None
    requested_consolidation: bool = field(default=False, compare=False)

    @property
    def is_advanced(self) -> bool:
        return self.mode == ConfigMode.ADVANCED

    @property
    def has_streams(self) -> bool:
        """False when advanced mode includes no stream: nothing to generate."""
        return not self.is_advanced or bool(self.included_streams)

    @property
    def property_names(self) -> List[str]:
        return list(self.properties or {})

    def for_property(self, property_name: str) -> "EffectiveConfig":
        """Narrow an advanced configuration to a single property.

        Each property is an independent unit of work: its stream type and
        consolidation flag are derived from its own streams only.

        Raises:
            ConfigurationError: if the property is not configured
        """
        if not self.is_advanced:
            raise ConfigurationError(
                "Per-property configuration requires advanced mode",
                property_name=property_name,
            )
        properties = self.properties or {}
        if property_name not in properties:
            raise ConfigurationError(
                f"Property {property_name} not found in properties configuration",
                property_name=property_name,
                suggestion=f"Known properties: {', '.join(sorted(properties)) or '(none)'}",
            )

        scoped = {property_name: properties[property_name]}
        resolution = resolve_streams(scoped, default_use_fresh_daily=self.use_fresh_daily)
        return replace(
            self,
            properties=MappingProxyType(scoped),
            included_streams=resolution.included_streams,
            effective_stream_type=resolution.effective_type,
            consolidate=_should_consolidate(
                resolution.effective_type, self.requested_consolidation
            ),
        )


def months_before(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def _should_consolidate(stream_type: StreamType, requested: bool) -> bool:
    return stream_type == StreamType.BOTH and requested


def _positive_int(merged: Mapping[str, Any], key: str) -> int:
    value = merged[key]
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{key} must be a positive integer", field=key, value=value)
    return value


def _resolve_backfill(merged: Mapping[str, Any], today: date) -> BackfillWindow:
    start = parse_config_date(merged.get("backfill_start_date"), field="backfill_start_date")
    end = parse_config_date(merged.get("backfill_end_date"), field="backfill_end_date")
    return BackfillWindow(
        active=bool(merged.get("force_full_backfill")),
        start_date=start or months_before(today, DEFAULT_BACKFILL_LOOKBACK_MONTHS),
        end_date=end or today - timedelta(days=1),
    )


def resolve(
    *layers: Optional[Mapping[str, Any]],
    overrides: Union[RunOverrides, Mapping[str, Any], None] = None,
    today: Optional[date] = None,
    layer_names: Optional[Sequence[str]] = None,
) -> EffectiveConfig:
    """Resolve layered configuration into one EffectiveConfig.

    Args:
        *layers: Client layer, then any property/stream layers (most
            specific last). Framework defaults are always applied first.
        overrides: Run-time overrides; set values win over every layer
        today: Run date used for date defaults (defaults to date.today())
        layer_names: Optional names for error messages

    Returns:
        Immutable EffectiveConfig

    Raises:
        ConfigurationError: on any invalid layer, catalog or property tree
    """
    today = today or date.today()

    if isinstance(overrides, RunOverrides):
        override_layer: Dict[str, Any] = overrides.as_layer()
    else:
        override_layer = dict(overrides or {})

    names = ["framework defaults"]
    names += list(layer_names) if layer_names else [f"layer {i + 1}" for i in range(len(layers))]
    names.append("run overrides")

    merged = merge_layers(framework_defaults(), *layers, override_layer, names=names)
    if override_layer:
        logger.info("Applied run overrides: %s", ", ".join(sorted(override_layer)))

    catalog = ParameterCatalog.from_config(merged)

    use_fresh_daily = bool(merged.get("use_fresh_daily"))
    requested = bool(merged.get("consolidate_web_app_params"))
    raw_properties = merged.get("properties")

    properties: Optional[Mapping[str, PropertyConfig]] = None
    if raw_properties is not None:
        mode = ConfigMode.ADVANCED
        properties = MappingProxyType(
            {name: PropertyConfig.model_validate(p) for name, p in raw_properties.items()}
        )
        resolution = resolve_streams(properties, default_use_fresh_daily=use_fresh_daily)
        stream_type = resolution.effective_type
        included = resolution.included_streams
    else:
        mode = ConfigMode.SIMPLE
        stream_type = StreamType(merged["data_stream_type"])
        included = ()

    consolidate = _should_consolidate(stream_type, requested)
    if requested and not consolidate:
        logger.info(
            "consolidate_web_app_params ignored: effective stream type is %s",
            stream_type.value,
        )

    config = EffectiveConfig(
        mode=mode,
        effective_stream_type=stream_type,
        consolidate=consolidate,
        included_streams=included,
        rolling_window_days=_positive_int(merged, "rolling_refresh_days"),
        use_fresh_daily=use_fresh_daily,
        backfill=_resolve_backfill(merged, today),
        initial_load_days=_positive_int(merged, "initial_load_days"),
        catalog=catalog,
        today=today,
        properties=properties,
        use_custom_traffic_source=bool(merged.get("use_custom_traffic_source_logic")),
        has_ecommerce=bool(merged.get("has_ecommerce")),
        transaction_events=tuple(merged.get("transaction_events") or ()),
        ecommerce_item_events=tuple(merged.get("ecommerce_item_events") or ()),
        source_project=merged.get("source_project"),
        source_dataset=merged.get("source_dataset"),
        destination_dataset=merged.get("destination_dataset"),
        requested_consolidation=requested,
    )

    logger.info(
        "Resolved configuration: mode=%s, stream_type=%s, consolidate=%s, streams=%d, backfill=%s",
        mode.value,
        stream_type.value,
        consolidate,
        len(included),
        config.backfill,
    )
    return config
