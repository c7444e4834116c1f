"""Property and data stream inclusion (advanced mode).

Advanced mode declares several GA4 properties, each with its own streams.
This module enumerates the included streams, derives the effective stream
type from them, and renders the per-property stream filter and the source
table declarations.

Stream type rules:
- both    at least one included web stream and one included app stream
- web/app only that kind of stream is included
- both    no stream is included at all (callers treat zero included
          streams as "nothing to generate")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Tuple

from ga4_foundry.lib.errors import ConfigurationError
from ga4_foundry.lib.settings import PropertyConfig
from ga4_foundry.lib.sql import quote_literal

if TYPE_CHECKING:
    from ga4_foundry.lib.resolver import EffectiveConfig

logger = logging.getLogger(__name__)

__all__ = [
    "SourceDeclaration",
    "StreamRef",
    "StreamResolution",
    "StreamType",
    "declare_sources",
    "included_stream_ids",
    "is_stream_included",
    "resolve_streams",
    "stream_filter",
]

EVENTS_TABLE = "events_*"
FRESH_EVENTS_TABLE = "events_fresh_*"


class StreamType(Enum):
    """Which platforms the generated SQL must cover."""

    WEB = "web"
    APP = "app"
    BOTH = "both"

    @property
    def includes_web(self) -> bool:
        return self in (StreamType.WEB, StreamType.BOTH)

    @property
    def includes_app(self) -> bool:
        return self in (StreamType.APP, StreamType.BOTH)


@dataclass(frozen=True)
class StreamRef:
    """One included data stream, enumerated fresh on every resolution."""

    property_name: str
    stream_id: str
    stream_type: StreamType
    source_dataset: str
    use_fresh_daily: bool
    include: bool = True


@dataclass(frozen=True)
class StreamResolution:
    """Result of enumerating the configured properties."""

    included_streams: Tuple[StreamRef, ...]
    effective_type: StreamType

    @property
    def is_empty(self) -> bool:
        return not self.included_streams


@dataclass(frozen=True)
class SourceDeclaration:
    """A source table the warehouse layer must declare."""

    database: Optional[str]
    schema: Optional[str]
    name: str

    @property
    def reference(self) -> str:
        parts = [p for p in (self.database, self.schema, self.name) if p]
        return "`" + ".".join(parts) + "`"


def _as_property(name: str, raw: Any) -> PropertyConfig:
    if isinstance(raw, PropertyConfig):
        return raw
    try:
        return PropertyConfig.model_validate(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid configuration for property '{name}': {e}",
            property_name=name,
        ) from e


def resolve_streams(
    properties: Mapping[str, Any],
    *,
    default_use_fresh_daily: bool = False,
) -> StreamResolution:
    """Enumerate included streams and derive the effective stream type.

    Args:
        properties: Property name -> PropertyConfig (or its raw mapping)
        default_use_fresh_daily: Client-level fresh daily flag for streams
            that do not set their own

    Returns:
        StreamResolution with streams in declaration order
    """
    streams: List[StreamRef] = []

    for property_name, raw in properties.items():
        prop = _as_property(property_name, raw)
        for stream_id, stream in prop.streams.items():
            if not stream.include:
                logger.debug("Excluding stream %s of property %s", stream_id, property_name)
                continue
            use_fresh = (
                stream.use_fresh_daily
                if stream.use_fresh_daily is not None
                else default_use_fresh_daily
            )
            streams.append(
                StreamRef(
                    property_name=property_name,
                    stream_id=stream_id,
                    stream_type=StreamType(stream.stream_type),
                    source_dataset=prop.source_dataset,
                    use_fresh_daily=use_fresh,
                )
            )
            logger.debug(
                "Including %s stream %s of property %s (fresh_daily=%s)",
                stream.stream_type,
                stream_id,
                property_name,
                use_fresh,
            )

    has_web = any(s.stream_type == StreamType.WEB for s in streams)
    has_app = any(s.stream_type == StreamType.APP for s in streams)

    if has_web and not has_app:
        effective = StreamType.WEB
    elif has_app and not has_web:
        effective = StreamType.APP
    else:
        effective = StreamType.BOTH

    if not streams:
        logger.warning("No data streams are included; nothing will be generated")

    return StreamResolution(included_streams=tuple(streams), effective_type=effective)


def _require_property(config: "EffectiveConfig", property_name: str) -> PropertyConfig:
    properties = config.properties or {}
    if property_name not in properties:
        known = ", ".join(sorted(properties)) or "(none)"
        raise ConfigurationError(
            f"Property {property_name} not found in properties configuration",
            property_name=property_name,
            suggestion=f"Known properties: {known}",
        )
    return properties[property_name]


def included_stream_ids(config: "EffectiveConfig", property_name: str) -> List[str]:
    """Ids of the included streams of one property, in declaration order."""
    prop = _require_property(config, property_name)
    return [stream_id for stream_id, s in prop.streams.items() if s.include]


def is_stream_included(config: "EffectiveConfig", property_name: str, stream_id: str) -> bool:
    """Inclusion predicate for rows of one property.

    Simple mode includes everything.
    """
    if not config.is_advanced:
        return True
    return str(stream_id) in included_stream_ids(config, property_name)


def stream_filter(config: "EffectiveConfig", property_name: Optional[str] = None) -> str:
    """Render the SQL predicate keeping rows of a property's included streams.

    Examples:
        simple mode                 -> 1=1
        no included stream          -> 1=0
        one included stream         -> stream_id = '1234567890'
        several included streams    -> stream_id IN ('1', '2')
    """
    if not config.is_advanced:
        return "1=1"
    if property_name is None:
        raise ConfigurationError(
            "A property name is required to filter streams in advanced mode",
            field="property_name",
        )

    ids = [quote_literal(stream_id) for stream_id in included_stream_ids(config, property_name)]
    if not ids:
        return "1=0"
    if len(ids) == 1:
        return f"stream_id = {ids[0]}"
    return f"stream_id IN ({', '.join(ids)})"


def declare_sources(config: "EffectiveConfig") -> List[SourceDeclaration]:
    """List the GA4 export tables the generated SQL reads.

    ``events_*`` is always declared; ``events_fresh_*`` only where some
    stream (or the simple-mode flag) reads fresh daily tables.
    """
    declarations: List[SourceDeclaration] = []

    if config.is_advanced:
        for property_name, prop in (config.properties or {}).items():
            declarations.append(
                SourceDeclaration(config.source_project, prop.source_dataset, EVENTS_TABLE)
            )
            uses_fresh = any(
                s.use_fresh_daily if s.use_fresh_daily is not None else config.use_fresh_daily
                for s in prop.streams.values()
                if s.include
            )
            if uses_fresh:
                declarations.append(
                    SourceDeclaration(
                        config.source_project, prop.source_dataset, FRESH_EVENTS_TABLE
                    )
                )
            logger.debug("Declared sources for property %s (fresh=%s)", property_name, uses_fresh)
        return declarations

    declarations.append(SourceDeclaration(config.source_project, config.source_dataset, EVENTS_TABLE))
    if config.use_fresh_daily:
        declarations.append(
            SourceDeclaration(config.source_project, config.source_dataset, FRESH_EVENTS_TABLE)
        )
    return declarations
