"""Generator library modules.

This package contains the configuration resolution, SQL generation and
refresh planning building blocks.
"""

from ga4_foundry.lib.catalog import CATALOG_ARRAYS, ParameterCatalog, ParameterSpec, ParamType
from ga4_foundry.lib.config_loader import load_layer, load_layers, merge_layers
from ga4_foundry.lib.consolidation import ConsolidatedField, consolidate
from ga4_foundry.lib.env import expand_env_vars, expand_layer, load_env_file
from ga4_foundry.lib.errors import ConfigurationError, GeneratorError, ValidationError
from ga4_foundry.lib.extraction import (
    FieldExpression,
    extract,
    extract_items_array,
    extract_user_properties,
)
from ga4_foundry.lib.identity import (
    KEY_SEPARATOR,
    build_key_components,
    evaluate_key_components,
    render_key_concat,
)
from ga4_foundry.lib.logging import JSONFormatter, get_generator_logger, setup_logging
from ga4_foundry.lib.projection import (
    EventProjection,
    build_event_projection,
    page_session_key_ref,
    screen_field_refs,
)
from ga4_foundry.lib.refresh import (
    BackfillWindow,
    RefreshMode,
    RefreshPlan,
    RefreshPlanEntry,
    SourceKind,
    plan,
    plan_for,
)
from ga4_foundry.lib.resolver import ConfigMode, EffectiveConfig, resolve
from ga4_foundry.lib.settings import RunOverrides
from ga4_foundry.lib.sql import exclude_intraday_filter, replace_null_string, suffix_filter
from ga4_foundry.lib.streams import (
    StreamRef,
    StreamType,
    declare_sources,
    is_stream_included,
    resolve_streams,
    stream_filter,
)
from ga4_foundry.lib.traffic_source import traffic_source_fields

__all__ = [
    # Catalog
    "CATALOG_ARRAYS",
    "ParamType",
    "ParameterCatalog",
    "ParameterSpec",
    # Configuration
    "ConfigMode",
    "EffectiveConfig",
    "RunOverrides",
    "expand_env_vars",
    "expand_layer",
    "load_env_file",
    "load_layer",
    "load_layers",
    "merge_layers",
    "resolve",
    # Errors
    "ConfigurationError",
    "GeneratorError",
    "ValidationError",
    # Generation
    "ConsolidatedField",
    "EventProjection",
    "FieldExpression",
    "KEY_SEPARATOR",
    "build_event_projection",
    "build_key_components",
    "consolidate",
    "evaluate_key_components",
    "exclude_intraday_filter",
    "extract",
    "extract_items_array",
    "extract_user_properties",
    "page_session_key_ref",
    "render_key_concat",
    "replace_null_string",
    "screen_field_refs",
    "suffix_filter",
    "traffic_source_fields",
    # Streams
    "StreamRef",
    "StreamType",
    "declare_sources",
    "is_stream_included",
    "resolve_streams",
    "stream_filter",
    # Refresh
    "BackfillWindow",
    "RefreshMode",
    "RefreshPlan",
    "RefreshPlanEntry",
    "SourceKind",
    "plan",
    "plan_for",
    # Logging
    "JSONFormatter",
    "get_generator_logger",
    "setup_logging",
]
