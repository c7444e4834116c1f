"""CLI entry point for resolving configuration and planning refreshes.

Usage:
    python -m ga4_foundry validate --config client.yaml
    python -m ga4_foundry plan --config client.yaml --today 2025-03-10
    python -m ga4_foundry plan --config client.yaml --initial-load --json
    python -m ga4_foundry render --config client.yaml --what key
    python -m ga4_foundry explain --config client.yaml --config property.yaml

Layers are applied in the order given (least specific first). Run-time
overrides come from GA4_* environment variables, a .env file, or --var:

    python -m ga4_foundry plan --config client.yaml \\
        --var force_full_backfill=true --var backfill_start_date=20240101
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from ga4_foundry.lib.config_loader import load_layers
from ga4_foundry.lib.env import load_env_file
from ga4_foundry.lib.errors import ConfigurationError, ValidationError
from ga4_foundry.lib.extraction import extract_items_array
from ga4_foundry.lib.identity import build_key_components, render_key_concat
from ga4_foundry.lib.logging import get_generator_logger, setup_logging
from ga4_foundry.lib.projection import build_event_projection, page_session_key_ref, screen_field_refs
from ga4_foundry.lib.refresh import RefreshPlan, SourceKind, plan_for
from ga4_foundry.lib.resolver import EffectiveConfig, resolve
from ga4_foundry.lib.settings import RunOverrides, parse_config_date
from ga4_foundry.lib.sql import exclude_intraday_filter, suffix_filter
from ga4_foundry.lib.streams import StreamRef, declare_sources, stream_filter
from ga4_foundry.lib.traffic_source import (
    traffic_source_aggregate_sql,
    traffic_source_column_list,
    traffic_source_select_sql,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2

RENDER_SECTIONS = ("projection", "items", "key", "streams", "sources", "traffic")


def parse_vars(pairs: Optional[Sequence[str]]) -> Dict[str, str]:
    """Parse repeated KEY=VALUE flags into override values.

    Raises:
        ConfigurationError: on a malformed pair or an unknown override name
    """
    values: Dict[str, str] = {}
    for pair in pairs or ():
        if "=" not in pair:
            raise ConfigurationError(
                f"Invalid --var '{pair}'",
                suggestion="Use KEY=VALUE, e.g. --var force_full_backfill=true",
            )
        key, value = pair.split("=", 1)
        key = key.strip().lower()
        if key not in RunOverrides.model_fields:
            raise ConfigurationError(
                f"Unknown run variable '{key}'",
                field="--var",
                value=key,
                suggestion=f"Valid names: {', '.join(sorted(RunOverrides.model_fields))}",
            )
        values[key] = value.strip()
    return values


def build_overrides(pairs: Optional[Sequence[str]]) -> RunOverrides:
    """Run overrides from the environment, with --var values taking precedence."""
    values = parse_vars(pairs)
    try:
        return RunOverrides(**values)
    except PydanticValidationError as e:
        issues = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ValidationError("Invalid run variables", issues=issues) from e


def load_config(args: argparse.Namespace) -> EffectiveConfig:
    layers = load_layers(args.config)
    today = parse_config_date(args.today, field="--today") if args.today else None
    config = resolve(
        *layers,
        overrides=build_overrides(args.vars),
        today=today,
        layer_names=list(args.config),
    )
    if args.property:
        config = config.for_property(args.property)
    return config


def _plan_targets(config: EffectiveConfig) -> List[Tuple[str, Optional[StreamRef]]]:
    """One plan per included stream in advanced mode, a single plan otherwise."""
    if not config.is_advanced:
        return [(config.source_dataset or "(simple)", None)]
    return [(f"{s.property_name}/{s.stream_id}", s) for s in config.included_streams]


def _plan_to_dict(label: str, plan: RefreshPlan) -> Dict[str, Any]:
    return {
        "target": label,
        "mode": plan.mode.value,
        "entries": [
            {
                "calendar_day": e.calendar_day.isoformat(),
                "in_scope": e.in_scope,
                "source_kind": e.source_kind.value,
            }
            for e in plan
        ],
    }


def validate_command(args: argparse.Namespace) -> int:
    config = load_config(args)

    print()
    print("=" * 60)
    print("CONFIGURATION VALIDATION")
    print("=" * 60)
    print(f"  Mode:          {config.mode.value}")
    print(f"  Stream type:   {config.effective_stream_type.value}")
    print(f"  Consolidate:   {config.consolidate}")
    if config.is_advanced:
        print(f"  Streams:       {len(config.included_streams)} included")
    for array, specs in config.catalog.arrays():
        print(f"  {array + ':':<15}{len(specs)} parameter(s)")
    print()
    if not config.has_streams:
        print("RESULT: PASSED - no stream is included, nothing to generate")
    else:
        print("RESULT: PASSED")
    return EXIT_OK


def plan_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    run_logger = get_generator_logger("ga4_foundry.plan")
    run_logger.set_context(run_date=config.today.isoformat())

    results = []
    for label, stream in _plan_targets(config):
        run_logger.set_context(target=label)
        refresh_plan = plan_for(config, initial_load=args.initial_load, stream=stream)
        run_logger.info("Planned %d day(s) in scope", len(refresh_plan.in_scope_days))
        results.append((label, refresh_plan))
    run_logger.clear_context()

    if args.json:
        print(json.dumps([_plan_to_dict(label, p) for label, p in results], indent=2))
        return EXIT_OK

    if not results:
        print("No stream is included; nothing to plan.")
        return EXIT_OK

    for label, refresh_plan in results:
        print()
        print(f"{label}: {refresh_plan.mode.value}")
        print("-" * 40)
        for entry in refresh_plan:
            scope = "in scope" if entry.in_scope else "skipped"
            print(f"  {entry.calendar_day.isoformat()}  {entry.source_kind.value:<18}  {scope}")
        if refresh_plan.is_empty:
            print("  (no day in scope)")
        else:
            first, last = refresh_plan.delete_range  # type: ignore[misc]
            print(f"  delete + reload: {first.isoformat()} .. {last.isoformat()}")
            fresh = len(refresh_plan.days_for(SourceKind.FRESH))
            finalized = len(refresh_plan.days_for(SourceKind.FINALIZED))
            print(f"  reads: {fresh} fresh, {finalized} finalized")
            print(f"  filter: {suffix_filter(refresh_plan.in_scope_days)}")
    print()
    return EXIT_OK


def render_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    sections = args.what or list(RENDER_SECTIONS)

    if not config.has_streams:
        print("-- no stream is included; nothing to generate")
        return EXIT_OK

    for section in sections:
        print(f"-- {section}")
        if section == "projection":
            print(build_event_projection(config).render())
        elif section == "items":
            print(extract_items_array(config.catalog))
        elif section == "key":
            print(f"TO_HEX(MD5({render_key_concat(build_key_components(config))}))")
        elif section == "streams":
            for name in config.property_names or [None]:
                print(f"{name or '(simple)'}: {stream_filter(config, name)}")
        elif section == "sources":
            for source in declare_sources(config):
                print(source.reference)
            print(exclude_intraday_filter())
        elif section == "traffic":
            print(traffic_source_select_sql(config))
            print("-- traffic columns")
            print(traffic_source_column_list(config))
            print("-- traffic aggregate")
            print(traffic_source_aggregate_sql(config))
        print()
    return EXIT_OK


def explain_command(args: argparse.Namespace) -> int:
    config = load_config(args)
    refs = screen_field_refs(config)

    print()
    print("=" * 60)
    print("GENERATION EXPLANATION")
    print("=" * 60)
    print(f"Run Date: {config.today.isoformat()}")
    print(f"Mode:     {config.mode.value}")
    print()
    print("STREAMS:")
    print("-" * 40)
    print(f"  Effective type: {config.effective_stream_type.value}")
    print(f"  Consolidate:    {config.consolidate}")
    for stream in config.included_streams:
        print(
            f"  {stream.property_name}/{stream.stream_id}: {stream.stream_type.value}"
            f" (fresh daily: {stream.use_fresh_daily})"
        )
    print()
    print("FIELDS:")
    print("-" * 40)
    print(f"  Projection:   {len(build_event_projection(config).column_names)} column(s)")
    print(f"  Key parts:    {len(build_key_components(config))}")
    print(f"  Location ref: {refs.location}")
    print(f"  Session key:  {page_session_key_ref(config)}")
    if config.consolidate:
        for spec in config.catalog.web_params + config.catalog.app_params:
            consolidated_name = config.catalog.consolidated_name_for(spec.name)
            if consolidated_name:
                print(f"  {spec.name} -> {consolidated_name}")
    print()
    print("REFRESH:")
    print("-" * 40)
    print(f"  Rolling window: {config.rolling_window_days} day(s)")
    print(f"  Initial load:   {config.initial_load_days} day(s)")
    print(f"  Backfill:       {config.backfill}")
    print()
    print("=" * 60)
    return EXIT_OK


COMMANDS = {
    "validate": validate_command,
    "plan": plan_command,
    "render": render_command,
    "explain": explain_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ga4-foundry",
        description="Resolve GA4 event configuration, render SQL fragments and plan refreshes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Check a client configuration
    ga4-foundry validate --config client.yaml

    # Show today's rolling refresh plan
    ga4-foundry plan --config client.yaml

    # One-off backfill without editing the configuration
    ga4-foundry plan --config client.yaml --var force_full_backfill=true

    # Render the identity key expression
    ga4-foundry render --config client.yaml --what key
        """,
    )
    parser.add_argument("command", choices=sorted(COMMANDS), help="Command to run")
    parser.add_argument(
        "--config",
        "-c",
        action="append",
        required=True,
        help="Configuration layer (YAML); repeat, least specific first",
    )
    parser.add_argument(
        "--var",
        action="append",
        dest="vars",
        metavar="KEY=VALUE",
        help="Run-time override (e.g. force_full_backfill=true)",
    )
    parser.add_argument("--today", help="Run date (YYYY-MM-DD or YYYYMMDD, default: today)")
    parser.add_argument("--property", help="Limit to one property (advanced mode)")
    parser.add_argument(
        "--initial-load",
        action="store_true",
        help="Plan the first load of a destination table that does not exist yet",
    )
    parser.add_argument("--json", action="store_true", help="Print the plan as JSON")
    parser.add_argument(
        "--what",
        action="append",
        choices=RENDER_SECTIONS,
        help="Section to render (repeatable, default: all)",
    )
    parser.add_argument("--env-file", help="Load environment variables from this .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument("--log-file", help="Write logs to a file in addition to console")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, json_format=args.json_log, log_file=args.log_file)
    load_env_file(args.env_file)

    try:
        return COMMANDS[args.command](args)
    except ConfigurationError as e:
        logger.debug("Configuration error: %s", e.to_dict())
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
