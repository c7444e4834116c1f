"""Framework-default configuration layer.

This is the bottom layer of every resolution. Client and property layers
override it key by key; nothing here should be edited per client.
"""

from __future__ import annotations

import copy
from typing import Any, Dict

__all__ = [
    "DEFAULT_BACKFILL_LOOKBACK_MONTHS",
    "FRAMEWORK_DEFAULTS",
    "framework_defaults",
]

# Backfill range when none is given: 13 months ago through yesterday
DEFAULT_BACKFILL_LOOKBACK_MONTHS = 13

DEFAULT_CORE_PARAMS = [
    {"name": "engagement_time_msec", "type": "int"},
    {"name": "engaged_session_event", "type": "int"},
    {"name": "entrances", "type": "int"},
    {"name": "firebase_conversion", "type": "int"},
    {"name": "form_name", "type": "string"},
    {"name": "ga_session_id", "type": "int"},
    {"name": "ga_session_number", "type": "int"},
    {"name": "ignore_referrer", "type": "string"},
    {"name": "page_location", "type": "string"},
    {"name": "page_referrer", "type": "string"},
    {"name": "page_title", "type": "string"},
    {"name": "session_engaged", "type": "string"},
]

DEFAULT_ECOMMERCE_ITEM_EVENTS = [
    "purchase",
    "refund",
    "view_item",
    "add_to_cart",
    "remove_from_cart",
    "begin_checkout",
    "add_payment_info",
    "add_shipping_info",
]

FRAMEWORK_DEFAULTS: Dict[str, Any] = {
    # Property & stream
    "properties": None,
    "data_stream_type": "web",
    "consolidate_web_app_params": False,
    "use_fresh_daily": False,
    "use_custom_traffic_source_logic": False,
    # Parameter catalog
    "core_params": DEFAULT_CORE_PARAMS,
    "web_params": [],
    "app_params": [],
    "custom_params": [],
    "user_properties": [],
    "item_params": [],
    # Ecommerce
    "has_ecommerce": False,
    "transaction_events": ["purchase", "refund"],
    "ecommerce_item_events": DEFAULT_ECOMMERCE_ITEM_EVENTS,
    # Refresh
    "force_full_backfill": False,
    "backfill_start_date": None,
    "backfill_end_date": None,
    "initial_load_days": 7,
    "rolling_refresh_days": 3,
    # Locations
    "source_project": None,
    "source_dataset": None,
    "destination_dataset": None,
}


def framework_defaults() -> Dict[str, Any]:
    """Return a fresh copy of the framework-default layer."""
    return copy.deepcopy(FRAMEWORK_DEFAULTS)
