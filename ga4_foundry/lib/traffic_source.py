"""Session traffic source fields.

The default set reads GA4's last-click cross-channel attribution as is. The
custom set remaps a few source/medium values and adds campaign detail
columns; it is selected with ``use_custom_traffic_source_logic``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from ga4_foundry.lib.resolver import EffectiveConfig

__all__ = [
    "CUSTOM_TRAFFIC_SOURCE_FIELDS",
    "DEFAULT_TRAFFIC_SOURCE_FIELDS",
    "traffic_source_aggregate_sql",
    "traffic_source_column_list",
    "traffic_source_fields",
    "traffic_source_select_sql",
]

_LAST_CLICK = "session_traffic_source_last_click"
_CAMPAIGN = f"{_LAST_CLICK}.cross_channel_campaign"

DEFAULT_TRAFFIC_SOURCE_FIELDS: Dict[str, str] = {
    "session_source": f"{_CAMPAIGN}.source",
    "session_medium": f"{_CAMPAIGN}.medium",
    "session_campaign": f"{_CAMPAIGN}.campaign_name",
    "session_channel_group": f"{_CAMPAIGN}.default_channel_group",
}

CUSTOM_TRAFFIC_SOURCE_FIELDS: Dict[str, str] = {
    "session_source": (
        "CASE\n"
        f"      WHEN {_CAMPAIGN}.source = 'google' AND {_CAMPAIGN}.medium = 'organic'\n"
        "        THEN 'google_organic'\n"
        f"      WHEN {_CAMPAIGN}.source LIKE '%facebook%'\n"
        "        THEN 'facebook'\n"
        f"      ELSE {_CAMPAIGN}.source\n"
        "    END"
    ),
    "session_medium": (
        "CASE\n"
        f"      WHEN {_CAMPAIGN}.medium IN ('cpc', 'ppc', 'paidsearch')\n"
        "        THEN 'paid_search'\n"
        f"      WHEN {_CAMPAIGN}.medium = 'social'\n"
        "        THEN 'organic_social'\n"
        f"      ELSE {_CAMPAIGN}.medium\n"
        "    END"
    ),
    "session_campaign": f"{_CAMPAIGN}.campaign_name",
    "session_channel_group": f"{_CAMPAIGN}.default_channel_group",
    "session_campaign_id": f"{_CAMPAIGN}.campaign_id",
    "session_term": f"{_LAST_CLICK}.manual_campaign.term",
    "session_content": f"{_LAST_CLICK}.manual_campaign.content",
    "session_source_platform": f"{_CAMPAIGN}.source_platform",
}


def traffic_source_fields(config: "EffectiveConfig") -> Dict[str, str]:
    """Alias -> expression for the configured field set."""
    if config.use_custom_traffic_source:
        return dict(CUSTOM_TRAFFIC_SOURCE_FIELDS)
    return dict(DEFAULT_TRAFFIC_SOURCE_FIELDS)


def traffic_source_select_sql(config: "EffectiveConfig") -> str:
    fields = traffic_source_fields(config)
    return ",\n    ".join(f"{expr} AS {alias}" for alias, expr in fields.items())


def traffic_source_column_list(config: "EffectiveConfig") -> str:
    return ",\n  ".join(traffic_source_fields(config))


def traffic_source_aggregate_sql(config: "EffectiveConfig") -> str:
    """ANY_VALUE aggregation of every traffic source column."""
    return ",\n    ".join(
        f"ANY_VALUE({alias}) AS {alias}" for alias in traffic_source_fields(config)
    )
