"""Config-driven SQL generation and refresh planning for GA4 event exports.

This package resolves layered client configuration into one immutable
EffectiveConfig and derives from it the event projection, the identity key
and the refresh plan for the daily events table.

Usage:
    python -m ga4_foundry validate --config client.yaml
    python -m ga4_foundry plan --config client.yaml --today 2025-03-10
"""

from ga4_foundry.lib.errors import ConfigurationError
from ga4_foundry.lib.refresh import RefreshPlan, SourceKind, plan
from ga4_foundry.lib.resolver import EffectiveConfig, resolve

__all__ = [
    "ConfigurationError",
    "EffectiveConfig",
    "RefreshPlan",
    "SourceKind",
    "plan",
    "resolve",
]
