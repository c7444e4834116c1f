"""Pytest configuration and fixtures."""

from __future__ import annotations

import logging
import os
from datetime import date
from typing import Any, Dict

import pytest

from ga4_foundry.lib.catalog import ParameterCatalog
from ga4_foundry.lib.resolver import EffectiveConfig, resolve

TODAY = date(2025, 3, 10)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep GA4_* variables and any .env file out of every test."""
    for name in list(os.environ):
        if name.startswith("GA4_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def web_params() -> list:
    return [
        {"name": "page_location", "type": "string", "consolidated_name": "screen_location"},
        {"name": "page_referrer", "type": "string", "consolidated_name": "screen_referrer"},
        {"name": "content_group", "type": "string"},
    ]


@pytest.fixture
def app_params() -> list:
    return [
        {"name": "firebase_screen", "type": "string", "consolidated_name": "screen_location"},
        {"name": "firebase_screen_class", "type": "string"},
        {"name": "app_version_code", "type": "int", "consolidated_name": "build_number"},
    ]


@pytest.fixture
def client_layer(web_params, app_params) -> Dict[str, Any]:
    """Simple-mode client layer covering both platforms."""
    return {
        "data_stream_type": "both",
        "consolidate_web_app_params": True,
        "source_project": "acme-analytics",
        "source_dataset": "analytics_123456789",
        "core_params": [
            {"name": "ga_session_id", "type": "int"},
            {"name": "page_title", "type": "string"},
        ],
        "web_params": web_params,
        "app_params": app_params,
        "custom_params": [{"name": "plan_tier", "type": "string"}],
        "user_properties": [{"name": "customer_tier", "type": "string"}],
    }


@pytest.fixture
def advanced_layer() -> Dict[str, Any]:
    """Advanced-mode layer: one property with a web and an app stream."""
    return {
        "consolidate_web_app_params": True,
        "use_fresh_daily": True,
        "source_project": "acme-analytics",
        "properties": {
            "main": {
                "source_dataset": "analytics_111",
                "streams": {
                    "1001": {"stream_type": "web"},
                    "1002": {"stream_type": "app", "use_fresh_daily": False},
                    "1003": {"stream_type": "web", "include": False},
                },
            },
            "blog": {
                "source_dataset": "analytics_222",
                "streams": {"2001": {"stream_type": "web"}},
            },
        },
    }


@pytest.fixture
def both_config(client_layer, today) -> EffectiveConfig:
    return resolve(client_layer, today=today)


@pytest.fixture
def catalog(client_layer) -> ParameterCatalog:
    return ParameterCatalog.from_config(client_layer)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
