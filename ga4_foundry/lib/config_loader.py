"""YAML configuration loader.

Lets analysts keep client and property settings in YAML files that are
layered over the framework defaults.

Example YAML (client.yaml):
    data_stream_type: both
    consolidate_web_app_params: true
    source_project: my-gcp-project
    source_dataset: ${GA4_DATASET}
    web_params:
      - {name: page_location, type: string, consolidated_name: screen_location}
    app_params:
      - {name: firebase_screen, type: string, consolidated_name: screen_location}

Usage:
    from ga4_foundry.lib.config_loader import load_layers
    from ga4_foundry.lib.resolver import resolve

    config = resolve(*load_layers(["client.yaml", "property.yaml"]))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml

from ga4_foundry.lib.env import expand_layer
from ga4_foundry.lib.errors import ConfigurationError
from ga4_foundry.lib.settings import validate_layer

logger = logging.getLogger(__name__)

__all__ = [
    "load_layer",
    "load_layers",
    "merge_layers",
]


def load_layer(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load one configuration layer from a YAML file.

    Environment variables referenced as ${VAR} are expanded after parsing.

    Raises:
        ConfigurationError: if the file is missing, unparsable or not a mapping
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            field="config_path",
            value=config_path,
        )

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

    if raw is None:
        logger.warning("Configuration file %s is empty", config_path)
        return {}

    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a mapping at the top level",
            field="config_path",
            value=config_path,
        )

    logger.debug("Loaded configuration layer %s (%d keys)", config_path, len(raw))
    return expand_layer(raw)


def load_layers(config_paths: Iterable[Union[str, Path]]) -> List[Dict[str, Any]]:
    """Load several layers, least specific first."""
    return [load_layer(path) for path in config_paths]


def merge_layers(
    *layers: Optional[Mapping[str, Any]],
    names: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Shallow-merge validated layers, later layers winning per key.

    Each key is replaced wholesale by the most specific layer that sets it:
    parameter arrays and the properties tree are never concatenated.

    Args:
        *layers: Raw layers, least specific first
        names: Optional layer names for error messages

    Returns:
        Merged configuration holding only the keys some layer set
    """
    merged: Dict[str, Any] = {}
    for index, layer in enumerate(layers):
        name = names[index] if names and index < len(names) else f"layer {index}"
        validated = validate_layer(layer, name)
        for key in validated:
            if key in merged:
                logger.debug("Layer '%s' overrides '%s'", name, key)
        merged.update(validated)
    return merged
