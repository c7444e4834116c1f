"""Environment variable utilities.

Expands ${VAR_NAME} patterns inside configuration layers and loads
.env files, so dataset and project names can stay out of committed YAML.

Uses python-dotenv for .env file loading.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv

__all__ = ["expand_env_vars", "expand_layer", "load_env_file"]

# Pattern for ${VAR_NAME} or $VAR_NAME
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def load_env_file(
    path: Optional[Union[str, Path]] = None,
    *,
    override: bool = False,
) -> bool:
    """Load environment variables from a .env file.

    Args:
        path: Path to .env file. If None, searches for .env in the current
              directory and its parents.
        override: If True, override existing environment variables.

    Returns:
        True if a .env file was found and loaded, False otherwise.
    """
    return load_dotenv(dotenv_path=path, override=override)


def expand_env_vars(value: str, *, strict: bool = False) -> str:
    """Expand environment variables in a string.

    Supports both ${VAR_NAME} and $VAR_NAME syntax. Unset variables are
    left untouched unless ``strict`` is set, in which case KeyError is raised.

    Example:
        >>> os.environ["GA4_DATASET"] = "analytics_123456789"
        >>> expand_env_vars("${GA4_DATASET}")
        'analytics_123456789'
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1) or match.group(2)
        env_value = os.environ.get(var_name)
        if env_value is None:
            if strict:
                raise KeyError(f"Environment variable not set: {var_name}")
            return str(match.group(0))
        return env_value

    return ENV_VAR_PATTERN.sub(replacer, value)


def _expand_value(value: Any, strict: bool) -> Any:
    if isinstance(value, str):
        return expand_env_vars(value, strict=strict)
    if isinstance(value, dict):
        return expand_layer(value, strict=strict)
    if isinstance(value, list):
        return [_expand_value(item, strict) for item in value]
    return value


def expand_layer(layer: Dict[str, Any], *, strict: bool = False) -> Dict[str, Any]:
    """Recursively expand environment variables in a configuration layer.

    Walks nested mappings (the ``properties`` tree) and lists (parameter
    arrays) and returns a new dictionary; the input is not modified.

    Example:
        >>> os.environ["GA4_DATASET"] = "analytics_123"
        >>> expand_layer({"properties": {"web": {"source_dataset": "${GA4_DATASET}"}}})
        {'properties': {'web': {'source_dataset': 'analytics_123'}}}
    """
    return {key: _expand_value(value, strict) for key, value in layer.items()}
