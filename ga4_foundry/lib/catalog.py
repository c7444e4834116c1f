"""Declared event-parameter catalog.

The catalog is the externally declared list of parameters to pull out of the
GA4 key/value arrays. It is never inferred from data. Declarations are
validated as a whole when the catalog is built: an unsupported type or a
duplicate name anywhere aborts resolution before any SQL exists.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ga4_foundry.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "ParamType",
    "ParameterSpec",
    "ParameterCatalog",
    "CATALOG_ARRAYS",
    "parse_array",
]

# Layer key for each catalog array, in catalog order
CATALOG_ARRAYS: Tuple[str, ...] = (
    "core_params",
    "web_params",
    "app_params",
    "custom_params",
    "user_properties",
    "item_params",
)


class ParamType(Enum):
    """Value kind of a GA4 key/value parameter."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"

    @property
    def value_slot(self) -> str:
        """Name of the slot inside the GA4 ``value`` struct."""
        return _VALUE_SLOTS[self]

    @classmethod
    def parse(cls, raw: Any, *, param: str, array: str) -> "ParamType":
        """Parse a declared type string, accepting the GA4 aliases.

        Raises:
            ConfigurationError: naming the parameter and its array
        """
        key = str(raw).strip().lower() if raw is not None else ""
        if key not in _TYPE_ALIASES:
            valid = ", ".join(sorted(_TYPE_ALIASES))
            raise ConfigurationError(
                f"Unsupported parameter type '{raw}' for parameter '{param}' "
                f"in array '{array}'",
                array=array,
                field=f"{array}.{param}.type",
                value=raw,
                suggestion=f"Use one of: {valid}",
            )
        return _TYPE_ALIASES[key]


_VALUE_SLOTS: Dict[ParamType, str] = {
    ParamType.STRING: "string_value",
    ParamType.INT: "int_value",
    ParamType.FLOAT: "double_value",
}

# Names become SQL column aliases
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_TYPE_ALIASES: Dict[str, ParamType] = {
    "string": ParamType.STRING,
    "int": ParamType.INT,
    "integer": ParamType.INT,
    "float": ParamType.FLOAT,
    "double": ParamType.FLOAT,
}


@dataclass(frozen=True)
class ParameterSpec:
    """One declared parameter.

    ``consolidated_name`` only matters for web/app parameters and only when
    the opposing array declares the same consolidated name.
    """

    name: str
    type: ParamType
    consolidated_name: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any, *, array: str, position: int) -> "ParameterSpec":
        if isinstance(raw, ParameterSpec):
            return raw
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                f"Entry {position} of '{array}' must be a mapping with name and type",
                array=array,
                value=raw,
            )
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(
                f"Entry {position} of '{array}' has no parameter name",
                array=array,
                field=f"{array}[{position}].name",
            )
        unknown = set(raw) - {"name", "type", "consolidated_name"}
        if unknown:
            raise ConfigurationError(
                f"Parameter '{name}' in array '{array}' has unknown keys: "
                f"{', '.join(sorted(unknown))}",
                array=array,
                field=f"{array}.{name}",
            )
        consolidated_name = raw.get("consolidated_name") or None
        for field_name, value in (("name", name), ("consolidated_name", consolidated_name)):
            if value is not None and (not isinstance(value, str) or not _IDENTIFIER.match(value)):
                raise ConfigurationError(
                    f"Parameter '{name}' in array '{array}' has an invalid {field_name} "
                    f"'{value}'",
                    array=array,
                    field=f"{array}.{name}.{field_name}",
                    value=value,
                    suggestion="Use letters, digits and underscores, not starting with a digit",
                )
        return cls(
            name=name,
            type=ParamType.parse(raw.get("type"), param=name, array=array),
            consolidated_name=consolidated_name,
        )


def parse_array(array: str, raw_params: Optional[Iterable[Any]]) -> Tuple[ParameterSpec, ...]:
    """Validate one declared array as a whole and return its specs in order.

    Raises:
        ConfigurationError: on the first bad entry; nothing is returned
    """
    specs: List[ParameterSpec] = []
    seen = set()
    for position, raw in enumerate(raw_params or ()):
        spec = ParameterSpec.from_dict(raw, array=array, position=position)
        if spec.name in seen:
            raise ConfigurationError(
                f"Duplicate parameter '{spec.name}' in array '{array}'",
                array=array,
                field=f"{array}.{spec.name}",
                suggestion="Parameter names must be unique within an array",
            )
        seen.add(spec.name)
        specs.append(spec)
    return tuple(specs)


@dataclass(frozen=True)
class ParameterCatalog:
    """The six declared parameter arrays, immutable once built."""

    core_params: Tuple[ParameterSpec, ...] = ()
    web_params: Tuple[ParameterSpec, ...] = ()
    app_params: Tuple[ParameterSpec, ...] = ()
    custom_params: Tuple[ParameterSpec, ...] = ()
    user_properties: Tuple[ParameterSpec, ...] = ()
    item_params: Tuple[ParameterSpec, ...] = ()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ParameterCatalog":
        """Build and validate a catalog from merged configuration.

        Every array is validated before the catalog exists, so a bad
        declaration anywhere fails the whole resolution.
        """
        arrays = {array: parse_array(array, config.get(array)) for array in CATALOG_ARRAYS}
        catalog = cls(**arrays)
        logger.debug(
            "Loaded parameter catalog: %s",
            ", ".join(f"{array}={len(specs)}" for array, specs in catalog.arrays()),
        )
        return catalog

    def arrays(self) -> Iterator[Tuple[str, Tuple[ParameterSpec, ...]]]:
        for array in CATALOG_ARRAYS:
            yield array, getattr(self, array)

    def get(self, array: str) -> Tuple[ParameterSpec, ...]:
        if array not in CATALOG_ARRAYS:
            raise ConfigurationError(f"Unknown parameter array '{array}'", field=array)
        return getattr(self, array)

    def consolidated_name_for(self, param_name: str) -> Optional[str]:
        """Consolidated name declared for a web or app parameter, if any.

        Web declarations are checked first.
        """
        for spec in self.web_params + self.app_params:
            if spec.name == param_name and spec.consolidated_name:
                return spec.consolidated_name
        return None
