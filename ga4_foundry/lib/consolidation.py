"""Web/app parameter consolidation.

When a property has both web and app streams, a web parameter and an app
parameter that describe the same concept (``page_location`` and
``firebase_screen``) can be merged into one output field by giving both the
same ``consolidated_name``. The merged field reads the web value first:

    COALESCE(page_location, firebase_screen) AS screen_location

Parameters without a consolidated name stay in their own web or app
projection and never appear here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ga4_foundry.lib.catalog import ParamType, ParameterSpec

logger = logging.getLogger(__name__)

__all__ = [
    "ConsolidatedField",
    "consolidate",
    "consolidated_names",
]


@dataclass(frozen=True)
class ConsolidatedField:
    """One unified field with its web-side and app-side sources."""

    name: str
    web_source: Optional[ParameterSpec] = None
    app_source: Optional[ParameterSpec] = None

    @property
    def sources(self) -> List[str]:
        """Source field names in priority order (web first)."""
        return [s.name for s in (self.web_source, self.app_source) if s is not None]

    @property
    def type(self) -> ParamType:
        source = self.web_source or self.app_source
        return source.type  # type: ignore[union-attr]

    @property
    def expression(self) -> str:
        return f"COALESCE({', '.join(self.sources)})"

    @property
    def sql(self) -> str:
        return f"{self.expression} AS {self.name}"


def consolidated_names(
    web_params: Iterable[ParameterSpec], app_params: Iterable[ParameterSpec]
) -> List[str]:
    """Distinct consolidated names, in first-declared order (web array first)."""
    names: List[str] = []
    for spec in list(web_params) + list(app_params):
        if spec.consolidated_name and spec.consolidated_name not in names:
            names.append(spec.consolidated_name)
    return names


def consolidate(
    web_params: Iterable[ParameterSpec],
    app_params: Iterable[ParameterSpec],
    enabled: bool,
) -> List[ConsolidatedField]:
    """Build unified fields for every consolidated name.

    Args:
        web_params: Declared web parameters
        app_params: Declared app parameters
        enabled: The resolved consolidation decision

    Returns:
        One field per distinct consolidated name, or [] when disabled. A
        name declared on one side only still yields a single-source field.
    """
    if not enabled:
        return []

    web_params = list(web_params)
    app_params = list(app_params)

    web_by_name: Dict[str, ParameterSpec] = {}
    app_by_name: Dict[str, ParameterSpec] = {}
    for spec in web_params:
        if spec.consolidated_name:
            web_by_name[spec.consolidated_name] = spec
    for spec in app_params:
        if spec.consolidated_name:
            app_by_name[spec.consolidated_name] = spec

    fields = []
    for name in consolidated_names(web_params, app_params):
        field = ConsolidatedField(
            name=name,
            web_source=web_by_name.get(name),
            app_source=app_by_name.get(name),
        )
        if field.web_source and field.app_source and field.web_source.type != field.app_source.type:
            logger.warning(
                "Consolidated field %s merges %s (%s) and %s (%s); web type wins",
                name,
                field.web_source.name,
                field.web_source.type.value,
                field.app_source.name,
                field.app_source.type.value,
            )
        fields.append(field)

    logger.debug("Consolidated %d web/app field(s)", len(fields))
    return fields
