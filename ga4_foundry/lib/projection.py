"""Per-event projection assembly.

Combines the extracted field lists into the projection of one event row:
core parameters, web parameters (web/both), app parameters (app/both),
custom parameters, consolidated web/app fields and user properties. Also
provides the page/screen field references the session and page models use,
which depend on the effective stream type and the consolidation decision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List

from ga4_foundry.lib.consolidation import ConsolidatedField, consolidate
from ga4_foundry.lib.extraction import (
    FieldExpression,
    extract_for,
    extract_user_properties,
    render_fields,
)
from ga4_foundry.lib.streams import StreamType

if TYPE_CHECKING:
    from ga4_foundry.lib.resolver import EffectiveConfig

logger = logging.getLogger(__name__)

__all__ = [
    "EventProjection",
    "ScreenFieldRefs",
    "build_event_projection",
    "page_session_key_ref",
    "screen_field_refs",
]


@dataclass
class EventProjection:
    """Field lists making up one event row, in projection order."""

    core: List[FieldExpression] = field(default_factory=list)
    web: List[FieldExpression] = field(default_factory=list)
    app: List[FieldExpression] = field(default_factory=list)
    custom: List[FieldExpression] = field(default_factory=list)
    consolidated: List[ConsolidatedField] = field(default_factory=list)
    user_properties: List[FieldExpression] = field(default_factory=list)

    @property
    def column_names(self) -> List[str]:
        names = [f.name for f in self.core + self.web + self.app + self.custom]
        names += [f.name for f in self.consolidated]
        names += [f.name for f in self.user_properties]
        return names

    def sections(self) -> Dict[str, List[str]]:
        """Rendered select items per section, empty sections included."""
        return {
            "core": [f.sql for f in self.core],
            "web": [f.sql for f in self.web],
            "app": [f.sql for f in self.app],
            "custom": [f.sql for f in self.custom],
            "consolidated": [f.sql for f in self.consolidated],
            "user_properties": [f.sql for f in self.user_properties],
        }

    def render(self, separator: str = ",\n        ") -> str:
        """Render the whole projection as one select-list fragment."""
        parts = [
            render_fields(self.core, separator),
            render_fields(self.web, separator),
            render_fields(self.app, separator),
            render_fields(self.custom, separator),
            separator.join(f.sql for f in self.consolidated),
            render_fields(self.user_properties, separator),
        ]
        return separator.join(p for p in parts if p)


def build_event_projection(config: "EffectiveConfig") -> EventProjection:
    """Assemble the event projection for a resolved configuration."""
    stream_type = config.effective_stream_type
    catalog = config.catalog

    projection = EventProjection(
        core=extract_for(config, "core_params"),
        web=extract_for(config, "web_params") if stream_type.includes_web else [],
        app=extract_for(config, "app_params") if stream_type.includes_app else [],
        custom=extract_for(config, "custom_params"),
        consolidated=consolidate(catalog.web_params, catalog.app_params, config.consolidate),
        user_properties=extract_user_properties(catalog),
    )

    logger.info(
        "Built event projection: %d column(s), stream_type=%s, consolidated=%d",
        len(projection.column_names),
        stream_type.value,
        len(projection.consolidated),
    )
    return projection


@dataclass(frozen=True)
class ScreenFieldRefs:
    """Field references for page/screen level aggregation."""

    location: str
    path: str
    referrer: str
    key: str
    title: str


_WEB_REFS = ScreenFieldRefs(
    location="page.page_location",
    path="page.page_path",
    referrer="page.page_referrer",
    key="page.page_key",
    title="page.page_title",
)

_APP_REFS = ScreenFieldRefs(
    location="app.firebase_screen",
    path="app.firebase_screen",
    referrer="CAST(NULL AS STRING)",
    key="app.screen_key",
    title="app.firebase_screen_class",
)

_CONSOLIDATED_REFS = ScreenFieldRefs(
    location="page.screen_location",
    path="page.page_path",
    referrer="page.screen_referrer",
    key="page.screen_key",
    title="page.screen_title",
)

_SEPARATE_REFS = ScreenFieldRefs(
    location="COALESCE(page.page_location, app.firebase_screen)",
    path="COALESCE(page.page_path, app.firebase_screen)",
    referrer="page.page_referrer",
    key="COALESCE(page.page_key, app.screen_key)",
    title="COALESCE(page.page_title, app.firebase_screen_class)",
)


def screen_field_refs(config: "EffectiveConfig") -> ScreenFieldRefs:
    """Location/path/referrer/key/title references for the stream setup.

    Single-platform setups ignore the consolidation flag.
    """
    if config.effective_stream_type == StreamType.WEB:
        return _WEB_REFS
    if config.effective_stream_type == StreamType.APP:
        return _APP_REFS
    return _CONSOLIDATED_REFS if config.consolidate else _SEPARATE_REFS


def page_session_key_ref(config: "EffectiveConfig") -> str:
    if config.effective_stream_type == StreamType.WEB:
        return "page_session_key"
    if config.effective_stream_type == StreamType.APP:
        return "screen_session_key"
    if config.consolidate:
        return "screen_session_key"
    return "COALESCE(page_session_key, screen_session_key)"
