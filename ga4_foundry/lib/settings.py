"""Typed configuration layers and run-time overrides.

Each configuration layer (framework defaults, client file, property file)
is validated with a pydantic model before it is merged. Run-time overrides
come from the environment through pydantic-settings so one-off backfills
never require a committed configuration change.

Example:
    # One-off backfill without touching client.yaml
    $ GA4_FORCE_FULL_BACKFILL=true GA4_BACKFILL_START_DATE=20240101 \\
        ga4-foundry plan --config client.yaml
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ga4_foundry.lib.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "ConfigLayer",
    "PropertyConfig",
    "RunOverrides",
    "StreamConfig",
    "parse_config_date",
    "validate_layer",
]

ConfigDate = Union[date, int, str]


class StreamConfig(BaseModel):
    """One data stream inside a property (advanced mode)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    stream_type: Literal["web", "app"] = Field(..., description="Stream platform")
    include: bool = Field(default=True, description="False drops the stream's rows")
    use_fresh_daily: Optional[bool] = Field(
        default=None, description="Per-stream fresh daily override (None = client default)"
    )


class PropertyConfig(BaseModel):
    """One GA4 property and its streams (advanced mode)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source_dataset: str = Field(..., min_length=1, description="analytics_<property id> dataset")
    streams: Dict[str, StreamConfig] = Field(default_factory=dict)

    @field_validator("streams", mode="before")
    @classmethod
    def stringify_stream_ids(cls, v: Any) -> Any:
        """YAML reads bare stream ids as integers."""
        if isinstance(v, Mapping):
            return {str(k): s for k, s in v.items()}
        return v


class ConfigLayer(BaseModel):
    """Schema shared by every configuration layer.

    All fields are optional; only the keys a layer actually sets take part
    in the merge. Parameter arrays are left loose here and validated by the
    parameter catalog, which reports the offending parameter by name.
    """

    model_config = ConfigDict(extra="forbid")

    properties: Optional[Dict[str, PropertyConfig]] = None
    data_stream_type: Optional[Literal["web", "app", "both"]] = None
    consolidate_web_app_params: Optional[bool] = None
    use_fresh_daily: Optional[bool] = None
    use_custom_traffic_source_logic: Optional[bool] = None

    core_params: Optional[List[Any]] = None
    web_params: Optional[List[Any]] = None
    app_params: Optional[List[Any]] = None
    custom_params: Optional[List[Any]] = None
    user_properties: Optional[List[Any]] = None
    item_params: Optional[List[Any]] = None

    has_ecommerce: Optional[bool] = None
    transaction_events: Optional[List[str]] = None
    ecommerce_item_events: Optional[List[str]] = None

    force_full_backfill: Optional[bool] = None
    backfill_start_date: Optional[ConfigDate] = None
    backfill_end_date: Optional[ConfigDate] = None
    initial_load_days: Optional[int] = None
    rolling_refresh_days: Optional[int] = None

    source_project: Optional[str] = None
    source_dataset: Optional[str] = None
    destination_dataset: Optional[str] = None


class RunOverrides(BaseSettings):
    """Run-time variables that override every file layer.

    Loaded from environment variables with the GA4_ prefix (and .env).
    Unset variables do not override anything.

    Example:
        >>> # GA4_FORCE_FULL_BACKFILL=true
        >>> RunOverrides().as_layer()
        {'force_full_backfill': True}
    """

    force_full_backfill: Optional[bool] = Field(default=None, description="Run a full backfill")
    backfill_start_date: Optional[str] = Field(default=None, description="YYYYMMDD")
    backfill_end_date: Optional[str] = Field(default=None, description="YYYYMMDD")
    destination_dataset: Optional[str] = Field(default=None, description="Output dataset")
    source_project: Optional[str] = Field(default=None, description="GA4 export project")
    source_dataset: Optional[str] = Field(default=None, description="GA4 export dataset")
    has_ecommerce: Optional[bool] = Field(default=None, description="Build ecommerce models")

    model_config = SettingsConfigDict(
        env_prefix="GA4_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("backfill_start_date", "backfill_end_date", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def as_layer(self) -> Dict[str, Any]:
        """Return only the overrides that are actually set."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


def validate_layer(raw: Optional[Mapping[str, Any]], name: str) -> Dict[str, Any]:
    """Validate one configuration layer and return the keys it sets.

    Raises:
        ValidationError: listing every problem found in the layer
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Configuration layer '{name}' must be a mapping, got {type(raw).__name__}",
            field=name,
        )

    try:
        model = ConfigLayer.model_validate(dict(raw))
    except PydanticValidationError as e:
        issues = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ValidationError(
            f"Invalid configuration layer '{name}'",
            issues=issues,
            suggestion="Check key names and value types against the client template",
        ) from e

    return model.model_dump(exclude_unset=True)


def parse_config_date(value: Any, *, field: str) -> Optional[date]:
    """Parse a configured date (YYYYMMDD, YYYY-MM-DD or a date object).

    Returns None for unset values.

    Raises:
        ConfigurationError: if the value is not a valid date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    for fmt in ("%Y%m%d", "%Y-%m-%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise ConfigurationError(
        f"Invalid date for {field}: '{value}'",
        field=field,
        value=value,
        suggestion="Use YYYYMMDD, e.g. 20240101",
    )
