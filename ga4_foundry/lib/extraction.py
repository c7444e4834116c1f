"""Field extraction from GA4 key/value parameter arrays.

Every declared parameter becomes one scalar sub-select over the repeated
key/value array, reading the value slot that matches its declared type:

    (SELECT value.string_value FROM UNNEST(event_params) WHERE key = 'page_title') AS page_title

Output order always equals declaration order; the identity key relies on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Tuple

from ga4_foundry.lib.catalog import ParameterCatalog, ParameterSpec, parse_array
from ga4_foundry.lib.sql import quote_literal

if TYPE_CHECKING:
    from ga4_foundry.lib.resolver import EffectiveConfig

logger = logging.getLogger(__name__)

__all__ = [
    "FieldExpression",
    "ITEM_COLUMNS",
    "extract",
    "extract_event_params",
    "extract_for",
    "extract_items_array",
    "extract_user_properties",
    "render_fields",
]

EVENT_PARAMS = "event_params"
USER_PROPERTIES = "user_properties"
ITEM_PARAMS = "items.item_params"

# Standard columns of the GA4 items record, in export order
ITEM_COLUMNS: Tuple[str, ...] = (
    "item_id",
    "item_name",
    "item_brand",
    "item_variant",
    "item_category",
    "item_category2",
    "item_category3",
    "item_category4",
    "item_category5",
    "price_in_usd",
    "price",
    "quantity",
    "item_revenue_in_usd",
    "item_revenue",
    "item_refund_in_usd",
    "item_refund",
    "coupon",
    "affiliation",
    "location_id",
    "item_list_id",
    "item_list_name",
    "item_list_index",
    "promotion_id",
    "promotion_name",
    "creative_name",
    "creative_slot",
)


@dataclass(frozen=True)
class FieldExpression:
    """A named value expression for one declared parameter."""

    name: str
    spec: ParameterSpec
    source_array: str

    @property
    def expression(self) -> str:
        return (
            f"(SELECT value.{self.spec.type.value_slot} FROM UNNEST({self.source_array}) "
            f"WHERE key = {quote_literal(self.spec.name)})"
        )

    @property
    def sql(self) -> str:
        return f"{self.expression} AS {self.name}"


def extract(
    params: Iterable[Any],
    source_array: str = EVENT_PARAMS,
    *,
    array: str = "params",
) -> List[FieldExpression]:
    """Emit one field expression per declared parameter.

    Args:
        params: ParameterSpec objects or raw ``{name, type}`` mappings
        source_array: SQL reference of the repeated key/value array
        array: Name of the declaring array, used in error messages

    Returns:
        Expressions in input order; empty input gives an empty list

    Raises:
        ConfigurationError: if any declaration is invalid; raised before
            any expression of the array is produced
    """
    specs = parse_array(array, params)
    return [FieldExpression(name=spec.name, spec=spec, source_array=source_array) for spec in specs]


def render_fields(fields: Iterable[FieldExpression], separator: str = ",\n        ") -> str:
    """Join field expressions into a select-list fragment."""
    return separator.join(f.sql for f in fields)


def extract_event_params(
    catalog: ParameterCatalog, array: str, source_array: str = EVENT_PARAMS
) -> List[FieldExpression]:
    """Extract one event-parameter array of the catalog by name."""
    return extract(catalog.get(array), source_array, array=array)


def extract_user_properties(
    catalog: ParameterCatalog, source_array: str = USER_PROPERTIES
) -> List[FieldExpression]:
    return extract(catalog.user_properties, source_array, array="user_properties")


def extract_items_array(catalog: ParameterCatalog) -> str:
    """Render the nested items projection.

    The standard item columns are always present. Declared item parameters
    are added as an ``item_params_custom`` struct read from each item's own
    key/value array.
    """
    columns = [f"items.{column}" for column in ITEM_COLUMNS]

    item_fields = extract(catalog.item_params, ITEM_PARAMS, array="item_params")
    if item_fields:
        struct_body = render_fields(item_fields, separator=",\n                    ")
        columns.append(
            "STRUCT(\n                    "
            f"{struct_body}\n                ) AS item_params_custom"
        )

    column_list = ",\n                ".join(columns)
    return (
        "ARRAY(\n"
        "        (\n"
        "            SELECT\n"
        "                STRUCT(\n"
        f"                {column_list}\n"
        "                )\n"
        "            FROM UNNEST(items) AS items\n"
        "        )\n"
        "    ) AS items"
    )


def extract_for(config: "EffectiveConfig", array: str) -> List[FieldExpression]:
    """Extract a catalog array of a resolved configuration."""
    fields = extract_event_params(config.catalog, array)
    logger.debug("Extracted %d field(s) from %s", len(fields), array)
    return fields
