from typing import Any, Dict, Optional, Sequence

from ask_data.config import settings
from ask_data.models import ChartConfig, QueryIntent


LISTING_VERBS = ("show", "list", "give me all")


def _is_listing_request(q: str) -> bool:
    return "filter" in q and any(verb in q for verb in LISTING_VERBS)


def classify_display(
    query: str,
    intent: QueryIntent,
    result: Sequence[Dict[str, Any]],
    row_threshold: Optional[int] = None,
) -> str:
    """
    Pick how a result is shown: "number", "table" or "chart".

    Precedence: a single value, then an explicit filter/listing request,
    then grouped aggregation (always a chart), then row count, then chart.
    """
    threshold = row_threshold if row_threshold is not None else settings.TABLE_ROW_THRESHOLD
    q = (query or "").lower()

    if len(result) == 1 and len(result[0]) == 1:
        return "number"
    if _is_listing_request(q):
        return "table"
    if intent.is_grouped and intent.aggregation_type:
        return "chart"
    if len(result) > threshold:
        return "table"
    return "chart"


def chart_config_from_result(result: Sequence[Dict[str, Any]], chart_type: str = "bar") -> Optional[ChartConfig]:
    """First two keys of the first record become the x and y fields."""
    if not result:
        return None
    keys = list(result[0].keys())
    if len(keys) < 2:
        return None
    return ChartConfig(type=chart_type, x_field=keys[0], y_field=keys[1])
