"""
insights.py
─────────────────────────────────────────────────────────────────────────────
Plain-language notes on why a result looks the way it does: which
aggregation ran, how rows were grouped, which chart and display form were
chosen. Deterministic, no model call.
─────────────────────────────────────────────────────────────────────────────
"""

from typing import Any, Dict, Sequence

from ask_data.models import QueryIntent

_AGGREGATION_REASON = {
    "sum": "total values",
    "avg": "average values",
    "count": "counting records",
}

_CHART_REASON = {
    "pie": "pie chart for distribution/percentage view",
    "line": "line chart for trend/time-series data",
    "bar": "bar chart for comparison of values across categories",
}


def build_explanations(intent: QueryIntent, display_type: str, result: Sequence[Dict[str, Any]]) -> str:
    parts = []

    if intent.aggregation_type and intent.aggregate_field:
        parts.append(
            f"**Aggregation Choice:** Used {intent.aggregation_type.upper()} on "
            f"\"{intent.aggregate_field}\" because your query requested "
            f"{_AGGREGATION_REASON[intent.aggregation_type]}"
        )

    if intent.group_by_field:
        readable = intent.group_by_field.replace("_", " ")
        parts.append(
            f"**Grouping Logic:** Grouped results by \"{intent.group_by_field}\" "
            f"to show breakdown across different {readable} values"
        )

    parts.append(
        f"**Visualization Choice:** Selected {_CHART_REASON.get(intent.chart_type, _CHART_REASON['bar'])} "
        "based on query intent and data structure"
    )

    if display_type == "number":
        parts.append("**Display Format:** Showing single number result because query returned one aggregated value")
    elif display_type == "table":
        parts.append(
            "**Display Format:** Using table view because query appears to be "
            f"filtering/listing records ({len(result)} rows returned)"
        )
    else:
        parts.append(
            "**Display Format:** Using chart visualization because query shows "
            f"grouped/comparative data ({len(result)} categories)"
        )

    return "\n\n".join(parts)
