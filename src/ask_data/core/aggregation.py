import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ask_data.config import settings
from ask_data.core.intent import value_column_name
from ask_data.models import AggregationGroup, QueryIntent
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)

LIMIT_RE = re.compile(r"\bLIMIT\s+(\d+)", re.IGNORECASE)
LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")

UNKNOWN_GROUP = "Unknown"


def to_number(value: Any) -> float:
    """
    Read a cell as a float. Strings contribute their leading numeric part
    ("12.5 EUR" → 12.5); anything non-numeric, NaN or boolean is 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = LEADING_NUMBER_RE.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def extract_limit(sql: str) -> Optional[int]:
    match = LIMIT_RE.search(sql or "")
    return int(match.group(1)) if match else None


def _group_key(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return UNKNOWN_GROUP
    if isinstance(value, float) and math.isnan(value):
        return UNKNOWN_GROUP
    return str(value)


def _ungrouped(rows: Sequence[Mapping[str, Any]], intent: QueryIntent) -> List[Dict[str, Any]]:
    value_key = value_column_name(intent)
    if value_key == "count":
        return [{"count": len(rows)}]
    total = sum(to_number(row.get(intent.aggregate_field)) for row in rows)
    if intent.aggregation_type == "sum":
        return [{value_key: total}]
    return [{value_key: total / len(rows) if rows else 0.0}]


def aggregate(
    rows: Sequence[Mapping[str, Any]],
    intent: QueryIntent,
    max_rows: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Execute an intent against the full row set.

    One output record per distinct group-by value (a single implicit group
    when ungrouped), sorted descending by the aggregate column. A `LIMIT n`
    in the intent's SQL truncates to n rows; otherwise the result is capped
    at `max_rows` (RESULT_ROW_CAP by default).

    Args:
        rows: Records of the dataset.
        intent: Resolved QueryIntent.
        max_rows: Cap used when the SQL carries no LIMIT.

    Returns:
        Ordered list of result records.
    """
    if not intent.is_grouped:
        return _ungrouped(rows, intent)

    groups: Dict[str, AggregationGroup] = {}
    for row in rows:
        key = _group_key(row.get(intent.group_by_field))
        group = groups.get(key)
        if group is None:
            group = groups[key] = AggregationGroup(key=key)
        group.count += 1
        if intent.aggregate_field:
            group.sum += to_number(row.get(intent.aggregate_field))

    value_key = value_column_name(intent)
    result = []
    for group in groups.values():
        if value_key == "count":
            value = group.count
        elif intent.aggregation_type == "sum":
            value = group.sum
        else:
            value = group.sum / group.count if group.count else 0.0
        result.append({intent.group_by_field: group.key, value_key: value})

    # sorted() is stable, so ties keep group-discovery order
    result = sorted(result, key=lambda r: r[value_key], reverse=True)

    limit = extract_limit(intent.sql)
    if limit is None:
        limit = max_rows if max_rows is not None else settings.RESULT_ROW_CAP
    logger.info(f"Aggregated {len(rows)} rows into {len(groups)} groups; returning {min(limit, len(result))}.")
    return result[:limit]
