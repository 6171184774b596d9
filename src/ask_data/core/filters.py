import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ask_data.models import CategoryFilter, ColumnDescriptor, DateFilter, NumericFilter, ResultFilter

# Category columns with longer values look like free text, not categories
MAX_AVG_CATEGORY_LENGTH = 50
MAX_CATEGORY_LENGTH = 100


def _present(value: Any) -> bool:
    if value is None or value == "":
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _as_date(value: Any) -> Optional[date]:
    stamp = pd.to_datetime(value, errors="coerce")
    if stamp is None or pd.isna(stamp):
        return None
    return stamp.date()


def build_available_filters(rows: Sequence[Dict[str, Any]], schema: Sequence[ColumnDescriptor]) -> List[ResultFilter]:
    """Derive one filter per filterable column from the dataset rows."""
    filters: List[ResultFilter] = []
    for column in schema:
        values = [row.get(column.name) for row in rows]
        values = [v for v in values if _present(v)]

        if column.type == "string":
            unique = sorted({str(v) for v in values})
            if len(unique) < 2:
                continue
            avg_length = sum(len(v) for v in unique) / len(unique)
            if avg_length > MAX_AVG_CATEGORY_LENGTH or any(len(v) > MAX_CATEGORY_LENGTH for v in unique):
                continue
            filters.append(CategoryFilter(column=column.name, available_values=unique))

        elif column.type == "date":
            dates = sorted(d for d in (_as_date(v) for v in values) if d is not None)
            if not dates:
                continue
            filters.append(DateFilter(
                column=column.name,
                min_date=dates[0].isoformat(),
                max_date=dates[-1].isoformat(),
            ))

        elif column.type == "number":
            numbers = [n for n in (_as_float(v) for v in values) if n is not None]
            if not numbers:
                continue
            filters.append(NumericFilter(column=column.name, range_min=min(numbers), range_max=max(numbers)))

    return filters


def _passes(row: Dict[str, Any], flt: ResultFilter) -> bool:
    value = row.get(flt.column)

    if isinstance(flt, CategoryFilter):
        return not flt.selected_values or str(value) in flt.selected_values

    if isinstance(flt, DateFilter):
        row_date = _as_date(value)
        if row_date is None:
            return True
        start = _as_date(flt.start_date) if flt.start_date else None
        end = _as_date(flt.end_date) if flt.end_date else None
        if start and row_date < start:
            return False
        if end and row_date > end:
            return False
        return True

    number = _as_float(value)
    if number is None:
        return True
    if flt.min_value is not None and number < flt.min_value:
        return False
    if flt.max_value is not None and number > flt.max_value:
        return False
    return True


def apply_filters(rows: Sequence[Dict[str, Any]], filters: Sequence[ResultFilter]) -> List[Dict[str, Any]]:
    """Keep rows that pass every filter; no filters keeps everything."""
    if not rows or not filters:
        return list(rows)
    return [row for row in rows if all(_passes(row, f) for f in filters)]
