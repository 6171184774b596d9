"""
schema.py
─────────────────────────────────────────────────────────────────────────────
Column-type profile for a dataset, derived from its first record.

  bool                          → boolean
  int / float                   → number
  date / datetime / Timestamp   → date
  "YYYY-MM-DD..." string        → date
  string that is a full number  → number
  anything else                 → string

This is a single-row classifier: a numeric-looking first value can mask a
mixed column. `sample_size` widens the look-up to the first non-empty value
among the first N rows.
─────────────────────────────────────────────────────────────────────────────
"""

import re
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Sequence

from ask_data.models import ColumnDescriptor

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
NUMBER_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")

SAMPLE_MAX_CHARS = 50


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def classify_value(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (date, datetime)):
        # pandas.Timestamp subclasses datetime
        return "date"
    if isinstance(value, str):
        text = value.strip()
        if DATE_PREFIX_RE.match(text):
            return "date"
        if NUMBER_RE.match(text):
            return "number"
    return "string"


def _sample_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)[:SAMPLE_MAX_CHARS]


def infer_schema(rows: Sequence[Mapping[str, Any]], sample_size: int = 1) -> List[ColumnDescriptor]:
    """
    Build one ColumnDescriptor per key of the first record.
    Returns an empty list for empty input; never raises.
    """
    if not rows:
        return []

    first = rows[0]
    window = rows[:max(sample_size, 1)]
    schema = []
    for key in first.keys():
        value = first[key]
        if sample_size > 1 and _is_blank(value):
            value = next((r.get(key) for r in window if not _is_blank(r.get(key))), value)
        schema.append(ColumnDescriptor(
            name=str(key),
            type=classify_value(value),
            sample=_sample_text(value),
        ))
    return schema


def describe_schema(schema: Iterable[ColumnDescriptor]) -> str:
    """One `name (type): sample` line per column, as sent to the model."""
    return "\n".join(f"{col.name} ({col.type}): {col.sample}" for col in schema)
