"""
intent.py
─────────────────────────────────────────────────────────────────────────────
Turns a natural-language question plus a dataset schema into a QueryIntent.

Resolvers form an explicit chain. Each one returns an IntentOutcome instead
of raising, and the chain moves to the next resolver on failure:

  ModelIntentResolver    → Groq chat completion returning JSON (10s timeout)
  KeywordIntentResolver  → substring rules over the query, never fails
─────────────────────────────────────────────────────────────────────────────
"""

import json
import re
from typing import List, Optional, Sequence

import groq
from groq import Groq
from pydantic import ValidationError

from ask_data.config import settings
from ask_data.models import ColumnDescriptor, IntentOutcome, IntentResolution, QueryIntent
from ask_data.core.schema import describe_schema
from ask_data.utils.exceptions import IntentResolutionError
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)

TABLE_NAME = "dataset"

# Group-by candidates, highest priority first
CATEGORY_KEYWORDS = ("indication", "treatment", "type", "category", "brand", "substance")
MEASURE_KEYWORDS = ("cost", "price", "value", "amount")

LINE_TRIGGERS = ("trend", "over time", "time")
PIE_TRIGGERS = ("distribution", "breakdown", "pie")
AVG_TRIGGERS = ("average", "avg", "mean")
SUM_TRIGGERS = ("cost", "sum", "total")


def _get_client(timeout: float) -> Groq:
    """Build the Groq client per call so key changes take effect; no SDK retries."""
    return Groq(api_key=settings.GROQ_API_KEY, timeout=timeout, max_retries=0)


def _normalize(name: str) -> str:
    return re.sub(r"[_\-]+", " ", name.lower()).strip()


def _mentions(query: str, phrase: str, plural: bool = True) -> bool:
    suffix = r"(?:e?s)?" if plural else ""
    return bool(phrase) and re.search(rf"\b{re.escape(phrase)}{suffix}\b", query) is not None


def _quote(identifier: str) -> str:
    if re.fullmatch(r"[A-Za-z_][A-Za-z0-9_]*", identifier):
        return identifier
    return '"' + identifier.replace('"', '""') + '"'


def value_column_name(intent: QueryIntent) -> str:
    """Name of the synthesized aggregate column for this intent."""
    if intent.aggregate_field and intent.aggregation_type == "sum":
        return f"total_{intent.aggregate_field.lower()}"
    if intent.aggregate_field and intent.aggregation_type == "avg":
        return f"avg_{intent.aggregate_field.lower()}"
    return "count"


def build_sql(intent: QueryIntent, limit: Optional[int] = None) -> str:
    """Render a display-only SELECT equivalent to the intent."""
    value = value_column_name(intent)
    if value == "count":
        expr = "COUNT(*)"
    else:
        func = "SUM" if intent.aggregation_type == "sum" else "AVG"
        expr = f"{func}({_quote(intent.aggregate_field)})"

    if not intent.group_by_field:
        return f"SELECT {expr} AS {_quote(value)} FROM {TABLE_NAME}"

    group = _quote(intent.group_by_field)
    limit = limit if limit is not None else settings.RESULT_ROW_CAP
    return (
        f"SELECT {group}, {expr} AS {_quote(value)} FROM {TABLE_NAME} "
        f"GROUP BY {group} ORDER BY {_quote(value)} DESC LIMIT {limit}"
    )


# ---------------------------------------------------------------------------
# TIER 1: MODEL
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = (
    "You are a SQL expert that returns only valid JSON responses. "
    "You excel at generating accurate SQL queries for data analysis and visualization."
)


def _build_user_prompt(query: str, schema: Sequence[ColumnDescriptor]) -> str:
    return f"""You are a SQL query generator for data analysis. Given this dataset schema and a natural language query, generate a SQL SELECT statement.

Dataset Schema:
{describe_schema(schema)}

Natural Language Query: "{query}"

Requirements:
1. Generate a SQL SELECT statement that answers the question
2. Use table name "{TABLE_NAME}"
3. Use appropriate aggregation (COUNT, SUM, AVG) when needed
4. Group by relevant columns for categorical analysis
5. Limit results to top {settings.RESULT_ROW_CAP} if using GROUP BY
6. Determine appropriate chart type based on query intent

Response format (JSON only, no explanation):
{{
  "sql": "SELECT statement here",
  "aggregationType": "sum|avg|count",
  "groupByField": "column name or empty string",
  "aggregateField": "column name or empty string",
  "chartType": "bar|line|pie"
}}

Chart type rules:
- "line" for trends over time or continuous data
- "pie" for distribution/breakdown/percentage queries
- "bar" for comparisons and aggregations (default)"""


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence if present."""
    text = raw.strip()
    match = re.match(r"^```[a-zA-Z]*\s*(.*?)\s*```$", text, re.DOTALL)
    return match.group(1).strip() if match else text


def _match_column(name: str, schema: Sequence[ColumnDescriptor]) -> str:
    if not name:
        return ""
    lookup = {col.name.lower(): col.name for col in schema}
    if name.lower() not in lookup:
        raise ValueError(f"Column '{name}' is not in the dataset schema.")
    return lookup[name.lower()]


class ModelIntentResolver:
    """Tier 1: ask the Groq model for a structured intent."""

    name = "model"

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else settings.INTENT_TIMEOUT_SECONDS

    def _fail(self, error: str) -> IntentOutcome:
        logger.warning(f"Model intent resolution failed: {error}")
        return IntentOutcome(resolver=self.name, success=False, error=error)

    def resolve(self, query: str, schema: Sequence[ColumnDescriptor]) -> IntentOutcome:
        if not settings.GROQ_API_KEY:
            return self._fail("Groq API key not configured. Set GROQ_API_KEY to enable model-backed queries.")

        try:
            client = _get_client(self.timeout)
            response = client.chat.completions.create(
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": _build_user_prompt(query, schema)},
                ],
                model=settings.DEFAULT_MODEL,
                temperature=settings.TEMPERATURE,
                max_tokens=settings.INTENT_MAX_TOKENS,
            )
        except groq.APITimeoutError:
            return self._fail(f"Model request timed out after {self.timeout:g} seconds.")
        except groq.APIError as e:
            return self._fail(f"Model request failed: {e}")

        raw = response.choices[0].message.content if response.choices else None
        if not raw or not raw.strip():
            return self._fail("Model returned an empty response.")

        try:
            payload = json.loads(strip_code_fence(raw))
            if not isinstance(payload, dict):
                raise ValueError("Expected a JSON object.")
            intent = QueryIntent.model_validate(payload)
            intent = intent.model_copy(update={
                "group_by_field": _match_column(intent.group_by_field, schema),
                "aggregate_field": _match_column(intent.aggregate_field, schema),
            })
            if not intent.sql:
                intent = intent.model_copy(update={"sql": build_sql(intent)})
        except (ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            return self._fail(f"Model returned an invalid response format: {e}")

        logger.info(f"Model resolved intent: {intent.model_dump(by_alias=True)}")
        return IntentOutcome(resolver=self.name, success=True, intent=intent)


# ---------------------------------------------------------------------------
# TIER 2: KEYWORDS
# ---------------------------------------------------------------------------

class KeywordIntentResolver:
    """Tier 2: deterministic substring rules. Always returns an intent."""

    name = "keyword"

    @staticmethod
    def chart_type(q: str) -> str:
        if any(t in q for t in LINE_TRIGGERS):
            return "line"
        if any(t in q for t in PIE_TRIGGERS):
            return "pie"
        return "bar"

    @staticmethod
    def group_by_field(q: str, schema: Sequence[ColumnDescriptor], measure: str = "") -> str:
        """The measure column is never a grouping candidate."""
        columns = [col for col in schema if col.name != measure]

        # 1. category keyword priority, with the column or keyword named in the query
        for keyword in CATEGORY_KEYWORDS:
            for col in columns:
                if keyword not in col.name.lower():
                    continue
                if _mentions(q, _normalize(col.name)) or _mentions(q, keyword):
                    return col.name

        # 2. any non-numeric column named in the query ("by region")
        for col in columns:
            if col.type != "number" and _mentions(q, _normalize(col.name)):
                return col.name

        # 3. first category-ish column, asked for or not
        for col in columns:
            if any(keyword in col.name.lower() for keyword in CATEGORY_KEYWORDS):
                return col.name
        return ""

    @staticmethod
    def aggregate(q: str, schema: Sequence[ColumnDescriptor]):
        if any(_mentions(q, t, plural=False) for t in AVG_TRIGGERS):
            aggregation = "avg"
        elif any(t in q for t in SUM_TRIGGERS):
            aggregation = "sum"
        else:
            return "count", ""

        # cost/price/value/amount columns first; the one named in the query wins
        measures = [c.name for c in schema if any(k in c.name.lower() for k in MEASURE_KEYWORDS)]
        if measures:
            named = [name for name in measures if _mentions(q, _normalize(name))]
            return aggregation, (named or measures)[0]

        named = [c.name for c in schema if c.type == "number" and _mentions(q, _normalize(c.name))]
        if not named:
            return "count", ""
        return aggregation, named[0]

    def resolve(self, query: str, schema: Sequence[ColumnDescriptor]) -> IntentOutcome:
        q = (query or "").lower()
        aggregation, field = self.aggregate(q, schema)
        intent = QueryIntent(
            aggregation_type=aggregation,
            group_by_field=self.group_by_field(q, schema, measure=field),
            aggregate_field=field,
            chart_type=self.chart_type(q),
        )
        intent = intent.model_copy(update={"sql": build_sql(intent)})
        logger.info(f"Keyword resolver intent: {intent.model_dump(by_alias=True)}")
        return IntentOutcome(resolver=self.name, success=True, intent=intent)


# ---------------------------------------------------------------------------
# CHAIN
# ---------------------------------------------------------------------------

def default_resolvers() -> list:
    return [ModelIntentResolver(), KeywordIntentResolver()]


def run_resolver_chain(
    query: str,
    schema: Sequence[ColumnDescriptor],
    resolvers: Optional[list] = None,
) -> IntentResolution:
    """
    Try each resolver in order and return the first successful intent.

    Raises:
        IntentResolutionError: only if every resolver failed, which cannot
        happen while KeywordIntentResolver is last in the chain.
    """
    resolvers = resolvers if resolvers is not None else default_resolvers()
    failures: List[IntentOutcome] = []
    for resolver in resolvers:
        outcome = resolver.resolve(query, schema)
        if outcome.success and outcome.intent is not None:
            return IntentResolution(intent=outcome.intent, resolver=outcome.resolver, failures=failures)
        failures.append(outcome)

    errors = "; ".join(f.error or "unknown error" for f in failures)
    raise IntentResolutionError(f"No resolver could interpret the query: {errors}")


def resolve_intent(query: str, schema: Sequence[ColumnDescriptor]) -> QueryIntent:
    return run_resolver_chain(query, schema).intent
