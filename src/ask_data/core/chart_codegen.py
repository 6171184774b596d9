"""
chart_codegen.py
─────────────────────────────────────────────────────────────────────────────
Model-backed chart generation.

The model is asked for a declarative chart spec (chart type, x/y field,
title, colours, legend), not rendering code. The reply is validated against
the result's field names before it is returned, so callers only ever feed a
known ChartSpec into the fixed primitives in visualization.py.

There is no deterministic equivalent for arbitrary chart requests: on any
failure callers fall back to chart_config_from_result + render_chart.
─────────────────────────────────────────────────────────────────────────────
"""

import json
from typing import Any, Dict, Optional, Sequence

import groq
from groq import Groq
from pydantic import ValidationError

from ask_data.config import settings
from ask_data.core.intent import strip_code_fence
from ask_data.core.schema import describe_schema
from ask_data.models import ChartCodeResult, ChartSpec, ColumnDescriptor
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)

SPEC_CHART_TYPES = ("bar", "line", "pie", "area", "scatter")
PROMPT_SAMPLE_ROWS = 3


def _get_client(timeout: float) -> Groq:
    return Groq(api_key=settings.GROQ_API_KEY, timeout=timeout, max_retries=0)


_SYSTEM_PROMPT = (
    "You are a data visualization expert. You return ONLY a JSON object describing a chart. "
    "Never return code, markup or explanations."
)


def _build_prompt(query: str, data: Sequence[Dict[str, Any]], schema: Sequence[ColumnDescriptor],
                  chart_type: Optional[str]) -> str:
    fields = ", ".join(data[0].keys())
    sample = json.dumps(list(data[:PROMPT_SAMPLE_ROWS]), default=str)
    return f"""Design a {chart_type or "suitable"} chart for this analysis result.

User question: "{query}"

Dataset schema:
{describe_schema(schema)}

Result fields: {fields}
Result sample: {sample}

Response format (JSON only):
{{
  "chartType": "{'|'.join(SPEC_CHART_TYPES)}",
  "xField": "one of the result fields",
  "yField": "one of the result fields (numeric)",
  "title": "short chart title",
  "colors": ["#4C9BE8", "..."],
  "showLegend": true
}}

Rules:
- Use exact field names from the result
- "line" or "area" for trends over time, "pie" for shares of a whole,
  "scatter" for two numeric fields, "bar" otherwise"""


def _fail(error: str) -> ChartCodeResult:
    logger.warning(f"Chart generation failed: {error}")
    return ChartCodeResult(success=False, error=error)


def generate_chart_code(
    query: str,
    result: Sequence[Dict[str, Any]],
    schema: Sequence[ColumnDescriptor],
    chart_type_hint: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ChartCodeResult:
    """
    Ask the model for a chart spec describing `result`.

    Returns:
        ChartCodeResult with `spec` and its canonical JSON in `code` on
        success, or `error` on failure. Never raises.
    """
    if not settings.GROQ_API_KEY:
        return _fail(
            "Groq API key not configured. Please set GROQ_API_KEY in your environment variables."
        )
    if not result:
        return _fail("There is no result data to chart.")

    timeout = timeout if timeout is not None else settings.CHART_TIMEOUT_SECONDS
    try:
        client = _get_client(timeout)
        response = client.chat.completions.create(
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": _build_prompt(query, result, schema, chart_type_hint)},
            ],
            model=settings.DEFAULT_MODEL,
            temperature=settings.TEMPERATURE,
            max_tokens=settings.CHART_MAX_TOKENS,
        )
    except groq.APITimeoutError:
        return _fail("Chart request timed out. Please try again with a simpler query.")
    except groq.APIError as e:
        return _fail(f"Failed to generate chart: {e}. Please try rephrasing your request.")

    raw = response.choices[0].message.content if response.choices else None
    if not raw or not raw.strip():
        return _fail("The model returned an empty response. Please try rephrasing your query.")

    try:
        payload = json.loads(strip_code_fence(raw))
        if not isinstance(payload, dict):
            raise ValueError("Expected a JSON object.")
        spec = ChartSpec.model_validate(payload)
    except (ValueError, ValidationError) as e:
        return _fail(f"The model returned an invalid chart specification: {e}")

    fields = set(result[0].keys())
    missing = [f for f in (spec.x_field, spec.y_field) if f not in fields]
    if missing:
        return _fail(f"Chart specification references unknown field(s): {', '.join(missing)}.")

    logger.info(f"Generated {spec.chart_type} chart spec for '{query[:60]}'.")
    return ChartCodeResult(
        success=True,
        code=spec.model_dump_json(by_alias=True),
        spec=spec,
    )
