"""
pipeline.py
─────────────────────────────────────────────────────────────────────────────
Entry points used by the API: ingest a CSV or sample, answer a question,
generate a chart. Every function returns a dict with a `success` flag;
failures are reported in `error` / `details` and never raised to the caller.

  question → run_resolver_chain → aggregate → classify_display → explanations
─────────────────────────────────────────────────────────────────────────────
"""

from typing import Any, Dict, Optional, Sequence

from ask_data.config import settings
from ask_data.core.aggregation import aggregate
from ask_data.core.chart_codegen import generate_chart_code
from ask_data.core.dataset_store import DatasetStore
from ask_data.core.display import chart_config_from_result, classify_display
from ask_data.core.ingestion import ingest_records, load_sample_dataset, parse_csv
from ask_data.core.insights import build_explanations
from ask_data.core.intent import run_resolver_chain
from ask_data.core.visualization import render_chart
from ask_data.models import AnalysisResult, ColumnDescriptor
from ask_data.utils.exceptions import AppException, DatasetNotFoundError, InvalidQueryError
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)

# Process-wide store; pass another one explicitly to isolate callers
default_store = DatasetStore(ttl_seconds=settings.DATASET_TTL_SECONDS)


def _failure(error: str, details: Optional[str] = None, **extra) -> Dict[str, Any]:
    response = {"success": False, "error": error}
    if details:
        response["details"] = details
    response.update(extra)
    return response


def process_csv(file_content: bytes, filename: str, store: DatasetStore = None) -> Dict[str, Any]:
    """Parse an uploaded CSV and register it as a new dataset."""
    store = store if store is not None else default_store
    try:
        records = parse_csv(file_content, filename)
        return ingest_records(records, filename, store)
    except AppException as e:
        return _failure(e.message, e.details)
    except Exception as e:
        logger.error(f"Error processing CSV: {e}", exc_info=True)
        return _failure("An unexpected error occurred while processing the CSV file.", str(e))


def load_sample(name: str, store: DatasetStore = None) -> Dict[str, Any]:
    store = store if store is not None else default_store
    try:
        return load_sample_dataset(name, store)
    except AppException as e:
        logger.error(f"Error loading sample data: {e.message}")
        return _failure("Failed to load sample data", e.message)


def process_query(
    query: str,
    dataset_id: str,
    store: DatasetStore = None,
    resolvers: Optional[list] = None,
) -> Dict[str, Any]:
    """
    Answer a natural-language question against a stored dataset.

    Returns:
        {success, sql, result, displayType, interpretation, chartConfig,
        explanations} or {success: False, error, details?, sql?}.
    """
    store = store if store is not None else default_store
    sql = None
    try:
        if not query or not query.strip():
            raise InvalidQueryError("Query text is required.")

        dataset = store.get(dataset_id)
        if dataset is None or not dataset.rows:
            raise DatasetNotFoundError()

        logger.info(f"Processing query on {dataset_id}: '{query[:80]}'")
        resolution = run_resolver_chain(query, dataset.schema_, resolvers)
        intent = resolution.intent
        sql = intent.sql
        for failure in resolution.failures:
            logger.info(f"Resolver '{failure.resolver}' skipped: {failure.error}")

        rows = aggregate(dataset.rows, intent)
        display_type = classify_display(query, intent, rows)
        analysis = AnalysisResult(
            data=rows[:settings.RESULT_ROW_CAP],
            sql=sql,
            display_type=display_type,
            explanations=build_explanations(intent, display_type, rows),
        )
        config = chart_config_from_result(analysis.data, intent.chart_type)

        return {
            "success": True,
            "sql": analysis.sql,
            "result": analysis.data,
            "displayType": analysis.display_type,
            "interpretation": {
                "aggregation": intent.aggregation_type,
                "groupBy": [intent.group_by_field] if intent.group_by_field else [],
                "filters": [],
                "chartType": intent.chart_type,
                "displayType": display_type,
                "resolver": resolution.resolver,
            },
            "chartConfig": config.model_dump(by_alias=True) if config else None,
            "explanations": analysis.explanations,
        }

    except DatasetNotFoundError as e:
        logger.warning(f"Query against unknown dataset '{dataset_id}'.")
        return _failure(e.message, "Please upload a dataset first.")
    except AppException as e:
        logger.error(f"Query processing failed: {e.message}")
        return _failure(e.message, e.details, sql=sql or "-- Query processing failed")
    except Exception as e:
        logger.error(f"Query processing error: {e}", exc_info=True)
        return _failure("Failed to process query", str(e), sql=sql or "-- Query processing failed")


def generate_chart(
    query: str,
    data: Sequence[Dict[str, Any]],
    schema: Sequence[ColumnDescriptor],
    chart_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Generate a chart spec for a result. On failure the response carries a
    fallback chart built from the first two result fields.
    """
    outcome = generate_chart_code(query, data, schema, chart_type)
    if outcome.success:
        return {
            "success": True,
            "code": outcome.code,
            "spec": outcome.spec.model_dump(by_alias=True),
            "figure": render_chart(data, outcome.spec),
        }

    fallback_type = chart_type if chart_type in ("bar", "line", "pie") else "bar"
    config = chart_config_from_result(data, fallback_type)
    return {
        "success": False,
        "error": outcome.error,
        "fallback": {
            "chartConfig": config.model_dump(by_alias=True) if config else None,
            "figure": render_chart(data, config) if config else None,
        },
    }
