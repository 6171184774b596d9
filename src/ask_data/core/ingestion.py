import csv
import io
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from ask_data.config import settings
from ask_data.core.dataset_store import DatasetStore
from ask_data.core.sample_data import SAMPLE_DATASETS, SAMPLE_DATASET_FILES
from ask_data.core.schema import infer_schema
from ask_data.utils.exceptions import FileProcessingError
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)


def _sniff_delimiter(file_content: bytes) -> str:
    # Decode a small chunk to sniff the delimiter (comma or semicolon)
    try:
        decoded_chunk = file_content[:4096].decode("utf-8", errors="ignore")
        return csv.Sniffer().sniff(decoded_chunk, delimiters=",;\t|").delimiter
    except csv.Error:
        return ","


def _frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    # object dtype turns numpy scalars into Python ones; NaN becomes None
    clean = df.astype(object).where(df.notna(), None)
    return clean.to_dict(orient="records")


def parse_csv(file_content: bytes, filename: str) -> List[Dict[str, Any]]:
    """
    Parse uploaded CSV bytes into an ordered list of records.

    Raises:
        FileProcessingError: on oversize, unreadable or empty input.
    """
    logger.info(f"Starting ingestion for file: {filename}")

    size_mb = len(file_content) / (1024 * 1024)
    if size_mb > settings.MAX_UPLOAD_SIZE_MB:
        raise FileProcessingError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")

    if not file_content.strip():
        raise FileProcessingError("CSV file appears to be empty or has no valid data rows.")

    delimiter = _sniff_delimiter(file_content)
    logger.info(f"Detected delimiter: '{delimiter}'")

    try:
        df = pd.read_csv(
            io.BytesIO(file_content),
            sep=delimiter,
            skip_blank_lines=True,
            on_bad_lines="error",
            encoding="utf-8",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        logger.error(f"Error during ingestion: {e}")
        raise FileProcessingError(
            "Failed to parse CSV file. Please check the format.", details=str(e)
        )

    df.columns = [str(c).strip() for c in df.columns]
    df = df.dropna(how="all")

    if df.empty:
        raise FileProcessingError("CSV file appears to be empty or has no valid data rows.")

    logger.info(f"Parsed {filename}. Shape: {df.shape}")
    return _frame_to_records(df)


def ingest_records(
    records: Sequence[Mapping[str, Any]],
    name: str,
    store: DatasetStore,
    dataset_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Infer the schema, store the rows and build the upload response.
    Empty input never creates a store entry.
    """
    if not records:
        raise FileProcessingError("CSV file appears to be empty or has no valid data rows.")

    schema = infer_schema(records, sample_size=settings.SCHEMA_SAMPLE_ROWS)
    dataset = store.add(records, schema, name=name, dataset_id=dataset_id)

    return {
        "success": True,
        "schema": [col.model_dump() for col in dataset.schema_],
        "rowCount": dataset.row_count,
        "preview": dataset.rows[:settings.PREVIEW_ROWS],
        "fullData": dataset.rows if dataset.row_count <= settings.FULL_DATA_MAX_ROWS else None,
        "filename": name,
        "datasetId": dataset.id,
    }


def load_sample_dataset(name: str, store: DatasetStore) -> Dict[str, Any]:
    """
    Load a demo dataset, preferring its CSV under SAMPLE_DATA_DIR and falling
    back to the built-in records. Stored under the fixed id `sample-<name>`.
    """
    if name not in SAMPLE_DATASETS:
        raise FileProcessingError(
            f"Unknown sample dataset '{name}'. Choose one of: {', '.join(SAMPLE_DATASETS)}."
        )

    records: List[Dict[str, Any]] = []
    source = "hardcoded"
    path = os.path.join(settings.SAMPLE_DATA_DIR, SAMPLE_DATASET_FILES[name])
    if os.path.isfile(path):
        try:
            with open(path, "rb") as fh:
                records = parse_csv(fh.read(), SAMPLE_DATASET_FILES[name])
            source = "csv_file"
        except FileProcessingError as e:
            logger.warning(f"Sample file {path} unusable, using built-in data: {e.message}")

    if not records:
        records = SAMPLE_DATASETS[name]

    response = ingest_records(records, name, store, dataset_id=f"sample-{name}")
    response["source"] = source
    return response
