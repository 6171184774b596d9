from types import SimpleNamespace

import pytest

from ask_data.config import settings
from ask_data.core import dataset_store
from ask_data.core.dataset_store import DatasetStore
from ask_data.core.ingestion import ingest_records, load_sample_dataset, parse_csv
from ask_data.core.schema import infer_schema
from ask_data.utils.exceptions import FileProcessingError
from ask_data.utils.logger import get_logger

# --- Tests for Ingestion ---

def test_parse_valid_csv():
    """Test that a valid CSV is parsed into records."""
    records = parse_csv(b"A,B\n1,2\n3,4", "test.csv")
    assert records == [{"A": 1, "B": 2}, {"A": 3, "B": 4}]

def test_parse_semicolon_csv():
    """Test that a semicolon-separated file is detected."""
    records = parse_csv(b"region;cost\nNorth;10\nSouth;20\n", "semi.csv")
    assert list(records[0].keys()) == ["region", "cost"]
    assert records[1]["region"] == "South"

def test_parse_strips_headers_and_blanks_become_none():
    records = parse_csv(b" name , cost\nA,\nB,5\n", "blank.csv")
    assert list(records[0].keys()) == ["name", "cost"]
    assert records[0]["cost"] is None

def test_parse_empty_csv():
    """Test that an empty CSV raises an error."""
    with pytest.raises(FileProcessingError):
        parse_csv(b"", "empty.csv")

def test_parse_header_only_csv():
    with pytest.raises(FileProcessingError):
        parse_csv(b"A,B\n", "header.csv")

def test_parse_rejects_oversize(monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)
    with pytest.raises(FileProcessingError):
        parse_csv(b"A\n1\n", "big.csv")

def test_ingest_records_response(store):
    rows = [{"region": f"R{i}", "cost": i} for i in range(15)]
    response = ingest_records(rows, "regions.csv", store)
    assert response["success"] is True
    assert response["rowCount"] == 15
    assert len(response["preview"]) == 10
    assert response["filename"] == "regions.csv"
    assert [c["name"] for c in response["schema"]] == ["region", "cost"]
    assert response["datasetId"] in store

def test_ingest_empty_records_creates_nothing(store):
    with pytest.raises(FileProcessingError):
        ingest_records([], "empty.csv", store)
    assert len(store) == 0

def test_load_sample_uses_builtin_data(store, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "SAMPLE_DATA_DIR", str(tmp_path))
    response = load_sample_dataset("germany_sample", store)
    assert response["source"] == "hardcoded"
    assert response["datasetId"] == "sample-germany_sample"
    assert response["rowCount"] == 8

def test_load_sample_prefers_csv_file(store, monkeypatch, tmp_path):
    (tmp_path / "case_study_germany_treatment_costs_sample.csv").write_text(
        "treatment_name,indication,total_cost\nSurgery,Heart Disease,14000\n"
    )
    monkeypatch.setattr(settings, "SAMPLE_DATA_DIR", str(tmp_path))
    response = load_sample_dataset("treatment_costs", store)
    assert response["source"] == "csv_file"
    assert response["rowCount"] == 1

def test_load_unknown_sample(store):
    with pytest.raises(FileProcessingError):
        load_sample_dataset("nope", store)

# --- Tests for Dataset Store ---

def test_store_drops_keys_outside_schema(store):
    rows = [{"a": 1, "b": "x"}, {"a": 2, "b": "y", "extra": "z"}]
    dataset = store.add(rows, infer_schema(rows))
    assert dataset.rows[1] == {"a": 2, "b": "y"}

def test_store_generates_distinct_ids(store):
    rows = [{"a": 1}]
    first = store.add(rows, infer_schema(rows))
    second = store.add(rows, infer_schema(rows))
    assert first.id != second.id
    assert len(store) == 2

def test_store_unknown_id(store):
    assert store.get("missing") is None

def test_store_rejects_empty(store):
    with pytest.raises(ValueError):
        store.add([], [])

def test_store_ttl_eviction(monkeypatch):
    clock = [100.0]
    monkeypatch.setattr(dataset_store, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    store = DatasetStore(ttl_seconds=60)
    rows = [{"a": 1}]
    kept = store.add(rows, infer_schema(rows))
    clock[0] = 130.0
    assert store.get(kept.id) is not None
    clock[0] = 200.0
    assert store.evict_expired() == 1
    assert store.get(kept.id) is None

def test_parse_ragged_row_fails():
    """Test that a row with extra fields fails the upload instead of being dropped."""
    with pytest.raises(FileProcessingError) as exc:
        parse_csv(b"a,b\n1,2\n3,4,5\n6,7\n", "ragged.csv")
    assert exc.value.details

# --- Tests for Logging ---

def test_logger_creates_log_dir_on_first_use(monkeypatch, tmp_path):
    log_dir = tmp_path / "nested" / "logs"
    monkeypatch.setattr(settings, "LOG_DIR", str(log_dir))
    assert not log_dir.exists()

    log = get_logger("ask_data.tests.log_dir")
    try:
        assert (log_dir / "app.log").exists()
    finally:
        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)
