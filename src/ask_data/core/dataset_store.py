import threading
import time
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ask_data.models import ColumnDescriptor, Dataset, Record
from ask_data.utils.logger import get_logger

logger = get_logger(__name__)


def _new_dataset_id() -> str:
    return uuid.uuid4().hex[:12]


def coerce_scalar(value: Any):
    """Map a parsed cell onto the scalar kinds a Record may hold."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    # numpy scalars expose .item()
    item = getattr(value, "item", None)
    if callable(item):
        try:
            native = item()
        except (TypeError, ValueError):
            native = None
        if native is None or isinstance(native, (str, bool, int, float)):
            return native
    return str(value)


def normalize_rows(rows: Sequence[Mapping[str, Any]], columns: List[str]) -> List[Record]:
    """Drop keys outside the schema and coerce every value to a scalar."""
    allowed = set(columns)
    normalized = []
    for row in rows:
        normalized.append({
            str(k): coerce_scalar(v) for k, v in row.items() if str(k) in allowed
        })
    return normalized


class DatasetStore:
    """
    Process-wide map of dataset id → Dataset.

    Entries are never mutated after insertion, so readers take no lock.
    Inserts and evictions are serialised. With `ttl_seconds` set, entries
    older than the TTL are dropped on access and by `evict_expired()`;
    without it they live until the process exits.
    """

    def __init__(self, ttl_seconds: Optional[float] = None):
        self.ttl_seconds = ttl_seconds
        self._datasets: Dict[str, Tuple[Dataset, float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._datasets)

    def __contains__(self, dataset_id: str) -> bool:
        return self.get(dataset_id) is not None

    def add(
        self,
        rows: Sequence[Mapping[str, Any]],
        schema: List[ColumnDescriptor],
        name: str = "dataset",
        dataset_id: Optional[str] = None,
    ) -> Dataset:
        """
        Store a new dataset and return it.

        A fresh id is generated unless `dataset_id` is given (sample datasets
        use fixed ids and are replaced on reload).
        """
        if not rows:
            raise ValueError("Cannot store an empty dataset.")

        dataset = Dataset(
            id=dataset_id or _new_dataset_id(),
            name=name,
            rows=normalize_rows(rows, [c.name for c in schema]),
            schema=schema,
        )
        with self._lock:
            self._datasets[dataset.id] = (dataset, time.monotonic())
        logger.info(f"Stored dataset '{dataset.name}' as {dataset.id} ({dataset.row_count} rows).")
        return dataset

    def _expired(self, stored_at: float) -> bool:
        return self.ttl_seconds is not None and time.monotonic() - stored_at > self.ttl_seconds

    def get(self, dataset_id: str) -> Optional[Dataset]:
        entry = self._datasets.get(dataset_id)
        if entry is None:
            return None
        dataset, stored_at = entry
        if self._expired(stored_at):
            self.remove(dataset_id)
            logger.info(f"Dataset {dataset_id} expired.")
            return None
        return dataset

    def remove(self, dataset_id: str) -> bool:
        with self._lock:
            return self._datasets.pop(dataset_id, None) is not None

    def evict_expired(self) -> int:
        if self.ttl_seconds is None:
            return 0
        with self._lock:
            stale = [k for k, (_, ts) in self._datasets.items() if self._expired(ts)]
            for key in stale:
                del self._datasets[key]
        if stale:
            logger.info(f"Evicted {len(stale)} expired dataset(s).")
        return len(stale)
