import re
from datetime import date
from typing import Any, Dict, Sequence

import pandas as pd


def to_csv(data: Sequence[Dict[str, Any]]) -> str:
    """CSV text for result rows; columns follow the first record's keys."""
    if not data:
        return ""
    headers = list(data[0].keys())
    return pd.DataFrame(list(data), columns=headers).to_csv(index=False, lineterminator="\n")


def export_filename(base: str, extension: str) -> str:
    safe = re.sub(r"[^a-zA-Z0-9]", "-", base or "analysis") or "analysis"
    return f"{safe}-{date.today().isoformat()}.{extension}"
