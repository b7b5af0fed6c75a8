"""
Data-quality audit trail.

Collects per-column counts of values the pipeline imputed, coerced or
defaulted so a successful run can report exactly what it rewrote.
"""
from pathlib import Path
from typing import Dict, List, Optional
import logging

import pandas as pd

logger = logging.getLogger(__name__)

AUDIT_COLUMNS = ["stage", "column", "action", "count"]


class AuditTrail:
    """Append-only record of row-level rewrites, one entry per (stage, column, action)."""

    def __init__(self):
        self._entries: List[Dict] = []

    def record(self, stage: str, column: str, action: str, count: int) -> None:
        self._entries.append({
            "stage": stage,
            "column": column,
            "action": action,
            "count": int(count),
        })

    def total(self, action: Optional[str] = None) -> int:
        return sum(
            e["count"] for e in self._entries
            if action is None or e["action"] == action
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._entries, columns=AUDIT_COLUMNS)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(path, index=False)
        logger.info(f"Saved audit report ({len(self._entries)} entries) to: {path}")

    def __len__(self) -> int:
        return len(self._entries)
