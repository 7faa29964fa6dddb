"""
Error Ledger - Append-only list of orders that failed to extract.

Stored as errors.json ({"errors": [...]}), the layout earlier versions of the
backup tool wrote. Entries are never removed or merged; the ledger is the list of
orders that need a manual re-extraction. A failed order leaves no record file,
so deleting errors.json and re-running retries exactly those orders.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from .models import OrderKind, OrderRef
from .output_manager import read_json, write_json_atomic


@dataclass
class ErrorRecord:
    kind: OrderKind
    visual_id: str
    internal_id: str
    message: str
    retries: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "visualId": self.visual_id,
            "printavoId": self.internal_id,
            "error": self.message,
            "retries": self.retries,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorRecord":
        return cls(
            kind=OrderKind(data["type"]),
            visual_id=str(data.get("visualId", "")),
            internal_id=str(data.get("printavoId", "")),
            message=data.get("error", ""),
            retries=int(data.get("retries") or 0),
            timestamp=data.get("timestamp", ""),
        )


class ErrorLedger:
    """Durable append-only error list."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[ErrorRecord]:
        data = read_json(self.path) or {}
        return [ErrorRecord.from_dict(entry) for entry in data.get("errors", [])]

    def append(self, record: ErrorRecord) -> None:
        data = read_json(self.path) or {"errors": []}
        data.setdefault("errors", []).append(record.to_dict())
        write_json_atomic(self.path, data)

    def record_failure(self, kind: OrderKind, ref: OrderRef, error: Exception, retries: int) -> ErrorRecord:
        record = ErrorRecord(
            kind=kind,
            visual_id=ref.visual_id,
            internal_id=ref.internal_id,
            message=str(error),
            retries=retries,
        )
        self.append(record)
        return record

    def __len__(self) -> int:
        data = read_json(self.path) or {}
        return len(data.get("errors", []))
