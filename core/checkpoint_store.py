"""
Checkpoint Store - Durable run progress in progress.json.

Tracks which phase the run is in, how many orders of each kind were extracted,
cumulative attachment counts, and the error count. It is read once at startup
and rewritten (atomically) by the orchestrator as the run advances.

The JSON layout is camelCase so data directories written by earlier versions
of the backup tool resume without conversion:

    {
      "phase": "invoices" | "quotes" | "complete",
      "lastProcessedVisualId": "1042",
      "invoicesProcessed": 812,
      "quotesProcessed": 0,
      "totalProductionFiles": 1930,
      "totalLineItemMockups": 4410,
      "totalImprintMockups": 1203,
      "errors": 3,
      "startedAt": "...",
      "lastUpdated": "..."
    }
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .models import AttachmentCounts, OrderKind, Phase
from .output_manager import read_json, write_json_atomic

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Checkpoint:
    phase: Phase = Phase.INVOICES
    last_processed_visual_id: Optional[str] = None
    invoices_processed: int = 0
    quotes_processed: int = 0
    total_production_files: int = 0
    total_line_item_mockups: int = 0
    total_imprint_mockups: int = 0
    errors: int = 0
    started_at: str = field(default_factory=utc_now_iso)
    last_updated: str = field(default_factory=utc_now_iso)

    @property
    def attachment_counts(self) -> AttachmentCounts:
        return AttachmentCounts(
            production_files=self.total_production_files,
            line_item_mockups=self.total_line_item_mockups,
            imprint_mockups=self.total_imprint_mockups,
        )

    def processed(self, kind: OrderKind) -> int:
        return getattr(self, kind.counter_key)

    def record_success(self, kind: OrderKind, visual_id: str, counts: AttachmentCounts) -> None:
        setattr(self, kind.counter_key, self.processed(kind) + 1)
        self.last_processed_visual_id = visual_id
        self.total_production_files += counts.production_files
        self.total_line_item_mockups += counts.line_item_mockups
        self.total_imprint_mockups += counts.imprint_mockups

    def record_error(self) -> None:
        self.errors += 1

    def advance_to(self, phase: Phase) -> None:
        """Move to ``phase``. Moving backward raises ValueError."""
        if phase.rank < self.phase.rank:
            raise ValueError(f"Cannot move checkpoint back from {self.phase.value} to {phase.value}")
        self.phase = phase

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "lastProcessedVisualId": self.last_processed_visual_id,
            "invoicesProcessed": self.invoices_processed,
            "quotesProcessed": self.quotes_processed,
            "totalProductionFiles": self.total_production_files,
            "totalLineItemMockups": self.total_line_item_mockups,
            "totalImprintMockups": self.total_imprint_mockups,
            "errors": self.errors,
            "startedAt": self.started_at,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Checkpoint":
        defaults = cls()
        phase_value = data.get("phase") or Phase.INVOICES.value
        return cls(
            phase=Phase(phase_value),
            last_processed_visual_id=data.get("lastProcessedVisualId"),
            invoices_processed=int(data.get("invoicesProcessed") or 0),
            quotes_processed=int(data.get("quotesProcessed") or 0),
            total_production_files=int(data.get("totalProductionFiles") or 0),
            total_line_item_mockups=int(data.get("totalLineItemMockups") or 0),
            total_imprint_mockups=int(data.get("totalImprintMockups") or 0),
            errors=int(data.get("errors") or 0),
            started_at=data.get("startedAt") or defaults.started_at,
            last_updated=data.get("lastUpdated") or defaults.last_updated,
        )


class CheckpointStore:
    """Loads and saves the Checkpoint at a fixed path."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Checkpoint:
        """Load the checkpoint, or start a fresh one if none exists.

        An unreadable checkpoint raises. Delete the file to start over.
        """
        data = read_json(self.path)
        if data is None:
            logger.info("No checkpoint at %s, starting a new run", self.path)
            return Checkpoint()
        return Checkpoint.from_dict(data)

    def save(self, checkpoint: Checkpoint) -> str:
        checkpoint.last_updated = utc_now_iso()
        return write_json_atomic(self.path, checkpoint.to_dict())
