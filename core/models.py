"""
Models - Order kinds, phases, and the records that flow through the pipeline.

Printavo has two structurally identical order kinds: invoices (extracted first)
and quotes. Each order is identified by an opaque internal id (used to query
it) and a visual id (the sequence number users see, used as the storage key).

An order is fetched as three SubDocuments:

  HEADER           metadata, status, contact, addresses
  LINE_ITEMS       lineItemGroups -> imprints/lineItems -> mockups
  FILES_FINANCIAL  productionFiles, fees, expenses, tasks, transactions

OrderMerger combines them into one OrderRecord. OrderRecord.to_dict() is the
exact JSON written to disk, one file per visual id.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class OrderKind(Enum):
    """The two order categories, in extraction order."""

    INVOICE = "invoice"
    QUOTE = "quote"

    @property
    def graphql_field(self) -> str:
        """Single-object query field, e.g. ``invoice(id: $id)``."""
        return self.value

    @property
    def connection_field(self) -> str:
        """Listing connection field, e.g. ``invoices(first: 25)``."""
        return f"{self.value}s"

    @property
    def directory(self) -> str:
        """Output partition under the data directory."""
        return f"{self.value}s"

    @property
    def counter_key(self) -> str:
        """Checkpoint attribute counting processed orders of this kind."""
        return f"{self.value}s_processed"


class Phase(Enum):
    """Extraction phase. Moves forward only: INVOICES -> QUOTES -> COMPLETE."""

    INVOICES = "invoices"
    QUOTES = "quotes"
    COMPLETE = "complete"

    @property
    def kind(self) -> Optional[OrderKind]:
        return _PHASE_KINDS.get(self)

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)

    def next(self) -> "Phase":
        if self is Phase.COMPLETE:
            return self
        return _PHASE_ORDER[self.rank + 1]


_PHASE_ORDER = [Phase.INVOICES, Phase.QUOTES, Phase.COMPLETE]
_PHASE_KINDS = {Phase.INVOICES: OrderKind.INVOICE, Phase.QUOTES: OrderKind.QUOTE}


@dataclass(frozen=True)
class OrderRef:
    """One listing entry: the id to query with and the id to store under."""

    internal_id: str
    visual_id: str


class SubDocumentSection(Enum):
    HEADER = "header"
    LINE_ITEMS = "line_items"
    FILES_FINANCIAL = "files_financial"


@dataclass
class SubDocument:
    """A partial view of one order as returned by one sub-query.

    ``fields`` holds exactly what the remote returned. A connection that was
    not requested is absent from ``fields``; one that was requested but has no
    entries is present with an empty ``nodes`` list.
    """

    section: SubDocumentSection
    order_id: str
    fields: Dict[str, Any]


@dataclass
class AttachmentCounts:
    """Attachment totals for one order, or accumulated across a run."""

    production_files: int = 0
    line_item_mockups: int = 0
    imprint_mockups: int = 0

    @property
    def total(self) -> int:
        return self.production_files + self.line_item_mockups + self.imprint_mockups

    def __add__(self, other: "AttachmentCounts") -> "AttachmentCounts":
        return AttachmentCounts(
            production_files=self.production_files + other.production_files,
            line_item_mockups=self.line_item_mockups + other.line_item_mockups,
            imprint_mockups=self.imprint_mockups + other.imprint_mockups,
        )


# Keys FILES_FINANCIAL contributes to the merged record, in output order.
FILES_FINANCIAL_FIELDS = ("productionFiles", "fees", "expenses", "tasks", "transactions")


@dataclass
class OrderRecord:
    """The merged, canonical record for one order."""

    kind: OrderKind
    ref: OrderRef
    header: Dict[str, Any]
    line_item_groups: Optional[Dict[str, Any]]
    files_financial: Dict[str, Optional[Dict[str, Any]]]
    attachment_counts: AttachmentCounts = field(default_factory=AttachmentCounts)
    extracted_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the on-disk layout."""
        data: Dict[str, Any] = {
            "extractedAt": self.extracted_at,
            "type": self.kind.value,
            "printavoId": self.ref.internal_id,
            "visualId": self.ref.visual_id,
        }
        data.update(self.header)
        data["lineItemGroups"] = self.line_item_groups
        for key in FILES_FINANCIAL_FIELDS:
            data[key] = self.files_financial.get(key)
        return data
