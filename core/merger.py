"""
Order Merger - Combines the three sub-documents of one order into an OrderRecord.

Input (from SplitFetcher):
    HEADER            {"id", "visualId", "total", "status": {...}, "contact": {...}, ...}
    LINE_ITEMS        {"id", "lineItemGroups": {"nodes": [...]}}
    FILES_FINANCIAL   {"id", "productionFiles": {...}, "fees": {...}, "expenses": {...},
                       "tasks": {...}, "transactions": {...}}

Output:
    OrderRecord whose to_dict() is the header fields followed by lineItemGroups
    and the five files/financial connections, plus attachment counts.

Key behaviors:
  - All three sub-documents must carry the order's internal id. A mismatch
    means responses for different orders were about to be combined; that raises
    MergeInvariantViolation and nothing is produced.
  - Attachment counts are plain element counts of the nested ``nodes`` lists;
    missing connections count as zero. Nothing is validated or cross-referenced.
"""

from typing import Any, Dict, Optional

from .exceptions import MergeInvariantViolation
from .models import (
    FILES_FINANCIAL_FIELDS,
    AttachmentCounts,
    OrderKind,
    OrderRecord,
    OrderRef,
    SubDocument,
    SubDocumentSection,
)


def _nodes(connection: Optional[Dict[str, Any]]):
    if not connection:
        return []
    # GraphQL lists may hold null entries
    return [node for node in connection.get("nodes") or [] if isinstance(node, dict)]


def count_attachments(order: Dict[str, Any]) -> AttachmentCounts:
    """Count file attachments in a merged order dict.

    Works on both a freshly merged record and one loaded from disk.
    """
    counts = AttachmentCounts(production_files=len(_nodes(order.get("productionFiles"))))

    for group in _nodes(order.get("lineItemGroups")):
        for item in _nodes(group.get("lineItems")):
            counts.line_item_mockups += len(_nodes(item.get("mockups")))
        for imprint in _nodes(group.get("imprints")):
            counts.imprint_mockups += len(_nodes(imprint.get("mockups")))

    return counts


class OrderMerger:
    """Merges sub-documents into OrderRecords."""

    def merge(
        self,
        kind: OrderKind,
        ref: OrderRef,
        header: SubDocument,
        line_items: SubDocument,
        files_financial: SubDocument,
    ) -> OrderRecord:
        """Merge the three sub-documents for ``ref``.

        Raises:
            MergeInvariantViolation: A sub-document is for another order or is
                in the wrong position.
        """
        expected = (
            (header, SubDocumentSection.HEADER),
            (line_items, SubDocumentSection.LINE_ITEMS),
            (files_financial, SubDocumentSection.FILES_FINANCIAL),
        )
        for document, section in expected:
            if document.section is not section:
                raise MergeInvariantViolation(
                    f"{kind.value} #{ref.visual_id}: expected {section.value} sub-document, "
                    f"got {document.section.value}"
                )
            if document.order_id != ref.internal_id:
                raise MergeInvariantViolation(
                    f"{kind.value} #{ref.visual_id}: {section.value} sub-document belongs to "
                    f"order {document.order_id!r}, expected {ref.internal_id!r}"
                )

        files = {key: files_financial.fields.get(key) for key in FILES_FINANCIAL_FIELDS}
        record = OrderRecord(
            kind=kind,
            ref=ref,
            header=dict(header.fields),
            line_item_groups=line_items.fields.get("lineItemGroups"),
            files_financial=files,
        )
        record.attachment_counts = count_attachments(record.to_dict())
        return record
