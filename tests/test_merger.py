"""Tests for core.merger (OrderMerger and attachment counting)."""

import pytest

from core.exceptions import MergeInvariantViolation
from core.merger import OrderMerger, count_attachments
from core.models import (
    FILES_FINANCIAL_FIELDS,
    AttachmentCounts,
    OrderKind,
    OrderRef,
    SubDocument,
    SubDocumentSection,
)

from conftest import load_fixture

REF = OrderRef("inv-103", "103")


def _parts(order_id="inv-103", visual_id="103"):
    data = load_fixture("order_parts.json")
    for part in data.values():
        part["id"] = order_id
    data["GetHeader"]["visualId"] = visual_id
    return (
        SubDocument(SubDocumentSection.HEADER, order_id, data["GetHeader"]),
        SubDocument(SubDocumentSection.LINE_ITEMS, order_id, data["GetLineItems"]),
        SubDocument(SubDocumentSection.FILES_FINANCIAL, order_id, data["GetFilesFinancial"]),
    )


def test_merge_combines_all_sections():
    record = OrderMerger().merge(OrderKind.INVOICE, REF, *_parts())
    data = record.to_dict()

    assert data["type"] == "invoice"
    assert data["printavoId"] == "inv-103"
    assert data["visualId"] == "103"
    assert data["nickname"] == "Spring team shirts"
    assert data["status"]["name"] == "In Production"
    assert len(data["lineItemGroups"]["nodes"]) == 2
    for key in FILES_FINANCIAL_FIELDS:
        assert key in data
    assert data["expenses"] == {"nodes": []}


def test_merge_counts_attachments():
    record = OrderMerger().merge(OrderKind.INVOICE, REF, *_parts())
    assert record.attachment_counts == AttachmentCounts(
        production_files=2, line_item_mockups=3, imprint_mockups=1
    )
    assert record.attachment_counts.total == 6


def test_merge_rejects_subdocument_for_another_order():
    header, _, files = _parts("inv-103")
    _, other_line_items, _ = _parts("inv-102", "102")

    with pytest.raises(MergeInvariantViolation, match="inv-102"):
        OrderMerger().merge(OrderKind.INVOICE, REF, header, other_line_items, files)


def test_merge_rejects_header_for_another_order():
    other_header, _, _ = _parts("inv-999", "999")
    _, line_items, files = _parts()
    with pytest.raises(MergeInvariantViolation):
        OrderMerger().merge(OrderKind.INVOICE, REF, other_header, line_items, files)


def test_merge_rejects_sections_out_of_position():
    header, line_items, files = _parts()
    with pytest.raises(MergeInvariantViolation, match="expected line_items"):
        OrderMerger().merge(OrderKind.INVOICE, REF, header, files, line_items)


def test_missing_connections_count_as_zero():
    header = SubDocument(SubDocumentSection.HEADER, "q-1", {"id": "q-1", "visualId": "1"})
    line_items = SubDocument(SubDocumentSection.LINE_ITEMS, "q-1", {"id": "q-1", "lineItemGroups": None})
    files = SubDocument(SubDocumentSection.FILES_FINANCIAL, "q-1", {"id": "q-1", "productionFiles": {"nodes": []}})

    record = OrderMerger().merge(OrderKind.QUOTE, OrderRef("q-1", "1"), header, line_items, files)

    assert record.attachment_counts.total == 0
    data = record.to_dict()
    assert data["lineItemGroups"] is None
    assert data["fees"] is None


def test_count_attachments_on_loaded_record():
    order = {
        "productionFiles": {"nodes": [{"id": "pf"}]},
        "lineItemGroups": {"nodes": [
            {"lineItems": {"nodes": [{"mockups": None}, {"mockups": {"nodes": [{}, {}]}}]},
             "imprints": None},
        ]},
    }
    assert count_attachments(order) == AttachmentCounts(1, 2, 0)


def test_count_attachments_skips_null_entries():
    order = {
        "productionFiles": {"nodes": [None, {"id": "pf"}]},
        "lineItemGroups": {"nodes": [
            None,
            {"lineItems": {"nodes": [None, {"mockups": {"nodes": [{}, None]}}]},
             "imprints": {"nodes": [{"mockups": {"nodes": [{}]}}, None]}},
        ]},
    }
    assert count_attachments(order) == AttachmentCounts(1, 1, 1)
