"""Tests for core.split_fetcher.SplitFetcher."""

import pytest

from core.exceptions import FatalFailure, TransientFailure
from core.models import OrderKind, OrderRef, SubDocumentSection
from core.scheduler import RateGate, RequestScheduler
from core.split_fetcher import SplitFetcher

REF = OrderRef("inv-103", "103")


def _fetcher(api, parallel=False, max_attempts=3, gate=None):
    scheduler = RequestScheduler(
        api, gate or RateGate(0), max_attempts=max_attempts, retry_delay=0, sleep=lambda s: None
    )
    return SplitFetcher(scheduler, parallel=parallel)


@pytest.mark.parametrize("parallel", [False, True])
def test_fetch_returns_three_sections(fake_api, parallel):
    header, line_items, files = _fetcher(fake_api, parallel=parallel).fetch(OrderKind.INVOICE, REF)

    assert header.section is SubDocumentSection.HEADER
    assert line_items.section is SubDocumentSection.LINE_ITEMS
    assert files.section is SubDocumentSection.FILES_FINANCIAL
    assert {header.order_id, line_items.order_id, files.order_id} == {"inv-103"}
    assert header.fields["visualId"] == "103"


def test_each_subquery_keyed_only_by_internal_id(fake_api):
    _fetcher(fake_api).fetch(OrderKind.INVOICE, REF)
    assert [op for op, _ in fake_api.calls] == ["GetHeader", "GetLineItems", "GetFilesFinancial"]
    assert all(variables == {"id": "inv-103"} for _, variables in fake_api.calls)


def test_quote_kind_uses_quote_root_field(fake_api):
    header, _, _ = _fetcher(fake_api).fetch(OrderKind.QUOTE, OrderRef("q-7", "7"))
    assert header.fields["visualId"] == "7"


def test_absent_and_empty_connections_are_distinct(fake_api):
    header, line_items, files = _fetcher(fake_api).fetch(OrderKind.INVOICE, REF)
    assert files.fields["expenses"] == {"nodes": []}
    assert "productionFiles" not in header.fields
    assert "lineItemGroups" in line_items.fields
    assert "fees" not in line_items.fields


def test_transient_subquery_recovers(fake_api, transient):
    fake_api.fail("GetLineItems", "inv-103", transient, transient)
    result = _fetcher(fake_api).fetch(OrderKind.INVOICE, REF)
    assert len(result) == 3
    assert fake_api.count("GetLineItems") == 3


@pytest.mark.parametrize("parallel", [False, True])
def test_exhausted_subquery_fails_whole_fetch(fake_api, transient, parallel):
    fake_api.fail_always("GetFilesFinancial", "inv-103", transient)
    with pytest.raises(TransientFailure):
        _fetcher(fake_api, parallel=parallel).fetch(OrderKind.INVOICE, REF)
    assert fake_api.count("GetFilesFinancial") == 3


def test_missing_order_is_fatal(fake_api):
    with pytest.raises(FatalFailure, match="No data returned"):
        _fetcher(fake_api).fetch(OrderKind.INVOICE, OrderRef("inv-gone", "1"))


def test_parallel_fetch_shares_the_gate(fake_api):
    gate = RateGate(0.02)
    _fetcher(fake_api, parallel=True, gate=gate).fetch(OrderKind.INVOICE, REF)
    assert gate.grants == 3
