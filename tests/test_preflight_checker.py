"""Tests for core.preflight_checker.PreflightChecker."""

from unittest.mock import MagicMock

from core.exceptions import FatalFailure, TransientFailure
from core.preflight_checker import PreflightChecker


def test_preflight_reports_totals():
    scheduler = MagicMock()
    scheduler.execute.return_value = {"invoices": {"totalNodes": 812}, "quotes": {"totalNodes": 40}}

    result = PreflightChecker(scheduler).check()

    assert result.proceed is True
    assert result.invoice_total == 812
    assert result.quote_total == 40
    assert result.order_total == 852
    assert result.error is None


def test_preflight_auth_failure():
    scheduler = MagicMock()
    scheduler.execute.side_effect = FatalFailure("HTTP 401: Unauthorized")

    result = PreflightChecker(scheduler).check()

    assert result.proceed is False
    assert "401" in result.error


def test_preflight_exhausted_retries():
    scheduler = MagicMock()
    scheduler.execute.side_effect = TransientFailure("HTTP 503")

    result = PreflightChecker(scheduler).check()

    assert result.proceed is False
    assert result.order_total == 0


def test_preflight_uses_fake_api(fake_api):
    from core.scheduler import RateGate, RequestScheduler

    scheduler = RequestScheduler(fake_api, RateGate(0), retry_delay=0, sleep=lambda s: None)
    result = PreflightChecker(scheduler, debug=True).check()

    assert result.invoice_total == 3
    assert result.quote_total == 2
