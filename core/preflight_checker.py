"""
Preflight Checker - Verifies API access before a full extraction.
Runs one cheap query for invoice and quote totals so bad credentials fail fast.
"""

from typing import Optional
from dataclasses import dataclass

from .exceptions import ExtractionError
from .graphql_queries import PREFLIGHT_QUERY


@dataclass
class PreflightResult:
    proceed: bool = False
    invoice_total: Optional[int] = None
    quote_total: Optional[int] = None
    error: Optional[str] = None

    @property
    def order_total(self) -> int:
        return (self.invoice_total or 0) + (self.quote_total or 0)


class PreflightChecker:
    """Check API access and report account totals."""

    def __init__(self, scheduler, debug: bool = False):
        self.scheduler = scheduler
        self.debug = debug

    def check(self) -> PreflightResult:
        """Run the preflight query."""
        result = PreflightResult()

        try:
            data = self.scheduler.execute(PREFLIGHT_QUERY, description="preflight")
        except ExtractionError as e:
            result.error = str(e)
            return result

        result.invoice_total = (data.get("invoices") or {}).get("totalNodes")
        result.quote_total = (data.get("quotes") or {}).get("totalNodes")
        result.proceed = True

        if self.debug:
            print(f"  Preflight: {result.invoice_total} invoices, {result.quote_total} quotes")

        return result
