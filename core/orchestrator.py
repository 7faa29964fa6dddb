"""
Extraction Orchestrator - Resumable, phase-driven extraction of all Printavo orders.

This module ties together the other modules into one resumable run:

  Step 1: LOAD CHECKPOINT
      Reads progress.json. A run whose checkpoint is already COMPLETE makes no
      requests, writes summary.json if it is missing, and succeeds.

  Step 2: PREFLIGHT
      One cheap query for invoice/quote totals, so bad credentials fail before
      anything else happens.

  Step 3: PHASES (INVOICES, then QUOTES)
      For the phase's order kind:
        a. CatalogWalker lists every order id, newest first.
        b. Orders already on disk are skipped without any request.
        c. Every other order is fetched by SplitFetcher (3 sub-queries),
           merged by OrderMerger, and saved by the RecordStore.
        d. Order failures go to the ErrorLedger and the loop continues.
      The phase advances once every id of the kind has been attempted.

  Step 4: SUMMARY
      Writes summary.json once the checkpoint reaches COMPLETE.

Resume model:
    Record files are written atomically and never overwritten, and the
    checkpoint is the only other mutable state. A restarted run re-walks the
    catalog (cheap), skips every stored order (cheap), and only pays for the
    orders that are still missing. The checkpoint is flushed every
    CHECKPOINT_EVERY extracted orders, on every error, and on every phase change.

Configuration:
    All settings are loaded from environment variables (typically via .env file).
    Required: PRINTAVO_EMAIL, PRINTAVO_TOKEN. See config/settings.py for defaults.

Typical usage:
    orchestrator = ExtractionOrchestrator(env_file="./.env")
    if orchestrator.validate_config():
        results = orchestrator.run()
        orchestrator.print_summary(results)
"""

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .catalog_walker import CatalogWalker
from .checkpoint_store import Checkpoint, CheckpointStore
from .error_ledger import ErrorLedger
from .exceptions import (
    ConfigurationError,
    ExtractionError,
    FatalFailure,
    MalformedResponse,
    MergeInvariantViolation,
)
from .merger import OrderMerger
from .models import OrderKind, OrderRecord, OrderRef, Phase
from .output_manager import OutputManager, write_json_atomic
from .preflight_checker import PreflightChecker
from .printavo_client import PrintavoClient
from .record_store import FileRecordStore
from .scheduler import RateGate, RequestScheduler
from .split_fetcher import SplitFetcher

from config import DEFAULT_SETTINGS, PLACEHOLDER_EMAIL, PLACEHOLDER_TOKEN

logger = logging.getLogger(__name__)

SKIP_LOG_EVERY = 100


def _banner(title: str):
    print(f"\n{'='*60}")
    print(title)
    print("="*60)


class ExtractionOrchestrator:
    """Orchestrates the resumable Printavo extraction.

    Attributes:
        api_url: Printavo GraphQL endpoint.
        email: Printavo account email.
        token: Printavo API token.
        rate_limit_delay: Minimum seconds between requests.
        retry_delay: Base retry delay in seconds.
        max_retries: Total attempts per request.
        request_timeout: Per-request timeout in seconds.
        checkpoint_every: Extracted orders between checkpoint flushes.
        parallel_subqueries: Issue the three sub-queries concurrently.
        debug: Whether to enable verbose output.
        output_manager: Resolves paths inside the data directory.
    """

    def __init__(self, env_file: str = "./.env"):
        """Initialize the orchestrator by loading configuration from environment.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            print(f"Loaded configuration from: {env_file}")
        else:
            print(f"Warning: {env_file} not found, using defaults/environment")

        self._config_errors: List[str] = []

        # Printavo credentials (required)
        self.email = os.getenv("PRINTAVO_EMAIL", "")
        self.token = os.getenv("PRINTAVO_TOKEN", "")
        self.api_url = os.getenv("PRINTAVO_API", DEFAULT_SETTINGS["PRINTAVO_API"])

        # Pacing and retry
        self.rate_limit_delay = self._env_number("RATE_LIMIT_DELAY_MS", float) / 1000.0
        self.retry_delay = self._env_number("RETRY_DELAY_MS", float) / 1000.0
        self.max_retries = int(self._env_number("MAX_RETRIES", int))
        self.request_timeout = self._env_number("REQUEST_TIMEOUT", float)
        self.checkpoint_every = int(self._env_number("CHECKPOINT_EVERY", int))

        # Processing options
        self.parallel_subqueries = self._env_bool("PARALLEL_SUBQUERIES")
        self.debug = self._env_bool("DEBUG")

        data_dir = os.getenv("DATA_DIR", DEFAULT_SETTINGS["DATA_DIR"])
        self.output_manager = OutputManager(data_dir)

        # Built lazily by build_components() so CLI overrides apply first
        self.gate: Optional[RateGate] = None
        self.scheduler: Optional[RequestScheduler] = None
        self.walker: Optional[CatalogWalker] = None
        self.fetcher: Optional[SplitFetcher] = None
        self.merger = OrderMerger()
        self.record_store = FileRecordStore(self.output_manager)
        self.checkpoint_store = CheckpointStore(self.output_manager.progress_path)
        self.ledger = ErrorLedger(self.output_manager.errors_path)

    def _env_number(self, name: str, cast):
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return cast(DEFAULT_SETTINGS[name])
        try:
            return cast(raw)
        except ValueError:
            self._config_errors.append(f"{name} must be a number (got {raw!r})")
            return cast(DEFAULT_SETTINGS[name])

    @staticmethod
    def _env_bool(name: str) -> bool:
        return os.getenv(name, str(DEFAULT_SETTINGS[name])).strip().lower() in ("true", "1", "yes")

    def has_credentials(self) -> bool:
        return bool(self.email and self.token) and \
            self.email != PLACEHOLDER_EMAIL and self.token != PLACEHOLDER_TOKEN

    def validate_config(self) -> bool:
        """Validate that all required configuration values are present and sane.

        Checks:
            - PRINTAVO_EMAIL and PRINTAVO_TOKEN are set and not placeholders
            - numeric settings parsed and are in range

        Returns:
            True if the configuration is usable, False otherwise.
            Prints specific error messages for each problem.
        """
        errors = list(self._config_errors)
        if not self.email or self.email == PLACEHOLDER_EMAIL:
            errors.append("PRINTAVO_EMAIL is required (set your Printavo login email)")
        if not self.token or self.token == PLACEHOLDER_TOKEN:
            errors.append("PRINTAVO_TOKEN is required (My Account -> API in Printavo)")
        if not self.api_url:
            errors.append("PRINTAVO_API must not be empty")
        if self.max_retries < 1:
            errors.append("MAX_RETRIES must be at least 1")
        if self.rate_limit_delay < 0 or self.retry_delay < 0:
            errors.append("RATE_LIMIT_DELAY_MS and RETRY_DELAY_MS must not be negative")
        if self.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")
        if self.checkpoint_every < 1:
            errors.append("CHECKPOINT_EVERY must be at least 1")

        if errors:
            print("\nConfiguration Errors:")
            for err in errors:
                print(f"  - {err}")
            return False
        return True

    def build_components(self, transport=None):
        """Create the gate, scheduler, walker and fetcher.

        Args:
            transport: Object with ``execute_graphql``; defaults to a
                       PrintavoClient built from the configuration.
        """
        if transport is None:
            transport = PrintavoClient(self.api_url, self.email, self.token, self.request_timeout)
        self.gate = RateGate(self.rate_limit_delay)
        self.scheduler = RequestScheduler(
            transport, self.gate, max_attempts=self.max_retries, retry_delay=self.retry_delay
        )
        self.walker = CatalogWalker(self.scheduler)
        self.fetcher = SplitFetcher(self.scheduler, parallel=self.parallel_subqueries)

    def run(self) -> Dict[str, Any]:
        """Run (or resume) the extraction until COMPLETE or a process-fatal error.

        Returns:
            A dict containing:
                - started_at/completed_at: ISO timestamps
                - connector: "printavo-graphql"
                - config: endpoint, pacing and data directory
                - resumed_phase: phase found in the checkpoint at startup
                - phases: per-kind extracted/skipped/failed counts
                - success: True unless a process-fatal error occurred
                - summary: the summary.json contents (when COMPLETE)
                - error: Error message (if success=False)
        """
        results: Dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "connector": "printavo-graphql",
            "config": {
                "api_url": self.api_url,
                "rate_limit_delay_ms": int(self.rate_limit_delay * 1000),
                "max_retries": self.max_retries,
                "parallel_subqueries": self.parallel_subqueries,
                "data_dir": self.output_manager.base_dir,
            },
            "phases": {},
            "success": False,
        }
        started = time.monotonic()
        checkpoint: Optional[Checkpoint] = None

        try:
            if not self.has_credentials():
                raise ConfigurationError("PRINTAVO_EMAIL and PRINTAVO_TOKEN must be set to real values")

            # Step 1: Load checkpoint
            _banner("STEP 1: LOAD CHECKPOINT")
            self.output_manager.ensure_dirs([kind.directory for kind in OrderKind])
            checkpoint = self.checkpoint_store.load()
            results["resumed_phase"] = checkpoint.phase.value
            print(f"  Phase: {checkpoint.phase.value}")
            print(f"  Already done: {checkpoint.invoices_processed} invoices, "
                  f"{checkpoint.quotes_processed} quotes, {checkpoint.errors} errors")

            if checkpoint.phase is Phase.COMPLETE:
                print("  Extraction already complete, nothing to do")
                if not os.path.exists(self.output_manager.summary_path):
                    results["summary"] = self.write_summary(checkpoint, 0.0)
                    print(f"  Summary saved to: {self.output_manager.summary_path}")
                results["success"] = True
                results["completed_at"] = datetime.now(timezone.utc).isoformat()
                return results

            if self.scheduler is None:
                self.build_components()

            # Step 2: Verify API access
            _banner("STEP 2: PREFLIGHT")
            preflight = PreflightChecker(self.scheduler, self.debug).check()
            if not preflight.proceed:
                raise FatalFailure(f"API access failed: {preflight.error}")
            print(f"  API access verified ({preflight.invoice_total} invoices, "
                  f"{preflight.quote_total} quotes)")

            # Step 3: Phases
            while checkpoint.phase is not Phase.COMPLETE:
                kind = checkpoint.phase.kind
                _banner(f"STEP 3.{checkpoint.phase.rank + 1}: {kind.connection_field.upper()}")
                refs = self.walker.walk(kind)
                results["phases"][kind.value] = self.extract_orders(kind, refs, checkpoint)
                checkpoint.advance_to(checkpoint.phase.next())
                self.checkpoint_store.save(checkpoint)

            # Step 4: Summary
            _banner("STEP 4: SUMMARY")
            results["summary"] = self.write_summary(checkpoint, time.monotonic() - started)
            print(f"  Summary saved to: {self.output_manager.summary_path}")
            results["success"] = True

        except Exception as e:
            results["error"] = str(e)
            print(f"\n  ERROR: {e}")
            if self.debug:
                import traceback
                traceback.print_exc()
            if checkpoint is not None:
                self.checkpoint_store.save(checkpoint)

        results["completed_at"] = datetime.now(timezone.utc).isoformat()
        return results

    def extract_orders(self, kind: OrderKind, refs: List[OrderRef], checkpoint: Checkpoint) -> Dict[str, int]:
        """Attempt every ref of one kind, in the given order.

        Returns:
            Counts of extracted, skipped and failed orders.
        """
        stats = {"total": len(refs), "extracted": 0, "skipped": 0, "failed": 0}
        attempted = set()

        print(f"  Extracting {len(refs)} {kind.connection_field}")

        for ref in refs:
            if ref.visual_id in attempted:
                continue
            attempted.add(ref.visual_id)

            if self.record_store.exists(kind, ref.visual_id):
                stats["skipped"] += 1
                if stats["skipped"] % SKIP_LOG_EVERY == 0:
                    logger.info("Skipped %d existing %ss...", stats["skipped"], kind.value)
                continue

            try:
                record = self.extract_order(kind, ref)
                self.record_store.save(record)
            except ExtractionError as e:
                stats["failed"] += 1
                self._record_failure(kind, ref, e, checkpoint)
                continue

            stats["extracted"] += 1
            checkpoint.record_success(kind, ref.visual_id, record.attachment_counts)
            logger.info(
                "✓ %s #%s - %d files (%d/%d new, %d skipped)",
                kind.value, ref.visual_id, record.attachment_counts.total,
                stats["extracted"], stats["total"] - stats["skipped"], stats["skipped"],
            )

            if stats["extracted"] % self.checkpoint_every == 0:
                self.checkpoint_store.save(checkpoint)

        print(f"  Completed {kind.value}s: {stats['extracted']} extracted, "
              f"{stats['skipped']} skipped, {stats['failed']} failed")
        return stats

    def extract_order(self, kind: OrderKind, ref: OrderRef) -> OrderRecord:
        """Fetch and merge one order. Nothing is persisted here.

        Raises:
            ExtractionError: Any failure for this order. Unexpected errors from
                an oddly shaped response are raised as MalformedResponse.
        """
        try:
            header, line_items, files_financial = self.fetcher.fetch(kind, ref)
            return self.merger.merge(kind, ref, header, line_items, files_financial)
        except ExtractionError:
            raise
        except Exception as e:
            raise MalformedResponse(
                f"Unexpected response for {kind.value} #{ref.visual_id}: {type(e).__name__}: {e}"
            ) from e

    def _record_failure(self, kind: OrderKind, ref: OrderRef, error: ExtractionError, checkpoint: Checkpoint):
        # Traceback for shape and merge problems only
        detailed = isinstance(error, (MergeInvariantViolation, MalformedResponse))
        logger.error("Failed to extract %s #%s: %s", kind.value, ref.visual_id, error, exc_info=detailed)
        self.ledger.record_failure(kind, ref, error, retries=self.max_retries)
        checkpoint.record_error()
        self.checkpoint_store.save(checkpoint)

    def write_summary(self, checkpoint: Checkpoint, elapsed_seconds: float) -> Dict[str, Any]:
        counts = checkpoint.attachment_counts
        summary = {
            "completedAt": datetime.now(timezone.utc).isoformat(),
            "duration": f"{elapsed_seconds / 60:.1f} minutes",
            "invoicesExtracted": checkpoint.invoices_processed,
            "quotesExtracted": checkpoint.quotes_processed,
            "totalOrders": checkpoint.invoices_processed + checkpoint.quotes_processed,
            "totalProductionFiles": counts.production_files,
            "totalLineItemMockups": counts.line_item_mockups,
            "totalImprintMockups": counts.imprint_mockups,
            "totalFiles": counts.total,
            "errors": checkpoint.errors,
        }
        write_json_atomic(self.output_manager.summary_path, summary)
        return summary

    def status(self) -> Dict[str, Any]:
        """Describe resume state from disk only (no network)."""
        checkpoint = self.checkpoint_store.load()
        status = checkpoint.to_dict()
        status["ledgerEntries"] = len(self.ledger)
        status["recordsOnDisk"] = {
            kind.value: self.record_store.count(kind) for kind in OrderKind
        }
        return status

    def print_summary(self, results: Dict):
        """Print a human-readable execution summary.

        Args:
            results: The dict returned by run().
        """
        _banner("EXTRACTION COMPLETE" if results.get("success") else "EXTRACTION STOPPED")
        print(f"Status: {'SUCCESS' if results.get('success') else 'FAILED'}")

        for kind, stats in results.get("phases", {}).items():
            print(f"{kind.capitalize()}s: {stats['extracted']} extracted, "
                  f"{stats['skipped']} skipped, {stats['failed']} failed")

        summary = results.get("summary", {})
        if summary:
            print(f"Duration: {summary['duration']}")
            print(f"Invoices: {summary['invoicesExtracted']}")
            print(f"Quotes: {summary['quotesExtracted']}")
            print(f"Total Files: {summary['totalFiles']}")
            print(f"Errors: {summary['errors']}")
            if summary["errors"]:
                print(f"See {self.output_manager.errors_path} for orders to re-extract")

        if results.get("error"):
            print(f"Error: {results['error']}")
