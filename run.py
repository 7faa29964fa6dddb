#!/usr/bin/env python3
"""
Printavo Backup Extractor - Entry Point.

Extracts every invoice and quote from Printavo into one JSON file per order.
Safe to stop and restart at any time: orders already on disk are skipped and
progress.json records where the run was.

Usage:
    python run.py               # Extract (or resume) everything
    python run.py --debug       # Verbose output
    python run.py --parallel    # Issue each order's 3 sub-queries concurrently
    python run.py --preflight   # Only verify credentials and show totals
    python run.py --status      # Show resume state from disk, no API calls
    python run.py --version     # Show version
    python run.py --env /path   # Use alternate .env file
"""

import sys
import json
import logging
import argparse
from pathlib import Path

from core import ExtractionOrchestrator
from core.preflight_checker import PreflightChecker

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def configure_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def run_preflight(orchestrator: ExtractionOrchestrator) -> int:
    orchestrator.build_components()
    result = PreflightChecker(orchestrator.scheduler, orchestrator.debug).check()
    if not result.proceed:
        print("\n✗ API access FAILED")
        print(f"Error: {result.error}")
        print("\nPlease check:")
        print("  1. Your email is correct")
        print("  2. Your API token is correct (from My Account -> API)")
        print("  3. Your Printavo account is still active")
        return 1

    print("\n✓ API access successful!")
    print(f"Total Invoices: {result.invoice_total}")
    print(f"Total Quotes: {result.quote_total}")
    print(f"Total Orders: {result.order_total}")
    return 0


def main():
    """Parse CLI arguments and run the extraction."""
    parser = argparse.ArgumentParser(
        description="Printavo Backup Extractor - Extract all invoices and quotes from Printavo"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--parallel", action="store_true", help="Run each order's sub-queries concurrently")
    parser.add_argument("--preflight", action="store_true", help="Verify API access and exit")
    parser.add_argument("--status", action="store_true", help="Show resume status and exit")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"printavo-backup {VERSION}")
        sys.exit(0)

    # Initialize the orchestrator (loads .env and builds internal config)
    orchestrator = ExtractionOrchestrator(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.debug:
        orchestrator.debug = True
    if args.parallel:
        orchestrator.parallel_subqueries = True

    configure_logging(orchestrator.debug)

    if args.status:
        print(json.dumps(orchestrator.status(), indent=2))
        sys.exit(0)

    # Print header
    print(f"\n{'='*60}")
    print(f"PRINTAVO BACKUP EXTRACTOR v{VERSION}")
    print("="*60)
    print(f"API: {orchestrator.api_url}")
    print(f"Email: {orchestrator.email}")
    print(f"Data directory: {orchestrator.output_manager.base_dir}")

    # Validate required configuration before proceeding
    if not orchestrator.validate_config():
        sys.exit(1)

    if args.preflight:
        sys.exit(run_preflight(orchestrator))

    results = orchestrator.run()

    orchestrator.print_summary(results)

    # Order-level errors are expected; only process-fatal failures exit non-zero
    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
