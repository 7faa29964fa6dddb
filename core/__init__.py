"""
Core package - The extraction pipeline modules.

This package contains all the modules that implement the resumable extraction.
Each module handles one concern:

  orchestrator.py        Phase loop, skip/resume, failure routing
  printavo_client.py     One GraphQL exchange, outcome classification
  scheduler.py           Global rate gate and retry with backoff
  catalog_walker.py      Cursor pagination of order ids
  split_fetcher.py       Three bounded sub-queries per order
  merger.py              Sub-document merge and attachment counts
  graphql_queries.py     Query definitions
  models.py              Order kinds, phases, refs, sub-documents, records
  record_store.py        Keyed record persistence
  checkpoint_store.py    progress.json
  error_ledger.py        errors.json
  output_manager.py      Data directory layout, atomic writes
  preflight_checker.py   API access check
  exceptions.py          Failure taxonomy
"""

from .orchestrator import ExtractionOrchestrator
from .printavo_client import PrintavoClient
from .scheduler import RateGate, RequestScheduler
from .catalog_walker import CatalogWalker
from .split_fetcher import SplitFetcher
from .merger import OrderMerger, count_attachments
from .models import OrderKind, OrderRef, OrderRecord, Phase, SubDocument, SubDocumentSection
from .record_store import FileRecordStore, MemoryRecordStore, RecordStore
from .checkpoint_store import Checkpoint, CheckpointStore
from .error_ledger import ErrorLedger, ErrorRecord
from .exceptions import (
    CatalogPageFailure,
    ConfigurationError,
    ExtractionError,
    FatalFailure,
    MalformedResponse,
    MergeInvariantViolation,
    TransientFailure,
)
