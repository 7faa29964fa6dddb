"""
Record Store - Keyed persistence for merged order records.

Records are addressed by (OrderKind, visual id). The orchestrator only needs
two operations: ``exists`` to skip orders saved by an earlier run, and
``save`` to persist a fully merged record. Existing records are never
overwritten.

  FileRecordStore    {data_dir}/{invoices|quotes}/{visualId}.json, atomic writes
  MemoryRecordStore  dict-backed, for tests and dry runs
"""

import json
import os
import re
from typing import Dict, Optional, Tuple

from .models import OrderKind, OrderRecord
from .output_manager import OutputManager, write_json_atomic

_SAFE_KEY = re.compile(r"[^A-Za-z0-9._-]")


class RecordExistsError(Exception):
    """Raised when saving a record whose key is already stored."""


class RecordStore:
    """Interface for record persistence."""

    def exists(self, kind: OrderKind, visual_id: str) -> bool:
        raise NotImplementedError

    def save(self, record: OrderRecord) -> str:
        raise NotImplementedError

    def load(self, kind: OrderKind, visual_id: str) -> Optional[Dict]:
        raise NotImplementedError

    def count(self, kind: OrderKind) -> int:
        raise NotImplementedError


class FileRecordStore(RecordStore):
    """One JSON file per order under the data directory."""

    def __init__(self, output_manager: OutputManager):
        self.output_manager = output_manager

    def path_for(self, kind: OrderKind, visual_id: str) -> str:
        filename = _SAFE_KEY.sub("_", str(visual_id)) + ".json"
        return os.path.join(self.output_manager.partition_dir(kind.directory), filename)

    def exists(self, kind: OrderKind, visual_id: str) -> bool:
        return os.path.exists(self.path_for(kind, visual_id))

    def save(self, record: OrderRecord) -> str:
        path = self.path_for(record.kind, record.ref.visual_id)
        if os.path.exists(path):
            raise RecordExistsError(f"Record already exists: {path}")
        return write_json_atomic(path, record.to_dict())

    def load(self, kind: OrderKind, visual_id: str) -> Optional[Dict]:
        path = self.path_for(kind, visual_id)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def count(self, kind: OrderKind) -> int:
        directory = self.output_manager.partition_dir(kind.directory)
        if not os.path.isdir(directory):
            return 0
        return sum(1 for name in os.listdir(directory) if name.endswith(".json"))


class MemoryRecordStore(RecordStore):
    """In-memory store keyed by (kind, visual id)."""

    def __init__(self):
        self.records: Dict[Tuple[OrderKind, str], Dict] = {}
        self.saves = 0

    def exists(self, kind: OrderKind, visual_id: str) -> bool:
        return (kind, str(visual_id)) in self.records

    def save(self, record: OrderRecord) -> str:
        key = (record.kind, record.ref.visual_id)
        if key in self.records:
            raise RecordExistsError(f"Record already exists: {record.kind.value} #{record.ref.visual_id}")
        self.records[key] = record.to_dict()
        self.saves += 1
        return f"memory://{record.kind.directory}/{record.ref.visual_id}"

    def load(self, kind: OrderKind, visual_id: str) -> Optional[Dict]:
        return self.records.get((kind, str(visual_id)))

    def count(self, kind: OrderKind) -> int:
        return sum(1 for k, _ in self.records if k is kind)
