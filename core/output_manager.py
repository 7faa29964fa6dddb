"""
Output Manager - Data directory layout and atomic JSON writes.

All extraction output lives under one data directory:

    {data_dir}/
        invoices/{visualId}.json    one merged record per invoice
        quotes/{visualId}.json      one merged record per quote
        progress.json               checkpoint (CheckpointStore)
        errors.json                 error ledger (ErrorLedger)
        summary.json                written once the run reaches COMPLETE

Every file is written to a sibling ``.tmp`` path and then renamed over the
target with os.replace, so a crash leaves either the old file, the new file,
or no file, never a truncated one.
"""

import json
import os
from typing import Any, Dict, Optional

PROGRESS_FILENAME = "progress.json"
ERRORS_FILENAME = "errors.json"
SUMMARY_FILENAME = "summary.json"


def write_json_atomic(path: str, payload: Any) -> str:
    """Write ``payload`` as indented JSON to ``path`` via temp file + rename."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)
    return path


def read_json(path: str) -> Optional[Dict[str, Any]]:
    """Read a JSON file, or return None if it does not exist."""
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class OutputManager:
    """Resolves paths inside the data directory.

    Attributes:
        base_dir: Root output directory (default: ./data).
    """

    def __init__(self, base_dir: str):
        self.base_dir = base_dir

    def ensure_dirs(self, partitions=("invoices", "quotes")) -> None:
        os.makedirs(self.base_dir, exist_ok=True)
        for partition in partitions:
            os.makedirs(os.path.join(self.base_dir, partition), exist_ok=True)

    def partition_dir(self, partition: str) -> str:
        return os.path.join(self.base_dir, partition)

    def get_output_path(self, filename: str) -> str:
        """Full path for a top-level file such as progress.json."""
        return os.path.join(self.base_dir, filename)

    @property
    def progress_path(self) -> str:
        return self.get_output_path(PROGRESS_FILENAME)

    @property
    def errors_path(self) -> str:
        return self.get_output_path(ERRORS_FILENAME)

    @property
    def summary_path(self) -> str:
        return self.get_output_path(SUMMARY_FILENAME)
