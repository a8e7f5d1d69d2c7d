"""File-based persistence for submitted batches."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings
from ..errors import SubmitConflict, SubmitError
from .base import BatchSink


class FileStorage:
    """Thin wrapper around the data root for storing JSON and CSV outputs."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "batch") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        path = self.output_root / f"{prefix}_{timestamp}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)

    def write_csv(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(content)


class FileBatchSink(BatchSink):
    """Writes each submitted batch into its own run directory under ``outputs/``."""

    name = "filesystem"

    def __init__(self, storage: FileStorage | None = None) -> None:
        self.storage = storage or FileStorage()

    def submit(self, record: dict, *, manifest_csv: str | None = None) -> str:
        batch_id = str(uuid.uuid4())
        try:
            run_dir = self.storage.make_run_directory(prefix=f"batch_{batch_id[:8]}")
        except FileExistsError as exc:
            raise SubmitConflict(f"Run directory for batch {batch_id} already exists.") from exc
        try:
            self.storage.write_json(run_dir / "batch.json", {"id": batch_id, **record})
            if manifest_csv is not None:
                self.storage.write_csv(run_dir / "manifest.csv", manifest_csv)
        except OSError as exc:
            raise SubmitError(f"Failed to write batch {batch_id}: {exc}") from exc
        return batch_id
