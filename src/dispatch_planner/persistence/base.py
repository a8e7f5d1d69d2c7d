"""Contract for batch submission sinks."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BatchSink(ABC):
    """Stores a submitted batch record and returns the id it was stored under.

    ``manifest_csv`` is a per-stop CSV that sinks may store alongside the
    record. Implementations raise ``SubmitError`` (or ``SubmitConflict``) on failure.
    """

    name: str = "sink"

    @abstractmethod
    def submit(self, record: dict, *, manifest_csv: str | None = None) -> str:
        raise NotImplementedError
