"""Database persistence for submitted batches."""

from __future__ import annotations

import logging
from typing import Any

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import SubmitConflict, SubmitError
from .base import BatchSink

# Postgres unique / exclusion constraint violations
CONFLICT_CODES = {"23505", "23P01"}


class SupabaseBatchSink(BatchSink):
    """Inserts batch records into the Supabase batch table."""

    name = "supabase"

    def __init__(self, client: Any | None = None, table: str | None = None) -> None:
        self._client = client
        self.table = table or settings.batches_table

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def submit(self, record: dict, *, manifest_csv: str | None = None) -> str:
        supabase = self.client
        if not supabase:
            raise SubmitError("Supabase is not configured; cannot store batch.")

        try:
            response = supabase.table(self.table).insert(record).execute()
        except Exception as e:
            code = str(getattr(e, "code", "") or "")
            if code in CONFLICT_CODES:
                logging.warning(f"Batch insert rejected as conflicting ({code}): {e}")
                raise SubmitConflict(f"Batch conflicts with an existing batch: {e}") from e
            logging.error(f"Failed to insert batch into '{self.table}': {e}")
            raise SubmitError(f"Failed to store batch: {e}") from e

        rows = response.data or []
        if not rows or "id" not in rows[0]:
            raise SubmitError(f"Insert into '{self.table}' returned no batch id.")
        batch_id = str(rows[0]["id"])
        logging.info(f"Stored batch {batch_id} in '{self.table}'")
        return batch_id


def get_batch(batch_id: str, client: Any | None = None) -> dict[str, Any] | None:
    """Fetch a stored batch row by id, or None if missing or the database is unavailable."""
    supabase = client or get_supabase_client()
    if not supabase:
        return None
    try:
        response = supabase.table(settings.batches_table).select("*").eq("id", batch_id).limit(1).execute()
    except Exception as e:
        logging.warning(f"Failed to load batch {batch_id}: {e}")
        return None
    rows = response.data or []
    return rows[0] if rows else None
