"""Batch preview and submission endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...errors import SubmitConflict, SubmitError
from ...persistence.database import get_batch
from ...schemas.planning import BatchDraftRequest, BatchPreviewResponse, BatchSubmitResponse
from ...services.planning.service import BatchNotReadyError, gate_report_payload, preview_batch, submit_batch

router = APIRouter(prefix="/batches", tags=["batches"])


@router.post("/preview", response_model=BatchPreviewResponse, status_code=status.HTTP_200_OK)
def preview(payload: BatchDraftRequest) -> BatchPreviewResponse:
    """Validate a draft against the workflow gates without submitting it."""
    try:
        return preview_batch(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("", response_model=BatchSubmitResponse, status_code=status.HTTP_201_CREATED)
def create(payload: BatchDraftRequest) -> BatchSubmitResponse:
    try:
        return submit_batch(payload)
    except BatchNotReadyError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "step": exc.step.value, "gates": gate_report_payload(exc.gates)},
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SubmitConflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SubmitError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error creating batch: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create batch: {str(exc)}",
        ) from exc


@router.get("/{batch_id}", status_code=status.HTTP_200_OK)
def read(batch_id: str) -> dict:
    """Fetch a stored batch from the database."""
    batch = get_batch(batch_id)
    if batch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Batch '{batch_id}' not found")
    return batch
