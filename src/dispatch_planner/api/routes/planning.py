"""Allocation and sequencing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.planning import AllocationRequest, AllocationResponse, RouteResponse, SequenceRequest
from ...services.planning.service import allocate_slots, sequence_stops

router = APIRouter(tags=["planning"])


@router.post("/allocation", response_model=AllocationResponse, status_code=status.HTTP_200_OK)
def allocation(payload: AllocationRequest) -> AllocationResponse:
    try:
        return allocate_slots(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/routes/sequence", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def sequence_route(payload: SequenceRequest) -> RouteResponse:
    try:
        return sequence_stops(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error sequencing stops: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to sequence stops: {str(exc)}",
        ) from exc
