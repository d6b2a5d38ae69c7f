"""
Samples API Routes

Sample status changes and order-level sample synchronization.
"""

from fastapi import APIRouter, Depends
from typing import Dict, List

from app.api.deps import get_sample_service
from app.domain.samples.models import BatchResult, SampleRecord, SampleStatus
from app.domain.samples.service import SampleStatusService
from app.domain.samples.taxonomy import APPOINTMENT_TO_SAMPLE_STATUS
from app.domain.samples.transitions import STATUS_TRANSITIONS, TERMINAL_STATUSES
from app.api.v1.samples.schemas import (
    OrderSamplesSync, SampleBatchStatusUpdate, SampleStatusUpdate, StatusTaxonomyResponse
)

router = APIRouter()
order_router = APIRouter()


@router.get("/statuses", response_model=StatusTaxonomyResponse)
async def get_status_taxonomy():
    """Sample statuses, allowed transitions and the appointment mapping"""
    return StatusTaxonomyResponse(
        statuses=list(SampleStatus),
        transitions={status: sorted(targets, key=lambda s: s.value) for status, targets in STATUS_TRANSITIONS.items()},
        terminal_statuses=sorted(TERMINAL_STATUSES, key=lambda s: s.value),
        appointment_to_sample_status={k.value: v for k, v in APPOINTMENT_TO_SAMPLE_STATUS.items()},
    )


@router.get("/stats", response_model=Dict[SampleStatus, int])
async def get_sample_stats(service: SampleStatusService = Depends(get_sample_service)):
    """Number of samples in each status"""
    return await service.get_status_stats()


@router.post("/batch-status", response_model=BatchResult)
async def batch_update_sample_status(
    update: SampleBatchStatusUpdate,
    service: SampleStatusService = Depends(get_sample_service),
):
    """Update several samples by id; per-sample failures are reported, not raised"""
    return await service.batch_update_samples(update.sample_ids, update.status, update.note)


@router.patch("/{sample_id}/status", response_model=SampleRecord)
async def update_sample_status(
    sample_id: str,
    update: SampleStatusUpdate,
    service: SampleStatusService = Depends(get_sample_service),
):
    return await service.update_status(sample_id, update.status, update.note)


@order_router.get("/{order_id}/samples", response_model=List[SampleRecord])
async def get_order_samples(
    order_id: str,
    service: SampleStatusService = Depends(get_sample_service),
):
    return await service.resolve_samples(order_id)


@order_router.post("/{order_id}/samples/sync", response_model=BatchResult)
async def sync_order_samples(
    order_id: str,
    sync: OrderSamplesSync,
    service: SampleStatusService = Depends(get_sample_service),
):
    """Move every non-terminal sample of an order to the requested status"""
    return await service.sync_order(order_id, sync.status, sync.note)
