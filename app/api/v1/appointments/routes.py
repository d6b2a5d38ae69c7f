"""
Appointments API Routes

Appointment status changes with sample synchronization.
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_appointment_sample_service
from app.domain.appointments.models import (
    Appointment, AppointmentSamplesSummary, AppointmentStatusUpdateResult, TransitionCheck
)
from app.domain.appointments.service import AppointmentSampleService
from app.api.v1.appointments.schemas import AppointmentOrderRef, AppointmentStatusChange

router = APIRouter()


@router.post("/{appointment_id}/status", response_model=AppointmentStatusUpdateResult)
async def update_appointment_status(
    appointment_id: str,
    change: AppointmentStatusChange,
    service: AppointmentSampleService = Depends(get_appointment_sample_service),
):
    """Change appointment status and bring the order's samples along.

    Answers 200 whenever the appointment itself was updated, including when
    some samples could not be synchronized (see ``outcome``).
    """
    return await service.update_appointment_with_samples(
        change.to_appointment(appointment_id), change.status
    )


@router.post("/{appointment_id}/status/check", response_model=TransitionCheck)
async def check_appointment_status_change(
    appointment_id: str,
    change: AppointmentStatusChange,
    service: AppointmentSampleService = Depends(get_appointment_sample_service),
):
    """Pre-flight advice only; nothing is changed"""
    return await service.can_transition_appointment(
        change.to_appointment(appointment_id), change.status
    )


@router.post("/{appointment_id}/samples/summary", response_model=AppointmentSamplesSummary)
async def get_appointment_samples_summary(
    appointment_id: str,
    ref: AppointmentOrderRef,
    service: AppointmentSampleService = Depends(get_appointment_sample_service),
):
    return await service.get_appointment_samples_status(
        Appointment(id=appointment_id, order_id=ref.order_id)
    )
