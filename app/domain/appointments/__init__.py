# Appointments domain module
from app.domain.appointments.models import (
    Appointment,
    AppointmentSamplesSummary,
    AppointmentStatus,
    AppointmentStatusUpdateResult,
    SyncOutcome,
    TransitionCheck,
)

__all__ = [
    "Appointment",
    "AppointmentSamplesSummary",
    "AppointmentStatus",
    "AppointmentStatusUpdateResult",
    "SyncOutcome",
    "TransitionCheck",
]
