"""Which sample status an appointment status implies."""

from types import MappingProxyType
from typing import Mapping, Optional, Union

from app.domain.appointments.models import AppointmentStatus
from app.domain.samples.models import SampleStatus

APPOINTMENT_TO_SAMPLE_STATUS: Mapping[AppointmentStatus, SampleStatus] = MappingProxyType({
    AppointmentStatus.SAMPLE_RECEIVED: SampleStatus.RECEIVED,
    AppointmentStatus.TESTING: SampleStatus.PROCESSING,
    AppointmentStatus.COMPLETED: SampleStatus.COMPLETED,
})


def sample_status_for(appointment_status: Union[AppointmentStatus, str, None]) -> Optional[SampleStatus]:
    """Return the implied sample status, or None when samples are unaffected"""
    if appointment_status is None:
        return None
    return APPOINTMENT_TO_SAMPLE_STATUS.get(appointment_status)
