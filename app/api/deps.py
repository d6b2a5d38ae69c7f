from fastapi import Depends

from app.domain.appointments.repository import AppointmentRepository
from app.domain.appointments.service import AppointmentSampleService
from app.domain.samples.service import SampleStatusService
from app.infrastructure.lab_api import LabApiClient, get_lab_api_client


def get_sample_service(
    client: LabApiClient = Depends(get_lab_api_client),
) -> SampleStatusService:
    return SampleStatusService.from_client(client)


def get_appointment_sample_service(
    client: LabApiClient = Depends(get_lab_api_client),
    sample_service: SampleStatusService = Depends(get_sample_service),
) -> AppointmentSampleService:
    return AppointmentSampleService(sample_service, AppointmentRepository(client))
