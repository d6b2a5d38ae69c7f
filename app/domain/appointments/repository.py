from typing import Union

from app.domain.appointments.models import AppointmentStatus
from app.infrastructure.lab_api import LabApiClient


class AppointmentRepository:
    """Writes appointment workflow status to the lab backend.

    Satisfies ``AppointmentCommitter`` so it can be handed straight to the
    appointment/sample orchestrator.
    """

    def __init__(self, client: LabApiClient):
        self.client = client

    async def commit(self, appointment_id: str, new_status: Union[AppointmentStatus, str]) -> None:
        status = AppointmentStatus(new_status)
        await self.client.put(f"/appointment/{appointment_id}", json={"status": status.value})
