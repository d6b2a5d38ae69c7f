"""
Appointments API Schemas

Pydantic models for appointment status changes that drive sample status.
"""

from pydantic import BaseModel, Field
from typing import Optional

from app.domain.appointments.models import Appointment, AppointmentStatus


class AppointmentStatusChange(BaseModel):
    status: AppointmentStatus
    order_id: Optional[str] = Field(None, description="Order whose samples follow the appointment")
    current_status: Optional[AppointmentStatus] = None

    def to_appointment(self, appointment_id: str) -> Appointment:
        return Appointment(id=appointment_id, status=self.current_status, order_id=self.order_id)


class AppointmentOrderRef(BaseModel):
    order_id: Optional[str] = None
