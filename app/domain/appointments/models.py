"""
Appointments Domain Models

Implements the models for:
- Appointment workflow status
- The appointment as seen by sample synchronization
- Results of an appointment status change and its sample cascade
"""

from typing import Dict, List, Optional
import enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.domain.samples.models import BatchResult


class AppointmentStatus(str, enum.Enum):
    """Appointment workflow status"""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    DELIVERING_KIT = "DeliveringKit"
    KIT_DELIVERED = "KitDelivered"
    SAMPLE_RECEIVED = "SampleReceived"
    TESTING = "Testing"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class SyncOutcome(str, enum.Enum):
    """What happened to the samples after an appointment status change"""
    NO_SAMPLE_ACTION = "no_sample_action"
    IN_SYNC = "in_sync"
    PARTIAL = "partial"


class Appointment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    status: Optional[AppointmentStatus] = None
    order_id: Optional[str] = Field(default=None, alias="orderId")


class AppointmentStatusUpdateResult(BaseModel):
    appointment_updated: bool = True
    samples_result: Optional[BatchResult] = None

    @computed_field
    @property
    def outcome(self) -> SyncOutcome:
        if self.samples_result is None:
            return SyncOutcome.NO_SAMPLE_ACTION
        if self.samples_result.success:
            return SyncOutcome.IN_SYNC
        return SyncOutcome.PARTIAL

    @computed_field
    @property
    def updated_count(self) -> int:
        return len(self.samples_result.updated) if self.samples_result else 0

    @computed_field
    @property
    def error_count(self) -> int:
        return len(self.samples_result.errors) if self.samples_result else 0

    @computed_field
    @property
    def error_messages(self) -> List[str]:
        if self.samples_result is None:
            return []
        return [str(e) for e in self.samples_result.errors]


class AppointmentSamplesSummary(BaseModel):
    has_samples: bool = False
    samples_count: int = 0
    status_counts: Dict[str, int] = Field(default_factory=dict)


class TransitionCheck(BaseModel):
    can_update: bool
    reason: Optional[str] = None
    samples_info: Optional[AppointmentSamplesSummary] = None
