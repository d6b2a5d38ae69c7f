"""
Appointments Service Layer

Keeps lab samples in step with the appointment workflow. The appointment
change is committed first and is never rolled back; the sample cascade
that follows is best effort and reports what it managed to do.
"""

from typing import Protocol, Union

from loguru import logger

from app.core.exceptions import AppointmentCommitError, BaseCustomException, ValidationError
from app.domain.appointments.models import (
    Appointment, AppointmentSamplesSummary, AppointmentStatus,
    AppointmentStatusUpdateResult, TransitionCheck
)
from app.domain.samples.models import BatchResult
from app.domain.samples.service import SampleStatusService
from app.domain.samples.taxonomy import sample_status_for

# Appointment statuses that need at least one sample to exist
REQUIRES_SAMPLES = frozenset({AppointmentStatus.TESTING, AppointmentStatus.COMPLETED})


def _coerce_status(value: Union[AppointmentStatus, str]) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError:
        raise ValidationError(
            message=f"Unknown appointment status: {value}", details={"status": str(value)}
        ) from None


class AppointmentCommitter(Protocol):
    """Persists an appointment status change; raises if it was not accepted"""

    async def commit(self, appointment_id: str, new_status: AppointmentStatus) -> None:
        ...


class AppointmentSampleService:
    """Service layer tying appointment status changes to sample status"""

    def __init__(self, sample_service: SampleStatusService, committer: AppointmentCommitter):
        self.sample_service = sample_service
        self.committer = committer

    async def update_appointment_with_samples(
        self,
        appointment: Appointment,
        new_status: Union[AppointmentStatus, str],
    ) -> AppointmentStatusUpdateResult:
        """Commit the appointment status, then cascade to the order's samples.

        A failing commit propagates before any sample work starts. Anything
        that goes wrong in the cascade is reported in ``samples_result``.
        """
        new_status = _coerce_status(new_status)
        logger.info(f"Updating appointment {appointment.id} to {new_status.value} with sample sync")

        try:
            await self.committer.commit(appointment.id, new_status)
        except BaseCustomException:
            raise
        except Exception as e:
            raise AppointmentCommitError(
                message=f"Could not update appointment {appointment.id}: {e}",
                details={"appointment_id": appointment.id, "status": new_status.value},
            ) from e

        result = AppointmentStatusUpdateResult(appointment_updated=True)

        sample_status = sample_status_for(new_status)
        if sample_status is None:
            logger.info(f"No sample status mapping for appointment status {new_status.value}")
            return result
        if not appointment.order_id:
            logger.info(f"Appointment {appointment.id} has no order, no samples to update")
            return result

        context_note = f"Auto-updated from appointment status: {new_status.value}"
        try:
            result.samples_result = await self.sample_service.sync_order(
                appointment.order_id, sample_status, context_note
            )
        except Exception as e:
            logger.exception(f"Error updating samples for appointment {appointment.id}")
            message = e.message if isinstance(e, BaseCustomException) else str(e)
            result.samples_result = BatchResult.failed(message or type(e).__name__)
            return result

        if result.samples_result.success:
            logger.info(f"Samples in sync for appointment {appointment.id}: {result.updated_count} updated")
        else:
            logger.warning(
                f"Partial sample sync for appointment {appointment.id}: "
                f"{result.updated_count} updated, {result.error_count} errors"
            )
        return result

    async def _collect_summary(self, appointment: Appointment) -> AppointmentSamplesSummary:
        if not appointment.order_id:
            return AppointmentSamplesSummary()

        samples = await self.sample_service.resolve_samples(appointment.order_id)
        return AppointmentSamplesSummary(
            has_samples=bool(samples),
            samples_count=len(samples),
            status_counts=SampleStatusService.count_by_status(samples),
        )

    async def get_appointment_samples_status(self, appointment: Appointment) -> AppointmentSamplesSummary:
        """Sample counts for an appointment; empty when they cannot be read"""
        try:
            return await self._collect_summary(appointment)
        except Exception as e:
            logger.error(f"Error getting samples status for appointment {appointment.id}: {e}")
            return AppointmentSamplesSummary()

    async def check_appointment_has_samples(self, appointment: Appointment) -> bool:
        summary = await self.get_appointment_samples_status(appointment)
        return summary.has_samples

    async def can_transition_appointment(
        self,
        appointment: Appointment,
        new_status: Union[AppointmentStatus, str],
    ) -> TransitionCheck:
        """Advisory pre-flight check, the orchestrator does not enforce it"""
        new_status = _coerce_status(new_status)
        if sample_status_for(new_status) is None:
            return TransitionCheck(can_update=True)

        try:
            summary = await self._collect_summary(appointment)
        except Exception as e:
            logger.error(f"Error validating status change for appointment {appointment.id}: {e}")
            message = e.message if isinstance(e, BaseCustomException) else str(e)
            return TransitionCheck(can_update=True, reason=f"Could not validate: {message}")

        if not summary.has_samples and new_status in REQUIRES_SAMPLES:
            return TransitionCheck(
                can_update=False,
                reason="No samples have been created for this appointment yet",
                samples_info=summary,
            )
        return TransitionCheck(can_update=True, samples_info=summary)
