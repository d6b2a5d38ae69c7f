"""
Samples Service Layer

Status changes for lab samples: single updates with an audit note, the
order -> kit -> sample cascade, and batch application across an order.
Batch work fans out with bounded concurrency; one item's failure is kept
in that item's error slot and never stops its siblings.
"""

from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar, Union
from datetime import datetime, timezone
import asyncio

from loguru import logger

from app.core.config import settings
from app.core.exceptions import BaseCustomException, ResolutionFailure, ValidationError
from app.domain.samples.models import (
    BatchResult, SampleError, SampleKit, SampleRecord, SampleStatus
)
from app.domain.samples.repository import SampleKitRepository, SampleRepository
from app.domain.samples.transitions import (
    auto_note_for, is_valid_transition, should_update_sample, skip_reason
)
from app.infrastructure.lab_api import LabApiClient

T = TypeVar("T")
R = TypeVar("R")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def append_note(existing: Optional[str], note: str, timestamp: Optional[str] = None) -> str:
    """Append one timestamped line to a notes log, keeping what is there"""
    line = f"[{timestamp or _now_iso()}] {note}"
    return f"{existing}\n{line}" if existing else line


def _coerce_status(value: Union[SampleStatus, str]) -> SampleStatus:
    status = SampleStatus.parse(value)
    if status is None:
        raise ValidationError(message=f"Unknown sample status: {value}", details={"status": str(value)})
    return status


def _error_text(error: BaseException) -> str:
    if isinstance(error, BaseCustomException):
        return error.message
    return str(error) or type(error).__name__


class SampleStatusService:
    """Service layer for sample status synchronization"""

    def __init__(
        self,
        sample_repo: SampleRepository,
        kit_repo: SampleKitRepository,
        max_concurrency: Optional[int] = None,
    ):
        self.sample_repo = sample_repo
        self.kit_repo = kit_repo
        self.max_concurrency = max_concurrency or settings.SAMPLE_SYNC_MAX_CONCURRENCY

    @classmethod
    def from_client(cls, client: LabApiClient, max_concurrency: Optional[int] = None) -> "SampleStatusService":
        return cls(SampleRepository(client), SampleKitRepository(client), max_concurrency)

    async def _fan_out(
        self,
        items: Iterable[T],
        worker: Callable[[T], Awaitable[R]],
    ) -> List[Tuple[T, Optional[R], Optional[Exception]]]:
        """Run ``worker`` over ``items`` and wait for every one to finish.

        Results come back in input order as ``(item, result, error)``.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(item: T) -> Tuple[T, Optional[R], Optional[Exception]]:
            async with semaphore:
                try:
                    return item, await worker(item), None
                except Exception as e:
                    return item, None, e

        return list(await asyncio.gather(*(run(item) for item in items)))

    # ------------------------------------------------------------------
    # Single sample
    # ------------------------------------------------------------------

    async def update_status(
        self,
        sample_id: str,
        target_status: Union[SampleStatus, str],
        note: Optional[str] = None,
    ) -> SampleRecord:
        """Move one sample to ``target_status`` and append an audit note.

        Terminal and no-op targets are not refused here; batch callers
        filter those out before calling.
        """
        target = _coerce_status(target_status)
        current = await self.sample_repo.get_sample(sample_id)
        return await self._write_status(current, target, note)

    async def _write_status(
        self,
        current: SampleRecord,
        target_status: SampleStatus,
        note: Optional[str],
    ) -> SampleRecord:
        if not is_valid_transition(current.status, target_status):
            logger.warning(
                f"Sample {current.id}: transition {current.status} -> {target_status.value} "
                f"is not modeled, proceeding"
            )

        update_data = {
            "status": target_status.value,
            "notes": append_note(current.notes, note or auto_note_for(target_status)),
        }
        updated = await self.sample_repo.update_sample(current.id, update_data)
        logger.info(f"Sample {current.id} status updated: {current.status} -> {target_status.value}")
        return updated

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------

    async def resolve_samples(self, order_id: str) -> List[SampleRecord]:
        """All samples reachable from an order through its kits.

        A kit whose lookup fails is logged and skipped. Duplicates are kept.
        """
        kits = await self.kit_repo.get_by_order_id(order_id)
        if not kits:
            logger.info(f"No sample kits found for order {order_id}")
            return []

        samples: List[SampleRecord] = []
        for kit, kit_samples, error in await self._fan_out(kits, self._samples_for_kit):
            if error is not None:
                logger.warning(f"Could not get samples for kit {kit.id}: {_error_text(error)}")
                continue
            samples.extend(kit_samples)

        logger.info(f"Resolved {len(samples)} samples from {len(kits)} kits for order {order_id}")
        return samples

    async def _samples_for_kit(self, kit: SampleKit) -> List[SampleRecord]:
        samples = await self.sample_repo.get_samples_by_kit(kit.id)
        if not kit.samples_id or any(s.id == kit.samples_id for s in samples):
            return samples

        # kit points at a sample whose back-reference is stale
        try:
            samples.append(await self.sample_repo.get_sample(kit.samples_id))
        except BaseCustomException as e:
            logger.warning(f"Kit {kit.id} references sample {kit.samples_id} which could not be loaded: {e.message}")
        return samples

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def apply_status_to_order(
        self,
        samples: List[SampleRecord],
        target_status: Union[SampleStatus, str],
        context_note: Optional[str] = None,
    ) -> BatchResult:
        """Apply one status to resolved samples, skipping terminal and no-op ones"""
        target = _coerce_status(target_status)
        result = BatchResult()

        pending: List[SampleRecord] = []
        seen = set()
        for sample in samples:
            # a sample listed under several kits is written once
            if sample.id in seen:
                continue
            seen.add(sample.id)
            reason = skip_reason(sample.status, target)
            if reason:
                logger.debug(f"Skipping sample {sample.id}: {reason}")
                result.skipped.append(sample.id)
            else:
                pending.append(sample)

        outcomes = await self._fan_out(
            pending, lambda s: self.update_status(s.id, target, context_note)
        )
        self._collect(result, ((s.id, updated, error) for s, updated, error in outcomes))
        return result

    async def batch_update_samples(
        self,
        sample_ids: List[str],
        target_status: Union[SampleStatus, str],
        note: Optional[str] = None,
    ) -> BatchResult:
        """Update explicit sample ids, each read fresh before writing.

        Terminal and no-op samples go to ``skipped``; repeated ids are
        attempted once.
        """
        target = _coerce_status(target_status)
        sample_ids = list(dict.fromkeys(sample_ids))
        logger.info(f"Batch updating {len(sample_ids)} samples to {target.value}")
        result = BatchResult()

        async def update_one(sample_id: str) -> Optional[SampleRecord]:
            current = await self.sample_repo.get_sample(sample_id)
            if not should_update_sample(current.status, target):
                return None
            return await self._write_status(current, target, note)

        self._collect(result, await self._fan_out(sample_ids, update_one), skip_missing=True)
        return result

    def _collect(
        self,
        result: BatchResult,
        outcomes: Iterable[Tuple[str, Optional[SampleRecord], Optional[Exception]]],
        skip_missing: bool = False,
    ) -> None:
        for sample_id, updated, error in outcomes:
            if error is not None:
                logger.error(f"Failed to update sample {sample_id}: {_error_text(error)}")
                result.errors.append(SampleError(sample_id=sample_id, error=_error_text(error)))
            elif updated is None and skip_missing:
                result.skipped.append(sample_id)
            else:
                result.updated.append(updated)

        summary = f"Sample update finished: {len(result.updated)} updated, {len(result.errors)} errors"
        if result.success:
            logger.info(summary)
        else:
            logger.warning(summary)

    async def sync_order(
        self,
        order_id: str,
        target_status: Union[SampleStatus, str],
        context_note: Optional[str] = None,
    ) -> BatchResult:
        """Resolve an order's samples and apply ``target_status`` to them.

        Raises ``ResolutionFailure`` when the order's kits cannot be listed.
        """
        try:
            samples = await self.resolve_samples(order_id)
        except Exception as e:
            raise ResolutionFailure(
                message=f"Could not resolve samples for order {order_id}: {_error_text(e)}",
                details={"order_id": order_id},
            ) from e

        if not samples:
            return BatchResult()
        return await self.apply_status_to_order(samples, target_status, context_note)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def get_status_stats(self) -> Dict[SampleStatus, int]:
        """Count all samples per status; unknown statuses are ignored"""
        stats = {status: 0 for status in SampleStatus}
        for sample in await self.sample_repo.get_all_samples():
            status = sample.sample_status
            if status is not None:
                stats[status] += 1
        return stats

    @staticmethod
    def count_by_status(samples: List[SampleRecord]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for sample in samples:
            counts[sample.status] = counts.get(sample.status, 0) + 1
        return counts
