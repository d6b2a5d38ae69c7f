"""
Sample status state machine.

``is_valid_transition`` is advisory: an unmodeled move is logged by the
caller and still carried out. ``should_update_sample`` is the hard gate
applied before any batch write.
"""

from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Union

from app.domain.samples.models import SampleStatus

STATUS_TRANSITIONS: Mapping[SampleStatus, FrozenSet[SampleStatus]] = MappingProxyType({
    SampleStatus.RECEIVED: frozenset({SampleStatus.PROCESSING, SampleStatus.REJECTED}),
    SampleStatus.PROCESSING: frozenset({SampleStatus.COMPLETED, SampleStatus.FAILED}),
    SampleStatus.FAILED: frozenset({SampleStatus.PROCESSING}),
    SampleStatus.COMPLETED: frozenset(),
    SampleStatus.REJECTED: frozenset(),
})

TERMINAL_STATUSES: FrozenSet[SampleStatus] = frozenset(
    status for status, targets in STATUS_TRANSITIONS.items() if not targets
)

AUTO_NOTES: Mapping[SampleStatus, str] = MappingProxyType({
    SampleStatus.RECEIVED: "Sample received",
    SampleStatus.PROCESSING: "Testing started",
    SampleStatus.COMPLETED: "Testing completed",
    SampleStatus.FAILED: "Testing failed",
    SampleStatus.REJECTED: "Sample rejected",
})

StatusLike = Union[SampleStatus, str, None]


def next_possible(current: StatusLike) -> FrozenSet[SampleStatus]:
    status = SampleStatus.parse(current)
    if status is None:
        return frozenset()
    return STATUS_TRANSITIONS[status]


def is_valid_transition(current: StatusLike, target: StatusLike) -> bool:
    target_status = SampleStatus.parse(target)
    return target_status is not None and target_status in next_possible(current)


def is_terminal(status: StatusLike) -> bool:
    return SampleStatus.parse(status) in TERMINAL_STATUSES


def should_update_sample(current: StatusLike, target: StatusLike) -> bool:
    """False for terminal samples and for no-op updates"""
    if is_terminal(current):
        return False
    current_status = SampleStatus.parse(current)
    if current_status is not None:
        return current_status != SampleStatus.parse(target)
    # unknown current status: only an identical raw value counts as no-op
    return (current or "") != (target or "")


def auto_note_for(status: StatusLike) -> str:
    parsed = SampleStatus.parse(status)
    if parsed is None:
        return f"Status updated: {status}"
    return AUTO_NOTES[parsed]


def skip_reason(current: StatusLike, target: StatusLike) -> Optional[str]:
    if is_terminal(current):
        return f"status {current} is terminal"
    if not should_update_sample(current, target):
        return f"already {current}"
    return None
