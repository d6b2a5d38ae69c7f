# Samples domain module
from app.domain.samples.models import (
    BatchResult,
    SampleError,
    SampleKit,
    SampleRecord,
    SampleStatus,
)

__all__ = [
    "BatchResult",
    "SampleError",
    "SampleKit",
    "SampleRecord",
    "SampleStatus",
]
