"""
Samples Domain Models

Records exchanged with the lab backend and the results produced when
sample statuses are synchronized:
- Sample lifecycle status
- Sample and sample kit records (opaque backend fields pass through)
- Batch update outcome
"""

from typing import List, Optional
import enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SampleStatus(str, enum.Enum):
    """Sample lifecycle status"""
    RECEIVED = "received"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SampleStatus"]:
        """Case-insensitive lookup, None for anything outside the taxonomy"""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class SampleRecord(BaseModel):
    """A lab sample as returned by the backend"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    status: str
    notes: Optional[str] = None
    sample_kits_id: Optional[str] = Field(default=None, alias="sampleKitsId")

    @property
    def sample_status(self) -> Optional[SampleStatus]:
        return SampleStatus.parse(self.status)


class SampleKit(BaseModel):
    """A physical collection kit belonging to an order"""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    order_id: Optional[str] = Field(default=None, alias="orderId")
    samples_id: Optional[str] = Field(default=None, alias="samplesId")
    kit_code: Optional[str] = None
    status: Optional[str] = None


class SampleError(BaseModel):
    # None when the failure is not tied to one sample (order resolution)
    sample_id: Optional[str] = None
    error: str

    def __str__(self) -> str:
        if self.sample_id is None:
            return self.error
        return f"Sample {self.sample_id}: {self.error}"


class BatchResult(BaseModel):
    """Outcome of applying one status change across many samples"""
    updated: List[SampleRecord] = Field(default_factory=list)
    errors: List[SampleError] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors

    @classmethod
    def failed(cls, error: str) -> "BatchResult":
        """A batch that never got as far as individual samples"""
        return cls(errors=[SampleError(error=error)])
