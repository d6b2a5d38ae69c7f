"""
Samples API Schemas

Pydantic models for sample status requests and responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict

from app.domain.samples.models import SampleStatus


class SampleStatusUpdate(BaseModel):
    status: SampleStatus
    note: Optional[str] = Field(None, max_length=1000)


class SampleBatchStatusUpdate(BaseModel):
    sample_ids: List[str] = Field(..., min_length=1)
    status: SampleStatus
    note: Optional[str] = Field(None, max_length=1000)


class OrderSamplesSync(BaseModel):
    status: SampleStatus
    note: Optional[str] = Field(None, max_length=1000)


class StatusTaxonomyResponse(BaseModel):
    statuses: List[SampleStatus]
    transitions: Dict[SampleStatus, List[SampleStatus]]
    terminal_statuses: List[SampleStatus]
    appointment_to_sample_status: Dict[str, SampleStatus]
