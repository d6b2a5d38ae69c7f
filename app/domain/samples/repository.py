from typing import Any, Dict, List

from app.core.exceptions import NotFoundError
from app.domain.samples.models import SampleKit, SampleRecord
from app.infrastructure.lab_api import LabApiClient


class SampleRepository:
    def __init__(self, client: LabApiClient):
        self.client = client

    async def get_sample(self, sample_id: str) -> SampleRecord:
        result = await self.client.get(f"/samples/{sample_id}")
        if not result:
            raise NotFoundError(message=f"Sample {sample_id} not found", details={"sample_id": sample_id})
        return SampleRecord.model_validate(result)

    async def update_sample(self, sample_id: str, update_data: Dict[str, Any]) -> SampleRecord:
        result = await self.client.put(f"/samples/{sample_id}", json=update_data)
        return SampleRecord.model_validate(result)

    async def get_all_samples(self) -> List[SampleRecord]:
        result = await self.client.get("/samples")
        return [SampleRecord.model_validate(item) for item in result or []]

    async def get_samples_by_kit(self, kit_id: str) -> List[SampleRecord]:
        result = await self.client.get(f"/samples/samplekits/{kit_id}")
        return [SampleRecord.model_validate(item) for item in result or []]


class SampleKitRepository:
    def __init__(self, client: LabApiClient):
        self.client = client

    async def get_by_order_id(self, order_id: str) -> List[SampleKit]:
        # An order without physical kits is answered with 404 by some backends
        try:
            result = await self.client.get(f"/sample-kits/order/{order_id}")
        except NotFoundError:
            return []
        return [SampleKit.model_validate(item) for item in result or []]
