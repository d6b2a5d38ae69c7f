import asyncio
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock

from app.core.exceptions import NotFoundError, TransportError
from app.domain.appointments.service import AppointmentSampleService
from app.domain.samples.models import SampleKit, SampleRecord, SampleStatus
from app.domain.samples.service import SampleStatusService


class FakeSampleRepository:
    """In-memory stand-in for the lab backend's sample endpoints"""

    def __init__(self):
        self.records: Dict[str, SampleRecord] = {}
        self.by_kit: Dict[str, List[str]] = {}
        self.failing_kits: set = set()
        self.failing_updates: set = set()
        self.calls: List[tuple] = []
        self.update_delay: float = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, kit_id: Optional[str], sample_id: str, status: str, notes: Optional[str] = None) -> SampleRecord:
        record = SampleRecord(
            id=sample_id, status=status, notes=notes, sampleKitsId=kit_id, sample_code=f"SC-{sample_id}"
        )
        self.records[sample_id] = record
        if kit_id is not None:
            self.by_kit.setdefault(kit_id, []).append(sample_id)
        return record

    async def get_sample(self, sample_id: str) -> SampleRecord:
        self.calls.append(("get_sample", sample_id))
        if sample_id not in self.records:
            raise NotFoundError(message=f"Sample {sample_id} not found")
        return self.records[sample_id]

    async def update_sample(self, sample_id: str, update_data: dict) -> SampleRecord:
        self.calls.append(("update_sample", sample_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.update_delay:
                await asyncio.sleep(self.update_delay)
            if sample_id in self.failing_updates:
                raise TransportError(message="Lab API PUT /samples failed: connection reset")
            updated = self.records[sample_id].model_copy(update=update_data)
            self.records[sample_id] = updated
            return updated
        finally:
            self.in_flight -= 1

    async def get_all_samples(self) -> List[SampleRecord]:
        self.calls.append(("get_all_samples",))
        return list(self.records.values())

    async def get_samples_by_kit(self, kit_id: str) -> List[SampleRecord]:
        self.calls.append(("get_samples_by_kit", kit_id))
        if kit_id in self.failing_kits:
            raise TransportError(message=f"Lab API GET /samples/samplekits/{kit_id} timed out")
        return [self.records[sample_id] for sample_id in self.by_kit.get(kit_id, [])]


class FakeSampleKitRepository:
    def __init__(self):
        self.kits_by_order: Dict[str, List[SampleKit]] = {}
        self.failing_orders: set = set()
        self.calls: List[tuple] = []

    def add(self, order_id: str, kit_id: str, samples_id: Optional[str] = None) -> SampleKit:
        kit = SampleKit(id=kit_id, orderId=order_id, samplesId=samples_id)
        self.kits_by_order.setdefault(order_id, []).append(kit)
        return kit

    async def get_by_order_id(self, order_id: str) -> List[SampleKit]:
        self.calls.append(("get_by_order_id", order_id))
        if order_id in self.failing_orders:
            raise TransportError(message="Lab API GET /sample-kits/order failed: connection refused")
        return list(self.kits_by_order.get(order_id, []))


@pytest.fixture
def sample_repo() -> FakeSampleRepository:
    return FakeSampleRepository()


@pytest.fixture
def kit_repo() -> FakeSampleKitRepository:
    return FakeSampleKitRepository()


@pytest.fixture
def sample_service(sample_repo, kit_repo) -> SampleStatusService:
    return SampleStatusService(sample_repo, kit_repo, max_concurrency=2)


@pytest.fixture
def committer() -> AsyncMock:
    committer = AsyncMock()
    committer.commit = AsyncMock(return_value=None)
    return committer


@pytest.fixture
def appointment_service(sample_service, committer) -> AppointmentSampleService:
    return AppointmentSampleService(sample_service, committer)


@pytest.fixture
def two_kit_order(sample_repo, kit_repo) -> str:
    """Order o1: kit A holds s1 (received) and s2 (completed), kit B holds s3 (received)"""
    kit_repo.add("o1", "kitA")
    kit_repo.add("o1", "kitB", samples_id="s3")
    sample_repo.add("kitA", "s1", SampleStatus.RECEIVED.value)
    sample_repo.add("kitA", "s2", SampleStatus.COMPLETED.value)
    sample_repo.add("kitB", "s3", SampleStatus.RECEIVED.value)
    return "o1"


@pytest.fixture
async def client(sample_service, appointment_service) -> AsyncGenerator[AsyncClient, None]:
    """API client with the lab backend replaced by the in-memory fakes"""
    from app.main import app
    from app.api.deps import get_appointment_sample_service, get_sample_service

    app.dependency_overrides[get_sample_service] = lambda: sample_service
    app.dependency_overrides[get_appointment_sample_service] = lambda: appointment_service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "samples: mark test as sample status related"
    )
    config.addinivalue_line(
        "markers", "appointments: mark test as appointment synchronization related"
    )
