import pytest
from httpx import AsyncClient


@pytest.mark.integration
class TestSampleEndpoints:

    async def test_status_taxonomy(self, client: AsyncClient) -> None:
        """Test the status taxonomy endpoint"""
        response = await client.get("/api/v1/samples/statuses")

        assert response.status_code == 200
        data = response.json()
        assert data["terminal_statuses"] == ["completed", "rejected"]
        assert data["transitions"]["failed"] == ["processing"]
        assert data["appointment_to_sample_status"]["Testing"] == "processing"

    async def test_update_sample_status(self, client: AsyncClient, sample_repo) -> None:
        """Test updating one sample's status over HTTP"""
        sample_repo.add("kitA", "s1", "received")

        response = await client.patch("/api/v1/samples/s1/status", json={"status": "processing"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "processing"
        assert data["sampleKitsId"] == "kitA"
        assert data["sample_code"] == "SC-s1"

    async def test_unknown_sample_is_404(self, client: AsyncClient) -> None:
        """Test an unknown sample returns a 404 error body"""
        response = await client.patch("/api/v1/samples/missing/status", json={"status": "processing"})

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "NOT_FOUND_ERROR"
        assert response.headers["X-Request-ID"] == data["request_id"]

    async def test_invalid_status_is_422(self, client: AsyncClient) -> None:
        """Test an unknown target status is rejected"""
        response = await client.patch("/api/v1/samples/s1/status", json={"status": "archived"})

        assert response.status_code == 422

    async def test_batch_status(self, client: AsyncClient, sample_repo) -> None:
        """Test batch status update by sample ids"""
        sample_repo.add("kitA", "s1", "received")

        response = await client.post(
            "/api/v1/samples/batch-status",
            json={"sample_ids": ["s1", "missing"], "status": "processing"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert [s["id"] for s in data["updated"]] == ["s1"]
        assert data["errors"][0]["sample_id"] == "missing"

    async def test_stats(self, client: AsyncClient, sample_repo) -> None:
        """Test sample status statistics"""
        sample_repo.add("kitA", "s1", "received")

        response = await client.get("/api/v1/samples/stats")

        assert response.status_code == 200
        assert response.json()["received"] == 1

    async def test_request_id_is_echoed(self, client: AsyncClient) -> None:
        """Test the request id header is echoed back"""
        response = await client.get("/api/v1/samples/statuses", headers={"X-Request-ID": "abc"})

        assert response.headers["X-Request-ID"] == "abc"


@pytest.mark.integration
class TestOrderEndpoints:

    async def test_order_samples(self, client: AsyncClient, two_kit_order) -> None:
        """Test listing an order's samples"""
        response = await client.get(f"/api/v1/orders/{two_kit_order}/samples")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == ["s1", "s2", "s3"]

    async def test_sync_order(self, client: AsyncClient, two_kit_order) -> None:
        """Test syncing an order's samples to a status"""
        response = await client.post(f"/api/v1/orders/{two_kit_order}/samples/sync", json={"status": "processing"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["skipped"] == ["s2"]

    async def test_sync_unreachable_order(self, client: AsyncClient, kit_repo) -> None:
        """Test an unreachable order reports a resolution failure"""
        kit_repo.failing_orders.add("o1")

        response = await client.post("/api/v1/orders/o1/samples/sync", json={"status": "processing"})

        assert response.status_code == 502
        assert response.json()["error_code"] == "RESOLUTION_FAILURE"


@pytest.mark.integration
class TestAppointmentEndpoints:

    async def test_status_change_with_partial_sync_is_200(self, client: AsyncClient, sample_repo, two_kit_order) -> None:
        """Test a partial sample sync still returns 200"""
        sample_repo.failing_updates.add("s3")

        response = await client.post(
            "/api/v1/appointments/a1/status",
            json={"status": "Testing", "order_id": two_kit_order},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["appointment_updated"] is True
        assert data["outcome"] == "partial"
        assert data["updated_count"] == 1
        assert data["error_messages"][0].startswith("Sample s3")

    async def test_status_change_without_sample_action(self, client: AsyncClient, committer) -> None:
        """Test a status with no sample mapping only commits"""
        response = await client.post("/api/v1/appointments/a1/status", json={"status": "Confirmed"})

        assert response.status_code == 200
        assert response.json()["outcome"] == "no_sample_action"
        committer.commit.assert_awaited_once()

    async def test_commit_failure(self, client: AsyncClient, committer) -> None:
        """Test a failed appointment commit returns 502"""
        committer.commit.side_effect = RuntimeError("down")

        response = await client.post("/api/v1/appointments/a1/status", json={"status": "Testing", "order_id": "o1"})

        assert response.status_code == 502
        assert response.json()["error_code"] == "APPOINTMENT_COMMIT_ERROR"

    async def test_check(self, client: AsyncClient) -> None:
        """Test the advisory status change check"""
        response = await client.post(
            "/api/v1/appointments/a1/status/check",
            json={"status": "Testing", "order_id": "no-kits"},
        )

        assert response.status_code == 200
        assert response.json()["can_update"] is False

    async def test_summary(self, client: AsyncClient, two_kit_order) -> None:
        """Test the appointment samples summary"""
        response = await client.post(
            "/api/v1/appointments/a1/samples/summary", json={"order_id": two_kit_order}
        )

        assert response.status_code == 200
        assert response.json()["samples_count"] == 3


@pytest.mark.integration
async def test_health(client: AsyncClient) -> None:
    """Test the health check"""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
