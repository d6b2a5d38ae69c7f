from typing import Optional, Any, Dict
import asyncio
import logging

import httpx

from app.core.config import settings
from app.core.exceptions import (
    NotFoundError,
    TransportError,
    handle_external_service_error,
)
from app.core.request_context import get_request_id

logger = logging.getLogger(__name__)

SERVICE_NAME = "Lab API"


class LabApiClient:
    """HTTP client for the lab backend REST API.

    Every response from the backend is wrapped in an envelope of the form
    ``{"code": 200, "message": "...", "result": ...}``. ``request`` unwraps it
    and returns ``result``; anything else becomes a ``TransportError`` (or a
    ``NotFoundError`` for HTTP 404).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.LAB_API_BASE_URL).rstrip("/")
        self.token = token if token is not None else settings.LAB_API_TOKEN
        self.timeout = timeout or settings.LAB_API_TIMEOUT_SECONDS
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Open the underlying connection pool"""
        if self._http_client is not None:
            return

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )
        logger.info(f"Lab API client ready for {self.base_url}")

    async def disconnect(self) -> None:
        """Close the connection pool"""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.info("Lab API client closed")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            raise RuntimeError("Lab API client is not connected")
        return self._http_client

    @property
    def is_connected(self) -> bool:
        return self._http_client is not None

    async def is_healthy(self) -> bool:
        """Check the backend answers at all"""
        if self._http_client is None:
            return False
        try:
            await asyncio.wait_for(self._http_client.get("/"), timeout=self.timeout)
            return True
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.error(f"Lab API health check failed: {e!r}")
        return False

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform one call and return the envelope's ``result``"""
        operation = f"{method} {path}"
        headers = {}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id

        try:
            response = await asyncio.wait_for(
                self.client.request(method, path, json=json, headers=headers),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransportError(
                message=f"{SERVICE_NAME} {operation} timed out after {self.timeout}s",
                details={"operation": operation, "timeout": self.timeout},
            ) from e
        except httpx.HTTPError as e:
            raise handle_external_service_error(e, SERVICE_NAME, operation) from e

        if response.status_code == 404:
            raise NotFoundError(
                message=f"{path} not found",
                details={"operation": operation},
            )
        if response.status_code >= 400:
            raise TransportError(
                message=f"{SERVICE_NAME} {operation} returned HTTP {response.status_code}",
                details={"operation": operation, "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                message=f"{SERVICE_NAME} {operation} returned a non-JSON body",
                details={"operation": operation},
            ) from e

        if not isinstance(payload, dict):
            payload = {}
        if payload.get("code") != 200:
            raise TransportError(
                message=payload.get("message") or f"{SERVICE_NAME} {operation} was rejected",
                details={"operation": operation, "payload_code": payload.get("code")},
            )

        return payload.get("result")

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def put(self, path: str, json: Dict[str, Any]) -> Any:
        return await self.request("PUT", path, json=json)


# Global lab API client instance
lab_api_manager = LabApiClient()


async def get_lab_api_client() -> LabApiClient:
    """Dependency returning the connected lab API client"""
    if not lab_api_manager.is_connected:
        await lab_api_manager.connect()
    return lab_api_manager
