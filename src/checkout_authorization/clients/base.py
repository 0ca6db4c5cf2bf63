"""Shared plumbing for the JSON service clients."""

import uuid
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)


class JSONServiceClient:
    """
    Thin async JSON-over-HTTP client.

    Subclasses translate status codes into domain exceptions; this class only
    builds headers, attaches a correlation id and owns the connection pool.
    """

    service_name = "service"

    def __init__(
        self,
        base_url: str,
        auth_token: str | None = None,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the service (e.g., "http://localhost:3000/api")
            auth_token: Optional bearer token sent in the Authorization header
            timeout_seconds: Request timeout in seconds
            http_client: Optional preconfigured httpx client (shared pools, tests)
        """
        self.base_url = base_url.rstrip("/")
        self.auth_token = auth_token
        self.timeout_seconds = timeout_seconds
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

        logger.info(
            "service_client_initialized",
            service=self.service_name,
            base_url=self.base_url,
            timeout_seconds=timeout_seconds,
        )

    def _headers(self, correlation_id: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Request-ID": correlation_id,
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def _post(self, path: str, payload: dict[str, Any]) -> tuple[httpx.Response, str]:
        correlation_id = str(uuid.uuid4())
        response = await self.http_client.post(
            f"{self.base_url}{path}",
            headers=self._headers(correlation_id),
            json=payload,
        )
        return response, correlation_id

    async def _get(self, path: str) -> tuple[httpx.Response, str]:
        correlation_id = str(uuid.uuid4())
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            headers=self._headers(correlation_id),
        )
        return response, correlation_id

    async def close(self) -> None:
        """Close the HTTP client connection pool."""
        await self.http_client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
