"""
Infrastructure layer: shared HTTP plumbing for remote service clients.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.config import settings
from app.infrastructure.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are retried; 4xx never are."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.RequestError)


class BaseAPIClient:
    """
    Base class for clients of remote JSON APIs.

    Owns one ``httpx.AsyncClient`` (connection pool). Only idempotent reads
    are retried; writes go out exactly once so a failure surfaces immediately.
    """

    service_name = "external"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"accept": "application/json", **(headers or {})},
            timeout=timeout or settings.http_timeout,
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, endpoint, **kwargs)
        response.raise_for_status()
        return response

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async def _send_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        return await self._send(method, endpoint, **kwargs)

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        retry_request: bool = False,
        **kwargs,
    ) -> Any:
        """
        Make an HTTP request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            retry_request: Retry transport errors and 5xx with backoff
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            ExternalServiceError: If the request fails
        """
        send = self._send_with_retry if retry_request else self._send
        try:
            response = await send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            logger.error(
                f"{self.service_name} {method} {endpoint} failed: "
                f"{e.response.status_code} - {e.response.text}"
            )
            raise ExternalServiceError(
                f"{self.service_name} request failed: {e.response.status_code}",
                upstream_status=e.response.status_code,
                service=self.service_name,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"{self.service_name} {method} {endpoint} error: {e}")
            raise ExternalServiceError(
                f"{self.service_name} request error: {e}",
                service=self.service_name,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(
                f"{self.service_name} returned a non-JSON body",
                service=self.service_name,
            ) from e
