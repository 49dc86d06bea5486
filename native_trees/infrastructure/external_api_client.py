"""
Infrastructure layer: shared external API client with retry logic.
"""
import logging
from typing import Any, Dict, Optional
import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from native_trees.config import settings
from native_trees.infrastructure.api_constants import APIConstants

logger = logging.getLogger(__name__)


class ExternalAPIError(Exception):
    """Custom exception for external API errors."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UpstreamUnavailableError(ExternalAPIError):
    """A required upstream service failed after retries (transport error or 5xx)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=503)


class DetailNotFoundError(ExternalAPIError):
    """The requested resource does not exist upstream."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class _RetryableStatusError(Exception):
    """Internal marker for 5xx responses that should be retried."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"{response.status_code} - {response.text[:200]}")
        self.response = response


class ExternalAPIClient:
    """
    Base client for JSON HTTP APIs.
    Implements retry logic with exponential backoff on server and transport errors.
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Base URL every endpoint path is relative to
            headers: Extra default headers
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"accept": APIConstants.CONTENT_TYPE_JSON, **(headers or {})},
            timeout=timeout or settings.http_timeout_seconds,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception_type((_RetryableStatusError, httpx.RequestError)),
        reraise=True,
    )
    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, endpoint, **kwargs)
        if response.status_code >= 500:
            raise _RetryableStatusError(response)
        return response

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Any:
        """
        Make an HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            **kwargs: Additional arguments for the request

        Returns:
            Decoded JSON body

        Raises:
            DetailNotFoundError: On a 404 response
            ExternalAPIError: On any other client error or undecodable body
            UpstreamUnavailableError: If the request still fails after retries
        """
        try:
            response = await self._send(method, endpoint, **kwargs)
        except _RetryableStatusError as e:
            raise UpstreamUnavailableError(f"API request failed: {e}") from e
        except httpx.RequestError as e:
            raise UpstreamUnavailableError(f"API request error: {str(e)}") from e

        if response.status_code == 404:
            raise DetailNotFoundError(f"API resource not found: {endpoint}")
        if response.is_error:
            # Don't retry on client errors (4xx)
            raise ExternalAPIError(
                f"API request failed: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalAPIError(f"API returned invalid JSON for {endpoint}") from e
