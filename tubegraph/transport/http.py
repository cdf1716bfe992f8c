"""
HTTP transport over httpx.

Posts endpoint params as a JSON body and returns the decoded document.

Retry Strategy:
    - Retryable errors: timeouts, network errors, 429, 5xx
    - Non-retryable: other 4xx, undecodable bodies, service errors
    - Backoff: exponential with jitter, Retry-After honoured for 429
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from tubegraph.errors import TransportError

from .endpoints import Endpoint
from .protocol import raise_for_service_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://music.youtube.com"
DEFAULT_API_PREFIX = "/youtubei/v1"


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Configuration for HttpTransport."""

    # Connection
    base_url: str = DEFAULT_BASE_URL
    api_prefix: str = DEFAULT_API_PREFIX
    api_key: str | None = None
    timeout: float = 30.0
    user_agent: str | None = None

    # Client context sent with every request
    client_name: str = "WEB_REMIX"
    client_version: str = "1.20240101.01.00"
    hl: str = "en"
    gl: str = "US"

    # Retries
    max_retries: int = 3
    retry_delay: float = 1.0
    max_backoff: float = 60.0

    # Observability
    log_requests: bool = False
    log_responses: bool = False


# =============================================================================
# Transport
# =============================================================================


class HttpTransport:
    """
    Transport posting to the service's JSON API.

    Example:
        async with HttpTransport(TransportConfig()) as transport:
            document = await transport.fetch(BROWSE, {"browseId": "FEmusic_home"})
    """

    name = "http"

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Transport configuration
            client: Pre-built client (e.g. with an httpx.MockTransport in tests)
        """
        self.config = config or TransportConfig()
        self._client = client

    def _default_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.config.user_agent:
            headers["User-Agent"] = self.config.user_agent
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=self._default_headers(),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # ==================== Protocol ====================

    async def fetch(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any],
        continuation: str | None = None,
    ) -> dict[str, Any]:
        """
        Fetch a document, retrying retryable transport errors.

        Raises:
            TransportError: After max retries or on a non-retryable failure
            ServiceError: If the document encodes an error status
        """
        body = self.build_body(endpoint, params, continuation)
        document = await self._request(endpoint, body)
        raise_for_service_error(document)
        return document

    def build_body(
        self,
        endpoint: Endpoint,
        params: Mapping[str, Any],
        continuation: str | None = None,
    ) -> dict[str, Any]:
        """JSON body: client context, endpoint params and the continuation token."""
        body: dict[str, Any] = {
            "context": {
                "client": {
                    "clientName": self.config.client_name,
                    "clientVersion": self.config.client_version,
                    "hl": self.config.hl,
                    "gl": self.config.gl,
                }
            },
            **endpoint.with_params(dict(params)),
        }
        if continuation is not None:
            body["continuation"] = continuation
        return body

    def _url_for(self, endpoint: Endpoint) -> str:
        return f"{self.config.api_prefix}{endpoint.path}"

    # ==================== Stats ====================

    async def stats(self, url: str, params: Mapping[str, Any]) -> httpx.Response:
        """
        Send a stats ping: a GET to an absolute URL tagged with the client context.

        Stats pings are fire-and-forget for the service, so they are not retried.

        Raises:
            TransportError: On network failures or non-success statuses
        """
        client = await self._get_client()
        target = httpx.URL(url).copy_merge_params(
            {
                "ver": "2",
                "c": self.config.client_name.lower(),
                "cver": self.config.client_version,
                **{key: str(value) for key, value in params.items()},
            }
        )

        if self.config.log_requests:
            logger.debug(f"[{self.name}] GET {target}")

        try:
            response = await client.get(target)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timeout: {e}", endpoint="stats", retryable=True) from e
        except httpx.NetworkError as e:
            raise TransportError(f"Network error: {e}", endpoint="stats", retryable=True) from e

        if not response.is_success:
            raise TransportError(
                f"Stats request failed: {response.text[:200]}",
                endpoint="stats",
                status_code=response.status_code,
                response_body=response.text,
                retryable=response.status_code >= 500,
            )
        return response

    # ==================== Retry ====================

    async def _request(self, endpoint: Endpoint, body: dict[str, Any]) -> dict[str, Any]:
        last_error: TransportError | None = None

        for attempt in range(self.config.max_retries + 1):
            try:
                return await self._do_request(endpoint, body)
            except TransportError as e:
                last_error = e

                if not e.retryable:
                    raise

                if attempt >= self.config.max_retries:
                    logger.warning(
                        f"[{self.name}] Max retries ({self.config.max_retries}) "
                        f"reached for {endpoint.path}"
                    )
                    raise

                backoff = self._calculate_backoff(attempt, e)
                logger.info(
                    f"[{self.name}] Retry {attempt + 1}/{self.config.max_retries} "
                    f"for {endpoint.path} after {backoff:.2f}s"
                )
                await asyncio.sleep(backoff)

        if last_error:
            raise last_error
        raise TransportError("Unknown error", endpoint=endpoint.name)

    def _calculate_backoff(self, attempt: int, error: TransportError) -> float:
        """Exponential backoff with ±25% jitter, capped at max_backoff."""
        if error.retry_after:
            return min(error.retry_after, self.config.max_backoff)

        base_delay = self.config.retry_delay * (2**attempt)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return min(base_delay + jitter, self.config.max_backoff)

    async def _do_request(self, endpoint: Endpoint, body: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        url = self._url_for(endpoint)
        params = {"prettyPrint": "false"}
        if self.config.api_key:
            params["key"] = self.config.api_key

        if self.config.log_requests:
            logger.debug(f"[{self.name}] POST {url} body={body}")

        try:
            response = await client.post(url, params=params, json=body)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timeout: {e}", endpoint=endpoint.name, retryable=True
            ) from e
        except httpx.NetworkError as e:
            raise TransportError(
                f"Network error: {e}", endpoint=endpoint.name, retryable=True
            ) from e

        if self.config.log_responses:
            logger.debug(
                f"[{self.name}] Response: status={response.status_code} "
                f"body={response.text[:500] if response.text else 'empty'}"
            )

        self._check_response(endpoint, response)

        try:
            document = response.json()
        except ValueError as e:
            raise TransportError(
                "Response body is not valid JSON",
                endpoint=endpoint.name,
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e

        if not isinstance(document, dict):
            raise TransportError(
                f"Expected a JSON object, got {type(document).__name__}",
                endpoint=endpoint.name,
                status_code=response.status_code,
            )
        return document

    def _check_response(self, endpoint: Endpoint, response: httpx.Response) -> None:
        """
        Map HTTP error statuses to TransportError.

        Bodies of 4xx responses that carry a JSON ``error`` object are left
        to raise_for_service_error, so a 404 for a missing resource surfaces
        as a ServiceError rather than a transport failure.
        """
        if response.is_success:
            return

        status = response.status_code
        body = response.text

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise TransportError(
                "Rate limit exceeded",
                endpoint=endpoint.name,
                status_code=status,
                response_body=body,
                retryable=True,
                retry_after=float(retry_after) if retry_after else None,
            )

        if 400 <= status < 500:
            try:
                document = response.json()
            except ValueError:
                document = None
            if isinstance(document, dict) and isinstance(document.get("error"), dict):
                raise_for_service_error(document)

        raise TransportError(
            f"Request failed: {body[:200]}",
            endpoint=endpoint.name,
            status_code=status,
            response_body=body,
            retryable=status >= 500,
        )

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
