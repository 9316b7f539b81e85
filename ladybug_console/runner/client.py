"""
Cypher HTTP Client

Submits query text to a ladybug-rs endpoint and returns the validated
result.  The request is raced against a fixed timeout with
``asyncio.wait_for``, which cancels the in-flight transfer when the
timeout wins.
"""

import asyncio
import logging

import httpx

from ladybug_console.runner.models import QueryResult
from ladybug_console.shared.config import LadybugSettings
from ladybug_console.shared.exceptions import (
    QueryHTTPError,
    QueryTimeoutError,
    QueryTransportError,
    ResponseShapeError,
)

logger = logging.getLogger("ladybug.runner.client")

CYPHER_PATH = "/api/v1/cypher"

REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def cypher_url(endpoint: str) -> str:
    return endpoint.rstrip("/") + CYPHER_PATH


class CypherClient:
    """
    Posts Cypher queries to ladybug-rs over a shared ``httpx.AsyncClient``.

    Usage
    -----
    async with CypherClient() as client:
        result = await client.execute("http://127.0.0.1:8080", "MATCH (n) RETURN n")

    A caller-supplied ``http_client`` is used as-is and never closed here.
    """

    def __init__(
        self,
        settings: LadybugSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        settings = settings or LadybugSettings()
        self._timeout = timeout if timeout is not None else settings.timeout_seconds
        self._http = http_client
        self._owns_http = http_client is None

    # ─── Lifecycle ──────────────────────────────────────────

    async def __aenter__(self) -> "CypherClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    @property
    def timeout(self) -> float:
        return self._timeout

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            # The race below bounds the request; httpx must not time out first.
            self._http = httpx.AsyncClient(timeout=None)
            self._owns_http = True
        return self._http

    # ─── Execution ──────────────────────────────────────────

    async def execute(self, endpoint: str, query: str) -> QueryResult:
        """Run ``query`` against ``endpoint``.

        Args:
            endpoint: Base URL of the ladybug-rs service.
            query: Query text, submitted verbatim.

        Returns:
            The validated ``QueryResult`` (which may carry an application error).

        Raises:
            QueryTimeoutError: If no response settled within the timeout.
            QueryHTTPError: If the service answered with a non-success status.
            QueryTransportError: If the request failed at the network level.
            ResponseShapeError: If the body is not a JSON result object.
        """
        url = cypher_url(endpoint)
        logger.debug("POST %s (%d chars, timeout=%.1fs)", url, len(query), self._timeout)

        try:
            response = await asyncio.wait_for(
                self._client().post(url, json={"query": query}, headers=REQUEST_HEADERS),
                timeout=self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise QueryTimeoutError(self._timeout) from exc
        except httpx.HTTPError as exc:
            raise QueryTransportError(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise QueryHTTPError(response.status_code, response.reason_phrase)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ResponseShapeError(f"invalid JSON in response: {exc}") from exc

        return QueryResult.from_payload(payload)
