from __future__ import annotations

from typing import Any

import httpx
import structlog

from clusterops.core.errors import MalformedResponseError, RemoteTransientError

logger = structlog.get_logger()


class HTTPStatusError(Exception):
    """Non-success response, carrying the status for callers to classify."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class BaseHTTPClient:
    """Base async HTTP client.

    Requests are made once; failures surface to the caller without retries.
    """

    def __init__(self, base_url: str, *, timeout: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        """Override to provide custom headers."""
        return {"Content-Type": "application/json", "Accept": "application/json"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute a single HTTP request and decode the JSON body.

        Raises:
            HTTPStatusError: the server answered with status >= 400
            RemoteTransientError: the request never completed
            MalformedResponseError: the body is not JSON
        """
        url = f"{self._base_url}{path}"
        req_headers = self._headers()
        if headers:
            req_headers.update(headers)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=req_headers,
                )
        except httpx.TransportError as exc:
            logger.warning("http_network_error", method=method, url=url, error=str(exc))
            raise RemoteTransientError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.debug("http_error_status", status=response.status_code, method=method, url=url)
            raise HTTPStatusError(response.status_code, response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            logger.error("http_invalid_json", method=method, url=url, status=response.status_code)
            raise MalformedResponseError(
                f"{method} {path} returned a non-JSON body", {"status": response.status_code}
            ) from exc
