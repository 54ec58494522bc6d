import time
from typing import Any, Self

import httpx
from loguru import logger

from affine_mcp.errors import ConfigurationError, UpstreamError, UpstreamErrorKind

from .operations import Operation, describe


class AffineProxy:
    """
    Minimal async proxy around the AFFiNE GraphQL API using httpx.

    Every call to `execute` is exactly one POST to `{base_url}/graphql`; there
    is no retry and no caching. All failures surface as UpstreamError.

    Usage:
        async with AffineProxy(base_url="https://app.affine.pro", access_token="...") as affine:
            data = await affine.execute(LIST_WORKSPACES)
            workspaces = data["workspaces"]
    """

    def __init__(
        self,
        *,
        access_token: str,
        base_url: str = "https://app.affine.pro",
        timeout: float = 30.0,
        user_agent: str = "affine-mcp-server/1.0",
    ) -> None:
        if not access_token or not access_token.strip():
            raise ConfigurationError("AFFiNE access token is required")
        self.base_url: str = base_url.rstrip("/")
        self.timeout: float = timeout
        self.user_agent: str = user_agent
        self._access_token: str = access_token
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/graphql"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._access_token}",
            "User-Agent": self.user_agent,
        }

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(timeout=self.timeout, headers=self.headers)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def execute(self, operation: Operation, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run one GraphQL operation and return its `data` object.
        """
        payload: dict[str, Any] = {"query": operation.document, "variables": variables or {}}
        label: str = describe(operation, variables)
        start_time: float = time.perf_counter()

        try:
            if self._client is None:
                # One-shot client when used without the context manager
                async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
                    resp: httpx.Response = await client.post(self.endpoint, json=payload)
            else:
                resp = await self._client.post(self.endpoint, json=payload)
        except httpx.RequestError as e:
            logger.warning(f"{label}: transport failure after {self._elapsed_ms(start_time):.0f} ms: {e!r}")
            raise UpstreamError(
                UpstreamErrorKind.TRANSPORT,
                f"{label}: request to {self.endpoint} failed: {e!r}",
                operation=operation.name,
            ) from e

        logger.debug(f"{label}: HTTP {resp.status_code} in {self._elapsed_ms(start_time):.0f} ms")

        return self._ensure_ok(operation, label, resp)

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.perf_counter() - start_time) * 1000

    @staticmethod
    def _ensure_ok(operation: Operation, label: str, resp: httpx.Response) -> dict[str, Any]:
        """Normalize the HTTP response and GraphQL envelope into data or an UpstreamError"""

        if not resp.is_success:
            raise UpstreamError(
                UpstreamErrorKind.HTTP_STATUS,
                f"{label}: HTTP {resp.status_code}: {resp.text}",
                operation=operation.name,
            )

        try:
            envelope: Any = resp.json()
        except ValueError as e:
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED_RESPONSE,
                f"{label}: response body is not valid JSON",
                operation=operation.name,
            ) from e

        if not isinstance(envelope, dict):
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED_RESPONSE,
                f"{label}: expected a JSON object, found {type(envelope).__name__}",
                operation=operation.name,
            )

        # GraphQL reports failures as {"errors": [{"message": "..."}, ...]}, with or without data
        errors: Any = envelope.get("errors")
        if errors:
            messages: list[str] = [
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in (errors if isinstance(errors, list) else [errors])
            ]
            raise UpstreamError(
                UpstreamErrorKind.APPLICATION_ERRORS,
                f"{label}: GraphQL error: {', '.join(messages)}",
                operation=operation.name,
            )

        data: Any = envelope.get("data")
        if not isinstance(data, dict):
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED_RESPONSE,
                f"{label}: response has no data payload",
                operation=operation.name,
            )

        return data
