"""
Cluster HTTP transport.

One shared httpx.AsyncClient for every cluster. Each call resolves the
cluster base URL, attaches the platform credential where the endpoint
expects it, retries transient network errors and turns a 401 into a
single session expiry.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_random_exponential

from core.config import Settings, get_settings
from core.security import SessionContext
from merchant_api.base import (
    CredentialPlacement,
    Endpoint,
    SessionExpiredError,
    TransportFailure,
    UpstreamStatusError,
)
from merchant_api.clusters import ClusterResolver

logger = structlog.get_logger()

_DETAIL_LIMIT = 300

# Reads retry any network failure. Writes retry only when the request
# never reached the cluster, so a timed-out write is not sent twice.
READ_RETRY_ERRORS: tuple[type[Exception], ...] = (httpx.TransportError,)
WRITE_RETRY_ERRORS: tuple[type[Exception], ...] = (httpx.ConnectError, httpx.ConnectTimeout)


def response_payload(response: httpx.Response) -> Any:
    """Decoded JSON body, the raw text when it is not JSON, None when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ClusterTransport:
    """Sends endpoint calls to the right cluster with the session credential."""

    def __init__(
        self,
        session: SessionContext,
        settings: Settings | None = None,
        resolver: ClusterResolver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.resolver = resolver or ClusterResolver(self.settings)
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=self.settings.request_timeout_seconds,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, endpoint: Endpoint, cluster: str | None, path_params: dict[str, Any] | None = None) -> str:
        return self.resolver.resolve_base_url(cluster) + endpoint.render_path(**(path_params or {}))

    def _credential(self, endpoint: Endpoint, token: str | None) -> tuple[dict[str, str], dict[str, str]]:
        """Return (headers, query params) carrying ``token`` for this endpoint."""
        if not token or endpoint.credential is CredentialPlacement.NONE:
            return {}, {}
        if endpoint.credential is CredentialPlacement.QUERY:
            return {}, {"access_token": token}
        return {"Authorization": f"Bearer {token}"}, {}

    def _retrying(self, retry_on: tuple[type[Exception], ...]) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max(self.settings.retry_attempts, 1)),
            wait=wait_random_exponential(max=self.settings.retry_max_wait_seconds),
            retry=retry_if_exception_type(retry_on),
            reraise=True,
        )

    async def request(
        self,
        endpoint: Endpoint,
        cluster: str | None = None,
        *,
        path_params: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
        retry_on: tuple[type[Exception], ...] = READ_RETRY_ERRORS,
    ) -> httpx.Response:
        """
        Issue one endpoint call, retrying the network errors in ``retry_on``.

        Raises:
            SessionExpiredError: credential already expired, or rejected with 401.
            TransportFailure: network error or timeout after the last retry.
            UpstreamStatusError: any other non-2xx answer.
        """
        if endpoint.credential is not CredentialPlacement.NONE and self.session.is_expired:
            raise SessionExpiredError("Session expired; re-authentication required")

        url = self.url_for(endpoint, cluster, path_params)
        token = self.session.token
        auth_headers, auth_params = self._credential(endpoint, token)
        query = {key: value for key, value in (params or {}).items() if value is not None}
        query.update(auth_params)
        headers = {**endpoint.headers, **auth_headers}

        try:
            async for attempt in self._retrying(retry_on):
                with attempt:
                    response = await self._client.request(
                        endpoint.method,
                        url,
                        params=query or None,
                        json=json,
                        headers=headers,
                    )
        except httpx.TransportError as exc:
            logger.warning("transport.request.failed", endpoint=endpoint.name, cluster=cluster, error=str(exc))
            raise TransportFailure(f"{endpoint.name}: {exc}") from exc

        if response.status_code == 401 and endpoint.credential is not CredentialPlacement.NONE:
            self.session.expire(token)
            if self.session.is_expired:
                raise SessionExpiredError(f"{endpoint.name}: credential rejected")
            # A newer token was installed while this request was in flight
            raise UpstreamStatusError(401, f"{endpoint.name}: superseded credential rejected")
        if not response.is_success:
            logger.warning(
                "transport.request.rejected",
                endpoint=endpoint.name,
                cluster=cluster,
                status_code=response.status_code,
            )
            raise UpstreamStatusError(response.status_code, response.text[:_DETAIL_LIMIT])
        return response
