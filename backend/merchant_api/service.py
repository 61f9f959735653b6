"""
Merchant Platform Service

The one entry point the console uses for every merchant operation on
every cluster.

Reads go through the paginated executor and never raise: a failing
cluster shows up as an empty page (or None) and a rejected credential
as an expired SessionContext. Writes raise WriteOperationError on any
non-success answer, and SessionExpiredError once the credential is gone.

Usage:
    async with MerchantService(session=SessionContext(token)) as service:
        page = await service.get_merchants("app6a")
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import structlog

from core.config import Settings, get_settings
from core.security import SessionContext
from merchant_api import endpoints
from merchant_api.base import (
    NormalizeContext,
    PageEnvelope,
    SessionExpiredError,
    TransportFailure,
    UpstreamStatusError,
    WriteOperationError,
    get_entity,
)
from merchant_api.clusters import ClusterResolver
from merchant_api.envelope import decode, parse_json_text
from merchant_api.executor import fetch_one, fetch_page, normalize_records
from merchant_api.models import AIArtifact, Merchant, MerchantUser, Prompt
from merchant_api.normalizers import derive_merchant_status
from merchant_api.payloads import (
    DEFAULT_MODEL_ID,
    artifact_payload,
    merchant_account_payload,
    prompt_payload,
    render_prompt_text,
    sanitize_engagement_payload,
)
from merchant_api.transport import WRITE_RETRY_ERRORS, ClusterTransport, response_payload

logger = structlog.get_logger()

VISITOR_WINDOW_DAYS = 30
MERCHANT_STATUSES = ("Active", "Inactive")

_STATUS_QUERY = re.compile(r"^(active|inactive|suspended)$", re.IGNORECASE)


def detect_search_type(query: str) -> str | None:
    """Classify a free-text merchant search as merchantId, email or merchantStatus."""
    query = query.strip()
    if query.isdigit():
        return "merchantId"
    if "@" in query or ".com" in query:
        return "email"
    if _STATUS_QUERY.match(query):
        return "merchantStatus"
    return None


def _visitor_window(start_date: str | None, end_date: str | None) -> tuple[str, str]:
    now = datetime.now(timezone.utc)
    fmt = "%Y-%m-%dT%H:%M:%S"
    start = start_date or (now - timedelta(days=VISITOR_WINDOW_DAYS)).strftime(fmt)
    end = end_date or now.strftime(fmt)
    return start, end


class MerchantService:
    """Cluster-routed merchant platform operations."""

    def __init__(
        self,
        session: SessionContext | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or get_settings()
        self.session = session or SessionContext(self.settings.platform_token or None)
        self.resolver = ClusterResolver(self.settings)
        self.transport = ClusterTransport(self.session, self.settings, self.resolver, transport=transport)

    async def __aenter__(self) -> "MerchantService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    # ── Internals ──────────────────────────────────────────────────────

    async def _write(
        self,
        operation: str,
        endpoint,
        cluster: str | None,
        *,
        path_params: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Issue a write call and return its decoded body, raising on any failure."""
        try:
            response = await self.transport.request(
                endpoint,
                cluster,
                path_params=path_params,
                params=params,
                json=json,
                retry_on=WRITE_RETRY_ERRORS,
            )
        except SessionExpiredError:
            logger.warning("merchant_service.write.session_expired", operation=operation, cluster=cluster)
            raise
        except UpstreamStatusError as exc:
            logger.error(
                "merchant_service.write.failed",
                operation=operation,
                cluster=cluster,
                status_code=exc.status_code,
            )
            raise WriteOperationError(operation, exc.detail, exc.status_code) from exc
        except TransportFailure as exc:
            logger.error("merchant_service.write.failed", operation=operation, cluster=cluster, error=str(exc))
            raise WriteOperationError(operation, str(exc)) from exc

        payload = parse_json_text(response_payload(response))
        if isinstance(payload, dict) and payload.get("success") is False:
            detail = payload.get("message") or payload.get("error") or "upstream reported success=false"
            logger.error("merchant_service.write.rejected", operation=operation, cluster=cluster)
            raise WriteOperationError(operation, str(detail), response.status_code)

        logger.info("merchant_service.write.succeeded", operation=operation, cluster=cluster)
        return payload

    def _context(self, cluster: str | None, merchant_id: str | None = None) -> NormalizeContext:
        return NormalizeContext(
            cluster=cluster,
            merchant_id=merchant_id,
            webchat_base_url=self.settings.webchat_base_url,
        )

    def _merchant_from_body(self, body: Any, cluster: str | None) -> Merchant | None:
        spec = get_entity("merchant")
        found = decode(body, spec.hint_keys, spec.id_keys)
        merchants = normalize_records(found.records, spec, self._context(cluster))
        return merchants[0] if merchants else None

    # ── Session & clusters ─────────────────────────────────────────────

    async def ping(self, cluster: str | None = None) -> bool:
        try:
            await self.transport.request(endpoints.PING, cluster)
        except (TransportFailure, UpstreamStatusError) as exc:
            logger.warning("merchant_service.ping.failed", cluster=cluster, error=str(exc))
            return False
        return True

    def list_clusters(self) -> list[dict[str, Any]]:
        return self.resolver.list_clusters()

    async def authenticate(self, user_name: str, password: str, cluster: str | None = None) -> str:
        """Exchange credentials for a platform token and install it in the session."""
        body = await self._write(
            "authenticate",
            endpoints.AUTH_TOKEN,
            cluster,
            json={"authType": "PG", "userName": user_name, "password": password},
        )
        token = None
        if isinstance(body, dict):
            token_block = body.get("token")
            token = token_block.get("access_token") if isinstance(token_block, dict) else body.get("access_token")
        if not token:
            raise WriteOperationError("authenticate", "no access token in response")
        self.session.install(token)
        return token

    # ── Merchants ──────────────────────────────────────────────────────

    async def get_merchants(self, cluster: str | None = None, page: int = 0, size: int = 100) -> PageEnvelope[Merchant]:
        return await fetch_page(self.transport, endpoints.GET_MERCHANTS, "merchant", cluster, page, size)

    async def get_merchant(self, merchant_id: str, cluster: str | None = None) -> Merchant | None:
        """
        Full merchant record: the attributes endpoint carries the richest
        view, the direct id endpoint is only asked when it has nothing.
        """
        merchant = await fetch_one(
            self.transport,
            endpoints.GET_MERCHANT_ATTRIBUTES,
            "merchant",
            cluster,
            params={"merchantId": merchant_id},
            merchant_id=merchant_id,
        )
        if merchant is not None:
            return merchant

        logger.info("merchant_service.get_merchant.fallback", merchant_id=merchant_id, cluster=cluster)
        return await fetch_one(
            self.transport,
            endpoints.GET_MERCHANT_BY_ID,
            "merchant",
            cluster,
            path_params={"merchant_id": merchant_id},
            merchant_id=merchant_id,
        )

    async def search_merchants(
        self,
        query: str,
        search_type: str | None = None,
        cluster: str | None = None,
    ) -> list[Merchant]:
        search_type = search_type or detect_search_type(query)
        if search_type == "merchantId":
            result = await fetch_page(
                self.transport,
                endpoints.GET_MERCHANT_BY_ID,
                "merchant",
                cluster,
                path_params={"merchant_id": query.strip()},
            )
        elif search_type in ("email", "merchantStatus"):
            result = await fetch_page(
                self.transport,
                endpoints.SEARCH_MERCHANTS,
                "merchant",
                cluster,
                params={search_type: query.strip()},
            )
        else:
            logger.info("merchant_service.search.unclassified", query_length=len(query))
            return []
        return result.content

    async def create_merchant(
        self,
        email: str,
        user_name: str,
        password: str,
        first_name: str = "",
        last_name: str = "",
        auth_type: str | None = None,
        role: str | None = None,
        cluster: str | None = None,
    ) -> Merchant:
        body = await self._write(
            "create_merchant",
            endpoints.CREATE_ACCOUNT,
            cluster,
            json=merchant_account_payload(email, user_name, password, first_name, last_name, auth_type, role),
        )
        merchant = self._merchant_from_body(body, cluster)
        if merchant is None:
            raise WriteOperationError("create_merchant", "no merchant data returned")
        return merchant

    async def _merchant_after_write(self, operation: str, merchant_id: str, body: Any, cluster: str | None) -> Merchant:
        merchant = self._merchant_from_body(body, cluster)
        if merchant is None:
            merchant = await self.get_merchant(merchant_id, cluster)
        if merchant is None:
            raise WriteOperationError(operation, "updated merchant could not be retrieved")
        return merchant

    async def update_merchant(self, merchant_id: str, changes: dict[str, Any], cluster: str | None = None) -> Merchant:
        """Apply ``changes``; re-fetches the merchant when the cluster answers without a body."""
        body = await self._write(
            "update_merchant",
            endpoints.UPDATE_MERCHANT,
            cluster,
            path_params={"merchant_id": merchant_id},
            json=changes,
        )
        return await self._merchant_after_write("update_merchant", merchant_id, body, cluster)

    async def update_merchant_attributes(
        self,
        merchant_id: str,
        attributes: dict[str, Any],
        cluster: str | None = None,
    ) -> Merchant:
        body = await self._write(
            "update_merchant_attributes",
            endpoints.UPDATE_MERCHANT_ATTRIBUTES,
            cluster,
            json=attributes,
        )
        return await self._merchant_after_write("update_merchant_attributes", merchant_id, body, cluster)

    async def update_custom_config(self, merchant_id: str, custom_config: Any, cluster: str | None = None) -> Any:
        return await self._write(
            "update_custom_config",
            endpoints.UPDATE_MERCHANT_ATTRIBUTES,
            cluster,
            json={"id": merchant_id, "customConfig": custom_config},
        )

    async def update_merchant_status(self, merchant_id: str, status: str, cluster: str | None = None) -> Merchant:
        if status not in MERCHANT_STATUSES:
            raise ValueError(f"Status must be one of {MERCHANT_STATUSES}, got {status!r}")
        body = await self._write(
            "update_merchant_status",
            endpoints.UPDATE_MERCHANT_STATUS,
            cluster,
            path_params={"merchant_id": merchant_id},
            json={"status": status},
        )
        merchant = self._merchant_from_body(body, cluster)
        return merchant or Merchant(id=merchant_id, status=derive_merchant_status(None, status))

    async def delete_merchant(self, merchant_id: str, cluster: str | None = None) -> bool:
        await self._write(
            "delete_merchant",
            endpoints.DELETE_MERCHANT,
            cluster,
            params={"merchantId": merchant_id},
        )
        return True

    async def get_merchant_attributes(
        self, merchant_id: str, cluster: str | None = None, page: int = 0, size: int = 20
    ) -> PageEnvelope:
        return await fetch_page(
            self.transport,
            endpoints.GET_MERCHANT_ATTRIBUTES,
            "merchant_attribute",
            cluster,
            page,
            size,
            params={"merchantId": merchant_id},
            merchant_id=merchant_id,
        )

    async def get_merchant_channels(
        self, merchant_id: str, cluster: str | None = None, page: int = 0, size: int = 20
    ) -> PageEnvelope:
        return await fetch_page(
            self.transport,
            endpoints.GET_MERCHANT_CHANNELS,
            "record",
            cluster,
            page,
            size,
            path_params={"merchant_id": merchant_id},
            merchant_id=merchant_id,
        )

    # ── Prompts ────────────────────────────────────────────────────────

    async def get_prompts(
        self, merchant_id: str, cluster: str | None = None, page: int = 0, size: int = 20
    ) -> PageEnvelope[Prompt]:
        return await fetch_page(
            self.transport,
            endpoints.GET_PROMPTS,
            "prompt",
            cluster,
            page,
            size,
            body={"merchantId": merchant_id},
            merchant_id=merchant_id,
        )

    async def create_prompt(self, prompt: Prompt, cluster: str | None = None, media: list[Any] | None = None) -> Any:
        return await self._write("create_prompt", endpoints.CREATE_PROMPT, cluster, json=prompt_payload(prompt, media))

    async def update_prompt(self, prompt: Prompt, cluster: str | None = None, media: list[Any] | None = None) -> Any:
        if not prompt.id:
            raise ValueError("Prompt id is required for update")
        return await self._write(
            "update_prompt",
            endpoints.MODIFY_PROMPT,
            cluster,
            path_params={"merchant_id": prompt.merchant_id, "prompt_id": prompt.id},
            json=prompt_payload(prompt, media),
        )

    async def delete_prompt(self, merchant_id: str, prompt_id: str, cluster: str | None = None) -> Any:
        return await self._write(
            "delete_prompt",
            endpoints.REMOVE_PROMPT,
            cluster,
            path_params={"merchant_id": merchant_id, "prompt_id": prompt_id},
        )

    async def execute_prompt(
        self,
        merchant_id: str,
        prompt_id: str,
        prompt_title: str,
        request_params: dict[str, Any] | None = None,
        cluster: str | None = None,
    ) -> Any:
        return await self._write(
            "execute_prompt",
            endpoints.EXECUTE_PROMPT,
            cluster,
            json={
                "merchantId": merchant_id,
                "promptId": prompt_id,
                "promptTitle": prompt_title,
                "requestParams": request_params or {},
            },
        )

    async def run_prompt(
        self,
        merchant_id: str,
        prompt_text: str,
        request_params: dict[str, Any] | None = None,
        model_id: str | int | None = None,
        cluster: str | None = None,
    ) -> Any:
        """Render ``$param`` placeholders and send the text to the generation service."""
        return await self._write(
            "run_prompt",
            endpoints.RUN_PROMPT,
            cluster,
            json={
                "prompt": render_prompt_text(prompt_text, request_params),
                "merchantId": merchant_id,
                "modelId": model_id or DEFAULT_MODEL_ID,
            },
        )

    # ── Knowledge bases ────────────────────────────────────────────────

    async def get_knowledge_bases(
        self, merchant_id: str, cluster: str | None = None, page: int = 0, size: int = 20
    ) -> PageEnvelope:
        return await fetch_page(
            self.transport,
            endpoints.GET_KNOWLEDGE_BASES,
            "knowledge_base",
            cluster,
            page,
            size,
            body={"merchantId": merchant_id},
            merchant_id=merchant_id,
        )

    async def add_knowledge_base(self, payload: dict[str, Any], cluster: str | None = None) -> Any:
        return await self._write("add_knowledge_base", endpoints.ADD_KNOWLEDGE_BASE, cluster, json=payload)

    # ── AI artifacts ───────────────────────────────────────────────────

    async def get_ai_artifacts(
        self, merchant_id: str, cluster: str | None = None, page: int = 0, size: int = 10
    ) -> PageEnvelope[AIArtifact]:
        return await fetch_page(
            self.transport,
            endpoints.GET_AI_ARTIFACTS,
            "ai_artifact",
            cluster,
            page,
            size,
            path_params={"merchant_id": merchant_id},
            merchant_id=merchant_id,
        )

    async def update_ai_artifact(self, artifact: AIArtifact, cluster: str | None = None) -> Any:
        return await self._write(
            "update_ai_artifact",
            endpoints.UPDATE_AI_ARTIFACT,
            cluster,
            path_params={"artifact_id": artifact.id},
            json=artifact_payload(artifact),
        )

    async def delete_ai_artifact(self, artifact_id: str, cluster: str | None = None) -> Any:
        return await self._write(
            "delete_ai_artifact",
            endpoints.DELETE_AI_ARTIFACT,
            cluster,
            path_params={"artifact_id": artifact_id},
        )

    # ── Engagements ────────────────────────────────────────────────────

    async def get_engagements(
        self, merchant_id: str, cluster: str | None = None, page: int = 0, size: int = 20
    ) -> PageEnvelope:
        return await fetch_page(
            self.transport,
            endpoints.GET_ENGAGEMENTS,
            "engagement",
            cluster,
            page,
            size,
            path_params={"merchant_id": merchant_id},
            merchant_id=merchant_id,
        )

    async def update_engagement(self, payload: dict[str, Any], cluster: str | None = None) -> Any:
        return await self._write(
            "update_engagement",
            endpoints.UPDATE_ENGAGEMENT,
            cluster,
            json=sanitize_engagement_payload(payload),
        )

    async def delete_engagement(self, payload: dict[str, Any], cluster: str | None = None) -> Any:
        return await self._write(
            "delete_engagement",
            endpoints.REMOVE_ENGAGEMENT,
            cluster,
            json=sanitize_engagement_payload(payload),
        )

    # ── Users ──────────────────────────────────────────────────────────

    async def get_users(self, merchant_id: str | None = None, cluster: str | None = None) -> list[MerchantUser]:
        """Users of one merchant, or of the whole cluster when no merchant is given."""
        result = await fetch_page(
            self.transport,
            endpoints.GET_USERS,
            "user",
            cluster,
            params={"merchantId": merchant_id},
            merchant_id=merchant_id,
        )
        return result.content

    async def invite_user(
        self,
        merchant_id: str,
        email: str,
        role: str,
        auth_type: str = "PG",
        cluster: str | None = None,
    ) -> Any:
        return await self._write(
            "invite_user",
            endpoints.INVITE_USER,
            cluster,
            path_params={"merchant_id": merchant_id, "email": email, "role": role, "auth_type": auth_type},
        )

    async def update_user_account(self, user: dict[str, Any], cluster: str | None = None) -> Any:
        return await self._write("update_user_account", endpoints.UPDATE_USER_ACCOUNT, cluster, json=user)

    # ── Visitors ───────────────────────────────────────────────────────

    async def get_raw_visitors(
        self,
        merchant_id: str,
        cluster: str | None = None,
        page: int = 0,
        size: int = 20,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> PageEnvelope:
        start, end = _visitor_window(start_date, end_date)
        return await fetch_page(
            self.transport,
            endpoints.GET_VISITORS,
            "raw_visitor",
            cluster,
            page,
            size,
            params={"merchantID": merchant_id, "startDate": start, "endDate": end},
            merchant_id=merchant_id,
        )

    async def get_cluster_visitors(
        self,
        cluster: str | None = None,
        page: int = 0,
        size: int = 50,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> PageEnvelope:
        start, end = _visitor_window(start_date, end_date)
        return await fetch_page(
            self.transport,
            endpoints.GET_VISITORS,
            "raw_visitor",
            cluster,
            page,
            size,
            params={"startDate": start, "endDate": end},
        )
