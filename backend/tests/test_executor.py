"""
Tests for the paginated request executor and the cluster transport.
"""

import json

import httpx
import pytest

from core.security import CredentialState
from merchant_api import endpoints
from merchant_api.executor import fetch_one, fetch_page

ARTIFACTS_PATH = "ai-artifacts/by-merchant/42/paginated"


def _artifacts(count: int) -> list[dict]:
    return [{"id": i, "name": f"artifact-{i}"} for i in range(count)]


async def _fetch_artifacts(service, page: int = 0, size: int = 10, cluster: str | None = None):
    return await fetch_page(
        service.transport,
        endpoints.GET_AI_ARTIFACTS,
        "ai_artifact",
        cluster,
        page,
        size,
        path_params={"merchant_id": "42"},
        merchant_id="42",
    )


@pytest.mark.asyncio
class TestFetchPage:
    async def test_server_error_yields_empty_envelope(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, status=500, json={"error": "boom"})

        result = await _fetch_artifacts(service, page=2, size=10)

        assert result.content == []
        assert result.total_elements == 0
        assert result.page_number == 2
        assert result.first is True and result.last is True

    async def test_total_pages_derived_from_total_elements(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json={"content": _artifacts(10), "totalElements": 25})

        result = await _fetch_artifacts(service, page=0, size=10)

        assert len(result.content) == 10
        assert result.total_elements == 25
        assert result.total_pages == 3
        assert result.first is True
        assert result.last is False

    async def test_upstream_metadata_wins(self, service, cluster):
        cluster.on(
            "GET",
            ARTIFACTS_PATH,
            json={"data": {"content": _artifacts(2), "pageNumber": 4, "pageSize": 2, "totalPages": 5, "last": True}},
        )

        result = await _fetch_artifacts(service, page=0, size=10)

        assert result.page_number == 4
        assert result.page_size == 2
        assert result.total_pages == 5
        assert result.last is True
        assert result.first is False

    async def test_bare_array_metadata_from_content(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=_artifacts(3))

        result = await _fetch_artifacts(service, page=0, size=10)

        assert result.total_elements == 3
        assert result.total_pages == 1
        assert result.last is True

    async def test_non_record_items_are_skipped(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=[{"id": 1}, "junk", 3, None])

        result = await _fetch_artifacts(service)

        assert [artifact.id for artifact in result.content] == ["1"]

    async def test_json_encoded_string_body(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=json.dumps({"content": _artifacts(2)}))

        result = await _fetch_artifacts(service)

        assert len(result.content) == 2

    async def test_non_json_body_yields_empty_envelope(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, text="<html>maintenance</html>")

        result = await _fetch_artifacts(service)

        assert result.content == []

    async def test_network_failure_retries_then_degrades(self, service, cluster):
        cluster.fail("GET", ARTIFACTS_PATH)

        result = await _fetch_artifacts(service)

        assert result.content == []
        assert len(cluster.calls_to(ARTIFACTS_PATH)) == 2

    async def test_paging_sent_as_query(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=[])

        await _fetch_artifacts(service, page=3, size=15)

        request = cluster.requests[0]
        assert request.url.params["page"] == "3"
        assert request.url.params["size"] == "15"

    async def test_paging_sent_in_body(self, service, cluster):
        path = "model-service/knowledgeBase/getKnowledgeBaseDetails"
        cluster.on("POST", path, json={"knowledgeBase": [{"knowledgeBaseId": 1}]})

        result = await fetch_page(
            service.transport,
            endpoints.GET_KNOWLEDGE_BASES,
            "knowledge_base",
            None,
            1,
            5,
            body={"merchantId": "42"},
        )

        assert json.loads(cluster.requests[0].content) == {"merchantId": "42", "pageIndex": 1, "pageCount": 5}
        assert result.content[0].id == "1"

    async def test_fetch_one_returns_first_or_none(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=_artifacts(2))
        first = await fetch_one(
            service.transport,
            endpoints.GET_AI_ARTIFACTS,
            "ai_artifact",
            path_params={"merchant_id": "42"},
        )
        assert first.id == "0"

        cluster.on("GET", ARTIFACTS_PATH, json=[])
        assert (
            await fetch_one(
                service.transport,
                endpoints.GET_AI_ARTIFACTS,
                "ai_artifact",
                path_params={"merchant_id": "42"},
            )
            is None
        )


@pytest.mark.asyncio
class TestTransportRouting:
    async def test_cluster_key_selects_host(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=[])

        await _fetch_artifacts(service, cluster="app6e")
        await _fetch_artifacts(service, cluster="unknown-cluster")

        assert [r.url.host for r in cluster.requests] == ["api6e.neocloud.ai", "apin.neocloud.ai"]

    async def test_bearer_header_placement(self, service, cluster):
        cluster.on("GET", ARTIFACTS_PATH, json=[])

        await _fetch_artifacts(service)

        request = cluster.requests[0]
        assert request.headers["Authorization"] == "Bearer test-token"
        assert "access_token" not in request.url.params

    async def test_query_token_placement(self, service, cluster):
        cluster.on("GET", "chimes/getMerchantAttributes", json=[])

        await service.get_merchant_attributes("42")

        request = cluster.requests[0]
        assert request.url.params["access_token"] == "test-token"
        assert request.url.params["merchantId"] == "42"
        assert "Authorization" not in request.headers


@pytest.mark.asyncio
class TestSessionExpiry:
    async def test_single_401_expires_once_then_fails_fast(self, service, session, cluster):
        notifications = []
        session.subscribe(lambda ctx: notifications.append(ctx.state))
        cluster.on("GET", ARTIFACTS_PATH, status=401)

        first = await _fetch_artifacts(service)

        assert first.content == []
        assert session.state is CredentialState.EXPIRED
        assert session.token is None
        assert notifications == [CredentialState.EXPIRED]
        assert len(cluster.requests) == 1

        second = await _fetch_artifacts(service)

        assert second.content == []
        assert len(cluster.requests) == 1
        assert notifications == [CredentialState.EXPIRED]

    async def test_new_token_resumes_requests(self, service, session, cluster):
        cluster.on("GET", ARTIFACTS_PATH, status=401)
        await _fetch_artifacts(service)

        session.install("fresh-token")
        cluster.on("GET", ARTIFACTS_PATH, json=_artifacts(1))
        result = await _fetch_artifacts(service)

        assert len(result.content) == 1
        assert cluster.requests[-1].headers["Authorization"] == "Bearer fresh-token"

    async def test_401_for_a_replaced_token_keeps_the_new_one(self, service, session, cluster):
        notifications = []
        session.subscribe(lambda ctx: notifications.append(ctx.state))

        def reauthenticated_mid_flight(request):
            session.install("fresh-token")
            return httpx.Response(401)

        cluster.on("GET", ARTIFACTS_PATH, responder=reauthenticated_mid_flight)

        result = await _fetch_artifacts(service)

        assert result.content == []
        assert cluster.requests[0].headers["Authorization"] == "Bearer test-token"
        assert session.token == "fresh-token"
        assert session.state is CredentialState.VALID
        assert notifications == []
