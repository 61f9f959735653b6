"""
API Tests — Smoke tests for all routes.
"""

import pytest
from httpx import AsyncClient

MERCHANTS_PATH = "curo/merchant/getMerchants"


@pytest.mark.asyncio
class TestHealthCheck:
    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


@pytest.mark.asyncio
class TestSessionAPI:
    async def test_session_state_valid(self, client: AsyncClient):
        response = await client.get("/api/v1/session")
        assert response.status_code == 200
        assert response.json() == {"state": "valid", "authenticated": True}

    async def test_logout_then_install(self, client: AsyncClient):
        response = await client.delete("/api/v1/session")
        assert response.json()["state"] == "absent"

        response = await client.put("/api/v1/session", json={"token": "new-token"})
        assert response.status_code == 200
        assert response.json()["authenticated"] is True

    async def test_empty_token_rejected(self, client: AsyncClient):
        response = await client.put("/api/v1/session", json={"token": ""})
        assert response.status_code == 422

    async def test_invalid_login_is_401(self, client: AsyncClient, cluster):
        cluster.on("POST", "ecloudbl/auth/token", status=401)
        response = await client.post("/api/v1/session/login", json={"user_name": "ana", "password": "bad"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
class TestClustersAPI:
    async def test_list_clusters(self, client: AsyncClient):
        response = await client.get("/api/v1/clusters/")
        assert response.status_code == 200
        clusters = {c["id"]: c["base_url"] for c in response.json()}
        assert clusters["app6e"] == "https://api6e.neocloud.ai/"

    async def test_ping_unreachable(self, client: AsyncClient, cluster):
        cluster.fail("GET", "ping")
        response = await client.get("/api/v1/clusters/app6a/ping")
        assert response.json() == {"cluster": "app6a", "reachable": False}


@pytest.mark.asyncio
class TestMerchantsAPI:
    async def test_list_merchants_envelope(self, client: AsyncClient, cluster):
        cluster.on("GET", MERCHANTS_PATH, json={"content": [{"merchantId": 1, "merchantName": "Acme"}], "totalElements": 1})

        response = await client.get("/api/v1/merchants/", params={"cluster": "app6a"})

        assert response.status_code == 200
        data = response.json()
        assert data["total_elements"] == 1
        assert data["content"][0]["name"] == "Acme"
        assert data["content"][0]["status"] == "unknown"

    async def test_failing_cluster_reads_as_empty(self, client: AsyncClient, cluster):
        cluster.on("GET", MERCHANTS_PATH, status=503)

        response = await client.get("/api/v1/merchants/")

        assert response.status_code == 200
        assert response.json()["content"] == []

    async def test_get_merchant_not_found(self, client: AsyncClient):
        response = await client.get("/api/v1/merchants/999")
        assert response.status_code == 404

    async def test_invalid_status_rejected(self, client: AsyncClient):
        response = await client.patch("/api/v1/merchants/42/status", json={"status": "Paused"})
        assert response.status_code == 422

    async def test_write_failure_is_502(self, client: AsyncClient, cluster):
        cluster.on("DELETE", "curo/merchant/deleteMerchant", status=500, text="db down")

        response = await client.delete("/api/v1/merchants/42")

        assert response.status_code == 502
        data = response.json()
        assert data["operation"] == "delete_merchant"
        assert data["upstream_status"] == 500


@pytest.mark.asyncio
class TestSessionExpiryAPI:
    async def test_read_that_hits_401_answers_401(self, client: AsyncClient, cluster):
        cluster.on("GET", MERCHANTS_PATH, status=401)

        response = await client.get("/api/v1/merchants/")

        assert response.status_code == 401
        assert "Session expired" in response.json()["detail"]

    async def test_expired_session_short_circuits(self, client: AsyncClient, session, cluster):
        session.expire()

        response = await client.get("/api/v1/merchants/42/engagements/")

        assert response.status_code == 401
        assert cluster.requests == []

    async def test_session_routes_stay_reachable(self, client: AsyncClient, session):
        session.expire()

        response = await client.get("/api/v1/session")
        assert response.json() == {"state": "expired", "authenticated": False}

        response = await client.put("/api/v1/session", json={"token": "fresh"})
        assert response.json()["state"] == "valid"

    async def test_write_after_expiry_is_401(self, client: AsyncClient, session):
        session.expire()
        response = await client.delete("/api/v1/merchants/42/artifacts/3")
        assert response.status_code == 401


@pytest.mark.asyncio
class TestMerchantResourcesAPI:
    async def test_prompts(self, client: AsyncClient, cluster):
        cluster.on("POST", "model-service/promptlab/getPrompt", json={"prompt": [{"promptId": 1, "promptTitle": "Hi"}]})

        response = await client.get("/api/v1/merchants/42/prompts")

        assert response.status_code == 200
        assert response.json()["content"][0]["title"] == "Hi"

    async def test_artifacts(self, client: AsyncClient, cluster):
        cluster.on("GET", "ai-artifacts/by-merchant/42/paginated", json={"content": [{"id": 3, "access": "PUBLIC"}]})

        response = await client.get("/api/v1/merchants/42/artifacts/")

        assert response.json()["content"][0]["access"] == "PUBLIC"

    async def test_cluster_users(self, client: AsyncClient, cluster):
        cluster.on("GET", "curo/userDetails", json=[{"id": 1, "userName": "ana", "department": "Ops"}])

        response = await client.get("/api/v1/users")

        assert response.status_code == 200
        assert response.json()[0]["department"] == "Ops"
