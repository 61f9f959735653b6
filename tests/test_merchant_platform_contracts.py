"""
Contract tests for the merchant platform layer

Covers:
  - Entity registry (every console entity has a normalizer)
  - Endpoint catalogue (credential placement, paging, path templates)
  - Envelope shapes shared by all list endpoints
  - Page envelope serialization
"""

import pytest

from merchant_api import PageEnvelope, endpoints, get_entity, unwrap
from merchant_api.base import _ENTITY_REGISTRY, CredentialPlacement, Endpoint, PagingStyle


# ── Entity registry ───────────────────────────────────────────────────────


class TestEntityRegistry:
    EXPECTED = {
        "merchant",
        "prompt",
        "knowledge_base",
        "ai_artifact",
        "engagement",
        "raw_visitor",
        "merchant_attribute",
        "user",
        "record",
    }

    def test_all_entities_registered(self):
        assert self.EXPECTED <= set(_ENTITY_REGISTRY)

    @pytest.mark.parametrize("key", sorted(EXPECTED))
    def test_normalizer_accepts_minimal_record(self, key):
        record = get_entity(key).normalizer({"id": "1"})
        assert record.id == "1"
        assert isinstance(record.as_dict(), dict)

    @pytest.mark.parametrize("key", sorted(EXPECTED))
    def test_normalizer_tolerates_empty_record(self, key):
        record = get_entity(key).normalizer({})
        assert record.id == ""


# ── Endpoint catalogue ────────────────────────────────────────────────────


def _catalogue() -> list[Endpoint]:
    return [value for value in vars(endpoints).values() if isinstance(value, Endpoint)]


class TestEndpointCatalogue:
    def test_names_are_unique(self):
        names = [endpoint.name for endpoint in _catalogue()]
        assert len(names) == len(set(names))

    def test_only_session_endpoints_skip_the_credential(self):
        anonymous = {e.name for e in _catalogue() if e.credential is CredentialPlacement.NONE}
        assert anonymous == {endpoints.PING.name, endpoints.AUTH_TOKEN.name}

    def test_paths_are_relative(self):
        assert all(not e.path.startswith("/") for e in _catalogue())

    def test_render_path(self):
        path = endpoints.MODIFY_PROMPT.render_path(merchant_id=42, prompt_id="p-7")
        assert path == "model-service/promptlab/modify/42/p-7"

    @pytest.mark.parametrize(
        "endpoint, expected",
        [
            (endpoints.GET_MERCHANTS, {"page": 2, "size": 50}),
            (endpoints.GET_VISITORS, {"pageIndex": 2, "pageCount": 50}),
            (endpoints.GET_KNOWLEDGE_BASES, {"pageIndex": 2, "pageCount": 50}),
            (endpoints.GET_PROMPTS, {}),
        ],
    )
    def test_paging_fields(self, endpoint, expected):
        assert endpoint.paging_fields(2, 50) == expected

    def test_body_paging_only_on_post(self):
        for endpoint in _catalogue():
            if endpoint.paging is PagingStyle.BODY_INDEX_COUNT:
                assert endpoint.method == "POST"


# ── Envelope shapes ───────────────────────────────────────────────────────


class TestEnvelopeShapes:
    RECORDS = [{"id": 1}, {"id": 2}]

    @pytest.mark.parametrize(
        "payload",
        [
            RECORDS,
            {"data": RECORDS},
            {"content": RECORDS, "totalElements": 2},
            {"data": {"content": RECORDS}},
            {"items": RECORDS},
            '[{"id": 1}, {"id": 2}]',
        ],
    )
    def test_list_shapes(self, payload):
        assert unwrap(payload, ("items",)) == self.RECORDS

    @pytest.mark.parametrize("payload", [None, "", {}, "not json", 42, {"message": "ok"}])
    def test_unrecognized_payloads(self, payload):
        assert unwrap(payload) == []


# ── Page envelope ─────────────────────────────────────────────────────────


class TestPageEnvelope:
    def test_empty_envelope(self):
        page = PageEnvelope.empty(3, 25)
        assert page.as_dict() == {
            "content": [],
            "page_number": 3,
            "page_size": 25,
            "total_elements": 0,
            "total_pages": 0,
            "first": True,
            "last": True,
        }

    def test_records_serialized_through_as_dict(self):
        merchant = get_entity("merchant").normalizer({"merchantId": 7, "merchantStatus": "Active"})
        page = PageEnvelope.from_records([merchant], {}, 0, 10)
        assert page.as_dict()["content"][0]["status"] == "active"

    def test_single_page_envelope(self):
        page = PageEnvelope.single_page([{"id": i} for i in range(45)])
        assert (page.page_number, page.page_size, page.total_elements, page.total_pages) == (0, 45, 45, 1)
        assert page.first is True and page.last is True
