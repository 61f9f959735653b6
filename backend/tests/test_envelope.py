"""
Unit tests for response envelope unwrapping.
"""

import pytest

from merchant_api.envelope import decode, parse_json_text, unwrap

RECORDS = [{"id": 1}, {"id": 2}]


class TestCollectionShapes:
    def test_bare_array(self):
        assert unwrap(RECORDS) == RECORDS

    def test_data_wrapper(self):
        assert unwrap({"data": RECORDS}) == RECORDS

    def test_spring_page(self):
        assert unwrap({"content": RECORDS, "totalElements": 2}) == RECORDS

    def test_wrapped_page(self):
        assert unwrap({"data": {"content": RECORDS}}) == RECORDS

    def test_hint_key(self):
        assert unwrap({"prompt": RECORDS}, hint_keys=("prompt",)) == RECORDS

    def test_hint_key_inside_data(self):
        assert unwrap({"data": {"visitors": RECORDS}}, hint_keys=("items", "visitors")) == RECORDS

    def test_json_encoded_string(self):
        assert unwrap('[{"id":1}]') == [{"id": 1}]

    def test_json_encoded_bytes(self):
        assert unwrap(b'{"content": [{"id": 1}]}') == [{"id": 1}]

    def test_data_wins_over_content(self):
        assert unwrap({"data": [{"id": "d"}], "content": [{"id": "c"}]}) == [{"id": "d"}]

    def test_nested_data_wins_over_outer_content(self):
        payload = {"data": {"content": [{"id": "inner"}]}, "content": [{"id": "outer"}]}
        assert unwrap(payload) == [{"id": "inner"}]

    def test_nested_data_wins_over_outer_hint_key(self):
        payload = {"data": {"items": [{"id": "inner"}]}, "visitors": [{"id": "outer"}]}
        assert unwrap(payload, hint_keys=("visitors", "items")) == [{"id": "inner"}]

    def test_unrecognized_data_object_falls_through_to_content(self):
        payload = {"data": {"status": "ok"}, "content": [{"id": "outer"}]}
        assert unwrap(payload) == [{"id": "outer"}]

    def test_first_hint_key_wins(self):
        payload = {"artifacts": [{"id": "b"}], "aiArtifacts": [{"id": "a"}]}
        assert unwrap(payload, hint_keys=("aiArtifacts", "artifacts")) == [{"id": "a"}]


class TestSingleRecords:
    def test_single_record_becomes_singleton(self):
        assert unwrap({"merchantId": 42, "name": "Acme"}) == [{"merchantId": 42, "name": "Acme"}]

    def test_single_record_inside_data(self):
        assert unwrap({"data": {"id": 7}}) == [{"id": 7}]

    def test_custom_identifying_keys(self):
        assert unwrap({"promptId": 3}, id_keys=("promptId",)) == [{"promptId": 3}]

    def test_empty_identifier_is_not_a_record(self):
        assert unwrap({"id": "", "name": "ghost"}) == []


@pytest.mark.parametrize("raw", [None, "", "not json", {}, {"status": "ok"}, 42, "null"])
def test_unrecognized_payloads_yield_empty_list(raw):
    assert unwrap(raw) == []


def test_decode_returns_carrying_object_for_metadata():
    found = decode({"content": RECORDS, "totalElements": 25, "totalPages": 3})
    assert found.records == RECORDS
    assert found.container["totalElements"] == 25


def test_decode_single_record_has_no_metadata():
    assert decode({"id": 1}).container == {}


def test_parse_json_text_leaves_invalid_text_alone():
    assert parse_json_text("<html>oops</html>") == "<html>oops</html>"
