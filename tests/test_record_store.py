from __future__ import annotations

import pytest
import requests

from stockroom.exceptions import StoreError
from stockroom.filters import field_equals
from stockroom.record_store import RecordStoreClient


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        self.requests.append({
            "method": method, "url": url, "headers": headers,
            "params": params, "json": json, "timeout": timeout,
        })
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses, timeout=5.0):
    session = FakeSession(responses)
    client = RecordStoreClient(
        api_key="pat_test", base_id="appTest", api_url="https://store.test/v0/", timeout=timeout, session=session
    )
    return client, session


def _record(record_id, **fields):
    return {"id": record_id, "createdTime": "2024-06-01T00:00:00.000Z", "fields": fields}


def test_select_follows_offsets():
    client, session = _client(
        FakeResponse(body={"records": [_record("rec1", SKU="a")], "offset": "itr1"}),
        FakeResponse(body={"records": [_record("rec2", SKU="b")]}),
    )

    records = client.select("Transaction Log", filter=field_equals("SKU", "a"), sort=[("Created Time", "desc")])

    assert [r["id"] for r in records] == ["rec1", "rec2"]
    first, second = session.requests
    assert first["url"] == "https://store.test/v0/appTest/Transaction%20Log"
    assert first["headers"]["Authorization"] == "Bearer pat_test"
    assert first["timeout"] == 5.0
    assert ("filterByFormula", "{SKU} = 'a'") in first["params"]
    assert ("sort[0][field]", "Created Time") in first["params"]
    assert ("sort[0][direction]", "desc") in first["params"]
    assert ("offset", "itr1") in second["params"]


def test_find_one_requests_single_record():
    client, session = _client(FakeResponse(body={"records": []}))

    assert client.find_one("Inventory", field_equals("SKU", "zzz")) is None
    assert ("maxRecords", 1) in session.requests[0]["params"]


def test_create_chunks_to_batch_limit():
    rows = [{"SKU": f"sku-{i:03d}"} for i in range(12)]
    client, session = _client(
        FakeResponse(body={"records": [_record(f"rec{i}", **row) for i, row in enumerate(rows[:10])]}),
        FakeResponse(body={"records": [_record(f"rec{i}", **row) for i, row in enumerate(rows[10:], 10)]}),
    )

    created = client.create("Inventory", rows)

    assert len(created) == 12
    assert [len(r["json"]["records"]) for r in session.requests] == [10, 2]
    assert session.requests[0]["method"] == "POST"


def test_create_count_mismatch_is_an_error():
    client, _ = _client(FakeResponse(body={"records": []}))

    with pytest.raises(StoreError):
        client.create("Inventory", [{"SKU": "abc"}])


def test_update_sends_patch():
    client, session = _client(FakeResponse(body={"records": [_record("rec1", Quantity=4)]}))

    client.update("Inventory", [{"id": "rec1", "fields": {"Quantity": 4}}])

    assert session.requests[0]["method"] == "PATCH"
    assert session.requests[0]["json"] == {"records": [{"id": "rec1", "fields": {"Quantity": 4}}]}


def test_timeout_becomes_store_error():
    client, _ = _client(requests.Timeout("read timed out"))

    with pytest.raises(StoreError) as exc_info:
        client.first_page("Inventory")

    assert "timed out" in str(exc_info.value)
    assert exc_info.value.code == "STORE_ERROR"


def test_connection_error_becomes_store_error():
    client, _ = _client(requests.ConnectionError("refused"))

    with pytest.raises(StoreError):
        client.first_page("Inventory")


def test_http_error_carries_status_and_detail():
    client, _ = _client(FakeResponse(
        status_code=422,
        body={"error": {"type": "INVALID_FILTER_BY_FORMULA", "message": "bad formula"}},
    ))

    with pytest.raises(StoreError) as exc_info:
        client.first_page("Inventory")

    assert exc_info.value.status_code == 422
    assert "INVALID_FILTER_BY_FORMULA" in str(exc_info.value)
    assert "422" not in exc_info.value.user_message


def test_non_json_body_is_an_error():
    client, _ = _client(FakeResponse(body=None, text="<html>gateway</html>"))

    with pytest.raises(StoreError):
        client.first_page("Inventory")


def test_missing_credentials_fail_before_any_request():
    session = FakeSession([])
    client = RecordStoreClient(api_key="", base_id="", session=session)

    with pytest.raises(StoreError):
        client.first_page("Inventory")
    assert session.requests == []
