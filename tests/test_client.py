from __future__ import annotations

import json

import pytest
import requests
from pydantic import BaseModel

from core.client import ReportClient
from core.errors import RemoteRequestError, TransportError
from tests.conftest import FakeResponse, FakeSession


def make_client(*outcomes):
    session = FakeSession(*outcomes)
    return ReportClient("http://gateway.local/api/", session=session, timeout=5), session


def test_fetch_returns_parsed_json_and_sends_json_accept():
    client, session = make_client(FakeResponse(200, {"ok": True}))
    assert client.fetch_resource("/reports/oil") == {"ok": True}
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "http://gateway.local/api/reports/oil"
    assert call["timeout"] == 5
    assert session.headers["Accept"] == "application/json"


def test_path_without_leading_slash_is_normalized():
    client, session = make_client(FakeResponse(200, []))
    client.fetch_resource("ping")
    assert session.calls[0]["url"] == "http://gateway.local/api/ping"


def test_submit_serializes_payload_as_json():
    client, session = make_client(FakeResponse(201, {"id": 7}))
    assert client.submit_resource("/report", {"company": "Acme"}) == {"id": 7}
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["headers"]["Content-Type"] == "application/json"
    assert json.loads(call["data"]) == {"company": "Acme"}


def test_submit_accepts_pydantic_models():
    class Body(BaseModel):
        company: str

    client, session = make_client(FakeResponse(200, {}))
    client.submit_resource("/report", Body(company="Acme"))
    assert json.loads(session.calls[0]["data"]) == {"company": "Acme"}


def test_submit_rejects_non_mapping_payload_before_sending():
    client, session = make_client()
    with pytest.raises(TypeError):
        client.submit_resource("/report", ["not", "a", "record"])
    with pytest.raises(TypeError):
        client.submit_resource("/report", {"when": object()})
    assert session.calls == []


@pytest.mark.parametrize("status", [400, 401, 404, 500, 503])
def test_failure_status_raises_remote_request_error(status):
    client, _ = make_client(FakeResponse(status, {"error": "nope"}))
    with pytest.raises(RemoteRequestError) as info:
        client.fetch_resource("/reports/oil")
    assert info.value.status == status
    assert info.value.url == "http://gateway.local/api/reports/oil"


def test_network_failure_raises_transport_error():
    client, _ = make_client(requests.ConnectionError("dns failure"))
    with pytest.raises(TransportError) as info:
        client.fetch_resource("/reports/oil")
    assert isinstance(info.value.__cause__, requests.ConnectionError)
    assert not isinstance(info.value, RemoteRequestError)


def test_timeout_is_a_transport_error():
    client, _ = make_client(requests.Timeout("slow"))
    with pytest.raises(TransportError):
        client.submit_resource("/report", {"company": "Acme"})


def test_unreadable_success_body_is_remote_error():
    client, _ = make_client(FakeResponse(200, text="<html>proxy error</html>"))
    with pytest.raises(RemoteRequestError) as info:
        client.fetch_resource("/ping")
    assert info.value.status == 200


def test_convenience_endpoints():
    client, session = make_client(FakeResponse(200, {"status": "ok"}), FakeResponse(200, {"summary": "x"}))
    assert client.ping() == {"status": "ok"}
    assert client.request_report("Acme") == {"summary": "x"}
    assert session.calls[0]["url"].endswith("/api/ping")
    assert session.calls[1]["url"].endswith("/api/report")
    assert json.loads(session.calls[1]["data"]) == {"company": "Acme"}


def test_cookies_are_kept_on_the_session():
    client = ReportClient("http://gateway.local/api", cookies={"session_id": "abc"})
    try:
        assert client.session.cookies.get("session_id") == "abc"
        assert client.session.headers["Accept"] == "application/json"
    finally:
        client.close()


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_numbers_are_not_serializable(value):
    client, session = make_client()
    with pytest.raises(TypeError):
        client.submit_resource("/report", {"score": value})
    assert session.calls == []
