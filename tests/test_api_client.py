from unittest.mock import MagicMock

import pytest
import requests

from api_client import ApiClient, ApiError


def _response(status_code=200, payload=None, content=b"{}"):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def _client(session, **kwargs):
    return ApiClient(base_url="http://api.test/api/", timeout=5, session=session, **kwargs)


def test_json_request_sends_bearer_token():
    session = MagicMock()
    session.request.return_value = _response(payload={"data": [1, 2]})

    body = _client(session, token_provider=lambda: "tok").get("/payment-records", params={"page": 1})

    assert body == {"data": [1, 2]}
    session.request.assert_called_once_with(
        "GET",
        "http://api.test/api/payment-records",
        params={"page": 1},
        json=None,
        data=None,
        files=None,
        headers={"Content-Type": "application/json", "Authorization": "Bearer tok"},
        timeout=5,
    )


def test_multipart_request_leaves_content_type_to_requests():
    session = MagicMock()
    session.request.return_value = _response(payload={"data": {}})
    proof = ("receipt.png", b"\x89PNG", "image/png")

    _client(session).post("/payment-records", data={"amount": "10"}, files={"proof_file": proof})

    headers = session.request.call_args.kwargs["headers"]
    assert "Content-Type" not in headers
    assert session.request.call_args.kwargs["files"] == {"proof_file": proof}


def test_error_uses_server_message():
    session = MagicMock()
    session.request.return_value = _response(status_code=400, payload={"message": "Invalid payment data"})

    with pytest.raises(ApiError) as excinfo:
        _client(session).post("/payment-records", json={})

    assert excinfo.value.message == "Invalid payment data"
    assert excinfo.value.status_code == 400


def test_error_without_json_body_gets_generic_message():
    session = MagicMock()
    session.request.return_value = _response(status_code=502, payload=ValueError("no json"), content=b"Bad gateway")

    with pytest.raises(ApiError) as excinfo:
        _client(session).get("/invoices")

    assert excinfo.value.message == "Request failed with status code 502"


def test_unauthorized_triggers_callback():
    session = MagicMock()
    session.request.return_value = _response(status_code=401, payload={"message": "Token expired"})
    on_unauthorized = MagicMock()

    with pytest.raises(ApiError):
        _client(session, on_unauthorized=on_unauthorized).get("/auth/me")

    on_unauthorized.assert_called_once_with()


def test_network_failure_becomes_api_error():
    session = MagicMock()
    session.request.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(ApiError) as excinfo:
        _client(session).get("/dispatches")

    assert "connection refused" in excinfo.value.message
    assert excinfo.value.status_code is None


def test_empty_body_is_empty_dict():
    session = MagicMock()
    session.request.return_value = _response(status_code=204, content=b"")

    assert _client(session).delete("/dispatches/1") == {}
