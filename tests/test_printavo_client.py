"""Tests for core.printavo_client.PrintavoClient.

All tests mock the requests session so no real HTTP calls are made.
Covers request shape, success, and failure classification.
"""

from unittest.mock import patch, MagicMock

import pytest
import requests

from core.exceptions import FatalFailure, TransientFailure
from core.printavo_client import PrintavoClient, is_fatal_graphql_error, parse_retry_after


def _client():
    return PrintavoClient("https://www.printavo.com/api/v2/", "me@example.com", "tok-123", timeout=7)


def _response(status=200, body=None, reason="OK", headers=None, json_error=False):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = reason
    resp.headers = headers or {}
    if json_error:
        resp.json.side_effect = ValueError("Expecting value")
    else:
        resp.json.return_value = body if body is not None else {}
    return resp


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------

def test_credentials_sent_as_headers():
    client = _client()
    assert client._session.headers["email"] == "me@example.com"
    assert client._session.headers["token"] == "tok-123"
    assert client.api_url == "https://www.printavo.com/api/v2"


def test_execute_posts_query_with_timeout():
    client = _client()
    with patch.object(client._session, "post", return_value=_response(body={"data": {"ok": 1}})) as post:
        data = client.execute_graphql("query X { a }", {"id": "1"})
    assert data == {"ok": 1}
    args, kwargs = post.call_args
    assert args[0] == "https://www.printavo.com/api/v2"
    assert kwargs["json"] == {"query": "query X { a }", "variables": {"id": "1"}}
    assert kwargs["timeout"] == (7, 7)


def test_connect_timeout_capped_read_timeout_full():
    client = PrintavoClient("https://www.printavo.com/api/v2", "me@example.com", "tok-123", timeout=60)
    with patch.object(client._session, "post", return_value=_response(body={"data": {}})) as post:
        client.execute_graphql("query X { a }")
    assert post.call_args.kwargs["timeout"] == (10.0, 60)


def test_partial_errors_with_data_return_data():
    client = _client()
    body = {"data": {"invoice": {"id": "1"}}, "errors": [{"message": "field deprecated"}]}
    with patch.object(client._session, "post", return_value=_response(body=body)):
        assert client.execute_graphql("query X { a }") == {"invoice": {"id": "1"}}


# ---------------------------------------------------------------------------
# Transient failures
# ---------------------------------------------------------------------------

def test_timeout_is_transient():
    client = _client()
    with patch.object(client._session, "post", side_effect=requests.Timeout("read timed out")):
        with pytest.raises(TransientFailure, match="timed out"):
            client.execute_graphql("query X { a }")


def test_connection_error_is_transient():
    client = _client()
    with patch.object(client._session, "post", side_effect=requests.ConnectionError("reset")):
        with pytest.raises(TransientFailure):
            client.execute_graphql("query X { a }")


@pytest.mark.parametrize("status", [404, 500, 502, 503])
def test_non_2xx_is_transient(status):
    client = _client()
    with patch.object(client._session, "post", return_value=_response(status=status, reason="Bad")):
        with pytest.raises(TransientFailure, match=f"HTTP {status}"):
            client.execute_graphql("query X { a }")


def test_429_carries_retry_after():
    client = _client()
    resp = _response(status=429, reason="Too Many Requests", headers={"Retry-After": "4"})
    with patch.object(client._session, "post", return_value=resp):
        with pytest.raises(TransientFailure) as info:
            client.execute_graphql("query X { a }")
    assert info.value.retry_after == 4.0


def test_invalid_json_is_transient():
    client = _client()
    with patch.object(client._session, "post", return_value=_response(json_error=True)):
        with pytest.raises(TransientFailure, match="Invalid JSON"):
            client.execute_graphql("query X { a }")


def test_complexity_error_is_transient():
    client = _client()
    body = {"errors": [{"message": "Query has complexity of 31000, which exceeds max complexity of 25000"}]}
    with patch.object(client._session, "post", return_value=_response(body=body)):
        with pytest.raises(TransientFailure, match="complexity"):
            client.execute_graphql("query X { a }")


# ---------------------------------------------------------------------------
# Fatal failures
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", [400, 401, 403])
def test_auth_and_bad_request_are_fatal(status):
    client = _client()
    with patch.object(client._session, "post", return_value=_response(status=status, reason="Denied")):
        with pytest.raises(FatalFailure, match=f"HTTP {status}"):
            client.execute_graphql("query X { a }")


def test_validation_error_is_fatal():
    client = _client()
    body = {"errors": [{"message": "Field 'bogus' doesn't exist on type 'Invoice'"}]}
    with patch.object(client._session, "post", return_value=_response(body=body)):
        with pytest.raises(FatalFailure):
            client.execute_graphql("query X { bogus }")


def test_error_code_classification():
    assert is_fatal_graphql_error({"message": "x", "extensions": {"code": "UNAUTHENTICATED"}})
    assert is_fatal_graphql_error({"message": "Parse error on \"}\""})
    assert not is_fatal_graphql_error({"message": "Internal server error"})


def test_parse_retry_after():
    assert parse_retry_after("2.5") == 2.5
    assert parse_retry_after(None) is None
    assert parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None
