"""Tests for accessiguard/client.py"""

import warnings

import pytest
import requests

from accessiguard.client import (
    AccessiGuardClient,
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    ScanClientError,
    ScanFailedError,
    validate_http_url,
)

API = "https://api.example.com/api/scan"


@pytest.fixture
def client() -> AccessiGuardClient:
    return AccessiGuardClient(api_url=API, timeout=5)


# ---------------------------------------------------------------------------
# scan() — happy path
# ---------------------------------------------------------------------------

def test_scan_returns_parsed_json(client, requests_mock):
    requests_mock.post(API, json={"score": 90, "violations": []})
    assert client.scan("https://example.com/") == {"score": 90, "violations": []}


def test_scan_posts_url_as_json(client, requests_mock):
    adapter = requests_mock.post(API, json={})
    client.scan("https://example.com/")

    request = adapter.last_request
    assert request.json() == {"url": "https://example.com/"}
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["User-Agent"].startswith("accessiguard-cli/")


def test_scan_records_status_code(client, requests_mock):
    requests_mock.post(API, status_code=201, json={})
    assert client.last_status_code is None
    client.scan("https://example.com/")
    assert client.last_status_code == 201


def test_scan_warns_on_non_object_json(client, requests_mock):
    requests_mock.post(API, json=[1, 2, 3])
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        data = client.scan("https://example.com/")

    assert data == [1, 2, 3]
    assert any("JSON object" in str(w.message) for w in caught)


# ---------------------------------------------------------------------------
# scan() — error responses
# ---------------------------------------------------------------------------

def test_invalid_json_raises(client, requests_mock):
    requests_mock.post(API, status_code=502, text="<html>Bad gateway</html>")
    with pytest.raises(InvalidResponseError, match=r"invalid JSON \(HTTP 502\)"):
        client.scan("https://example.com/")


def test_error_message_taken_from_payload(client, requests_mock):
    requests_mock.post(API, status_code=429, json={"error": "Rate limit exceeded"})
    with pytest.raises(ScanFailedError, match="Rate limit exceeded") as info:
        client.scan("https://example.com/")
    assert info.value.status_code == 429


def test_error_without_message_uses_status(client, requests_mock):
    requests_mock.post(API, status_code=500, json={"detail": 1})
    with pytest.raises(ScanFailedError, match="Scan failed with HTTP 500"):
        client.scan("https://example.com/")


def test_non_string_error_field_ignored(client, requests_mock):
    requests_mock.post(API, status_code=400, json={"error": {"code": 7}})
    with pytest.raises(ScanClientError, match="HTTP 400"):
        client.scan("https://example.com/")


# ---------------------------------------------------------------------------
# scan() — network errors
# ---------------------------------------------------------------------------

def test_timeout_raises_network_error(client, requests_mock):
    requests_mock.post(API, exc=requests.exceptions.Timeout)
    with pytest.raises(NetworkError, match="timed out"):
        client.scan("https://example.com/")


def test_connection_error_raises_network_error(client, requests_mock):
    requests_mock.post(API, exc=requests.exceptions.ConnectionError)
    with pytest.raises(NetworkError, match="Unable to reach"):
        client.scan("https://example.com/")


@pytest.mark.parametrize("error", [
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.TooManyRedirects,
    requests.exceptions.ContentDecodingError,
])
def test_other_transport_errors_raise_network_error(client, requests_mock, error):
    requests_mock.post(API, exc=error)
    with pytest.raises(NetworkError, match=error.__name__):
        client.scan("https://example.com/")


# ---------------------------------------------------------------------------
# validate_http_url()
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    ("example.com", "https://example.com/"),
    ("http://Example.COM", "http://example.com/"),
    ("HTTPS://example.com/a?b=1#c", "https://example.com/a?b=1#c"),
    ("example.com:8080/path", "https://example.com:8080/path"),
    ("  https://example.com/x  ", "https://example.com/x"),
    ("example.com/next?u=http://other", "https://example.com/next?u=http://other"),
])
def test_validate_http_url_normalises(raw, expected):
    assert validate_http_url(raw) == expected


def test_validate_http_url_rejects_other_schemes():
    with pytest.raises(InvalidURLError, match="http:// or https://"):
        validate_http_url("ftp://example.com")


@pytest.mark.parametrize("raw", ["", "https://", "exa mple.com", "https://example.com:99999"])
def test_validate_http_url_rejects_garbage(raw):
    with pytest.raises(InvalidURLError):
        validate_http_url(raw)
