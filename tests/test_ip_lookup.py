import asyncio

import httpx
import pytest

from whereami.acquisition.ip_lookup import IpLocationClient, is_public_address
from whereami.config.settings import get_settings
from whereami.core.errors import NetworkFailure
from whereami.core.geo import Coordinate
from whereami.state.store import IPInfo

IPAPI_BODY = {
    "ip": "203.0.113.42",
    "city": "Tel Aviv",
    "country_name": "Israel",
    "latitude": 32.0809,
    "longitude": 34.7806,
    "org": "AS1680 Example Telecom",
}


def _fake_get_json(payload, calls=None):
    async def fake(url, *, params=None, headers=None, timeout_seconds=10):  # noqa: ARG001
        if calls is not None:
            calls.append(url)
        if isinstance(payload, Exception):
            raise payload
        return payload

    return fake


def test_lookup_parses_ipapi_response(monkeypatch):
    monkeypatch.setattr("whereami.acquisition.ip_lookup.get_json", _fake_get_json(IPAPI_BODY))
    client = IpLocationClient(get_settings())

    result = asyncio.run(client.lookup())

    assert result.position == Coordinate(lat=32.0809, lon=34.7806)
    assert result.info == IPInfo(address="203.0.113.42", organization="AS1680 Example Telecom")


def test_lookup_uses_address_endpoint_only_for_public_ips(monkeypatch):
    calls: list[str] = []
    monkeypatch.setattr("whereami.acquisition.ip_lookup.get_json", _fake_get_json(IPAPI_BODY, calls))
    client = IpLocationClient(get_settings())

    asyncio.run(client.lookup("8.8.8.8"))
    asyncio.run(client.lookup("127.0.0.1"))
    asyncio.run(client.lookup("192.168.1.20"))
    asyncio.run(client.lookup(None))

    assert calls == [
        "https://ipapi.co/8.8.8.8/json/",
        "https://ipapi.co/json/",
        "https://ipapi.co/json/",
        "https://ipapi.co/json/",
    ]


@pytest.mark.parametrize(
    "address,expected",
    [("8.8.8.8", True), ("2001:4860:4860::8888", True), ("10.0.0.1", False), ("::1", False), ("testclient", False), ("", False)],
)
def test_is_public_address(address, expected):
    assert is_public_address(address) is expected


def test_http_status_error_becomes_network_failure(monkeypatch):
    request = httpx.Request("GET", "https://ipapi.co/json/")
    response = httpx.Response(429, request=request)
    error = httpx.HTTPStatusError("429", request=request, response=response)
    monkeypatch.setattr("whereami.acquisition.ip_lookup.get_json", _fake_get_json(error))

    with pytest.raises(NetworkFailure):
        asyncio.run(IpLocationClient(get_settings()).lookup())


def test_transport_error_becomes_network_failure(monkeypatch):
    error = httpx.ConnectError("name resolution failed")
    monkeypatch.setattr("whereami.acquisition.ip_lookup.get_json", _fake_get_json(error))

    with pytest.raises(NetworkFailure, match="name resolution failed"):
        asyncio.run(IpLocationClient(get_settings()).lookup())


def test_non_json_body_becomes_network_failure(monkeypatch):
    monkeypatch.setattr("whereami.acquisition.ip_lookup.get_json", _fake_get_json(ValueError("Expecting value")))

    with pytest.raises(NetworkFailure, match="not JSON"):
        asyncio.run(IpLocationClient(get_settings()).lookup())


@pytest.mark.parametrize(
    "body",
    [
        {"error": True, "reason": "RateLimited", "message": "Visit https://ipapi.co/ratelimited/ for details"},
        {k: v for k, v in IPAPI_BODY.items() if k != "org"},
        {**IPAPI_BODY, "latitude": "north"},
        {**IPAPI_BODY, "latitude": 123.0},
        ["not", "a", "mapping"],
    ],
)
def test_malformed_payloads_are_rejected_whole(monkeypatch, body):
    monkeypatch.setattr("whereami.acquisition.ip_lookup.get_json", _fake_get_json(body))

    with pytest.raises(NetworkFailure):
        asyncio.run(IpLocationClient(get_settings()).lookup())


def test_get_json_raises_on_non_2xx(monkeypatch):
    from whereami.core import http

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["User-Agent"].startswith("whereami/")
        return httpx.Response(503, json={"error": True})

    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(http.httpx, "AsyncClient", client_factory)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(http.get_json("https://ipapi.co/json/"))


def _with_ip_lookup(**updates):
    settings = get_settings()
    ip_lookup = settings.acquisition.ip_lookup.model_copy(update=updates)
    acquisition = settings.acquisition.model_copy(update={"ip_lookup": ip_lookup})
    return settings.model_copy(update={"acquisition": acquisition})


def test_lookup_url_ignores_client_address_when_disabled():
    settings = _with_ip_lookup(use_client_address=False)
    client = IpLocationClient(settings)

    assert client.lookup_url("8.8.8.8") == "https://ipapi.co/json/"
    assert client.lookup_url(None) == "https://ipapi.co/json/"
