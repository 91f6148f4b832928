"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All HTTP fixtures use respx.mock and all secrets come from an in-memory
store — no real network or cluster calls are made in any test.
"""

from __future__ import annotations

import json
import re
import uuid

import httpx
import pytest
import respx

from config import DEFAULT_DNS_API_URL
from exceptions import CredentialNotFound

AUTH_URL = "https://infra.mail.ru:35357/v3/auth/tokens"
TOKEN = "gAAAAABtest-token"
NAMESPACE = "cert-manager"
SECRET_NAME = "vkcloud-credentials"
ZONE_UUID = "zone-uuid-1"


# ---------------------------------------------------------------------------
# Secret store test double
# ---------------------------------------------------------------------------


class FakeSecretStore:
    """In-memory SecretStore keyed by (namespace, name)."""

    def __init__(self, secrets: dict[tuple[str, str], dict[str, bytes]] | None = None) -> None:
        self.secrets = secrets or {}
        self.reads: list[tuple[str, str]] = []

    async def get_secret_data(self, namespace: str, name: str) -> dict[str, bytes]:
        self.reads.append((namespace, name))
        try:
            return dict(self.secrets[(namespace, name)])
        except KeyError:
            raise CredentialNotFound(f"secret {namespace}/{name} not found") from None


def credential_secret(auth_url: str = AUTH_URL) -> dict[str, bytes]:
    return {
        "os_auth_url": auth_url.encode(),
        "os_username": b"dns-bot@example.com",
        "os_password": b"s3cr3t",
        "os_project_id": b"b5f1c0ffee",
        "os_domain_name": b"users",
    }


@pytest.fixture()
def secret_store():
    """A FakeSecretStore holding one valid credentials secret."""
    return FakeSecretStore({(NAMESPACE, SECRET_NAME): credential_secret()})


@pytest.fixture()
def make_secret_store():
    """Returns a factory: pass a credentials dict, get a store holding it."""

    def _make(data: dict[str, bytes]) -> FakeSecretStore:
        return FakeSecretStore({(NAMESPACE, SECRET_NAME): data})

    return _make


@pytest.fixture()
def credential_data():
    """Raw secret data for a valid credentials secret."""
    return credential_secret()


# ---------------------------------------------------------------------------
# HTTP mock fixture — intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Stateful VK Cloud API double
# ---------------------------------------------------------------------------


class FakeVkCloudApi:
    """
    Minimal stateful emulation of the identity and DNS endpoints on top of a
    respx router. Records are kept per zone in creation order.
    """

    def __init__(self, router: respx.MockRouter, zones: dict[str, str]) -> None:
        self.zones = zones
        self.records: dict[str, list[dict]] = {zone_id: [] for zone_id in zones}

        base = re.escape(DEFAULT_DNS_API_URL)
        self.auth_route = router.post(AUTH_URL).mock(
            return_value=httpx.Response(201, headers={"X-Subject-Token": TOKEN}, json={"token": {}})
        )
        self.zones_route = router.get(url__regex=rf"^{base}$").mock(side_effect=self._list_zones)
        self.create_route = router.post(url__regex=rf"^{base}(?P<zone_id>[^/]+)/txt/$").mock(
            side_effect=self._create
        )
        self.list_route = router.get(url__regex=rf"^{base}(?P<zone_id>[^/]+)/txt/$").mock(
            side_effect=self._list_records
        )
        self.delete_route = router.delete(
            url__regex=rf"^{base}(?P<zone_id>[^/]+)/txt/(?P<record_id>[^/]+)$"
        ).mock(side_effect=self._delete)

    def add_record(self, zone_id: str, name: str, content: str, ttl: int = 60) -> str:
        record_id = str(uuid.uuid4())
        self.records[zone_id].append({"uuid": record_id, "name": name, "content": content, "ttl": ttl})
        return record_id

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("X-Auth-Token") == TOKEN

    def _list_zones(self, request: httpx.Request) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(401, json={"error": "unauthorized"})
        return httpx.Response(200, json=[{"uuid": z, "zone": name} for z, name in self.zones.items()])

    def _create(self, request: httpx.Request, zone_id: str) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(401, json={"error": "unauthorized"})
        if zone_id not in self.records:
            return httpx.Response(404, json={"error": "zone not found"})
        body = json.loads(request.content)
        record_id = self.add_record(zone_id, body["name"], body["content"], body["ttl"])
        return httpx.Response(201, json={"uuid": record_id, **body})

    def _list_records(self, request: httpx.Request, zone_id: str) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(401, json={"error": "unauthorized"})
        return httpx.Response(200, json={"txt_records": list(self.records.get(zone_id, []))})

    def _delete(self, request: httpx.Request, zone_id: str, record_id: str) -> httpx.Response:
        if not self._authorized(request):
            return httpx.Response(401, json={"error": "unauthorized"})
        kept = [r for r in self.records.get(zone_id, []) if r["uuid"] != record_id]
        if len(kept) == len(self.records.get(zone_id, [])):
            return httpx.Response(404, json={"error": "record not found"})
        self.records[zone_id] = kept
        return httpx.Response(204)


@pytest.fixture()
def vkcloud_api(mock_http):
    """A FakeVkCloudApi serving a single zone "example.com."."""
    return FakeVkCloudApi(mock_http, {ZONE_UUID: "example.com."})
