"""
tests/unit/test_identity_client.py

Unit tests for vkcloud/identity_client.py.
Verifies the Keystone request body and that only the X-Subject-Token header
decides success.
"""

from __future__ import annotations

import json

import httpx
import pytest

from exceptions import AuthenticationFailed
from models import Credential
from vkcloud.identity_client import IdentityClient

_AUTH_URL = "https://infra.mail.ru:35357/v3/auth/tokens"


def _credential(auth_url=_AUTH_URL):
    return Credential(
        auth_url=auth_url,
        username="dns-bot@example.com",
        password="s3cr3t",
        project_id="b5f1c0ffee",
        domain_name="users",
    )


@pytest.mark.asyncio
async def test_authenticate_returns_subject_token(mock_http, http_client):
    mock_http.post(_AUTH_URL).mock(
        return_value=httpx.Response(201, headers={"X-Subject-Token": "tok-1"}, json={})
    )
    client = IdentityClient(http_client)

    assert await client.authenticate(_credential()) == "tok-1"


@pytest.mark.asyncio
async def test_authenticate_sends_password_scoped_body(mock_http, http_client):
    route = mock_http.post(_AUTH_URL).mock(
        return_value=httpx.Response(201, headers={"X-Subject-Token": "tok-1"})
    )
    client = IdentityClient(http_client)

    await client.authenticate(_credential())

    request = route.calls.last.request
    assert json.loads(request.content) == {
        "auth": {
            "identity": {
                "methods": ["password"],
                "password": {
                    "user": {
                        "name": "dns-bot@example.com",
                        "password": "s3cr3t",
                        "domain": {"id": "users"},
                    },
                },
            },
            "scope": {"project": {"id": "b5f1c0ffee"}},
        },
    }
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert request.extensions["timeout"]["read"] == 30.0


@pytest.mark.asyncio
async def test_authenticate_fails_without_token_header_despite_2xx(mock_http, http_client):
    mock_http.post(_AUTH_URL).mock(return_value=httpx.Response(201, json={"token": {}}))
    client = IdentityClient(http_client)

    with pytest.raises(AuthenticationFailed, match="no auth token"):
        await client.authenticate(_credential())


@pytest.mark.asyncio
async def test_authenticate_fails_on_unauthorized(mock_http, http_client):
    mock_http.post(_AUTH_URL).mock(return_value=httpx.Response(401, json={"error": {}}))
    client = IdentityClient(http_client)

    with pytest.raises(AuthenticationFailed, match="401"):
        await client.authenticate(_credential())


@pytest.mark.asyncio
async def test_authenticate_wraps_network_errors(mock_http, http_client):
    mock_http.post(_AUTH_URL).mock(side_effect=httpx.ConnectError("unreachable"))
    client = IdentityClient(http_client)

    with pytest.raises(AuthenticationFailed) as exc_info:
        await client.authenticate(_credential())

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_authenticate_wraps_timeouts(mock_http, http_client):
    mock_http.post(_AUTH_URL).mock(side_effect=httpx.ReadTimeout("slow"))
    client = IdentityClient(http_client)

    with pytest.raises(AuthenticationFailed):
        await client.authenticate(_credential())


@pytest.mark.asyncio
async def test_authenticate_rejects_empty_auth_url_without_request(mock_http, http_client):
    route = mock_http.route().mock(return_value=httpx.Response(500))
    client = IdentityClient(http_client)

    with pytest.raises(AuthenticationFailed, match="no auth URL"):
        await client.authenticate(_credential(auth_url=""))

    assert not route.called


def test_credential_repr_hides_password():
    assert "s3cr3t" not in repr(_credential())
