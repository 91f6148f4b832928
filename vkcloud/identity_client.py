"""
vkcloud/identity_client.py

Responsibility: Exchanges VK Cloud password credentials for a short-lived
bearer token via the Keystone v3 identity endpoint.
Does NOT: read secrets, cache tokens, or call the DNS API.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from exceptions import AuthenticationFailed
from models import Credential

logger = logging.getLogger(__name__)

# Response header that carries the issued token.
TOKEN_HEADER = "X-Subject-Token"

_AUTH_TIMEOUT = 30.0


class IdentityClient:
    """
    Obtains bearer tokens from the identity service named in a Credential.

    A single attempt is made per call with a bounded timeout; tokens are not
    cached, so every present/clean_up run authenticates afresh.

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
    """

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = _AUTH_TIMEOUT) -> None:
        self._client = http_client
        self._timeout = timeout

    async def authenticate(self, credential: Credential) -> str:
        """
        Returns a bearer token for the credential's project scope.

        Success is decided only by a non-empty X-Subject-Token header; the
        status code and body are not consulted.

        Args:
            credential: Resolved credentials including the auth URL.

        Returns:
            The token string.

        Raises:
            AuthenticationFailed: If the auth URL is empty, the request fails
                or times out, or the response carries no token.
        """
        if not credential.auth_url:
            raise AuthenticationFailed("no auth URL configured in credentials secret")

        logger.debug("POST %s (identity, user=%s)", credential.auth_url, credential.username)
        try:
            response = await self._client.post(
                credential.auth_url,
                json=self._build_auth_body(credential),
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise AuthenticationFailed(f"authentication failed: {exc}") from exc

        token = response.headers.get(TOKEN_HEADER, "")
        if not token:
            raise AuthenticationFailed(
                f"no auth token received from VK Cloud (status {response.status_code})"
            )

        logger.debug("Obtained identity token for project %s", credential.project_id)
        return token

    @staticmethod
    def _build_auth_body(credential: Credential) -> dict[str, Any]:
        """Builds the Keystone v3 password-method, project-scoped request body."""
        return {
            "auth": {
                "identity": {
                    "methods": ["password"],
                    "password": {
                        "user": {
                            "name": credential.username,
                            "password": credential.password,
                            "domain": {"id": credential.domain_name},
                        },
                    },
                },
                "scope": {
                    "project": {"id": credential.project_id},
                },
            },
        }
