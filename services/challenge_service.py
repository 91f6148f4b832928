"""
services/challenge_service.py

Responsibility: Orchestrates one DNS-01 challenge: resolve credentials,
authenticate, locate the zone, then create or delete the TXT record. Reports
any failing stage to the caller.
Does NOT: make HTTP calls directly, parse HTTP payloads, or read the process
environment.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from config import DEFAULT_DNS_API_URL
from exceptions import ChallengeError, SolverError, SolverNotInitialized
from models import ChallengeRequest, load_solver_config
from services.credential_service import CredentialResolver, KubernetesSecretStore, SecretStore
from vkcloud.dns_client import VkCloudDnsClient
from vkcloud.dns_provider import DNSProvider
from vkcloud.identity_client import IdentityClient

logger = logging.getLogger(__name__)

SOLVER_NAME = "cert-manager-webhook-vkcloud"

_T = TypeVar("_T")


class ChallengeSolver:
    """
    cert-manager webhook solver for VK Cloud DNS.

    Each present()/clean_up() call is an independent, strictly sequential
    pipeline with a freshly issued token; no state is shared between calls
    apart from the HTTP client and the secret store, both of which are safe
    for concurrent use. Concurrent calls for the same FQDN and key are not
    coordinated.

    Collaborators:
        - SecretStore / CredentialResolver: credential lookup
        - IdentityClient: token issuance
        - DNSProvider (VkCloudDnsClient by default): zone and record calls
    """

    name = SOLVER_NAME

    def __init__(
        self,
        group_name: str,
        http_client: httpx.AsyncClient,
        *,
        secret_store: SecretStore | None = None,
        dns_api_url: str = DEFAULT_DNS_API_URL,
        dns_provider_factory: Callable[[str], DNSProvider] | None = None,
    ) -> None:
        """
        Initialises the solver.

        Args:
            group_name: API group this solver is registered under.
            http_client: Shared httpx.AsyncClient for identity and DNS calls.
            secret_store: Pre-built credential store; when None, initialize()
                must be called before the first challenge.
            dns_api_url: Base URL of the DNS API.
            dns_provider_factory: Builds a DNSProvider from a bearer token;
                defaults to VkCloudDnsClient against `dns_api_url`.
        """
        self.group_name = group_name
        self._identity = IdentityClient(http_client)
        self._resolver = CredentialResolver(secret_store) if secret_store is not None else None
        self._dns_provider_factory = dns_provider_factory or (
            lambda token: VkCloudDnsClient(http_client, token, base_url=dns_api_url)
        )

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    def initialize(self, kubeconfig_path: str = "") -> None:
        """
        Establishes access to the Kubernetes secret store.

        Raises:
            KubernetesError: If no cluster configuration can be loaded.
        """
        store = KubernetesSecretStore.from_cluster(kubeconfig_path)
        self._resolver = CredentialResolver(store)
        logger.info("Solver %s initialised for group %s", self.name, self.group_name)

    @property
    def initialized(self) -> bool:
        return self._resolver is not None

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def present(self, request: ChallengeRequest) -> None:
        """
        Ensures the challenge TXT record exists.

        Raises:
            ChallengeError: With the failing stage; the cause is chained.
            SolverNotInitialized: If no secret store is available.
        """
        logger.info("Presenting challenge for %s (zone %s)", request.resolved_fqdn, request.resolved_zone)
        provider, zone_id = await self._prepare(request)
        await _stage(
            "create TXT record",
            lambda: provider.create_txt_record(zone_id, request.resolved_fqdn, request.key),
        )

    async def clean_up(self, request: ChallengeRequest) -> None:
        """
        Ensures the challenge TXT record is absent.

        A record that is already gone counts as success. A malformed config is
        reported exactly as in present().

        Raises:
            ChallengeError: With the failing stage; the cause is chained.
            SolverNotInitialized: If no secret store is available.
        """
        logger.info("Cleaning up challenge for %s (zone %s)", request.resolved_fqdn, request.resolved_zone)
        provider, zone_id = await self._prepare(request)
        await _stage(
            "delete TXT record",
            lambda: provider.delete_txt_record(zone_id, request.resolved_fqdn, request.key),
        )

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _prepare(self, request: ChallengeRequest) -> tuple[DNSProvider, str]:
        """Runs the shared stages: config, credentials, token, zone."""
        if self._resolver is None:
            raise SolverNotInitialized("initialize() must be called before solving challenges")
        resolver = self._resolver

        try:
            cfg = load_solver_config(request.config)
        except SolverError as exc:
            raise ChallengeError("decode config", exc) from exc

        credential = await _stage(
            "resolve credentials",
            lambda: resolver.resolve(request.resource_namespace, cfg.secret_ref),
        )
        token = await _stage("authenticate", lambda: self._identity.authenticate(credential))

        provider = self._dns_provider_factory(token)
        zone_id = await _stage("find zone", lambda: provider.find_zone_id(request.resolved_zone))
        return provider, zone_id


async def _stage(stage: str, call: Callable[[], Awaitable[_T]]) -> _T:
    """Awaits one pipeline step, re-raising solver errors as ChallengeError."""
    try:
        return await call()
    except SolverError as exc:
        logger.error("Challenge stage '%s' failed: %s", stage, exc)
        raise ChallengeError(stage, exc) from exc
