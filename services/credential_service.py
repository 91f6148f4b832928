"""
services/credential_service.py

Responsibility: Resolves a namespaced secret reference into VK Cloud
credentials. The secret backend is abstracted behind the SecretStore protocol;
KubernetesSecretStore is the production implementation.
Does NOT: authenticate, validate credential contents, or write secrets.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Protocol, runtime_checkable

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.exceptions import ApiException

from exceptions import CredentialNotFound, KubernetesError
from models import Credential, SecretReference

logger = logging.getLogger(__name__)

# Secret keys, mirroring the OS_* variables of an OpenStack RC file.
AUTH_URL_KEY = "os_auth_url"
USERNAME_KEY = "os_username"
PASSWORD_KEY = "os_password"
PROJECT_ID_KEY = "os_project_id"
DOMAIN_NAME_KEY = "os_domain_name"


# ---------------------------------------------------------------------------
# Secret store abstraction
# ---------------------------------------------------------------------------


@runtime_checkable
class SecretStore(Protocol):
    """Read-only access to namespaced key/value secrets."""

    async def get_secret_data(self, namespace: str, name: str) -> dict[str, bytes]:
        """
        Returns the raw key/value data of a secret.

        Raises:
            CredentialNotFound: If the secret is missing or the store is unreachable.
        """
        ...


class KubernetesSecretStore:
    """
    SecretStore backed by the Kubernetes CoreV1 API.

    Kubernetes API calls are blocking and are offloaded to a thread via
    asyncio.to_thread to keep the event loop unblocked.

    Collaborators:
        - kubernetes Python client: reads CoreV1 Secret resources
    """

    def __init__(self, core_api: k8s_client.CoreV1Api) -> None:
        self._api = core_api

    @classmethod
    def from_cluster(cls, kubeconfig_path: str = "") -> KubernetesSecretStore:
        """
        Builds a store from the ambient cluster configuration.

        The in-cluster service account is tried first, then the kubeconfig at
        `kubeconfig_path` (or the client's default location when empty).

        Raises:
            KubernetesError: If neither configuration source can be loaded.
        """
        try:
            k8s_config.load_incluster_config()
            logger.debug("Kubernetes: using in-cluster service account.")
        except k8s_config.ConfigException:
            try:
                k8s_config.load_kube_config(config_file=kubeconfig_path or None)
                logger.debug("Kubernetes: using kubeconfig %s.", kubeconfig_path or "(default)")
            except Exception as exc:
                # NOTE: load_kube_config raises ConfigException, OSError or yaml
                # errors depending on what is wrong with the file.
                raise KubernetesError(
                    f"Could not load cluster credentials: no in-cluster SA and "
                    f"no usable kubeconfig: {exc}"
                ) from exc
        return cls(k8s_client.CoreV1Api())

    async def get_secret_data(self, namespace: str, name: str) -> dict[str, bytes]:
        try:
            return await asyncio.to_thread(self._read_secret, namespace, name)
        except CredentialNotFound:
            raise
        except Exception as exc:
            # urllib3 connection errors surface here when the API server is down
            raise CredentialNotFound(f"failed to fetch secret {name!r}: {exc}") from exc

    def _read_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        """Synchronous read; returns base64-decoded secret data."""
        try:
            secret = self._api.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as exc:
            if exc.status == 404:
                raise CredentialNotFound(f"secret {namespace}/{name} not found") from exc
            raise CredentialNotFound(
                f"failed to fetch secret {name!r}: Kubernetes API error {exc.status}: {exc.reason}"
            ) from exc

        return {key: base64.b64decode(value) for key, value in (secret.data or {}).items()}


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class CredentialResolver:
    """
    Turns a secret reference into a Credential.

    Field contents are not validated: a missing key becomes an empty string
    and bad values surface later as authentication failures.

    Collaborators:
        - SecretStore: any backend satisfying the protocol
    """

    def __init__(self, store: SecretStore) -> None:
        self._store = store

    async def resolve(self, namespace: str, secret_ref: SecretReference) -> Credential:
        """
        Reads the referenced secret from `namespace` and builds a Credential.

        Args:
            namespace: Namespace of the challenge's issuing resource.
            secret_ref: Reference from the solver config; only `name` is used.

        Returns:
            The resolved Credential.

        Raises:
            CredentialNotFound: If no secret name is configured, the secret does
                not exist, or the store cannot be reached.
        """
        if not secret_ref.name:
            raise CredentialNotFound("no secretRef.name set in solver config")

        data = await self._store.get_secret_data(namespace, secret_ref.name)
        logger.debug("Loaded credentials from secret %s/%s", namespace, secret_ref.name)

        def field(key: str) -> str:
            return data.get(key, b"").decode("utf-8", errors="replace")

        return Credential(
            auth_url=field(AUTH_URL_KEY),
            username=field(USERNAME_KEY),
            password=field(PASSWORD_KEY),
            project_id=field(PROJECT_ID_KEY),
            domain_name=field(DOMAIN_NAME_KEY),
        )
