"""
models.py

Responsibility: Defines the value objects exchanged between cert-manager and
the solver (challenge request, solver configuration, credentials) and decodes
the opaque per-challenge configuration payload.
Does NOT: perform I/O, call the DNS API, or read Kubernetes secrets.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from exceptions import ConfigDecodeError

# ---------------------------------------------------------------------------
# Solver configuration (the "config" block of an Issuer's webhook solver)
# ---------------------------------------------------------------------------


class SecretReference(BaseModel):
    """Names the Kubernetes Secret holding the VK Cloud credentials."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    # Informational only: secrets are always read from the challenge's
    # resource namespace.
    namespace: str = ""


class SolverConfig(BaseModel):
    """
    Per-challenge solver configuration decoded from the Issuer spec.

    Example Issuer snippet::

        webhook:
          groupName: acme.example.com
          solverName: cert-manager-webhook-vkcloud
          config:
            secretRef:
              name: vkcloud-credentials
            domain: example.com
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    secret_ref: SecretReference = Field(default_factory=SecretReference, alias="secretRef")
    domain: str = ""

    @field_validator("secret_ref", mode="before")
    @classmethod
    def _null_secret_ref(cls, value: Any) -> Any:
        # JSON null means "not set", same as an absent key
        return {} if value is None else value

    @field_validator("domain", mode="before")
    @classmethod
    def _null_domain(cls, value: Any) -> Any:
        return "" if value is None else value


def load_solver_config(raw: Mapping[str, Any] | str | bytes | None) -> SolverConfig:
    """
    Decodes the opaque config payload into a SolverConfig.

    An absent payload (None, empty text, or JSON null) yields the zero-value
    config rather than an error. Unknown keys are ignored.

    Args:
        raw: An already-parsed mapping, or JSON as text or bytes.

    Returns:
        The decoded SolverConfig.

    Raises:
        ConfigDecodeError: If the payload is not valid JSON, is not a JSON
            object, or holds fields of the wrong type.
    """
    if raw is None:
        return SolverConfig()

    data: Any = raw
    if isinstance(raw, (str, bytes, bytearray)):
        if not raw.strip():
            return SolverConfig()
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ConfigDecodeError(f"error decoding solver config: {exc}") from exc

    if data is None:
        return SolverConfig()
    if not isinstance(data, Mapping):
        raise ConfigDecodeError(
            f"error decoding solver config: expected a JSON object, got {type(data).__name__}"
        )

    try:
        return SolverConfig.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigDecodeError(f"error decoding solver config: {exc}") from exc


# ---------------------------------------------------------------------------
# Challenge request / ChallengePayload envelope
# ---------------------------------------------------------------------------


class ChallengeRequest(BaseModel):
    """
    A single DNS-01 challenge as handed over by cert-manager.

    Only resolved_fqdn, resolved_zone, key, resource_namespace and config are
    used by the solver; the remaining fields are carried for logging and for
    echoing the uid back in the response.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str = ""
    action: str = ""
    type: str = ""
    dns_name: str = Field("", alias="dnsName")
    key: str
    resource_namespace: str = Field("", alias="resourceNamespace")
    resolved_fqdn: str = Field(alias="resolvedFQDN")
    resolved_zone: str = Field(alias="resolvedZone")
    allow_ambient_credentials: bool = Field(False, alias="allowAmbientCredentials")
    config: Any = None


class ChallengeStatus(BaseModel):
    """Failure detail returned to cert-manager, shaped like a metav1.Status."""

    message: str
    reason: str = ""
    code: int = 0


class ChallengeResponse(BaseModel):
    uid: str = ""
    success: bool
    status: ChallengeStatus | None = None


class ChallengePayload(BaseModel):
    """The acme.cert-manager.io/v1alpha1 ChallengePayload envelope."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field("acme.cert-manager.io/v1alpha1", alias="apiVersion")
    kind: str = "ChallengePayload"
    request: ChallengeRequest | None = None
    response: ChallengeResponse | None = None


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Credential:
    """
    OpenStack-style password credentials for the VK Cloud identity service.

    The password is excluded from repr() so a stray log line or traceback
    never prints it.
    """

    auth_url: str
    username: str
    password: str = field(repr=False)
    project_id: str
    domain_name: str
