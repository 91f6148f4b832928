"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class SolverError(Exception):
    """
    Base class for every error raised while fulfilling a DNS-01 challenge.

    Callers that only need to know "the challenge step failed" can catch this
    single type; the subclasses below identify which collaborator failed.
    """


class ConfigDecodeError(SolverError):
    """
    Raised when the per-challenge solver configuration is not valid JSON or
    its fields have the wrong shape.
    """


class CredentialNotFound(SolverError):
    """
    Raised by CredentialResolver when the referenced secret does not exist or
    the secret store cannot be reached.
    """


class AuthenticationFailed(SolverError):
    """
    Raised by IdentityClient when no bearer token could be obtained.

    Covers transport failures, timeouts and responses that lack the
    X-Subject-Token header, regardless of the HTTP status code.
    """


class ZoneNotFound(SolverError):
    """
    Raised by VkCloudDnsClient when no visible zone matches the requested name.
    """


class TransportError(SolverError):
    """
    Raised when a DNS API call fails at the network level, returns an error
    status for a read, or returns a body that cannot be decoded.
    """


class RecordCreateFailed(SolverError):
    """
    Raised when the DNS API answers a TXT record create with a non-2xx status.

    Attributes:
        status_code: The HTTP status returned by the provider.
        body: The raw response body, kept for diagnostics.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"create failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class RecordDeleteFailed(SolverError):
    """
    Raised when the DNS API rejects a TXT record delete with a non-2xx status
    other than 404.

    Attributes:
        status_code: The HTTP status returned by the provider.
        body: The raw response body, kept for diagnostics.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"delete failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class KubernetesError(SolverError):
    """
    Raised when no Kubernetes client configuration can be loaded, neither
    from an in-cluster service account nor from a kubeconfig file.
    """


class SolverNotInitialized(SolverError):
    """
    Raised when present() or clean_up() is called before initialize() has
    established access to the credential store.
    """


class ChallengeError(SolverError):
    """
    Raised by ChallengeSolver to report a failed pipeline stage to the caller.

    The message reads "failed to <stage>: <cause>" and the underlying error is
    chained as __cause__.

    Attributes:
        stage: Short name of the pipeline stage that failed, e.g. "authenticate".
    """

    def __init__(self, stage: str, cause: Exception) -> None:
        super().__init__(f"failed to {stage}: {cause}")
        self.stage = stage


class ConfigLoadError(Exception):
    """
    Raised by load_settings() when the process environment is missing a
    required setting or holds a value that cannot be parsed.
    """
