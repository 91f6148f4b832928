"""
config.py

Responsibility: Loads process-level settings from environment variables into
an immutable Settings object that is passed explicitly to the application.
Does NOT: read per-challenge solver configuration, touch Kubernetes, or make
HTTP calls.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from exceptions import ConfigLoadError

DEFAULT_DNS_API_URL = "https://mcs.mail.ru/public-dns/v2/dns/"


@dataclass(frozen=True)
class Settings:
    """
    Process configuration, read once at startup.

    Attributes:
        group_name: API group the solver registers for with cert-manager.
        tls_cert_file: Path to the serving certificate, or "" when unset.
        tls_private_key_file: Path to the serving key, or "" when unset.
        dns_api_url: Base URL of the VK Cloud public DNS API; ends with "/".
        kubeconfig_path: Kubeconfig used when no in-cluster service account exists.
        log_level: Name of the root log level, e.g. "INFO".
        listen_host: Address the HTTP server binds to.
        listen_port: Port the HTTP server binds to.
    """

    group_name: str
    tls_cert_file: str = ""
    tls_private_key_file: str = ""
    dns_api_url: str = DEFAULT_DNS_API_URL
    kubeconfig_path: str = ""
    log_level: str = "INFO"
    listen_host: str = "0.0.0.0"
    listen_port: int = 443

    @property
    def tls_enabled(self) -> bool:
        """True when both halves of the serving key pair are configured."""
        return bool(self.tls_cert_file and self.tls_private_key_file)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Builds Settings from the given mapping (defaults to os.environ).

    Args:
        environ: Source of variables; tests pass a plain dict.

    Returns:
        A populated Settings instance.

    Raises:
        ConfigLoadError: If GROUP_NAME is empty or LISTEN_PORT is not a valid port.
    """
    env = os.environ if environ is None else environ

    group_name = env.get("GROUP_NAME", "").strip()
    if not group_name:
        raise ConfigLoadError("GROUP_NAME must be specified")

    raw_port = env.get("LISTEN_PORT", "443").strip()
    try:
        listen_port = int(raw_port)
    except ValueError as exc:
        raise ConfigLoadError(f"LISTEN_PORT must be an integer, got {raw_port!r}") from exc
    if not 0 < listen_port < 65536:
        raise ConfigLoadError(f"LISTEN_PORT out of range: {listen_port}")

    dns_api_url = env.get("VKCLOUD_DNS_API_URL", "").strip() or DEFAULT_DNS_API_URL
    if not dns_api_url.endswith("/"):
        dns_api_url += "/"

    return Settings(
        group_name=group_name,
        tls_cert_file=env.get("TLS_CERT_FILE", "").strip(),
        tls_private_key_file=env.get("TLS_PRIVATE_KEY_FILE", "").strip(),
        dns_api_url=dns_api_url,
        kubeconfig_path=env.get("KUBECONFIG", "").strip(),
        log_level=env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        listen_host=env.get("LISTEN_HOST", "0.0.0.0").strip() or "0.0.0.0",
        listen_port=listen_port,
    )
