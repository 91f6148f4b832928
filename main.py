"""
main.py

Responsibility: Process entry point. Parses the command-line flags cert-manager
passes to webhook containers, merges them over the environment settings,
configures logging and serves the FastAPI app with uvicorn, over TLS when a
key pair is set.
Does NOT: build application objects (see app.py) or handle challenges.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from collections.abc import Mapping, Sequence

import uvicorn

from config import Settings, load_settings
from exceptions import ConfigLoadError

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cert-manager-webhook-vkcloud")
    parser.add_argument("--tls-cert-file", default="", help="Path to the TLS certificate file")
    parser.add_argument(
        "--tls-private-key-file", default="", help="Path to the TLS private key file"
    )
    return parser.parse_args(argv)


def build_settings(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Loads Settings from the environment, then applies command-line overrides.

    Flags win over TLS_CERT_FILE / TLS_PRIVATE_KEY_FILE when given.

    Raises:
        ConfigLoadError: If the environment settings are invalid.
    """
    args = parse_args(argv)
    settings = load_settings(environ)

    overrides = {}
    if args.tls_cert_file:
        overrides["tls_cert_file"] = args.tls_cert_file
    if args.tls_private_key_file:
        overrides["tls_private_key_file"] = args.tls_private_key_file
    return dataclasses.replace(settings, **overrides)


def main(argv: Sequence[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)

    try:
        settings = build_settings(argv)
    except ConfigLoadError as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    logging.getLogger().setLevel(settings.log_level)

    tls_args: dict[str, str] = {}
    if settings.tls_enabled:
        tls_args = {
            "ssl_certfile": settings.tls_cert_file,
            "ssl_keyfile": settings.tls_private_key_file,
        }
    else:
        logger.warning("No TLS certificate/key configured; serving plain HTTP")

    uvicorn.run(
        "app:app",
        host=settings.listen_host,
        port=settings.listen_port,
        log_config=None,
        **tls_args,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
