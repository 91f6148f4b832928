"""
vkcloud/dns_provider.py

Responsibility: Defines the DNSProvider Protocol and the Zone / TxtRecord
value objects used by the challenge workflow.
Does NOT: make HTTP calls, read credentials, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# Fixed TTL for challenge records; validation happens within minutes.
CHALLENGE_TTL = 60


# ---------------------------------------------------------------------------
# Value objects — stable shapes returned by all DNSProvider implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Zone:
    """A DNS zone visible to the authenticated project."""

    # Provider-assigned opaque identifier
    id: str

    # Zone name as reported by the provider, with or without a trailing dot
    name: str


@dataclass(frozen=True)
class TxtRecord:
    """
    Represents a single TXT record inside a zone.

    The provider only guarantees uuid, name and content in listings, so ttl
    is None when it was not reported.
    """

    id: str
    name: str
    content: str
    ttl: int | None = None


# ---------------------------------------------------------------------------
# Abstract interface — what ChallengeSolver needs from a DNS backend
# ---------------------------------------------------------------------------


@runtime_checkable
class DNSProvider(Protocol):
    """
    Abstract protocol for challenge-record management in one DNS account.

    Implementations are bound to a single bearer token; a fresh instance is
    created for every present/clean_up call.
    """

    async def find_zone_id(self, zone: str) -> str:
        """
        Resolves a zone name to the provider's zone identifier.

        Args:
            zone: Zone suffix, e.g. "example.com." (trailing dot optional).

        Returns:
            The opaque zone id.

        Raises:
            ZoneNotFound: If no visible zone has that name.
            TransportError: If the listing call fails.
        """
        ...

    async def create_txt_record(self, zone_id: str, fqdn: str, value: str) -> None:
        """
        Creates a TXT record with the fixed challenge TTL.

        Raises:
            RecordCreateFailed: If the provider answers with a non-2xx status.
            TransportError: If the request cannot be sent.
        """
        ...

    async def delete_txt_record(self, zone_id: str, fqdn: str, value: str) -> None:
        """
        Removes the first TXT record whose name and content match exactly.

        Succeeds silently when no record matches.

        Raises:
            TransportError: If listing or the delete request fails in transit.
            RecordDeleteFailed: If the provider rejects the delete.
        """
        ...
