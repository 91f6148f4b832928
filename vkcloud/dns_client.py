"""
vkcloud/dns_client.py

Responsibility: Implements the DNSProvider protocol using the VK Cloud public
DNS REST API. All DNS API HTTP calls are concentrated here — no other file may
call the DNS API directly.
Does NOT: authenticate, read credentials, or decide when records are created.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from config import DEFAULT_DNS_API_URL
from exceptions import RecordCreateFailed, RecordDeleteFailed, TransportError, ZoneNotFound
from vkcloud.dns_provider import CHALLENGE_TTL, TxtRecord, Zone

logger = logging.getLogger(__name__)

_ZONES_TIMEOUT = 30.0
_CREATE_TIMEOUT = 30.0
_LIST_RECORDS_TIMEOUT = 10.0
_DELETE_TIMEOUT = 10.0


def _strip_dot(name: str) -> str:
    return name[:-1] if name.endswith(".") else name


def _require_id(value: Any) -> str:
    """Returns a provider uuid, rejecting null, empty and non-scalar values."""
    if isinstance(value, bool) or not isinstance(value, (str, int)) or value == "":
        raise ValueError(f"invalid uuid {value!r}")
    return str(value)


class VkCloudDnsClient:
    """
    Implements DNSProvider for the VK Cloud public DNS API (v2).

    Every request carries the X-Auth-Token header obtained from
    IdentityClient. The injected httpx.AsyncClient makes this class fully
    testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - DNSProvider: this class satisfies the protocol contract
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token: str,
        base_url: str = DEFAULT_DNS_API_URL,
    ) -> None:
        """
        Initialises the client for one authenticated session.

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            token: Bearer token from IdentityClient.authenticate().
            base_url: DNS API root; must end with "/".
        """
        self._client = http_client
        self._base_url = base_url
        self._headers = {"X-Auth-Token": token}

    # ---------------------------------------------------------------------------
    # Zones
    # ---------------------------------------------------------------------------

    async def list_zones(self) -> list[Zone]:
        """
        Returns every zone visible to the authenticated project.

        The API returns the whole list in one response; there is no paging.

        Raises:
            TransportError: If the request fails or the body is not a list of zones.
        """
        logger.debug("GET %s (zones)", self._base_url)
        response = await self._send("GET", self._base_url, timeout=_ZONES_TIMEOUT)
        self._raise_for_read(response, "fetch zones")

        data = self._decode(response, "zones")
        if not isinstance(data, list):
            raise TransportError("failed to parse zones response: expected a JSON array")
        try:
            return [Zone(id=_require_id(z["uuid"]), name=str(z["zone"])) for z in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise TransportError(f"failed to parse zones response: {exc!r}") from exc

    async def find_zone_id(self, zone: str) -> str:
        """
        Returns the uuid of the first zone whose name equals `zone`.

        One trailing dot is ignored on both sides; the comparison is
        otherwise exact and case-sensitive.

        Raises:
            ZoneNotFound: If no zone matches.
            TransportError: If the zone listing fails.
        """
        wanted = _strip_dot(zone)
        for candidate in await self.list_zones():
            if _strip_dot(candidate.name) == wanted:
                logger.info("Resolved zone %s to %s", zone, candidate.id)
                return candidate.id
        raise ZoneNotFound(f"zone not found for domain {zone}")

    # ---------------------------------------------------------------------------
    # TXT records
    # ---------------------------------------------------------------------------

    async def create_txt_record(self, zone_id: str, fqdn: str, value: str) -> None:
        """
        Creates a TXT record with TTL 60 under the given zone.

        There is no "already exists" handling; duplicates are left to the
        provider to accept or reject.

        Raises:
            RecordCreateFailed: If the API returns a non-2xx status.
            TransportError: If the request cannot be sent.
        """
        url = self._records_url(zone_id)
        payload: dict[str, Any] = {"name": fqdn, "content": value, "ttl": CHALLENGE_TTL}

        logger.debug("POST %s name=%s", url, fqdn)
        response = await self._send("POST", url, timeout=_CREATE_TIMEOUT, json=payload)
        if not response.is_success:
            raise RecordCreateFailed(response.status_code, response.text)

        logger.info("Created TXT record %s in zone %s", fqdn, zone_id)

    async def list_txt_records(self, zone_id: str) -> list[TxtRecord]:
        """
        Returns all TXT records in the zone, in the order the API lists them.

        Raises:
            TransportError: If the request fails or the body cannot be decoded.
        """
        url = self._records_url(zone_id)

        logger.debug("GET %s (txt records)", url)
        response = await self._send("GET", url, timeout=_LIST_RECORDS_TIMEOUT)
        self._raise_for_read(response, "list TXT records")

        data = self._decode(response, "TXT records")
        if not isinstance(data, dict):
            raise TransportError("failed to parse TXT records: expected a JSON object")
        try:
            return [self._parse_record(r) for r in data.get("txt_records") or []]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise TransportError(f"failed to parse TXT records: {exc!r}") from exc

    async def delete_txt_record(self, zone_id: str, fqdn: str, value: str) -> None:
        """
        Deletes the first TXT record whose name and content equal (fqdn, value).

        Other records, including further exact duplicates, are left in place.
        No match is not an error; a 404 on the delete itself is treated the
        same way.

        Raises:
            TransportError: If listing fails or the delete cannot be sent.
            RecordDeleteFailed: If the API rejects the delete.
        """
        records = await self.list_txt_records(zone_id)
        match = next((r for r in records if r.name == fqdn and r.content == value), None)
        if match is None:
            logger.warning("No TXT record %s with the expected value in zone %s", fqdn, zone_id)
            return

        url = f"{self._records_url(zone_id)}{match.id}"
        logger.debug("DELETE %s", url)
        response = await self._send("DELETE", url, timeout=_DELETE_TIMEOUT)

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.warning("TXT record %s disappeared before it could be deleted", match.id)
            return
        if not response.is_success:
            raise RecordDeleteFailed(response.status_code, response.text)

        logger.info("Deleted TXT record %s (%s) from zone %s", fqdn, match.id, zone_id)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _records_url(self, zone_id: str) -> str:
        return f"{self._base_url}{zone_id}/txt/"

    async def _send(
        self,
        method: str,
        url: str,
        *,
        timeout: float,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Sends an authenticated request and returns the raw response.

        Status codes are not inspected here; callers decide what counts as
        failure.

        Raises:
            TransportError: On connection errors, timeouts, invalid URLs or
                header values (e.g. a token) that cannot be encoded.
        """
        try:
            return await self._client.request(
                method, url, headers=self._headers, json=json, timeout=timeout
            )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise TransportError(f"network error calling DNS API ({method} {url}): {exc}") from exc
        except UnicodeEncodeError as exc:
            # httpx encodes header values as ASCII
            raise TransportError(f"cannot send DNS API request ({method} {url}): {exc}") from exc

    @staticmethod
    def _raise_for_read(response: httpx.Response, action: str) -> None:
        if not response.is_success:
            raise TransportError(
                f"failed to {action}: status {response.status_code}: {response.text}"
            )

    @staticmethod
    def _decode(response: httpx.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(f"failed to parse {what} response: {exc}") from exc

    @staticmethod
    def _parse_record(raw: dict[str, Any]) -> TxtRecord:
        """Converts a raw API record dict into a typed TxtRecord."""
        ttl = raw.get("ttl")
        return TxtRecord(
            id=_require_id(raw["uuid"]),
            name=raw["name"],
            content=raw["content"],
            ttl=int(ttl) if ttl is not None else None,
        )
