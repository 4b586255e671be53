"""
IP-geolocation client (ipapi.co).

One unauthenticated GET per lookup, no caching and no retries. Every failure
mode (transport, non-2xx, error body, missing/malformed field) is normalized to
`NetworkFailure` so the caller has a single thing to catch.
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from whereami.config.settings import Settings
from whereami.core.errors import NetworkFailure
from whereami.core.geo import Coordinate
from whereami.core.http import get_json
from whereami.domain.models import IpLookupPayload
from whereami.state.store import IPInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IpLookup:
    """A successful lookup: the resolved position plus address metadata."""

    position: Coordinate
    info: IPInfo


def is_public_address(address: str | None) -> bool:
    """True if `address` is a globally routable IP (worth querying directly)."""
    if not address:
        return False
    try:
        return ipaddress.ip_address(address.strip()).is_global
    except ValueError:
        return False


class IpLocationClient:
    """Resolves an IP address (or the caller's own) to a coordinate."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def lookup_url(self, address: str | None = None) -> str:
        """Return the endpoint to query for `address`.

        Loopback/private addresses are meaningless to the service, so those fall
        back to the caller-IP endpoint.
        """
        cfg = self._settings.acquisition.ip_lookup
        if cfg.use_client_address and is_public_address(address):
            return cfg.address_url.format(ip=str(address).strip())
        return cfg.url

    async def lookup(self, address: str | None = None) -> IpLookup:
        """Fetch and validate the lookup for `address`.

        Raises:
            NetworkFailure: On any request or payload problem.
        """
        url = self.lookup_url(address)
        logger.info("Fetching IP location from %s", url)
        try:
            data = await get_json(url, timeout_seconds=self._settings.app.http_timeout_seconds)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"request to {url} failed: {e}") from e
        except ValueError as e:
            raise NetworkFailure(f"response from {url} is not JSON: {e}") from e

        try:
            payload = IpLookupPayload.model_validate(data)
        except ValidationError as e:
            raise NetworkFailure(f"malformed response from {url}: {e}") from e

        return IpLookup(
            position=payload.to_coordinate(),
            info=IPInfo(address=payload.ip, organization=payload.org),
        )
