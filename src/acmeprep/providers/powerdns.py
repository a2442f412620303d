"""PowerDNS provider for ACME DNS-01 challenges."""

import threading
import time

import httpx

from acmeprep import cancellation
from acmeprep._logging import get_logger
from acmeprep.providers.base import DnsProvider, challenge_record_name

logger = get_logger(__name__)


class PowerDnsProvider(DnsProvider):
    """DNS provider for a PowerDNS authoritative server.

    Manages TXT records for ACME DNS-01 challenges via the PowerDNS HTTP
    API.

    Args:
        api_url: Base URL of the PowerDNS API (e.g., "http://localhost:8081").
        api_key: API key for X-API-Key authentication header.
        server_id: PowerDNS server ID (default: "localhost").
        timeout: HTTP request timeout in seconds (default: 30).
        poll_interval: Seconds between propagation checks (default: 2).
    """

    TTL = 60

    def __init__(
        self,
        api_url: str,
        api_key: str,
        server_id: str = "localhost",
        timeout: int = 30,
        poll_interval: float = 2,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.server_id = server_id
        self.timeout = timeout
        self.poll_interval = poll_interval

    @property
    def _headers(self) -> dict[str, str]:
        return {"X-API-Key": self.api_key}

    def _zone_url(self, zone: str) -> str:
        return f"{self.api_url}/api/v1/servers/{self.server_id}/zones/{zone}"

    def _find_zone(self, domain: str) -> str:
        """Find the most specific zone hosting the challenge record.

        Candidate zones are tried from the record's parent domain upwards
        until PowerDNS reports one as existing.

        Args:
            domain: The domain being validated.

        Returns:
            The zone name (with trailing dot).

        Raises:
            ValueError: If no matching zone is found.
        """
        parts = challenge_record_name(domain).rstrip(".").split(".")[1:]
        for i in range(len(parts)):
            candidate = ".".join(parts[i:]) + "."
            response = httpx.get(
                self._zone_url(candidate),
                headers=self._headers,
                params={"rrsets": "false"},
                timeout=self.timeout,
            )
            if response.status_code == 200:
                logger.debug("Zone found", extra={"domain": domain, "zone": candidate})
                return candidate

        raise ValueError(f"No zone found for domain: {domain}")

    def _raise_for_status(self, response: httpx.Response, zone: str) -> None:
        """Turn PowerDNS API errors into ValueError with a readable message."""
        if response.status_code in (200, 204):
            return

        try:
            detail = response.json().get("error", response.text)
        except ValueError:
            detail = response.text or "Unknown error"

        prefixes = {
            400: "Bad Request",
            404: "Zone not found",
            422: "Unprocessable Entity",
            500: "Server Error",
        }
        prefix = prefixes.get(response.status_code, f"Unexpected error ({response.status_code})")
        logger.error(
            "PowerDNS API error",
            extra={"zone": zone, "status_code": response.status_code, "detail": detail},
        )
        raise ValueError(f"{prefix}: {detail}")

    def _patch_rrset(self, domain: str, rrset: dict) -> None:
        zone = self._find_zone(domain)
        response = httpx.patch(
            self._zone_url(zone),
            headers=self._headers,
            json={"rrsets": [rrset]},
            timeout=self.timeout,
        )
        self._raise_for_status(response, zone)

    def create_txt_record(self, domain: str, value: str) -> None:
        """Create or replace the challenge TXT record.

        Raises:
            ValueError: If no matching zone is found or API error.
        """
        name = challenge_record_name(domain)
        self._patch_rrset(
            domain,
            {
                "name": name,
                "type": "TXT",
                "changetype": "REPLACE",
                "ttl": self.TTL,
                "records": [{"content": f'"{value}"', "disabled": False}],
            },
        )
        logger.info("TXT record created", extra={"domain": domain, "record_name": name})

    def delete_txt_record(self, domain: str, value: str) -> None:
        """Delete the challenge TXT record.

        PowerDNS accepts DELETE for an rrset that does not exist.

        Raises:
            ValueError: If no matching zone is found or API error.
        """
        name = challenge_record_name(domain)
        self._patch_rrset(domain, {"name": name, "type": "TXT", "changetype": "DELETE"})
        logger.info("TXT record deleted", extra={"domain": domain, "record_name": name})

    def has_txt_record(self, domain: str, value: str) -> bool:
        """Check whether the authoritative server holds the TXT value."""
        zone = self._find_zone(domain)
        response = httpx.get(self._zone_url(zone), headers=self._headers, timeout=self.timeout)
        self._raise_for_status(response, zone)

        name = challenge_record_name(domain)
        for rrset in response.json().get("rrsets", []):
            if rrset.get("name") != name or rrset.get("type") != "TXT":
                continue
            contents = [record.get("content", "").strip('"') for record in rrset.get("records", [])]
            if value in contents:
                return True
        return False

    def wait_for_propagation(
        self,
        domain: str,
        value: str,
        timeout: int = 120,
        cancel: threading.Event | None = None,
    ) -> bool:
        """Poll the PowerDNS API until the TXT value is served.

        Args:
            domain: The domain name.
            value: The expected record value.
            timeout: Maximum time to wait in seconds.
            cancel: Event that, once set, ends the wait.

        Returns:
            True once the record is present, False if ``timeout`` elapses.

        Raises:
            PrepareCancelled: If ``cancel`` is set while waiting.
        """
        deadline = time.monotonic() + timeout
        while True:
            cancellation.check_cancelled(cancel)
            if self.has_txt_record(domain, value):
                return True
            if time.monotonic() + self.poll_interval > deadline:
                logger.debug("TXT record not yet present", extra={"domain": domain})
                return False
            cancellation.sleep(self.poll_interval, cancel)
