"""Pebble DNS provider for pebble-challtestsrv."""

import threading

import httpx

from acmeprep._logging import get_logger
from acmeprep.providers.base import DnsProvider, challenge_record_name

logger = get_logger(__name__)


class PebbleProvider(DnsProvider):
    """DNS provider for pebble-challtestsrv.

    Used when validating against the Pebble ACME test server, whose
    companion challenge test server answers the DNS queries Pebble makes.

    Args:
        challtestsrv_url: Base URL of the pebble-challtestsrv management API.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(self, challtestsrv_url: str, timeout: int = 10):
        self.challtestsrv_url = challtestsrv_url.rstrip("/")
        self.timeout = timeout

    def create_txt_record(self, domain: str, value: str) -> None:
        response = httpx.post(
            f"{self.challtestsrv_url}/set-txt",
            json={"host": challenge_record_name(domain), "value": value},
            timeout=self.timeout,
        )
        response.raise_for_status()
        logger.debug("TXT record set on challtestsrv", extra={"domain": domain})

    def delete_txt_record(self, domain: str, value: str) -> None:
        # clear-txt succeeds whether or not the record exists
        response = httpx.post(
            f"{self.challtestsrv_url}/clear-txt",
            json={"host": challenge_record_name(domain)},
            timeout=self.timeout,
        )
        response.raise_for_status()
        logger.debug("TXT record cleared on challtestsrv", extra={"domain": domain})

    def wait_for_propagation(
        self,
        domain: str,
        value: str,
        timeout: int = 120,
        cancel: threading.Event | None = None,
    ) -> bool:
        """challtestsrv serves records as soon as they are set.

        Returns:
            Always True.
        """
        return True
