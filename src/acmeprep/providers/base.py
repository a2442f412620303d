"""Abstract base class for DNS providers."""

import threading
from abc import ABC, abstractmethod


def challenge_record_name(domain: str) -> str:
    """Return the fully qualified DNS-01 record name for a domain.

    Wildcard domains are validated at their base name.

    Args:
        domain: The domain name, optionally wildcarded or with a trailing dot.

    Returns:
        ``_acme-challenge.<domain>.``
    """
    domain = domain.rstrip(".")
    if domain.startswith("*."):
        domain = domain[2:]
    return f"_acme-challenge.{domain}."


class DnsProvider(ABC):
    """Abstract interface for DNS providers.

    DNS providers publish and remove the TXT records used for ACME DNS-01
    challenge validation. Both operations are called again on every
    preparation pass that needs them, so they must be safe to repeat:
    publishing an existing record or removing an absent one is not an error.
    """

    @abstractmethod
    def create_txt_record(self, domain: str, value: str) -> None:
        """Create a TXT record for ACME challenge.

        Creates a TXT record at _acme-challenge.{domain} with the
        provided value.

        Args:
            domain: The domain name (without _acme-challenge prefix).
            value: The DNS-01 record value.

        Raises:
            Exception: If record creation fails.
        """
        ...

    @abstractmethod
    def delete_txt_record(self, domain: str, value: str) -> None:
        """Delete a TXT record for ACME challenge.

        Args:
            domain: The domain name (without _acme-challenge prefix).
            value: The DNS-01 record value (for providers that need it).

        Raises:
            Exception: If record deletion fails.
        """
        ...

    @abstractmethod
    def wait_for_propagation(
        self,
        domain: str,
        value: str,
        timeout: int = 120,
        cancel: threading.Event | None = None,
    ) -> bool:
        """Wait until the TXT record is visible.

        Args:
            domain: The domain name.
            value: The expected record value.
            timeout: Maximum time to wait in seconds.
            cancel: Event that, once set, ends the wait with PrepareCancelled.

        Returns:
            True if the record is visible, False on timeout.
        """
        ...
