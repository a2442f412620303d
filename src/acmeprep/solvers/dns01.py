"""DNS-01 solver publishing TXT records through DNS providers."""

import threading
from collections.abc import Mapping

from acmeprep._logging import get_logger
from acmeprep.exceptions import ConfigurationError
from acmeprep.models import CertificateRequest, ChallengeType
from acmeprep.providers.base import DnsProvider
from acmeprep.solvers.base import Solver

logger = get_logger(__name__)


class Dns01Solver(Solver):
    """Solve DNS-01 challenges with the provider named by the certificate.

    Each domain configuration entry enabling DNS-01 names a provider; the
    name is looked up in ``providers``.

    Args:
        providers: DNS providers keyed by name.
        check_timeout: Seconds the self-check waits for the record to appear.
    """

    challenge_type = ChallengeType.DNS_01

    def __init__(self, providers: Mapping[str, DnsProvider], check_timeout: int = 10):
        self.providers = dict(providers)
        self.check_timeout = check_timeout
        # (domain, key) -> provider, for self-checks after present()
        self._presented: dict[tuple[str, str], DnsProvider] = {}

    def _provider_for(self, certificate: CertificateRequest, domain: str) -> DnsProvider:
        entry = None
        if certificate.acme is not None:
            entry = certificate.acme.config_for_domain(domain, self.challenge_type)
        if entry is None or entry.dns01 is None:
            raise ConfigurationError(f"no dns-01 configuration for domain '{domain}'")
        try:
            return self.providers[entry.dns01.provider]
        except KeyError:
            raise ConfigurationError(
                f"dns-01 provider '{entry.dns01.provider}' for domain '{domain}' is not configured"
            ) from None

    def present(self, certificate: CertificateRequest, domain: str, token: str, key: str) -> None:
        provider = self._provider_for(certificate, domain)
        provider.create_txt_record(domain, key)
        self._presented[(domain, key)] = provider

    def check(
        self, domain: str, token: str, key: str, cancel: threading.Event | None = None
    ) -> bool:
        provider = self._presented.get((domain, key))
        if provider is None:
            logger.debug("Self-check for record that was not presented", extra={"domain": domain})
            return False
        return provider.wait_for_propagation(domain, key, timeout=self.check_timeout, cancel=cancel)

    def cleanup(self, certificate: CertificateRequest, domain: str, token: str, key: str) -> None:
        provider = self._provider_for(certificate, domain)
        provider.delete_txt_record(domain, key)
        self._presented.pop((domain, key), None)
