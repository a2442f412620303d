"""DNS providers for ACME DNS-01 challenges."""

from acmeprep.providers.base import DnsProvider, challenge_record_name
from acmeprep.providers.pebble import PebbleProvider
from acmeprep.providers.powerdns import PowerDnsProvider

__all__ = ["DnsProvider", "PebbleProvider", "PowerDnsProvider", "challenge_record_name"]
