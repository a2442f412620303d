"""Challenge selection and proof values."""

from acmeprep.challenges.keys import (
    compute_dns_txt_value,
    compute_key_authorization,
    key_for_challenge,
)
from acmeprep.challenges.selector import (
    challenge_for_authorization,
    dns01_provider_for,
    pick_challenge_type,
)

__all__ = [
    "challenge_for_authorization",
    "compute_dns_txt_value",
    "compute_key_authorization",
    "dns01_provider_for",
    "key_for_challenge",
    "pick_challenge_type",
]
