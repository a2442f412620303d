"""Proof values for HTTP-01 and DNS-01 challenges."""

import base64
import hashlib
from typing import TYPE_CHECKING

from acmeprep.exceptions import UnsupportedChallengeTypeError
from acmeprep.models import Challenge, ChallengeType

if TYPE_CHECKING:
    from acmeprep.client import AcmeClient


def compute_key_authorization(token: str, thumbprint: str) -> str:
    """Compute the key authorization string.

    The key authorization is the token concatenated with the account
    key thumbprint, separated by a period. It is served verbatim as the
    HTTP-01 response body.

    Args:
        token: The challenge token from the ACME server.
        thumbprint: The base64url-encoded SHA-256 thumbprint of the account key.

    Returns:
        The key authorization string (token.thumbprint).
    """
    return f"{token}.{thumbprint}"


def compute_dns_txt_value(key_authorization: str) -> str:
    """Compute the DNS TXT record value for DNS-01 challenge.

    Args:
        key_authorization: The key authorization string.

    Returns:
        The base64url-encoded SHA-256 digest (without padding).
    """
    digest = hashlib.sha256(key_authorization.encode()).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode()


def key_for_challenge(client: "AcmeClient", challenge: Challenge) -> str:
    """Return the proof value to present for a challenge.

    Present, self-check and clean-up all derive the key through this
    function so an authorization uses one value throughout.

    Raises:
        UnsupportedChallengeTypeError: For types other than http-01 and dns-01.
    """
    if challenge.type == ChallengeType.HTTP_01:
        return client.http01_challenge_response(challenge.token)
    if challenge.type == ChallengeType.DNS_01:
        return client.dns01_challenge_record(challenge.token)
    raise UnsupportedChallengeTypeError(challenge.type)
