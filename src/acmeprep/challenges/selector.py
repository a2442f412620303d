"""Choosing which offered challenge to solve for an authorization."""

from acmeprep._logging import get_logger, log_extra
from acmeprep.exceptions import (
    ChallengeNotOfferedError,
    ChallengeSelectionError,
    ConfigurationError,
)
from acmeprep.models import (
    Authorization,
    CertificateRequest,
    Challenge,
    ChallengeType,
    DomainConfig,
    IssuerConfig,
)

logger = get_logger(__name__)


def pick_challenge_type(
    domain: str,
    authorization: Authorization,
    domain_configs: list[DomainConfig],
    issuer: IssuerConfig,
) -> ChallengeType:
    """Select the challenge type to use for a domain.

    Configuration entries are visited in declared order. For each entry
    naming the domain, the authorization's challenges are visited in the
    order the server offered them, and the first one enabled both on the
    entry and on the issuer is chosen.

    Args:
        domain: The domain being validated.
        authorization: The authorization offering challenges for ``domain``.
        domain_configs: The certificate's per-domain configuration entries.
        issuer: The issuer configuration.

    Returns:
        The selected challenge type.

    Raises:
        ChallengeSelectionError: If no entry names the domain, or no offered
            challenge is enabled on both levels.
    """
    issuer_enabled = issuer.enabled_challenge_types
    for entry in domain_configs:
        if domain not in entry.domains:
            continue
        enabled = entry.enabled_challenge_types & issuer_enabled
        for challenge in authorization.challenges:
            if challenge.type in enabled:
                return ChallengeType(challenge.type)

    raise ChallengeSelectionError("no configured and supported challenge type found")


def challenge_for_authorization(
    certificate: CertificateRequest,
    authorization: Authorization,
    issuer: IssuerConfig,
) -> Challenge:
    """Return the challenge of ``authorization`` that should be solved.

    Raises:
        ChallengeSelectionError: If no challenge type can be selected.
        ChallengeNotOfferedError: If the selected type is not among the
            authorization's challenges.
    """
    domain = authorization.domain
    domain_configs = certificate.acme.config if certificate.acme is not None else []

    logger.debug("Picking challenge type", extra=log_extra(domain=domain))
    try:
        challenge_type = pick_challenge_type(domain, authorization, domain_configs, issuer)
    except ChallengeSelectionError as e:
        raise ChallengeSelectionError(
            f"error picking challenge type to use for domain '{domain}': {e}"
        ) from e

    for challenge in authorization.challenges:
        if challenge.type == challenge_type:
            logger.debug(
                "Picked challenge type",
                extra=log_extra(domain=domain, challenge_type=str(challenge_type)),
            )
            return challenge

    raise ChallengeNotOfferedError(challenge_type)


def dns01_provider_for(
    certificate: CertificateRequest,
    domain: str,
    issuer: IssuerConfig,
) -> str:
    """Return the DNS-01 provider name configured for ``domain``.

    The name comes from the certificate's configuration and must also be
    provisioned on the issuer.

    Raises:
        ConfigurationError: If the domain has no DNS-01 configuration, or
            the issuer does not provide the named provider.
    """
    entry = None
    if certificate.acme is not None:
        entry = certificate.acme.config_for_domain(domain, ChallengeType.DNS_01)
    if entry is None or entry.dns01 is None:
        raise ConfigurationError(f"no dns-01 configuration for domain '{domain}'")

    provider = entry.dns01.provider
    if issuer.dns01 is None or provider not in issuer.dns01.providers:
        raise ConfigurationError(
            f"dns-01 provider '{provider}' for domain '{domain}' is not configured on the issuer"
        )
    return provider
