"""Driving the authorizations of an order through their challenges."""

from acmeprep._logging import get_logger, log_extra
from acmeprep.challenges.keys import key_for_challenge
from acmeprep.challenges.selector import challenge_for_authorization, dns01_provider_for
from acmeprep.context import PrepareContext
from acmeprep.exceptions import ChallengeRejectedError, SelfCheckPendingError
from acmeprep.models import (
    Authorization,
    AuthorizationStatus,
    CertificateRequest,
    Challenge,
    ChallengeType,
)
from acmeprep.solvers.base import Solver

logger = get_logger(__name__)

PENDING_STATUSES = frozenset({AuthorizationStatus.PENDING, AuthorizationStatus.PROCESSING})


def get_authorizations(ctx: PrepareContext, urls: list[str]) -> list[Authorization]:
    """Fetch authorizations in order, stopping at the first error."""
    authorizations = []
    for url in urls:
        ctx.checkpoint()
        authorization = ctx.client.get_authorization(url)
        if authorization.url is None:
            authorization = authorization.model_copy(update={"url": url})
        authorizations.append(authorization)
    return authorizations


def partition_authorizations(
    authorizations: list[Authorization],
) -> tuple[list[Authorization], list[Authorization], list[Authorization]]:
    """Split authorizations into failed, pending and valid.

    Pending and processing authorizations are pending, valid ones are
    valid, and every other status (including unknown) is failed. Input
    order is kept within each group.

    Returns:
        Tuple of (failed, pending, valid).
    """
    failed: list[Authorization] = []
    pending: list[Authorization] = []
    valid: list[Authorization] = []
    for authorization in authorizations:
        if authorization.status in PENDING_STATUSES:
            pending.append(authorization)
        elif authorization.status == AuthorizationStatus.VALID:
            valid.append(authorization)
        else:
            failed.append(authorization)
    return failed, pending, valid


def _resolve(
    ctx: PrepareContext,
    certificate: CertificateRequest,
    authorization: Authorization,
) -> tuple[Challenge, str, Solver]:
    """Select the challenge, derive its key and find its solver."""
    challenge = challenge_for_authorization(certificate, authorization, ctx.issuer)
    if challenge.type == ChallengeType.DNS_01:
        dns01_provider_for(certificate, authorization.domain, ctx.issuer)
    key = key_for_challenge(ctx.client, challenge)
    solver = ctx.solvers.solver_for(challenge.type)
    return challenge, key, solver


def present_authorization(
    ctx: PrepareContext,
    certificate: CertificateRequest,
    authorization: Authorization,
) -> tuple[bool, Challenge]:
    """Present the challenge for an authorization and self-check it.

    Presenting is safe to repeat on every pass.

    Returns:
        Tuple of (self-check passed, challenge presented).
    """
    domain = authorization.domain
    challenge, key, solver = _resolve(ctx, certificate, authorization)

    logger.info(
        "Presenting challenge",
        extra=log_extra(domain=domain, challenge_type=challenge.type),
    )
    ctx.checkpoint()
    solver.present(certificate, domain, challenge.token, key)

    logger.info("Performing self-check", extra=log_extra(domain=domain))
    ctx.checkpoint()
    return solver.check(domain, challenge.token, key, cancel=ctx.cancel), challenge


def accept_challenge(
    ctx: PrepareContext,
    authorization: Authorization,
    challenge: Challenge,
) -> Authorization:
    """Ask the server to validate a challenge and wait for the outcome.

    Raises:
        ChallengeRejectedError: If the authorization settles on anything
            other than valid.
    """
    domain = authorization.domain
    logger.info("Accepting challenge", extra=log_extra(domain=domain))
    ctx.checkpoint()
    ctx.client.accept_challenge(challenge)

    logger.info("Waiting for authorization", extra=log_extra(domain=domain))
    ctx.checkpoint()
    result = ctx.client.wait_authorization(authorization.url, cancel=ctx.cancel)
    if result.status != AuthorizationStatus.VALID:
        raise ChallengeRejectedError(result.domain, str(result.status))

    logger.info("Obtained authorization", extra=log_extra(domain=domain))
    return result


def cleanup_authorization(
    ctx: PrepareContext,
    certificate: CertificateRequest,
    authorization: Authorization,
) -> None:
    """Clean up the challenge for an authorization.

    The challenge and key are derived exactly as when presenting, so this
    works on any pass and whether or not present() ran.
    """
    domain = authorization.domain
    challenge, key, solver = _resolve(ctx, certificate, authorization)
    logger.info(
        "Cleaning up authorization",
        extra=log_extra(domain=domain, status=str(authorization.status)),
    )
    ctx.checkpoint()
    solver.cleanup(certificate, domain, challenge.token, key)


def cleanup_authorizations(
    ctx: PrepareContext,
    certificate: CertificateRequest,
    authorizations: list[Authorization],
) -> None:
    """Clean up each authorization in turn, stopping at the first error."""
    for authorization in authorizations:
        cleanup_authorization(ctx, certificate, authorization)


def solve_pending(
    ctx: PrepareContext,
    certificate: CertificateRequest,
    pending: list[Authorization],
) -> None:
    """Present, self-check and accept each pending authorization.

    Authorizations whose self-check fails are left presented and neither
    accepted nor cleaned up, so a later pass can check them again. Any
    other error stops the pass immediately.

    Raises:
        SelfCheckPendingError: Naming every domain whose self-check failed.
    """
    failing_self_checks: list[str] = []
    for authorization in pending:
        passed, challenge = present_authorization(ctx, certificate, authorization)
        if not passed:
            logger.info("Self-check failed", extra=log_extra(domain=authorization.domain))
            failing_self_checks.append(authorization.domain)
            continue

        logger.info("Self-check passed", extra=log_extra(domain=authorization.domain))
        accept_challenge(ctx, authorization, challenge)

    if failing_self_checks:
        raise SelfCheckPendingError(failing_self_checks)
