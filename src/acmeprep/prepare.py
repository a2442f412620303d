"""Preparation pass: drive a certificate request until its domains are authorized."""

import threading
from collections.abc import Callable

from acmeprep import status
from acmeprep._logging import Timer, certificate_context, get_logger, log_extra
from acmeprep.authorizations import (
    cleanup_authorizations,
    get_authorizations,
    partition_authorizations,
    solve_pending,
)
from acmeprep.client import AcmeClient
from acmeprep.context import PrepareContext
from acmeprep.exceptions import (
    AuthorizationFailedError,
    ConfigurationError,
    PrepareCancelled,
    PrepareError,
)
from acmeprep.models import CertificateRequest, Condition, IssuerConfig
from acmeprep.orders import get_or_create_order
from acmeprep.solvers.registry import SolverRegistry

logger = get_logger(__name__)


def _apply(certificate: CertificateRequest, condition: Condition) -> None:
    certificate.update_status_condition(
        condition.type, condition.status, condition.reason, condition.message
    )


class Preparer:
    """Makes a certificate request ready for issuance against one ACME issuer.

    Each call to :meth:`prepare` is one reconciliation pass. Passes are
    meant to be repeated by the caller until one returns without error,
    and each pass picks up from whatever state the previous one left on
    the server.

    At most one pass may run at a time for a given certificate request:
    a pass rewrites the request's order URL and status conditions and
    presents and cleans up challenges on its behalf. Callers must
    serialize passes per request.

    Args:
        issuer: Issuer configuration, deciding which challenge types are
            provisioned.
        solvers: Solvers for the provisioned challenge types.
        client_factory: Returns the ACME client to use for a pass.
    """

    def __init__(
        self,
        issuer: IssuerConfig,
        solvers: SolverRegistry,
        client_factory: Callable[[], AcmeClient],
    ):
        self.issuer = issuer
        self.solvers = solvers
        self.client_factory = client_factory

        unsolved = issuer.enabled_challenge_types - solvers.challenge_types
        if unsolved:
            logger.warning(
                "Issuer enables challenge types with no registered solver",
                extra={"challenge_types": sorted(unsolved)},
            )

    def prepare(
        self,
        certificate: CertificateRequest,
        cancel: threading.Event | None = None,
    ) -> None:
        """Run one preparation pass for a certificate request.

        Returns without error once every domain of the request has a valid
        authorization.

        Args:
            certificate: The certificate request. Its status (order URL and
                Ready condition) is updated in place.
            cancel: Event that, once set, stops the pass at its next remote
                call or poll, including waits inside the client and solvers.

        Raises:
            SelfCheckPendingError: Some presented challenges are not yet
                observable; retry on the next pass.
            AuthorizationFailedError: Authorizations failed; the order was
                abandoned and the next pass starts a new one.
            PrepareCancelled: ``cancel`` was set.
            PrepareError: Other configuration or consistency failures.
            Exception: Errors from the ACME client or solvers, unchanged.
        """
        timer = Timer()
        with certificate_context(certificate.name, certificate.domains, certificate.namespace):
            try:
                with timer:
                    self._prepare(certificate, cancel)
            except PrepareError as e:
                logger.info(
                    "Preparation pass incomplete",
                    extra=log_extra(
                        error=str(e), retryable=e.retryable, duration_ms=timer.duration_ms
                    ),
                )
                raise
            logger.info(
                "All authorizations valid", extra=log_extra(duration_ms=timer.duration_ms)
            )

    def _prepare(self, certificate: CertificateRequest, cancel: threading.Event | None) -> None:
        if certificate.acme is None:
            _apply(certificate, status.missing_config_condition())
            raise ConfigurationError(status.MESSAGE_MISSING_CONFIG)

        logger.debug("Getting ACME client", extra=log_extra())
        try:
            client = self.client_factory()
        except Exception as e:
            _apply(certificate, status.account_error_condition(e))
            raise

        ctx = PrepareContext(client=client, issuer=self.issuer, solvers=self.solvers, cancel=cancel)

        # TODO: clean up challenges for domains removed from the request while
        # their authorization was in progress; the status needs to record the
        # presented challenges (domain, type, token, key, provider) for that.
        order = get_or_create_order(ctx, certificate)

        try:
            authorizations = get_authorizations(ctx, order.authorizations)
        except PrepareCancelled:
            raise
        except Exception as e:
            _apply(certificate, status.check_authorization_condition(e))
            raise

        failed, pending, valid = partition_authorizations(authorizations)
        logger.info(
            "Authorizations partitioned",
            extra=log_extra(failed=len(failed), pending=len(pending), valid=len(valid)),
        )
        cleanup_authorizations(ctx, certificate, failed + valid)

        if failed:
            failed_domains = [authorization.domain for authorization in failed]
            logger.warning(
                "Found failed authorizations, abandoning order",
                extra=log_extra(order_url=order.url, failed_domains=failed_domains),
            )
            cleanup_authorizations(ctx, certificate, pending)
            certificate.status.order_url = None
            _apply(certificate, status.failed_authorizations_condition(failed_domains))
            raise AuthorizationFailedError(failed_domains)

        if not pending:
            logger.info("No pending authorizations remaining", extra=log_extra())
            return

        solve_pending(ctx, certificate, pending)
