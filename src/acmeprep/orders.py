"""Reusing or recreating the order behind a certificate request."""

from acmeprep._logging import get_logger, log_extra
from acmeprep.context import PrepareContext
from acmeprep.exceptions import OrderStatusError
from acmeprep.models import CertificateRequest, Order, OrderStatus

logger = get_logger(__name__)

STALE_ORDER_STATUSES = frozenset(
    {OrderStatus.DEACTIVATED, OrderStatus.INVALID, OrderStatus.REVOKED}
)
REUSABLE_ORDER_STATUSES = frozenset(
    {OrderStatus.VALID, OrderStatus.READY, OrderStatus.PENDING, OrderStatus.PROCESSING}
)


def order_is_valid_for_certificate(order: Order, certificate: CertificateRequest) -> bool:
    """Check that the order covers exactly the certificate's requested domains."""
    return set(order.domains) == set(certificate.domains)


def create_order(ctx: PrepareContext, certificate: CertificateRequest) -> Order:
    """Create an order for the certificate's domains and remember its URL."""
    ctx.checkpoint()
    order = ctx.client.create_order(certificate.domains)
    certificate.status.order_url = order.url
    logger.info("Created new order", extra=log_extra(order_url=order.url))
    return order


def get_or_create_order(ctx: PrepareContext, certificate: CertificateRequest) -> Order:
    """Return the order to drive validation with.

    - no stored order URL: a new order is created
    - stored order bound to other domains, or in a stale status
      (deactivated, invalid, revoked): a new order is created
    - stored order pending, processing, ready or valid: it is reused

    Errors looking up the stored order are raised unchanged; the order is
    not recreated in that case.

    Raises:
        OrderStatusError: If the stored order is in any other status.
    """
    order_url = certificate.status.order_url
    if not order_url:
        logger.info("Existing order URL not set, creating new order", extra=log_extra())
        return create_order(ctx, certificate)

    logger.debug("Requesting existing order", extra=log_extra(order_url=order_url))
    ctx.checkpoint()
    order = ctx.client.get_order(order_url)
    if order.url is None:
        order = order.model_copy(update={"url": order_url})

    if not order_is_valid_for_certificate(order, certificate):
        logger.info(
            "Existing order does not match requested domains, creating new order",
            extra=log_extra(order_url=order_url, order_domains=order.domains),
        )
        return create_order(ctx, certificate)

    if order.status in STALE_ORDER_STATUSES:
        logger.info(
            "Existing order is stale, creating new order",
            extra=log_extra(order_url=order_url, status=str(order.status)),
        )
        return create_order(ctx, certificate)

    if order.status in REUSABLE_ORDER_STATUSES:
        logger.info(
            "Reusing existing order",
            extra=log_extra(order_url=order_url, status=str(order.status)),
        )
        return order

    raise OrderStatusError(order.url, str(order.status))
