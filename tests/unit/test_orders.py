"""Unit tests for order reuse and recreation."""

import pytest
from conftest import FakeAcmeClient, make_authorization, make_certificate

from acmeprep.context import PrepareContext
from acmeprep.exceptions import OrderStatusError
from acmeprep.models import Identifier, Order
from acmeprep.orders import get_or_create_order, order_is_valid_for_certificate

ORDER_URL = "https://acme.test/order/1"


@pytest.fixture
def ctx(fake_client, issuer, solvers) -> PrepareContext:
    return PrepareContext(client=fake_client, issuer=issuer, solvers=solvers)


class TestOrderIsValidForCertificate:
    """Tests for matching an order's domains against a certificate."""

    def test_same_domains_any_order(self):
        order = Order(
            status="pending",
            identifiers=[Identifier(value="b.com"), Identifier(value="a.com")],
        )
        assert order_is_valid_for_certificate(order, make_certificate(["a.com", "b.com"]))

    def test_missing_domain(self):
        order = Order(status="pending", identifiers=[Identifier(value="a.com")])
        assert not order_is_valid_for_certificate(order, make_certificate(["a.com", "b.com"]))

    def test_extra_domain(self):
        order = Order(
            status="pending",
            identifiers=[Identifier(value="a.com"), Identifier(value="b.com")],
        )
        assert not order_is_valid_for_certificate(order, make_certificate(["a.com"]))


class TestGetOrCreateOrder:
    """Tests for get_or_create_order."""

    def test_no_order_url_creates(self, ctx: PrepareContext, fake_client: FakeAcmeClient):
        certificate = make_certificate(["a.com", "b.com"])

        order = get_or_create_order(ctx, certificate)

        assert fake_client.calls_to("get_order") == []
        assert fake_client.calls_to("create_order") == [["a.com", "b.com"]]
        assert certificate.status.order_url == order.url

    @pytest.mark.parametrize("status", ["valid", "ready", "pending", "processing"])
    def test_reusable_order_returned_unchanged(
        self, ctx: PrepareContext, fake_client: FakeAcmeClient, status: str
    ):
        existing = fake_client.add_order(ORDER_URL, status, [make_authorization("a.com")])
        certificate = make_certificate(["a.com"], order_url=ORDER_URL)

        order = get_or_create_order(ctx, certificate)

        assert order is existing
        assert fake_client.calls_to("create_order") == []
        assert certificate.status.order_url == ORDER_URL

    @pytest.mark.parametrize("status", ["invalid", "deactivated", "revoked"])
    def test_stale_order_replaced(
        self, ctx: PrepareContext, fake_client: FakeAcmeClient, status: str
    ):
        fake_client.add_order(ORDER_URL, status, [make_authorization("a.com")])
        certificate = make_certificate(["a.com"], order_url=ORDER_URL)

        order = get_or_create_order(ctx, certificate)

        assert fake_client.calls_to("create_order") == [["a.com"]]
        assert order.url != ORDER_URL
        assert certificate.status.order_url == order.url

    def test_domain_mismatch_replaced_even_if_valid(
        self, ctx: PrepareContext, fake_client: FakeAcmeClient
    ):
        """A healthy order for the wrong domains is never reused."""
        fake_client.add_order(ORDER_URL, "valid", [make_authorization("a.com")])
        certificate = make_certificate(["a.com", "new.com"], order_url=ORDER_URL)

        order = get_or_create_order(ctx, certificate)

        assert fake_client.calls_to("create_order") == [["a.com", "new.com"]]
        assert sorted(order.domains) == ["a.com", "new.com"]

    def test_unknown_status_is_error(self, ctx: PrepareContext, fake_client: FakeAcmeClient):
        fake_client.add_order(ORDER_URL, "something-new", [make_authorization("a.com")])
        certificate = make_certificate(["a.com"], order_url=ORDER_URL)

        with pytest.raises(OrderStatusError) as exc_info:
            get_or_create_order(ctx, certificate)

        assert exc_info.value.status == "unknown"
        assert fake_client.calls_to("create_order") == []

    def test_lookup_error_not_recovered(self, ctx: PrepareContext, fake_client: FakeAcmeClient):
        fake_client.errors["get_order"] = ConnectionError("boom")
        certificate = make_certificate(["a.com"], order_url=ORDER_URL)

        with pytest.raises(ConnectionError):
            get_or_create_order(ctx, certificate)

        assert fake_client.calls_to("create_order") == []
