"""Pytest fixtures and fakes for the acmeprep test suite."""

import logging
import logging.handlers
from collections.abc import Generator

import pytest

from acmeprep.client import AcmeClient
from acmeprep.models import (
    AcmeCertificateConfig,
    Authorization,
    CertificateRequest,
    Challenge,
    ChallengeType,
    DomainConfig,
    Dns01Config,
    Http01Config,
    Identifier,
    IssuerConfig,
    IssuerDns01Config,
    IssuerHttp01Config,
    Order,
)
from acmeprep.solvers.base import Solver
from acmeprep.solvers.registry import SolverRegistry


def make_authorization(
    domain: str,
    status: str = "pending",
    challenges: list[tuple[str, str]] | None = None,
    url: str | None = None,
) -> Authorization:
    """Build an authorization offering (type, token) challenges."""
    if challenges is None:
        challenges = [("http-01", f"token-{domain}")]
    return Authorization(
        url=url or f"https://acme.test/authz/{domain}",
        status=status,
        identifier=Identifier(value=domain),
        challenges=[
            Challenge(type=type_, token=token, url=f"https://acme.test/chall/{domain}/{type_}")
            for type_, token in challenges
        ],
    )


def make_certificate(
    domains: list[str],
    http01: bool = True,
    dns01_provider: str | None = None,
    order_url: str | None = None,
) -> CertificateRequest:
    """Build a certificate request with one configuration entry for all domains."""
    certificate = CertificateRequest(
        name="test-cert",
        common_name=domains[0],
        dns_names=domains,
        acme=AcmeCertificateConfig(
            config=[
                DomainConfig(
                    domains=domains,
                    http01=Http01Config() if http01 else None,
                    dns01=Dns01Config(provider=dns01_provider) if dns01_provider else None,
                )
            ]
        ),
    )
    certificate.status.order_url = order_url
    return certificate


class FakeAcmeClient(AcmeClient):
    """In-memory ACME server state with a log of every call made."""

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.authorizations: dict[str, Authorization] = {}
        # status the authorization settles on after accept, by URL
        self.settled_status: dict[str, str] = {}
        # authorizations attached to the next created order
        self.new_order_authorizations: list[Authorization] = []
        # exceptions to raise, keyed by method name
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, object]] = []
        self._next_order = 1
        self.wait_cancel = None

    def _call(self, name: str, arg: object) -> None:
        self.calls.append((name, arg))
        if name in self.errors:
            raise self.errors[name]

    def calls_to(self, name: str) -> list[object]:
        return [arg for call, arg in self.calls if call == name]

    def add_order(self, url: str, status: str, authorizations: list[Authorization]) -> Order:
        for authorization in authorizations:
            self.authorizations[authorization.url] = authorization
        order = Order(
            url=url,
            status=status,
            identifiers=[Identifier(value=a.domain) for a in authorizations],
            authorizations=[a.url for a in authorizations],
        )
        self.orders[url] = order
        return order

    def get_order(self, url: str) -> Order:
        self._call("get_order", url)
        return self.orders[url]

    def create_order(self, domains: list[str]) -> Order:
        self._call("create_order", list(domains))
        url = f"https://acme.test/order/new-{self._next_order}"
        self._next_order += 1
        authorizations = self.new_order_authorizations or [
            make_authorization(domain) for domain in domains
        ]
        return self.add_order(url, "pending", authorizations)

    def get_authorization(self, url: str) -> Authorization:
        self._call("get_authorization", url)
        return self.authorizations[url]

    def accept_challenge(self, challenge: Challenge) -> Challenge:
        self._call("accept_challenge", challenge.url)
        return challenge.model_copy(update={"status": "processing"})

    def wait_authorization(self, url: str, cancel=None) -> Authorization:
        self.wait_cancel = cancel
        self._call("wait_authorization", url)
        status = self.settled_status.get(url, "valid")
        return Authorization.model_validate(
            {**self.authorizations[url].model_dump(), "status": status}
        )

    def http01_challenge_response(self, token: str) -> str:
        return f"{token}.thumbprint"

    def dns01_challenge_record(self, token: str) -> str:
        return f"txt-{token}"


class RecordingSolver(Solver):
    """Solver that records calls and returns a configurable self-check result."""

    def __init__(self, challenge_type: ChallengeType, ready: bool | dict[str, bool] = True):
        self.challenge_type = challenge_type
        self.ready = ready
        self.presented: list[tuple[str, str, str]] = []
        self.checked: list[tuple[str, str, str]] = []
        self.cleaned: list[tuple[str, str, str]] = []
        self.present_error: Exception | None = None
        self.check_cancel = None

    def present(self, certificate, domain, token, key):
        if self.present_error is not None:
            raise self.present_error
        self.presented.append((domain, token, key))

    def check(self, domain, token, key, cancel=None):
        self.check_cancel = cancel
        self.checked.append((domain, token, key))
        if isinstance(self.ready, dict):
            return self.ready.get(domain, True)
        return self.ready

    def cleanup(self, certificate, domain, token, key):
        self.cleaned.append((domain, token, key))


@pytest.fixture
def issuer() -> IssuerConfig:
    """Issuer with both HTTP-01 and DNS-01 provisioned."""
    return IssuerConfig(
        server="https://acme.test/directory",
        http01=IssuerHttp01Config(),
        dns01=IssuerDns01Config(providers={"pdns": {}}),
    )


@pytest.fixture
def fake_client() -> FakeAcmeClient:
    return FakeAcmeClient()


@pytest.fixture
def http_solver() -> RecordingSolver:
    return RecordingSolver(ChallengeType.HTTP_01)


@pytest.fixture
def dns_solver() -> RecordingSolver:
    return RecordingSolver(ChallengeType.DNS_01)


@pytest.fixture
def solvers(http_solver: RecordingSolver, dns_solver: RecordingSolver) -> SolverRegistry:
    return SolverRegistry({ChallengeType.HTTP_01: http_solver, ChallengeType.DNS_01: dns_solver})


class LogCapture:
    """Helper class to capture and inspect log records."""

    def __init__(self, handler: logging.handlers.MemoryHandler) -> None:
        self._handler = handler

    @property
    def records(self) -> list[logging.LogRecord]:
        """Get all captured log records."""
        return self._handler.buffer

    def get_records(
        self, level: int | None = None, name: str | None = None
    ) -> list[logging.LogRecord]:
        """Get log records filtered by level and/or logger name prefix."""
        records = self.records
        if level is not None:
            records = [r for r in records if r.levelno == level]
        if name is not None:
            records = [r for r in records if r.name.startswith(name)]
        return records

    def get_messages(self, level: int | None = None, name: str | None = None) -> list[str]:
        """Get log messages filtered by level and/or logger name prefix."""
        return [r.getMessage() for r in self.get_records(level, name)]


@pytest.fixture
def log_capture() -> Generator[LogCapture]:
    """Capture logs from the acmeprep package during a test."""
    handler = logging.handlers.MemoryHandler(capacity=1000)
    handler.setLevel(logging.DEBUG)

    package_logger = logging.getLogger("acmeprep")
    original_level = package_logger.level
    package_logger.setLevel(logging.DEBUG)
    package_logger.addHandler(handler)

    try:
        yield LogCapture(handler)
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(original_level)
        handler.close()
