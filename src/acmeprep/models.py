"""Pydantic models for ACME resources, configuration and certificate requests."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# ACME Protocol Enums (RFC 8555)
# =============================================================================


class ChallengeType(StrEnum):
    """Challenge types this library can solve (RFC 8555 Section 8)."""

    HTTP_01 = "http-01"
    DNS_01 = "dns-01"


class OrderStatus(StrEnum):
    """Order statuses (RFC 8555 Section 7.1.6)."""

    PENDING = "pending"
    READY = "ready"
    PROCESSING = "processing"
    VALID = "valid"
    INVALID = "invalid"
    DEACTIVATED = "deactivated"
    REVOKED = "revoked"
    UNKNOWN = "unknown"


class AuthorizationStatus(StrEnum):
    """Authorization statuses (RFC 8555 Section 7.1.6)."""

    PENDING = "pending"
    PROCESSING = "processing"
    VALID = "valid"
    INVALID = "invalid"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"
    REVOKED = "revoked"
    UNKNOWN = "unknown"


class ChallengeStatus(StrEnum):
    """Challenge statuses (RFC 8555 Section 7.1.6)."""

    PENDING = "pending"
    PROCESSING = "processing"
    VALID = "valid"
    INVALID = "invalid"
    UNKNOWN = "unknown"


class ConditionStatus(StrEnum):
    """Value of a status condition on a certificate request."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


_E = TypeVar("_E", bound=StrEnum)


def _coerce_status(value: Any, enum_cls: type[_E]) -> _E:
    """Map a raw status onto ``enum_cls``, falling back to its UNKNOWN member."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls("unknown")


# =============================================================================
# ACME Resources
# =============================================================================


class Directory(BaseModel):
    """ACME directory resource (RFC 8555 Section 7.1.1)."""

    new_nonce: str = Field(alias="newNonce")
    new_account: str = Field(alias="newAccount")
    new_order: str = Field(alias="newOrder")
    meta: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}


class Identifier(BaseModel):
    """ACME identifier (RFC 8555 Section 7.1.3)."""

    type: str = "dns"
    value: str


class Challenge(BaseModel):
    """ACME challenge resource (RFC 8555 Section 7.5.1).

    ``type`` is a plain string: servers may offer challenge types this
    library does not solve, and those must survive parsing so selection
    can skip them.
    """

    type: str
    url: str
    status: ChallengeStatus = ChallengeStatus.PENDING
    token: str
    error: dict[str, Any] | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> ChallengeStatus:
        return _coerce_status(value, ChallengeStatus)


class Authorization(BaseModel):
    """ACME authorization resource (RFC 8555 Section 7.1.4)."""

    url: str | None = None
    status: AuthorizationStatus
    identifier: Identifier
    challenges: list[Challenge] = Field(default_factory=list)
    expires: datetime | None = None
    wildcard: bool | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> AuthorizationStatus:
        return _coerce_status(value, AuthorizationStatus)

    @property
    def domain(self) -> str:
        """The domain name this authorization proves control over."""
        return self.identifier.value


class Order(BaseModel):
    """ACME order resource (RFC 8555 Section 7.1.3)."""

    url: str | None = None
    status: OrderStatus
    identifiers: list[Identifier]
    authorizations: list[str] = Field(default_factory=list)
    finalize: str | None = None
    expires: datetime | None = None
    certificate: str | None = None
    error: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value: Any) -> OrderStatus:
        return _coerce_status(value, OrderStatus)

    @property
    def domains(self) -> list[str]:
        """Domain names the order is bound to."""
        return [identifier.value for identifier in self.identifiers]


# =============================================================================
# Issuer Configuration
# =============================================================================


class IssuerHttp01Config(BaseModel):
    """Enables HTTP-01 validation on the issuer."""


class IssuerDns01Config(BaseModel):
    """Enables DNS-01 validation on the issuer.

    ``providers`` maps a provider name, as referenced from a certificate's
    domain configuration, to provider-specific settings.
    """

    providers: dict[str, dict[str, Any]] = Field(default_factory=dict)


class IssuerConfig(BaseModel):
    """ACME issuer configuration."""

    server: str
    email: str | None = None
    http01: IssuerHttp01Config | None = None
    dns01: IssuerDns01Config | None = None

    @property
    def enabled_challenge_types(self) -> frozenset[ChallengeType]:
        """Challenge types provisioned on this issuer."""
        enabled = set()
        if self.http01 is not None:
            enabled.add(ChallengeType.HTTP_01)
        if self.dns01 is not None:
            enabled.add(ChallengeType.DNS_01)
        return frozenset(enabled)


# =============================================================================
# Certificate Request
# =============================================================================


class Http01Config(BaseModel):
    """HTTP-01 settings for a group of domains."""

    ingress: str | None = None
    ingress_class: str | None = Field(default=None, alias="ingressClass")

    model_config = {"populate_by_name": True}


class Dns01Config(BaseModel):
    """DNS-01 settings for a group of domains."""

    provider: str


class DomainConfig(BaseModel):
    """Challenge mechanisms enabled for a list of domains."""

    domains: list[str]
    http01: Http01Config | None = None
    dns01: Dns01Config | None = None

    @property
    def enabled_challenge_types(self) -> frozenset[ChallengeType]:
        """Challenge types requested for these domains."""
        enabled = set()
        if self.http01 is not None:
            enabled.add(ChallengeType.HTTP_01)
        if self.dns01 is not None:
            enabled.add(ChallengeType.DNS_01)
        return frozenset(enabled)


class AcmeCertificateConfig(BaseModel):
    """ACME validation configuration of a certificate request."""

    config: list[DomainConfig] = Field(default_factory=list)

    def config_for_domain(
        self, domain: str, challenge_type: ChallengeType | None = None
    ) -> DomainConfig | None:
        """Return the first configuration entry naming ``domain``.

        Args:
            domain: Domain to look up.
            challenge_type: If given, only entries enabling this type match.

        Returns:
            The matching entry, or None.
        """
        for entry in self.config:
            if domain not in entry.domains:
                continue
            if challenge_type is None or challenge_type in entry.enabled_challenge_types:
                return entry
        return None


class Condition(BaseModel):
    """Human-readable status condition on a certificate request."""

    type: str
    status: ConditionStatus
    reason: str
    message: str
    last_transition_time: datetime = Field(default_factory=lambda: datetime.now(UTC))


class CertificateStatus(BaseModel):
    """Mutable status of a certificate request."""

    order_url: str | None = None
    conditions: list[Condition] = Field(default_factory=list)


class CertificateRequest(BaseModel):
    """A request for a certificate covering one or more domains."""

    name: str
    namespace: str | None = None
    common_name: str | None = Field(default=None, alias="commonName")
    dns_names: list[str] = Field(default_factory=list, alias="dnsNames")
    acme: AcmeCertificateConfig | None = None
    status: CertificateStatus = Field(default_factory=CertificateStatus)

    model_config = {"populate_by_name": True}

    @property
    def domains(self) -> list[str]:
        """Requested domains: common name first, then DNS names, without repeats."""
        names = [self.common_name] if self.common_name else []
        names.extend(self.dns_names)
        return list(dict.fromkeys(names))

    def get_status_condition(self, type: str) -> Condition | None:
        """Return the condition of the given type, if set."""
        for condition in self.status.conditions:
            if condition.type == type:
                return condition
        return None

    def update_status_condition(
        self,
        type: str,
        status: ConditionStatus,
        reason: str,
        message: str,
    ) -> Condition:
        """Set the condition of the given type.

        The transition time is only moved when the condition's status
        actually changes.

        Returns:
            The condition now stored on the request.
        """
        new = Condition(type=type, status=status, reason=reason, message=message)
        for index, existing in enumerate(self.status.conditions):
            if existing.type != type:
                continue
            if existing.status == status:
                new.last_transition_time = existing.last_transition_time
            self.status.conditions[index] = new
            return new

        self.status.conditions.append(new)
        return new
