"""Exceptions raised while preparing certificate authorizations."""

from typing import Any


class AcmeError(Exception):
    """Error returned by the ACME server.

    Represents errors returned by the ACME server in the standard
    problem document format (RFC 7807). Raised by the HTTP client
    adapter and propagated unchanged through the preparation pass.
    """

    def __init__(
        self,
        type: str,
        detail: str,
        status_code: int,
        subproblems: list[dict[str, Any]] | None = None,
    ):
        self.type = type
        self.detail = detail
        self.status_code = status_code
        self.subproblems = subproblems
        super().__init__(f"{type}: {detail}")

    @classmethod
    def from_response(cls, data: dict[str, Any], status_code: int) -> "AcmeError":
        """Create an AcmeError from a problem document.

        Routes to the appropriate subclass based on error type.

        Args:
            data: Parsed JSON error response.
            status_code: HTTP status code.

        Returns:
            AcmeError instance (or appropriate subclass).
        """
        error_type = data.get("type", "unknown")
        kwargs: dict[str, Any] = {
            "type": error_type,
            "detail": data.get("detail", "Unknown error"),
            "status_code": status_code,
            "subproblems": data.get("subproblems"),
        }

        if error_type == "urn:ietf:params:acme:error:badNonce":
            return BadNonceError(**kwargs)
        elif error_type == "urn:ietf:params:acme:error:rateLimited":
            return RateLimitError(**kwargs)

        return cls(**kwargs)


class BadNonceError(AcmeError):
    """Bad nonce error (urn:ietf:params:acme:error:badNonce)."""

    pass


class RateLimitError(AcmeError):
    """Rate limit exceeded (urn:ietf:params:acme:error:rateLimited)."""

    pass


class PrepareError(Exception):
    """Base exception for failures of a preparation pass.

    ``retryable`` tells the reconciliation loop whether simply waiting for
    the next pass is expected to help.
    """

    retryable = False


class ConfigurationError(PrepareError):
    """The certificate or issuer configuration cannot be satisfied."""

    pass


class ChallengeSelectionError(ConfigurationError):
    """No challenge type is enabled for a domain on both certificate and issuer."""

    pass


class ChallengeNotOfferedError(ConfigurationError):
    """The selected challenge type is missing from the authorization's offer."""

    def __init__(self, challenge_type: str):
        self.challenge_type = challenge_type
        super().__init__(f"challenge mechanism '{challenge_type}' not allowed for domain")


class UnsupportedChallengeTypeError(ConfigurationError):
    """Challenge type outside the set of types this library can solve."""

    def __init__(self, challenge_type: str):
        self.challenge_type = challenge_type
        super().__init__(f"unsupported challenge type {challenge_type}")


class SolverNotFoundError(ConfigurationError):
    """No solver is registered for a supported challenge type."""

    def __init__(self, challenge_type: str):
        self.challenge_type = challenge_type
        super().__init__(f"no solver registered for challenge type {challenge_type}")


class OrderStatusError(PrepareError):
    """An existing order reported a status with no recovery policy."""

    def __init__(self, url: str | None, status: str):
        self.url = url
        self.status = status
        super().__init__(f"order {url!r} unknown status: {status!r}")


class AuthorizationFailedError(PrepareError):
    """One or more authorizations of the order reached a failed state."""

    def __init__(self, domains: list[str]):
        self.domains = domains
        super().__init__(f"Error obtaining validations for domains {domains}")


class ChallengeRejectedError(PrepareError):
    """The server finished validating a challenge without marking it valid."""

    def __init__(self, domain: str, status: str):
        self.domain = domain
        self.status = status
        super().__init__(
            f"expected acme domain authorization status for {domain!r} to be valid, "
            f"but it is {status!r}"
        )


class SelfCheckPendingError(PrepareError):
    """Presented challenges are not yet observable for some domains."""

    retryable = True

    def __init__(self, domains: list[str]):
        self.domains = domains
        super().__init__(f"self check failed for domains: {domains}")


class PrepareCancelled(PrepareError):
    """The pass was cancelled before it could finish."""

    retryable = True
