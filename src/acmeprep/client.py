"""ACME protocol client interface and its HTTP implementation."""

import json
import threading
from abc import ABC, abstractmethod

import httpx

from acmeprep import cancellation
from acmeprep._logging import Timer, get_logger
from acmeprep.challenges.keys import compute_dns_txt_value, compute_key_authorization
from acmeprep.crypto import PrivateKey, key_thumbprint, sign_jws
from acmeprep.exceptions import AcmeError, BadNonceError
from acmeprep.models import Authorization, AuthorizationStatus, Challenge, Directory, Order

logger = get_logger(__name__)


class AcmeClient(ABC):
    """Operations the preparation pass needs from an ACME server.

    Errors raised by implementations are propagated unchanged by the
    callers in this library.
    """

    @abstractmethod
    def get_order(self, url: str) -> Order:
        """Fetch an existing order by URL."""
        ...

    @abstractmethod
    def create_order(self, domains: list[str]) -> Order:
        """Create a new order for the given domains.

        The returned order must carry its URL.
        """
        ...

    @abstractmethod
    def get_authorization(self, url: str) -> Authorization:
        """Fetch an authorization by URL."""
        ...

    @abstractmethod
    def accept_challenge(self, challenge: Challenge) -> Challenge:
        """Tell the server the challenge is ready to be validated."""
        ...

    @abstractmethod
    def wait_authorization(
        self, url: str, cancel: threading.Event | None = None
    ) -> Authorization:
        """Block until the authorization leaves pending/processing.

        Args:
            url: The authorization URL.
            cancel: Event that, once set, ends the wait with PrepareCancelled.

        Returns:
            The authorization in whatever status it settled on.
        """
        ...

    @abstractmethod
    def http01_challenge_response(self, token: str) -> str:
        """Return the HTTP-01 response body for a token."""
        ...

    @abstractmethod
    def dns01_challenge_record(self, token: str) -> str:
        """Return the DNS-01 TXT record value for a token."""
        ...


class HttpAcmeClient(AcmeClient):
    """RFC 8555 client backed by httpx.

    Only existing accounts are used: when ``account_url`` is not given it
    is looked up with ``onlyReturnExisting``, and a missing account is
    reported by the server as an AcmeError.

    Args:
        directory_url: URL of the ACME directory endpoint.
        account_key: Private key of the ACME account.
        account_url: Account URL, if already known.
        ca_cert: Path to CA certificate file, False to disable verification,
                 or None/True for default verification.
    """

    # Polling configuration
    POLL_INTERVAL = 2  # seconds
    MAX_POLL_ATTEMPTS = 30  # 60 seconds total
    MAX_NONCE_RETRIES = 3

    def __init__(
        self,
        directory_url: str,
        account_key: PrivateKey,
        account_url: str | None = None,
        ca_cert: str | bool | None = None,
    ):
        self.directory_url = directory_url
        self.account_key = account_key
        self._account_url = account_url

        verify = True if ca_cert is None else ca_cert
        self._http = httpx.Client(verify=verify)

        self._directory: Directory | None = None
        self._nonce: str | None = None
        self._thumbprint: str | None = None

    def close(self) -> None:
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "HttpAcmeClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def directory(self) -> Directory:
        """Get the ACME directory (cached after first fetch)."""
        if self._directory is None:
            response = self._http.get(self.directory_url)
            response.raise_for_status()
            self._directory = Directory.model_validate(response.json())
        return self._directory

    @property
    def account_url(self) -> str:
        """Account URL, looked up from the server on first use."""
        if self._account_url is None:
            response = self._signed_request(
                self.directory.new_account,
                {"onlyReturnExisting": True},
                use_kid=False,
            )
            self._account_url = response.headers["Location"]
            logger.info("ACME account found", extra={"account_url": self._account_url})
        return self._account_url

    def _get_nonce(self) -> str:
        if self._nonce:
            nonce, self._nonce = self._nonce, None
            return nonce

        response = self._http.head(self.directory.new_nonce)
        response.raise_for_status()
        return response.headers["Replay-Nonce"]

    def _signed_request(
        self,
        url: str,
        payload: dict | str,
        use_kid: bool = True,
    ) -> httpx.Response:
        """Make a JWS-signed POST request to the ACME server.

        Args:
            url: The endpoint URL.
            payload: The request payload (dict for JSON, "" for POST-as-GET).
            use_kid: If True, sign with the account URL as kid, otherwise
                     embed the public JWK.

        Returns:
            The HTTP response.

        Raises:
            AcmeError: If the ACME server returns an error.
        """
        kid = self.account_url if use_kid else None

        attempt = 0
        while True:
            body = sign_jws(self.account_key, payload, url, nonce=self._get_nonce(), kid=kid)
            response = self._http.post(
                url,
                json=body,
                headers={"Content-Type": "application/jose+json"},
            )
            if "Replay-Nonce" in response.headers:
                self._nonce = response.headers["Replay-Nonce"]

            if response.status_code < 400:
                return response

            try:
                error = AcmeError.from_response(response.json(), response.status_code)
            except json.JSONDecodeError:
                raise AcmeError(
                    type="unknown",
                    detail=response.text,
                    status_code=response.status_code,
                ) from None

            if isinstance(error, BadNonceError) and attempt < self.MAX_NONCE_RETRIES:
                attempt += 1
                logger.debug("Retrying request after bad nonce", extra={"url": url})
                self._nonce = None
                continue
            raise error

    def get_order(self, url: str) -> Order:
        response = self._signed_request(url, "")
        return Order.model_validate({**response.json(), "url": url})

    def create_order(self, domains: list[str]) -> Order:
        payload = {"identifiers": [{"type": "dns", "value": domain} for domain in domains]}
        response = self._signed_request(self.directory.new_order, payload)
        return Order.model_validate({**response.json(), "url": response.headers.get("Location")})

    def get_authorization(self, url: str) -> Authorization:
        response = self._signed_request(url, "")
        return Authorization.model_validate({**response.json(), "url": url})

    def accept_challenge(self, challenge: Challenge) -> Challenge:
        # An empty object signals readiness (RFC 8555 Section 7.5.1)
        response = self._signed_request(challenge.url, {})
        return Challenge.model_validate(response.json())

    def wait_authorization(
        self, url: str, cancel: threading.Event | None = None
    ) -> Authorization:
        """Poll an authorization until it leaves pending/processing.

        Raises:
            PrepareCancelled: If ``cancel`` is set while waiting.
            AcmeError: If the authorization is still unsettled after
                MAX_POLL_ATTEMPTS polls.
        """
        with Timer() as timer:
            for attempt in range(self.MAX_POLL_ATTEMPTS):
                cancellation.check_cancelled(cancel)
                authorization = self.get_authorization(url)
                if authorization.status not in (
                    AuthorizationStatus.PENDING,
                    AuthorizationStatus.PROCESSING,
                ):
                    break
                if attempt < self.MAX_POLL_ATTEMPTS - 1:
                    cancellation.sleep(self.POLL_INTERVAL, cancel)
            else:
                raise AcmeError(
                    type="urn:ietf:params:acme:error:serverInternal",
                    detail="Authorization polling timed out",
                    status_code=500,
                )

        logger.debug(
            "Authorization settled",
            extra={
                "url": url,
                "status": str(authorization.status),
                "duration_ms": timer.duration_ms,
            },
        )
        return authorization

    def http01_challenge_response(self, token: str) -> str:
        if self._thumbprint is None:
            self._thumbprint = key_thumbprint(self.account_key)
        return compute_key_authorization(token, self._thumbprint)

    def dns01_challenge_record(self, token: str) -> str:
        return compute_dns_txt_value(self.http01_challenge_response(token))
