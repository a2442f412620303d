"""HTTP-01 solver serving key authorizations from memory or a webroot."""

import threading
from pathlib import Path

import httpx

from acmeprep._logging import get_logger
from acmeprep.cancellation import check_cancelled
from acmeprep.models import CertificateRequest, ChallengeType
from acmeprep.solvers.base import Solver

logger = get_logger(__name__)

WELL_KNOWN_PATH = ".well-known/acme-challenge"


class Http01Solver(Solver):
    """Solve HTTP-01 challenges.

    Presented key authorizations are kept in memory, for an embedding web
    server to answer through :meth:`response_for`, and written to
    ``<webroot>/.well-known/acme-challenge/<token>`` when a webroot is
    configured. The self-check fetches the challenge URL over plain HTTP
    the same way the ACME server will.

    Args:
        webroot: Directory served as the document root of the domains.
        timeout: HTTP timeout for the self-check, in seconds.
    """

    challenge_type = ChallengeType.HTTP_01

    def __init__(self, webroot: str | Path | None = None, timeout: float = 10):
        self.webroot = Path(webroot) if webroot is not None else None
        self.timeout = timeout
        self._responses: dict[str, str] = {}

    def _challenge_file(self, token: str) -> Path | None:
        if self.webroot is None:
            return None
        return self.webroot / WELL_KNOWN_PATH / token

    def response_for(self, token: str) -> str | None:
        """Return the key authorization to serve for ``token``, if presented."""
        return self._responses.get(token)

    def present(self, certificate: CertificateRequest, domain: str, token: str, key: str) -> None:
        self._responses[token] = key
        path = self._challenge_file(token)
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(key)
        logger.debug("HTTP-01 response presented", extra={"domain": domain, "token": token})

    def check(
        self, domain: str, token: str, key: str, cancel: threading.Event | None = None
    ) -> bool:
        check_cancelled(cancel)
        url = f"http://{domain}/{WELL_KNOWN_PATH}/{token}"
        try:
            response = httpx.get(url, timeout=self.timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.debug("HTTP-01 self-check request failed", extra={"url": url, "error": str(e)})
            return False

        if response.status_code != 200:
            logger.debug(
                "HTTP-01 self-check got unexpected status",
                extra={"url": url, "status_code": response.status_code},
            )
            return False
        return response.text.strip() == key

    def cleanup(self, certificate: CertificateRequest, domain: str, token: str, key: str) -> None:
        self._responses.pop(token, None)
        path = self._challenge_file(token)
        if path is not None:
            path.unlink(missing_ok=True)
