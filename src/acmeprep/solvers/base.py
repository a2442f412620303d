"""Base class for challenge solvers."""

import threading
from abc import ABC, abstractmethod
from typing import ClassVar

from acmeprep.models import CertificateRequest, ChallengeType


class Solver(ABC):
    """Presents, checks and cleans up the proof for one challenge type.

    ``present`` and ``cleanup`` are invoked on every preparation pass that
    needs them and must be idempotent. ``cleanup`` may be called for a
    challenge that was never presented and must then do nothing.
    """

    challenge_type: ClassVar[ChallengeType]

    @abstractmethod
    def present(self, certificate: CertificateRequest, domain: str, token: str, key: str) -> None:
        """Publish the proof so the ACME server can validate it.

        Args:
            certificate: The certificate request being prepared.
            domain: The domain being validated.
            token: The challenge token.
            key: The proof value for the token.
        """
        ...

    @abstractmethod
    def check(
        self, domain: str, token: str, key: str, cancel: threading.Event | None = None
    ) -> bool:
        """Check whether the presented proof is externally observable.

        Checks that wait or poll must stop with PrepareCancelled once
        ``cancel`` is set.

        Returns:
            True when the server can be told to validate. False means
            "not yet"; errors are reserved for genuine failures.
        """
        ...

    @abstractmethod
    def cleanup(self, certificate: CertificateRequest, domain: str, token: str, key: str) -> None:
        """Remove anything created by present()."""
        ...
