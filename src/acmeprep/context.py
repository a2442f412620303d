"""Dependencies threaded through one preparation pass."""

import threading
from dataclasses import dataclass

from acmeprep.cancellation import check_cancelled
from acmeprep.client import AcmeClient
from acmeprep.models import IssuerConfig
from acmeprep.solvers.registry import SolverRegistry


@dataclass(frozen=True)
class PrepareContext:
    """Client, issuer configuration and solvers for a single pass.

    ``cancel`` is checked before every remote call and handed to the
    collaborators that poll (authorization waits and solver self-checks);
    once it is set the pass stops with PrepareCancelled.
    """

    client: AcmeClient
    issuer: IssuerConfig
    solvers: SolverRegistry
    cancel: threading.Event | None = None

    def checkpoint(self) -> None:
        """Raise PrepareCancelled if the pass has been cancelled."""
        check_cancelled(self.cancel)
