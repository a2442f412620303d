"""acmeprep - drives ACME orders and domain validation for certificate requests."""

from acmeprep.client import AcmeClient, HttpAcmeClient
from acmeprep.prepare import Preparer
from acmeprep.solvers import Dns01Solver, Http01Solver, SolverRegistry

__all__ = [
    "AcmeClient",
    "Dns01Solver",
    "Http01Solver",
    "HttpAcmeClient",
    "Preparer",
    "SolverRegistry",
]
__version__ = "0.1.0"
