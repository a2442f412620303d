"""Challenge solvers and their registry."""

from acmeprep.solvers.base import Solver
from acmeprep.solvers.dns01 import Dns01Solver
from acmeprep.solvers.http01 import Http01Solver
from acmeprep.solvers.registry import SolverRegistry

__all__ = ["Dns01Solver", "Http01Solver", "Solver", "SolverRegistry"]
