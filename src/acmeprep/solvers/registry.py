"""Lookup of solvers by challenge type."""

from collections.abc import Mapping

from acmeprep.exceptions import SolverNotFoundError, UnsupportedChallengeTypeError
from acmeprep.models import ChallengeType
from acmeprep.solvers.base import Solver


class SolverRegistry:
    """Fixed mapping from challenge type to the solver handling it.

    The mapping is validated when the registry is built, so a solver
    registered under a type this library cannot derive keys for is
    rejected up front.

    Args:
        solvers: Solvers keyed by challenge type (enum member or its string).

    Raises:
        UnsupportedChallengeTypeError: For keys outside ChallengeType.
        TypeError: For values that are not Solver instances.
        ValueError: If a solver is registered under another solver's type.
    """

    def __init__(self, solvers: Mapping[ChallengeType | str, Solver]):
        self._solvers: dict[ChallengeType, Solver] = {}
        for key, solver in solvers.items():
            try:
                challenge_type = ChallengeType(key)
            except ValueError:
                raise UnsupportedChallengeTypeError(str(key)) from None
            if not isinstance(solver, Solver):
                raise TypeError(f"solver for {challenge_type} must be a Solver, got {solver!r}")
            declared = getattr(solver, "challenge_type", challenge_type)
            if declared != challenge_type:
                raise ValueError(f"{type(solver).__name__} solves {declared}, not {challenge_type}")
            self._solvers[challenge_type] = solver

    @classmethod
    def from_solvers(cls, *solvers: Solver) -> "SolverRegistry":
        """Build a registry keyed by each solver's own challenge type."""
        return cls({solver.challenge_type: solver for solver in solvers})

    @property
    def challenge_types(self) -> frozenset[ChallengeType]:
        """Challenge types with a registered solver."""
        return frozenset(self._solvers)

    def solver_for(self, challenge_type: ChallengeType | str) -> Solver:
        """Return the solver for a challenge type.

        Raises:
            UnsupportedChallengeTypeError: If the type is not a ChallengeType.
            SolverNotFoundError: If no solver is registered for the type.
        """
        try:
            challenge_type = ChallengeType(challenge_type)
        except ValueError:
            raise UnsupportedChallengeTypeError(str(challenge_type)) from None
        try:
            return self._solvers[challenge_type]
        except KeyError:
            raise SolverNotFoundError(challenge_type) from None
