# struct_mesh/kernel/solve.py
"""Linear system solver with boundary conditions and mechanism detection."""

import logging

import numpy as np
import scipy.linalg

logger = logging.getLogger(__name__)


class SolverError(RuntimeError):
    """Raised for any failure inside the solver stage."""
    pass


class MechanismError(SolverError):
    """Raised when structure is unstable or ill-conditioned."""
    pass


class MissingPropertyError(SolverError):
    """Raised when elements lack the properties the solver needs."""

    def __init__(self, message: str, elements=None):
        super().__init__(message)
        self.elements = list(elements or [])


def solve_linear(
    K: np.ndarray,
    F: np.ndarray,
    fixed_dofs: list[int],
    cond_limit: float = 1e12
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Solve K·d = F with fixed boundary conditions via partitioning.

    Args:
        K: Global stiffness matrix (ndof x ndof)
        F: Global load vector (ndof,)
        fixed_dofs: List of constrained DOF indices (displacement = 0)
        cond_limit: Max condition number before raising MechanismError

    Returns:
        d: Displacement vector (ndof,)
        R: Reaction vector (ndof,), R = K·d - F
        free: Array of free DOF indices

    Raises:
        MechanismError: If structure is unstable (cond > cond_limit or singular)
    """
    ndof = K.shape[0]

    fixed = np.array(sorted(set(fixed_dofs)), dtype=int)
    mask = np.ones(ndof, dtype=bool)
    mask[fixed] = False
    free = np.flatnonzero(mask)

    d = np.zeros(ndof, dtype=float)
    if free.size == 0:
        return d, K @ d - F, free

    Kff = K[np.ix_(free, free)]
    Ff = F[free]

    cond = np.linalg.cond(Kff)
    if not np.isfinite(cond) or cond > cond_limit:
        raise MechanismError(
            f"Unstable system (cond={cond:.2e}). Check supports. Need cond < {cond_limit:.0e}."
        )

    try:
        df = scipy.linalg.solve(Kff, Ff, assume_a='sym')
    except scipy.linalg.LinAlgError as exc:
        raise MechanismError(f"Singular stiffness matrix: {exc}") from exc

    d[free] = df
    R = K @ d - F
    logger.debug("Solved %d free of %d DOFs (cond=%.2e)", free.size, ndof, cond)
    return d, R, free
