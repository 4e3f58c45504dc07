"""Decision variables of the trajectory optimizer and the cache derived from them.

The only true state is the sequence of generalized positions ``q[0..N]``.
Everything computed from it (velocities, accelerations, forces, costs,
derivatives and so on) lives in a :class:`TrajectoryOptimizerCache` whose
freshness flags are cleared whenever ``q`` changes.
"""

from __future__ import annotations

import math
from typing import Any, Sequence

import numpy as np

__all__ = ["VelocityPartials", "TrajectoryOptimizerCache", "TrajectoryOptimizerState"]


class VelocityPartials:
    """Partials of generalized velocities v with respect to positions q.

    ``dvt_dqt[t]`` holds d(v_t)/d(q_t) for t = 0..N and ``dvt_dqm[t]`` holds
    d(v_t)/d(q_{t-1}); the latter is undefined at t = 0 and filled with NaN.
    """

    def __init__(self, num_steps: int, nv: int, nq: int) -> None:
        if num_steps < 0 or nv < 0 or nq < 0:
            raise ValueError("num_steps, nv and nq must not be negative")
        self.dvt_dqt: list[np.ndarray] = [np.zeros((nv, nq)) for _ in range(num_steps + 1)]
        self.dvt_dqm: list[np.ndarray] = [np.zeros((nv, nq)) for _ in range(num_steps + 1)]
        self.dvt_dqm[0].fill(math.nan)


class TrajectoryOptimizerCache:
    """Quantities computed from q, each paired with an up-to-date flag.

    Trajectory data (v, a) and inverse dynamics (tau) are kept apart from the
    more expensive derivative data so that the cost can be evaluated without
    refreshing derivatives. The Hessians are left as ``None`` until whoever
    computes them stores a value.
    """

    _FLAGS = (
        "trajectory_data_up_to_date",
        "inverse_dynamics_up_to_date",
        "n_plus_up_to_date",
        "derivatives_up_to_date",
        "cost_up_to_date",
        "gradient_up_to_date",
        "hessian_up_to_date",
        "scaled_hessian_up_to_date",
        "scaled_gradient_up_to_date",
        "scale_factors_up_to_date",
        "constraint_violation_up_to_date",
        "constraint_jacobian_up_to_date",
        "lagrange_multipliers_up_to_date",
        "merit_up_to_date",
        "merit_gradient_up_to_date",
    )

    def __init__(self, num_steps: int, nv: int, nq: int, num_eq_constraints: int = 0) -> None:
        if min(num_steps, nv, nq, num_eq_constraints) < 0:
            raise ValueError("Cache dimensions must not be negative")
        num_vars = (num_steps + 1) * nq

        # Trajectory data: v(0..N) and a(0..N-1).
        self.v: list[np.ndarray] = [np.zeros(nv) for _ in range(num_steps + 1)]
        self.a: list[np.ndarray] = [np.zeros(nv) for _ in range(num_steps)]
        # Generalized forces tau(0..N-1).
        self.tau: list[np.ndarray] = [np.zeros(nv) for _ in range(num_steps)]
        # Mapping from qdot to v, v = N+(q) qdot, at each time step.
        self.n_plus: list[np.ndarray] = [np.zeros((nv, nq)) for _ in range(num_steps + 1)]
        self.v_partials = VelocityPartials(num_steps, nv, nq)

        self.cost: float = math.nan
        self.gradient = np.zeros(num_vars)
        self.hessian: Any = None
        self.scaled_hessian: Any = None
        self.scaled_gradient = np.zeros(num_vars)
        self.scale_factors = np.ones(num_vars)
        self.constraint_violation = np.zeros(num_eq_constraints)
        self.constraint_jacobian = np.zeros((num_eq_constraints, num_vars))
        self.lagrange_multipliers = np.zeros(num_eq_constraints)
        self.merit: float = math.nan
        self.merit_gradient = np.zeros(num_vars)

        self.invalidate()

    def invalidate(self) -> None:
        """Mark every cached quantity as stale."""
        for flag in self._FLAGS:
            setattr(self, flag, False)

    @property
    def flags(self) -> dict[str, bool]:
        """Current value of every up-to-date flag, by name."""
        return {flag: getattr(self, flag) for flag in self._FLAGS}


def _frozen(vector: np.ndarray) -> np.ndarray:
    vector.flags.writeable = False
    return vector


class TrajectoryOptimizerState:
    """The sequence q[0..N] of generalized positions and its derived cache.

    The positions exposed through :attr:`q` are read-only; change them with
    :meth:`set_q` or :meth:`add_to_q`, which also invalidate the cache.
    """

    def __init__(self, num_steps: int, nq: int, nv: int, num_eq_constraints: int = 0) -> None:
        if num_steps < 0 or nq < 0 or nv < 0:
            raise ValueError("num_steps, nq and nv must not be negative")
        self._num_steps = num_steps
        self._nq = nq
        self._q: list[np.ndarray] = [_frozen(np.zeros(nq)) for _ in range(num_steps + 1)]
        self._cache = TrajectoryOptimizerCache(num_steps, nv, nq, num_eq_constraints)

    @property
    def num_steps(self) -> int:
        return self._num_steps

    @property
    def q(self) -> tuple[np.ndarray, ...]:
        """Generalized positions at each time step, q[0..N]."""
        return tuple(self._q)

    def set_q(self, q: Sequence[Sequence[float]]) -> None:
        """Replace the whole position sequence and invalidate the cache."""
        vectors = [np.array(qt, dtype=float) for qt in q]
        if len(vectors) != self._num_steps + 1:
            raise ValueError(
                f"Expected {self._num_steps + 1} position vectors, got {len(vectors)}"
            )
        for t, qt in enumerate(vectors):
            if qt.shape != (self._nq,):
                raise ValueError(f"q[{t}] has shape {qt.shape}, expected ({self._nq},)")
        self._q = [_frozen(qt) for qt in vectors]
        self._cache.invalidate()

    def add_to_q(self, dq: Sequence[float]) -> None:
        """Apply q[t] += dq[t*nq:(t+1)*nq] for every t and invalidate the cache."""
        step = np.asarray(dq, dtype=float)
        expected = self._nq * (self._num_steps + 1)
        if step.shape != (expected,):
            raise ValueError(f"dq has shape {step.shape}, expected ({expected},)")
        segments = step.reshape(self._num_steps + 1, self._nq)
        self._q = [_frozen(qt + seg) for qt, seg in zip(self._q, segments)]
        self._cache.invalidate()

    def norm(self) -> float:
        """Euclidean norm of all positions stacked together."""
        return math.sqrt(sum(float(qt @ qt) for qt in self._q))

    @property
    def cache(self) -> TrajectoryOptimizerCache:
        """Quantities computed from q, with their freshness flags."""
        return self._cache