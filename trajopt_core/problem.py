"""Definition of a trajectory optimization problem.

The problem is

    min  x_err(T)' Qf x_err(T) + dt * sum_t [x_err(t)' Q x_err(t) + u(t)' R u(t)]
    s.t. x(0) = x0 and the multibody dynamics with contact,

where x = [q; v], x_err = x - x_nom and Q = blockdiag(Qq, Qv).
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

__all__ = ["ProblemDefinition"]


def _vector(value, name: str) -> np.ndarray:
    arr = np.array(value, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be a vector, got shape {arr.shape}")
    return arr


def _matrix(value, name: str) -> np.ndarray:
    arr = np.array(value, dtype=float)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a matrix, got shape {arr.shape}")
    return arr


def _empty_vector() -> np.ndarray:
    return np.zeros(0)


def _empty_matrix() -> np.ndarray:
    return np.zeros((0, 0))


@dataclass(eq=False)
class ProblemDefinition:
    """Horizon, initial state, cost weights and nominal trajectory.

    Running-cost weights (Qq, Qv, R) are per unit of time.
    """

    num_steps: int = 0
    q_init: np.ndarray = field(default_factory=_empty_vector)
    v_init: np.ndarray = field(default_factory=_empty_vector)
    Qq: np.ndarray = field(default_factory=_empty_matrix)
    Qv: np.ndarray = field(default_factory=_empty_matrix)
    Qf_q: np.ndarray = field(default_factory=_empty_matrix)
    Qf_v: np.ndarray = field(default_factory=_empty_matrix)
    R: np.ndarray = field(default_factory=_empty_matrix)
    q_nom: list[np.ndarray] = field(default_factory=list)
    v_nom: list[np.ndarray] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.num_steps = int(self.num_steps)
        if self.num_steps < 0:
            raise ValueError("num_steps must not be negative")
        self.q_init = _vector(self.q_init, "q_init")
        self.v_init = _vector(self.v_init, "v_init")
        for name in ("Qq", "Qv", "Qf_q", "Qf_v", "R"):
            setattr(self, name, _matrix(getattr(self, name), name))
        self.q_nom = [_vector(q, "q_nom entry") for q in self.q_nom]
        self.v_nom = [_vector(v, "v_nom entry") for v in self.v_nom]