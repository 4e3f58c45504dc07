"""Solver settings and convergence tolerances for the trajectory optimizer."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum, auto
from typing import Any, Mapping

__all__ = [
    "ConvergenceCriteriaTolerances",
    "LinesearchMethod",
    "SolverMethod",
    "GradientsMethod",
    "ScalingMethod",
    "LinearSolverType",
    "SolverParameters",
]


@dataclass
class ConvergenceCriteriaTolerances:
    """Absolute and relative tolerances for the three stopping criteria.

    Cost reduction:      |L(k) - L(k+1)| < abs + rel * L(k)
    Gradient along dq:   g . dq < abs + rel * L(k)
    State change:        ||dq|| < abs + rel * ||q(k)||
    """

    rel_cost_reduction: float = 0.0
    abs_cost_reduction: float = 0.0
    rel_gradient_along_dq: float = 0.0
    abs_gradient_along_dq: float = 0.0
    rel_state_change: float = 0.0
    abs_state_change: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """The tolerances as a plain mapping, in declaration order."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConvergenceCriteriaTolerances":
        """Build tolerances from a mapping; missing keys keep their defaults."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown tolerance keys: {', '.join(unknown)}")
        return cls(**{key: float(value) for key, value in data.items()})


class LinesearchMethod(Enum):
    # Simple backtracking linesearch with Armijo's condition.
    ARMIJO = auto()
    # Backtracking linesearch that tries to find a local minimum.
    BACKTRACKING = auto()


class SolverMethod(Enum):
    LINESEARCH = auto()
    TRUST_REGION = auto()


class GradientsMethod(Enum):
    FORWARD_DIFFERENCES = auto()
    CENTRAL_DIFFERENCES = auto()
    CENTRAL_DIFFERENCES_4 = auto()
    AUTODIFF = auto()
    # Gradients are never requested from the optimizer.
    NO_GRADIENTS = auto()


class ScalingMethod(Enum):
    """How the diagonal scaling D of the Hessian is chosen each iteration."""

    # D_ii = min(1, 1/sqrt(H_ii))
    SQRT = auto()
    # D_ii = min(previous D_ii, 1/sqrt(H_ii))
    ADAPTIVE_SQRT = auto()
    # D_ii = min(1, 1/sqrt(sqrt(H_ii)))
    DOUBLE_SQRT = auto()
    # D_ii = min(previous D_ii, 1/sqrt(sqrt(H_ii)))
    ADAPTIVE_DOUBLE_SQRT = auto()


class LinearSolverType(Enum):
    DENSE_LDLT = auto()
    PENTA_DIAGONAL_LU = auto()


@dataclass
class SolverParameters:
    """All tunable settings of the trajectory optimizer."""

    check_convergence: bool = False
    convergence_tolerances: ConvergenceCriteriaTolerances = field(
        default_factory=ConvergenceCriteriaTolerances
    )

    method: SolverMethod = SolverMethod.TRUST_REGION
    linesearch_method: LinesearchMethod = LinesearchMethod.ARMIJO
    max_iterations: int = 100
    max_linesearch_iterations: int = 50
    gradients_method: GradientsMethod = GradientsMethod.FORWARD_DIFFERENCES
    linear_solver: LinearSolverType = LinearSolverType.PENTA_DIAGONAL_LU

    normalize_quaternions: bool = False
    verbose: bool = True
    print_debug_data: bool = False
    debug_compare_against_dense: bool = False
    linesearch_plot_every_iteration: bool = False

    # Contact model.
    contact_stiffness: float = 100.0  # normal force stiffness, N/m
    dissipation_velocity: float = 0.1  # Hunt-Crossley velocity, m/s
    stiction_velocity: float = 0.05  # stiction regularization, m/s
    friction_coefficient: float = 0.5
    smoothing_factor: float = 0.1  # force-at-a-distance smoothing

    # Contour plot over the first two decision variables.
    save_contour_data: bool = False
    contour_q1_min: float = 0.0
    contour_q1_max: float = 1.0
    contour_q2_min: float = 0.0
    contour_q2_max: float = 1.0

    # Line plot over the first decision variable.
    save_lineplot_data: bool = False
    lineplot_q_min: float = 0.0
    lineplot_q_max: float = 1.0

    exact_hessian: bool = False
    scaling: bool = True
    scaling_method: ScalingMethod = ScalingMethod.DOUBLE_SQRT
    equality_constraints: bool = True

    # Initial and maximum trust region radius; units depend on scaling.
    delta0: float = 1e-1
    delta_max: float = 1e5

    num_threads: int = 1

    # Per DoF: whether the nominal trajectory is relative to the initial q.
    q_nom_relative_to_q_init: tuple[bool, ...] = ()