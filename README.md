# trajopt_core

Building blocks for trajectory optimization over sequences of generalized
positions. The package is a plain library with no command-line entry point.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## What's inside

- `trajopt_core.penta_diagonal_solver`: `PentaDiagonalFactorization`, a block
  Thomas-algorithm solver for symmetric block penta-diagonal systems. It
  reports its outcome through `PentaDiagonalFactorizationStatus` (`SUCCESS` or
  `FAILURE`).
- `trajopt_core.parameters`: the `SolverParameters` dataclass and the
  `ConvergenceCriteriaTolerances` dataclass (with `to_dict` and `from_dict`).
  The module also defines the enums `LinesearchMethod`, `SolverMethod`,
  `GradientsMethod`, `ScalingMethod` and `LinearSolverType`.
- `trajopt_core.problem`: `ProblemDefinition`, which holds the horizon, the
  initial conditions, the cost weights and the nominal trajectories. All of
  them are converted to float numpy arrays and checked for shape.
- `trajopt_core.state`: `TrajectoryOptimizerState`, which holds the decision
  variables q, and `TrajectoryOptimizerCache`, which stores the quantities
  computed from them together with an up-to-date flag for each.
  `VelocityPartials` stores the velocity derivatives.
- `trajopt_core.profiler`: `Timer`, `LapTimer` and a `Profiler` that records
  self-time per label. The module also provides `instrument`,
  `default_profiler` and `table_of_averages`.

## Solving a block penta-diagonal system

Build the factorization from the lower block diagonals `A`, `B` and `C`. Each
is a list of `k x k` arrays, one per block row. The upper diagonals follow
from symmetry. You can also pass all five diagonals to the constructor. In
that case it raises `ValueError` if they do not describe a symmetric matrix.

```python
import numpy as np
from trajopt_core.penta_diagonal_solver import (
    PentaDiagonalFactorization,
    PentaDiagonalFactorizationStatus,
)

k, n = 2, 4
Z = np.zeros((k, k))
I = np.eye(k)
A = [Z] * n
B = [Z] + [0.1 * I] * (n - 1)
C = [4.0 * I] * n

lu = PentaDiagonalFactorization.from_lower(A, B, C)
assert lu.status() == PentaDiagonalFactorizationStatus.SUCCESS
x = lu.solve(np.arange(lu.size(), dtype=float))
```

`solve` returns a new array. `solve_in_place` overwrites a float numpy array
of length `size()`. Solving with a failed factorization raises `RuntimeError`.

## Profiling a block of code

The process-wide profiler starts disabled. While it is disabled, `instrument`
does nothing and `table_of_averages` only reports that profiling is off.

```python
from trajopt_core.profiler import default_profiler, instrument, table_of_averages

default_profiler().enabled = True

with instrument("assemble Hessian"):
    ...

print(table_of_averages())
```

Timers take a unit string, which is one of `"s"`, `"cs"`, `"ms"`, `"us"` or
`"ns"`. A separate `Profiler()` is enabled by default.

## Optimizer state

`TrajectoryOptimizerState.q` is a tuple of read-only arrays. Change q through
`set_q` or `add_to_q`. Both mark every cached quantity as out of date.

```python
import numpy as np
from trajopt_core.state import TrajectoryOptimizerState

state = TrajectoryOptimizerState(num_steps=2, nq=1, nv=1)
state.set_q([np.zeros(1), np.ones(1), np.ones(1)])
state.add_to_q(np.full(3, 0.5))
print(state.norm())
print(state.cache.flags)
```

## What this package does not do

The package contains no optimizer. It has no multibody dynamics model and no
cost, gradient or Hessian evaluation. `SolverParameters` and
`ProblemDefinition` only hold settings. `TrajectoryOptimizerCache` only holds
storage and flags. Computing the cached quantities from q is left to the code
that uses this package.