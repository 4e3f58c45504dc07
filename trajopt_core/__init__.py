"""Building blocks for trajectory optimization: a penta-diagonal solver, solver parameters, problem definitions, optimizer state and a profiler."""

__version__ = "0.1.0"

__all__ = ["penta_diagonal_solver", "parameters", "problem", "state", "profiler"]