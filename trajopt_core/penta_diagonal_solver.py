"""Block Thomas algorithm for symmetric block penta-diagonal systems.

A block penta-diagonal matrix with ``n`` block rows of size ``k`` is described
by five sequences of ``k x k`` blocks. Block row ``i`` reads::

    [... A[i]  B[i]  C[i]  D[i]  E[i] ...]

with ``A[i]`` at block column ``i-2``, ``C[i]`` on the diagonal and ``E[i]`` at
block column ``i+2``. Blocks that fall outside the matrix (``A[0]``, ``A[1]``,
``B[0]``, ``D[n-1]``, ``E[n-2]``, ``E[n-1]``) are expected to be zero.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import numpy as np

from trajopt_core.profiler import instrument

__all__ = ["PentaDiagonalFactorizationStatus", "PentaDiagonalFactorization"]


class PentaDiagonalFactorizationStatus(Enum):
    """Outcome of a factorization."""

    SUCCESS = 0
    FAILURE = 1


def _as_blocks(blocks: Sequence[np.ndarray] | np.ndarray, name: str) -> np.ndarray:
    arr = np.array(blocks, dtype=float)
    if arr.size == 0 and arr.ndim < 3:
        return np.zeros((0, 0, 0))
    if arr.ndim != 3 or arr.shape[1] != arr.shape[2]:
        raise ValueError(f"{name} must be a sequence of square blocks")
    return arr


def _transposed(blocks: np.ndarray) -> np.ndarray:
    return blocks.transpose(0, 2, 1)


class PentaDiagonalFactorization:
    """Factorization of a symmetric block penta-diagonal matrix M.

    Construction only raises when M is not symmetric or the blocks are
    malformed; whether the factorization itself succeeded is reported by
    status().
    """

    def __init__(self, A, B, C, D, E) -> None:
        names = ("A", "B", "C", "D", "E")
        blocks = [_as_blocks(x, name) for x, name in zip((A, B, C, D, E), names)]
        shape = blocks[0].shape
        for arr, name in zip(blocks, names):
            if arr.shape != shape:
                raise ValueError(
                    f"Diagonal {name} has shape {arr.shape}, expected {shape}"
                )
        a, b, c, d, e = blocks
        if not (
            np.array_equal(d[:-1], _transposed(b[1:]))
            and np.array_equal(e[:-2], _transposed(a[2:]))
        ):
            raise ValueError("The penta-diagonal matrix must be symmetric")

        self._num_blocks, self._block_size = shape[0], shape[1]
        self._status = PentaDiagonalFactorizationStatus.FAILURE
        self._factorize(a, b, c, d, e)

    @classmethod
    def from_lower(cls, A, B, C) -> "PentaDiagonalFactorization":
        """Factorize the symmetric matrix given by its lower diagonals A, B, C."""
        a = _as_blocks(A, "A")
        b = _as_blocks(B, "B")
        c = _as_blocks(C, "C")
        d = np.zeros_like(b)
        e = np.zeros_like(a)
        d[:-1] = _transposed(b[1:])
        e[:-2] = _transposed(a[2:])
        return cls(a, b, c, d, e)

    def status(self) -> PentaDiagonalFactorizationStatus:
        """Whether the factorization succeeded."""
        return self._status

    def size(self) -> int:
        """Number of rows (and columns) of the factorized matrix."""
        return self._num_blocks * self._block_size

    def _factorize(self, A, B, C, D, E) -> None:
        n, k = self._num_blocks, self._block_size
        with instrument("PentaDiagonalFactorization: Thomas-algorithm factorization"):
            K = np.zeros((n, k, k))
            G = np.zeros((n, k, k))
            # Y and Z are stored shifted by two: entry i+2 holds block i, and
            # the first two entries stand for the zero blocks at i=-2, i=-1.
            Y = np.zeros((n + 2, k, k))
            Z = np.zeros((n + 2, k, k))
            for i in range(n):
                K[i] = B[i] - A[i] @ Y[i]
                G[i] = C[i] - A[i] @ Z[i] - K[i] @ Y[i + 1]
                H = D[i] - K[i] @ Z[i + 1]
                try:
                    sol = np.linalg.solve(G[i], np.hstack([H, E[i]]))
                except np.linalg.LinAlgError:
                    return
                if not np.all(np.isfinite(sol)):
                    return
                Y[i + 2] = sol[:, :k]
                Z[i + 2] = sol[:, k:]
            self._A, self._K, self._G, self._Y, self._Z = A, K, G, Y, Z
            self._status = PentaDiagonalFactorizationStatus.SUCCESS

    def solve(self, b) -> np.ndarray:
        """Return x with M x = b, leaving b untouched."""
        x = np.array(b, dtype=float)
        self.solve_in_place(x)
        return x

    def solve_in_place(self, b: np.ndarray) -> None:
        """Overwrite the float array b with the solution of M x = b."""
        if self._status is not PentaDiagonalFactorizationStatus.SUCCESS:
            raise RuntimeError("Cannot solve with a failed factorization")
        if not isinstance(b, np.ndarray):
            raise TypeError("b must be a numpy array")
        if b.shape != (self.size(),):
            raise ValueError(
                f"Right-hand side has shape {b.shape}, expected ({self.size()},)"
            )
        n, k = self._num_blocks, self._block_size
        if n == 0:
            return
        with instrument("PentaDiagonalFactorization: backward substitution"):
            # r is padded with two leading zero blocks: r[i+2] holds block i.
            r = np.zeros((n + 2, k))
            r[2:] = b.reshape(n, k)
            for i in range(n):
                rhs = r[i + 2] - self._A[i] @ r[i] - self._K[i] @ r[i + 1]
                r[i + 2] = np.linalg.solve(self._G[i], rhs)

            x = r[2:]
            for i in range(n - 2, -1, -1):
                x[i] -= self._Y[i + 2] @ x[i + 1]
                if i + 2 < n:
                    x[i] -= self._Z[i + 2] @ x[i + 2]
            b[:] = x.ravel()