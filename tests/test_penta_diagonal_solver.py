import numpy as np
import pytest

from trajopt_core.penta_diagonal_solver import (
    PentaDiagonalFactorization,
    PentaDiagonalFactorizationStatus,
)

EPS = np.finfo(float).eps


def _lower_blocks(P, num_blocks, block_size):
    """Lower block diagonals of P, ignoring entries outside the band."""
    k = block_size
    zero = np.zeros((k, k))

    def block(i, j):
        return P[i * k:(i + 1) * k, j * k:(j + 1) * k]

    A = [block(i, i - 2) if i >= 2 else zero for i in range(num_blocks)]
    B = [block(i, i - 1) if i >= 1 else zero for i in range(num_blocks)]
    C = [block(i, i) for i in range(num_blocks)]
    return A, B, C


def _dense(A, B, C):
    """Dense symmetric matrix from the lower block diagonals."""
    n = len(C)
    k = C[0].shape[0]
    M = np.zeros((n * k, n * k))
    for i in range(n):
        M[i * k:(i + 1) * k, i * k:(i + 1) * k] = C[i]
        if i >= 1:
            M[i * k:(i + 1) * k, (i - 1) * k:i * k] = B[i]
            M[(i - 1) * k:i * k, i * k:(i + 1) * k] = B[i].T
        if i >= 2:
            M[i * k:(i + 1) * k, (i - 2) * k:(i - 1) * k] = A[i]
            M[(i - 2) * k:(i - 1) * k, i * k:(i + 1) * k] = A[i].T
    return M


def _random(rng, *shape):
    return rng.uniform(-1.0, 1.0, size=shape)


def test_solve_identity():
    block_size, num_blocks = 3, 5
    size = num_blocks * block_size
    zeros = [np.zeros((block_size, block_size))] * num_blocks
    eye = [np.eye(block_size)] * num_blocks
    fact = PentaDiagonalFactorization.from_lower(zeros, zeros, eye)
    assert fact.status() is PentaDiagonalFactorizationStatus.SUCCESS

    b = np.linspace(-3, 12.4, size)
    x = b.copy()
    fact.solve_in_place(x)
    np.testing.assert_array_equal(x, b)


def test_solve_block_diagonal():
    rng = np.random.default_rng(0)
    block_size, num_blocks = 3, 5
    size = num_blocks * block_size
    I = np.eye(block_size)
    Z = np.zeros((block_size, block_size))
    R = _random(rng, block_size, block_size)
    B1 = 2.1 * I + R @ R.T
    B2 = 3.5 * I + R @ R.T
    B3 = 0.2 * I + R @ R.T

    A = [Z] * num_blocks
    B = [Z] * num_blocks
    C = [B1, B2, B3, B1, B3]
    dense = _dense(A, B, C)

    fact = PentaDiagonalFactorization.from_lower(A, B, C)
    assert fact.status() is PentaDiagonalFactorizationStatus.SUCCESS
    b = np.linspace(-3, 12.4, size)
    x = b.copy()
    fact.solve_in_place(x)

    x_expected = np.linalg.solve(dense, b)
    np.testing.assert_allclose(x, x_expected, rtol=1e-10, atol=1e-12)


def test_solve_tri_diagonal():
    rng = np.random.default_rng(1)
    block_size, num_blocks = 3, 5
    size = num_blocks * block_size
    I = np.eye(block_size)
    Z = np.zeros((block_size, block_size))
    R = _random(rng, block_size, block_size)
    B1 = 2.1 * I + R @ R.T
    B2 = 3.5 * I + R @ R.T
    B3 = 0.2 * I + R @ R.T
    B4 = 1.3 * I + R @ R.T

    A = [Z] * num_blocks
    B = [Z, B1, B2, B3, B4]
    C = [B1, B2, B3, B1, B3]
    dense = _dense(A, B, C)

    fact = PentaDiagonalFactorization.from_lower(A, B, C)
    assert fact.status() is PentaDiagonalFactorizationStatus.SUCCESS
    b = np.linspace(-3, 12.4, size)
    x = fact.solve(b)

    x_expected = np.linalg.solve(dense, b)
    np.testing.assert_allclose(x, x_expected, rtol=1e-9, atol=1e-10)


def test_solve_penta_diagonal():
    rng = np.random.default_rng(2)
    block_size, num_blocks = 2, 21
    size = num_blocks * block_size
    A_rand = _random(rng, size, size)
    P = size * np.eye(size) + A_rand @ A_rand.T

    A, B, C = _lower_blocks(P, num_blocks, block_size)
    dense = _dense(A, B, C)

    x_gt = np.linspace(-3, 12.4, size)
    b = dense @ x_gt

    fact = PentaDiagonalFactorization.from_lower(A, B, C)
    assert fact.status() is PentaDiagonalFactorizationStatus.SUCCESS
    x = fact.solve(b)
    np.testing.assert_allclose(x, x_gt, rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(x, np.linalg.solve(dense, b), rtol=1e-9, atol=1e-9)


def test_condition_number_sweep_reports_success():
    rng = np.random.default_rng(3)
    block_size, num_blocks = 5, 30
    size = num_blocks * block_size
    scale_factor = 10.0
    while scale_factor < 1e20:
        A_rand = 1e4 * _random(rng, size, size)
        P = np.eye(size) + A_rand.T @ A_rand
        dense = _dense(*_lower_blocks(P, num_blocks, block_size))

        U, S, Vt = np.linalg.svd(dense)
        s0, s_end = S[0], S[-1]
        S = s0 * (
            np.ones(size)
            - ((scale_factor - 1) / scale_factor) * (s0 - S) / (s0 - s_end)
        )
        reconstructed = U @ np.diag(S) @ Vt
        A, B, C = _lower_blocks(reconstructed, num_blocks, block_size)
        dense = _dense(A, B, C)
        x_gt = _random(rng, size)
        b = dense @ x_gt

        fact = PentaDiagonalFactorization.from_lower(A, B, C)
        assert fact.status() is PentaDiagonalFactorizationStatus.SUCCESS
        assert fact.solve(b).shape == (size,)
        scale_factor *= 10


def test_size_reports_rows():
    k = 3
    zeros = [np.zeros((k, k))] * 5
    eye = [np.eye(k)] * 5
    fact = PentaDiagonalFactorization.from_lower(zeros, zeros, eye)
    assert fact.size() == 15


def test_empty_matrix():
    fact = PentaDiagonalFactorization.from_lower([], [], [])
    assert fact.size() == 0
    assert fact.status() is PentaDiagonalFactorizationStatus.SUCCESS
    assert fact.solve(np.zeros(0)).shape == (0,)


def test_full_constructor_matches_from_lower():
    rng = np.random.default_rng(4)
    block_size, num_blocks = 2, 6
    size = block_size * num_blocks
    A_rand = _random(rng, size, size)
    P = size * np.eye(size) + A_rand @ A_rand.T
    A, B, C = _lower_blocks(P, num_blocks, block_size)
    Z = np.zeros((block_size, block_size))
    D = [B[i + 1].T for i in range(num_blocks - 1)] + [Z]
    E = [A[i + 2].T for i in range(num_blocks - 2)] + [Z, Z]

    b = np.linspace(0.1, 1.1, size)
    full = PentaDiagonalFactorization(A, B, C, D, E).solve(b)
    lower = PentaDiagonalFactorization.from_lower(A, B, C).solve(b)
    np.testing.assert_allclose(full, lower, rtol=1e-14, atol=1e-14)


def test_non_symmetric_matrix_raises():
    k, n = 2, 3
    Z = np.zeros((k, k))
    eye = [np.eye(k)] * n
    B = [Z, np.ones((k, k)), np.ones((k, k))]
    D = [Z] * n
    with pytest.raises(ValueError):
        PentaDiagonalFactorization([Z] * n, B, eye, D, [Z] * n)


def test_mismatched_diagonals_raise():
    k = 2
    Z = np.zeros((k, k))
    with pytest.raises(ValueError):
        PentaDiagonalFactorization.from_lower([Z, Z], [Z, Z, Z], [np.eye(k)] * 3)


def test_singular_matrix_fails():
    k, n = 2, 3
    zeros = [np.zeros((k, k))] * n
    fact = PentaDiagonalFactorization.from_lower(zeros, zeros, zeros)
    assert fact.status() is PentaDiagonalFactorizationStatus.FAILURE
    with pytest.raises(RuntimeError):
        fact.solve(np.ones(k * n))


def test_wrong_rhs_size_raises():
    k = 2
    zeros = [np.zeros((k, k))] * 3
    fact = PentaDiagonalFactorization.from_lower(zeros, zeros, [np.eye(k)] * 3)
    with pytest.raises(ValueError):
        fact.solve_in_place(np.ones(5))


def test_solve_leaves_input_untouched():
    k = 2
    zeros = [np.zeros((k, k))] * 3
    fact = PentaDiagonalFactorization.from_lower(zeros, zeros, [2.0 * np.eye(k)] * 3)
    b = np.arange(6, dtype=float)
    x = fact.solve(b)
    np.testing.assert_array_equal(b, np.arange(6, dtype=float))
    np.testing.assert_allclose(2.0 * x, b)