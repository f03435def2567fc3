"""Constant matrices of the DCM model predictive control problem."""

from __future__ import annotations

import numpy as np
from scipy.linalg import block_diag

# Entries with magnitude at or below this are dropped from computed products.
_PRUNE_THRESHOLD = 0.00001 * 1e-12


def _prune(matrix: np.ndarray) -> np.ndarray:
    result = np.array(matrix, dtype=float)
    result[np.abs(result) <= _PRUNE_THRESHOLD] = 0.0
    return result


def _square(matrix, name: str) -> np.ndarray:
    array = np.asarray(matrix, dtype=float)
    if array.ndim != 2 or array.shape[0] != array.shape[1]:
        raise ValueError(f"the {name} has to be a square matrix")
    return array


def weight_from_triplets(values, size: int) -> np.ndarray:
    """Build a ``size`` x ``size`` matrix from ``(row, column, value)`` triplets.

    ``values`` is either a flat sequence whose length is a multiple of three or
    a sequence of triples. Repeated positions are summed.
    """
    array = np.asarray(values, dtype=float)
    if array.size == 0:
        raise ValueError("no triplets were given")
    if array.ndim == 1:
        if array.size % 3:
            raise ValueError("the number of values has to be a multiple of three")
        array = array.reshape(-1, 3)
    elif array.ndim != 2 or array.shape[1] != 3:
        raise ValueError("triplets have to hold a row, a column and a value")
    indices = array[:, :2]
    if not np.all(np.equal(np.mod(indices, 1), 0)):
        raise ValueError("triplet rows and columns have to be integers")
    rows = indices[:, 0].astype(int)
    cols = indices[:, 1].astype(int)
    if rows.min() < 0 or cols.min() < 0 or rows.max() >= size or cols.max() >= size:
        raise ValueError(f"triplet indices have to lie within a {size}x{size} matrix")
    matrix = np.zeros((size, size))
    np.add.at(matrix, (rows, cols), array[:, 2])
    return matrix


def theta_matrix(input_size: int, horizon: int) -> np.ndarray:
    """Difference operator mapping stacked inputs to their step-to-step changes."""
    if input_size <= 0 or horizon <= 0:
        raise ValueError("input size and horizon have to be positive")
    dimension = input_size * horizon
    return np.eye(dimension) - np.eye(dimension, k=-input_size)


def stacked_block_diagonal(block, count: int) -> np.ndarray:
    """``diag(block, block, ..., block)`` with ``count`` copies."""
    if count <= 0:
        raise ValueError("the number of blocks has to be positive")
    return np.kron(np.eye(count), _square(block, "block"))


def hessian_input_submatrix(input_weight_stacked, theta) -> np.ndarray:
    """Input block of the Hessian, ``theta' R theta``."""
    weight = _square(input_weight_stacked, "input weight matrix")
    theta = _square(theta, "theta matrix")
    if weight.shape != theta.shape:
        raise ValueError("the input weight and theta matrices have to be the same size")
    return _prune(theta.T @ weight @ theta)


def hessian_matrix(state_weight_stacked, input_submatrix) -> np.ndarray:
    """Block-diagonal Hessian with the state block first and the input block after it."""
    return block_diag(
        _square(state_weight_stacked, "state weight matrix"),
        _square(input_submatrix, "input submatrix"),
    )


def gradient_submatrix(input_weight_stacked, theta, input_size: int) -> np.ndarray:
    """Matrix ``-theta' R e1`` that maps the previous input to the input gradient."""
    weight = _square(input_weight_stacked, "input weight matrix")
    theta = _square(theta, "theta matrix")
    if weight.shape != theta.shape:
        raise ValueError("the input weight and theta matrices have to be the same size")
    if input_size <= 0 or input_size > theta.shape[0]:
        raise ValueError("the input size does not fit the theta matrix")
    e1 = np.eye(theta.shape[0], input_size)
    return _prune(-(theta.T @ weight @ e1))


def equality_constraints_matrix(
    state_dynamics, input_dynamics, state_size: int, input_size: int, horizon: int
) -> np.ndarray:
    """Rows encoding ``x[k+1] = A x[k] + B u[k]`` over the horizon.

    The variable is ``[x0, ..., xN, u0, ..., u(N-1)]``. The first block row is
    ``-x0`` so that fixing it to ``-x_measured`` pins the initial state.
    """
    a = np.asarray(state_dynamics, dtype=float)
    b = np.asarray(input_dynamics, dtype=float)
    if a.shape != (state_size, state_size):
        raise ValueError(f"the state dynamics matrix has to be {state_size}x{state_size}")
    if b.shape != (state_size, input_size):
        raise ValueError(f"the input dynamics matrix has to be {state_size}x{input_size}")
    if horizon <= 0:
        raise ValueError("the horizon has to be positive")
    n_state = state_size * (horizon + 1)
    matrix = np.zeros((n_state, n_state + input_size * horizon))
    matrix[:, :n_state] = -np.eye(n_state)
    for step in range(horizon):
        rows = slice((step + 1) * state_size, (step + 2) * state_size)
        state_cols = slice(step * state_size, (step + 1) * state_size)
        input_start = n_state + step * input_size
        matrix[rows, state_cols] += a
        matrix[rows, input_start : input_start + input_size] += b
    return matrix