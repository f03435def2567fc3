"""Quadratic program that carries the DCM model predictive controller."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from scipy.optimize import minimize


class SolverError(RuntimeError):
    """Raised when the quadratic program cannot be set up or solved."""


def _dense(matrix) -> np.ndarray:
    if hasattr(matrix, "toarray"):
        matrix = matrix.toarray()
    return np.atleast_2d(np.asarray(matrix, dtype=float))


def _embed(matrix, shape: tuple[int, int], name: str) -> np.ndarray:
    dense = _dense(matrix)
    if dense.size == 0:
        return np.zeros(shape)
    rows, cols = dense.shape
    if rows > shape[0] or cols > shape[1]:
        raise ValueError(f"the {name} does not fit in a {shape[0]}x{shape[1]} matrix")
    out = np.zeros(shape)
    out[:rows, :cols] = dense
    return out


class MPCSolver:
    """QP ``min 1/2 x'Hx + q'x`` subject to ``l <= Ax <= u``.

    The variable stacks the states over the horizon (``horizon + 1`` of them)
    followed by the inputs (``horizon`` of them). The first block of rows of
    ``A`` are the dynamics equalities; the remaining rows are inequality
    constraints acting on the first input.
    """

    def __init__(
        self,
        state_size: int,
        input_size: int,
        horizon: int,
        number_of_inequality_constraints: int,
        equality_constraints,
        gradient_submatrix,
        state_weight,
    ) -> None:
        if state_size <= 0 or input_size <= 0 or horizon <= 0:
            raise ValueError("sizes and horizon have to be positive")
        if number_of_inequality_constraints < 0:
            raise ValueError("the number of inequality constraints cannot be negative")
        self._state_size = int(state_size)
        self._input_size = int(input_size)
        self._horizon = int(horizon)
        self._n_ineq = int(number_of_inequality_constraints)

        self._n_state = self._state_size * (self._horizon + 1)
        self._n_vars = self._n_state + self._input_size * self._horizon
        self._n_constraints = self._n_state + self._n_ineq

        self._equality = _embed(
            equality_constraints, (self._n_state, self._n_vars), "equality constraints matrix"
        )
        self._gradient_submatrix = _embed(
            gradient_submatrix,
            (self._input_size * self._horizon, self._input_size),
            "gradient submatrix",
        )
        self._state_weight = _embed(
            state_weight, (self._state_size, self._state_size), "state weight matrix"
        )

        self._gradient = np.zeros(self._n_vars)
        self._lower = np.zeros(self._n_constraints)
        self._upper = np.zeros(self._n_constraints)
        self._lower[self._n_state:] = -np.inf

        self._hessian: np.ndarray | None = None
        self._constraints: np.ndarray | None = None
        self._bounds_set = False
        self._gradient_set = False
        self._initialized = False
        self._primal = np.zeros(self._n_vars)
        self._solution: np.ndarray | None = None

    def set_hessian(self, hessian) -> None:
        """Set the Hessian; it is constant and may be set only before initialization."""
        if self._initialized:
            raise SolverError("the Hessian matrix is constant and cannot be updated")
        dense = _dense(hessian)
        if dense.shape != (self._n_vars, self._n_vars):
            raise ValueError(
                f"the Hessian has to be {self._n_vars}x{self._n_vars}, got {dense.shape}"
            )
        self._hessian = dense.copy()

    def set_constraints_matrix(self, inequality_matrix) -> None:
        """Set or update the constraints matrix from the inequality rows ``C u0 <= b``."""
        inequality = np.asarray(
            inequality_matrix.toarray() if hasattr(inequality_matrix, "toarray") else inequality_matrix,
            dtype=float,
        )
        if inequality.ndim != 2 or inequality.shape[0] != self._n_ineq:
            raise ValueError(
                f"the inequality matrix has to have {self._n_ineq} rows"
            )
        if inequality.shape[1] > self._n_vars - self._n_state:
            raise ValueError("the inequality matrix has too many columns")
        matrix = np.zeros((self._n_constraints, self._n_vars))
        matrix[: self._n_state] = self._equality
        matrix[
            self._n_state :, self._n_state : self._n_state + inequality.shape[1]
        ] = inequality
        self._constraints = matrix

    def set_bounds(self, current_state, inequality_vector) -> None:
        """Set the initial-state equality and the inequality right-hand side."""
        state = np.asarray(current_state, dtype=float).reshape(-1)
        if state.size != self._state_size:
            raise ValueError(f"the current state has to have size {self._state_size}")
        vector = np.asarray(inequality_vector, dtype=float).reshape(-1)
        if vector.size != self._n_ineq:
            raise ValueError(
                f"the inequality vector has to have size {self._n_ineq}"
            )
        self._lower[: self._state_size] = -state
        self._upper[: self._state_size] = -state
        self._upper[self._n_state :] = vector
        self._bounds_set = True

    def set_gradient(
        self, reference_signal: Sequence, previous_output, reset_trajectory: bool
    ) -> None:
        """Set or update the gradient from the state reference over the horizon.

        A reference shorter than the horizon is held at its last value. Once
        the solver is initialized and no reset is asked, the state part of the
        gradient is shifted by one step and only the last block is recomputed.
        """
        size = self._state_size
        references = [np.asarray(r, dtype=float).reshape(-1) for r in reference_signal]
        if not references:
            raise ValueError("the reference signal is empty")
        if any(r.size != size for r in references):
            raise ValueError(f"every reference has to have size {size}")
        output = np.asarray(previous_output, dtype=float).reshape(-1)
        if output.size != self._input_size:
            raise ValueError(f"the previous output has to have size {self._input_size}")

        horizon = self._horizon
        weight = self._state_weight
        if not self._initialized or reset_trajectory:
            blocks = [references[min(i, len(references) - 1)] for i in range(horizon + 1)]
            self._gradient[: self._n_state] = -(np.array(blocks) @ weight.T).reshape(-1)
        else:
            self._gradient[: horizon * size] = self._gradient[size : self._n_state].copy()
            last = references[horizon] if len(references) > horizon else references[-1]
            self._gradient[horizon * size : self._n_state] = -weight @ last

        self._gradient[self._n_state :] = self._gradient_submatrix @ output
        self._gradient_set = True

    def is_initialized(self) -> bool:
        """Whether the solver has been initialized."""
        return self._initialized

    def initialize(self) -> None:
        """Check that the whole problem has been given and make the solver ready."""
        missing = [
            name
            for name, given in (
                ("Hessian", self._hessian is not None),
                ("constraints matrix", self._constraints is not None),
                ("bounds", self._bounds_set),
                ("gradient", self._gradient_set),
            )
            if not given
        ]
        if missing:
            raise SolverError("unable to initialize the solver, missing: " + ", ".join(missing))
        self._initialized = True

    def solve(self) -> np.ndarray:
        """Solve the QP, warm-started from the primal variable, and return the solution."""
        if not self._initialized:
            raise SolverError("the solver is not initialized")
        hessian = self._hessian
        gradient = self._gradient.copy()
        matrix = self._constraints
        lower, upper = self._lower, self._upper

        equal = np.isclose(lower, upper) & np.isfinite(lower)
        constraints = []
        if equal.any():
            a_eq, b_eq = matrix[equal], upper[equal]
            constraints.append(
                {"type": "eq", "fun": lambda x: a_eq @ x - b_eq, "jac": lambda x: a_eq}
            )
        has_upper = ~equal & np.isfinite(upper)
        if has_upper.any():
            a_up, b_up = matrix[has_upper], upper[has_upper]
            constraints.append(
                {"type": "ineq", "fun": lambda x: b_up - a_up @ x, "jac": lambda x: -a_up}
            )
        has_lower = ~equal & np.isfinite(lower)
        if has_lower.any():
            a_lo, b_lo = matrix[has_lower], lower[has_lower]
            constraints.append(
                {"type": "ineq", "fun": lambda x: a_lo @ x - b_lo, "jac": lambda x: a_lo}
            )

        result = minimize(
            lambda x: 0.5 * x @ hessian @ x + gradient @ x,
            self._primal,
            jac=lambda x: hessian @ x + gradient,
            constraints=constraints,
            method="SLSQP",
            options={"maxiter": 1000, "ftol": 1e-12},
        )
        if not result.success:
            raise SolverError(f"unable to solve the problem: {result.message}")
        self._solution = np.asarray(result.x, dtype=float)
        self._primal = self._solution.copy()
        return self._solution.copy()

    @property
    def solution(self) -> np.ndarray:
        """Whole solution vector of the last solve."""
        if self._solution is None:
            raise SolverError("no solution is available")
        return self._solution.copy()

    @property
    def primal_variable(self) -> np.ndarray:
        """Primal variable used to warm-start the next solve."""
        if not self._initialized:
            raise SolverError("the solver is not initialized")
        return self._primal.copy()

    @primal_variable.setter
    def primal_variable(self, value) -> None:
        if not self._initialized:
            raise SolverError("the solver is not initialized")
        vector = np.asarray(value, dtype=float).reshape(-1)
        if vector.size != self._n_vars:
            raise ValueError(f"the primal variable has to have size {self._n_vars}")
        self._primal = vector.copy()