import numpy as np
import pytest

from walkctrl.mpc_solver import MPCSolver, SolverError

A_DYN = 1.2
B_DYN = -0.2
STATE = np.array([0.05, -0.03])
PREVIOUS = np.array([0.0, 0.0])
BOX = np.array([[1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0]])


def make_solver(horizon=2, n_ineq=0, gradient_submatrix=None):
    n_state = 2 * (horizon + 1)
    n_vars = n_state + 2 * horizon
    equality = np.zeros((n_state, n_vars))
    equality[:, :n_state] = -np.eye(n_state)
    for k in range(horizon):
        rows = slice(2 * (k + 1), 2 * (k + 2))
        equality[rows, 2 * k : 2 * (k + 1)] = A_DYN * np.eye(2)
        equality[rows, n_state + 2 * k : n_state + 2 * (k + 1)] = B_DYN * np.eye(2)
    if gradient_submatrix is None:
        gradient_submatrix = np.zeros((2 * horizon, 2))
    solver = MPCSolver(2, 2, horizon, n_ineq, equality, gradient_submatrix, np.eye(2))
    solver.set_hessian(np.eye(n_vars))
    return solver, equality


def ready_solver(reference, horizon=2, n_ineq=0, matrix=None, vector=None):
    solver, equality = make_solver(horizon, n_ineq)
    solver.set_constraints_matrix(np.zeros((0, 2)) if matrix is None else matrix)
    solver.set_bounds(STATE, [] if vector is None else vector)
    solver.set_gradient(reference, PREVIOUS, True)
    solver.initialize()
    return solver, equality


def test_solution_satisfies_dynamics_and_initial_state():
    solver, equality = ready_solver([[0.3, 0.1]] * 3)
    x = solver.solve()
    expected = np.concatenate([-STATE, np.zeros(4)])
    np.testing.assert_allclose(equality @ x, expected, atol=1e-7)
    np.testing.assert_allclose(x[:2], STATE, atol=1e-7)


def test_solution_is_optimal_for_equality_problem():
    reference = [[0.3, 0.1], [0.2, 0.0], [0.1, -0.1]]
    solver, equality = ready_solver(reference)
    x = solver.solve()
    gradient = x.copy()
    gradient[:6] -= np.array(reference).reshape(-1)
    multipliers, *_ = np.linalg.lstsq(equality.T, -gradient, rcond=None)
    np.testing.assert_allclose(equality.T @ multipliers, -gradient, atol=1e-5)


def test_inequality_constraints_bound_first_input():
    reference = [[10.0, 10.0]] * 3
    bounded, _ = ready_solver(
        reference, n_ineq=4, matrix=BOX, vector=[0.1, 0.1, 0.1, 0.1]
    )
    free, _ = ready_solver(reference)
    first_input = bounded.solve()[6:8]
    free_first_input = free.solve()[6:8]
    np.testing.assert_array_less(np.abs(first_input), 0.1 + 1e-6)
    assert float(np.max(np.abs(free_first_input))) > 0.1


def test_solution_property_matches_solve():
    solver, _ = ready_solver([[0.3, 0.1]] * 3)
    x = solver.solve()
    np.testing.assert_allclose(solver.solution, x)
    np.testing.assert_allclose(solver.primal_variable, x)


def test_short_reference_is_held_constant():
    short, _ = ready_solver([[0.3, 0.1]])
    full, _ = ready_solver([[0.3, 0.1]] * 3)
    np.testing.assert_allclose(short.solve(), full.solve(), atol=1e-6)


def test_gradient_shift_after_initialization():
    r = [[0.1, 0.0], [0.2, 0.1], [0.3, 0.2], [0.4, 0.3]]
    shifted, _ = ready_solver(r[:3])
    shifted.set_gradient(r[1:4], PREVIOUS, False)
    direct, _ = ready_solver(r[1:4])
    np.testing.assert_allclose(shifted.solve(), direct.solve(), atol=1e-6)


def test_reset_trajectory_recomputes_gradient():
    reset, _ = ready_solver([[0.5, 0.5]] * 3)
    reset.set_gradient([[0.1, -0.2]] * 3, PREVIOUS, True)
    direct, _ = ready_solver([[0.1, -0.2]] * 3)
    np.testing.assert_allclose(reset.solve(), direct.solve(), atol=1e-6)


def test_is_initialized_changes_after_initialize():
    solver, _ = make_solver()
    assert solver.is_initialized() is False
    solver.set_constraints_matrix(np.zeros((0, 2)))
    solver.set_bounds(STATE, [])
    solver.set_gradient([[0.0, 0.0]], PREVIOUS, True)
    solver.initialize()
    assert solver.is_initialized() is True


def test_initialize_without_data_raises():
    solver, _ = make_solver()
    with pytest.raises(SolverError):
        solver.initialize()


def test_solve_before_initialize_raises():
    solver, _ = make_solver()
    with pytest.raises(SolverError):
        solver.solve()


def test_solution_before_solve_raises():
    solver, _ = ready_solver([[0.0, 0.0]])
    with pytest.raises(SolverError):
        _ = solver.solution
    x = solver.solve()
    np.testing.assert_allclose(solver.solution, x)


def test_primal_variable_before_initialize_raises():
    solver, _ = make_solver()
    with pytest.raises(SolverError):
        _ = solver.primal_variable
    assert solver.is_initialized() is False


def test_primal_variable_can_be_set():
    solver, _ = ready_solver([[0.0, 0.0]])
    solver.primal_variable = np.ones(10)
    np.testing.assert_allclose(solver.primal_variable, np.ones(10))


def test_primal_variable_wrong_size_raises():
    solver, _ = ready_solver([[0.0, 0.0]])
    with pytest.raises(ValueError):
        solver.primal_variable = np.ones(3)


def test_hessian_cannot_change_after_initialize():
    solver, _ = ready_solver([[0.0, 0.0]])
    with pytest.raises(SolverError):
        solver.set_hessian(np.eye(10))


def test_wrong_hessian_shape_raises():
    solver, _ = make_solver()
    with pytest.raises(ValueError):
        solver.set_hessian(np.eye(4))


def test_wrong_state_size_raises():
    solver, _ = make_solver()
    with pytest.raises(ValueError):
        solver.set_bounds([0.0, 0.0, 0.0], [])


def test_wrong_inequality_vector_size_raises():
    solver, _ = make_solver(n_ineq=4)
    with pytest.raises(ValueError):
        solver.set_bounds(STATE, [0.1, 0.1])


def test_wrong_inequality_matrix_rows_raises():
    solver, _ = make_solver(n_ineq=2)
    with pytest.raises(ValueError):
        solver.set_constraints_matrix(BOX)


def test_empty_reference_raises():
    solver, _ = make_solver()
    with pytest.raises(ValueError):
        solver.set_gradient([], PREVIOUS, True)


def test_infeasible_problem_raises():
    incompatible = np.array([[1.0, 0.0], [-1.0, 0.0]])
    solver, _ = ready_solver(
        [[0.0, 0.0]] * 3, n_ineq=2, matrix=incompatible, vector=[-1.0, -1.0]
    )
    with pytest.raises(SolverError):
        solver.solve()