"""Model predictive controller of the divergent component of motion."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from numbers import Real

import numpy as np

from walkctrl.convex_hull import ConvexHullProjection, rectangle_from_offsets
from walkctrl.mpc_matrices import (
    equality_constraints_matrix,
    gradient_submatrix,
    hessian_input_submatrix,
    hessian_matrix,
    stacked_block_diagonal,
    theta_matrix,
    weight_from_triplets,
)
from walkctrl.mpc_solver import MPCSolver, SolverError

_STATE_SIZE = 2
_INPUT_SIZE = 2


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _number(config: Mapping, key: str, default: float | None = None) -> float:
    if key not in config:
        if default is None:
            raise ValueError(f"missing parameter {key!r}")
        return float(default)
    value = config[key]
    if not _is_number(value):
        raise ValueError(f"parameter {key!r} has to be a number")
    return float(value)


def _pair(value, what: str) -> tuple[float, float]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValueError(f"the {what} has to be a list")
    if len(value) != 2:
        raise ValueError(f"the {what} has to hold two elements")
    if not all(_is_number(item) for item in value):
        raise ValueError(f"the {what} has to hold numbers")
    return float(value[0]), float(value[1])


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _first(values: Iterable, what: str):
    for item in values:
        return item
    raise ValueError(f"the {what} sequence is empty")


class DCMModelPredictiveController:
    """Tracks a DCM reference by choosing the ZMP inside the support polygon.

    A new quadratic program is set up each time the contact status of the
    feet changes; its inequality constraints keep the ZMP inside the convex
    hull of the feet in contact.
    """

    def __init__(
        self,
        initial_zmp_position,
        com_height: float,
        foot_size,
        state_weight,
        input_weight,
        *,
        sampling_time: float = 0.016,
        controller_horizon: float = 2.0,
        gravity_acceleration: float = 9.81,
        convex_hull_tolerance: float = 0.01,
    ) -> None:
        output = np.asarray(initial_zmp_position, dtype=float).reshape(-1)
        if output.size != _INPUT_SIZE:
            raise ValueError("the initial ZMP position has to have size 2")
        if sampling_time <= 0:
            raise ValueError("the sampling time has to be a positive number")
        if com_height <= 0:
            raise ValueError("the CoM height has to be a positive number")
        horizon = _round_half_away(controller_horizon / sampling_time)
        if horizon <= 0:
            raise ValueError("the controller horizon has to last at least one sample")

        self._output = output.copy()
        self._horizon = horizon
        self._state_weight = np.asarray(state_weight, dtype=float)
        if self._state_weight.shape != (_STATE_SIZE, _STATE_SIZE):
            raise ValueError("the state weight has to be a 2x2 matrix")
        input_weight = np.asarray(input_weight, dtype=float)
        if input_weight.shape != (_INPUT_SIZE, _INPUT_SIZE):
            raise ValueError("the input weight has to be a 2x2 matrix")

        theta = theta_matrix(_INPUT_SIZE, horizon)
        input_stacked = stacked_block_diagonal(input_weight, horizon)
        state_stacked = stacked_block_diagonal(self._state_weight, horizon + 1)
        self._hessian = hessian_matrix(
            state_stacked, hessian_input_submatrix(input_stacked, theta)
        )
        self._gradient_submatrix = gradient_submatrix(input_stacked, theta, _INPUT_SIZE)

        omega = math.sqrt(gravity_acceleration / com_height)
        decay = math.exp(omega * sampling_time)
        self._equality = equality_constraints_matrix(
            decay * np.eye(_STATE_SIZE),
            (1 - decay) * np.eye(_STATE_SIZE, _INPUT_SIZE),
            _STATE_SIZE,
            _INPUT_SIZE,
            horizon,
        )

        (x1, x2), (y1, y2) = foot_size
        self._foot = rectangle_from_offsets(
            abs(max(x1, x2)), abs(min(x1, x2)), abs(max(y1, y2)), abs(min(y1, y2))
        )
        self._tolerance = float(convex_hull_tolerance)
        self._hull = ConvexHullProjection()
        self._solver: MPCSolver | None = None
        self._feet_status = (False, False)
        self.reset()

    @classmethod
    def from_config(cls, config: Mapping) -> DCMModelPredictiveController:
        """Build from a configuration mapping.

        Required: ``initial_zmp_position``, ``stateWeightTriplets``,
        ``inputWeightTriplets``, ``com_height`` and ``foot_size``; optional:
        ``sampling_time``, ``controllerHorizon`` (seconds),
        ``gravity_acceleration`` and ``convex_hull_tolerance``.
        """
        if not config:
            raise ValueError("empty configuration for the walking controller")
        if config.get("initial_zmp_position") is None:
            raise ValueError("empty initial ZMP position")
        initial = _pair(config["initial_zmp_position"], "initial ZMP position")

        sampling_time = _number(config, "sampling_time", 0.016)
        horizon_seconds = _number(config, "controllerHorizon", 2.0)

        triplets = {}
        for key, size in (("stateWeightTriplets", _STATE_SIZE), ("inputWeightTriplets", _INPUT_SIZE)):
            if config.get(key) is None:
                raise ValueError(f"missing parameter {key!r}")
            triplets[key] = weight_from_triplets(config[key], size)

        com_height = _number(config, "com_height")
        gravity = _number(config, "gravity_acceleration", 9.81)

        feet = config.get("foot_size")
        if feet is None or isinstance(feet, (str, bytes)) or not isinstance(feet, Sequence):
            raise ValueError("the foot_size has to be set in the configuration")
        if len(feet) != 2:
            raise ValueError("the foot_size has to hold the X and the Y limits")
        x_limits = _pair(feet[0], "X limits")
        y_limits = _pair(feet[1], "Y limits")

        return cls(
            initial,
            com_height,
            (x_limits, y_limits),
            triplets["stateWeightTriplets"],
            triplets["inputWeightTriplets"],
            sampling_time=sampling_time,
            controller_horizon=horizon_seconds,
            gravity_acceleration=gravity,
            convex_hull_tolerance=_number(config, "convex_hull_tolerance", 0.01),
        )

    @property
    def horizon(self) -> int:
        """Controller horizon in samples."""
        return self._horizon

    def set_convex_hull_constraint(
        self, left_foot, right_foot, left_in_contact, right_in_contact
    ) -> None:
        """Rebuild the support polygon and the QP when the contact status changes.

        Only the first element of each sequence is used: the 4x4 foot poses
        and the contact flags of the current sample.
        """
        status = (
            bool(_first(left_in_contact, "left contact")),
            bool(_first(right_in_contact, "right contact")),
        )
        if status == self._feet_status:
            return
        self._feet_status = status

        if status == (True, True):
            self._hull.build(
                [self._foot, self._foot],
                [_first(left_foot, "left foot"), _first(right_foot, "right foot")],
            )
        elif status == (True, False):
            self._hull.build([self._foot], [_first(left_foot, "left foot")])
        elif status == (False, True):
            self._hull.build([self._foot], [_first(right_foot, "right foot")])
        else:
            raise ValueError("no foot is in contact")

        solver = MPCSolver(
            _STATE_SIZE,
            _INPUT_SIZE,
            self._horizon,
            self._hull.A.shape[0],
            self._equality,
            self._gradient_submatrix,
            self._state_weight,
        )
        solver.set_hessian(self._hessian)
        solver.set_constraints_matrix(self._hull.A)
        self._solver = solver

    def _current_solver(self) -> MPCSolver:
        if self._solver is None:
            raise RuntimeError("set_convex_hull_constraint() has to be called first")
        return self._solver

    def set_feedback(self, current_state) -> None:
        """Set the measured DCM."""
        self._current_solver().set_bounds(current_state, self._hull.b)

    def set_reference_signal(self, reference_signal, reset_trajectory: bool) -> None:
        """Set the DCM reference over the horizon; a short one is held at its end."""
        self._current_solver().set_gradient(
            list(reference_signal), self._output, reset_trajectory
        )

    def solve(self) -> np.ndarray:
        """Solve the problem, initializing the solver if needed; return the ZMP."""
        solver = self._current_solver()
        if not solver.is_initialized():
            solver.initialize()
        solution = solver.solve()
        start = _STATE_SIZE * (self._horizon + 1)
        self._output = solution[start : start + _INPUT_SIZE].copy()
        if self._hull.margin(self._output) < -self._tolerance:
            raise SolverError("the evaluated ZMP is outside the convex hull")
        return self._output.copy()

    @property
    def output(self) -> np.ndarray:
        """Output of the controller: the desired ZMP."""
        return self._output.copy()

    def reset(self) -> None:
        """Forget the contact status so that the next constraint call rebuilds the QP."""
        self._feet_status = (False, False)