"""Reactive DCM tracking controller."""

from __future__ import annotations

import math
from collections.abc import Mapping
from numbers import Real

import numpy as np


def _number(config: Mapping, key: str) -> float:
    if key not in config:
        raise ValueError(f"missing parameter {key!r}")
    value = config[key]
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValueError(f"parameter {key!r} has to be a number")
    return float(value)


def _vector2(value) -> np.ndarray:
    vector = np.asarray(value, dtype=float).reshape(-1)
    if vector.shape != (2,):
        raise ValueError("expected a vector of size 2")
    return vector.copy()


class DCMReactiveController:
    """Computes ``u = dcm_des - dcm_vel_des / omega - k_dcm (dcm_des - dcm)``."""

    def __init__(
        self, k_dcm: float, com_height: float, gravity_acceleration: float = 9.81
    ) -> None:
        if com_height <= 0:
            raise ValueError("the CoM height has to be a positive number")
        self.k_dcm = float(k_dcm)
        self._omega = math.sqrt(gravity_acceleration / com_height)
        self._dcm_feedback = np.zeros(2)
        self._dcm_position_desired = np.zeros(2)
        self._dcm_velocity_desired = np.zeros(2)
        self._output = np.zeros(2)

    @classmethod
    def from_config(cls, config: Mapping) -> DCMReactiveController:
        """Build from ``kDCM``, ``com_height`` and optional ``gravity_acceleration``."""
        if not config:
            raise ValueError("empty configuration for the DCM controller")
        return cls(
            _number(config, "kDCM"),
            _number(config, "com_height"),
            _number(config, "gravity_acceleration") if "gravity_acceleration" in config else 9.81,
        )

    def set_feedback(self, dcm_feedback) -> None:
        """Set the measured DCM position."""
        self._dcm_feedback = _vector2(dcm_feedback)

    def set_reference(self, dcm_position_desired, dcm_velocity_desired) -> None:
        """Set the desired DCM position and velocity."""
        self._dcm_position_desired = _vector2(dcm_position_desired)
        self._dcm_velocity_desired = _vector2(dcm_velocity_desired)

    def evaluate_control(self) -> np.ndarray:
        """Evaluate the control law and return the controller output."""
        desired = self._dcm_position_desired
        self._output = (
            desired
            - self._dcm_velocity_desired / self._omega
            - self.k_dcm * (desired - self._dcm_feedback)
        )
        return self._output.copy()

    @property
    def output(self) -> np.ndarray:
        """Output of the last evaluation."""
        return self._output.copy()