"""Centre-of-mass dynamics driven by the divergent component of motion."""

from __future__ import annotations

import math
from collections.abc import Mapping
from numbers import Real

import numpy as np

from walkctrl.dynamics import Integrator


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


class StableDCMModel:
    """Integrates the stable CoM dynamics ``dx/dt = -omega (x - dcm)``."""

    def __init__(
        self, com_height: float, sampling_time: float, gravity_acceleration: float = 9.81
    ) -> None:
        if com_height <= 0:
            raise ValueError("the CoM height has to be a positive number")
        self._omega = math.sqrt(gravity_acceleration / com_height)
        self._integrator = Integrator(sampling_time, np.zeros(2))
        self._dcm_position = np.zeros(2)
        self._com_position = np.zeros(2)
        self._com_velocity = np.zeros(2)

    @classmethod
    def from_config(cls, config: Mapping) -> StableDCMModel:
        """Build from ``com_height``, ``sampling_time`` and optional ``gravity_acceleration``."""
        if not config:
            raise ValueError("empty configuration for the DCM model")
        return cls(
            _number(config, "com_height"),
            _number(config, "sampling_time"),
            _number(config, "gravity_acceleration") if "gravity_acceleration" in config else 9.81,
        )

    def set_input(self, dcm_position) -> None:
        """Set the DCM position that drives the CoM."""
        self._dcm_position = _vector2(dcm_position)

    def integrate(self) -> np.ndarray:
        """Advance the model by one sample and return the new CoM position."""
        self._com_velocity = -self._omega * (self._com_position - self._dcm_position)
        self._com_position = self._integrator.integrate(self._com_velocity)
        return self._com_position.copy()

    def reset(self, initial_value) -> None:
        """Restart the model with the CoM at ``initial_value``."""
        position = _vector2(initial_value)
        self._integrator.reset(position)
        self._com_position = position

    @property
    def com_position(self) -> np.ndarray:
        """Current CoM position."""
        return self._com_position.copy()

    @property
    def com_velocity(self) -> np.ndarray:
        """CoM velocity used in the last integration step."""
        return self._com_velocity.copy()