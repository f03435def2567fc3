"""Discrete-time building blocks: a trapezoidal integrator and a minimum-jerk filter."""

from __future__ import annotations

import numpy as np


def _as_vector(value) -> np.ndarray:
    return np.atleast_1d(np.asarray(value, dtype=float)).copy()


def _check_positive(name: str, value: float) -> float:
    value = float(value)
    if value <= 0:
        raise ValueError(f"{name} has to be a positive number")
    return value


class Integrator:
    """Integrates a vector signal with the trapezoidal rule."""

    def __init__(self, sampling_time: float, initial) -> None:
        self._ts = _check_positive("sampling time", sampling_time)
        self.reset(initial)

    def integrate(self, velocity) -> np.ndarray:
        """Advance one sample with input ``velocity`` and return the new value."""
        velocity = _as_vector(velocity)
        if velocity.shape != self._value.shape:
            raise ValueError(
                f"expected an input of shape {self._value.shape}, got {velocity.shape}"
            )
        self._value = self._value + self._ts * (velocity + self._previous) / 2.0
        self._previous = velocity
        return self._value.copy()

    def reset(self, value) -> None:
        """Restart the integration from ``value``."""
        self._value = _as_vector(value)
        self._previous = np.zeros_like(self._value)

    @property
    def value(self) -> np.ndarray:
        """Current integrated value."""
        return self._value.copy()


class MinimumJerkFilter:
    """Drives its output toward a target along minimum-jerk trajectories.

    Each time the target changes a new quintic segment is planned from the
    current position, velocity and acceleration, reaching the target at rest
    after ``smoothing_time`` seconds.
    """

    def __init__(self, sampling_time: float, smoothing_time: float, initial) -> None:
        self._ts = _check_positive("sampling time", sampling_time)
        self._duration = _check_positive("smoothing time", smoothing_time)
        self.reset(initial)

    def reset(self, value) -> None:
        """Place the filter at rest on ``value``."""
        position = _as_vector(value)
        zero = np.zeros_like(position)
        self._pos = position
        self._vel = zero.copy()
        self._acc = zero.copy()
        self._target = position.copy()
        self._coeffs = [position.copy()] + [zero.copy() for _ in range(5)]
        self._steps = 0

    def _plan(self, target: np.ndarray) -> None:
        x0, v0, a0 = self._pos, self._vel, self._acc
        t = self._duration
        d = target - x0
        c3 = (20 * d - 12 * v0 * t - 3 * a0 * t**2) / (2 * t**3)
        c4 = (-30 * d + 16 * v0 * t + 3 * a0 * t**2) / (2 * t**4)
        c5 = (12 * d - 6 * v0 * t - a0 * t**2) / (2 * t**5)
        self._coeffs = [x0.copy(), v0.copy(), a0 / 2.0, c3, c4, c5]
        self._target = target.copy()
        self._steps = 0

    def step(self, target) -> np.ndarray:
        """Advance one sample toward ``target`` and return the new position."""
        target = _as_vector(target)
        if target.shape != self._pos.shape:
            raise ValueError(
                f"expected a target of shape {self._pos.shape}, got {target.shape}"
            )
        if not np.array_equal(target, self._target):
            self._plan(target)
        self._steps += 1
        t = min(self._steps * self._ts, self._duration)
        c = self._coeffs
        self._pos = c[0] + c[1] * t + c[2] * t**2 + c[3] * t**3 + c[4] * t**4 + c[5] * t**5
        self._vel = c[1] + 2 * c[2] * t + 3 * c[3] * t**2 + 4 * c[4] * t**3 + 5 * c[5] * t**4
        self._acc = 2 * c[2] + 6 * c[3] * t + 12 * c[4] * t**2 + 20 * c[5] * t**3
        return self._pos.copy()

    @property
    def position(self) -> np.ndarray:
        """Current filter output."""
        return self._pos.copy()