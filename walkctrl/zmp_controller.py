"""ZMP/CoM tracking controller with optional gain scheduling."""

from __future__ import annotations

from collections.abc import Mapping
from numbers import Real

import numpy as np

from walkctrl.dynamics import Integrator, MinimumJerkFilter


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


class ZMPController:
    """Computes a desired CoM velocity from ZMP and CoM errors and integrates it.

    ``v = k_com (com_des - com) - k_zmp (zmp_des - zmp) + com_vel_des``; the
    output position is the integral of ``v``.
    """

    def __init__(
        self,
        k_com_walking: float,
        k_zmp_walking: float,
        sampling_time: float,
        *,
        use_gain_scheduling: bool = False,
        smoothing_time: float | None = None,
        k_com_stance: float | None = None,
        k_zmp_stance: float | None = None,
    ) -> None:
        if sampling_time < 0:
            raise ValueError("the sampling time has to be a positive number")
        self._k_com_walking = float(k_com_walking)
        self._k_zmp_walking = float(k_zmp_walking)
        self._use_gain_scheduling = bool(use_gain_scheduling)
        self._integrator = Integrator(sampling_time, np.zeros(2))

        if self._use_gain_scheduling:
            if smoothing_time is None or k_com_stance is None or k_zmp_stance is None:
                raise ValueError(
                    "gain scheduling needs the smoothing time and the stance gains"
                )
            self._k_com_stance = float(k_com_stance)
            self._k_zmp_stance = float(k_zmp_stance)
            self._k_com_smoother = MinimumJerkFilter(
                sampling_time, smoothing_time, [self._k_com_stance]
            )
            self._k_zmp_smoother = MinimumJerkFilter(
                sampling_time, smoothing_time, [self._k_zmp_stance]
            )
            self._k_com = self._k_com_stance
            self._k_zmp = self._k_zmp_stance
        else:
            self._k_com = self._k_com_walking
            self._k_zmp = self._k_zmp_walking

        self._zmp_feedback = np.zeros(2)
        self._com_feedback = np.zeros(2)
        self._zmp_desired = np.zeros(2)
        self._com_position_desired = np.zeros(2)
        self._com_velocity_desired = np.zeros(2)
        self._output_position = np.zeros(2)
        self._output_velocity = np.zeros(2)
        self._control_evaluated = False

    @classmethod
    def from_config(cls, config: Mapping) -> ZMPController:
        """Build from ``kCoM_walking``, ``kZMP_walking``, ``sampling_time`` and,
        when ``useGainScheduling`` is true, ``smoothingTime``, ``kCoM_stance``
        and ``kZMP_stance``."""
        if not config:
            raise ValueError("empty configuration for the ZMP controller")
        use_gain_scheduling = bool(config.get("useGainScheduling", False))
        k_com_walking = _number(config, "kCoM_walking")
        k_zmp_walking = _number(config, "kZMP_walking")
        sampling_time = _number(config, "sampling_time")
        if sampling_time < 0:
            raise ValueError("the sampling time has to be a positive number")
        extra = {}
        if use_gain_scheduling:
            extra = {
                "smoothing_time": _number(config, "smoothingTime"),
                "k_com_stance": _number(config, "kCoM_stance"),
                "k_zmp_stance": _number(config, "kZMP_stance"),
            }
        return cls(
            k_com_walking,
            k_zmp_walking,
            sampling_time,
            use_gain_scheduling=use_gain_scheduling,
            **extra,
        )

    @property
    def k_com(self) -> float:
        """CoM gain currently in use."""
        return self._k_com

    @property
    def k_zmp(self) -> float:
        """ZMP gain currently in use."""
        return self._k_zmp

    def set_phase(self, is_stance_phase: bool) -> None:
        """Move the scheduled gains one sample toward the stance or walking values."""
        if not self._use_gain_scheduling:
            return
        if is_stance_phase:
            com_target, zmp_target = self._k_com_stance, self._k_zmp_stance
        else:
            com_target, zmp_target = self._k_com_walking, self._k_zmp_walking
        self._k_com = float(self._k_com_smoother.step([com_target])[0])
        self._k_zmp = float(self._k_zmp_smoother.step([zmp_target])[0])

    def set_feedback(self, zmp_feedback, com_feedback) -> None:
        """Set the measured ZMP and CoM; only the XY part of the CoM is used."""
        self._zmp_feedback = _vector2(zmp_feedback)
        com = np.asarray(com_feedback, dtype=float).reshape(-1)
        if com.size < 2:
            raise ValueError("the CoM feedback needs at least two components")
        self._com_feedback = com[:2].copy()

    def set_reference(self, zmp_desired, com_position_desired, com_velocity_desired) -> None:
        """Set the desired ZMP, CoM position and CoM velocity."""
        self._zmp_desired = _vector2(zmp_desired)
        self._com_position_desired = _vector2(com_position_desired)
        self._com_velocity_desired = _vector2(com_velocity_desired)

    def evaluate_control(self) -> tuple[np.ndarray, np.ndarray]:
        """Evaluate the control law; return the output position and velocity."""
        self._control_evaluated = False
        velocity = (
            self._k_com * (self._com_position_desired - self._com_feedback)
            - self._k_zmp * (self._zmp_desired - self._zmp_feedback)
            + self._com_velocity_desired
        )
        self._output_velocity = velocity
        self._output_position = self._integrator.integrate(velocity)
        self._control_evaluated = True
        return self._output_position.copy(), self._output_velocity.copy()

    @property
    def output(self) -> tuple[np.ndarray, np.ndarray]:
        """Output position and velocity of the last evaluation."""
        if not self._control_evaluated:
            raise RuntimeError("evaluate_control() has to be called first")
        return self._output_position.copy(), self._output_velocity.copy()

    def reset(self, initial_value) -> None:
        """Restart the integrator from ``initial_value``."""
        self._integrator.reset(_vector2(initial_value))