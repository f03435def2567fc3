# walkctrl

Controllers and models for bipedal walking built on the linear inverted
pendulum and the divergent component of motion (DCM). Vectors are plain
sequences or NumPy arrays; configuration objects are plain mappings.

## Modules

- `walkctrl.dcm_reactive.DCMReactiveController` – reactive DCM tracking law
  `u = dcm_des - dcm_dot_des / omega - k_dcm * (dcm_des - dcm)`, with
  `omega = sqrt(g / com_height)`.
- `walkctrl.zmp_controller.ZMPController` – computes a desired CoM velocity
  `k_com (com_des - com) - k_zmp (zmp_des - zmp) + com_vel_des` and integrates
  it to a CoM position. With gain scheduling, `set_phase()` moves the gains
  toward the stance or the walking values through a `MinimumJerkFilter`.
- `walkctrl.stable_dcm_model.StableDCMModel` – integrates the stable CoM
  dynamics `com_dot = -omega * (com - dcm)`.
- `walkctrl.dynamics` – `Integrator` (trapezoidal rule) and
  `MinimumJerkFilter` (quintic segments that reach the target at rest after
  the smoothing time).
- `walkctrl.mpc_matrices` – the constant matrices of the DCM MPC problem:
  `weight_from_triplets`, `theta_matrix`, `stacked_block_diagonal`,
  `hessian_input_submatrix`, `hessian_matrix`, `gradient_submatrix` and
  `equality_constraints_matrix`.
- `walkctrl.convex_hull` – `rectangle_from_offsets`, `convex_hull` and
  `ConvexHullProjection`, which places foot polygons with 4x4 homogeneous
  transforms and describes the support polygon as `A p <= b` with unit
  outward normals; `margin()` is the signed distance from its boundary.
- `walkctrl.mpc_solver.MPCSolver` – the quadratic program
  `min 1/2 x'Hx + q'x` subject to `l <= Ax <= u`, solved with SciPy's SLSQP
  and warm-started from the previous solution. Failures raise `SolverError`.
- `walkctrl.dcm_mpc.DCMModelPredictiveController` – chooses the ZMP that
  tracks a DCM reference while staying inside the convex hull of the feet in
  contact; the QP is rebuilt whenever the contact status changes.
- `walkctrl.timeprofiler.TimeProfiler` – named CPU-time timers; every
  `period` calls to `profiling()` it prints and returns the average duration
  of each timer in milliseconds, in key order.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Reactive DCM control and the CoM model:

```python
from walkctrl.dcm_reactive import DCMReactiveController
from walkctrl.stable_dcm_model import StableDCMModel

config = {"kDCM": 1.5, "com_height": 0.5, "sampling_time": 0.01}

controller = DCMReactiveController.from_config(config)
model = StableDCMModel.from_config(config)
model.reset((0.0, 0.0))

controller.set_feedback((0.01, 0.0))
controller.set_reference((0.02, 0.0), (0.0, 0.0))
zmp = controller.evaluate_control()

model.set_input((0.02, 0.0))
model.integrate()
print(zmp, model.com_position, model.com_velocity)
```

DCM model predictive control in double support:

```python
import numpy as np
from walkctrl.dcm_mpc import DCMModelPredictiveController

mpc = DCMModelPredictiveController.from_config({
    "initial_zmp_position": [0.0, 0.0],
    "stateWeightTriplets": [0, 0, 1.0, 1, 1, 1.0],
    "inputWeightTriplets": [0, 0, 0.1, 1, 1, 0.1],
    "com_height": 0.5,
    "foot_size": [[-0.05, 0.1], [-0.03, 0.03]],
    "sampling_time": 0.016,
    "controllerHorizon": 0.16,
})

left, right = np.eye(4), np.eye(4)
left[1, 3], right[1, 3] = 0.05, -0.05

mpc.set_convex_hull_constraint([left], [right], [True], [True])
mpc.set_feedback((0.0, 0.0))
mpc.set_reference_signal([(0.01, 0.0)], True)
print(mpc.solve())
```

## Configuration keys

- `DCMReactiveController.from_config`: `kDCM`, `com_height`, optional
  `gravity_acceleration` (default 9.81).
- `StableDCMModel.from_config`: `com_height`, `sampling_time`, optional
  `gravity_acceleration`.
- `ZMPController.from_config`: `kCoM_walking`, `kZMP_walking`,
  `sampling_time`, optional `useGainScheduling`; with gain scheduling also
  `smoothingTime`, `kCoM_stance` and `kZMP_stance`.
- `DCMModelPredictiveController.from_config`: `initial_zmp_position`,
  `stateWeightTriplets`, `inputWeightTriplets`, `com_height`, `foot_size`;
  optional `sampling_time` (0.016), `controllerHorizon` in seconds (2.0),
  `gravity_acceleration` (9.81) and `convex_hull_tolerance` (0.01).

Missing or malformed keys raise `ValueError`; calls made in the wrong order
raise `RuntimeError` or `SolverError`.

## What the package does not do

It holds the controllers and models only. It does not plan footsteps or
generate DCM, feet or CoM-height trajectories, it does not talk to a robot or
a simulator, and it has no command-line program: the caller supplies the
references and the measurements and runs the control loop.