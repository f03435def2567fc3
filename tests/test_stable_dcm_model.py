import numpy as np
import pytest

from walkctrl.stable_dcm_model import StableDCMModel


def test_reset_sets_com_position():
    model = StableDCMModel(0.5, 0.01)
    model.reset([0.1, -0.2])
    np.testing.assert_allclose(model.com_position, [0.1, -0.2])


def test_com_at_rest_on_dcm():
    model = StableDCMModel(0.5, 0.01)
    model.reset([0.3, 0.4])
    model.set_input([0.3, 0.4])
    out = model.integrate()
    np.testing.assert_allclose(out, [0.3, 0.4])
    np.testing.assert_allclose(model.com_velocity, [0.0, 0.0])


def test_velocity_points_toward_dcm():
    model = StableDCMModel(0.5, 0.01)
    model.reset([0.0, 0.0])
    dcm = np.array([1.0, -2.0])
    model.set_input(dcm)
    model.integrate()
    velocity = np.asarray(model.com_velocity)
    assert velocity[0] > 0.0
    assert velocity[1] < 0.0
    np.testing.assert_allclose(
        velocity / np.linalg.norm(velocity), dcm / np.linalg.norm(dcm)
    )


def test_com_converges_to_dcm():
    model = StableDCMModel(0.5, 0.01)
    model.reset([0.0, 0.0])
    dcm = np.array([0.2, 0.1])
    model.set_input(dcm)
    distances = []
    for _ in range(500):
        model.integrate()
        distances.append(np.linalg.norm(model.com_position - dcm))
    assert distances[-1] < 1e-3
    assert distances[-1] < distances[10]


def test_integrate_returns_com_position():
    model = StableDCMModel(0.5, 0.01)
    model.set_input([1.0, 1.0])
    out = model.integrate()
    np.testing.assert_allclose(out, model.com_position)


def test_from_config_default_gravity_matches_constructor():
    configured = StableDCMModel.from_config({"com_height": 0.53, "sampling_time": 0.01})
    direct = StableDCMModel(0.53, 0.01, 9.81)
    for model in (configured, direct):
        model.reset([0.0, 0.0])
        model.set_input([0.5, -0.5])
        for _ in range(3):
            model.integrate()
    np.testing.assert_allclose(configured.com_position, direct.com_position)


def test_from_config_empty_raises():
    with pytest.raises(ValueError):
        StableDCMModel.from_config({})


def test_from_config_missing_sampling_time_raises():
    with pytest.raises(ValueError):
        StableDCMModel.from_config({"com_height": 0.5})


def test_from_config_non_numeric_raises():
    with pytest.raises(ValueError):
        StableDCMModel.from_config({"com_height": "high", "sampling_time": 0.01})


def test_bad_input_shape_raises():
    model = StableDCMModel(0.5, 0.01)
    with pytest.raises(ValueError):
        model.set_input([1.0, 2.0, 3.0])