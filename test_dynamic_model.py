#!/usr/bin/env python3
"""
Tests for the forward and inverse dynamics of the DynamicModel
"""

import threading
import numpy as np
import pytest

from numpy.testing import assert_allclose
from scipy.spatial.transform import Rotation
from uwv.config import default_parameters, parameters_from_dict
from uwv.dynamics.dynamic_model import DynamicModel
from uwv.dynamics.dynamics_base import DynamicsBase
from uwv.dynamics.exceptions import InvalidConfiguration, InvalidInput
from uwv.vehicle.uwv_parameters import ModelType, UWVParameters


def make_parameters(model_type=ModelType.SIMPLE, seed=0, **overrides):
    """Well-conditioned vehicle with random damping"""
    rng = np.random.default_rng(seed)
    a = rng.normal(size=(6, 6))
    count = 6 if model_type == ModelType.COMPLEX else 2
    values = {
        'inertia_matrix': a @ a.T + 6.0 * np.eye(6),
        'damping_matrices': [rng.normal(size=(6, 6)) for _ in range(count)],
        'model_type': model_type,
        'distance_body2centerofgravity': np.array([0.0, 0.0, -0.05]),
        'distance_body2centerofbuoyancy': np.array([0.0, 0.0, 0.02]),
        'weight': 50.0,
        'buoyancy': 45.0,
    }
    values.update(overrides)
    return parameters_from_dict(values)


def test_default_model():
    model = DynamicModel()
    parameters = model.get_uwv_parameters()

    assert parameters.model_type == ModelType.SIMPLE
    assert len(parameters.damping_matrices) == 2
    assert_allclose(model.inverse_inertia_matrix, np.eye(6))


@pytest.mark.parametrize("model_type", list(ModelType))
def test_round_trip_recovers_control_input(model_type):
    """Forward then inverse dynamics gives back the original efforts"""
    model = DynamicModel(make_parameters(model_type))
    rng = np.random.default_rng(10)

    for _ in range(5):
        control_input = rng.normal(scale=20.0, size=6)
        velocity = rng.normal(size=6)
        orientation = rng.normal(size=4)

        acceleration = model.calc_acceleration(control_input, velocity, orientation)
        efforts = model.calc_efforts(acceleration, velocity, orientation)

        assert_allclose(efforts, control_input, atol=1e-9)


def test_acceleration_at_rest():
    """With no damping or offsets only the net buoyancy accelerates the vehicle"""
    parameters = parameters_from_dict({'inertia_matrix': 2.0 * np.eye(6), 'weight': 50.0, 'buoyancy': 45.0})
    model = DynamicModel(parameters)

    acceleration = model.calc_acceleration(np.zeros(6), np.zeros(6), [0.0, 0.0, 0.0, 1.0])

    assert_allclose(acceleration, [0.0, 0.0, -2.5, 0.0, 0.0, 0.0], atol=1e-12)


def test_efforts_terms():
    parameters = make_parameters(ModelType.INTERMEDIATE)
    model = DynamicModel(parameters)
    acceleration = np.array([0.1, 0.0, -0.2, 0.0, 0.05, 0.0])
    velocity = np.array([1.0, 0.1, 0.0, 0.0, 0.0, 0.2])
    orientation = Rotation.from_euler('xyz', [10, -5, 30], degrees=True)

    expected = (parameters.inertia_matrix @ acceleration
                + model.calc_gravity_buoyancy(orientation)
                + model.calc_damping_and_coriolis_effect(velocity))

    assert_allclose(model.calc_efforts(acceleration, velocity, orientation), expected, atol=1e-12)


def test_gravity_buoyancy_through_model():
    model = DynamicModel(parameters_from_dict({'weight': 50.0, 'buoyancy': 45.0}))

    result = model.calc_gravity_buoyancy(Rotation.identity())

    assert_allclose(result, [0.0, 0.0, 5.0, 0.0, 0.0, 0.0], atol=1e-12)


def test_valid_simple_configuration_accepted():
    model = DynamicModel()
    parameters = parameters_from_dict({
        'damping_matrices': [np.eye(6), np.eye(6)],
        'model_type': ModelType.SIMPLE,
        'weight': 50.0,
        'buoyancy': 45.0,
    })

    model.set_parameters(parameters)

    assert model.get_parameters().weight == 50.0
    assert model.get_parameters().buoyancy == 45.0


def test_simple_with_three_matrices_rejected():
    model = DynamicModel()
    before = model.get_uwv_parameters()
    parameters = UWVParameters(damping_matrices=[np.eye(6)] * 3, model_type=ModelType.SIMPLE,
                               weight=50.0, buoyancy=45.0)

    with pytest.raises(InvalidConfiguration, match="SIMPLE"):
        model.set_uwv_parameters(parameters)

    assert model.get_uwv_parameters() is before


@pytest.mark.parametrize("model_type, count", [
    (ModelType.INTERMEDIATE, 6),
    (ModelType.COMPLEX, 2),
])
def test_damping_count_must_match_model_type(model_type, count):
    parameters = UWVParameters(damping_matrices=[np.eye(6)] * count, model_type=model_type,
                               weight=50.0, buoyancy=45.0)
    with pytest.raises(InvalidConfiguration):
        DynamicModel(parameters)


@pytest.mark.parametrize("field, value", [
    ('weight', 0.0),
    ('weight', -3.0),
    ('buoyancy', 0.0),
])
def test_non_positive_weight_or_buoyancy_rejected(field, value):
    model = DynamicModel(make_parameters())
    before = model.get_uwv_parameters()
    before_inverse = model.inverse_inertia_matrix

    with pytest.raises(InvalidConfiguration, match=field):
        model.set_uwv_parameters(make_parameters(seed=1, **{field: value}))

    assert model.get_uwv_parameters() is before
    assert model.inverse_inertia_matrix is before_inverse


def test_configuration_errors_are_value_errors():
    with pytest.raises(ValueError):
        DynamicModel(make_parameters(weight=0.0))


def test_update_recomputes_inverse():
    model = DynamicModel()
    parameters = make_parameters(ModelType.COMPLEX, seed=3)

    model.set_uwv_parameters(parameters)

    assert_allclose(model.get_uwv_parameters().inertia_matrix @ model.inverse_inertia_matrix,
                    np.eye(6), atol=1e-9)


def test_stored_parameters_are_isolated_from_caller():
    inertia = 3.0 * np.eye(6)
    model = DynamicModel(parameters_from_dict({'inertia_matrix': inertia}))
    parameters = UWVParameters(inertia_matrix=inertia)
    model.set_uwv_parameters(parameters)

    inertia[0, 0] = 100.0
    stored = model.get_uwv_parameters()

    assert stored.inertia_matrix[0, 0] == 3.0
    assert not stored.inertia_matrix.flags.writeable
    with pytest.raises(ValueError):
        stored.damping_matrices[0][0, 0] = 1.0


def test_nan_velocity_rejected_without_state_change():
    model = DynamicModel(make_parameters())
    before = model.get_uwv_parameters()
    velocity = np.array([np.nan, 0, 0, 0, 0, 0])

    with pytest.raises(InvalidInput, match="velocity"):
        model.calc_acceleration(np.zeros(6), velocity, Rotation.identity())

    assert model.get_uwv_parameters() is before


@pytest.mark.parametrize("method, name", [
    ("calc_acceleration", "control input"),
    ("calc_efforts", "acceleration"),
])
def test_nan_first_argument_rejected(method, name):
    model = DynamicModel()
    vector = np.zeros(6)
    vector[4] = np.nan

    with pytest.raises(InvalidInput, match=name):
        getattr(model, method)(vector, np.zeros(6), Rotation.identity())


def test_wrong_shape_input_rejected():
    model = DynamicModel()
    with pytest.raises(InvalidInput):
        model.calc_efforts(np.zeros(3), np.zeros(6), Rotation.identity())


def test_zero_quaternion_rejected():
    model = DynamicModel()
    with pytest.raises(InvalidInput):
        model.calc_acceleration(np.zeros(6), np.zeros(6), np.zeros(4))


def test_inputs_not_modified():
    model = DynamicModel(make_parameters(ModelType.COMPLEX))
    control_input = np.arange(6, dtype=float)
    velocity = np.full(6, 0.5)

    model.calc_acceleration(control_input, velocity, Rotation.identity())
    model.calc_efforts(control_input, velocity, Rotation.identity())

    assert_allclose(control_input, np.arange(6, dtype=float))
    assert_allclose(velocity, np.full(6, 0.5))


def test_default_parameters_are_fresh():
    first = default_parameters()
    second = default_parameters()

    assert first is not second
    assert first.inertia_matrix is not second.inertia_matrix


def test_stacked_rotation_rejected():
    model = DynamicModel()
    stacked = Rotation.from_quat([[0.0, 0.0, 0.0, 1.0], [0.0, 0.0, 0.0, 1.0]])

    with pytest.raises(InvalidInput, match="single rotation"):
        model.calc_acceleration(np.zeros(6), np.zeros(6), stacked)


def test_concurrent_updates_keep_inverse_consistent():
    """Readers always see an inverse that belongs to the inertia matrix next to it"""
    model = DynamicModel(make_parameters(seed=0))
    candidates = [make_parameters(seed=seed) for seed in range(4)]
    failures = []

    def writer(parameters):
        for _ in range(50):
            model.set_uwv_parameters(parameters)

    def reader():
        for _ in range(200):
            snapshot = model._snapshot
            product = snapshot.parameters.inertia_matrix @ snapshot.inv_inertia_matrix
            if not np.allclose(product, np.eye(6), atol=1e-9):
                failures.append(product)

    threads = [threading.Thread(target=writer, args=(parameters,)) for parameters in candidates]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not failures
    assert any(model.get_uwv_parameters().inertia_matrix[0, 0] == parameters.inertia_matrix[0, 0]
               for parameters in candidates)


def test_model_implements_dynamics_interface():
    assert issubclass(DynamicModel, DynamicsBase)
    assert not DynamicModel.__abstractmethods__
