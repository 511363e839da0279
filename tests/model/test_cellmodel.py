"""test for the cell model capability and the shipped models"""
import math

import numpy as np
import pytest

import singlecell
from singlecell import CellModel
from singlecell.models import aliev_panfilov, beeler_reuter_1977


def decay_rhs(t, states, parameters, i_stim=0.0):
    return -(states - parameters[0]) / parameters[1] - i_stim


@pytest.fixture
def decay():
    return CellModel(
        "decay",
        states=[("V", -80.0)],
        parameters=[("V_rest", -85.0), ("tau", 10.0)],
        rhs=decay_rhs,
    )


def test_creation(decay):
    assert decay.name == "decay"
    assert decay.num_states == 1
    assert decay.num_parameters == 2
    assert decay.state_names == ["V"]
    assert decay.parameter_names == ["V_rest", "tau"]
    assert decay.voltage_name == "V"
    assert not decay.has_jacobian
    assert decay.get_jacobian(0.0, [-80.0]) is None


def test_duplicated_names():
    with pytest.raises(singlecell.ConfigurationError):
        CellModel("bad", [("V", 0.0), ("V", 1.0)], [], decay_rhs)


def test_unknown_voltage():
    with pytest.raises(singlecell.UnknownVariableError):
        CellModel("bad", [("u", 0.0)], [], decay_rhs)


def test_derivative(decay):
    assert np.allclose(decay.get_derivative(0.0, [-80.0]), [-0.5])
    assert np.allclose(decay.get_derivative(0.0, [-80.0], i_stim=-1.0), [0.5])
    assert np.allclose(decay.get_derivative(0.0, [-80.0], [-80.0, 1.0]), [0.0])


def test_derivative_is_pure(decay):
    states = np.array([-70.0])
    first = decay.get_derivative(1.0, states)
    second = decay.get_derivative(1.0, states)
    assert np.array_equal(first, second)
    assert states[0] == -70.0


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_invalid_state(decay, value):
    with pytest.raises(singlecell.InvalidStateError) as cm:
        decay.get_derivative(3.0, [value])
    assert cm.value.time == 3.0


def test_wrong_number_of_states(decay):
    with pytest.raises(singlecell.ConfigurationError):
        decay.get_derivative(0.0, [-80.0, 1.0])


def test_wrong_derivative_shape():
    model = CellModel("bad", [("V", 0.0)], [], lambda t, y, p, i: np.zeros(2))
    with pytest.raises(singlecell.ConfigurationError):
        model.get_derivative(0.0, [0.0])


def test_indices(decay):
    assert decay.get_state_variable_index("V") == 0
    assert decay.get_parameter_index("tau") == 1

    with pytest.raises(singlecell.UnknownVariableError):
        decay.get_state_variable_index("nonexistent")

    with pytest.raises(singlecell.UnknownVariableError):
        decay.get_parameter_index("nonexistent")


def test_init_values(decay):
    assert np.array_equal(decay.init_state_values(), [-80.0])
    assert np.array_equal(decay.init_state_values(V=-60.0), [-60.0])
    assert np.array_equal(decay.init_parameter_values(tau=5.0), [-85.0, 5.0])

    with pytest.raises(singlecell.UnknownVariableError):
        decay.init_state_values(W=1.0)


def test_no_default_stimulus(decay):
    with pytest.raises(singlecell.NoDefaultStimulusError):
        decay.get_default_stimulus()


def test_list_models():
    assert singlecell.list_models() == ["aliev_panfilov", "beeler_reuter_1977"]

    with pytest.raises(singlecell.ConfigurationError):
        singlecell.load_model("hodgkin_huxley_1952")


def test_default_stimulus(beeler_reuter):
    stimulus = beeler_reuter.get_default_stimulus()
    assert stimulus == singlecell.RegularStimulus(-25.0, 2.0, 1000.0, start=10.0)

    # A fresh copy every time
    stimulus.set_magnitude(0.0)
    assert beeler_reuter.get_default_stimulus().magnitude == -25.0


@pytest.mark.parametrize("module", [aliev_panfilov, beeler_reuter_1977])
def test_model_modules(module):
    model = CellModel.from_module(module)
    assert model.name == module.model_name
    assert model.state_names == module.state_names
    assert model.parameter_names == module.parameter_names

    values = model.get_derivative(0.0, model.init_state_values())
    assert values.shape == (model.num_states,)
    assert np.isfinite(values).all()

    with pytest.raises(ValueError):
        module.init_state_values(nonexistent=1.0)


def test_beeler_reuter_resting_state(beeler_reuter):
    # The initial conditions are close to the resting state
    values = beeler_reuter.get_derivative(0.0, beeler_reuter.init_state_values())
    assert abs(values[0]) < 1.0


@pytest.mark.parametrize("V", [-47.0, -23.0])
def test_beeler_reuter_singularities(beeler_reuter, V):
    states = beeler_reuter.init_state_values(V=V)
    assert np.isfinite(beeler_reuter.get_derivative(0.0, states)).all()


def test_beeler_reuter_stimulus(beeler_reuter):
    states = beeler_reuter.init_state_values()
    without = beeler_reuter.get_derivative(0.0, states)
    with_stim = beeler_reuter.get_derivative(0.0, states, i_stim=-25.0)
    assert with_stim[0] - without[0] == pytest.approx(25.0)


def test_aliev_panfilov_jacobian(aliev_panfilov):
    assert aliev_panfilov.has_jacobian
    parameters = aliev_panfilov.init_parameter_values()
    fun = lambda t, y: aliev_panfilov.get_derivative(t, y, parameters)  # noqa: E731
    for states in [[-80.0, 0.0], [-30.0, 0.5], [10.0, 1.2]]:
        states = np.array(states)
        jac = aliev_panfilov.get_jacobian(0.0, states, parameters)
        fd_jac = singlecell.solver.utils.finite_difference_jacobian(fun, 0.0, states)
        assert np.allclose(jac, fd_jac, rtol=1e-4, atol=1e-6)
