import math

import numpy as np
import pytest

import singlecell


def phase_oscillator_rhs(t, states, parameters, i_stim=0.0):
    """
    A phase driven relaxation oscillator

    The phase advances uniformly and the voltage relaxes quickly towards
    V_rest + V_amp*exp(kappa*(cos(theta) - 1)), which peaks once per period.
    """
    theta, V = states
    period, kappa, tau, V_rest, V_amp = parameters
    g = math.exp(kappa * (math.cos(theta) - 1.0))
    return np.array([2 * math.pi / period, (V_rest + V_amp * g - V) / tau - i_stim])


def phase_oscillator_jacobian(t, states, parameters, i_stim=0.0):
    theta, V = states
    period, kappa, tau, V_rest, V_amp = parameters
    g = math.exp(kappa * (math.cos(theta) - 1.0))
    return np.array(
        [[0.0, 0.0], [-kappa * math.sin(theta) * V_amp * g / tau, -1.0 / tau]],
    )


def phase_oscillator_apd50(period=1000.0, kappa=3.0):
    """
    Time from the maximal upstroke velocity to 50% repolarization

    The APD does not depend on V_rest and V_amp. In units of V_amp above
    V_rest the resting value is exp(-2*kappa) and the peak 1.
    """
    # Phase of the maximal slope of exp(kappa*(cos(theta) - 1))
    phi_u = -math.acos((-1.0 + math.sqrt(1.0 + 4 * kappa ** 2)) / (2 * kappa))
    # Phase after the peak where half of the amplitude is lost
    level = 0.5 * (1.0 + math.exp(-2 * kappa))
    phi_d = math.acos(1.0 + math.log(level) / kappa)
    return (phi_d - phi_u) * period / (2 * math.pi)


@pytest.fixture
def oscillator():
    period, kappa, tau = 1000.0, 3.0, 0.01
    V_rest, V_amp = -85.0, 100.0
    return singlecell.CellModel(
        "phase_oscillator",
        states=[("theta", math.pi), ("V", V_rest + V_amp * math.exp(-2 * kappa))],
        parameters=[
            ("period", period),
            ("kappa", kappa),
            ("tau", tau),
            ("V_rest", V_rest),
            ("V_amp", V_amp),
        ],
        rhs=phase_oscillator_rhs,
        jacobian=phase_oscillator_jacobian,
    )


@pytest.fixture
def aliev_panfilov():
    return singlecell.load_model("aliev_panfilov")


@pytest.fixture(scope="session")
def beeler_reuter():
    return singlecell.load_model("beeler_reuter_1977")


@pytest.fixture
def stimulus():
    return singlecell.RegularStimulus(magnitude=-10.0, duration=2.0, period=100.0, start=5.0)


@pytest.fixture
def oscillator_apd50():
    return phase_oscillator_apd50()
