# Copyright (C) 2026 The Singlecell developers
#
# This file is part of Singlecell.
#
# Singlecell is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# Singlecell is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with Singlecell. If not, see <http://www.gnu.org/licenses/>.
"""
Beeler and Reuter (1977), ventricular myocardial fibre

Units: mV, ms, uA/cm^2, uF/cm^2 and mol/l for the intracellular calcium.
"""

import numpy as np

from ..model.stimulus import RegularStimulus

model_name = "beeler_reuter_1977"
voltage_name = "V"

state_names = ["V", "m", "h", "j", "d", "f", "x1", "Cai"]

parameter_names = [
    "C",
    "g_Na",
    "g_Nac",
    "E_Na",
    "g_s",
    "g_K1",
    "g_x1",
]


def init_state_values(**values):
    """
    Initialize state values
    """
    # V=-84.624, m=0.011, h=0.988, j=0.975, d=0.003, f=0.994, x1=0.0001,
    # Cai=1e-07
    init_values = np.array(
        [-84.624, 0.011, 0.988, 0.975, 0.003, 0.994, 0.0001, 1e-07],
        dtype=np.float64,
    )

    # State indices and limit checker
    state_ind = dict((name, i) for i, name in enumerate(state_names))

    for state_name, value in values.items():
        if state_name not in state_ind:
            raise ValueError("{0} is not a state.".format(state_name))
        ind = state_ind[state_name]

        # Assign value
        init_values[ind] = value

    return init_values


def init_parameter_values(**values):
    """
    Initialize parameter values
    """
    # C=1.0, g_Na=4.0, g_Nac=0.003, E_Na=50.0, g_s=0.09, g_K1=0.35,
    # g_x1=0.8
    init_values = np.array([1.0, 4.0, 0.003, 50.0, 0.09, 0.35, 0.8], dtype=np.float64)

    # Parameter indices and limit checker
    param_ind = dict((name, i) for i, name in enumerate(parameter_names))

    for param_name, value in values.items():
        if param_name not in param_ind:
            raise ValueError("{0} is not a parameter.".format(param_name))
        ind = param_ind[param_name]

        # Assign value
        init_values[ind] = value

    return init_values


def default_stimulus():
    """
    The stimulus protocol labelled for the model
    """
    return RegularStimulus(magnitude=-25.0, duration=2.0, period=1000.0, start=10.0)


def rhs(t, states, parameters, i_stim=0.0):
    """
    Compute the right hand side of the beeler_reuter_1977 ODE
    """

    # Assign states
    V, m, h, j, d, f, x1, Cai = states

    # Assign parameters
    C, g_Na, g_Nac, E_Na, g_s, g_K1, g_x1 = parameters

    # Init return args
    values = np.zeros(8, dtype=np.float64)

    # Expressions for the Sodium current component
    i_Na = (g_Nac + g_Na * (m * m * m) * h * j) * (V - E_Na)

    # Expressions for the m gate component
    if abs(V + 47.0) < 1e-7:
        alpha_m = 10.0
    else:
        alpha_m = -(V + 47.0) / (np.exp(-0.1 * (V + 47.0)) - 1.0)
    beta_m = 40.0 * np.exp(-0.056 * (V + 72.0))
    values[1] = (1.0 - m) * alpha_m - beta_m * m

    # Expressions for the h gate component
    alpha_h = 0.126 * np.exp(-0.25 * (V + 77.0))
    beta_h = 1.7 / (1.0 + np.exp(-0.082 * (V + 22.5)))
    values[2] = (1.0 - h) * alpha_h - beta_h * h

    # Expressions for the j gate component
    alpha_j = 0.055 * np.exp(-0.25 * (V + 78.0)) / (1.0 + np.exp(-0.2 * (V + 78.0)))
    beta_j = 0.3 / (1.0 + np.exp(-0.1 * (V + 32.0)))
    values[3] = (1.0 - j) * alpha_j - beta_j * j

    # Expressions for the Slow inward current component
    E_s = -82.3 - 13.0287 * np.log(Cai)
    i_s = g_s * d * f * (V - E_s)
    values[7] = 0.07 * (1e-07 - Cai) - 1e-07 * i_s

    # Expressions for the d gate component
    alpha_d = (
        0.095
        * np.exp(-0.01 * (V - 5.0))
        / (1.0 + np.exp(-0.0719942405759539 * (V - 5.0)))
    )
    beta_d = 0.07 * np.exp(-0.0169491525423729 * (V + 44.0)) / (
        1.0 + np.exp(0.05 * (V + 44.0))
    )
    values[4] = (1.0 - d) * alpha_d - beta_d * d

    # Expressions for the f gate component
    alpha_f = 0.012 * np.exp(-0.008 * (V + 28.0)) / (
        1.0 + np.exp(0.149925037481259 * (V + 28.0))
    )
    beta_f = 0.0065 * np.exp(-0.02 * (V + 30.0)) / (
        1.0 + np.exp(-0.2 * (V + 30.0))
    )
    values[5] = (1.0 - f) * alpha_f - beta_f * f

    # Expressions for the Time dependent outward current component
    i_x1 = (
        g_x1
        * (np.exp(0.04 * (V + 77.0)) - 1.0)
        * x1
        / np.exp(0.04 * (V + 35.0))
    )

    # Expressions for the X1 gate component
    alpha_x1 = (
        0.0005
        * np.exp(0.0826446280991736 * (V + 50.0))
        / (1.0 + np.exp(0.057 * (V + 50.0)))
    )
    beta_x1 = (
        0.0013
        * np.exp(-0.06 * (V + 20.0))
        / (1.0 + np.exp(-0.04 * (V + 20.0)))
    )
    values[6] = (1.0 - x1) * alpha_x1 - beta_x1 * x1

    # Expressions for the Time independent outward current component
    if abs(V + 23.0) < 1e-7:
        rectifier = 5.0
    else:
        rectifier = 0.2 * (V + 23.0) / (1.0 - np.exp(-0.04 * (V + 23.0)))
    i_K1 = g_K1 * (
        4.0
        * (np.exp(0.04 * (V + 85.0)) - 1.0)
        / (np.exp(0.04 * (V + 53.0)) + np.exp(0.08 * (V + 53.0)))
        + rectifier
    )

    # Expressions for the Membrane component
    values[0] = -(i_K1 + i_x1 + i_Na + i_s + i_stim) / C

    return values
