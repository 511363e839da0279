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
Aliev and Panfilov (1996), two variable model of cardiac excitation

The dimensionless model is scaled to mV and ms::

    u = (V - V_rest)/(V_peak - V_rest)
    dV/dt = (V_peak - V_rest)/t_scale*(-k*u*(u - a)*(u - 1) - u*w) - i_stim
    dw/dt = (eps_0 + mu_1*w/(u + mu_2))*(-w - k*u*(u - a - 1))/t_scale
"""

import numpy as np

from ..model.stimulus import RegularStimulus

model_name = "aliev_panfilov"
voltage_name = "V"

state_names = ["V", "w"]

parameter_names = ["k", "a", "eps_0", "mu_1", "mu_2", "V_rest", "V_peak", "t_scale"]


def init_state_values(**values):
    """
    Initialize state values
    """
    # V=-80.0, w=0.0
    init_values = np.array([-80.0, 0.0], dtype=np.float64)

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
    # k=8.0, a=0.15, eps_0=0.002, mu_1=0.2, mu_2=0.3, V_rest=-80.0,
    # V_peak=20.0, t_scale=12.9
    init_values = np.array(
        [8.0, 0.15, 0.002, 0.2, 0.3, -80.0, 20.0, 12.9],
        dtype=np.float64,
    )

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
    return RegularStimulus(magnitude=-50.0, duration=1.0, period=1000.0, start=5.0)


def rhs(t, states, parameters, i_stim=0.0):
    """
    Compute the right hand side of the aliev_panfilov ODE
    """

    # Assign states
    V, w = states

    # Assign parameters
    k, a, eps_0, mu_1, mu_2, V_rest, V_peak, t_scale = parameters

    # Init return args
    values = np.zeros(2, dtype=np.float64)

    # Expressions for the scaled membrane component
    V_amp = V_peak - V_rest
    u = (V - V_rest) / V_amp
    values[0] = V_amp * (-k * u * (u - a) * (u - 1.0) - u * w) / t_scale - i_stim

    # Expressions for the recovery component
    eps = eps_0 + mu_1 * w / (u + mu_2)
    values[1] = eps * (-w - k * u * (u - a - 1.0)) / t_scale

    return values


def compute_jacobian(t, states, parameters, i_stim=0.0):
    """
    Compute the jacobian of the right hand side of the aliev_panfilov ODE
    """

    # Assign states
    V, w = states

    # Assign parameters
    k, a, eps_0, mu_1, mu_2, V_rest, V_peak, t_scale = parameters

    # Init return args
    jac = np.zeros((2, 2), dtype=np.float64)

    V_amp = V_peak - V_rest
    u = (V - V_rest) / V_amp

    # d(dV/dt)/dV and d(dV/dt)/dw
    jac[0, 0] = (
        -k * ((u - a) * (u - 1.0) + u * (u - 1.0) + u * (u - a)) - w
    ) / t_scale
    jac[0, 1] = -V_amp * u / t_scale

    # d(dw/dt)/dV and d(dw/dt)/dw
    eps = eps_0 + mu_1 * w / (u + mu_2)
    recovery = -w - k * u * (u - a - 1.0)
    deps_du = -mu_1 * w / ((u + mu_2) * (u + mu_2))
    drecovery_du = -k * (2.0 * u - a - 1.0)
    jac[1, 0] = (deps_du * recovery + eps * drecovery_du) / (V_amp * t_scale)
    jac[1, 1] = (mu_1 / (u + mu_2) * recovery - eps) / t_scale

    return jac
