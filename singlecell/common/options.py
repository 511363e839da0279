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

__all__ = ["parameters", "updated_options"]

from modelparameters.parameterdict import ParameterDict

# ModelParameter imports
from modelparameters.parameters import OptionParam, Param, ScalarParam

from .errors import ConfigurationError

parameters = ParameterDict(
    # Parameters for the ODE solvers
    solver=ParameterDict(
        method=OptionParam(
            "bdf",
            ["bdf", "radau", "lsoda", "implicit_euler"],
            description="The integration method. bdf, radau and lsoda use "
            "scipy.integrate.solve_ivp, implicit_euler is the native "
            "adaptive backward Euler solver.",
        ),
        rtol=ScalarParam(1e-6, gt=0, description="Relative tolerance."),
        atol=ScalarParam(1e-8, gt=0, description="Absolute tolerance."),
        max_timestep=ScalarParam(
            1.0,
            gt=0,
            description="Hard upper bound on the internal time step. "
            "Should not exceed the stimulus duration.",
        ),
        min_timestep=ScalarParam(
            1e-10,
            gt=0,
            description="Smallest internal time step the native solver "
            "tries before giving up.",
        ),
        first_timestep=ScalarParam(
            0.0,
            ge=0,
            description="Initial internal time step for the native solver. "
            "0.0 means start from max_timestep.",
        ),
        max_newton_iterations=ScalarParam(
            8,
            ge=1,
            description="Maximal number of simplified Newton iterations "
            "per implicit stage.",
        ),
        newton_tolerance=ScalarParam(
            1e-3,
            gt=0,
            description="Convergence criterion for the Newton update, "
            "measured in the weighted error norm.",
        ),
        use_jacobian=Param(
            True,
            description="If true the analytic Jacobian of the model is "
            "used when it is available.",
        ),
    ),
    # Parameters for the action potential analysis
    analysis=ParameterDict(
        upstroke_threshold=ScalarParam(
            0.0,
            description="The maximal upstroke velocity of a beat must "
            "exceed this value.",
        ),
        min_amplitude=ScalarParam(
            10.0,
            ge=0,
            description="Minimal difference between peak and resting "
            "potential of a beat, in mV. Smaller excursions are noise.",
        ),
        percentage=ScalarParam(
            90.0,
            ge=0,
            le=100,
            description="Default repolarization percentage for APD.",
        ),
        hysteresis_fraction=ScalarParam(
            0.1,
            ge=0,
            le=0.5,
            description="Fraction of the trace range the voltage must fall "
            "below the threshold before a new beat can be detected.",
        ),
    ),
    # Parameters for pacing to steady state
    steadystate=ParameterDict(
        max_paces=ScalarParam(1000, ge=1, description="Maximal number of paces."),
        sampling_interval=ScalarParam(
            1.0,
            gt=0,
            description="Sampling interval used for the analysed paces.",
        ),
        apd_tolerance=ScalarParam(
            1e-2,
            gt=0,
            description="Allowed change in APD between two paces.",
        ),
        peak_tolerance=ScalarParam(
            1e-2,
            gt=0,
            description="Allowed change in peak potential between two paces.",
        ),
    ),
)


def updated_options(defaults, **options):
    """
    Return a copy of a parameter section updated with the given options

    Arguments
    ---------
    defaults : ParameterDict
        One section of the global parameters, e.g. ``parameters.solver``
    options : dict
        Values which should replace the defaults
    """
    params = defaults.copy()
    for name, value in options.items():
        if name not in params:
            raise ConfigurationError(
                "Unknown option '{0}', possible options are: {1}".format(
                    name,
                    ", ".join(sorted(params.keys())),
                ),
            )
        try:
            params[name] = value
        except (TypeError, ValueError, RuntimeError) as ex:
            raise ConfigurationError(f"Invalid value for '{name}': {ex}") from ex
    return params
