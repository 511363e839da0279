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

__all__ = ["ODESolver", "Solver", "methods", "check_method"]

# Global imports
import numpy as np
from modelparameters.logger import debug
from modelparameters.utils import Timer

from ..common.errors import (
    ConfigurationError,
    InvalidStateError,
    NonFiniteStateError,
)
from ..common.options import parameters, updated_options
from .utils import integration_segments, sampling_times

scipy_methods = ["bdf", "radau", "lsoda"]

native_methods = ["implicit_euler"]

methods = scipy_methods + native_methods


class Solver(object):
    """
    Base class for the ODE solvers

    A solver advances a state vector of a
    :class:`~singlecell.model.cellmodel.CellModel` from a start time to an
    end time and samples it on a uniform grid. The interval is split at
    the stimulus breakpoints and the stimulus current is held constant on
    each piece, so a pulse is never stepped over.

    Sub classes implement ``_integrate``.
    """

    def __init__(self, method, **options):
        check_method(method)
        self._options = updated_options(parameters.solver, method=method, **options)
        self._last_time = None

    @property
    def method(self):
        return self._options.method

    @property
    def max_timestep(self):
        return self._options.max_timestep

    def set_max_timestep(self, max_timestep):
        """
        Set the upper bound for the internal time step
        """
        self.update_options(max_timestep=max_timestep)

    def get_options(self):
        return self._options

    def update_options(self, **options):
        """
        Update solver options, see ``singlecell.parameters.solver``
        """
        if "method" in options and options["method"] != self.method:
            raise ConfigurationError("Cannot change the method of an existing solver")
        self._options = updated_options(self._options, **options)

    def reset(self):
        """
        Forget any step size history
        """
        pass

    def solve(
        self,
        model,
        y0,
        parameter_values,
        stimulus,
        start_time,
        end_time,
        sampling_interval,
    ):
        """
        Integrate the model and sample the solution

        Arguments
        ---------
        model : CellModel
            The cell model
        y0 : array
            The state at start_time
        parameter_values : array
            The parameter values, kept fixed during the solve
        stimulus : RegularStimulus or None
            The stimulus protocol
        start_time : float
            The start of the integration interval
        end_time : float
            The end of the integration interval
        sampling_interval : float
            Distance between the recorded samples

        Returns
        -------
        times : numpy.ndarray
            The sample times
        states : numpy.ndarray
            The sampled states, shape (len(times), model.num_states)
        y : numpy.ndarray
            The state at end_time
        """
        times = sampling_times(start_time, end_time, sampling_interval)

        y = np.array(y0, dtype=float)
        if y.shape != (model.num_states,):
            raise ConfigurationError(
                "Expected {0} initial states, got shape {1}".format(
                    model.num_states,
                    y.shape,
                ),
            )
        if not np.isfinite(y).all():
            raise NonFiniteStateError("Non-finite initial state", time=start_time)

        parameter_values = np.array(parameter_values, dtype=float)
        parameter_values.flags.writeable = False

        breakpoints = [] if stimulus is None else stimulus.breakpoints(start_time, end_time)
        segments = integration_segments(start_time, end_time, breakpoints)

        states = np.empty((len(times), len(y)))
        states[0] = y
        sample = 1

        timer = Timer(f"ODE solve ({self.method})")  # noqa: F841
        debug(
            "Solving '%s' from %g to %g in %d segments using %s",
            model.name,
            start_time,
            end_time,
            len(segments),
            self.method,
        )

        for t0, t1 in segments:
            i_stim = 0.0 if stimulus is None else stimulus.current_at(0.5 * (t0 + t1))
            rhs, jac = self._system(model, parameter_values, i_stim)

            last = sample + np.searchsorted(times[sample:], t1, side="right")
            try:
                y, y_out = self._integrate(rhs, jac, t0, t1, y, times[sample:last])
            except InvalidStateError as ex:
                raise NonFiniteStateError(
                    "The state became non-finite",
                    time=ex.time,
                ) from ex

            states[sample:last] = y_out
            sample = last

        return times, states, y

    def _system(self, model, parameter_values, i_stim):
        """
        Return the right hand side and the Jacobian for one segment
        """

        def rhs(t, y):
            self._last_time = t
            return model.get_derivative(t, y, parameter_values, i_stim)

        jac = None
        if model.has_jacobian and self._options.use_jacobian:

            def jac(t, y):
                return model.get_jacobian(t, y, parameter_values, i_stim)

        return rhs, jac

    def _check_finite(self, times, values):
        """
        Raise NonFiniteStateError at the first sample which is not finite
        """
        finite = np.isfinite(values).all(axis=-1)
        if not finite.all():
            ind = int(np.flatnonzero(~finite)[0])
            raise NonFiniteStateError("The state became non-finite", time=times[ind])

    def _integrate(self, rhs, jac, t0, t1, y0, t_out):
        """
        Integrate from t0 to t1

        Returns the state at t1 and the states at the times in t_out, which
        all lie in (t0, t1].
        """
        raise NotImplementedError


def check_method(method):
    msg = "Unknown method {0}, possible methods are {1}".format(method, methods)
    if method not in methods:
        raise ConfigurationError(msg)


# Local imports
from .implicitsolver import ImplicitEulerSolver  # noqa: E402
from .scipysolver import ScipySolver  # noqa: E402


def ODESolver(method="bdf", **options):
    """
    A generic stiff ODE solver for problems on the form,

    .. math::

        \\dot{y} = f(t,y), \\quad y(t_0) = y_0.

    *Arguments*

    method : str
       Solver method. 'bdf', 'radau' and 'lsoda' use
       scipy.integrate.solve_ivp, 'implicit_euler' is the native adaptive
       backward Euler solver (Default: 'bdf')

    options : dict:
       Options for the solver, see ``singlecell.parameters.solver``
    """

    check_method(method)

    if method in scipy_methods:
        return ScipySolver(method, **options)
    else:
        return ImplicitEulerSolver(**options)
