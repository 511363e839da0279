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

__all__ = ["CellSimulation"]

import numpy as np
from modelparameters.logger import debug
from modelparameters.utils import check_arg

from ..common.errors import ConfigurationError
from ..solver.odesolver import ODESolver
from ..solver.solution import ODESolution
from .cellmodel import CellModel
from .stimulus import RegularStimulus


class CellSimulation(object):
    """
    One simulation run of a cell model

    A CellSimulation owns the state vector, the parameter values, the
    stimulus and the solver of one run. Successive calls to
    :meth:`solve` continue from the state reached by the previous call.
    Independent simulations share nothing but the (read only) model.

    .. Example::

        model = load_model("beeler_reuter_1977")
        sim = CellSimulation(model)
        sim.use_default_stimulus()
        solution = sim.solve(0.0, 1000.0, 0.1)
    """

    def __init__(
        self,
        model,
        initial_conditions=None,
        parameters=None,
        stimulus=None,
        method="bdf",
        **solver_options,
    ):
        """
        Create a CellSimulation

        Arguments
        ---------
        model : CellModel
            The cell model
        initial_conditions : dict, optional
            Initial values of states, the model defaults for the rest
        parameters : dict, optional
            Parameter values, the model defaults for the rest
        stimulus : RegularStimulus, optional
            The stimulus protocol. No stimulus current if not given
        method : str
            The integration method, see :func:`~singlecell.solver.ODESolver`
        solver_options : dict
            Options passed to the solver
        """
        check_arg(model, CellModel, 0, CellSimulation)
        check_arg(initial_conditions, (type(None), dict), 1, CellSimulation)
        check_arg(parameters, (type(None), dict), 2, CellSimulation)

        self._model = model
        self._initial_conditions = dict(initial_conditions or {})
        self._state = model.init_state_values(**self._initial_conditions)
        self._parameter_values = model.init_parameter_values(**(parameters or {}))
        self._stimulus = None
        self.set_stimulus(stimulus)
        self._solver = ODESolver(method, **solver_options)

    @property
    def model(self):
        return self._model

    @property
    def solver(self):
        return self._solver

    @property
    def stimulus(self):
        return self._stimulus

    def set_stimulus(self, stimulus):
        """
        Set the stimulus protocol, None turns the stimulus off
        """
        check_arg(stimulus, (type(None), RegularStimulus), 0, self.set_stimulus)
        self._stimulus = stimulus

    def use_default_stimulus(self):
        """
        Use the stimulus labelled in the model

        Raises NoDefaultStimulusError if the model has none.
        """
        self._stimulus = self._model.get_default_stimulus()
        return self._stimulus

    @property
    def max_timestep(self):
        return self._solver.max_timestep

    def set_max_timestep(self, max_timestep):
        """
        Set the hard upper bound for the internal time step
        """
        self._solver.set_max_timestep(max_timestep)

    @property
    def voltage_index(self):
        """
        Index of the membrane voltage in the state vector
        """
        if self._model.voltage_name is None:
            raise ConfigurationError(f"The model '{self._model.name}' has no voltage")
        return self._model.get_state_variable_index(self._model.voltage_name)

    def get_state_variable_index(self, name):
        return self._model.get_state_variable_index(name)

    @property
    def state_variables(self):
        """
        A copy of the current state vector
        """
        return self._state.copy()

    def set_state_variables(self, values):
        """
        Replace the current state vector

        Arguments
        ---------
        values : array or dict
            A full state vector, or a mapping from state names to values
            for the states that should change
        """
        if isinstance(values, dict):
            state = self._state.copy()
            for name, value in values.items():
                state[self._model.get_state_variable_index(name)] = value
        else:
            state = np.array(values, dtype=float)
            if state.shape != self._state.shape:
                raise ConfigurationError(
                    "Expected {0} state values, got shape {1}".format(
                        len(self._state),
                        state.shape,
                    ),
                )
        self._state[:] = state

    def reset_to_initial_conditions(self):
        """
        Reset the state to the initial conditions and forget the solver history
        """
        self._state[:] = self._model.init_state_values(**self._initial_conditions)
        self._solver.reset()
        debug("Reset '%s' to its initial conditions", self._model.name)

    @property
    def parameter_values(self):
        return self._parameter_values.copy()

    def get_parameter(self, name):
        return float(self._parameter_values[self._model.get_parameter_index(name)])

    def set_parameter(self, name, value):
        """
        Change a parameter value, used from the next call to solve
        """
        check_arg(value, (int, float, np.number), 1, self.set_parameter)
        if not np.isfinite(value):
            raise ConfigurationError(f"Expected a finite value for '{name}'")
        self._parameter_values[self._model.get_parameter_index(name)] = value

    def get_derivative(self, t, states=None):
        """
        Evaluate dY/dt with the parameters and the stimulus of this run

        Arguments
        ---------
        t : float
            The simulated time
        states : array, optional
            The state vector, the current state if not given
        """
        if states is None:
            states = self._state
        i_stim = 0.0 if self._stimulus is None else self._stimulus.current_at(t)
        return self._model.get_derivative(t, states, self._parameter_values, i_stim)

    def solve(self, start_time, end_time, sampling_interval):
        """
        Integrate from the current state and sample the solution

        The state at end_time becomes the new current state.

        Arguments
        ---------
        start_time : float
            The simulated time of the current state
        end_time : float
            The end of the integration interval
        sampling_interval : float
            Distance between the recorded samples

        Returns
        -------
        solution : ODESolution
        """
        times, states, y_end = self._solver.solve(
            self._model,
            self._state,
            self._parameter_values,
            self._stimulus,
            start_time,
            end_time,
            sampling_interval,
        )
        self._state[:] = y_end

        debug(
            "Solved '%s' from %g to %g, %d samples",
            self._model.name,
            start_time,
            end_time,
            len(times),
        )
        return ODESolution(
            times,
            states,
            self._model.state_names,
            self._model.voltage_name,
        )

    def __repr__(self):
        return "{0}('{1}', method='{2}')".format(
            self.__class__.__name__,
            self._model.name,
            self._solver.method,
        )
