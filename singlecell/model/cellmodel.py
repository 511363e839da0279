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

__all__ = ["CellModel"]

import numpy as np
from modelparameters.logger import debug
from modelparameters.utils import check_arg

from ..common.errors import (
    ConfigurationError,
    InvalidStateError,
    NoDefaultStimulusError,
    UnknownVariableError,
)
from .stimulus import RegularStimulus


class CellModel(object):
    """
    Description of a single cell ionic model

    A CellModel is data: the names and default values of the states and
    parameters together with the right hand side function. It holds no
    simulation state, so one instance can be shared by any number of
    :class:`~singlecell.model.simulation.CellSimulation` objects.

    The right hand side has the signature::

        rhs(t, states, parameters, i_stim) -> numpy.ndarray

    and the optional Jacobian the same signature, returning the matrix
    d(rhs)/d(states).

    .. Example::

        model = CellModel(
            "decay",
            states=[("V", -80.0)],
            parameters=[("tau", 10.0)],
            rhs=lambda t, y, p, i_stim: -(y - (-80.0)) / p[0] - i_stim,
        )
    """

    def __init__(
        self,
        name,
        states,
        parameters,
        rhs,
        jacobian=None,
        default_stimulus=None,
        voltage_name="V",
    ):
        """
        Create a CellModel

        Arguments
        ---------
        name : str
            The name of the model
        states : list of (str, float)
            Ordered state names with their default initial values
        parameters : list of (str, float)
            Ordered parameter names with their default values
        rhs : callable
            The right hand side function
        jacobian : callable, optional
            The Jacobian of the right hand side
        default_stimulus : RegularStimulus, optional
            The stimulus the model is labelled with
        voltage_name : str
            Name of the membrane voltage state
        """
        check_arg(name, str, 0, CellModel)
        check_arg(default_stimulus, (type(None), RegularStimulus), 5, CellModel)
        if not callable(rhs):
            raise ConfigurationError("Expected 'rhs' to be callable")
        if jacobian is not None and not callable(jacobian):
            raise ConfigurationError("Expected 'jacobian' to be callable")

        states = list(states)
        parameters = list(parameters)
        if not states:
            raise ConfigurationError(f"The model '{name}' has no states")

        self._name = name
        self._state_names = [str(state) for state, value in states]
        self._state_defaults = np.array([value for state, value in states], dtype=float)
        self._parameter_names = [str(param) for param, value in parameters]
        self._parameter_defaults = np.array(
            [value for param, value in parameters],
            dtype=float,
        )

        for kind, names in [
            ("state", self._state_names),
            ("parameter", self._parameter_names),
        ]:
            if len(set(names)) != len(names):
                raise ConfigurationError(f"Duplicated {kind} names in '{name}'")

        self._state_inds = dict((name, i) for i, name in enumerate(self._state_names))
        self._param_inds = dict(
            (name, i) for i, name in enumerate(self._parameter_names)
        )

        self._rhs = rhs
        self._jacobian = jacobian
        self._default_stimulus = default_stimulus

        if voltage_name is not None and voltage_name not in self._state_inds:
            raise UnknownVariableError(
                f"Voltage '{voltage_name}' is not a state in '{name}'",
            )
        self._voltage_name = voltage_name

        debug(
            "Created CellModel '%s' with %d states and %d parameters",
            name,
            self.num_states,
            self.num_parameters,
        )

    @classmethod
    def from_module(cls, module):
        """
        Create a CellModel from a model module

        The module must provide ``state_names``, ``parameter_names``,
        ``init_state_values``, ``init_parameter_values`` and ``rhs``, and
        may provide ``compute_jacobian``, ``default_stimulus`` and
        ``voltage_name``.
        """
        for attr in [
            "state_names",
            "parameter_names",
            "init_state_values",
            "init_parameter_values",
            "rhs",
        ]:
            if not hasattr(module, attr):
                raise ConfigurationError(
                    f"Expected the model module to define '{attr}'",
                )

        default_stimulus = None
        if hasattr(module, "default_stimulus"):
            default_stimulus = module.default_stimulus()

        name = getattr(module, "model_name", module.__name__.split(".")[-1])
        return cls(
            name,
            zip(module.state_names, module.init_state_values()),
            zip(module.parameter_names, module.init_parameter_values()),
            module.rhs,
            jacobian=getattr(module, "compute_jacobian", None),
            default_stimulus=default_stimulus,
            voltage_name=getattr(module, "voltage_name", "V"),
        )

    @property
    def name(self):
        return self._name

    @property
    def num_states(self):
        return len(self._state_names)

    @property
    def num_parameters(self):
        return len(self._parameter_names)

    @property
    def state_names(self):
        return list(self._state_names)

    @property
    def parameter_names(self):
        return list(self._parameter_names)

    @property
    def voltage_name(self):
        return self._voltage_name

    @property
    def has_jacobian(self):
        return self._jacobian is not None

    def get_state_variable_index(self, name):
        """
        Return the index of a state variable
        """
        if name not in self._state_inds:
            raise UnknownVariableError(
                f"'{name}' is not a state variable of '{self._name}'",
            )
        return self._state_inds[name]

    def get_parameter_index(self, name):
        """
        Return the index of a parameter
        """
        if name not in self._param_inds:
            raise UnknownVariableError(f"'{name}' is not a parameter of '{self._name}'")
        return self._param_inds[name]

    def init_state_values(self, **values):
        """
        Initialize state values
        """
        init_values = self._state_defaults.copy()
        for state_name, value in values.items():
            init_values[self.get_state_variable_index(state_name)] = value
        return init_values

    def init_parameter_values(self, **values):
        """
        Initialize parameter values
        """
        init_values = self._parameter_defaults.copy()
        for param_name, value in values.items():
            init_values[self.get_parameter_index(param_name)] = value
        return init_values

    def get_default_stimulus(self):
        """
        Return a copy of the stimulus labelled in the model
        """
        if self._default_stimulus is None:
            raise NoDefaultStimulusError(
                f"The model '{self._name}' has no default stimulus",
            )
        return self._default_stimulus.copy()

    def _check_states(self, t, states):
        states = np.asarray(states, dtype=float)
        if states.shape != (self.num_states,):
            raise ConfigurationError(
                "Expected {0} states, got an array of shape {1}".format(
                    self.num_states,
                    states.shape,
                ),
            )
        if not np.isfinite(states).all():
            bad = [
                self._state_names[i] for i in np.flatnonzero(~np.isfinite(states))
            ]
            raise InvalidStateError(
                "Non-finite values for {0}".format(", ".join(bad)),
                time=t,
            )
        return states

    def get_derivative(self, t, states, parameters=None, i_stim=0.0):
        """
        Evaluate the time derivative of the states

        Arguments
        ---------
        t : float
            The simulated time
        states : array
            The state vector
        parameters : array, optional
            Parameter values, the model defaults if not given
        i_stim : float
            The stimulus current at t

        Returns
        -------
        values : numpy.ndarray
            dY/dt, of the same length as ``states``
        """
        states = self._check_states(t, states)
        if parameters is None:
            parameters = self._parameter_defaults

        values = np.asarray(self._rhs(t, states, parameters, i_stim), dtype=float)
        if values.shape != states.shape:
            raise ConfigurationError(
                "The right hand side of '{0}' returned shape {1}, "
                "expected {2}".format(self._name, values.shape, states.shape),
            )
        return values

    def get_jacobian(self, t, states, parameters=None, i_stim=0.0):
        """
        Evaluate the analytic Jacobian, or return None if the model has none
        """
        if self._jacobian is None:
            return None
        states = self._check_states(t, states)
        if parameters is None:
            parameters = self._parameter_defaults
        jac = np.asarray(self._jacobian(t, states, parameters, i_stim), dtype=float)
        return jac.reshape(self.num_states, self.num_states)

    def __repr__(self):
        return f"{self.__class__.__name__}('{self._name}')"
