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

__all__ = ["ODESolution", "load_solution"]

from pathlib import Path

import numpy as np
from modelparameters.utils import check_arg

from ..common.disk import load_table, save_table
from ..common.errors import ConfigurationError, UnknownVariableError


def _read_only(array):
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


class ODESolution(object):
    """
    The sampled result of one solve call

    Holds the sample times and the sampled states. The arrays are read
    only and the object is never changed after creation.
    """

    def __init__(self, times, states, state_names, voltage_name=None):
        """
        Create an ODESolution

        Arguments
        ---------
        times : array
            Strictly increasing sample times
        states : array
            Sampled states of shape (len(times), len(state_names))
        state_names : list of str
            The names of the state variables
        voltage_name : str, optional
            Name of the membrane voltage state
        """
        self._times = _read_only(times)
        self._states = _read_only(states)
        self._state_names = [str(name) for name in state_names]

        if self._times.ndim != 1 or len(self._times) == 0:
            raise ConfigurationError("Expected a non-empty 1D array of times")
        if self._states.shape != (len(self._times), len(self._state_names)):
            raise ConfigurationError(
                "Expected states of shape {0}, got {1}".format(
                    (len(self._times), len(self._state_names)),
                    self._states.shape,
                ),
            )
        if len(self._times) > 1 and not (np.diff(self._times) > 0).all():
            raise ConfigurationError("Expected strictly increasing sample times")

        if voltage_name is not None and voltage_name not in self._state_names:
            raise UnknownVariableError(f"'{voltage_name}' is not a state variable")
        self._voltage_name = voltage_name

    @property
    def times(self):
        return self._times

    @property
    def states(self):
        return self._states

    @property
    def state_names(self):
        return list(self._state_names)

    @property
    def voltage_name(self):
        return self._voltage_name

    @property
    def start_time(self):
        return self._times[0]

    @property
    def end_time(self):
        return self._times[-1]

    def __len__(self):
        return len(self._times)

    def variable_at_index(self, index):
        """
        Return the sampled trace of the state with the given index
        """
        check_arg(index, (int, np.integer), 0, ODESolution.variable_at_index)
        if not 0 <= index < len(self._state_names):
            raise UnknownVariableError(
                "State index {0} out of range, the solution has {1} states".format(
                    index,
                    len(self._state_names),
                ),
            )
        return self._states[:, index]

    def variable_by_name(self, name):
        """
        Return the sampled trace of the state with the given name
        """
        if name not in self._state_names:
            raise UnknownVariableError(f"'{name}' is not a state variable")
        return self._states[:, self._state_names.index(name)]

    @property
    def voltages(self):
        """
        The sampled membrane voltage
        """
        if self._voltage_name is None:
            raise UnknownVariableError("The solution has no voltage state")
        return self.variable_by_name(self._voltage_name)

    def write_to_file(self, base_name, sub_name, time_unit="ms", directory="."):
        """
        Write the solution to ``<directory>/<base_name>/<sub_name>.dat``

        Returns the path of the written file.
        """
        check_arg(base_name, str, 0)
        check_arg(sub_name, str, 1)
        filename = Path(directory) / base_name / f"{sub_name}.dat"
        return save_table(
            filename,
            self._state_names,
            self._times,
            self._states,
            time_unit=time_unit,
        )

    @classmethod
    def concatenate(cls, solutions):
        """
        Join consecutive solutions into one

        A sample shared by the end of one solution and the start of the
        next is only kept once.
        """
        solutions = list(solutions)
        if not solutions:
            raise ConfigurationError("Expected at least one solution")

        first = solutions[0]
        times = [first.times]
        states = [first.states]
        for prev, sol in zip(solutions[:-1], solutions[1:]):
            if sol.state_names != first.state_names:
                raise ConfigurationError("Cannot join solutions of different models")
            skip = 1 if np.isclose(sol.times[0], prev.times[-1]) else 0
            times.append(sol.times[skip:])
            states.append(sol.states[skip:])

        return cls(
            np.concatenate(times),
            np.concatenate(states),
            first.state_names,
            first.voltage_name,
        )

    def __repr__(self):
        return "{0}({1} samples, t = {2:g} to {3:g})".format(
            self.__class__.__name__,
            len(self),
            self.start_time,
            self.end_time,
        )


def load_solution(filename, voltage_name="V"):
    """
    Load a solution written by :meth:`ODESolution.write_to_file`

    Returns the solution and the unit of the time column.
    """
    names, times, values, time_unit = load_table(filename)
    if voltage_name not in names:
        voltage_name = None
    return ODESolution(times, values, names, voltage_name), time_unit
