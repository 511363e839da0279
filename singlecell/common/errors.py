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

__all__ = [
    "SinglecellException",
    "ConfigurationError",
    "UnknownVariableError",
    "NoDefaultStimulusError",
    "InvalidStateError",
    "NumericalError",
    "ConvergenceError",
    "NonFiniteStateError",
    "AnalysisError",
    "NoBeatsDetectedError",
    "IncompleteRepolarizationError",
    "NonConvergenceError",
]

from modelparameters.logger import set_default_exception


class SinglecellException(RuntimeError):
    "Base class for Singlecell exceptions"
    pass


set_default_exception(SinglecellException)


# Configuration errors. Raised before any integration starts.


class ConfigurationError(SinglecellException, ValueError):
    "Invalid time intervals, options or stimulus settings"
    pass


class UnknownVariableError(SinglecellException, KeyError):
    "A state or parameter name which is not part of the model"

    def __str__(self):
        # KeyError quotes its argument
        return RuntimeError.__str__(self)


class NoDefaultStimulusError(SinglecellException):
    "The model does not label a default stimulus"
    pass


# Numerical errors. Raised during integration and never retried by the solver.


class NumericalError(SinglecellException):
    """
    Base class for integration failures

    Arguments
    ---------
    message : str
        Description of the failure
    time : float
        The simulated time at which the failure occurred
    """

    def __init__(self, message, time=None):
        if time is not None:
            message = f"{message} (t = {time:g})"
        super(NumericalError, self).__init__(message)
        self.time = time


class InvalidStateError(NumericalError):
    "The derivative function was handed a non-finite state"
    pass


class ConvergenceError(NumericalError):
    "The nonlinear solve of an implicit stage did not converge"
    pass


class NonFiniteStateError(NumericalError):
    "The state became NaN or Inf at an accepted step"
    pass


# Analysis errors


class AnalysisError(SinglecellException):
    "Base class for failures when extracting action potential properties"
    pass


class NoBeatsDetectedError(AnalysisError):
    "The trace does not contain a single action potential"
    pass


class IncompleteRepolarizationError(AnalysisError):
    "The trace ends before the requested repolarization level is reached"
    pass


class NonConvergenceError(SinglecellException):
    "The paced model did not reach a steady state within the allowed paces"
    pass
