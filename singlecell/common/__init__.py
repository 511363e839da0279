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
from modelparameters.logger import set_log_level

from .disk import load_table, save_table
from .errors import (
    AnalysisError,
    ConfigurationError,
    ConvergenceError,
    IncompleteRepolarizationError,
    InvalidStateError,
    NoBeatsDetectedError,
    NoDefaultStimulusError,
    NonConvergenceError,
    NonFiniteStateError,
    NumericalError,
    SinglecellException,
    UnknownVariableError,
)
from .options import parameters, updated_options

__all__ = [
    "load_table",
    "save_table",
    "parameters",
    "updated_options",
    "set_log_level",
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
