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

__version__ = "2026.1.0"

# Import singlecell modules
from . import analysis, common, model, models, solver
from .analysis import ActionPotentialMarker, CellProperties, SteadyStateRunner

# Import classes and routines from singlecell modules
from .common import (
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
    parameters,
    set_log_level,
)
from .model import CellModel, CellSimulation, RegularStimulus
from .models import list_models, load_model
from .solver import ODESolution, ODESolver, load_solution

__all__ = [
    "analysis",
    "common",
    "model",
    "models",
    "solver",
    "ActionPotentialMarker",
    "CellProperties",
    "SteadyStateRunner",
    "AnalysisError",
    "ConfigurationError",
    "ConvergenceError",
    "IncompleteRepolarizationError",
    "InvalidStateError",
    "NoBeatsDetectedError",
    "NoDefaultStimulusError",
    "NonConvergenceError",
    "NonFiniteStateError",
    "NumericalError",
    "SinglecellException",
    "UnknownVariableError",
    "parameters",
    "set_log_level",
    "CellModel",
    "CellSimulation",
    "RegularStimulus",
    "list_models",
    "load_model",
    "ODESolution",
    "ODESolver",
    "load_solution",
]
