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

from .odesolver import ODESolver, Solver, check_method, methods
from .implicitsolver import ImplicitEulerSolver
from .scipysolver import ScipySolver
from .solution import ODESolution, load_solution

__all__ = [
    "ODESolver",
    "Solver",
    "ScipySolver",
    "ImplicitEulerSolver",
    "ODESolution",
    "load_solution",
    "methods",
    "check_method",
]
