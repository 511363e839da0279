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

import warnings

import numpy as np
import scipy.integrate as spi
from modelparameters.logger import warning

from ..common.errors import ConfigurationError, ConvergenceError
from .odesolver import Solver, scipy_methods

__all__ = ["ScipySolver"]

_scipy_names = dict(bdf="BDF", radau="Radau", lsoda="LSODA")


class ScipySolver(Solver):
    """
    Stiff solvers from scipy.integrate.solve_ivp

    Each integration segment is one call to solve_ivp with the sample
    times as ``t_eval``.
    """

    def __init__(self, method="bdf", **options):
        if method not in scipy_methods:
            raise ConfigurationError(
                "{0} is not a scipy method, possible methods are {1}".format(
                    method,
                    scipy_methods,
                ),
            )
        Solver.__init__(self, method, **options)

    def _integrate(self, rhs, jac, t0, t1, y0, t_out):
        """
        Solve ode using scipy.integrate.solve_ivp

        Arguments
        ---------
        rhs : callable
            The right hand side, rhs(t, y)
        jac : callable or None
            The Jacobian, jac(t, y). Approximated by scipy if None
        t0, t1 : float
            The integration segment
        y0 : array
            The state at t0
        t_out : array
            The sample times in (t0, t1]
        """

        # Always request t1 so that the end state is returned
        add_end = len(t_out) == 0 or t_out[-1] < t1
        t_eval = np.append(t_out, t1) if add_end else np.asarray(t_out)

        options = dict(
            method=_scipy_names[self.method],
            t_eval=t_eval,
            rtol=self._options.rtol,
            atol=self._options.atol,
            max_step=self._options.max_timestep,
        )
        if jac is not None:
            options["jac"] = jac

        # Overflows in trial stages only show up as warnings. Record them
        # and report them if the solver does not recover.
        with warnings.catch_warnings(record=True) as caught_warnings:

            # Allways catch warnings (not only the first)
            warnings.simplefilter("always")

            result = spi.solve_ivp(rhs, (t0, t1), y0, **options)

        if not result.success:
            for w in caught_warnings:
                warning(f"Catched warning {w.category}\n{w.message}")
            time = self._last_time if self._last_time is not None else t0
            raise ConvergenceError(
                f"scipy {options['method']} failed: {result.message}",
                time=time,
            )

        values = result.y.T
        if values.shape[0] != len(t_eval):
            raise ConvergenceError(
                "scipy {0} stopped before the end of the segment".format(
                    options["method"],
                ),
                time=result.t[-1] if len(result.t) else t0,
            )
        self._check_finite(t_eval, values)

        return values[-1].copy(), values[: len(t_out)]
