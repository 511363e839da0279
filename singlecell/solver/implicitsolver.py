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

__all__ = ["ImplicitEulerSolver"]

import numpy as np
from modelparameters.logger import debug
from scipy.linalg import LinAlgError, lu_factor, lu_solve

from ..common.errors import ConvergenceError
from .odesolver import Solver
from .utils import finite_difference_jacobian, weighted_rms_norm

# Step size controller constants
_SAFETY = 0.9
_MAX_FACTOR = 5.0
_MIN_FACTOR = 0.2
_NEWTON_FAILURE_FACTOR = 0.25


class _NewtonFailure(Exception):
    pass


class ImplicitEulerSolver(Solver):
    """
    Adaptive backward Euler with Richardson extrapolation

    Every step of size h is taken once with h and twice with h/2. The
    difference of the two results estimates the local error, and the
    accepted value is the extrapolation ``2*y_half - y_full`` which is
    second order accurate. The implicit stages are solved with a
    simplified Newton iteration using one Jacobian per step.

    The step never exceeds ``max_timestep`` and is clipped to land on the
    sample times. If a Newton iteration does not converge within
    ``max_newton_iterations`` the step is reduced; a ConvergenceError is
    raised when it falls below ``min_timestep``.
    """

    def __init__(self, **options):
        Solver.__init__(self, "implicit_euler", **options)
        self._h = None
        self.num_steps = 0
        self.num_rejected = 0

    def reset(self):
        self._h = None

    def _integrate(self, rhs, jac, t0, t1, y0, t_out):
        max_step = self._options.max_timestep
        min_step = self._options.min_timestep

        if self._h is None:
            self._h = self._options.first_timestep or max_step

        targets = list(t_out)
        if not targets or targets[-1] < t1:
            targets.append(t1)

        y = np.array(y0, dtype=float)
        t = t0
        y_out = np.empty((len(t_out), len(y)))

        for ind, target in enumerate(targets):
            tol = 1e-12 * max(1.0, abs(target))
            while t < target:
                h = min(self._h, max_step)
                clipped = t + h >= target - tol
                if clipped:
                    h = target - t

                try:
                    y_new, error = self._step(rhs, jac, t, y, h)
                except _NewtonFailure:
                    self.num_rejected += 1
                    self._h = h * _NEWTON_FAILURE_FACTOR
                    if self._h < min_step:
                        raise ConvergenceError(
                            "Newton iteration did not converge within {0} "
                            "iterations and the step size fell below "
                            "{1:g}".format(
                                self._options.max_newton_iterations,
                                min_step,
                            ),
                            time=t,
                        )
                    continue

                if error > 1.0:
                    self.num_rejected += 1
                    factor = max(_MIN_FACTOR, _SAFETY * error ** -0.5)
                    self._h = h * factor
                    if self._h < min_step:
                        raise ConvergenceError(
                            f"Step size fell below {min_step:g}",
                            time=t,
                        )
                    continue

                # Accept step
                t = target if clipped else t + h
                y = y_new
                self._check_finite([t], y[np.newaxis])
                self.num_steps += 1

                factor = _MAX_FACTOR if error == 0.0 else _SAFETY * error ** -0.5
                proposed = h * min(_MAX_FACTOR, max(_MIN_FACTOR, factor))

                # A step shortened to hit a target says nothing about the
                # step the error allows
                self._h = min(max_step, max(proposed, self._h) if clipped else proposed)

            if ind < len(t_out):
                y_out[ind] = y

        debug(
            "implicit_euler reached t = %g after %d steps, %d rejected",
            t1,
            self.num_steps,
            self.num_rejected,
        )
        return y, y_out

    def _step(self, rhs, jac, t, y, h):
        """
        One Richardson extrapolated backward Euler step

        Returns the new state and the error in the weighted RMS norm.
        """
        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            f0 = rhs(t, y)
            if jac is None:
                J = finite_difference_jacobian(rhs, t, y, f0)
            else:
                J = jac(t, y)

            eye = np.eye(len(y))
            try:
                lu_full = lu_factor(eye - h * J, check_finite=True)
                lu_half = lu_factor(eye - 0.5 * h * J, check_finite=True)
            except (LinAlgError, ValueError) as ex:
                raise _NewtonFailure() from ex

            y_full = self._backward_euler(rhs, lu_full, t, y, h)
            y_mid = self._backward_euler(rhs, lu_half, t, y, 0.5 * h)
            y_half = self._backward_euler(rhs, lu_half, t + 0.5 * h, y_mid, 0.5 * h)

        error = weighted_rms_norm(
            y_half - y_full,
            y,
            y_half,
            self._options.rtol,
            self._options.atol,
        )
        return 2.0 * y_half - y_full, error

    def _backward_euler(self, rhs, lu, t, y, h):
        """
        Solve z = y + h*f(t + h, z) with simplified Newton
        """
        t_new = t + h
        z = y.copy()
        rtol = self._options.rtol
        atol = self._options.atol
        for _ in range(self._options.max_newton_iterations):
            residual = z - y - h * rhs(t_new, z)
            dz = lu_solve(lu, -residual, check_finite=False)
            z = z + dz
            if not np.isfinite(z).all():
                raise _NewtonFailure()
            if weighted_rms_norm(dz, y, z, rtol, atol) <= self._options.newton_tolerance:
                return z
        raise _NewtonFailure()
