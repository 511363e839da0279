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
    "sampling_times",
    "check_time_interval",
    "integration_segments",
    "finite_difference_jacobian",
    "weighted_rms_norm",
]

import math

import numpy as np

from ..common.errors import ConfigurationError

# Relative slack when counting samples, so that 1000/0.1 gives 10001 samples
_SAMPLING_SLACK = 1e-10


def check_time_interval(start_time, end_time, sampling_interval):
    """
    Check the configuration of one solve call
    """
    for name, value in [
        ("start_time", start_time),
        ("end_time", end_time),
        ("sampling_interval", sampling_interval),
    ]:
        if not isinstance(value, (int, float, np.number)) or not math.isfinite(value):
            raise ConfigurationError(f"Expected a finite number for '{name}'")

    if not start_time < end_time:
        raise ConfigurationError(
            "Expected start_time < end_time, got {0} and {1}".format(
                start_time,
                end_time,
            ),
        )
    if not sampling_interval > 0:
        raise ConfigurationError(
            f"Expected a positive sampling_interval, got {sampling_interval}",
        )


def sampling_times(start_time, end_time, sampling_interval):
    """
    Return the sample times of one solve call

    The times are ``start_time + i*sampling_interval`` for
    ``i = 0, ..., floor((end_time - start_time)/sampling_interval)``. If
    the interval does not divide the time span evenly the last sample lies
    before ``end_time``.
    """
    check_time_interval(start_time, end_time, sampling_interval)
    num_intervals = int(
        math.floor((end_time - start_time) / sampling_interval + _SAMPLING_SLACK),
    )
    times = start_time + sampling_interval * np.arange(num_intervals + 1, dtype=float)

    # Snap the last sample onto end_time if it is only a rounding error away
    slack = _SAMPLING_SLACK * max(1.0, abs(end_time))
    if times[-1] > end_time or abs(times[-1] - end_time) <= slack:
        times[-1] = end_time
    return times


def integration_segments(start_time, end_time, breakpoints):
    """
    Split [start_time, end_time] at the given breakpoints

    Returns a list of (t0, t1) tuples covering the interval.
    """
    edges = [start_time]
    edges.extend(float(t) for t in breakpoints if start_time < t < end_time)
    edges.append(end_time)
    return list(zip(edges[:-1], edges[1:]))


def finite_difference_jacobian(fun, t, y, f0=None):
    """
    Approximate the Jacobian of fun(t, y) with forward differences

    Arguments
    ---------
    fun : callable
        The right hand side, fun(t, y) -> array
    t : float
        The time
    y : numpy.ndarray
        The state at which the Jacobian is computed
    f0 : numpy.ndarray, optional
        fun(t, y) if it is already computed
    """
    if f0 is None:
        f0 = fun(t, y)
    num_states = len(y)
    jac = np.empty((num_states, num_states))
    eps = math.sqrt(np.finfo(float).eps)
    y_pert = y.copy()
    for j in range(num_states):
        delta = eps * max(1.0, abs(y[j]))
        y_pert[j] = y[j] + delta
        jac[:, j] = (fun(t, y_pert) - f0) / delta
        y_pert[j] = y[j]
    return jac


def weighted_rms_norm(error, y0, y1, rtol, atol):
    """
    Root mean square norm of error weighted with atol + rtol*max(|y0|, |y1|)
    """
    scale = atol + rtol * np.maximum(np.abs(y0), np.abs(y1))
    return math.sqrt(np.mean((error / scale) ** 2))
