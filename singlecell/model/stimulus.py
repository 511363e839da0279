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

__all__ = ["RegularStimulus"]

import math

import numpy as np
from modelparameters.utils import check_arg, scalars

from ..common.errors import ConfigurationError


class RegularStimulus(object):
    """
    A periodic square pulse stimulus current

    The current equals ``magnitude`` within every window
    ``[start + k*period, start + k*period + duration)`` for integers
    ``k >= 0``, as long as the time is before ``stop_time``, and zero
    otherwise. Time is absolute simulated time, so consecutive solves
    continue the pulse train without phase drift.

    The sign of the magnitude follows the convention of the model. The
    models shipped with singlecell use ``dV/dt = -(I_ion + I_stim)/Cm``
    so a depolarising stimulus is negative.
    """

    def __init__(self, magnitude, duration, period, start=0.0, stop_time=math.inf):
        """
        Create a RegularStimulus

        Arguments
        ---------
        magnitude : float
            The current during a pulse
        duration : float
            Length of each pulse, 0 <= duration <= period
        period : float
            Time between pulse onsets, must be positive
        start : float
            Onset of the first pulse
        stop_time : float
            No pulses are delivered at or after this time
        """
        for num, value in enumerate([magnitude, duration, period, start, stop_time]):
            check_arg(value, scalars, num, RegularStimulus)

        self._magnitude = float(magnitude)
        self._duration = float(duration)
        self._period = float(period)
        self._start = float(start)
        self._stop_time = float(stop_time)
        self._check()

    def _check(self):
        if not math.isfinite(self._magnitude):
            raise ConfigurationError("Stimulus magnitude must be finite")
        if not (math.isfinite(self._period) and self._period > 0):
            raise ConfigurationError(
                f"Stimulus period must be positive, got {self._period}",
            )
        if not (0.0 <= self._duration <= self._period):
            raise ConfigurationError(
                "Stimulus duration must be in [0, period], got {0} "
                "with period {1}".format(self._duration, self._period),
            )
        if not math.isfinite(self._start):
            raise ConfigurationError("Stimulus start must be finite")
        if self._stop_time < self._start:
            raise ConfigurationError(
                "Stimulus stop time {0} is before its start {1}".format(
                    self._stop_time,
                    self._start,
                ),
            )

    @property
    def magnitude(self):
        return self._magnitude

    @property
    def duration(self):
        return self._duration

    @property
    def period(self):
        return self._period

    @property
    def start(self):
        return self._start

    @property
    def stop_time(self):
        return self._stop_time

    def _set(self, attr, value):
        check_arg(value, scalars, 0, RegularStimulus)
        old = getattr(self, attr)
        setattr(self, attr, float(value))
        try:
            self._check()
        except ConfigurationError:
            setattr(self, attr, old)
            raise

    def set_magnitude(self, magnitude):
        self._set("_magnitude", magnitude)

    def set_duration(self, duration):
        self._set("_duration", duration)

    def set_period(self, period):
        self._set("_period", period)

    def set_start_time(self, start):
        self._set("_start", start)

    def set_stop_time(self, stop_time):
        self._set("_stop_time", stop_time)

    def current_at(self, t):
        """
        Return the stimulus current at time t
        """
        if t < self._start or t >= self._stop_time:
            return 0.0
        phase = math.fmod(t - self._start, self._period)
        return self._magnitude if phase < self._duration else 0.0

    __call__ = current_at

    def breakpoints(self, t0, t1):
        """
        Return the sorted times in the open interval (t0, t1) where the
        stimulus current jumps

        Only pulses overlapping the interval are visited.
        """
        if self._duration == 0.0 or t1 <= t0:
            return np.zeros(0)

        lo = max(t0, self._start)
        hi = min(t1, self._stop_time)
        edges = []
        if lo < hi:
            first = max(0, int(math.floor((lo - self._start - self._duration) / self._period)))
            last = int(math.floor((hi - self._start) / self._period))
            for k in range(first, last + 1):
                onset = self._start + k * self._period
                edges.append(onset)
                edges.append(onset + self._duration)

        stop = self._stop_time
        if math.isfinite(stop) and self.current_at(np.nextafter(stop, -math.inf)):
            edges.append(self._stop_time)

        # A pulse as long as the period has no off edges
        if self._duration == self._period:
            edges = [self._start, self._stop_time]

        tol = 1e-12 * max(1.0, abs(t0), abs(t1))
        edges = np.unique(np.asarray(edges, dtype=float))
        edges = edges[(edges > t0 + tol) & (edges < t1 - tol)]
        return edges[edges <= self._stop_time]

    def copy(self):
        return RegularStimulus(
            self._magnitude,
            self._duration,
            self._period,
            self._start,
            self._stop_time,
        )

    def __eq__(self, other):
        if not isinstance(other, RegularStimulus):
            return False
        return (
            self._magnitude,
            self._duration,
            self._period,
            self._start,
            self._stop_time,
        ) == (
            other._magnitude,
            other._duration,
            other._period,
            other._start,
            other._stop_time,
        )

    def __repr__(self):
        return (
            "{0}(magnitude={1}, duration={2}, period={3}, start={4}, "
            "stop_time={5})".format(
                self.__class__.__name__,
                self._magnitude,
                self._duration,
                self._period,
                self._start,
                self._stop_time,
            )
        )
