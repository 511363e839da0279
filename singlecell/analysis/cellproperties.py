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

__all__ = ["CellProperties", "ActionPotentialMarker"]

import math

import numpy as np
from modelparameters.logger import debug
from modelparameters.utils import check_arg

from ..common.errors import (
    ConfigurationError,
    IncompleteRepolarizationError,
    NoBeatsDetectedError,
)
from ..common.options import parameters


def _check_percentage(percentage):
    check_arg(percentage, (int, float, np.number), 0)
    if not 0.0 <= percentage <= 100.0:
        raise ConfigurationError(
            f"Expected a repolarization percentage in [0, 100], got {percentage}",
        )
    return float(percentage)


def _parabola_vertex(x, y):
    """
    Return the x value of the vertex of the parabola through three points

    Falls back to the middle point if the points are collinear. The result
    is clamped to [x[0], x[2]].
    """
    x1, x2, x3 = x
    y1, y2, y3 = y
    denom = (x2 - x1) * (y2 - y3) - (x2 - x3) * (y2 - y1)
    if denom == 0.0:
        return x2
    numer = (x2 - x1) ** 2 * (y2 - y3) - (x2 - x3) ** 2 * (y2 - y1)
    return min(max(x2 - 0.5 * numer / denom, x1), x3)


class ActionPotentialMarker(object):
    """
    The markers of one action potential

    Attributes
    ----------
    upstroke_time : float
        Time of the maximal upstroke velocity
    upstroke_velocity : float
        The maximal upstroke velocity
    peak_time, peak_value : float
        Time and value of the peak potential
    resting_value : float
        The resting potential the beat repolarizes towards
    repolarization_times : dict
        Repolarization time for each requested percentage
    """

    def __init__(
        self,
        upstroke_time,
        upstroke_velocity,
        peak_time,
        peak_value,
        resting_value,
        repolarization_times,
    ):
        self.upstroke_time = upstroke_time
        self.upstroke_velocity = upstroke_velocity
        self.peak_time = peak_time
        self.peak_value = peak_value
        self.resting_value = resting_value
        self.repolarization_times = dict(repolarization_times)

    def apd(self, percentage):
        "Return the action potential duration at the given percentage"
        percentage = _check_percentage(percentage)
        if percentage not in self.repolarization_times:
            raise ConfigurationError(
                f"The marker has no repolarization time for {percentage:g}%",
            )
        return self.repolarization_times[percentage] - self.upstroke_time

    def __repr__(self):
        return "{0}(upstroke_time={1:g}, peak_value={2:g})".format(
            self.__class__.__name__,
            self.upstroke_time,
            self.peak_value,
        )


class CellProperties(object):
    """
    Action potential properties of a sampled voltage trace

    The trace is segmented into beats when the object is created:

    1. Slopes are computed between consecutive samples.
    2. A candidate beat is an upward crossing of the voltage threshold
       (default: the middle of the voltage range) after the voltage has
       been below ``voltage_threshold - hysteresis``.
    3. The upstroke of a candidate is the maximal slope between the point
       where detection was re-armed and the peak of the candidate. The
       candidate is a beat if that slope exceeds ``upstroke_threshold``.
       The upstroke time is refined with a parabola through the
       neighbouring slopes.
    4. The peak is the maximal voltage after the upstroke and before the
       next upstroke.
    5. The resting value is the minimal voltage between the previous peak
       (or the start of the trace) and the upstroke, unless a baseline is
       given. This is not the sample immediately preceding the upstroke,
       which a stimulus has usually already depolarized.
    6. A candidate whose peak lies less than ``min_amplitude`` above its
       resting value is discarded, so solver drift and noise around the
       resting potential give no beats.

    The upstroke velocity is the largest finite difference of the sampled
    voltage. It depends on the sampling interval, and coarse sampling
    systematically underestimates the true maximal dV/dt.

    The action potential duration at p percent is the time from the
    upstroke to the first time after the peak where the voltage has fallen
    to ``peak - p/100*(peak - rest)``. The crossing is linearly
    interpolated between the bracketing samples and is only searched for
    before the next upstroke.
    """

    def __init__(
        self,
        voltages,
        times,
        upstroke_threshold=None,
        voltage_threshold=None,
        hysteresis=None,
        baseline=None,
        min_amplitude=None,
    ):
        """
        Analyse a voltage trace

        Arguments
        ---------
        voltages : array
            The sampled voltage
        times : array
            Strictly increasing sample times
        upstroke_threshold : float, optional
            Minimal upstroke velocity of a beat. Default from
            ``parameters.analysis.upstroke_threshold``
        voltage_threshold : float, optional
            Level an upstroke has to cross, default the middle of the range
        hysteresis : float, optional
            Distance below the voltage threshold the trace must reach
            before the next beat is detected. Default a fraction
            ``parameters.analysis.hysteresis_fraction`` of the range
        baseline : float, optional
            Fixed resting value used instead of the measured one
        min_amplitude : float, optional
            Minimal peak minus resting value of a beat. Default from
            ``parameters.analysis.min_amplitude``
        """
        self._voltages = np.array(voltages, dtype=float)
        self._times = np.array(times, dtype=float)
        self._check_trace()

        if upstroke_threshold is None:
            upstroke_threshold = parameters.analysis.upstroke_threshold
        if min_amplitude is None:
            min_amplitude = parameters.analysis.min_amplitude
        for name, value in [
            ("upstroke_threshold", upstroke_threshold),
            ("voltage_threshold", voltage_threshold),
            ("hysteresis", hysteresis),
            ("baseline", baseline),
            ("min_amplitude", min_amplitude),
        ]:
            if value is not None and not math.isfinite(value):
                raise ConfigurationError(f"Expected a finite value for '{name}'")
        if hysteresis is not None and hysteresis < 0:
            raise ConfigurationError("Expected a non-negative hysteresis")
        if min_amplitude < 0:
            raise ConfigurationError("Expected a non-negative min_amplitude")

        self._upstroke_threshold = float(upstroke_threshold)
        self._min_amplitude = float(min_amplitude)
        self._baseline = baseline

        v_min = self._voltages.min()
        v_max = self._voltages.max()
        v_range = v_max - v_min
        if voltage_threshold is None:
            voltage_threshold = 0.5 * (v_min + v_max)
        if hysteresis is None:
            hysteresis = parameters.analysis.hysteresis_fraction * v_range
        self._voltage_threshold = float(voltage_threshold)
        self._hysteresis = float(hysteresis)

        self._slopes = np.diff(self._voltages) / np.diff(self._times)
        self._detect_beats(v_range)

        debug(
            "Detected %d beats in a trace of %d samples",
            self.num_beats,
            len(self._times),
        )

    @classmethod
    def from_solution(cls, solution, **kwargs):
        """
        Analyse the voltage of an ODESolution
        """
        return cls(solution.voltages, solution.times, **kwargs)

    def _check_trace(self):
        v, t = self._voltages, self._times
        if v.ndim != 1 or t.ndim != 1 or len(v) != len(t):
            raise ConfigurationError(
                "Expected voltages and times as 1D arrays of equal length, "
                "got shapes {0} and {1}".format(v.shape, t.shape),
            )
        if len(t) < 3:
            raise ConfigurationError("Expected at least 3 samples")
        if not (np.isfinite(v).all() and np.isfinite(t).all()):
            raise ConfigurationError("Expected finite voltages and times")
        if not (np.diff(t) > 0).all():
            raise ConfigurationError("Expected strictly increasing times")

    def _detect_beats(self, v_range):
        v = self._voltages
        num_samples = len(v)

        # Upstroke interval indices, the slope k is between sample k and k+1
        self._upstrokes = []
        if v_range <= 0.0:
            self._peaks = []
            self._rests = []
            return

        # Threshold crossings with hysteresis
        rearm_level = self._voltage_threshold - self._hysteresis
        candidates = []
        armed_at = None
        for i in range(num_samples):
            if armed_at is None:
                if v[i] < rearm_level:
                    armed_at = i
            elif v[i] >= self._voltage_threshold:
                candidates.append((armed_at, i))
                armed_at = None

        # Windows between re-arm points
        last_peak = 0
        for ind, (armed_at, crossing) in enumerate(candidates):
            if ind + 1 < len(candidates):
                window_end = candidates[ind + 1][0]
            else:
                window_end = num_samples - 1
            peak = crossing + int(np.argmax(v[crossing : window_end + 1]))
            upstroke = armed_at + int(np.argmax(self._slopes[armed_at:peak]))
            if not self._slopes[upstroke] > self._upstroke_threshold:
                continue

            if self._baseline is None:
                rest = v[last_peak : upstroke + 1].min()
            else:
                rest = self._baseline
            if v[peak] - rest < self._min_amplitude:
                continue

            self._upstrokes.append(upstroke)
            last_peak = peak

        # Peaks and resting values
        self._peaks = []
        self._rests = []
        for ind, upstroke in enumerate(self._upstrokes):
            end = self._window_end(ind)
            self._peaks.append(upstroke + 1 + int(np.argmax(v[upstroke + 1 : end + 1])))

            start = self._peaks[ind - 1] if ind > 0 else 0
            if self._baseline is None:
                self._rests.append(float(v[start : upstroke + 1].min()))
            else:
                self._rests.append(float(self._baseline))

    def _window_end(self, beat):
        "Last sample index which belongs to the beat"
        if beat + 1 < len(self._upstrokes):
            return self._upstrokes[beat + 1]
        return len(self._voltages) - 1

    def _upstroke_time(self, upstroke):
        t = self._times
        mids = 0.5 * (t[:-1] + t[1:])
        if upstroke == 0 or upstroke + 1 == len(self._slopes):
            return float(mids[upstroke])
        window = slice(upstroke - 1, upstroke + 2)
        return float(_parabola_vertex(mids[window], self._slopes[window]))

    def _check_beats(self):
        if not self._upstrokes:
            raise NoBeatsDetectedError("No action potentials detected in the trace")

    def _beat_index(self, beat):
        self._check_beats()
        check_arg(beat, (int, np.integer), 0)
        num_beats = len(self._upstrokes)
        if not -num_beats <= beat < num_beats:
            raise ConfigurationError(
                f"Beat {beat} out of range, the trace has {num_beats} beats",
            )
        return beat % num_beats

    def _repolarization_time(self, beat, percentage):
        v, t = self._voltages, self._times
        peak = self._peaks[beat]
        level = v[peak] - percentage / 100.0 * (v[peak] - self._rests[beat])

        end = self._window_end(beat)
        below = np.flatnonzero(v[peak : end + 1] <= level)
        if len(below) == 0:
            raise IncompleteRepolarizationError(
                "Beat {0} does not reach {1:g}% repolarization before "
                "t = {2:g}".format(beat, percentage, t[end]),
            )
        i = peak + int(below[0])
        if i == peak:
            return float(t[peak])
        frac = (v[i - 1] - level) / (v[i - 1] - v[i])
        return float(t[i - 1] + frac * (t[i] - t[i - 1]))

    @property
    def voltage_threshold(self):
        return self._voltage_threshold

    @property
    def num_beats(self):
        "Number of detected beats, 0 is not an error"
        return len(self._upstrokes)

    @property
    def upstroke_times(self):
        self._check_beats()
        return np.array([self._upstroke_time(k) for k in self._upstrokes])

    @property
    def max_upstroke_velocities(self):
        self._check_beats()
        return self._slopes[self._upstrokes].copy()

    @property
    def peak_times(self):
        self._check_beats()
        return self._times[self._peaks].copy()

    @property
    def peak_potentials(self):
        self._check_beats()
        return self._voltages[self._peaks].copy()

    @property
    def resting_potentials(self):
        self._check_beats()
        return np.array(self._rests)

    @property
    def amplitudes(self):
        return self.peak_potentials - self.resting_potentials

    @property
    def cycle_lengths(self):
        "Time between consecutive upstrokes"
        return np.diff(self.upstroke_times)

    @property
    def last_max_upstroke_velocity(self):
        return float(self.max_upstroke_velocities[-1])

    @property
    def last_peak_potential(self):
        return float(self.peak_potentials[-1])

    @property
    def last_resting_potential(self):
        return float(self.resting_potentials[-1])

    def action_potential_durations(self, percentage=None):
        """
        Return the action potential duration of every beat

        Arguments
        ---------
        percentage : float
            Repolarization percentage, default
            ``parameters.analysis.percentage``
        """
        if percentage is None:
            percentage = parameters.analysis.percentage
        percentage = _check_percentage(percentage)
        self._check_beats()
        return np.array(
            [
                self._repolarization_time(beat, percentage)
                - self._upstroke_time(upstroke)
                for beat, upstroke in enumerate(self._upstrokes)
            ],
        )

    def last_action_potential_duration(self, percentage=None):
        """
        Return the action potential duration of the last beat
        """
        if percentage is None:
            percentage = parameters.analysis.percentage
        percentage = _check_percentage(percentage)
        self._check_beats()
        beat = len(self._upstrokes) - 1
        return self._repolarization_time(beat, percentage) - self._upstroke_time(
            self._upstrokes[beat],
        )

    def last_complete_action_potential_duration(self, percentage=None):
        """
        Return the action potential duration of the last beat which
        repolarizes to the given percentage
        """
        if percentage is None:
            percentage = parameters.analysis.percentage
        percentage = _check_percentage(percentage)
        self._check_beats()
        for beat in reversed(range(len(self._upstrokes))):
            try:
                repolarization = self._repolarization_time(beat, percentage)
            except IncompleteRepolarizationError:
                continue
            return repolarization - self._upstroke_time(self._upstrokes[beat])
        raise IncompleteRepolarizationError(
            f"No beat reaches {percentage:g}% repolarization",
        )

    def action_potential_marker(self, beat=-1, percentages=(90,)):
        """
        Return the markers of one beat

        Arguments
        ---------
        beat : int
            The beat index, negative values count from the last beat
        percentages : list of float
            The repolarization percentages to compute
        """
        beat = self._beat_index(beat)
        upstroke = self._upstrokes[beat]
        peak = self._peaks[beat]
        repolarization_times = {}
        for percentage in percentages:
            percentage = _check_percentage(percentage)
            repolarization_times[percentage] = self._repolarization_time(
                beat,
                percentage,
            )
        return ActionPotentialMarker(
            self._upstroke_time(upstroke),
            float(self._slopes[upstroke]),
            float(self._times[peak]),
            float(self._voltages[peak]),
            self._rests[beat],
            repolarization_times,
        )
