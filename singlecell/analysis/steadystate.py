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

__all__ = ["SteadyStateRunner"]

import numpy as np
from modelparameters.logger import debug, info
from modelparameters.utils import check_arg

from ..common.errors import ConfigurationError, NonConvergenceError
from ..common.options import parameters, updated_options
from ..model.simulation import CellSimulation
from .cellproperties import CellProperties


class SteadyStateRunner(object):
    """
    Pace a simulation until the beat properties stop changing

    Every pace is one stimulus period integrated from the end state of the
    previous pace. A pace is converged when its APD and peak potential
    differ from the previous pace by at most the tolerances, and, if a
    state tolerance is given, the 2-norm of the change of the state vector
    over the pace is below it.
    """

    def __init__(
        self,
        simulation,
        sampling_interval=None,
        max_paces=None,
        percentage=None,
        apd_tolerance=None,
        peak_tolerance=None,
        state_tolerance=None,
        **analysis_options,
    ):
        """
        Create a SteadyStateRunner

        Arguments
        ---------
        simulation : CellSimulation
            The simulation to pace, it must have a stimulus
        sampling_interval : float, optional
            Sampling interval of each pace
        max_paces : int, optional
            Maximal number of paces before giving up
        percentage : float, optional
            Repolarization percentage of the compared APD
        apd_tolerance, peak_tolerance : float, optional
            Allowed change of APD and peak potential between two paces
        state_tolerance : float, optional
            Allowed change of the state vector over one pace
        analysis_options : dict
            Passed to :class:`CellProperties`
        """
        check_arg(simulation, CellSimulation, 0, SteadyStateRunner)

        options = dict(
            sampling_interval=sampling_interval,
            max_paces=max_paces,
            apd_tolerance=apd_tolerance,
            peak_tolerance=peak_tolerance,
        )
        self._options = updated_options(
            parameters.steadystate,
            **dict((name, value) for name, value in options.items() if value is not None),
        )
        if percentage is None:
            percentage = parameters.analysis.percentage
        self._percentage = updated_options(
            parameters.analysis,
            percentage=percentage,
        ).percentage

        if state_tolerance is not None and not state_tolerance > 0:
            raise ConfigurationError("Expected a positive state_tolerance")

        self._simulation = simulation
        self._state_tolerance = state_tolerance
        self._analysis_options = analysis_options
        self.num_paces = 0
        self.converged_properties = None

    def _analyse(self, solution):
        props = CellProperties.from_solution(solution, **self._analysis_options)
        apd = props.last_action_potential_duration(self._percentage)
        return props, apd, props.last_peak_potential

    def run(self, start_time=0.0):
        """
        Pace the simulation to steady state

        Arguments
        ---------
        start_time : float
            The simulated time of the current state

        Returns
        -------
        solution : ODESolution
            The solution of the final pace
        """
        stimulus = self._simulation.stimulus
        if stimulus is None:
            raise ConfigurationError("Cannot pace a simulation without a stimulus")

        period = stimulus.period
        dt = self._options.sampling_interval
        max_paces = self._options.max_paces

        self.num_paces = 0
        self.converged_properties = None

        t = start_time
        previous = None
        for pace in range(1, max_paces + 1):
            y_start = self._simulation.state_variables
            solution = self._simulation.solve(t, t + period, dt)
            t += period
            self.num_paces = pace

            props, apd, peak = self._analyse(solution)
            state_change = np.linalg.norm(self._simulation.state_variables - y_start)
            debug(
                "Pace %d: APD%g = %g, peak = %g, state change = %g",
                pace,
                self._percentage,
                apd,
                peak,
                state_change,
            )

            if previous is not None and self._converged(
                previous,
                apd,
                peak,
                state_change,
            ):
                self.converged_properties = props
                info(
                    "Reached steady state after %d paces, APD%g = %g",
                    pace,
                    self._percentage,
                    apd,
                )
                return solution

            previous = (apd, peak)

        raise NonConvergenceError(
            "No steady state within {0} paces of {1:g}".format(max_paces, period),
        )

    def _converged(self, previous, apd, peak, state_change):
        prev_apd, prev_peak = previous
        if abs(apd - prev_apd) > self._options.apd_tolerance:
            return False
        if abs(peak - prev_peak) > self._options.peak_tolerance:
            return False
        if self._state_tolerance is not None and state_change > self._state_tolerance:
            return False
        return True
