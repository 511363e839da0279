"""test for pacing to steady state"""
import numpy as np
import pytest

import singlecell
from singlecell import CellSimulation, RegularStimulus, SteadyStateRunner


@pytest.fixture
def paced(aliev_panfilov):
    sim = CellSimulation(aliev_panfilov, max_timestep=1.0)
    sim.use_default_stimulus()
    return sim


def test_steady_state(paced):
    runner = SteadyStateRunner(paced, max_paces=50, apd_tolerance=0.1, peak_tolerance=0.1)
    solution = runner.run()

    assert 2 <= runner.num_paces <= 50
    assert solution.times[0] == pytest.approx(1000.0 * (runner.num_paces - 1))
    assert solution.times[-1] == pytest.approx(1000.0 * runner.num_paces)

    props = runner.converged_properties
    assert props.num_beats == 1
    assert props.last_peak_potential > 0.0

    # The simulation continues from the end of the final pace
    assert np.array_equal(paced.state_variables, solution.states[-1])


def test_state_tolerance(aliev_panfilov):
    results = []
    for state_tolerance in [None, 1e-2]:
        sim = CellSimulation(aliev_panfilov)
        sim.use_default_stimulus()
        runner = SteadyStateRunner(
            sim,
            max_paces=200,
            apd_tolerance=1.0,
            peak_tolerance=1.0,
            state_tolerance=state_tolerance,
        )
        runner.run()
        results.append(runner.num_paces)

    assert results[1] >= results[0]


def test_non_convergence(paced):
    # Convergence needs at least two paces
    runner = SteadyStateRunner(paced, max_paces=1)
    with pytest.raises(singlecell.NonConvergenceError):
        runner.run()
    assert runner.num_paces == 1
    assert runner.converged_properties is None


def test_no_stimulus(aliev_panfilov):
    runner = SteadyStateRunner(CellSimulation(aliev_panfilov))
    with pytest.raises(singlecell.ConfigurationError):
        runner.run()


def test_invalid_options(paced):
    with pytest.raises(singlecell.ConfigurationError):
        SteadyStateRunner(paced, max_paces=0)
    with pytest.raises(singlecell.ConfigurationError):
        SteadyStateRunner(paced, percentage=120.0)
    with pytest.raises(singlecell.ConfigurationError):
        SteadyStateRunner(paced, state_tolerance=-1.0)


def test_start_time(aliev_panfilov):
    sim = CellSimulation(aliev_panfilov)
    sim.set_stimulus(RegularStimulus(-50.0, 1.0, 800.0, start=5.0))
    runner = SteadyStateRunner(sim, sampling_interval=0.5, max_paces=50, apd_tolerance=0.5)
    solution = runner.run(start_time=2000.0)

    assert solution.times[0] == pytest.approx(2000.0 + 800.0 * (runner.num_paces - 1))
    assert np.allclose(np.diff(solution.times), 0.5)
