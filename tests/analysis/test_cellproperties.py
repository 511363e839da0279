"""test for the action potential analysis"""
import math

import numpy as np
import pytest

import singlecell
from singlecell import CellProperties, CellSimulation


def synthetic_trace(num_beats=2, period=300.0, end_time=None):
    """
    Piecewise linear action potentials sampled every ms

    Each beat rests at -80, rises to 20 between 10 and 12 ms after the
    start of the period and falls linearly back to -80 at 212 ms. APDp is
    1 + 2*p ms.
    """
    if end_time is None:
        end_time = num_beats * period
    times = np.arange(0.0, end_time + 0.5, 1.0)
    voltages = np.interp(
        times % period,
        [0.0, 10.0, 12.0, 212.0, period],
        [-80.0, -80.0, 20.0, -80.0, -80.0],
    )
    return voltages, times


@pytest.fixture
def props():
    return CellProperties(*synthetic_trace())


def test_beats(props):
    assert props.num_beats == 2
    assert np.allclose(props.upstroke_times, [11.0, 311.0])
    assert np.allclose(props.max_upstroke_velocities, [50.0, 50.0])
    assert np.allclose(props.peak_times, [12.0, 312.0])
    assert np.allclose(props.peak_potentials, [20.0, 20.0])
    assert np.allclose(props.resting_potentials, [-80.0, -80.0])
    assert np.allclose(props.amplitudes, [100.0, 100.0])
    assert np.allclose(props.cycle_lengths, [300.0])
    assert props.last_max_upstroke_velocity == pytest.approx(50.0)
    assert props.last_peak_potential == pytest.approx(20.0)
    assert props.last_resting_potential == pytest.approx(-80.0)
    assert props.voltage_threshold == pytest.approx(-30.0)


@pytest.mark.parametrize("percentage", [0.0, 25.0, 50.0, 90.0, 99.9, 100.0])
def test_action_potential_durations(props, percentage):
    apds = props.action_potential_durations(percentage)
    assert np.allclose(apds, 1.0 + 2 * percentage)
    assert props.last_action_potential_duration(percentage) == pytest.approx(1.0 + 2 * percentage)


def test_default_percentage(props):
    assert np.allclose(props.action_potential_durations(), 181.0)


def test_interpolated_crossing():
    # Two samples bracket the 50% level
    voltages, times = synthetic_trace(num_beats=1)
    props = CellProperties(voltages[::3], times[::3])
    assert props.num_beats == 1
    assert props.last_action_potential_duration(50) == pytest.approx(
        12.0 + 100.0 - props.upstroke_times[0],
    )


def test_monotone_in_percentage(props):
    apds = [props.last_action_potential_duration(p) for p in [50, 90, 99.9]]
    assert apds == sorted(apds)


def test_idempotent(props):
    assert np.array_equal(props.upstroke_times, props.upstroke_times)
    assert np.array_equal(
        props.action_potential_durations(80),
        props.action_potential_durations(80),
    )


def test_incomplete_repolarization():
    voltages, times = synthetic_trace(num_beats=2, end_time=450.0)
    props = CellProperties(voltages, times)
    assert props.num_beats == 2

    # The second beat is cut at 450 ms, before 90% repolarization
    with pytest.raises(singlecell.IncompleteRepolarizationError):
        props.last_action_potential_duration(90)
    with pytest.raises(singlecell.IncompleteRepolarizationError):
        props.action_potential_durations(90)

    assert props.last_action_potential_duration(50) == pytest.approx(101.0)
    assert props.last_complete_action_potential_duration(90) == pytest.approx(181.0)


def test_no_complete_beat():
    voltages, times = synthetic_trace(num_beats=1, end_time=100.0)
    props = CellProperties(voltages, times)
    with pytest.raises(singlecell.IncompleteRepolarizationError):
        props.last_complete_action_potential_duration(90)


@pytest.mark.parametrize("voltages", [np.zeros(100), np.full(100, -80.0)])
def test_flat_trace(voltages):
    props = CellProperties(voltages, np.arange(100.0))
    assert props.num_beats == 0

    with pytest.raises(singlecell.NoBeatsDetectedError):
        props.action_potential_durations(90)
    with pytest.raises(singlecell.NoBeatsDetectedError):
        props.last_action_potential_duration()
    with pytest.raises(singlecell.NoBeatsDetectedError):
        props.upstroke_times
    with pytest.raises(singlecell.NoBeatsDetectedError):
        props.action_potential_marker(0)


def test_noisy_resting_trace():
    rng = np.random.default_rng(0)
    voltages = -80.0 + 0.5 * rng.standard_normal(1000)
    props = CellProperties(voltages, np.arange(1000.0))
    assert props.num_beats == 0
    with pytest.raises(singlecell.NoBeatsDetectedError):
        props.last_action_potential_duration(90)


def test_unpaced_model_at_rest(beeler_reuter):
    sim = CellSimulation(beeler_reuter, max_timestep=1.0)
    solution = sim.solve(0.0, 1000.0, 1.0)

    # Only solver drift around the resting potential
    assert np.ptp(solution.voltages) < 1.0
    props = CellProperties.from_solution(solution)
    assert props.num_beats == 0
    with pytest.raises(singlecell.NoBeatsDetectedError):
        props.peak_potentials


def test_min_amplitude():
    voltages, times = synthetic_trace()
    assert CellProperties(voltages, times, min_amplitude=99.0).num_beats == 2
    assert CellProperties(voltages, times, min_amplitude=101.0).num_beats == 0

    # Small excursions count when the floor is removed
    small = -80.0 + 0.05 * (voltages + 80.0)
    assert CellProperties(small, times).num_beats == 0
    assert CellProperties(small, times, min_amplitude=0.0).num_beats == 2

    with pytest.raises(singlecell.ConfigurationError):
        CellProperties(voltages, times, min_amplitude=-1.0)


def test_upstroke_threshold():
    voltages, times = synthetic_trace()
    assert CellProperties(voltages, times, upstroke_threshold=49.0).num_beats == 2
    assert CellProperties(voltages, times, upstroke_threshold=60.0).num_beats == 0


def test_hysteresis():
    # Fluctuations smaller than the hysteresis are not new beats
    voltages, times = synthetic_trace()
    noisy = voltages + 2.0 * np.sin(2 * math.pi * times / 7.0)
    assert CellProperties(noisy, times).num_beats == 2

    # A bump during repolarization is only a beat if the detection re-armed
    bump = voltages.copy()
    bump[140:150] = -25.0
    assert CellProperties(bump, times).num_beats == 3
    props = CellProperties(bump, times, voltage_threshold=-30.0, hysteresis=40.0)
    assert props.num_beats == 2


def test_trace_starting_above_threshold():
    voltages, times = synthetic_trace()
    props = CellProperties(voltages[50:], times[50:])
    assert props.num_beats == 1
    assert props.upstroke_times[0] == pytest.approx(311.0)


def test_baseline():
    voltages, times = synthetic_trace()
    props = CellProperties(voltages, times, baseline=-90.0)
    assert np.allclose(props.resting_potentials, -90.0)
    # 50% of the way from 20 to -90 is -35, reached 110 ms after the peak
    assert np.allclose(props.action_potential_durations(50), 111.0)


def test_marker(props):
    marker = props.action_potential_marker(0, percentages=(50, 90))
    assert marker.upstroke_time == pytest.approx(11.0)
    assert marker.upstroke_velocity == pytest.approx(50.0)
    assert marker.peak_time == 12.0
    assert marker.peak_value == 20.0
    assert marker.resting_value == -80.0
    assert marker.repolarization_times == {50.0: pytest.approx(112.0), 90.0: pytest.approx(192.0)}
    assert marker.apd(90) == pytest.approx(181.0)

    with pytest.raises(singlecell.ConfigurationError):
        marker.apd(30)

    assert props.action_potential_marker(np.int64(0)).upstroke_time == pytest.approx(11.0)

    last = props.action_potential_marker(-1)
    assert last.upstroke_time == pytest.approx(311.0)

    with pytest.raises(singlecell.ConfigurationError):
        props.action_potential_marker(2)


@pytest.mark.parametrize("percentage", [-1.0, 100.5, math.nan])
def test_invalid_percentage(props, percentage):
    with pytest.raises(singlecell.ConfigurationError):
        props.action_potential_durations(percentage)


@pytest.mark.parametrize(
    "voltages, times",
    [
        (np.zeros(10), np.arange(11.0)),
        (np.zeros(2), np.arange(2.0)),
        (np.zeros(10), np.zeros(10)),
        (np.full(10, np.nan), np.arange(10.0)),
        (np.zeros((10, 2)), np.arange(10.0)),
    ],
)
def test_invalid_trace(voltages, times):
    with pytest.raises(singlecell.ConfigurationError):
        CellProperties(voltages, times)


def test_phase_oscillator(oscillator, oscillator_apd50):
    period = 1000.0
    sim = CellSimulation(oscillator, max_timestep=5.0)
    solution = sim.solve(0.0, 5 * period, period / 100)

    props = CellProperties.from_solution(solution)
    assert props.num_beats == 5

    apds = props.action_potential_durations(50)
    assert np.allclose(apds, oscillator_apd50, rtol=0.01)

    # The maximal slope of exp(kappa*(cos(theta) - 1)) for kappa = 3
    kappa = 3.0
    phi_u = -math.acos((-1.0 + math.sqrt(1.0 + 4 * kappa ** 2)) / (2 * kappa))
    expected = period / 2 + phi_u * period / (2 * math.pi) + period * np.arange(5)
    assert np.allclose(props.upstroke_times, expected, atol=1.0)
    assert np.allclose(props.cycle_lengths, period, atol=1.0)
    assert np.allclose(props.peak_times, period / 2 + period * np.arange(5))


@pytest.mark.parametrize("max_timestep", [5.0, 1.0, 0.5])
def test_beat_count_independent_of_max_timestep(oscillator, max_timestep):
    sim = CellSimulation(oscillator, max_timestep=max_timestep)
    solution = sim.solve(0.0, 3000.0, 10.0)
    assert CellProperties.from_solution(solution).num_beats == 3


def test_beeler_reuter(beeler_reuter):
    sim = CellSimulation(beeler_reuter, max_timestep=1.0)
    sim.use_default_stimulus()
    solution = sim.solve(0.0, 500.0, 0.1)

    props = CellProperties.from_solution(solution)
    assert props.num_beats == 1
    assert 10.0 < props.upstroke_times[0] < 15.0
    assert props.last_peak_potential > 10.0
    assert props.last_resting_potential == pytest.approx(-84.6, abs=1.0)
    assert props.last_max_upstroke_velocity > 30.0
    assert 150.0 < props.last_action_potential_duration(90) < 450.0

    # Coarser sampling underestimates the upstroke velocity
    coarse = CellProperties(solution.voltages[::20], solution.times[::20])
    assert coarse.last_max_upstroke_velocity < props.last_max_upstroke_velocity
