"""test for the solution container"""
import numpy as np
import pytest

import singlecell
from singlecell import ODESolution, load_solution


@pytest.fixture
def solution():
    times = np.arange(0.0, 5.5, 0.5)
    states = np.column_stack((np.sin(times), np.cos(times), times ** 2))
    return ODESolution(times, states, ["V", "m", "Cai"], voltage_name="V")


def test_accessors(solution):
    assert len(solution) == 11
    assert solution.state_names == ["V", "m", "Cai"]
    assert solution.voltage_name == "V"
    assert solution.start_time == 0.0
    assert solution.end_time == 5.0
    for i in range(3):
        assert len(solution.variable_at_index(i)) == len(solution.times)

    assert np.array_equal(solution.variable_by_name("m"), np.cos(solution.times))
    assert np.array_equal(solution.voltages, solution.variable_at_index(0))


def test_idempotent(solution):
    assert np.array_equal(solution.times, solution.times)
    assert np.array_equal(solution.variable_at_index(2), solution.variable_at_index(2))


def test_read_only(solution):
    with pytest.raises(ValueError):
        solution.times[0] = 1.0

    with pytest.raises(ValueError):
        solution.variable_at_index(0)[0] = 1.0

    # Changing the input arrays does not change the solution
    times = np.arange(3.0)
    states = np.zeros((3, 1))
    sol = ODESolution(times, states, ["V"])
    times[0] = -1.0
    states[0, 0] = 1.0
    assert sol.times[0] == 0.0
    assert sol.states[0, 0] == 0.0


def test_numpy_index(solution):
    index = solution.state_names.index("m")
    assert np.array_equal(solution.variable_at_index(np.int64(index)), np.cos(solution.times))
    assert np.array_equal(
        solution.variable_at_index(np.arange(3)[2]),
        solution.variable_by_name("Cai"),
    )


def test_unknown_variable(solution):
    with pytest.raises(singlecell.UnknownVariableError):
        solution.variable_by_name("nonexistent")

    with pytest.raises(singlecell.UnknownVariableError):
        solution.variable_at_index(3)

    with pytest.raises(singlecell.UnknownVariableError):
        ODESolution([0.0, 1.0], [[0.0], [1.0]], ["u"]).voltages


@pytest.mark.parametrize(
    "times, states",
    [
        ([0.0, 1.0], [[0.0], [1.0], [2.0]]),
        ([0.0, 2.0, 1.0], [[0.0], [1.0], [2.0]]),
        ([], np.zeros((0, 1))),
    ],
)
def test_invalid(times, states):
    with pytest.raises(singlecell.ConfigurationError):
        ODESolution(times, states, ["V"])


def test_write_and_load(solution, tmp_path):
    filename = solution.write_to_file("beeler_reuter", "pace_1", directory=tmp_path)
    assert filename == tmp_path / "beeler_reuter" / "pace_1.dat"

    with open(filename) as f:
        header = f.readline().split()
        first = f.readline().split()
    assert header == ["time(ms)", "V", "m", "Cai"]
    assert len(first) == 4

    loaded, time_unit = load_solution(filename)
    assert time_unit == "ms"
    assert loaded.state_names == solution.state_names
    assert loaded.voltage_name == "V"
    assert np.allclose(loaded.times, solution.times, rtol=1e-11)
    assert np.allclose(loaded.states, solution.states, rtol=1e-11, atol=1e-15)


def test_write_time_unit(solution, tmp_path):
    filename = solution.write_to_file("model", "run", time_unit="s", directory=tmp_path)
    assert load_solution(filename)[1] == "s"


def test_concatenate():
    first = ODESolution([0.0, 1.0, 2.0], [[0.0], [1.0], [2.0]], ["V"], "V")
    second = ODESolution([2.0, 3.0], [[2.0], [3.0]], ["V"], "V")
    third = ODESolution([3.5, 4.0], [[3.5], [4.0]], ["V"], "V")

    joined = ODESolution.concatenate([first, second, third])
    assert np.array_equal(joined.times, [0.0, 1.0, 2.0, 3.0, 3.5, 4.0])
    assert np.array_equal(joined.voltages, joined.times)

    other = ODESolution([5.0, 6.0], [[0.0], [1.0]], ["u"])
    with pytest.raises(singlecell.ConfigurationError):
        ODESolution.concatenate([first, other])

    with pytest.raises(singlecell.ConfigurationError):
        ODESolution.concatenate([])
