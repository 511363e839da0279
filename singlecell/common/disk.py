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

__all__ = ["save_table", "load_table"]

import re

# System imports
from pathlib import Path

import numpy
from modelparameters.logger import INFO, info, set_log_level
from modelparameters.utils import check_arg

from .errors import ConfigurationError

_time_column = re.compile(r"\Atime\((?P<unit>[^)]*)\)\Z")

set_log_level(INFO)


def save_table(filename, names, times, values, time_unit="ms"):
    """
    Save sampled data as whitespace delimited text

    The first line holds ``time(<time_unit>)`` followed by the names of
    the columns, then one line per sample with the time first.

    Arguments
    ---------
    filename : str, pathlib.Path
        The file to write, parent directories are created
    names : list of str
        Names of the columns in ``values``
    times : array
        Sample times
    values : array
        Array of shape (len(times), len(names))
    time_unit : str
        Unit written in the time column header
    """

    check_arg(time_unit, str, 4)
    filename = Path(filename)
    times = numpy.asarray(times, dtype=float)
    values = numpy.asarray(values, dtype=float)

    if values.shape != (len(times), len(names)):
        raise ConfigurationError(
            "Expected values of shape {0}, got {1}".format(
                (len(times), len(names)),
                values.shape,
            ),
        )

    if any(len(name.split()) != 1 for name in names):
        raise ConfigurationError("Column names cannot contain whitespace")

    filename.parent.mkdir(parents=True, exist_ok=True)
    header = " ".join([f"time({time_unit})"] + list(names))
    numpy.savetxt(
        filename,
        numpy.column_stack((times, values)),
        fmt="%.12g",
        header=header,
        comments="",
    )
    info("Saved %d samples to: %s", len(times), filename)
    return filename


def load_table(filename):
    """
    Load data written by :func:`save_table`

    Returns
    -------
    names : list of str
        Column names, time excluded
    times : numpy.ndarray
    values : numpy.ndarray
        Array of shape (len(times), len(names))
    time_unit : str
    """
    filename = Path(filename)
    if not filename.is_file():
        raise IOError(f"No file named: '{filename}' excists")

    with open(filename) as f:
        header = f.readline().split()

    match = _time_column.match(header[0]) if header else None
    if match is None:
        raise ConfigurationError(
            f"Expected the first column of '{filename}' to be the time",
        )

    names = header[1:]
    data = numpy.loadtxt(filename, skiprows=1, ndmin=2)
    if data.shape[1] != len(names) + 1:
        raise ConfigurationError(
            "Header of '{0}' lists {1} columns but the data has {2}".format(
                filename,
                len(names) + 1,
                data.shape[1],
            ),
        )

    info("Loading data from: %s", filename)
    return names, data[:, 0], data[:, 1:], match.group("unit")
