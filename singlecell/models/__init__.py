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

from ..common.errors import ConfigurationError
from ..model.cellmodel import CellModel
from . import aliev_panfilov, beeler_reuter_1977

_all_models = dict(
    (module.model_name, module) for module in [aliev_panfilov, beeler_reuter_1977]
)


def list_models():
    "Return the names of the shipped cell models"
    return sorted(_all_models.keys())


def load_model(name):
    """
    Return a CellModel for one of the shipped model modules

    Arguments
    ---------
    name : str
        The name of the model, see :func:`list_models`
    """
    if name not in _all_models:
        raise ConfigurationError(
            "Unknown model '{0}', possible models are: {1}".format(
                name,
                ", ".join(list_models()),
            ),
        )
    return CellModel.from_module(_all_models[name])


__all__ = ["aliev_panfilov", "beeler_reuter_1977", "list_models", "load_model"]
