"""AFT regression models: lifelines fits and an optional PyMC fit."""

from . import aft  # noqa: F401
