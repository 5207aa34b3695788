
"""AFT survival toolkit (aftlab).

Lognormal parameter conversions plus thin wrappers over lifelines, SciPy and
PyMC for parametric (accelerated failure time) survival analysis.
This package exposes a CLI via `aftlab` (Typer app).
"""

__version__ = "0.1.0"

from . import compare, io, lognormal, models, preprocess, schema, simulate  # noqa: F401
from .lognormal import (  # noqa: F401
    LognormalDomainError,
    location_scale_from_moments,
    moments_from_location_scale,
)
