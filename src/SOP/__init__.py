"""This package projects the future and counterfactual historical trajectories of a bounded indicator (such as the
share of a country's population with access to electricity) by percentile of historical progress and by speed of
progress along a reference path.
"""

from . import utils  # noqa F401
from .data.units import isna  # noqa F401
from .interfaces import ConfigurationError, EDirection, EHorizon  # noqa F401
from .path_projection import ProjectionOrchestrator  # noqa F401
