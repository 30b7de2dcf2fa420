import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Type, Union

from .configs import ColumnsConfig, LoggingConfig, ProjectionControls
from .interfaces import (
    ConfigurationError,
    EDirection,
    EHorizon,
    IBaselineRecord,
    IChangeModel,
    IObservation,
    IReferencePath,
    ProjectionResult,
)
from .percentile_path import FuturePercentilePathProjector, HistoricalPercentilePathProjector
from .speed_path import FutureSpeedPathProjector, HistoricalSpeedPathProjector

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


class ProjectionOrchestrator:
    """This class validates a projection run, dispatches it to the requested projectors and bundles their results.

    Per-run settings are given as keyword overrides of the ProjectionControls:

        granularity, min (or floor), max (or ceiling), target_year, start_year, end_year,
        percentile_set, speeds, direction, verbose

    Every setting is checked before any projection starts; an invalid run raises ConfigurationError.

    :param projection_controls: An optional ProjectionControls object containing the default settings
    :param column_config: An optional ColumnsConfig object containing relevant variable names
    """

    _OVERRIDES = {
        "granularity": "GRANULARITY",
        "min": "MIN",
        "floor": "MIN",
        "max": "MAX",
        "ceiling": "MAX",
        "target_year": "TARGET_YEAR",
        "start_year": "START_YEAR",
        "end_year": "END_YEAR",
        "percentile_set": "PERCENTILES",
        "speeds": "SPEEDS",
        "direction": "DIRECTION",
        "verbose": "VERBOSE",
    }

    def __init__(
        self,
        projection_controls: ProjectionControls = ProjectionControls(),
        column_config: Type[ColumnsConfig] = ColumnsConfig,
    ):
        self.projection_controls = projection_controls
        self.column_config = column_config

    def run(
        self,
        baseline: List[IBaselineRecord],
        percentiles: bool = False,
        speed: bool = False,
        change_model: Optional[IChangeModel] = None,
        reference_path: Optional[IReferencePath] = None,
        horizon: Union[EHorizon, str] = EHorizon.FUTURE,
        observations: Optional[List[IObservation]] = None,
        **overrides: Any,
    ) -> ProjectionResult:
        """
        :param baseline: one IBaselineRecord per entity
        :param percentiles: compute percentile paths (requires CHANGE_MODEL)
        :param speed: compute speed paths (requires REFERENCE_PATH)
        :param change_model: predicted changes by (initial value, percentile)
        :param reference_path: the canonical (relative_time, value) curve
        :param horizon: EHorizon.FUTURE (anchor at the latest observation) or EHorizon.HISTORICAL
        :param observations: actual observations used for bound filtering (default: the baseline records)
        :return: a ProjectionResult whose unrequested tables are None
        """
        try:
            horizon = EHorizon(horizon)
        except ValueError:
            self._raise(f"Unknown horizon {horizon}; use future or historical")
        if not percentiles and not speed:
            self._raise("At least one projection method (percentiles or speed) must be requested")
        if percentiles and change_model is None:
            self._raise("Percentile paths were requested but no change model was given")
        if speed and reference_path is None:
            self._raise("Speed paths were requested but no reference path was given")
        controls = self._get_projection_controls(overrides)

        if horizon == EHorizon.FUTURE:
            percentile_projector = FuturePercentilePathProjector(controls, self.column_config)
            speed_projector = FutureSpeedPathProjector(controls, self.column_config)
        else:
            percentile_projector = HistoricalPercentilePathProjector(controls, self.column_config)
            speed_projector = HistoricalSpeedPathProjector(controls, self.column_config)

        logger.info(
            f"Starting {horizon} projection of {len(baseline)} entities "
            f"(percentiles={bool(percentiles)}, speed={bool(speed)})"
        )
        result = ProjectionResult(horizon=horizon)
        if percentiles:
            result.percentile_path = percentile_projector.project_percentile_paths(
                baseline, change_model, observations=observations
            )
        if speed:
            result.speed_path = speed_projector.project_speed_paths(
                baseline, reference_path, observations=observations
            )
        return result

    def future_path(self, baseline: List[IBaselineRecord], **kwargs) -> ProjectionResult:
        """Project each entity from its latest observation up to TARGET_YEAR"""
        return self.run(baseline, horizon=EHorizon.FUTURE, **kwargs)

    def historical_path(self, baseline: List[IBaselineRecord], **kwargs) -> ProjectionResult:
        """Project each entity from its earliest observation in [START_YEAR, END_YEAR] across that window"""
        return self.run(baseline, horizon=EHorizon.HISTORICAL, **kwargs)

    def _get_projection_controls(self, overrides: Dict[str, Any]) -> ProjectionControls:
        unknown = sorted(set(overrides).difference(self._OVERRIDES))
        if unknown:
            self._raise(f"Unknown projection settings: {unknown}")
        if "min" in overrides and "floor" in overrides:
            self._raise("Give either min or floor, not both")
        if "max" in overrides and "ceiling" in overrides:
            self._raise("Give either max or ceiling, not both")
        changes = {self._OVERRIDES[name]: value for name, value in overrides.items() if value is not None}
        for field in ["PERCENTILES", "SPEEDS"]:
            if field in changes:
                changes[field] = tuple(changes[field])
        controls = replace(self.projection_controls, **changes)

        if controls.GRANULARITY <= 0:
            self._raise(f"Granularity must be positive, got {controls.GRANULARITY}")
        if controls.MIN > controls.MAX:
            self._raise(f"Lower bound {controls.MIN} exceeds upper bound {controls.MAX}")
        if controls.START_YEAR > controls.END_YEAR:
            self._raise(f"start_year {controls.START_YEAR} is after end_year {controls.END_YEAR}")
        if not controls.PERCENTILES:
            self._raise("The percentile set is empty")
        if not controls.SPEEDS:
            self._raise("The speed set is empty")
        if len(set(controls.PERCENTILES)) != len(controls.PERCENTILES):
            self._raise(f"Percentiles must be unique, got {list(controls.PERCENTILES)}")
        if len(set(controls.SPEEDS)) != len(controls.SPEEDS):
            self._raise(f"Speeds must be unique, got {list(controls.SPEEDS)}")
        if any(s <= 0 for s in controls.SPEEDS):
            self._raise(f"Speeds must be positive, got {list(controls.SPEEDS)}")
        try:
            EDirection(controls.DIRECTION)
        except ValueError:
            self._raise(f"Unknown direction {controls.DIRECTION}; use higher_is_better or lower_is_better")
        return controls

    def _raise(self, error_message: str):
        logger.error(error_message)
        raise ConfigurationError(error_message)
