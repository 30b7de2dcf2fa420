import logging
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .configs import ColumnsConfig, LoggingConfig
from .grid import PathProjector
from .interfaces import EDirection, EHorizon, IBaselineRecord, IObservation, IReferencePath
from .utils import round_to_grid, within_bounds

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


class SpeedPathProjector(PathProjector):
    """This class projects an indicator by following a canonical reference path at different speeds of progress.

    For each entity, the anchor is the first point of the reference path that has already reached the entity's
    baseline value.  The remainder of the reference path is then laid out in calendar years starting at the entity's
    anchor year, with its timeline divided by the speed:

        year = anchor_year + (relative_time - anchor_relative_time) / speed

    A speed of 2 covers the same progress in half the time; a speed of 0.5 takes twice as long.  Values for each
    calendar year are linearly interpolated between those points and held constant beyond the last one.  A path
    ends at its first value outside [MIN, MAX].
    """

    SCENARIO_COLUMN = ColumnsConfig.SPEED

    def project_speed_paths(
        self,
        baseline: List[IBaselineRecord],
        reference_path: IReferencePath,
        speeds: Optional[Iterable[float]] = None,
        direction: Optional[Union[EDirection, str]] = None,
        year_range: Optional[Tuple[int, int]] = None,
        bounds: Optional[Tuple[float, float]] = None,
        granularity: Optional[float] = None,
        observations: Optional[List[IObservation]] = None,
        verbose: Optional[bool] = None,
    ) -> pd.DataFrame:
        """
        :param baseline: one IBaselineRecord per entity; the anchor of every path
        :param reference_path: the canonical (relative_time, value) curve
        :param speeds: speed multipliers to project (default ProjectionControls.SPEEDS)
        :param direction: whether higher or lower values mean progress (default ProjectionControls.DIRECTION)
        :param year_range: (first_year, last_year) of the simulation window (default depends on HORIZON)
        :param bounds: (min, max) of valid values (default ProjectionControls.MIN/MAX)
        :param granularity: rounding grid of every stored value (default ProjectionControls.GRANULARITY)
        :param observations: actual observations used for bound filtering (default: the baseline records)
        :param verbose: log every entity excluded for lack of an anchor at INFO rather than DEBUG
        :return: DataFrame with columns ENTITY_ID, YEAR, SPEED, VALUE, OBSERVED sorted by entity and year
        """
        controls = self.projection_controls
        cols = self.column_config
        speeds = list(controls.SPEEDS if speeds is None else speeds)
        direction = EDirection(controls.DIRECTION if direction is None else direction)
        granularity = controls.GRANULARITY if granularity is None else granularity
        lower, upper = (controls.MIN, controls.MAX) if bounds is None else bounds
        first_year, last_year = self._get_year_range(baseline) if year_range is None else year_range
        log_level = self._get_log_level(verbose)
        if any(speed <= 0 for speed in speeds):
            error_message = f"Speeds must be positive: {speeds}"
            logger.error(error_message)
            raise ValueError(error_message)
        self._check_unique_scenarios(speeds)

        baseline = self._get_bounded_baseline(baseline, first_year, last_year)
        logger.info(
            f"Calculating {self.HORIZON} speed paths for {len(baseline)} entities "
            f"along reference path {reference_path.shape or ''}"
        )
        times, reference_values = reference_path.as_arrays()

        paths = []
        anchored = []
        for record in baseline:
            anchor_idx = self._find_anchor(reference_values, record.baseline_value, direction)
            if anchor_idx is None:
                logger.log(
                    log_level,
                    f"{record.entity_id}: reference path never reaches {record.baseline_value}; no speed paths",
                )
                continue
            anchored.append(record)
            years = np.arange(record.anchor_year, last_year + 1)
            for speed in speeds:
                values = round_to_grid(
                    self._resample(record, times, reference_values, anchor_idx, speed, years), granularity
                )
                # The path ends at its first value outside the bounds
                out_of_bounds = ~within_bounds(values, lower, upper)
                n_years = int(np.argmax(out_of_bounds)) if out_of_bounds.any() else len(years)
                if n_years == 0:
                    continue
                paths.append(
                    pd.DataFrame(
                        {
                            cols.ENTITY_ID: record.entity_id,
                            cols.YEAR: years[:n_years],
                            cols.SPEED: speed,
                            cols.VALUE: values[:n_years],
                        }
                    )
                )
        if not paths:
            return self._get_empty_paths()

        df = pd.concat(paths, ignore_index=True)
        df[cols.YEAR] = df[cols.YEAR].astype(np.int64)
        return self._finalize(df, anchored, observations, lower, upper)

    def _find_anchor(self, reference_values: np.ndarray, baseline_value: float, direction: EDirection) -> Optional[int]:
        reached = direction.has_reached(reference_values, baseline_value)
        if not reached.any():
            return None
        return int(np.argmax(reached))

    def _resample(
        self,
        record: IBaselineRecord,
        times: np.ndarray,
        reference_values: np.ndarray,
        anchor_idx: int,
        speed: float,
        years: np.ndarray,
    ) -> np.ndarray:
        # The anchor itself sits at (anchor_year, baseline_value) so that every path starts at the observed value
        rescaled_years = np.concatenate(
            [[record.anchor_year], record.anchor_year + (times[anchor_idx + 1:] - times[anchor_idx]) / speed]
        )
        rescaled_values = np.concatenate([[record.baseline_value], reference_values[anchor_idx + 1:]])
        # np.interp holds the endpoint values outside the rescaled points
        return np.interp(years, rescaled_years, rescaled_values)


class FutureSpeedPathProjector(SpeedPathProjector):
    """Speed paths from each entity's latest observation to TARGET_YEAR"""

    HORIZON = EHorizon.FUTURE


class HistoricalSpeedPathProjector(SpeedPathProjector):
    """Counterfactual speed paths from each entity's earliest observation in [START_YEAR, END_YEAR] to END_YEAR"""

    HORIZON = EHorizon.HISTORICAL
