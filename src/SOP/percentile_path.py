import logging
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .configs import ColumnsConfig, LoggingConfig
from .grid import PathProjector
from .interfaces import EHorizon, IBaselineRecord, IChangeModel, IObservation
from .utils import round_to_grid, within_bounds

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


class PercentilePathProjector(PathProjector):
    """This class projects an indicator year by year by applying the change predicted for its current level at a
    given percentile of historical progress:

        value[year] = round_to_grid(value[year - 1] + change_model[(round_to_grid(value[year - 1]), percentile)])

    Every percentile starts from the same anchor (the entity's baseline value).  A series stops as soon as the change
    model has no entry for its current level, or its next value would fall outside [MIN, MAX]; no later year is
    emitted for it.

    Each year depends only on the year before, so all (entity, percentile) series advance together, one year at a
    time, over a matrix with one row per series and one column per year.
    """

    SCENARIO_COLUMN = ColumnsConfig.PERCENTILE

    def project_percentile_paths(
        self,
        baseline: List[IBaselineRecord],
        change_model: IChangeModel,
        percentiles: Optional[Iterable[float]] = None,
        year_range: Optional[Tuple[int, int]] = None,
        granularity: Optional[float] = None,
        bounds: Optional[Tuple[float, float]] = None,
        observations: Optional[List[IObservation]] = None,
        verbose: Optional[bool] = None,
    ) -> pd.DataFrame:
        """
        :param baseline: one IBaselineRecord per entity; the anchor of every path
        :param change_model: predicted changes by (initial value, percentile)
        :param percentiles: percentile labels to project (default ProjectionControls.PERCENTILES)
        :param year_range: (first_year, last_year) of the simulation window (default depends on HORIZON)
        :param granularity: rounding grid of every stored value (default ProjectionControls.GRANULARITY)
        :param bounds: (min, max) of valid values (default ProjectionControls.MIN/MAX)
        :param observations: actual observations used for bound filtering (default: the baseline records)
        :param verbose: log progress of every year at INFO rather than DEBUG
        :return: DataFrame with columns ENTITY_ID, YEAR, PERCENTILE, VALUE, OBSERVED sorted by entity and year
        """
        controls = self.projection_controls
        cols = self.column_config
        percentiles = list(controls.PERCENTILES if percentiles is None else percentiles)
        granularity = controls.GRANULARITY if granularity is None else granularity
        lower, upper = (controls.MIN, controls.MAX) if bounds is None else bounds
        first_year, last_year = self._get_year_range(baseline) if year_range is None else year_range
        log_level = self._get_log_level(verbose)
        self._check_unique_scenarios(percentiles)

        baseline = self._get_bounded_baseline(baseline, first_year, last_year)
        logger.info(f"Calculating {self.HORIZON} percentile paths for {len(baseline)} entities")
        years = list(range(first_year, last_year + 1))
        grid = self.grid_builder.build(baseline, years, cols.PERCENTILE, percentiles)
        if grid.empty:
            return self._get_empty_paths()

        lookup = change_model.to_lookup(granularity)
        n_years = len(years)
        values = grid[cols.VALUE].to_numpy(dtype=np.float64, copy=True).reshape(-1, n_years)
        series_percentiles = grid[cols.PERCENTILE].to_numpy()[::n_years]

        for j in range(1, n_years):
            prev = values[:, j - 1]
            active = ~np.isnan(prev) & np.isnan(values[:, j])
            if not active.any():
                continue
            steps = np.round(prev[active] / granularity).astype(np.int64)
            changes = np.array(
                [lookup.get((int(step), float(pctl)), np.nan) for step, pctl in zip(steps, series_percentiles[active])],
                dtype=np.float64,
            )
            projected = round_to_grid(prev[active] + changes, granularity)
            # A value outside the bounds ends its series, like a missing change model entry
            projected[~within_bounds(projected, lower, upper)] = np.nan
            values[active, j] = projected
            logger.log(
                log_level,
                f"Processing year {years[j]}: {int((~np.isnan(projected)).sum())} of {int(active.sum())} series advanced",
            )

        grid[cols.VALUE] = values.ravel()
        return self._finalize(grid, baseline, observations, lower, upper)


class FuturePercentilePathProjector(PercentilePathProjector):
    """Percentile paths from each entity's latest observation to TARGET_YEAR"""

    HORIZON = EHorizon.FUTURE


class HistoricalPercentilePathProjector(PercentilePathProjector):
    """Counterfactual percentile paths across [START_YEAR, END_YEAR], starting at each entity's earliest
    observation in that window.  These show how an entity would have progressed had it followed a given
    percentile, for comparison with what was actually observed.
    """

    HORIZON = EHorizon.HISTORICAL
