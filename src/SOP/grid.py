import logging
from typing import Iterable, List, Optional, Tuple, Type

import numpy as np
import pandas as pd

from .configs import ColumnsConfig, LoggingConfig, ProjectionControls
from .interfaces import EHorizon, IBaselineRecord, IObservation
from .utils import baseline_to_dataframe, observations_to_dataframe

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


class GridBuilder:
    """Builds the (entity x scenario x year) simulation grid shared by the path projectors.

    :param column_config: An optional ColumnsConfig object containing relevant variable names
    """

    def __init__(self, column_config: Type[ColumnsConfig] = ColumnsConfig):
        self.column_config = column_config

    def build(
        self,
        baseline: List[IBaselineRecord],
        years: Iterable[int],
        scenario_column: str,
        scenarios: Iterable[float],
    ) -> pd.DataFrame:
        """Expand every entity of BASELINE over YEARS and SCENARIOS.

        :param baseline: one IBaselineRecord per entity
        :param years: the years of the grid, in increasing order
        :param scenario_column: name of the scenario axis (ColumnsConfig.PERCENTILE or ColumnsConfig.SPEED)
        :param scenarios: the scenario keys
        :return: DataFrame with columns ENTITY_ID, SCENARIO_COLUMN, YEAR, VALUE sorted in that order.  VALUE holds
        the baseline value at each entity's anchor year (for every scenario) and NaN everywhere else.
        """
        cols = self.column_config
        years = list(years)
        scenarios = list(scenarios)
        entity_ids = [b.entity_id for b in baseline]
        index = pd.MultiIndex.from_product(
            [entity_ids, scenarios, years], names=[cols.ENTITY_ID, scenario_column, cols.YEAR]
        )
        grid = pd.DataFrame(index=index).reset_index()
        if grid.empty:
            grid[cols.VALUE] = pd.Series(dtype=np.float64)
            return grid
        seeds = baseline_to_dataframe(baseline, cols).rename(columns={cols.ANCHOR_YEAR: cols.YEAR})
        grid = grid.merge(seeds, on=[cols.ENTITY_ID, cols.YEAR], how="left").rename(
            columns={cols.BASELINE_VALUE: cols.VALUE}
        )
        grid[cols.YEAR] = grid[cols.YEAR].astype(np.int64)
        return grid.sort_values([cols.ENTITY_ID, scenario_column, cols.YEAR], ignore_index=True)

    def attach_observations(
        self,
        df: pd.DataFrame,
        observations: Optional[List[IObservation]],
        baseline: List[IBaselineRecord],
    ) -> pd.DataFrame:
        """Left-join observed values on (ENTITY_ID, YEAR) into the OBSERVED column.
        Without OBSERVATIONS, the baseline records are the only known observations.
        """
        cols = self.column_config
        if observations is None:
            observations = [
                IObservation(entity_id=b.entity_id, year=b.anchor_year, value=b.baseline_value) for b in baseline
            ]
        observed = observations_to_dataframe(observations, cols)
        if observed[[cols.ENTITY_ID, cols.YEAR]].duplicated().any():
            error_message = "Observations must hold at most one value per entity and year"
            logger.error(error_message)
            raise ValueError(error_message)
        df = df.merge(observed, on=[cols.ENTITY_ID, cols.YEAR], how="left")
        df[cols.OBSERVED] = df[cols.OBSERVED].astype(np.float64)
        return df

    def filter_bounds(self, df: pd.DataFrame, lower: float, upper: float) -> pd.DataFrame:
        """Keep rows with a VALUE whose observation, if any, lies within [LOWER, UPPER]"""
        cols = self.column_config
        observed = df[cols.OBSERVED]
        in_bounds = observed.isna() | ((observed >= lower) & (observed <= upper))
        excluded = df[df[cols.VALUE].notna() & ~in_bounds]
        if not excluded.empty:
            logger.debug(
                f"Dropping {len(excluded)} rows backed by observations outside [{lower}, {upper}] for entities "
                f"{excluded[cols.ENTITY_ID].unique().tolist()}"
            )
        return df[df[cols.VALUE].notna() & in_bounds].reset_index(drop=True)


class PathProjector(object):
    """This class implements generic functions used by both the percentile and the speed path projectors.

    Subclasses set HORIZON: future projectors start at each entity's latest observation and run to TARGET_YEAR;
    historical projectors start at each entity's earliest observation and run across [START_YEAR, END_YEAR].
    """

    HORIZON: EHorizon = EHorizon.FUTURE
    SCENARIO_COLUMN: str = ColumnsConfig.PERCENTILE

    def __init__(
        self,
        projection_controls: ProjectionControls = ProjectionControls(),
        column_config: Type[ColumnsConfig] = ColumnsConfig,
    ):
        self.projection_controls = projection_controls
        self.column_config = column_config
        self.grid_builder = GridBuilder(column_config)

    def _get_year_range(self, baseline: List[IBaselineRecord]) -> Tuple[int, int]:
        if self.HORIZON == EHorizon.FUTURE:
            first_year = min([b.anchor_year for b in baseline], default=self.projection_controls.TARGET_YEAR)
            return first_year, self.projection_controls.TARGET_YEAR
        return self.projection_controls.START_YEAR, self.projection_controls.END_YEAR

    def _get_bounded_baseline(
        self, baseline: List[IBaselineRecord], first_year: int, last_year: int
    ) -> List[IBaselineRecord]:
        entity_ids = [b.entity_id for b in baseline]
        if len(set(entity_ids)) != len(entity_ids):
            error_message = "Baseline must hold exactly one record per entity"
            logger.error(error_message)
            raise ValueError(error_message)
        bounded = [b for b in baseline if first_year <= b.anchor_year <= last_year]
        if len(bounded) < len(baseline):
            logger.warning(
                f"Entities anchored outside {first_year}-{last_year} are excluded from {self.HORIZON} paths: "
                f"{[b.entity_id for b in baseline if b not in bounded]}"
            )
        return bounded

    def _check_unique_scenarios(self, scenarios: List[float]) -> None:
        if len(set(scenarios)) != len(scenarios):
            error_message = f"{self.SCENARIO_COLUMN} values must be unique: {list(scenarios)}"
            logger.error(error_message)
            raise ValueError(error_message)

    def _get_log_level(self, verbose: Optional[bool]) -> int:
        if verbose is None:
            verbose = self.projection_controls.VERBOSE
        return logging.INFO if verbose else logging.DEBUG

    def _finalize(
        self,
        df: pd.DataFrame,
        baseline: List[IBaselineRecord],
        observations: Optional[List[IObservation]],
        lower: float,
        upper: float,
    ) -> pd.DataFrame:
        cols = self.column_config
        df = self.grid_builder.attach_observations(df, observations, baseline)
        df = self.grid_builder.filter_bounds(df, lower, upper)
        df = df[[cols.ENTITY_ID, cols.YEAR, self.SCENARIO_COLUMN, cols.VALUE, cols.OBSERVED]]
        return df.sort_values([cols.ENTITY_ID, cols.YEAR, self.SCENARIO_COLUMN], ignore_index=True)

    def _get_empty_paths(self) -> pd.DataFrame:
        cols = self.column_config
        return pd.DataFrame(
            {
                cols.ENTITY_ID: pd.Series(dtype=object),
                cols.YEAR: pd.Series(dtype=np.int64),
                self.SCENARIO_COLUMN: pd.Series(dtype=np.float64),
                cols.VALUE: pd.Series(dtype=np.float64),
                cols.OBSERVED: pd.Series(dtype=np.float64),
            }
        )
