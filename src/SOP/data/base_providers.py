import logging
from typing import List, Optional, Type

import numpy as np
import pandas as pd

from ..configs import ColumnsConfig, LoggingConfig, ProjectionControls
from ..data.units import dequantify_series
from ..interfaces import IBaselineRecord, IChangeModel, IObservation, IReferencePath
from ..utils import dataframe_to_observations, round_to_grid
from .data_providers import ChangeModelDataProvider, ObservationDataProvider, ReferencePathDataProvider

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


class BaseObservationProvider(ObservationDataProvider):
    """Data provider skeleton for a panel of indicator observations held in a DataFrame.
    Source columns are renamed to ColumnsConfig names, so World Bank style tables (iso3c, date, <indicator code>)
    can be used as they are downloaded.

    :param observations: DataFrame with one row per (entity, year)
    :param code_col: name of the column holding the entity code
    :param year_col: name of the column holding the year
    :param value_col: name of the column holding the indicator value
    :param units: if given, the units of VALUE_COL when it holds plain numbers; values are converted to
                  projection_controls.UNITS
    :param column_config: An optional ColumnsConfig object containing relevant variable names
    :param projection_controls: An optional ProjectionControls object containing projection settings
    """

    def __init__(
        self,
        observations: pd.DataFrame,
        code_col: str = "iso3c",
        year_col: str = "date",
        value_col: str = "EG.ELC.ACCS.ZS",
        units: Optional[str] = None,
        column_config: Type[ColumnsConfig] = ColumnsConfig,
        projection_controls: ProjectionControls = ProjectionControls(),
    ):
        super().__init__()
        self._column_config = column_config
        self.projection_controls = projection_controls
        missing = [col for col in [code_col, year_col, value_col] if col not in observations.columns]
        if missing:
            error_message = f"Columns {missing} are missing from the observation data"
            logger.error(error_message)
            raise ValueError(error_message)
        df = observations[[code_col, year_col, value_col]].rename(
            columns={code_col: column_config.ENTITY_ID, year_col: column_config.YEAR, value_col: column_config.VALUE}
        )
        values = df[column_config.VALUE]
        if units is not None and values.dtype.kind in "iuf":
            values = values.astype(f"pint[{units}]")
        df[column_config.VALUE] = dequantify_series(values, projection_controls.UNITS)
        df[column_config.ENTITY_ID] = df[column_config.ENTITY_ID].astype(str)
        df[column_config.YEAR] = df[column_config.YEAR].astype(np.int64)
        if df[[column_config.ENTITY_ID, column_config.YEAR]].duplicated().any():
            error_message = "Observations must hold at most one value per entity and year"
            logger.error(error_message)
            raise ValueError(error_message)
        self._observations_df = df.sort_values([column_config.ENTITY_ID, column_config.YEAR], ignore_index=True)

    @property
    def column_config(self) -> Type[ColumnsConfig]:
        """:return: ColumnsConfig values for this Data Provider"""
        return self._column_config

    def get_projection_controls(self) -> ProjectionControls:
        return self.projection_controls

    def get_entity_ids(self) -> List[str]:
        return self._observations_df[self.column_config.ENTITY_ID].unique().tolist()

    def get_observations(self, entity_ids: Optional[List[str]] = None) -> List[IObservation]:
        df = self._observations_df
        if entity_ids is not None:
            df = df[df[self.column_config.ENTITY_ID].isin(entity_ids)]
        return dataframe_to_observations(df, self.column_config)

    def get_future_baseline(self) -> List[IBaselineRecord]:
        """Overrides subclass method
        :return: the latest observation with a value of each entity, rounded to GRANULARITY
        """
        df = self._observations_df.dropna(subset=[self.column_config.VALUE])
        latest = df.groupby(self.column_config.ENTITY_ID, sort=True).tail(1)
        return self._to_baseline(latest)

    def get_historical_baseline(self) -> List[IBaselineRecord]:
        """Overrides subclass method
        :return: the earliest observation with a value within [START_YEAR, END_YEAR] of each entity, rounded to
        GRANULARITY.  Entities without such an observation have no historical baseline.
        """
        cols = self.column_config
        df = self._observations_df.dropna(subset=[cols.VALUE])
        df = df[df[cols.YEAR].between(self.projection_controls.START_YEAR, self.projection_controls.END_YEAR)]
        earliest = df.groupby(cols.ENTITY_ID, sort=True).head(1)
        return self._to_baseline(earliest)

    def _to_baseline(self, df: pd.DataFrame) -> List[IBaselineRecord]:
        cols = self.column_config
        values = round_to_grid(df[cols.VALUE].to_numpy(dtype=np.float64), self.projection_controls.GRANULARITY)
        return [
            IBaselineRecord(entity_id=e, anchor_year=int(y), baseline_value=float(v))
            for e, y, v in zip(df[cols.ENTITY_ID], df[cols.YEAR], values)
        ]


class BaseProviderChangeModel(ChangeModelDataProvider):
    def __init__(self, change_model: IChangeModel):
        super().__init__()
        self._change_model = change_model

    def get_change_model(self) -> IChangeModel:
        return self._change_model


class BaseProviderReferencePath(ReferencePathDataProvider):
    def __init__(self, reference_path: IReferencePath):
        super().__init__()
        self._reference_path = reference_path

    def get_reference_path(self) -> IReferencePath:
        return self._reference_path
