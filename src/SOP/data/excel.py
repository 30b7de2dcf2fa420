import logging
from typing import Optional, Type

import pandas as pd

from ..configs import ColumnsConfig, LoggingConfig, ProjectionControls, TabsConfig
from ..data.base_providers import BaseObservationProvider, BaseProviderChangeModel, BaseProviderReferencePath
from ..interfaces import IChangeModel, IReferencePath

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


def _read_sheet(excel_path: str, sheet_name: str) -> pd.DataFrame:
    workbook = pd.read_excel(excel_path, sheet_name=None, skiprows=0)
    if sheet_name not in workbook:
        error_message = f"Tab {sheet_name} is required in input Excel file {excel_path}; found {list(workbook)}"
        logger.error(error_message)
        raise ValueError(error_message)
    return workbook[sheet_name]


class ExcelProviderChangeModel(BaseProviderChangeModel):
    def __init__(self, excel_path: str, column_config: Type[ColumnsConfig] = ColumnsConfig):
        """Overrides BaseProvider and reads the change model from the TabsConfig.CHANGE_MODEL tab of an Excel file
        :param excel_path: file path to excel
        :param column_config: An optional ColumnsConfig object containing relevant variable names
        """
        df = _read_sheet(excel_path, TabsConfig.CHANGE_MODEL)
        change_model = IChangeModel.from_dataframe(df, column_config)
        logger.info(f"Read {len(change_model.entries)} change model entries from {excel_path}")
        super().__init__(change_model)


class ExcelProviderReferencePath(BaseProviderReferencePath):
    def __init__(
        self, excel_path: str, shape: Optional[str] = None, column_config: Type[ColumnsConfig] = ColumnsConfig
    ):
        """Overrides BaseProvider and reads a reference path from the TabsConfig.REFERENCE_PATH tab of an Excel file
        :param excel_path: file path to excel
        :param shape: which reference path to read when the tab holds several (one per SHAPE)
        :param column_config: An optional ColumnsConfig object containing relevant variable names
        """
        df = _read_sheet(excel_path, TabsConfig.REFERENCE_PATH)
        super().__init__(IReferencePath.from_dataframe(df, shape, column_config))


class ExcelProviderObservations(BaseObservationProvider):
    """Data provider skeleton for observations kept in the TabsConfig.OBSERVATIONS tab of an Excel file.

    :param excel_path: A path to the Excel file with the observations
    :param code_col: name of the column holding the entity code
    :param year_col: name of the column holding the year
    :param value_col: name of the column holding the indicator value
    :param column_config: An optional ColumnsConfig object containing relevant variable names
    :param projection_controls: An optional ProjectionControls object containing projection settings
    """

    def __init__(
        self,
        excel_path: str,
        code_col: str = "iso3c",
        year_col: str = "date",
        value_col: str = "EG.ELC.ACCS.ZS",
        column_config: Type[ColumnsConfig] = ColumnsConfig,
        projection_controls: ProjectionControls = ProjectionControls(),
    ):
        df = _read_sheet(excel_path, TabsConfig.OBSERVATIONS)
        super().__init__(
            df,
            code_col=code_col,
            year_col=year_col,
            value_col=value_col,
            column_config=column_config,
            projection_controls=projection_controls,
        )
