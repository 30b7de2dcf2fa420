from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from .configs import ColumnsConfig, LoggingConfig
from .data.units import dequantify_series
from .interfaces import IBaselineRecord, IObservation, IProjectedPoint

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


def grid_decimals(granularity: float) -> int:
    """Number of decimal places needed to write any multiple of GRANULARITY (0.1 -> 1, 0.25 -> 2, 5 -> 0)"""
    exponent = Decimal(str(granularity)).normalize().as_tuple().exponent
    return max(0, -int(exponent))


def round_to_grid(values: Union[float, np.ndarray, pd.Series], granularity: float):
    """Round VALUES to the nearest multiple of GRANULARITY.

    Ties go to the even multiple (numpy's round-half-to-even on values / granularity).  The result is
    rounded again to the decimal places of GRANULARITY so that 523 * 0.1 is stored as 52.3, not 52.300000000000004.
    NaNs pass through unchanged.
    """
    rounded = np.round(np.divide(values, granularity)) * granularity
    return np.round(rounded, grid_decimals(granularity))


def within_bounds(values: Union[float, np.ndarray, pd.Series], lower: float, upper: float):
    """True where VALUES lie in [LOWER, UPPER]; NaN is never within bounds"""
    return (values >= lower) & (values <= upper)


def dataframe_to_observations(
    df: pd.DataFrame, column_config=ColumnsConfig, units: Optional[str] = None
) -> List[IObservation]:
    """Convert a data frame to a list of observations.

    :param df: The data frame to parse; must have ENTITY_ID, YEAR and VALUE columns (names per COLUMN_CONFIG)
    :param units: If given, VALUE is converted to these units (VALUE may be a PintArray or hold Quantities)
    :return: A list of IObservation
    """
    _check_columns(df, [column_config.ENTITY_ID, column_config.YEAR, column_config.VALUE], "observations")
    values = df[column_config.VALUE]
    values = dequantify_series(values, units) if units else values.astype(np.float64)
    return [
        IObservation(entity_id=str(e), year=int(y), value=None if np.isnan(v) else float(v))
        for e, y, v in zip(df[column_config.ENTITY_ID], df[column_config.YEAR], values)
    ]


def dataframe_to_baseline(
    df: pd.DataFrame, column_config=ColumnsConfig, units: Optional[str] = None
) -> List[IBaselineRecord]:
    """Convert a data frame to a list of baseline records.  Rows without a baseline value are dropped.

    :param df: The data frame to parse; must have ENTITY_ID, ANCHOR_YEAR and BASELINE_VALUE columns
    :param units: If given, BASELINE_VALUE is converted to these units
    :return: A list of IBaselineRecord, one per entity
    """
    _check_columns(
        df, [column_config.ENTITY_ID, column_config.ANCHOR_YEAR, column_config.BASELINE_VALUE], "baseline"
    )
    if df[column_config.ENTITY_ID].duplicated().any():
        duplicated = df.loc[df[column_config.ENTITY_ID].duplicated(), column_config.ENTITY_ID].tolist()
        error_message = f"Baseline must hold one row per entity; duplicated: {duplicated}"
        logger.error(error_message)
        raise ValueError(error_message)
    values = df[column_config.BASELINE_VALUE]
    values = dequantify_series(values, units) if units else values.astype(np.float64)
    records = [
        IBaselineRecord(entity_id=str(e), anchor_year=int(y), baseline_value=float(v))
        for e, y, v in zip(df[column_config.ENTITY_ID], df[column_config.ANCHOR_YEAR], values)
        if not np.isnan(v)
    ]
    if len(records) < len(df):
        logger.warning(f"{len(df) - len(records)} entities have no baseline value and are excluded")
    return records


def baseline_to_dataframe(baseline: List[IBaselineRecord], column_config=ColumnsConfig) -> pd.DataFrame:
    return pd.DataFrame(
        {
            column_config.ENTITY_ID: [b.entity_id for b in baseline],
            column_config.ANCHOR_YEAR: pd.Series([b.anchor_year for b in baseline], dtype=np.int64),
            column_config.BASELINE_VALUE: pd.Series([b.baseline_value for b in baseline], dtype=np.float64),
        }
    )


def observations_to_dataframe(observations: List[IObservation], column_config=ColumnsConfig) -> pd.DataFrame:
    return pd.DataFrame(
        {
            column_config.ENTITY_ID: [o.entity_id for o in observations],
            column_config.YEAR: pd.Series([o.year for o in observations], dtype=np.int64),
            column_config.OBSERVED: pd.Series(
                [np.nan if o.value is None else o.value for o in observations], dtype=np.float64
            ),
        }
    )


def dataframe_to_points(df: pd.DataFrame, column_config=ColumnsConfig) -> List[IProjectedPoint]:
    """Convert a projected path table (percentile or speed) to a list of IProjectedPoint"""
    if column_config.PERCENTILE in df.columns:
        scenario_col = column_config.PERCENTILE
    elif column_config.SPEED in df.columns:
        scenario_col = column_config.SPEED
    else:
        raise ValueError(f"Path table has neither a {column_config.PERCENTILE} nor a {column_config.SPEED} column")
    return [
        IProjectedPoint(entity_id=str(e), year=int(y), scenario_key=float(s), value=float(v))
        for e, y, s, v in zip(
            df[column_config.ENTITY_ID], df[column_config.YEAR], df[scenario_col], df[column_config.VALUE]
        )
    ]


def _check_columns(df: pd.DataFrame, columns: List[str], what: str) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        error_message = f"Columns {missing} are missing from the {what} data"
        logger.error(error_message)
        raise ValueError(error_message)
