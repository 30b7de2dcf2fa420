from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from pydantic import (
    BaseModel,
    ConfigDict,
    field_validator,
    model_validator,
)

from .configs import ColumnsConfig, LoggingConfig
from .data.units import asPintSeries, check_IndicatorMetric

logger = logging.getLogger(__name__)
LoggingConfig.add_config_to_logger(logger)


class ConfigurationError(ValueError):
    """Raised when a projection run is requested with missing artifacts or inconsistent settings.
    Nothing is computed for a run that raises this error.
    """

    pass


class EDirection(Enum):
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"

    def __str__(self):
        return self.value

    @classmethod
    def _missing_(cls, value):
        # Accept the short forms "high" and "low"
        if isinstance(value, str):
            shorthand = {"high": cls.HIGHER_IS_BETTER, "low": cls.LOWER_IS_BETTER}
            return shorthand.get(value.lower())
        return None

    def has_reached(self, reference_value: float, baseline_value: float) -> bool:
        """True if REFERENCE_VALUE is at least as good as BASELINE_VALUE in this direction"""
        if self is EDirection.HIGHER_IS_BETTER:
            return reference_value >= baseline_value
        return reference_value <= baseline_value


class EHorizon(Enum):
    FUTURE = "future"
    HISTORICAL = "historical"

    def __str__(self):
        return self.value


class IObservation(BaseModel):
    entity_id: str
    year: int
    value: Optional[float] = None

    @field_validator("value")
    def val_value(cls, v):
        if v is not None and np.isnan(v):
            return None
        return v


class IBaselineRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    entity_id: str
    anchor_year: int
    baseline_value: float

    @field_validator("baseline_value")
    def val_baseline_value(cls, v):
        if np.isnan(v):
            raise ValueError("baseline_value must not be NaN; entities without a value have no baseline")
        return v


class IChangeModelEntry(BaseModel):
    initial_value: float
    percentile: float
    change: float


class IChangeModel(BaseModel):
    """Predicted year-on-year change keyed by (initial value, percentile).  Not every value has an
    entry for every percentile; a missing entry means no further prediction is available.
    """

    entries: List[IChangeModelEntry]

    @model_validator(mode="after")
    def val_unique_keys(self):
        seen = set()
        duplicates = []
        for entry in self.entries:
            key = (entry.initial_value, entry.percentile)
            if key in seen:
                duplicates.append(key)
            seen.add(key)
        if duplicates:
            raise ValueError(f"duplicate (initial_value, percentile) entries in change model: {duplicates[:10]}")
        return self

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, column_config=ColumnsConfig) -> IChangeModel:
        missing = {column_config.INITIAL_VALUE, column_config.PERCENTILE, column_config.CHANGE}.difference(df.columns)
        if missing:
            raise ValueError(f"change model table is missing columns {sorted(missing)}")
        df = df.dropna(subset=[column_config.INITIAL_VALUE, column_config.PERCENTILE, column_config.CHANGE])
        return cls(
            entries=[
                IChangeModelEntry(initial_value=float(iv), percentile=float(p), change=float(c))
                for iv, p, c in zip(
                    df[column_config.INITIAL_VALUE], df[column_config.PERCENTILE], df[column_config.CHANGE]
                )
            ]
        )

    def to_lookup(self, granularity: float) -> Dict[Tuple[int, float], float]:
        """Return a hash map from (grid step, percentile) to change, where grid step is initial_value / granularity.
        Entries whose initial_value does not sit on the grid can never be matched and are skipped.
        """
        lookup = {}
        off_grid = 0
        for entry in self.entries:
            steps = entry.initial_value / granularity
            step = int(np.round(steps))
            if abs(steps - step) > 1e-6:
                off_grid += 1
                continue
            lookup[(step, entry.percentile)] = entry.change
        if off_grid:
            logger.warning(f"{off_grid} change model entries are not multiples of granularity {granularity} and were ignored")
        return lookup

    def get_percentiles(self) -> List[float]:
        return sorted({entry.percentile for entry in self.entries})


class IReferencePoint(BaseModel):
    relative_time: float
    value: float


class IReferencePath(BaseModel):
    """Canonical progress curve; RELATIVE_TIME is measured in years from an arbitrary origin."""

    points: List[IReferencePoint]
    shape: Optional[str] = None

    @field_validator("points")
    def val_points(cls, v):
        if not v:
            raise ValueError("reference path needs at least one point")
        times = [p.relative_time for p in v]
        if any(t1 <= t0 for t0, t1 in zip(times, times[1:])):
            raise ValueError("reference path relative_time must be strictly increasing")
        return v

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, shape: Optional[str] = None, column_config=ColumnsConfig) -> IReferencePath:
        missing = {column_config.RELATIVE_TIME, column_config.VALUE}.difference(df.columns)
        if missing:
            raise ValueError(f"reference path table is missing columns {sorted(missing)}")
        if column_config.SHAPE in df.columns:
            shapes = df[column_config.SHAPE].dropna().unique()
            if shape is None and len(shapes) > 1:
                raise ValueError(f"reference path table holds several shapes {list(shapes)}; choose one")
            if shape is None and len(shapes) == 1:
                shape = shapes[0]
            if shape is not None:
                df = df[df[column_config.SHAPE] == shape]
        df = df.sort_values(column_config.RELATIVE_TIME)
        return cls(
            points=[
                IReferencePoint(relative_time=float(t), value=float(v))
                for t, v in zip(df[column_config.RELATIVE_TIME], df[column_config.VALUE])
            ],
            shape=shape,
        )

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        return (
            np.array([p.relative_time for p in self.points], dtype=np.float64),
            np.array([p.value for p in self.points], dtype=np.float64),
        )


class IProjectedPoint(BaseModel):
    entity_id: str
    year: int
    scenario_key: float
    value: float


class ProjectionResult(BaseModel):
    """Bundle of independently computed path tables.  A table is None when its method was not requested."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    horizon: EHorizon = EHorizon.FUTURE
    percentile_path: Optional[pd.DataFrame] = None
    speed_path: Optional[pd.DataFrame] = None

    def __getitem__(self, item):
        return getattr(self, item)

    def quantify(self, units: str, column_config=ColumnsConfig) -> ProjectionResult:
        """Return a copy whose value and observed columns are PintArrays in UNITS"""
        check_IndicatorMetric(units)
        tables = {}
        for name in ["percentile_path", "speed_path"]:
            df = getattr(self, name)
            if df is None:
                tables[name] = None
                continue
            df = df.copy()
            for col in [column_config.VALUE, column_config.OBSERVED]:
                if col in df.columns:
                    df[col] = asPintSeries(df[col], units)
            tables[name] = df
        return ProjectionResult(horizon=self.horizon, **tables)
