"""This module handles initialization of pint functionality"""

from typing import Optional, Union

import numpy as np
import pandas as pd
from pint import DimensionalityError
from pint.errors import UndefinedUnitError
from typing_extensions import TypeAlias

from ..data import PintType, Q_, ureg

Quantity: TypeAlias = ureg.Quantity


def isna(x) -> bool:
    """True if X is either a NaN-like Quantity or otherwise NA-like"""
    if isinstance(x, Quantity):
        x = x.m
    return x is None or bool(pd.isna(x))


def check_IndicatorMetric(units: str) -> str:
    try:
        ureg(units)
    except (UndefinedUnitError, AttributeError, TypeError) as exc:
        raise ValueError(f"{units} is not a unit known to the unit registry") from exc
    return units


def to_Quantity(quantity: Union[Quantity, str]) -> Quantity:
    if isinstance(quantity, str):
        try:
            v, u = quantity.split(" ", 1)
            quantity = Q_(float(v), u)
        except ValueError:
            return ureg(quantity)
    elif not isinstance(quantity, Quantity):  # type: ignore
        raise ValueError(f"{quantity} is not a Quantity")
    return quantity


def magnitude_as(value, units: str) -> float:
    """Return the magnitude of VALUE expressed in UNITS.

    Plain numbers are assumed to already be expressed in UNITS.  Strings and Quantities are parsed and
    converted, raising DimensionalityError when they cannot be related to UNITS.
    """
    if isna(value):
        return np.nan
    if isinstance(value, (str, Quantity)):
        quantity = to_Quantity(value)
        if not quantity.is_compatible_with(units):
            raise DimensionalityError(quantity.u, units, extra_msg=f"; `{value}` cannot be read as {units}")
        return float(quantity.to(units).m)
    return float(value)


def dequantify_series(series: pd.Series, units: str) -> pd.Series:
    """:param series : pd.Series of plain numbers, Quantities, or a PintArray
    :param units : the units in which magnitudes should be returned

    :return: a float64 pd.Series of magnitudes in UNITS; missing values become np.nan
    """
    if isinstance(series.dtype, PintType):
        return series.pint.to(units).pint.magnitude.astype(np.float64)
    if series.dtype == "O":
        return series.map(lambda x: np.nan if isna(x) else magnitude_as(x, units)).astype(np.float64)
    return series.astype(np.float64)


def asPintSeries(series: pd.Series, units: str, name: Optional[str] = None) -> pd.Series:
    """:param series : pd.Series of magnitudes already expressed in UNITS
    :param units : the units to attach
    :param name : the name to give to the resulting series

    :return: a PintArray-backed version of the series
    """
    new_series = series.astype(np.float64).astype(f"pint[{units}]")
    if name:
        new_series.name = name
    return new_series
