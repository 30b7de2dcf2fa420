import json
import os
import unittest
from typing import List

import numpy as np
import pandas as pd

import SOP
from SOP.configs import ColumnsConfig
from SOP.interfaces import IBaselineRecord, IChangeModel, IReferencePath

root = os.path.dirname(os.path.abspath(__file__))
json_dir = os.path.join(root, "inputs", "json")


def load_change_model(filename: str = "change_model.json") -> IChangeModel:
    with open(os.path.join(json_dir, filename)) as json_file:
        parsed_json = json.load(json_file)
    return IChangeModel(entries=parsed_json)


def load_reference_path(filename: str = "reference_path.json") -> IReferencePath:
    with open(os.path.join(json_dir, filename)) as json_file:
        parsed_json = json.load(json_file)
    return IReferencePath(**parsed_json)


def load_observations(filename: str = "observations.json") -> pd.DataFrame:
    with open(os.path.join(json_dir, filename)) as json_file:
        parsed_json = json.load(json_file)
    # null values arrive as None; pandas turns them into NaN in a float column
    return pd.DataFrame.from_records(parsed_json)


def make_baseline(*records) -> List[IBaselineRecord]:
    """make_baseline(("A", 2020, 50.0), ("B", 2021, 60.0))"""
    return [IBaselineRecord(entity_id=e, anchor_year=y, baseline_value=v) for e, y, v in records]


def get_series(df: pd.DataFrame, entity_id: str, scenario_column: str, scenario) -> pd.Series:
    """Return the VALUE of one (entity, scenario) series indexed by YEAR"""
    mask = (df[ColumnsConfig.ENTITY_ID] == entity_id) & (df[scenario_column] == scenario)
    return df[mask].set_index(ColumnsConfig.YEAR)[ColumnsConfig.VALUE]


def assert_series_equal_to(case: unittest.TestCase, series: pd.Series, expected: dict, places=7, msg=None):
    # Helper function comparing a year-indexed series to a {year: value} dict
    case.assertEqual(list(series.index), list(expected.keys()), msg)
    for year, value in expected.items():
        case.assertAlmostEqual(series[year], value, places, msg=f"year {year}: {msg or ''}")


def assert_path_properties(
    case: unittest.TestCase,
    df: pd.DataFrame,
    scenario_column: str,
    granularity: float,
    lower: float,
    upper: float,
):
    """Check the invariants every projected path table must hold:
    values on the grid and within bounds, one row per (entity, year, scenario), contiguous years per series.
    """
    cols = ColumnsConfig
    values = df[cols.VALUE].to_numpy(dtype=np.float64)
    case.assertFalse(np.isnan(values).any(), "emitted values must not be NaN")
    steps = values / granularity
    np.testing.assert_allclose(steps, np.round(steps), atol=1e-6, err_msg="values must be multiples of granularity")
    case.assertTrue(((values >= lower) & (values <= upper)).all(), f"values must lie within [{lower}, {upper}]")
    case.assertFalse(
        df.duplicated([cols.ENTITY_ID, cols.YEAR, scenario_column]).any(),
        "(entity, year, scenario) must be unique",
    )
    for (entity_id, scenario), group in df.groupby([cols.ENTITY_ID, scenario_column]):
        years = group[cols.YEAR].to_numpy()
        case.assertTrue(
            (np.diff(years) == 1).all(), f"years of {entity_id} / {scenario} are not contiguous: {years.tolist()}"
        )


def assert_anchor_equality(case: unittest.TestCase, df: pd.DataFrame, baseline: List[IBaselineRecord]):
    cols = ColumnsConfig
    for record in baseline:
        anchor_rows = df[(df[cols.ENTITY_ID] == record.entity_id) & (df[cols.YEAR] == record.anchor_year)]
        for value in anchor_rows[cols.VALUE]:
            case.assertFalse(SOP.isna(value))
            case.assertEqual(value, record.baseline_value)
