import unittest

import numpy as np
import pandas as pd
from pint_pandas import PintType
from pydantic import ValidationError

from SOP.configs import ColumnsConfig
from SOP.data.units import Q_
from SOP.interfaces import (
    EDirection,
    EHorizon,
    IBaselineRecord,
    IChangeModel,
    IChangeModelEntry,
    IObservation,
    IReferencePath,
    ProjectionResult,
)
from SOP.utils import dataframe_to_baseline, dataframe_to_observations, dataframe_to_points, grid_decimals, \
    round_to_grid, within_bounds
from utils import load_change_model, load_reference_path


class TestInterfaces(unittest.TestCase):
    """
    Test the interfaces.
    """

    def setUp(self) -> None:
        """
        """
        pass

    def test_EDirection(self):
        self.assertEqual(EDirection("higher_is_better"), EDirection.HIGHER_IS_BETTER)
        self.assertEqual(EDirection("high"), EDirection.HIGHER_IS_BETTER)
        self.assertEqual(EDirection("Low"), EDirection.LOWER_IS_BETTER)
        self.assertRaises(ValueError, EDirection, "sideways")
        self.assertTrue(EDirection.HIGHER_IS_BETTER.has_reached(55.0, 55.0))
        self.assertFalse(EDirection.HIGHER_IS_BETTER.has_reached(54.9, 55.0))
        self.assertTrue(EDirection.LOWER_IS_BETTER.has_reached(54.9, 55.0))

    def test_EHorizon(self):
        self.assertEqual(EHorizon("historical"), EHorizon.HISTORICAL)
        self.assertEqual(str(EHorizon.FUTURE), "future")

    def test_IObservation(self):
        self.assertIsNone(IObservation(entity_id="AAA", year=2020, value=np.nan).value)
        self.assertEqual(IObservation(entity_id="AAA", year=2020, value=42.0).value, 42.0)

    def test_IBaselineRecord(self):
        record = IBaselineRecord(entity_id="AAA", anchor_year=2020, baseline_value=50.0)
        with self.assertRaises(ValidationError):
            record.baseline_value = 60.0
        with self.assertRaises(ValidationError):
            IBaselineRecord(entity_id="AAA", anchor_year=2020, baseline_value=np.nan)

    def test_IChangeModel(self):
        change_model = load_change_model()
        self.assertEqual(len(change_model.entries), 21)
        self.assertEqual(change_model.get_percentiles(), [20.0, 80.0])

        lookup = change_model.to_lookup(1.0)
        self.assertEqual(lookup[(90, 20.0)], 1.0)
        self.assertEqual(lookup[(100, 80.0)], 2.5)
        self.assertNotIn((95, 20.0), lookup)

    def test_IChangeModel_lookup_granularity(self):
        change_model = IChangeModel(
            entries=[
                IChangeModelEntry(initial_value=52.0, percentile=50, change=1.5),
                IChangeModelEntry(initial_value=52.05, percentile=50, change=1.0),
                IChangeModelEntry(initial_value=0.3, percentile=50, change=0.1),
            ]
        )
        lookup = change_model.to_lookup(0.1)
        # 52.05 is not on a 0.1 grid and can never be matched
        self.assertEqual(lookup, {(520, 50.0): 1.5, (3, 50.0): 0.1})

    def test_IChangeModel_duplicates(self):
        with self.assertRaises(ValidationError):
            IChangeModel(
                entries=[
                    IChangeModelEntry(initial_value=50.0, percentile=50, change=2.0),
                    IChangeModelEntry(initial_value=50.0, percentile=50, change=1.0),
                ]
            )

    def test_IChangeModel_from_dataframe(self):
        df = pd.DataFrame(
            {
                ColumnsConfig.INITIAL_VALUE: [50.0, 52.0, 53.5],
                ColumnsConfig.PERCENTILE: [50, 50, 50],
                ColumnsConfig.CHANGE: [2.0, 1.5, np.nan],
            }
        )
        change_model = IChangeModel.from_dataframe(df)
        self.assertEqual(len(change_model.entries), 2)
        self.assertRaises(ValueError, IChangeModel.from_dataframe, df.drop(columns=ColumnsConfig.CHANGE))

    def test_IReferencePath(self):
        reference_path = load_reference_path()
        self.assertEqual(reference_path.shape, "s")
        times, values = reference_path.as_arrays()
        self.assertEqual(times.tolist(), [float(t) for t in range(11)])
        self.assertEqual(values[4], 55.0)

        with self.assertRaises(ValidationError):
            IReferencePath(points=[])
        with self.assertRaises(ValidationError):
            IReferencePath(points=[{"relative_time": 1, "value": 50}, {"relative_time": 1, "value": 55}])

    def test_IReferencePath_from_dataframe(self):
        df = pd.DataFrame(
            {
                ColumnsConfig.SHAPE: ["s", "s", "s", "l", "l"],
                ColumnsConfig.RELATIVE_TIME: [2, 0, 1, 0, 1],
                ColumnsConfig.VALUE: [62.0, 50.0, 55.0, 10.0, 20.0],
            }
        )
        self.assertRaises(ValueError, IReferencePath.from_dataframe, df)

        reference_path = IReferencePath.from_dataframe(df, shape="s")
        self.assertEqual(reference_path.shape, "s")
        self.assertEqual([p.value for p in reference_path.points], [50.0, 55.0, 62.0])

        reference_path = IReferencePath.from_dataframe(df[df[ColumnsConfig.SHAPE] == "l"])
        self.assertEqual(reference_path.shape, "l")

    def test_ProjectionResult_quantify(self):
        df = pd.DataFrame(
            {
                ColumnsConfig.ENTITY_ID: ["A", "A"],
                ColumnsConfig.YEAR: [2020, 2021],
                ColumnsConfig.PERCENTILE: [50.0, 50.0],
                ColumnsConfig.VALUE: [50.0, 52.0],
                ColumnsConfig.OBSERVED: [50.0, np.nan],
            }
        )
        result = ProjectionResult(percentile_path=df)
        self.assertIs(result["percentile_path"], df)
        self.assertIsNone(result["speed_path"])

        quantified = result.quantify("percent")
        self.assertIsInstance(quantified.percentile_path[ColumnsConfig.VALUE].dtype, PintType)
        self.assertEqual(quantified.percentile_path[ColumnsConfig.VALUE].iloc[1], Q_(52.0, "percent"))
        self.assertIsNone(quantified.speed_path)
        # the original table is left untouched
        self.assertEqual(result.percentile_path[ColumnsConfig.VALUE].dtype, np.float64)
        self.assertRaises(ValueError, result.quantify, "not_a_unit")


class TestUtils(unittest.TestCase):
    """
    Test the rounding and conversion helpers
    """

    def test_grid_decimals(self):
        self.assertEqual(grid_decimals(0.1), 1)
        self.assertEqual(grid_decimals(0.25), 2)
        self.assertEqual(grid_decimals(1), 0)
        self.assertEqual(grid_decimals(5), 0)

    def test_round_to_grid(self):
        self.assertEqual(round_to_grid(52.34, 0.1), 52.3)
        self.assertEqual(round_to_grid(523 * 0.1, 0.1), 52.3)
        # ties go to the even multiple
        self.assertEqual(round_to_grid(52.5, 1), 52.0)
        self.assertEqual(round_to_grid(53.5, 1), 54.0)
        self.assertEqual(round_to_grid(50.3, 0.5), 50.5)
        self.assertTrue(np.isnan(round_to_grid(np.nan, 0.1)))
        np.testing.assert_array_equal(round_to_grid(np.array([0.04, 0.06, 99.96]), 0.1), [0.0, 0.1, 100.0])

    def test_within_bounds(self):
        self.assertTrue(within_bounds(100.0, 0.0, 100.0))
        self.assertFalse(within_bounds(100.1, 0.0, 100.0))
        np.testing.assert_array_equal(within_bounds(np.array([-0.1, 0.0, 50.0, np.nan]), 0.0, 100.0),
                                      [False, True, True, False])

    def test_dataframe_to_baseline(self):
        df = pd.DataFrame(
            {
                ColumnsConfig.ENTITY_ID: ["A", "B", "C"],
                ColumnsConfig.ANCHOR_YEAR: [2020, 2021, 2020],
                ColumnsConfig.BASELINE_VALUE: [50.0, np.nan, 60.0],
            }
        )
        baseline = dataframe_to_baseline(df)
        self.assertEqual([b.entity_id for b in baseline], ["A", "C"])

        df[ColumnsConfig.ENTITY_ID] = ["A", "A", "C"]
        self.assertRaises(ValueError, dataframe_to_baseline, df)
        self.assertRaises(ValueError, dataframe_to_baseline, df.drop(columns=ColumnsConfig.ANCHOR_YEAR))

    def test_dataframe_to_observations_with_units(self):
        df = pd.DataFrame(
            {
                ColumnsConfig.ENTITY_ID: ["A", "A"],
                ColumnsConfig.YEAR: [2020, 2021],
                ColumnsConfig.VALUE: [Q_(0.5, "dimensionless"), "62 percent"],
            }
        )
        observations = dataframe_to_observations(df, units="percent")
        self.assertAlmostEqual(observations[0].value, 50.0)
        self.assertAlmostEqual(observations[1].value, 62.0)

    def test_dataframe_to_points(self):
        df = pd.DataFrame(
            {
                ColumnsConfig.ENTITY_ID: ["A"],
                ColumnsConfig.YEAR: [2020],
                ColumnsConfig.SPEED: [0.5],
                ColumnsConfig.VALUE: [55.0],
            }
        )
        points = dataframe_to_points(df)
        self.assertEqual(points[0].scenario_key, 0.5)
        self.assertRaises(ValueError, dataframe_to_points, df.drop(columns=ColumnsConfig.SPEED))


if __name__ == "__main__":
    unittest.main()
