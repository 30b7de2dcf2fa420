"""This file defines the constants used throughout the different classes. In order to redefine these settings whilst using
the module, extend the respective config class and pass it to the class as the "column_config" parameter, or pass a
modified ProjectionControls instance as the "projection_controls" parameter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple


class ColumnsConfig:
    # Define a constant for each column used in the dataframe
    ENTITY_ID = "entity_id"
    YEAR = "year"
    VALUE = "value"
    OBSERVED = "observed"
    ANCHOR_YEAR = "anchor_year"
    BASELINE_VALUE = "baseline_value"
    PERCENTILE = "percentile"
    SPEED = "speed"

    # Change model and reference path artifacts
    INITIAL_VALUE = "initial_value"
    CHANGE = "change"
    RELATIVE_TIME = "relative_time"
    SHAPE = "shape"


class TabsConfig:
    CHANGE_MODEL = "change_model"
    REFERENCE_PATH = "reference_path"
    OBSERVATIONS = "observations"


@dataclass
class ProjectionControls:
    GRANULARITY: float = 0.1

    # Values outside [MIN, MAX] are outside the valid tracking range
    MIN: float = 0.0
    MAX: float = 100.0

    TARGET_YEAR: int = 2030
    START_YEAR: int = 2000
    END_YEAR: int = 2022

    PERCENTILES: Tuple[float, ...] = (20, 40, 60, 80)
    SPEEDS: Tuple[float, ...] = (0.25, 0.5, 1, 2, 4)
    DIRECTION: str = "higher_is_better"

    UNITS: str = "percent"
    VERBOSE: bool = False


class LoggingConfig:
    FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def add_config_to_logger(cls, logger: logging.Logger):
        logger.setLevel(logging.INFO)
        formatter = logging.Formatter(cls.FORMAT)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)


# Add these lines to any file that uses logging
# from SOP.configs import LoggingConfig
# import logging
# logger = logging.getLogger(__name__)
# LoggingConfig.add_config_to_logger(logger)
