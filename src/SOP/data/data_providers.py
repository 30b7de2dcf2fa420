from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Type

from ..configs import ColumnsConfig, ProjectionControls
from ..interfaces import IBaselineRecord, IChangeModel, IObservation, IReferencePath


class ObservationDataProvider(ABC):
    """Observation data provider super class.
    Data container for the observed panel of an indicator (one value per entity and year), from which the baselines
    of both projection horizons are extracted.
    """

    def __init__(self, **kwargs):
        """Create a new data provider instance.

        :param kwargs: accepted for compatibility with subclasses; not used
        """
        pass

    @property
    @abstractmethod
    def column_config(self) -> Type[ColumnsConfig]:
        """Return the ColumnsConfig associated with this Data Provider"""
        raise NotImplementedError

    @abstractmethod
    def get_projection_controls(self) -> ProjectionControls:
        """Return the ProjectionControls associated with this ObservationDataProvider."""
        raise NotImplementedError

    @abstractmethod
    def get_entity_ids(self) -> List[str]:
        """Return the list of entity IDs of this ObservationDataProvider"""
        raise NotImplementedError

    @abstractmethod
    def get_observations(self, entity_ids: Optional[List[str]] = None) -> List[IObservation]:
        """Get all observations for a list of entity ids, or for all entities if `entity_ids` is None.

        :param entity_ids: A list of entity IDs
        :return: A list of IObservation
        """
        raise NotImplementedError

    @abstractmethod
    def get_future_baseline(self) -> List[IBaselineRecord]:
        """Return, for each entity, its latest observation with a value"""
        raise NotImplementedError

    @abstractmethod
    def get_historical_baseline(self) -> List[IBaselineRecord]:
        """Return, for each entity, its earliest observation with a value within [START_YEAR, END_YEAR]"""
        raise NotImplementedError


class ChangeModelDataProvider(ABC):
    """
    General change model data provider super class.
    """

    def __init__(self, **kwargs):
        """Create a new data provider instance.

        :param kwargs: accepted for compatibility with subclasses; not used
        """
        pass

    @abstractmethod
    def get_change_model(self) -> IChangeModel:
        """Return the change model used by the percentile projectors"""
        raise NotImplementedError


class ReferencePathDataProvider(ABC):
    """
    General reference path data provider super class.
    """

    def __init__(self, **kwargs):
        pass

    @abstractmethod
    def get_reference_path(self) -> IReferencePath:
        """Return the reference path used by the speed projectors"""
        raise NotImplementedError
