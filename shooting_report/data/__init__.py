"""Data loading, cleaning, validation and aggregation modules"""

from .loaders import IncidentDataLoader
from .cleaners import IncidentDataCleaner, BOROUGHS
from .validators import DataValidator
from .aggregators import DataAggregator, borough_series

__all__ = [
    'IncidentDataLoader',
    'IncidentDataCleaner',
    'DataValidator',
    'DataAggregator',
    'BOROUGHS',
    'borough_series'
]
