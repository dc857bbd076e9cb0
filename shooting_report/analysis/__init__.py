"""Analysis stages: data preparation, model evaluation and forecasting"""

from .data_prep import IncidentDataPrep
from .model_eval import ForecastModelEval, build_model
from .forecast import IncidentForecast, ALL_SERIES

__all__ = [
    'IncidentDataPrep',
    'ForecastModelEval',
    'IncidentForecast',
    'build_model',
    'ALL_SERIES'
]
