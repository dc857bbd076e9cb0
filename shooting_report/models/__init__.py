"""Forecasting and regression models"""

from .base import BaseForecaster
from .sarimax_model import SARIMAXForecaster
from .baseline_forecasters import SeasonalNaiveForecaster, MovingAverageForecaster, LinearTrendForecaster
from .regression import IncidentTrendRegression, fit_borough_trends


MODEL_REGISTRY = {
    'sarimax': SARIMAXForecaster,
    'seasonal_naive': SeasonalNaiveForecaster,
    'moving_average': MovingAverageForecaster,
    'linear_trend': LinearTrendForecaster,
}


def get_model(name: str, **kwargs) -> BaseForecaster:
    """
    Create a forecaster by registry name

    Args:
        name: One of MODEL_REGISTRY's keys
        **kwargs: Constructor arguments for the model

    Returns:
        Unfitted forecaster instance
    """
    if name not in MODEL_REGISTRY:
        raise ValueError(f"Unknown model '{name}'. Available: {sorted(MODEL_REGISTRY)}")

    return MODEL_REGISTRY[name](**kwargs)


__all__ = [
    'BaseForecaster',
    'SARIMAXForecaster',
    'SeasonalNaiveForecaster',
    'MovingAverageForecaster',
    'LinearTrendForecaster',
    'IncidentTrendRegression',
    'fit_borough_trends',
    'MODEL_REGISTRY',
    'get_model'
]
