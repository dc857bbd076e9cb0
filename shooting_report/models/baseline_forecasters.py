"""Baseline forecasting models for benchmarking"""

import pandas as pd
import numpy as np
from sklearn.linear_model import LinearRegression
from shooting_report.models.base import BaseForecaster
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


class SeasonalNaiveForecaster(BaseForecaster):
    """
    Seasonal Naive forecaster

    Uses the average of the same calendar month across training years.
    Simple but effective baseline for seasonal data.
    """

    def __init__(self):
        """Initialize Seasonal Naive forecaster"""
        super().__init__(model_name='Seasonal Naive')
        self.monthly_values = {}
        self.fallback_value = np.nan

    def fit(
        self,
        df_train: pd.DataFrame,
        target_col: str
    ) -> 'SeasonalNaiveForecaster':
        """
        Fit Seasonal Naive model

        Calculates average value for each month across all years.

        Args:
            df_train: Training data with date and target columns
            target_col: Name of target column to forecast

        Returns:
            Self (for method chaining)
        """
        logger.debug(f"Fitting Seasonal Naive model for '{target_col}'")

        df = self._prepare_training_data(df_train, target_col)
        df['month'] = df['date'].dt.month

        self.monthly_values = df.groupby('month')[target_col].mean().to_dict()
        # Months never observed fall back to the overall mean
        self.fallback_value = float(df[target_col].mean())

        self.is_fitted = True

        y_true = df[target_col].values
        y_pred = df['month'].map(self.monthly_values).values
        self.training_metrics = self._calculate_metrics(y_true, y_pred)

        logger.debug(f"Seasonal Naive fitted (MAPE: {self.training_metrics['mape']:.2f}%)")

        return self

    def predict(
        self,
        n_periods: int,
        df_history: pd.DataFrame = None
    ) -> pd.DataFrame:
        """
        Generate forecasts using seasonal naive method

        Args:
            n_periods: Number of months to forecast
            df_history: Historical data (uses last date to determine start)

        Returns:
            DataFrame with forecasts
        """
        self._check_fitted()

        logger.info(f"Generating {n_periods}-step Seasonal Naive forecast")

        future_dates = self._future_dates(n_periods, df_history)

        df_forecast = pd.DataFrame({
            'date': future_dates,
            self.target_col: [
                self.monthly_values.get(date.month, self.fallback_value) for date in future_dates
            ]
        })

        return df_forecast


class MovingAverageForecaster(BaseForecaster):
    """
    Moving Average forecaster

    Uses the average of the last N months as a flat forecast.
    """

    def __init__(self, window: int = 3):
        """
        Initialize Moving Average forecaster

        Args:
            window: Number of months to average (3 or 6 typical)
        """
        super().__init__(model_name=f'MA-{window}')
        self.window = window
        self.last_values = None

    def fit(
        self,
        df_train: pd.DataFrame,
        target_col: str
    ) -> 'MovingAverageForecaster':
        """
        Fit Moving Average model

        Stores the last N values for forecasting and scores the rolling
        N-month mean as a one-step-ahead in-sample forecast.

        Args:
            df_train: Training data with date and target columns
            target_col: Name of target column to forecast

        Returns:
            Self (for method chaining)
        """
        logger.debug(f"Fitting Moving Average (window={self.window}) for '{target_col}'")

        df = self._prepare_training_data(df_train, target_col)

        self.last_values = df[target_col].tail(self.window).values.astype(float)

        self.is_fitted = True

        rolling_pred = df[target_col].rolling(self.window).mean().shift(1)
        self.training_metrics = self._calculate_metrics(df[target_col].values, rolling_pred.values)

        logger.debug(f"Moving Average fitted (MAPE: {self.training_metrics['mape']:.2f}%)")

        return self

    def predict(
        self,
        n_periods: int,
        df_history: pd.DataFrame = None
    ) -> pd.DataFrame:
        """
        Generate forecasts using moving average

        Args:
            n_periods: Number of months to forecast
            df_history: Historical data (uses last N values if provided)

        Returns:
            DataFrame with forecasts
        """
        self._check_fitted()

        logger.info(f"Generating {n_periods}-step Moving Average forecast")

        last_values = self.last_values
        if df_history is not None and self.target_col in df_history.columns:
            df_sorted = df_history.sort_values('date')
            last_values = df_sorted[self.target_col].tail(self.window).values.astype(float)

        forecast_value = float(np.mean(last_values))

        return pd.DataFrame({
            'date': self._future_dates(n_periods, df_history),
            self.target_col: forecast_value
        })


class LinearTrendForecaster(BaseForecaster):
    """
    Linear Trend forecaster

    Fits a linear regression model to the time series and extrapolates.
    """

    def __init__(self):
        """Initialize Linear Trend forecaster"""
        super().__init__(model_name='Linear Trend')
        self.slope = None
        self.intercept = None
        self.first_date = None

    def fit(
        self,
        df_train: pd.DataFrame,
        target_col: str
    ) -> 'LinearTrendForecaster':
        """
        Fit Linear Trend model

        Fits linear regression: y = slope * time + intercept

        Args:
            df_train: Training data with date and target columns
            target_col: Name of target column to forecast

        Returns:
            Self (for method chaining)
        """
        logger.debug(f"Fitting Linear Trend model for '{target_col}'")

        df = self._prepare_training_data(df_train, target_col)

        # Convert dates to numeric (days since first date)
        self.first_date = df['date'].min()

        X = (df['date'] - self.first_date).dt.days.values.reshape(-1, 1)
        y = df[target_col].values.astype(float)

        model = LinearRegression()
        model.fit(X, y)

        self.model = model
        self.slope = float(model.coef_[0])
        self.intercept = float(model.intercept_)

        self.is_fitted = True

        y_pred = model.predict(X)
        self.training_metrics = self._calculate_metrics(y, y_pred)

        logger.debug(f"Linear Trend fitted (MAPE: {self.training_metrics['mape']:.2f}%)")

        return self

    def predict(
        self,
        n_periods: int,
        df_history: pd.DataFrame = None
    ) -> pd.DataFrame:
        """
        Generate forecasts using linear trend extrapolation

        Args:
            n_periods: Number of months to forecast
            df_history: Historical data (uses last date if provided)

        Returns:
            DataFrame with forecasts
        """
        self._check_fitted()

        logger.info(f"Generating {n_periods}-step Linear Trend forecast")

        future_dates = self._future_dates(n_periods, df_history)
        days_since_start = (future_dates - self.first_date).days.values

        return pd.DataFrame({
            'date': future_dates,
            self.target_col: self.slope * days_since_start + self.intercept
        })
