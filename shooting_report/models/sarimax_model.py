"""SARIMAX forecaster for monthly incident counts"""

import pandas as pd
import numpy as np
from typing import Dict, Tuple
import warnings
from statsmodels.tsa.statespace.sarimax import SARIMAX
from shooting_report.models.base import BaseForecaster
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


class SARIMAXForecaster(BaseForecaster):
    """
    SARIMAX-based time series forecaster

    Seasonal AutoRegressive Integrated Moving Average on a monthly series.

    Features:
    - ARIMA order (p, d, q)
    - Seasonal order (P, D, Q, s)
    - Confidence intervals from the state-space forecast
    """

    def __init__(
        self,
        order: Tuple[int, int, int] = (1, 1, 1),
        seasonal_order: Tuple[int, int, int, int] = (1, 1, 1, 12),
        alpha: float = 0.05,
        enforce_stationarity: bool = False,
        enforce_invertibility: bool = False
    ):
        """
        Initialize SARIMAX forecaster

        Args:
            order: ARIMA order (p, d, q)
                - p: autoregressive order
                - d: differencing order
                - q: moving average order
            seasonal_order: Seasonal order (P, D, Q, s)
                - P: seasonal autoregressive order
                - D: seasonal differencing order
                - Q: seasonal moving average order
                - s: seasonal period (12 for monthly data)
            alpha: Significance level for the forecast interval (0.05 = 95%)
            enforce_stationarity: Enforce stationarity
            enforce_invertibility: Enforce invertibility
        """
        super().__init__(model_name='SARIMAX')

        self.order = tuple(order)
        self.seasonal_order = tuple(seasonal_order)
        self.alpha = alpha
        self.enforce_stationarity = enforce_stationarity
        self.enforce_invertibility = enforce_invertibility

    @property
    def min_observations(self) -> int:
        """
        Fewest months SARIMAX can be fitted on

        Differencing consumes d + D*s months; the seasonal terms need two
        full seasons of what is left to estimate starting parameters.
        """
        d = self.order[1]
        _, seasonal_d, _, s = self.seasonal_order
        return d + seasonal_d * s + max(2 * s, 3)

    def fit(
        self,
        df_train: pd.DataFrame,
        target_col: str
    ) -> 'SARIMAXForecaster':
        """
        Train SARIMAX model

        Args:
            df_train: Monthly data with date and target columns
            target_col: Name of target column to forecast

        Returns:
            Self (for method chaining)
        """
        logger.info(f"Training SARIMAX model for '{target_col}'")
        logger.info(f"  Order: {self.order}, Seasonal: {self.seasonal_order}")

        df = self._prepare_training_data(df_train, target_col)

        ts_data = df.set_index('date')[target_col].astype(float)
        ts_data.index = pd.DatetimeIndex(ts_data.index, freq='MS')

        logger.info(f"Fitting SARIMAX on {len(ts_data)} months...")

        # Suppress convergence warnings
        with warnings.catch_warnings():
            warnings.filterwarnings('ignore')

            model = SARIMAX(
                ts_data,
                order=self.order,
                seasonal_order=self.seasonal_order,
                enforce_stationarity=self.enforce_stationarity,
                enforce_invertibility=self.enforce_invertibility
            )

            self.model = model.fit(disp=False, maxiter=200)

        # In-sample metrics, skipping the burn-in implied by differencing
        burn_in = self.order[1] + self.seasonal_order[1] * self.seasonal_order[3]
        y_true = ts_data.values[burn_in:]
        y_pred = self.model.fittedvalues.values[burn_in:]
        self.training_metrics = self._calculate_metrics(y_true, y_pred)

        self.is_fitted = True

        logger.info(f"SARIMAX trained (AIC: {self.model.aic:,.1f}, MAPE: {self.training_metrics['mape']:.2f}%)")

        return self

    def predict(
        self,
        n_periods: int,
        df_history: pd.DataFrame = None
    ) -> pd.DataFrame:
        """
        Generate forecasts using SARIMAX

        Args:
            n_periods: Number of months to forecast
            df_history: Ignored; the forecast continues from the training data

        Returns:
            DataFrame with date, target, target_lower and target_upper
        """
        self._check_fitted()

        logger.info(f"Generating {n_periods}-step SARIMAX forecast")

        future_dates = self._future_dates(n_periods)

        forecast_result = self.model.get_forecast(steps=n_periods)
        predictions = forecast_result.predicted_mean
        conf_int = forecast_result.conf_int(alpha=self.alpha)

        df_forecast = pd.DataFrame({
            'date': future_dates,
            self.target_col: predictions.values,
            f'{self.target_col}_lower': conf_int.iloc[:, 0].values,
            f'{self.target_col}_upper': conf_int.iloc[:, 1].values
        })

        logger.info("SARIMAX forecast complete")

        return df_forecast

    def summary_html(self) -> str:
        """Fitted model summary as an HTML table"""
        self._check_fitted()
        return self.model.summary().as_html()

    def get_metadata(self) -> Dict:
        metadata = super().get_metadata()
        metadata.update({
            'order': self.order,
            'seasonal_order': self.seasonal_order,
            'aic': float(self.model.aic) if self.is_fitted else np.nan
        })
        return metadata
