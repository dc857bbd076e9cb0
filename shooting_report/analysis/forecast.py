"""Incident forecast generation pipeline

Fits the configured forecaster on the full monthly history and projects
the next months, for all of NYC and optionally for each borough.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional
from shooting_report.analysis.model_eval import build_model
from shooting_report.data.aggregators import borough_series
from shooting_report.models import BaseForecaster
from shooting_report.utils.logging_config import get_logger
from shooting_report.utils.config import ConfigLoader


logger = get_logger(__name__)


ALL_SERIES = 'All'
TARGET_COL = 'incidents'


class IncidentForecast:
    """
    Generate incident forecasts

    Steps:
    1. Fit the forecast model on every month of history
    2. Forecast the horizon for NYC as a whole
    3. Repeat per borough (optional)
    4. Combine actuals + forecasts in long format
    5. Save to output directory
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """Initialize forecast generation"""
        self.config = config if config else ConfigLoader()
        self.output_path = self.config.get_path('data.output_path', 'data/output')
        self.output_path.mkdir(parents=True, exist_ok=True)

        self.model_name = self.config.get('forecast.model', 'sarimax')
        self.horizon = int(self.config.get('forecast.horizon_months', 12))
        self.by_borough = bool(self.config.get('forecast.by_borough', True))

        if self.horizon < 1:
            raise ValueError(f"Forecast horizon must be at least 1 month, got {self.horizon}")

        # Fitted model per series, kept for the report
        self.fitted_models: Dict[str, BaseForecaster] = {}

    def run(
        self,
        df_monthly: pd.DataFrame,
        df_monthly_by_borough: Optional[pd.DataFrame] = None
    ) -> pd.DataFrame:
        """
        Run the complete forecast generation pipeline

        Args:
            df_monthly: Monthly NYC-wide series (date, incidents)
            df_monthly_by_borough: Monthly series per borough (date, borough, incidents)

        Returns:
            Long DataFrame with actuals and forecasts
        """
        logger.info("=" * 60)
        logger.info("INCIDENT FORECAST GENERATION")
        logger.info("=" * 60)

        series = {ALL_SERIES: df_monthly[['date', TARGET_COL]]}

        if self.by_borough and df_monthly_by_borough is not None:
            for borough in sorted(df_monthly_by_borough['borough'].unique()):
                series[borough] = borough_series(df_monthly_by_borough, borough)

        frames = []

        for name, df_series in series.items():
            logger.info(f"--- Forecasting {name} with {self.model_name} ---")

            if name == ALL_SERIES:
                df_forecast = self._generate_series_forecast(name, df_series)
            else:
                try:
                    df_forecast = self._generate_series_forecast(name, df_series)
                except Exception as e:
                    logger.error(f"Error forecasting {name}: {e}")
                    continue

            frames.append(self._combine(name, df_series, df_forecast))

        df_combined = pd.concat(frames, ignore_index=True)
        df_combined = df_combined.sort_values(['series', 'date']).reset_index(drop=True)

        output_file = self.output_path / 'forecasts.csv'
        df_combined.to_csv(output_file, index=False)
        logger.info(f"Saved forecasts to: {output_file}")
        logger.info(f"  Actuals: {(df_combined['source'] == 'actual').sum():,}")
        logger.info(f"  Forecasts: {(df_combined['source'] == 'forecast').sum():,}")

        return df_combined

    @property
    def min_months(self) -> int:
        """Fewest months of history the configured model can forecast from"""
        return build_model(self.config, self.model_name).min_observations

    def _generate_series_forecast(self, name: str, df_series: pd.DataFrame) -> pd.DataFrame:
        """Fit the model on one series and forecast the horizon"""
        model = build_model(self.config, self.model_name)
        model.fit(df_series, TARGET_COL)

        df_forecast = model.predict(self.horizon)
        self.fitted_models[name] = model

        return df_forecast

    def _combine(self, name: str, df_series: pd.DataFrame, df_forecast: pd.DataFrame) -> pd.DataFrame:
        """Stack actuals and forecast for one series in long format"""
        model = self.fitted_models[name]

        actuals = pd.DataFrame({
            'date': pd.to_datetime(df_series['date']).values,
            'series': name,
            'value': df_series[TARGET_COL].astype(float).values,
            'lower': np.nan,
            'upper': np.nan,
            'source': 'actual',
            'model': None
        })

        lower_col = f'{TARGET_COL}_lower'
        upper_col = f'{TARGET_COL}_upper'

        # Counts cannot be negative
        forecasts = pd.DataFrame({
            'date': df_forecast['date'].values,
            'series': name,
            'value': df_forecast[TARGET_COL].clip(lower=0).values,
            'lower': df_forecast[lower_col].clip(lower=0).values if lower_col in df_forecast else np.nan,
            'upper': df_forecast[upper_col].clip(lower=0).values if upper_col in df_forecast else np.nan,
            'source': 'forecast',
            'model': model.model_name
        })

        return pd.concat([actuals, forecasts], ignore_index=True)

    def forecast_table(self, df_combined: pd.DataFrame, series: Optional[List[str]] = None) -> pd.DataFrame:
        """
        Forecast rows only, one column per series

        Args:
            df_combined: Output of run()
            series: Series to include (default: all)

        Returns:
            Wide DataFrame indexed by forecast month
        """
        df_fc = df_combined[df_combined['source'] == 'forecast']
        if series is not None:
            df_fc = df_fc[df_fc['series'].isin(series)]

        return df_fc.pivot_table(index='date', columns='series', values='value', aggfunc='sum')


def run(df_monthly: pd.DataFrame, df_monthly_by_borough: Optional[pd.DataFrame] = None):
    """Entry point for forecast generation"""
    forecast = IncidentForecast()
    return forecast.run(df_monthly, df_monthly_by_borough)
