"""Report pipeline orchestration

This module implements the ReportPipeline class that runs the whole
workflow: download, cleaning, aggregation, regression, forecasting and
report rendering.
"""

import pandas as pd
from pathlib import Path
from typing import Dict, Optional

from shooting_report.analysis import IncidentDataPrep, ForecastModelEval, IncidentForecast
from shooting_report.data import IncidentDataLoader
from shooting_report.models import IncidentTrendRegression, fit_borough_trends
from shooting_report.report import ReportGenerator
from shooting_report.utils.config import ConfigLoader
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


class ReportPipeline:
    """
    Main report pipeline orchestrator

    Coordinates the workflow:
    1. Data loading, validation and cleaning
    2. Aggregation to summary tables
    3. Trend regression (NYC-wide and per borough)
    4. Forecast model evaluation and forecasting
    5. HTML report
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[ConfigLoader] = None):
        """
        Initialize report pipeline

        Args:
            config_path: Path to config YAML file (optional)
            config: Already loaded configuration (takes precedence over config_path)
        """
        self.config = config if config else ConfigLoader(config_path)

        self.loader = IncidentDataLoader(self.config)
        self.data_prep = IncidentDataPrep(self.config, loader=self.loader)
        self.report = ReportGenerator(self.config)

        self.formula = self.config.get('regression.formula')
        self.min_years = int(self.config.get('regression.min_years', 3))

    def download(self, refresh: bool = False) -> Path:
        """Fetch the raw CSV (or reuse the cache) without running the analysis"""
        return self.loader.download(refresh=refresh)

    def run(self, refresh: bool = False, forecast: bool = True) -> Dict:
        """
        Run the full pipeline

        Args:
            refresh: Force a new download of the raw CSV
            forecast: Run model evaluation and forecasting

        Returns:
            Dict with clean data, summary tables, validation report, fitted
            regression, borough trends, model evaluation, forecast and the
            report path. model_eval and forecast are None when forecast=False.
        """
        logger.info("=" * 60)
        logger.info("NYPD SHOOTING INCIDENT REPORT")
        logger.info("=" * 60)

        # Stage 1-2: Load, validate, clean, aggregate
        logger.info("\n[1/4] Preparing incident data...")
        df_clean, tables, validation = self.data_prep.run(refresh=refresh)
        logger.info(f"✓ {len(df_clean):,} incidents, {len(tables['monthly'])} months")

        # Stage 3: Regression
        logger.info("\n[2/4] Fitting trend regression...")
        regression = IncidentTrendRegression(self.formula) if self.formula else IncidentTrendRegression()
        regression.fit(tables['monthly'])
        borough_trends = fit_borough_trends(tables['yearly_by_borough'], min_years=self.min_years)

        # Stage 4: Forecast
        model_eval: Optional[pd.DataFrame] = None
        df_forecast: Optional[pd.DataFrame] = None
        forecast_models = {}

        if forecast:
            logger.info("\n[3/4] Evaluating and running forecast models...")
            forecaster = IncidentForecast(self.config)

            if len(tables['monthly']) < forecaster.min_months:
                logger.warning(
                    f"⚠️  Only {len(tables['monthly'])} months of data, "
                    f"{forecaster.model_name} needs at least {forecaster.min_months}. Skipping forecast."
                )
            else:
                model_eval = self._evaluate_models(tables['monthly'])
                df_forecast = forecaster.run(tables['monthly'], tables['monthly_by_borough'])
                forecast_models = forecaster.fitted_models
        else:
            logger.info("\n[3/4] Forecast skipped")

        # Stage 5: Report
        logger.info("\n[4/4] Rendering report...")
        report_path = self.report.generate(
            tables=tables,
            regression=regression,
            borough_trends=borough_trends,
            validation=validation,
            model_eval=model_eval,
            df_forecast=df_forecast,
            forecast_models=forecast_models
        )

        logger.info(f"✅ Report complete: {report_path}")

        return {
            'clean': df_clean,
            'tables': tables,
            'validation': validation,
            'regression': regression,
            'borough_trends': borough_trends,
            'model_eval': model_eval,
            'forecast': df_forecast,
            'forecast_models': forecast_models,
            'report_path': report_path
        }

    def _evaluate_models(self, df_monthly: pd.DataFrame) -> Optional[pd.DataFrame]:
        """Holdout comparison; skipped when the series is too short"""
        evaluator = ForecastModelEval(self.config)

        if len(df_monthly) <= evaluator.holdout_months:
            logger.warning(
                f"⚠️  Only {len(df_monthly)} months of data, "
                f"model evaluation needs more than {evaluator.holdout_months}. Skipping."
            )
            return None

        return evaluator.run(df_monthly)
