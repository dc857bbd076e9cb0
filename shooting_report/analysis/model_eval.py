"""Forecast model evaluation pipeline

Trains every configured model on the monthly incident series up to a
holdout window and scores it on the holdout months.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional
from shooting_report.models import BaseForecaster, get_model
from shooting_report.utils.logging_config import get_logger
from shooting_report.utils.config import ConfigLoader


logger = get_logger(__name__)


def build_model(config: ConfigLoader, model_name: str) -> BaseForecaster:
    """
    Create a forecaster with its settings from the configuration

    Args:
        config: Configuration loader
        model_name: Registry name of the model

    Returns:
        Unfitted forecaster
    """
    if model_name == 'sarimax':
        return get_model(
            model_name,
            order=tuple(config.get('forecast.sarimax.order', [1, 1, 1])),
            seasonal_order=tuple(config.get('forecast.sarimax.seasonal_order', [1, 1, 1, 12])),
            alpha=config.get('forecast.alpha', 0.05)
        )
    if model_name == 'moving_average':
        return get_model(model_name, window=config.get('forecast.moving_average.window', 3))

    return get_model(model_name)


class ForecastModelEval:
    """
    Evaluate forecasting models on the monthly incident series

    Steps:
    1. Split the series into train and holdout months
    2. Train each model on the training months
    3. Score on the holdout months
    4. Mark the best model by MAPE
    5. Save evaluation results
    """

    # Models to evaluate
    MODELS = ['sarimax', 'seasonal_naive', 'moving_average', 'linear_trend']

    def __init__(self, config: Optional[ConfigLoader] = None):
        """Initialize model evaluation"""
        self.config = config if config else ConfigLoader()
        self.intermediate_path = self.config.get_path('data.intermediate_path', 'data/intermediate')
        self.intermediate_path.mkdir(parents=True, exist_ok=True)

        self.holdout_months = int(self.config.get('evaluation.holdout_months', 12))
        self.models = self.config.get('evaluation.models', self.MODELS)

    def run(self, df_monthly: pd.DataFrame, target_col: str = 'incidents') -> pd.DataFrame:
        """
        Run the complete model evaluation pipeline

        Args:
            df_monthly: Monthly series with date and target columns
            target_col: Column to forecast

        Returns:
            DataFrame with one row per model
        """
        logger.info("=" * 60)
        logger.info("FORECAST MODEL EVALUATION")
        logger.info("=" * 60)

        # Step 1: Split train/holdout
        df_train, df_test = self._split_data(df_monthly)

        # Step 2-3: Evaluate all models
        results = self._evaluate_all_models(df_train, df_test, target_col)

        # Step 4: Select best model
        df_results = pd.DataFrame(results)
        df_results = self._select_best_model(df_results)

        # Step 5: Save results
        output_path = self.intermediate_path / 'model_eval.csv'
        df_results.to_csv(output_path, index=False)
        logger.info(f"Saved evaluation results to: {output_path}")

        self._print_summary(df_results)

        return df_results

    def _split_data(self, df: pd.DataFrame) -> tuple:
        """Split the last holdout_months months off as the test set"""
        df = df.sort_values('date').reset_index(drop=True)

        if len(df) <= self.holdout_months:
            raise ValueError(
                f"Need more than {self.holdout_months} months of data for evaluation, got {len(df)}"
            )

        df_train = df.iloc[:-self.holdout_months].copy()
        df_test = df.iloc[-self.holdout_months:].copy()

        logger.info(f"Train set: {len(df_train)} months ({df_train['date'].min():%Y-%m} to {df_train['date'].max():%Y-%m})")
        logger.info(f"Test set:  {len(df_test)} months ({df_test['date'].min():%Y-%m} to {df_test['date'].max():%Y-%m})")

        return df_train, df_test

    def _evaluate_all_models(
        self,
        df_train: pd.DataFrame,
        df_test: pd.DataFrame,
        target_col: str
    ) -> List[Dict]:
        """Evaluate all models; a failing model is recorded, not raised"""
        results = []

        for model_name in self.models:
            try:
                results.append(self._evaluate_single_model(model_name, df_train, df_test, target_col))

            except Exception as e:
                logger.error(f"Error evaluating {model_name}: {e}")
                results.append({
                    'model': model_name,
                    'label': model_name,
                    'mape': np.nan,
                    'mae': np.nan,
                    'rmse': np.nan,
                    'r2': np.nan,
                    'error': str(e)
                })

        return results

    def _evaluate_single_model(
        self,
        model_name: str,
        df_train: pd.DataFrame,
        df_test: pd.DataFrame,
        target_col: str
    ) -> Dict:
        """Evaluate a single model"""
        logger.info(f"  Training {model_name}...")

        model = build_model(self.config, model_name)
        model.fit(df_train, target_col)
        metrics = model.validate(df_test, target_col)

        return {
            'model': model_name,
            'label': model.model_name,
            'mape': metrics.get('mape', np.nan),
            'mae': metrics.get('mae', np.nan),
            'rmse': metrics.get('rmse', np.nan),
            'r2': metrics.get('r2', np.nan),
            'error': None
        }

    def _select_best_model(self, df_results: pd.DataFrame) -> pd.DataFrame:
        """Mark the model with the lowest holdout MAPE"""
        df_results['is_best'] = False

        valid_results = df_results[df_results['mape'].notna()]
        if len(valid_results) > 0:
            best_idx = valid_results['mape'].idxmin()
            df_results.loc[best_idx, 'is_best'] = True

        return df_results

    def _print_summary(self, df_results: pd.DataFrame):
        """Log evaluation summary"""
        logger.info("EVALUATION SUMMARY")

        for _, row in df_results.iterrows():
            marker = ' (best)' if row['is_best'] else ''
            if pd.isna(row['mape']):
                logger.info(f"  {row['label']}: failed{marker}")
            else:
                logger.info(f"  {row['label']}: MAPE {row['mape']:.2f}%, MAE {row['mae']:.1f}{marker}")


def run(df_monthly: pd.DataFrame):
    """Entry point for model evaluation"""
    eval_pipeline = ForecastModelEval()
    return eval_pipeline.run(df_monthly)
