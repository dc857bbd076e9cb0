"""Base forecaster class for all forecasting models"""

from abc import ABC, abstractmethod
import numpy as np
import pandas as pd
import pickle
from pathlib import Path
from typing import Dict, Optional
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


class BaseForecaster(ABC):
    """
    Abstract base class for all forecasting models

    Forecasters operate on a monthly frame with a 'date' column (month
    start) and one numeric target column.

    All forecasters must implement:
    - fit(): Train the model
    - predict(): Generate forecasts
    """

    def __init__(self, model_name: str):
        """
        Initialize forecaster

        Args:
            model_name: Name of the model (for logging and reporting)
        """
        self.model_name = model_name
        self.model = None
        self.is_fitted = False
        self.target_col: Optional[str] = None
        self.last_date: Optional[pd.Timestamp] = None
        self.training_metrics = {}
        self.validation_metrics = {}

    @property
    def min_observations(self) -> int:
        """Fewest training months the model can be fitted on"""
        return 1

    @abstractmethod
    def fit(self, df_train: pd.DataFrame, target_col: str) -> 'BaseForecaster':
        """
        Train the model

        Args:
            df_train: Training data with date and target columns
            target_col: Name of target column to forecast

        Returns:
            Self (for method chaining)
        """
        pass

    @abstractmethod
    def predict(
        self,
        n_periods: int,
        df_history: pd.DataFrame = None
    ) -> pd.DataFrame:
        """
        Generate forecasts for n months ahead

        Args:
            n_periods: Number of months to forecast
            df_history: Historical data for context (required for some models)

        Returns:
            DataFrame with date and target columns
        """
        pass

    def _prepare_training_data(self, df_train: pd.DataFrame, target_col: str) -> pd.DataFrame:
        """Validate, sort and remember the training frame's target and end date"""
        if 'date' not in df_train.columns:
            raise ValueError("DataFrame must have 'date' column")
        if target_col not in df_train.columns:
            raise ValueError(f"Target column '{target_col}' not found")
        if df_train.empty:
            raise ValueError("Training data is empty")
        if len(df_train) < self.min_observations:
            raise ValueError(
                f"{self.model_name} needs at least {self.min_observations} months of data, "
                f"got {len(df_train)}"
            )

        df = df_train.copy()
        df['date'] = pd.to_datetime(df['date'])
        df = df.sort_values('date').reset_index(drop=True)

        self.target_col = target_col
        self.last_date = df['date'].max()

        return df

    def _future_dates(self, n_periods: int, df_history: pd.DataFrame = None) -> pd.DatetimeIndex:
        """Month-start dates following the history (or training) end"""
        if df_history is not None and 'date' in df_history.columns:
            last_date = pd.to_datetime(df_history['date']).max()
        else:
            last_date = self.last_date

        return pd.date_range(
            start=last_date + pd.DateOffset(months=1),
            periods=n_periods,
            freq='MS'
        )

    def _check_fitted(self):
        if not self.is_fitted:
            raise ValueError("Model must be fitted before making predictions")

    def validate(
        self,
        df_val: pd.DataFrame,
        target_col: str
    ) -> Dict[str, float]:
        """
        Validate model on holdout data following the training period

        Args:
            df_val: Validation data (the months right after training)
            target_col: Name of target column

        Returns:
            Dictionary of validation metrics
        """
        self._check_fitted()
        logger.info(f"Validating {self.model_name} on {len(df_val)} months")

        df = df_val.copy()
        df['date'] = pd.to_datetime(df['date'])
        df = df.sort_values('date')

        predictions = self.predict(len(df))

        merged = df[['date', target_col]].merge(
            predictions[['date', target_col]],
            on='date',
            how='left',
            suffixes=('', '_pred')
        )

        metrics = self._calculate_metrics(
            merged[target_col].values,
            merged[f'{target_col}_pred'].values
        )

        self.validation_metrics = metrics

        logger.info(f"  MAPE: {metrics['mape']:.2f}%")
        logger.info(f"  MAE:  {metrics['mae']:,.2f}")

        return metrics

    def _calculate_metrics(
        self,
        actuals,
        predicted
    ) -> Dict[str, float]:
        """
        Calculate forecast accuracy metrics

        MAPE is computed over non-zero actuals only.

        Args:
            actuals: Actual values
            predicted: Predicted values

        Returns:
            Dictionary with metrics
        """
        actuals = np.asarray(actuals, dtype=float)
        predicted = np.asarray(predicted, dtype=float)

        # Remove NaN values
        mask = ~(np.isnan(actuals) | np.isnan(predicted))
        actuals = actuals[mask]
        predicted = predicted[mask]

        if len(actuals) == 0:
            return {
                'mape': np.nan,
                'mae': np.nan,
                'rmse': np.nan,
                'r2': np.nan
            }

        nonzero = actuals != 0
        if nonzero.any():
            mape = np.mean(np.abs((actuals[nonzero] - predicted[nonzero]) / actuals[nonzero])) * 100
        else:
            mape = np.nan

        mae = np.mean(np.abs(actuals - predicted))
        rmse = np.sqrt(np.mean((actuals - predicted) ** 2))

        ss_res = np.sum((actuals - predicted) ** 2)
        ss_tot = np.sum((actuals - np.mean(actuals)) ** 2)
        r2 = 1 - (ss_res / ss_tot) if ss_tot > 0 else np.nan

        return {
            'mape': float(mape),
            'mae': float(mae),
            'rmse': float(rmse),
            'r2': float(r2)
        }

    def save(self, path: str):
        """
        Save model to disk

        Args:
            path: Path to save model (e.g., 'models/sarimax_incidents.pkl')
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'wb') as f:
            pickle.dump(self, f)

        logger.info(f"Model saved to: {path}")

    @classmethod
    def load(cls, path: str) -> 'BaseForecaster':
        """
        Load model from disk

        Args:
            path: Path to saved model

        Returns:
            Loaded model instance
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Model file not found: {path}")

        with open(path, 'rb') as f:
            model = pickle.load(f)

        logger.info(f"Model loaded from: {path}")

        return model

    def get_metadata(self) -> Dict:
        """
        Get model metadata

        Returns:
            Dictionary with model information
        """
        return {
            'model_name': self.model_name,
            'is_fitted': self.is_fitted,
            'target_col': self.target_col,
            'last_date': str(self.last_date.date()) if self.last_date is not None else None,
            'training_metrics': self.training_metrics,
            'validation_metrics': self.validation_metrics
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model_name='{self.model_name}', is_fitted={self.is_fitted})"
