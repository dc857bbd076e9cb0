"""Linear regression models for incident trends"""

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from typing import Dict, Optional
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


DEFAULT_FORMULA = 'incidents ~ t + C(month)'


class IncidentTrendRegression:
    """
    OLS regression over the monthly incident series

    The default formula models a linear trend over time (t, months since
    the first month) plus month-of-year effects. Any statsmodels formula
    over the monthly columns (incidents, murders, t, month, year) is
    accepted.
    """

    def __init__(self, formula: str = DEFAULT_FORMULA):
        self.formula = formula
        self.model = None
        self.first_date: Optional[pd.Timestamp] = None
        self.df_fit: Optional[pd.DataFrame] = None
        self.is_fitted = False

    @property
    def response(self) -> str:
        """Response term as the fitted model names it (e.g. np.log(incidents))"""
        if self.is_fitted:
            return self.model.model.endog_names
        return self.formula.split('~')[0].strip()

    def prepare(self, df_monthly: pd.DataFrame) -> pd.DataFrame:
        """
        Add regression covariates to a monthly frame

        Args:
            df_monthly: DataFrame with a month-start 'date' column

        Returns:
            Copy with t, month and year columns
        """
        if self.first_date is None:
            raise ValueError("Regression must be fitted before preparing new data")

        df = df_monthly.copy()
        df['date'] = pd.to_datetime(df['date'])
        df['t'] = (
            (df['date'].dt.year - self.first_date.year) * 12
            + (df['date'].dt.month - self.first_date.month)
        )
        df['month'] = df['date'].dt.month
        df['year'] = df['date'].dt.year
        return df

    def fit(self, df_monthly: pd.DataFrame) -> 'IncidentTrendRegression':
        """
        Fit the regression

        Args:
            df_monthly: Monthly table from DataAggregator.aggregate_monthly

        Returns:
            Self (for method chaining)
        """
        if df_monthly.empty:
            raise ValueError("Monthly data is empty")

        logger.info(f"Fitting OLS regression: {self.formula}")

        self.first_date = pd.to_datetime(df_monthly['date']).min()
        df = self.prepare(df_monthly).sort_values('date').reset_index(drop=True)

        self.model = smf.ols(self.formula, data=df).fit()
        self.df_fit = df
        self.is_fitted = True

        logger.info(
            f"OLS fitted on {int(self.model.nobs)} months "
            f"(R²: {self.r_squared:.3f}, adj. R²: {self.adj_r_squared:.3f})"
        )

        return self

    def _check_fitted(self):
        if not self.is_fitted:
            raise ValueError("Regression must be fitted first")

    @property
    def r_squared(self) -> float:
        self._check_fitted()
        return float(self.model.rsquared)

    @property
    def adj_r_squared(self) -> float:
        self._check_fitted()
        return float(self.model.rsquared_adj)

    @property
    def trend_per_year(self) -> float:
        """Change in the response per year implied by the t coefficient"""
        self._check_fitted()
        if 't' not in self.model.params.index:
            return np.nan
        return float(self.model.params['t'] * 12)

    def coefficients(self) -> pd.DataFrame:
        """
        Coefficient table

        Returns:
            DataFrame with term, coef, std_err, t_value, p_value, ci_lower, ci_upper
        """
        self._check_fitted()
        conf_int = self.model.conf_int()

        return pd.DataFrame({
            'term': self.model.params.index,
            'coef': self.model.params.values,
            'std_err': self.model.bse.values,
            't_value': self.model.tvalues.values,
            'p_value': self.model.pvalues.values,
            'ci_lower': conf_int.iloc[:, 0].values,
            'ci_upper': conf_int.iloc[:, 1].values,
        })

    def fitted(self) -> pd.DataFrame:
        """
        Observed and fitted values per month

        Returns:
            DataFrame with date, observed response, fitted, residual
        """
        self._check_fitted()
        # Rows the formula dropped (missing values) are not in the fit
        rows = self.model.fittedvalues.index

        return pd.DataFrame({
            'date': self.df_fit.loc[rows, 'date'].values,
            self.response: self.model.model.endog,
            'fitted': self.model.fittedvalues.values,
            'residual': self.model.resid.values,
        })

    def predict(self, df_monthly: pd.DataFrame) -> pd.Series:
        """
        Predict the response for new months

        Args:
            df_monthly: DataFrame with month-start 'date' values

        Returns:
            Series of predictions aligned with df_monthly
        """
        self._check_fitted()
        df = self.prepare(df_monthly)
        return pd.Series(np.asarray(self.model.predict(df)), index=df_monthly.index, name='predicted')

    def summary_html(self) -> str:
        """Full statsmodels summary as HTML tables"""
        self._check_fitted()
        return self.model.summary().as_html()

    def get_metadata(self) -> Dict:
        self._check_fitted()
        return {
            'formula': self.formula,
            'n_obs': int(self.model.nobs),
            'r_squared': self.r_squared,
            'adj_r_squared': self.adj_r_squared,
            'f_pvalue': float(self.model.f_pvalue),
            'trend_per_year': self.trend_per_year,
        }


def fit_borough_trends(df_yearly_by_borough: pd.DataFrame, min_years: int = 3) -> pd.DataFrame:
    """
    Fit incidents ~ year separately for every borough

    Args:
        df_yearly_by_borough: Long table with year, borough, incidents
        min_years: Boroughs with fewer years are skipped

    Returns:
        DataFrame with borough, slope, intercept, r_squared, p_value, n_years
    """
    rows = []

    for borough, group in df_yearly_by_borough.groupby('borough'):
        if group['year'].nunique() < min_years:
            logger.warning(f"Skipping trend for {borough}: fewer than {min_years} years of data")
            continue

        result = smf.ols('incidents ~ year', data=group).fit()

        rows.append({
            'borough': borough,
            'slope': float(result.params['year']),
            'intercept': float(result.params['Intercept']),
            'r_squared': float(result.rsquared),
            'p_value': float(result.pvalues['year']),
            'n_years': int(result.nobs),
        })

    df_trends = pd.DataFrame(
        rows,
        columns=['borough', 'slope', 'intercept', 'r_squared', 'p_value', 'n_years']
    )

    logger.info(f"Fitted yearly trends for {len(df_trends)} boroughs")

    return df_trends
