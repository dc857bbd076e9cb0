"""Data aggregation for the shooting incident report"""

import calendar
import pandas as pd
from typing import Dict, List
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


class DataAggregator:
    """
    Aggregate clean incidents into summary tables

    Handles:
    - Monthly time series (NYC-wide and per borough)
    - Yearly totals and year-over-year change
    - Hour-of-day and month-of-year profiles per borough
    - Borough totals and shares

    All tables are zero-filled so every period/borough combination appears.
    """

    def __init__(self, config: Dict = None):
        """
        Initialize aggregator

        Args:
            config: Configuration dictionary
        """
        self.config = config if config else {}

    @staticmethod
    def _boroughs(df: pd.DataFrame) -> List[str]:
        return sorted(df['borough'].dropna().unique().tolist())

    @staticmethod
    def _month_range(df: pd.DataFrame) -> pd.DatetimeIndex:
        first = df['occurred_at'].min().to_period('M').to_timestamp()
        last = df['occurred_at'].max().to_period('M').to_timestamp()
        return pd.date_range(first, last, freq='MS')

    @staticmethod
    def _require_rows(df: pd.DataFrame):
        if df.empty:
            raise ValueError("Incident DataFrame is empty, nothing to aggregate")

    def aggregate_monthly(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per calendar month

        Args:
            df: Clean incident DataFrame

        Returns:
            DataFrame with date (month start), year_month, incidents [, murders]
        """
        self._require_rows(df)
        logger.info(f"Aggregating {len(df):,} incidents by month")

        months = self._month_range(df)
        month_start = df['occurred_at'].dt.to_period('M').dt.to_timestamp()

        df_monthly = (
            df.assign(date=month_start)
            .groupby('date')
            .size()
            .reindex(months, fill_value=0)
            .rename('incidents')
            .rename_axis('date')
            .reset_index()
        )

        if 'is_murder' in df.columns:
            murders = (
                df.assign(date=month_start)
                .groupby('date')['is_murder']
                .sum()
                .reindex(months, fill_value=0)
                .astype(int)
            )
            df_monthly['murders'] = murders.values

        df_monthly.insert(1, 'year_month', df_monthly['date'].dt.strftime('%Y-%m'))

        logger.info(f"Aggregated to {len(df_monthly):,} monthly records")

        return df_monthly

    def aggregate_monthly_by_borough(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per calendar month and borough

        Args:
            df: Clean incident DataFrame

        Returns:
            Long DataFrame with date, borough, incidents
        """
        self._require_rows(df)

        months = self._month_range(df)
        boroughs = self._boroughs(df)
        month_start = df['occurred_at'].dt.to_period('M').dt.to_timestamp()

        full_index = pd.MultiIndex.from_product([months, boroughs], names=['date', 'borough'])

        return (
            df.assign(date=month_start)
            .groupby(['date', 'borough'])
            .size()
            .reindex(full_index, fill_value=0)
            .rename('incidents')
            .reset_index()
        )

    def aggregate_yearly(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per year with year-over-year change

        Args:
            df: Clean incident DataFrame

        Returns:
            DataFrame with year, incidents [, murders], pct_change
        """
        self._require_rows(df)

        years = range(int(df['year'].min()), int(df['year'].max()) + 1)

        agg = {'incidents': ('occurred_at', 'size')}
        if 'is_murder' in df.columns:
            agg['murders'] = ('is_murder', 'sum')

        df_yearly = (
            df.groupby('year')
            .agg(**agg)
            .reindex(years, fill_value=0)
            .rename_axis('year')
            .reset_index()
        )

        if 'murders' in df_yearly.columns:
            df_yearly['murders'] = df_yearly['murders'].astype(int)

        df_yearly['pct_change'] = df_yearly['incidents'].pct_change() * 100

        return df_yearly

    def aggregate_yearly_by_borough(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per year and borough

        Args:
            df: Clean incident DataFrame

        Returns:
            Long DataFrame with year, borough, incidents
        """
        self._require_rows(df)

        years = range(int(df['year'].min()), int(df['year'].max()) + 1)
        full_index = pd.MultiIndex.from_product([years, self._boroughs(df)], names=['year', 'borough'])

        return (
            df.groupby(['year', 'borough'])
            .size()
            .reindex(full_index, fill_value=0)
            .rename('incidents')
            .reset_index()
        )

    def aggregate_hourly_by_borough(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per hour of day and borough

        Args:
            df: Clean incident DataFrame

        Returns:
            Long DataFrame with hour (0-23), borough, incidents
        """
        self._require_rows(df)

        full_index = pd.MultiIndex.from_product([range(24), self._boroughs(df)], names=['hour', 'borough'])

        return (
            df.groupby(['hour', 'borough'])
            .size()
            .reindex(full_index, fill_value=0)
            .rename('incidents')
            .reset_index()
        )

    def aggregate_month_of_year_by_borough(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Count incidents per calendar month (pooled across years) and borough

        Args:
            df: Clean incident DataFrame

        Returns:
            Long DataFrame with month (1-12), month_name, borough, incidents
        """
        self._require_rows(df)

        full_index = pd.MultiIndex.from_product([range(1, 13), self._boroughs(df)], names=['month', 'borough'])

        df_months = (
            df.groupby(['month', 'borough'])
            .size()
            .reindex(full_index, fill_value=0)
            .rename('incidents')
            .reset_index()
        )
        df_months.insert(1, 'month_name', df_months['month'].map(lambda m: calendar.month_abbr[m]))

        return df_months

    def aggregate_borough_totals(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Total incidents per borough with share of all incidents

        Args:
            df: Clean incident DataFrame

        Returns:
            DataFrame with borough, incidents, share_pct [, murders, murder_rate_pct]
        """
        self._require_rows(df)

        agg = {'incidents': ('occurred_at', 'size')}
        if 'is_murder' in df.columns:
            agg['murders'] = ('is_murder', 'sum')

        df_totals = (
            df.groupby('borough')
            .agg(**agg)
            .reindex(self._boroughs(df), fill_value=0)
            .rename_axis('borough')
            .reset_index()
        )

        df_totals['share_pct'] = df_totals['incidents'] / df_totals['incidents'].sum() * 100

        if 'murders' in df_totals.columns:
            df_totals['murders'] = df_totals['murders'].astype(int)
            df_totals['murder_rate_pct'] = (
                df_totals['murders'] / df_totals['incidents'].where(df_totals['incidents'] > 0) * 100
            )

        return df_totals.sort_values('incidents', ascending=False).reset_index(drop=True)

    def build_all(self, df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
        """
        Build every summary table used by the report

        Args:
            df: Clean incident DataFrame

        Returns:
            Dict of summary tables keyed by name
        """
        tables = {
            'monthly': self.aggregate_monthly(df),
            'monthly_by_borough': self.aggregate_monthly_by_borough(df),
            'yearly': self.aggregate_yearly(df),
            'yearly_by_borough': self.aggregate_yearly_by_borough(df),
            'hourly_by_borough': self.aggregate_hourly_by_borough(df),
            'month_of_year_by_borough': self.aggregate_month_of_year_by_borough(df),
            'borough_totals': self.aggregate_borough_totals(df),
        }

        for name, table in tables.items():
            logger.debug(f"  {name}: {len(table):,} rows")

        return tables


def borough_series(df_monthly_by_borough: pd.DataFrame, borough: str) -> pd.DataFrame:
    """
    Extract one borough's monthly series in the (date, incidents) layout

    Args:
        df_monthly_by_borough: Output of aggregate_monthly_by_borough
        borough: Borough name

    Returns:
        DataFrame with date and incidents
    """
    series = df_monthly_by_borough[df_monthly_by_borough['borough'] == borough]
    return series[['date', 'incidents']].sort_values('date').reset_index(drop=True)
