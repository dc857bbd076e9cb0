"""Data cleaning for the shooting incident report"""

import pandas as pd
from typing import Optional
from shooting_report.utils.config import ConfigLoader
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


BOROUGHS = ['Bronx', 'Brooklyn', 'Manhattan', 'Queens', 'Staten Island']

DATE_FORMAT = '%m/%d/%Y'
TIME_FORMAT = '%H:%M:%S'

MURDER_FLAG_VALUES = {
    'true': True, 't': True, 'yes': True, 'y': True, '1': True,
    'false': False, 'f': False, 'no': False, 'n': False, '0': False,
}


def normalize_borough_names(values: pd.Series) -> pd.Series:
    """Trim, collapse inner whitespace and title-case raw borough values"""
    return (
        values
        .astype('string')
        .str.strip()
        .str.replace(r'\s+', ' ', regex=True)
        .str.title()
    )


class IncidentDataCleaner:
    """
    Clean and standardize shooting incident records

    Produces one row per incident with a parsed occurrence timestamp,
    a normalized borough and calendar features used by the aggregator.
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """
        Initialize data cleaner

        Args:
            config: Configuration loader instance
        """
        self.config = config if config else ConfigLoader()
        self.date_col = self.config.get('columns.date', 'OCCUR_DATE')
        self.time_col = self.config.get('columns.time', 'OCCUR_TIME')
        self.borough_col = self.config.get('columns.borough', 'BORO')
        self.key_col = self.config.get('columns.incident_key', 'INCIDENT_KEY')
        self.murder_col = self.config.get('columns.murder_flag', 'STATISTICAL_MURDER_FLAG')
        self.filtering_rules = self.config.get('filtering', {})

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Run all cleaning steps

        Args:
            df: Raw incident DataFrame

        Returns:
            Clean incident DataFrame sorted by occurrence time
        """
        initial_count = len(df)
        logger.info(f"Cleaning {initial_count:,} incident records")

        df = self.parse_occurrence(df)
        df = self.normalize_boroughs(df)
        df = self.parse_murder_flag(df)
        df = self.add_time_features(df)
        df = self.apply_date_filter(df)

        if self.key_col in df.columns:
            df = df.rename(columns={self.key_col: 'incident_key'})

        df = df.sort_values('occurred_at', kind='stable').reset_index(drop=True)

        removed_count = initial_count - len(df)
        removed_pct = (removed_count / initial_count) * 100 if initial_count else 0.0

        logger.info(f"Cleaning complete: {removed_count:,} records removed ({removed_pct:.2f}%)")
        logger.info(f"Remaining: {len(df):,} incidents")

        return df

    def parse_occurrence(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Build the occurred_at timestamp from the date and time columns

        Rows with an unparseable date are dropped. A missing or unparseable
        time falls back to midnight of the occurrence date.

        Args:
            df: DataFrame with the raw date (and optionally time) column

        Returns:
            DataFrame with an occurred_at column
        """
        if self.date_col not in df.columns:
            raise ValueError(f"Date column '{self.date_col}' not found in data")

        df = df.copy()
        dates = self._parse_dates(df[self.date_col])

        if self.time_col in df.columns:
            times = self._parse_times(df[self.time_col])
            missing_times = times.isna().sum()
            if missing_times > 0:
                logger.warning(f"  {missing_times:,} records without a usable time, using midnight")
            df['occurred_at'] = dates + times.fillna(pd.Timedelta(0))
        else:
            logger.warning(f"  Time column '{self.time_col}' not found, hour of day will be 0")
            df['occurred_at'] = dates

        invalid_mask = df['occurred_at'].isna()
        invalid_count = invalid_mask.sum()

        if invalid_count > 0:
            df = df[~invalid_mask].copy()
            logger.warning(f"  Dropped {invalid_count:,} records with unparseable dates")

        return df

    def _parse_dates(self, series: pd.Series) -> pd.Series:
        """Parse the occurrence date, falling back to inference for other layouts"""
        dates = pd.to_datetime(series, format=DATE_FORMAT, errors='coerce')

        unparsed = dates.isna() & series.notna()
        if unparsed.any():
            dates.loc[unparsed] = pd.to_datetime(series[unparsed], errors='coerce')

        return dates.dt.normalize()

    def _parse_times(self, series: pd.Series) -> pd.Series:
        """Parse the occurrence time to an offset from midnight"""
        parsed = pd.to_datetime(series, format=TIME_FORMAT, errors='coerce')

        unparsed = parsed.isna() & series.notna()
        if unparsed.any():
            parsed.loc[unparsed] = pd.to_datetime(series[unparsed], format='%H:%M', errors='coerce')

        return parsed - parsed.dt.normalize()

    def normalize_boroughs(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Map raw borough values to the five NYC boroughs

        Args:
            df: DataFrame with the raw borough column

        Returns:
            DataFrame with a title-case borough column, unknown boroughs removed
        """
        if self.borough_col not in df.columns:
            raise ValueError(f"Borough column '{self.borough_col}' not found in data")

        df = df.copy()
        normalized = normalize_borough_names(df[self.borough_col])

        unknown_mask = ~normalized.isin(BOROUGHS)
        unknown_count = int(unknown_mask.sum())

        df['borough'] = normalized.astype(object)

        if unknown_count > 0:
            unknown_values = sorted(df.loc[unknown_mask, self.borough_col].dropna().astype(str).unique())
            df = df[~unknown_mask].copy()
            logger.warning(f"  Dropped {unknown_count:,} records with unknown borough {unknown_values[:5]}")

        if self.borough_col != 'borough':
            df = df.drop(columns=[self.borough_col])

        return df

    def parse_murder_flag(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Convert the statistical murder flag to bool

        Unrecognized values count as False. Skipped when the column is absent.

        Args:
            df: Incident DataFrame

        Returns:
            DataFrame with an is_murder column when the flag is available
        """
        if self.murder_col not in df.columns:
            logger.debug(f"  Murder flag column '{self.murder_col}' not found, skipping")
            return df

        df = df.copy()
        flags = df[self.murder_col].astype(str).str.strip().str.lower().map(MURDER_FLAG_VALUES)

        unrecognized = flags.isna().sum()
        if unrecognized > 0:
            logger.warning(f"  {unrecognized:,} unrecognized murder flag values treated as False")

        df['is_murder'] = flags.fillna(False).astype(bool)
        return df.drop(columns=[self.murder_col])

    def add_time_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Derive calendar features from occurred_at

        Args:
            df: DataFrame with an occurred_at column

        Returns:
            DataFrame with occur_date, year, month, year_month, hour and weekday
        """
        df = df.copy()
        occurred = df['occurred_at']

        df['occur_date'] = occurred.dt.normalize()
        df['year'] = occurred.dt.year.astype(int)
        df['month'] = occurred.dt.month.astype(int)
        df['year_month'] = occurred.dt.to_period('M').astype(str)
        df['hour'] = occurred.dt.hour.astype(int)
        df['weekday'] = occurred.dt.day_name()

        return df

    def apply_date_filter(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Restrict incidents to the configured date window

        Args:
            df: DataFrame with an occur_date column

        Returns:
            Filtered DataFrame
        """
        start_date = self.filtering_rules.get('start_date') if self.filtering_rules else None
        end_date = self.filtering_rules.get('end_date') if self.filtering_rules else None

        if start_date is None and end_date is None:
            return df

        mask = pd.Series(True, index=df.index)
        if start_date is not None:
            mask &= df['occur_date'] >= pd.to_datetime(start_date)
        if end_date is not None:
            mask &= df['occur_date'] <= pd.to_datetime(end_date)

        excluded = int((~mask).sum())
        if excluded > 0:
            logger.info(f"  Excluded {excluded:,} records outside {start_date} to {end_date}")

        return df[mask].copy()
