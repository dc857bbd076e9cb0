"""Incident data preparation pipeline

Downloads the raw CSV, validates and cleans it, and builds the summary
tables the report is drawn from.
"""

import pandas as pd
from typing import Dict, Optional, Tuple
from shooting_report.data import IncidentDataLoader, IncidentDataCleaner, DataValidator, DataAggregator
from shooting_report.utils.logging_config import get_logger
from shooting_report.utils.config import ConfigLoader


logger = get_logger(__name__)


class IncidentDataPrep:
    """
    Prepare incident data for analysis

    Steps:
    1. Load raw CSV (download or cache)
    2. Validate source schema and values
    3. Clean records
    4. Aggregate to summary tables
    5. Check aggregation totals
    6. Save to intermediate directory
    """

    def __init__(self, config: Optional[ConfigLoader] = None, loader: Optional[IncidentDataLoader] = None):
        """Initialize data preparation"""
        self.config = config if config else ConfigLoader()
        self.loader = loader if loader else IncidentDataLoader(self.config)
        self.cleaner = IncidentDataCleaner(self.config)
        self.validator = DataValidator(self.config.get('validation', {}))
        self.aggregator = DataAggregator(self.config.get('aggregation', {}))

        self.intermediate_path = self.config.get_path('data.intermediate_path', 'data/intermediate')
        self.intermediate_path.mkdir(parents=True, exist_ok=True)

    def run(
        self,
        refresh: bool = False,
        df_raw: Optional[pd.DataFrame] = None
    ) -> Tuple[pd.DataFrame, Dict[str, pd.DataFrame], Dict]:
        """
        Run the complete data preparation pipeline

        Args:
            refresh: Force a new download of the raw CSV
            df_raw: Raw records to use instead of loading (optional)

        Returns:
            Tuple of (clean incidents, summary tables, validation report)
        """
        logger.info("=" * 60)
        logger.info("INCIDENT DATA PREPARATION")
        logger.info("=" * 60)

        # Step 1: Load raw data
        if df_raw is None:
            df_raw = self.loader.load(refresh=refresh)

        # Step 2: Validate raw data
        self._validate_raw(df_raw)

        # Step 3: Clean
        df_clean = self.cleaner.clean(df_raw)

        if df_clean.empty:
            raise ValueError("No incidents left after cleaning. Check the date and borough columns.")

        # Step 4: Aggregate
        tables = self.aggregator.build_all(df_clean)

        # Step 5: Check totals
        aggregate_report = self.validator.validate_aggregates(df_clean, tables)
        if aggregate_report['status'] == 'fail':
            raise ValueError(
                f"Summary tables do not add up to {aggregate_report['expected_total']:,} incidents: "
                f"{aggregate_report['mismatched_tables']}"
            )

        # Step 6: Save to intermediate
        self._save(df_clean, tables)

        return df_clean, tables, self.validator.generate_report()

    def _validate_raw(self, df_raw: pd.DataFrame):
        """Check the raw schema (fatal) and value quality (logged)"""
        date_col = self.cleaner.date_col
        borough_col = self.cleaner.borough_col

        schema = self.validator.validate_schema(df_raw, [date_col, borough_col])
        if schema['status'] == 'fail':
            raise ValueError(
                f"Source data is missing required columns {schema['missing_columns']}. "
                f"Available columns: {schema['available_columns'][:15]}"
            )

        self.validator.validate_completeness(
            df_raw,
            [date_col, self.cleaner.time_col, borough_col, self.cleaner.murder_col]
        )
        self.validator.validate_boroughs(df_raw, borough_col)
        self.validator.validate_date_range(df_raw, date_col)

    def _save(self, df_clean: pd.DataFrame, tables: Dict[str, pd.DataFrame]):
        """Write the clean incidents and summary tables as CSV"""
        clean_path = self.intermediate_path / 'incidents_clean.csv'
        df_clean.to_csv(clean_path, index=False)
        logger.info(f"Saved clean incidents to: {clean_path}")

        for name, table in tables.items():
            table.to_csv(self.intermediate_path / f'{name}.csv', index=False)

        logger.info(f"Saved {len(tables)} summary tables to: {self.intermediate_path}")


def run(refresh: bool = False):
    """Entry point for data preparation"""
    prep = IncidentDataPrep()
    return prep.run(refresh=refresh)


if __name__ == '__main__':
    run()
