"""Data validation for the shooting incident report"""

import pandas as pd
from typing import Dict, List, Optional
from shooting_report.data.cleaners import BOROUGHS, normalize_borough_names
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)


class DataValidator:
    """
    Validate incident data quality

    Performs checks on:
    - Schema (required source columns)
    - Completeness of key columns
    - Borough values
    - Occurrence date range
    - Aggregation totals
    """

    def __init__(self, config: dict = None):
        """
        Initialize validator

        Args:
            config: Validation configuration (thresholds)
        """
        self.config = config if config else {}
        self.completeness_threshold = self.config.get('completeness_threshold', 95.0)
        self.validation_results = {}

    def validate_schema(self, df: pd.DataFrame, required_columns: List[str]) -> Dict:
        """
        Check that the source columns the report depends on are present

        Args:
            df: Raw DataFrame
            required_columns: Column names that must exist

        Returns:
            Validation report dict
        """
        logger.info("Validating source schema...")

        missing_columns = [col for col in required_columns if col not in df.columns]

        report = {
            'status': 'pass' if not missing_columns else 'fail',
            'required_columns': list(required_columns),
            'missing_columns': missing_columns,
            'available_columns': df.columns.tolist()
        }

        if missing_columns:
            logger.error(f"❌ Missing required columns: {missing_columns}")
        else:
            logger.info("✅ All required columns present")

        self.validation_results['schema'] = report
        return report

    def validate_completeness(self, df: pd.DataFrame, columns: List[str]) -> Dict:
        """
        Check how many values are populated in each column

        Args:
            df: DataFrame to validate
            columns: Column names to check (absent columns are skipped)

        Returns:
            Validation report dict
        """
        logger.info("Validating data completeness...")

        completeness = {}
        for col in columns:
            if col not in df.columns:
                continue
            non_null_count = int(df[col].notna().sum())
            completeness[col] = {
                'records': len(df),
                'non_null': non_null_count,
                'null': len(df) - non_null_count,
                'completeness_pct': (non_null_count / len(df)) * 100 if len(df) > 0 else 0.0
            }

        low_columns = [
            col for col, stats in completeness.items()
            if stats['completeness_pct'] < self.completeness_threshold
        ]

        for col in low_columns:
            stats = completeness[col]
            logger.warning(
                f"⚠️  {col}: {stats['completeness_pct']:.1f}% complete "
                f"({stats['null']:,} missing values)"
            )

        report = {
            'status': 'pass' if not low_columns else 'warning',
            'completeness': completeness,
            'low_completeness_columns': low_columns
        }

        self.validation_results['completeness'] = report
        return report

    def validate_boroughs(self, df: pd.DataFrame, column: str) -> Dict:
        """
        Report the distribution of raw borough values

        Args:
            df: Raw DataFrame
            column: Name of the raw borough column

        Returns:
            Validation report dict
        """
        logger.info("Validating borough values...")

        if column not in df.columns:
            report = {'status': 'fail', 'error': f"Column '{column}' not found"}
            self.validation_results['boroughs'] = report
            return report

        normalized = normalize_borough_names(df[column])
        counts = normalized.value_counts(dropna=False)

        distribution = {str(k): int(v) for k, v in counts.items()}
        unknown = {k: v for k, v in distribution.items() if k not in BOROUGHS}
        missing_boroughs = [b for b in BOROUGHS if b not in distribution]

        report = {
            'status': 'pass' if not unknown else 'warning',
            'distribution': distribution,
            'unknown_values': unknown,
            'unknown_count': int(sum(unknown.values())),
            'missing_boroughs': missing_boroughs
        }

        if unknown:
            logger.warning(f"⚠️  {report['unknown_count']:,} records with unknown borough values: {list(unknown)[:5]}")
        if missing_boroughs:
            logger.warning(f"⚠️  No incidents for: {missing_boroughs}")

        self.validation_results['boroughs'] = report
        return report

    def validate_date_range(
        self,
        df: pd.DataFrame,
        column: str,
        date_format: Optional[str] = '%m/%d/%Y'
    ) -> Dict:
        """
        Check the occurrence date range

        Args:
            df: Raw or clean DataFrame
            column: Date column name
            date_format: Expected format for text dates

        Returns:
            Validation report dict
        """
        logger.info("Validating date range...")

        if column not in df.columns:
            report = {'status': 'fail', 'error': f"Column '{column}' not found"}
            self.validation_results['date_range'] = report
            return report

        values = df[column]
        if pd.api.types.is_datetime64_any_dtype(values):
            dates = values
        else:
            dates = pd.to_datetime(values, format=date_format, errors='coerce')

        unparseable = int((dates.isna() & values.notna()).sum())
        future = int((dates > pd.Timestamp.now()).sum())

        report = {
            'status': 'pass' if unparseable == 0 and future == 0 else 'warning',
            'min_date': str(dates.min().date()) if dates.notna().any() else None,
            'max_date': str(dates.max().date()) if dates.notna().any() else None,
            'unparseable_dates': unparseable,
            'future_dates': future
        }

        logger.info(f"  Date range: {report['min_date']} to {report['max_date']}")
        if unparseable:
            logger.warning(f"⚠️  {unparseable:,} unparseable dates")
        if future:
            logger.warning(f"⚠️  {future:,} dates in the future")

        self.validation_results['date_range'] = report
        return report

    def validate_aggregates(self, df_clean: pd.DataFrame, tables: Dict[str, pd.DataFrame]) -> Dict:
        """
        Check that every summary table accounts for every incident

        Args:
            df_clean: Clean incident DataFrame
            tables: Summary tables keyed by name, each with an 'incidents' column

        Returns:
            Validation report dict
        """
        logger.info("Validating aggregation totals...")

        expected = len(df_clean)
        totals = {}
        mismatches = []

        for name, table in tables.items():
            if 'incidents' not in table.columns:
                continue
            total = int(table['incidents'].sum())
            totals[name] = total
            if total != expected:
                mismatches.append(name)
                logger.error(f"❌ {name}: {total:,} incidents, expected {expected:,}")

        if not mismatches:
            logger.info(f"✅ All summary tables sum to {expected:,} incidents")

        report = {
            'status': 'pass' if not mismatches else 'fail',
            'expected_total': expected,
            'table_totals': totals,
            'mismatched_tables': mismatches
        }

        self.validation_results['aggregates'] = report
        return report

    def generate_report(self) -> Dict:
        """
        Collect all validation results

        Returns:
            Dict with overall status and the individual reports
        """
        statuses = [r.get('status') for r in self.validation_results.values()]

        if 'fail' in statuses:
            overall = 'fail'
        elif 'warning' in statuses:
            overall = 'warning'
        else:
            overall = 'pass'

        return {
            'overall_status': overall,
            'checks': dict(self.validation_results)
        }
