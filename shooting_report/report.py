"""HTML report generation

Assembles the charts, summary tables, regression output and forecast
into a single HTML document.
"""

import html
import pandas as pd
import numpy as np
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import plotly.graph_objects as go

from shooting_report import charts
from shooting_report.analysis.forecast import ALL_SERIES
from shooting_report.models import BaseForecaster, IncidentTrendRegression
from shooting_report.utils.logging_config import get_logger
from shooting_report.utils.config import ConfigLoader


logger = get_logger(__name__)


STYLE = """
    :root {
        --nyc-navy: #1f3b73;
        --nyc-navy-light: rgba(31, 59, 115, 0.08);
        --text: #191919;
        --text-light: #666666;
        --bg: #f5f5f5;
        --white: #ffffff;
    }
    * { box-sizing: border-box; margin: 0; padding: 0; }
    body {
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
        background-color: var(--bg);
        color: var(--text);
        padding: 20px;
    }
    .header {
        margin-bottom: 20px;
        padding: 20px 30px;
        background: var(--white);
        border-bottom: 3px solid var(--nyc-navy);
    }
    .header h1 { font-size: 1.8rem; margin-bottom: 8px; }
    .header p { font-size: 0.95rem; color: var(--text-light); }
    .cards { display: flex; flex-wrap: wrap; gap: 12px; margin-bottom: 20px; }
    .card {
        flex: 1 1 180px;
        background: var(--white);
        padding: 16px 20px;
        border-left: 4px solid var(--nyc-navy);
    }
    .card .value { font-size: 1.5rem; font-weight: bold; }
    .card .label { font-size: 0.85rem; color: var(--text-light); }
    section {
        background: var(--white);
        padding: 20px 30px;
        margin-bottom: 20px;
    }
    section h2 { font-size: 1.3rem; margin-bottom: 12px; color: var(--nyc-navy); }
    section h3 { font-size: 1.05rem; margin: 16px 0 8px; }
    section p { margin-bottom: 8px; line-height: 1.5; }
    .chart-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(520px, 1fr)); gap: 12px; }
    table { border-collapse: collapse; width: 100%; font-size: 0.9rem; margin-bottom: 12px; }
    th, td { padding: 6px 10px; border-bottom: 1px solid #e5e5e5; text-align: left; }
    th { background: var(--nyc-navy-light); }
    td.number { text-align: right; font-variant-numeric: tabular-nums; }
    tr.best-row { font-weight: bold; }
    .table-note { font-size: 0.8rem; color: var(--text-light); }
    details { margin-top: 12px; }
    details summary { cursor: pointer; color: var(--nyc-navy); }
    .statsmodels-summary table { width: auto; font-family: monospace; font-size: 0.8rem; }
    .status-pass { color: #16a34a; }
    .status-warning { color: #d97706; }
    .status-fail { color: #dc2626; }
"""


def _fmt_int(val) -> str:
    return '-' if pd.isna(val) else f"{val:,.0f}"


def _fmt_float(val, digits: int = 2) -> str:
    return '-' if pd.isna(val) else f"{val:,.{digits}f}"


def _fmt_pct(val) -> str:
    return '-' if pd.isna(val) else f"{val:.1f}%"


def _fmt_pvalue(val) -> str:
    if pd.isna(val):
        return '-'
    return '<0.001' if val < 0.001 else f"{val:.3f}"


def table_html(
    df: pd.DataFrame,
    columns: Dict[str, str],
    formats: Optional[Dict[str, Callable]] = None,
    row_class: Optional[Callable[[pd.Series], str]] = None
) -> str:
    """
    Render a DataFrame as an HTML table

    Args:
        df: Data to render
        columns: Mapping of column name to header label (also sets order)
        formats: Optional formatter per column; formatted columns are right-aligned
        row_class: Optional function returning a CSS class for each row

    Returns:
        HTML table markup
    """
    formats = formats or {}

    out = ['<table>', '<thead><tr>']
    out.extend(f'<th>{html.escape(label)}</th>' for label in columns.values())
    out.append('</tr></thead><tbody>')

    for _, row in df.iterrows():
        css = row_class(row) if row_class else ''
        out.append(f'<tr class="{css}">')
        for col in columns:
            if col in formats:
                out.append(f'<td class="number">{html.escape(formats[col](row[col]))}</td>')
            else:
                val = '' if pd.isna(row[col]) else str(row[col])
                out.append(f'<td>{html.escape(val)}</td>')
        out.append('</tr>')

    out.append('</tbody></table>')
    return ''.join(out)


class ReportGenerator:
    """
    Generate the HTML incident report

    Generates:
    - results/report.html (plotly charts + tables, plotly.js embedded once)
    """

    def __init__(self, config: Optional[ConfigLoader] = None):
        """Initialize report generator"""
        self.config = config if config else ConfigLoader()
        self.results_path = self.config.get_path('results.path', 'results')
        self.report_file = self.config.get('results.report_file', 'report.html')
        self.source_url = self.config.get('data.source_url', '')
        self.results_path.mkdir(parents=True, exist_ok=True)
        self._plotlyjs_written = False

    def generate(
        self,
        tables: Dict[str, pd.DataFrame],
        regression: IncidentTrendRegression,
        borough_trends: pd.DataFrame,
        validation: Optional[Dict] = None,
        model_eval: Optional[pd.DataFrame] = None,
        df_forecast: Optional[pd.DataFrame] = None,
        forecast_models: Optional[Dict[str, BaseForecaster]] = None
    ) -> Path:
        """
        Generate the report

        Args:
            tables: Summary tables from DataAggregator.build_all
            regression: Fitted trend regression
            borough_trends: Output of fit_borough_trends
            validation: Validation report from DataValidator.generate_report
            model_eval: Output of ForecastModelEval.run
            df_forecast: Output of IncidentForecast.run
            forecast_models: Fitted forecasters keyed by series

        Returns:
            Path to generated HTML file
        """
        logger.info("=" * 60)
        logger.info("REPORT GENERATION")
        logger.info("=" * 60)

        self._plotlyjs_written = False

        sections = [
            self._overview_section(tables),
            self._borough_section(tables),
            self._time_pattern_section(tables),
            self._regression_section(regression, borough_trends),
        ]

        if df_forecast is not None:
            sections.append(self._forecast_section(df_forecast, model_eval, forecast_models or {}))

        if validation is not None:
            sections.append(self._data_quality_section(validation))

        document = self._page(
            header=self._header(tables),
            cards=self._key_figures(tables, regression, df_forecast),
            body=''.join(sections)
        )

        output_file = self.results_path / self.report_file
        output_file.write_text(document, encoding='utf-8')

        logger.info(f"Report saved to: {output_file}")

        return output_file

    def _figure(self, fig: go.Figure) -> str:
        """Figure markup; plotly.js is embedded with the first figure only"""
        include = not self._plotlyjs_written
        self._plotlyjs_written = True
        return fig.to_html(full_html=False, include_plotlyjs=include)

    def _page(self, header: str, cards: str, body: str) -> str:
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>NYPD Shooting Incident Report</title>
    <style>{STYLE}</style>
</head>
<body>
{header}
{cards}
{body}
</body>
</html>
"""

    def _header(self, tables: Dict[str, pd.DataFrame]) -> str:
        monthly = tables['monthly']
        start = monthly['date'].min().strftime('%B %Y')
        end = monthly['date'].max().strftime('%B %Y')
        source = html.escape(self.source_url)

        return f"""
<div class="header">
    <h1>NYPD Shooting Incident Report</h1>
    <p>{start} to {end} &middot; Source: <a href="{source}">{source}</a></p>
    <p>Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}</p>
</div>
"""

    def _key_figures(
        self,
        tables: Dict[str, pd.DataFrame],
        regression: IncidentTrendRegression,
        df_forecast: Optional[pd.DataFrame]
    ) -> str:
        yearly = tables['yearly']
        totals = tables['borough_totals']

        peak = yearly.loc[yearly['incidents'].idxmax()]
        top_borough = totals.iloc[0]

        cards = [
            (_fmt_int(yearly['incidents'].sum()), 'Total incidents'),
            (f"{int(yearly['year'].min())}-{int(yearly['year'].max())}", 'Years covered'),
            (f"{int(peak['year'])} ({_fmt_int(peak['incidents'])})", 'Peak year'),
            (f"{top_borough['borough']} ({top_borough['share_pct']:.0f}%)", 'Most incidents'),
        ]

        if 'murders' in yearly.columns:
            cards.append((_fmt_int(yearly['murders'].sum()), 'Statistical murders'))

        trend = regression.trend_per_year
        if not np.isnan(trend):
            cards.append((f"{trend:+,.1f}", 'Trend (incidents/month per year)'))

        if df_forecast is not None:
            next_total = df_forecast[
                (df_forecast['series'] == ALL_SERIES) & (df_forecast['source'] == 'forecast')
            ]['value'].sum()
            cards.append((_fmt_int(next_total), 'Forecast incidents, next horizon'))

        items = ''.join(
            f'<div class="card"><div class="value">{html.escape(value)}</div>'
            f'<div class="label">{html.escape(label)}</div></div>'
            for value, label in cards
        )
        return f'<div class="cards">{items}</div>'

    def _overview_section(self, tables: Dict[str, pd.DataFrame]) -> str:
        return f"""
<section>
    <h2>Incidents over time</h2>
    {self._figure(charts.monthly_trend_chart(tables['monthly']))}
    <h3>Yearly summary</h3>
    {self._yearly_summary_html(tables['yearly'])}
</section>
"""

    def _yearly_summary_html(self, yearly: pd.DataFrame) -> str:
        """Yearly totals with year-over-year change arrows"""
        has_murders = 'murders' in yearly.columns

        out = ['<table><thead><tr><th>Year</th><th>Incidents</th>']
        if has_murders:
            out.append('<th>Murders</th>')
        out.append('</tr></thead><tbody>')

        for _, row in yearly.iterrows():
            change = row['pct_change']
            if pd.isna(change) or np.isinf(change):
                change_str = ''
            else:
                arrow = '↑' if change > 0 else '↓' if change < 0 else '→'
                color = '#dc2626' if change > 0 else '#16a34a' if change < 0 else '#6b7280'
                change_str = f' <span style="color:{color};font-size:0.8rem">{arrow} {abs(change):.1f}%</span>'

            out.append(f'<tr><td><strong>{int(row["year"])}</strong></td>')
            out.append(f'<td class="number">{_fmt_int(row["incidents"])}{change_str}</td>')
            if has_murders:
                out.append(f'<td class="number">{_fmt_int(row["murders"])}</td>')
            out.append('</tr>')

        out.append('</tbody></table>')
        out.append('<p class="table-note">Arrows show the change from the previous year.</p>')
        return ''.join(out)

    def _borough_section(self, tables: Dict[str, pd.DataFrame]) -> str:
        totals = tables['borough_totals']

        columns = {'borough': 'Borough', 'incidents': 'Incidents', 'share_pct': 'Share'}
        formats = {'incidents': _fmt_int, 'share_pct': _fmt_pct}
        if 'murders' in totals.columns:
            columns.update({'murders': 'Murders', 'murder_rate_pct': 'Murder rate'})
            formats.update({'murders': _fmt_int, 'murder_rate_pct': _fmt_pct})

        return f"""
<section>
    <h2>Boroughs</h2>
    <div class="chart-grid">
        {self._figure(charts.borough_share_chart(totals))}
        {self._figure(charts.yearly_borough_chart(tables['yearly_by_borough']))}
    </div>
    {table_html(totals, columns, formats)}
    {self._figure(charts.monthly_borough_chart(tables['monthly_by_borough']))}
</section>
"""

    def _time_pattern_section(self, tables: Dict[str, pd.DataFrame]) -> str:
        return f"""
<section>
    <h2>When incidents happen</h2>
    <div class="chart-grid">
        {self._figure(charts.hourly_borough_chart(tables['hourly_by_borough']))}
        {self._figure(charts.month_of_year_chart(tables['month_of_year_by_borough']))}
    </div>
</section>
"""

    def _regression_section(self, regression: IncidentTrendRegression, borough_trends: pd.DataFrame) -> str:
        meta = regression.get_metadata()

        coef_table = table_html(
            regression.coefficients(),
            {
                'term': 'Term', 'coef': 'Coefficient', 'std_err': 'Std. error',
                'p_value': 'p-value', 'ci_lower': 'CI lower', 'ci_upper': 'CI upper'
            },
            {
                'coef': _fmt_float, 'std_err': _fmt_float, 'p_value': _fmt_pvalue,
                'ci_lower': _fmt_float, 'ci_upper': _fmt_float
            }
        )

        trend_table = table_html(
            borough_trends,
            {
                'borough': 'Borough', 'slope': 'Incidents / year', 'r_squared': 'R²',
                'p_value': 'p-value', 'n_years': 'Years'
            },
            {
                'slope': lambda v: _fmt_float(v, 1), 'r_squared': lambda v: _fmt_float(v, 3),
                'p_value': _fmt_pvalue, 'n_years': _fmt_int
            }
        )

        return f"""
<section>
    <h2>Linear regression</h2>
    <p>Model: <code>{html.escape(meta['formula'])}</code> fitted by OLS on {meta['n_obs']} months.
       R² = {meta['r_squared']:.3f}, adjusted R² = {meta['adj_r_squared']:.3f},
       F-test p-value {_fmt_pvalue(meta['f_pvalue'])}.</p>
    {self._figure(charts.regression_fit_chart(regression.fitted(), regression.response))}
    <h3>Coefficients</h3>
    {coef_table}
    <details class="statsmodels-summary">
        <summary>Full OLS summary</summary>
        {regression.summary_html()}
    </details>
    <h3>Yearly trend by borough</h3>
    <p>Separate fits of <code>incidents ~ year</code> for each borough.</p>
    {trend_table}
</section>
"""

    def _forecast_section(
        self,
        df_forecast: pd.DataFrame,
        model_eval: Optional[pd.DataFrame],
        forecast_models: Dict[str, BaseForecaster]
    ) -> str:
        parts = ['<section>', '<h2>Forecast</h2>']

        if model_eval is not None and len(model_eval) > 0:
            parts.append('<h3>Model comparison on holdout months</h3>')
            parts.append(table_html(
                model_eval,
                {'label': 'Model', 'mape': 'MAPE', 'mae': 'MAE', 'rmse': 'RMSE', 'error': 'Error'},
                {'mape': _fmt_pct, 'mae': lambda v: _fmt_float(v, 1), 'rmse': lambda v: _fmt_float(v, 1)},
                row_class=lambda row: 'best-row' if row['is_best'] else ''
            ))
            if model_eval['mape'].notna().any():
                parts.append(self._figure(charts.model_eval_chart(model_eval)))

        parts.append(self._figure(charts.forecast_chart(df_forecast, ALL_SERIES)))

        boroughs = [s for s in df_forecast['series'].unique() if s != ALL_SERIES]
        if boroughs:
            parts.append('<div class="chart-grid">')
            parts.extend(self._figure(charts.forecast_chart(df_forecast, b, history_months=36)) for b in sorted(boroughs))
            parts.append('</div>')

        parts.append('<h3>Forecast values</h3>')
        parts.append(self._forecast_table_html(df_forecast))

        model = forecast_models.get(ALL_SERIES)
        if model is not None and hasattr(model, 'summary_html'):
            parts.append(
                '<details class="statsmodels-summary"><summary>Forecast model summary</summary>'
                f'{model.summary_html()}</details>'
            )

        parts.append('</section>')
        return ''.join(parts)

    def _forecast_table_html(self, df_forecast: pd.DataFrame) -> str:
        """NYC-wide forecast with interval, plus one column per borough"""
        df_fc = df_forecast[df_forecast['source'] == 'forecast']
        df_all = df_fc[df_fc['series'] == ALL_SERIES][['date', 'value', 'lower', 'upper']].copy()

        wide = df_fc[df_fc['series'] != ALL_SERIES].pivot_table(
            index='date', columns='series', values='value'
        )
        df_table = df_all.merge(wide, left_on='date', right_index=True, how='left')
        df_table['month'] = df_table['date'].dt.strftime('%b %Y')

        columns = {'month': 'Month', 'value': 'NYC', 'lower': 'Lower', 'upper': 'Upper'}
        columns.update({b: b for b in wide.columns})
        formats = {col: _fmt_int for col in columns if col != 'month'}

        return table_html(df_table, columns, formats)

    def _data_quality_section(self, validation: Dict) -> str:
        rows: List[str] = []

        for name, check in validation.get('checks', {}).items():
            status = check.get('status', 'unknown')
            rows.append(
                f'<tr><td>{html.escape(name.replace("_", " ").capitalize())}</td>'
                f'<td class="status-{status}">{html.escape(status)}</td>'
                f'<td>{html.escape(self._check_note(name, check))}</td></tr>'
            )

        overall = validation.get('overall_status', 'unknown')

        return f"""
<section>
    <h2>Data quality</h2>
    <p>Overall status: <strong class="status-{overall}">{html.escape(overall)}</strong></p>
    <table><thead><tr><th>Check</th><th>Status</th><th>Notes</th></tr></thead>
    <tbody>{''.join(rows)}</tbody></table>
</section>
"""

    @staticmethod
    def _check_note(name: str, check: Dict) -> str:
        if name == 'schema':
            missing = check.get('missing_columns') or []
            return f"Missing: {', '.join(missing)}" if missing else 'All required columns present'
        if name == 'completeness':
            low = check.get('low_completeness_columns') or []
            return f"Low completeness: {', '.join(low)}" if low else 'Key columns complete'
        if name == 'boroughs':
            return f"{check.get('unknown_count', 0):,} records with unknown borough"
        if name == 'date_range':
            return (
                f"{check.get('min_date')} to {check.get('max_date')}, "
                f"{check.get('unparseable_dates', 0):,} unparseable"
            )
        if name == 'aggregates':
            return f"{check.get('expected_total', 0):,} incidents accounted for in every table"
        return ''


def run(results: Dict, config: Optional[ConfigLoader] = None) -> Path:
    """Entry point for report generation from pipeline results"""
    generator = ReportGenerator(config)
    return generator.generate(
        tables=results['tables'],
        regression=results['regression'],
        borough_trends=results['borough_trends'],
        validation=results.get('validation'),
        model_eval=results.get('model_eval'),
        df_forecast=results.get('forecast'),
        forecast_models=results.get('forecast_models')
    )
