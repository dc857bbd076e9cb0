"""Main CLI interface for the NYPD shooting incident report

Provides command-line commands for:
- Building the full HTML report
- Downloading the raw incident CSV
- Printing summary tables
- Checking cache and output status
"""

import click
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from datetime import datetime

from shooting_report import __version__
from shooting_report.analysis import IncidentDataPrep
from shooting_report.pipeline import ReportPipeline
from shooting_report.utils.config import ConfigLoader
from shooting_report.utils.logging_config import get_logger, setup_logging


console = Console()
logger = get_logger(__name__)


LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']


def _load_config(config_path: str, log_level: Optional[str] = None) -> ConfigLoader:
    """Load configuration and set up logging from it"""
    config = ConfigLoader(config_path)

    log_file = config.get('logging.file')
    setup_logging(
        log_level=log_level or config.get('logging.level', 'INFO'),
        log_file=str(config.get_path('logging.file')) if log_file else None
    )

    return config


def _file_info(path: Path) -> str:
    size = path.stat().st_size
    size_str = f"{size / 1024:.1f} KB" if size < 1024 * 1024 else f"{size / (1024 * 1024):.1f} MB"
    modified = datetime.fromtimestamp(path.stat().st_mtime).strftime('%Y-%m-%d %H:%M')
    return f"{size_str}, modified {modified}"


def _change_str(change: float) -> str:
    """Year-over-year change with arrow; blank after a missing or zero-incident year"""
    if pd.isna(change) or np.isinf(change):
        return "-"
    if change > 0:
        return f"[red]↑ {change:.1f}%[/red]"
    if change < 0:
        return f"[green]↓ {abs(change):.1f}%[/green]"
    return "[dim]→ 0.0%[/dim]"


config_option = click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    default='config/config.yaml',
    help='Path to configuration file'
)

log_level_option = click.option(
    '--log-level',
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help='Console log level (default: from configuration)'
)


@click.group()
@click.version_option(version=__version__, prog_name='NYPD Shooting Incident Report')
def cli():
    """
    NYPD Shooting Incident Report

    Exploratory analysis of the NYPD shooting incident dataset:
    - Incident counts by month, year, hour and borough
    - Linear trend regression
    - Short-horizon SARIMAX forecast
    """
    pass


@cli.command()
@config_option
@click.option(
    '--refresh',
    is_flag=True,
    help='Download the CSV again even if a cached copy exists'
)
@click.option(
    '--horizon',
    type=click.IntRange(min=1),
    default=None,
    help='Forecast horizon in months (default: from configuration)'
)
@click.option(
    '--no-forecast',
    is_flag=True,
    help='Skip model evaluation and forecasting'
)
@log_level_option
def run(config, refresh, horizon, no_forecast, log_level):
    """
    Build the full HTML report

    Examples:
      shooting-report run                      # Use cached CSV if present
      shooting-report run --refresh            # Download the CSV again
      shooting-report run --horizon 24         # Forecast two years ahead
      shooting-report run --no-forecast        # Charts and regression only
    """
    console.print(Panel.fit(
        "[bold cyan]NYPD Shooting Incident Report[/bold cyan]",
        border_style="cyan"
    ))

    try:
        cfg = _load_config(config, log_level)
        if horizon is not None:
            cfg.set('forecast.horizon_months', horizon)

        console.print("\n[yellow]Running pipeline...[/yellow]")
        pipeline = ReportPipeline(config=cfg)
        results = pipeline.run(refresh=refresh, forecast=not no_forecast)

        console.print("\n[bold green]✓ Report Complete![/bold green]\n")

        tables = results['tables']
        regression = results['regression']

        summary = [
            f"[bold]Incidents:[/bold]   {len(results['clean']):,}",
            f"[bold]Date Range:[/bold]  {tables['monthly']['date'].min():%Y-%m} → {tables['monthly']['date'].max():%Y-%m}",
            f"[bold]Regression:[/bold]  R² = {regression.r_squared:.3f}",
            f"[bold]Validation:[/bold]  {results['validation']['overall_status']}",
        ]

        if results['forecast'] is not None:
            df_fc = results['forecast']
            next_total = df_fc[(df_fc['series'] == 'All') & (df_fc['source'] == 'forecast')]['value'].sum()
            summary.append(
                f"[bold]Forecast:[/bold]    {next_total:,.0f} incidents over "
                f"{cfg.get('forecast.horizon_months')} months"
            )

        summary.append(f"[bold]Report:[/bold]      {results['report_path']}")

        console.print(Panel("\n".join(summary), title="Summary", border_style="cyan"))

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Report run failed")
        raise click.Abort()


@cli.command()
@config_option
@click.option(
    '--refresh',
    is_flag=True,
    help='Download again even if a cached copy exists'
)
@log_level_option
def download(config, refresh, log_level):
    """
    Download the raw incident CSV

    Example:
      shooting-report download --refresh
    """
    try:
        cfg = _load_config(config, log_level)
        pipeline = ReportPipeline(config=cfg)

        path = pipeline.download(refresh=refresh)

        console.print(f"[green]✓[/green] {path} ({_file_info(path)})")

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Download failed")
        raise click.Abort()


@cli.command()
@config_option
@log_level_option
def summary(config, log_level):
    """
    Print borough totals and yearly incident counts

    Example:
      shooting-report summary
    """
    try:
        cfg = _load_config(config, log_level or 'WARNING')
        _, tables, _ = IncidentDataPrep(cfg).run()

        totals = tables['borough_totals']
        has_murders = 'murders' in totals.columns

        table = Table(title="Incidents by Borough", show_header=True, header_style="bold cyan")
        table.add_column("Borough", style="cyan", no_wrap=True)
        table.add_column("Incidents", justify="right", style="green")
        table.add_column("Share", justify="right")
        if has_murders:
            table.add_column("Murders", justify="right", style="red")

        for _, row in totals.iterrows():
            cells = [row['borough'], f"{row['incidents']:,.0f}", f"{row['share_pct']:.1f}%"]
            if has_murders:
                cells.append(f"{row['murders']:,.0f}")
            table.add_row(*cells)

        console.print(table)

        yearly = tables['yearly']

        table = Table(title="Incidents by Year", show_header=True, header_style="bold cyan")
        table.add_column("Year", style="cyan")
        table.add_column("Incidents", justify="right", style="green")
        table.add_column("Change", justify="right")

        for _, row in yearly.iterrows():
            table.add_row(str(int(row['year'])), f"{row['incidents']:,.0f}", _change_str(row['pct_change']))

        console.print(table)

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Summary failed")
        raise click.Abort()


@cli.command()
@config_option
def status(config):
    """
    Show cached data, intermediate tables and the last report

    Example:
      shooting-report status
    """
    console.print(Panel.fit(
        "[bold cyan]NYPD Shooting Incident Report - Status[/bold cyan]",
        border_style="cyan"
    ))

    try:
        cfg = ConfigLoader(config)

        # Raw data cache
        console.print("\n[bold]Checking raw data...[/bold]")
        raw_file = cfg.get_path('data.raw_path', 'data/raw') / cfg.get('data.raw_file', 'nypd_shooting_incidents.csv')

        if raw_file.exists():
            console.print(f"  [green]✓[/green] {raw_file} ({_file_info(raw_file)})")
        else:
            console.print(f"  [yellow]⚠[/yellow] {raw_file} not downloaded")
            console.print("  Run 'shooting-report download' to fetch it")

        # Intermediate tables
        console.print("\n[bold]Checking intermediate tables...[/bold]")
        intermediate_dir = cfg.get_path('data.intermediate_path', 'data/intermediate')
        table_files = sorted(intermediate_dir.glob('*.csv')) if intermediate_dir.exists() else []

        if table_files:
            table = Table(title="Intermediate Tables")
            table.add_column("File", style="cyan")
            table.add_column("Size / Modified", style="green")

            for table_file in table_files:
                table.add_row(table_file.name, _file_info(table_file))

            console.print(table)
        else:
            console.print("  [yellow]⚠[/yellow] No intermediate tables found")

        # Last report
        console.print("\n[bold]Checking report...[/bold]")
        report_file = cfg.get_path('results.path', 'results') / cfg.get('results.report_file', 'report.html')

        if report_file.exists():
            console.print(f"  [green]✓[/green] {report_file} ({_file_info(report_file)})")
        else:
            console.print(f"  [yellow]⚠[/yellow] No report yet")
            console.print("  Run 'shooting-report run' to build it")

        # Configuration info
        console.print("\n[bold]Configuration:[/bold]")
        console.print(f"  Config file: {config}")
        console.print(f"  Source URL:  {cfg.get('data.source_url')}")
        console.print(f"  Forecast:    {cfg.get('forecast.model')} ({cfg.get('forecast.horizon_months')} months)")

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Status check failed")
        raise click.Abort()


if __name__ == '__main__':
    cli()
