"""Data loaders for the shooting incident report"""

import pandas as pd
from pathlib import Path
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, DownloadColumn, TimeElapsedColumn

from shooting_report.utils.config import ConfigLoader
from shooting_report.utils.logging_config import get_logger


logger = get_logger(__name__)

DEFAULT_SOURCE_URL = "https://data.cityofnewyork.us/api/views/833y-fsy8/rows.csv?accessType=DOWNLOAD"
USER_AGENT = "nypd-shooting-report/1.0"
CHUNK_SIZE = 1024 * 256


class IncidentDataLoader:
    """
    Download and load the NYPD shooting incident CSV

    The remote file is cached under data.raw_path; later runs reuse the
    cached copy unless a refresh is requested.
    """

    def __init__(self, config: Optional[ConfigLoader] = None, session: Optional[requests.Session] = None):
        """
        Initialize data loader

        Args:
            config: Configuration loader instance
            session: HTTP session to use (a retrying session is built if omitted)
        """
        self.config = config if config else ConfigLoader()
        self.source_url = self.config.get('data.source_url', DEFAULT_SOURCE_URL)
        self.data_path = self.config.get_path('data.raw_path', 'data/raw')
        self.file_name = self.config.get('data.raw_file', 'nypd_shooting_incidents.csv')
        self.timeout = self.config.get('data.timeout', 120)
        self.show_progress = self.config.get('data.show_progress', True)
        self.session = session if session is not None else self._build_session()

        logger.info(f"Data loader initialized with path: {self.data_path}")

    @property
    def cache_file(self) -> Path:
        """Location of the cached CSV"""
        return self.data_path / self.file_name

    def _build_session(self) -> requests.Session:
        """Create an HTTP session that retries throttling and server errors"""
        retry = Retry(
            total=self.config.get('data.max_retries', 3),
            backoff_factor=self.config.get('data.retry_backoff', 1.0),
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        session = requests.Session()
        session.mount("https://", HTTPAdapter(max_retries=retry))
        session.mount("http://", HTTPAdapter(max_retries=retry))
        session.headers.update({"User-Agent": USER_AGENT})
        return session

    def download(self, refresh: bool = False) -> Path:
        """
        Fetch the incident CSV to the local cache

        Args:
            refresh: Download even if a cached copy exists

        Returns:
            Path to the cached CSV
        """
        target = self.cache_file

        if target.exists() and not refresh:
            logger.info(f"Using cached incident data: {target}")
            return target

        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + '.part')

        logger.info(f"Downloading incident data from: {self.source_url}")

        try:
            with self.session.get(self.source_url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                total = int(response.headers.get('Content-Length', 0)) or None
                self._stream_to_file(response, partial, total)

            partial.replace(target)
        except BaseException:
            if partial.exists():
                partial.unlink()
            raise

        size_mb = target.stat().st_size / (1024 * 1024)
        logger.info(f"Saved {size_mb:.1f} MB to: {target}")

        return target

    def _stream_to_file(self, response: requests.Response, path: Path, total: Optional[int]):
        """Write a streamed response to disk, with a progress bar when enabled"""
        with open(path, 'wb') as f:
            if not self.show_progress:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
                return

            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TimeElapsedColumn(),
                transient=True
            ) as progress:
                task = progress.add_task("Downloading incidents", total=total)
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
                    progress.update(task, advance=len(chunk))

    def load(self, refresh: bool = False) -> pd.DataFrame:
        """
        Load the incident data, downloading it first if needed

        Args:
            refresh: Force a new download

        Returns:
            Raw incident DataFrame (one row per incident)
        """
        path = self.download(refresh=refresh)
        return self.load_file(path)

    def load_file(self, path) -> pd.DataFrame:
        """
        Load an incident CSV from disk

        Args:
            path: Path to a CSV in the source format

        Returns:
            Raw incident DataFrame
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Incident file not found: {path}")

        logger.info(f"Loading incidents from: {path}")

        # Keep identifiers and codes as text; date parsing happens in the cleaner
        df = pd.read_csv(path, dtype=str, keep_default_na=True)
        df = self.clean_column_names(df)

        logger.info(f"Loaded {len(df):,} incidents with {len(df.columns)} columns")

        return df

    def clean_column_names(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Strip surrounding whitespace and BOM characters from column names

        Args:
            df: DataFrame with potentially messy column names

        Returns:
            DataFrame with cleaned column names
        """
        cleaned_cols = [str(col).replace('﻿', '').strip() for col in df.columns]

        if len(cleaned_cols) != len(set(cleaned_cols)):
            logger.warning("Column name cleaning would create duplicates, keeping originals")
            return df

        df.columns = cleaned_cols
        return df
