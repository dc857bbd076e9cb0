"""
NYPD Shooting Incident Report

Downloads the public NYPD shooting incident dataset, aggregates incident
counts by month, year, hour and borough, fits a trend regression and a
short-horizon SARIMAX forecast, and renders everything into one HTML report.
"""

__version__ = "1.0.0"
__author__ = "NYC Incident Analysis Team"
