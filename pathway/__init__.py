"""Emissions pathway package public API."""

from __future__ import annotations

from pathway.errors import ForecastError, InvalidParametersError, MalformedInputError
from pathway.forecast import forecast
from pathway.history import HistoricalDataSource
from pathway.types import (
    ChartSeries,
    EmissionsRecord,
    ForecastParameters,
    ForecastResult,
    YearColumn,
)

__all__ = [
    "ChartSeries",
    "EmissionsRecord",
    "ForecastError",
    "ForecastParameters",
    "ForecastResult",
    "HistoricalDataSource",
    "InvalidParametersError",
    "MalformedInputError",
    "YearColumn",
    "forecast",
]
