"""Authoritative constants shared across the forecasting modules."""

from __future__ import annotations

from pathlib import Path

from .constants_overrides import get_bounds, get_constant


_PACKAGE_ROOT = Path(__file__).resolve().parent
REPO_ROOT = _PACKAGE_ROOT.parent
OUTPUT_DIR = REPO_ROOT / "output"

# Cost of one tonne of purchased offset, in currency units.
OFFSET_UNIT_COST: float = get_constant("OFFSET_UNIT_COST", 50.0, float, minimum=0.0)

TARGET_YEAR_MIN, TARGET_YEAR_MAX = get_bounds("TARGET_YEAR_MIN", 2022, "TARGET_YEAR_MAX", 2050, int)
PERCENT_MIN, PERCENT_MAX = get_bounds("PERCENT_MIN", 0.0, "PERCENT_MAX", 100.0, float)

DEBOUNCE_SECONDS: float = get_constant("DEBOUNCE_SECONDS", 1.0, float, minimum=0.0)

DEFAULT_ENTITY_ID: str = get_constant("DEFAULT_ENTITY_ID", "test_portfolio_id", str)
DEFAULT_BASELINE_YEAR: int = get_constant("DEFAULT_BASELINE_YEAR", 2019, int)
DEFAULT_TARGET_YEAR: int = get_constant("DEFAULT_TARGET_YEAR", 2030, int)
DEFAULT_REDUCTION_TARGET_PCT: float = get_constant("DEFAULT_REDUCTION_TARGET_PCT", 50.0, float)
DEFAULT_ACTIVITY_GROWTH_PCT: float = get_constant("DEFAULT_ACTIVITY_GROWTH_PCT", 5.0, float)
DEFAULT_OFFSET_RATE_PCT: float = get_constant("DEFAULT_OFFSET_RATE_PCT", 15.0, float)

FORECAST_CSV_NAME = "forecast.csv"
SUMMARY_JSON_NAME = "summary.json"


__all__ = [
    "REPO_ROOT",
    "OUTPUT_DIR",
    "OFFSET_UNIT_COST",
    "TARGET_YEAR_MIN",
    "TARGET_YEAR_MAX",
    "PERCENT_MIN",
    "PERCENT_MAX",
    "DEBOUNCE_SECONDS",
    "DEFAULT_ENTITY_ID",
    "DEFAULT_BASELINE_YEAR",
    "DEFAULT_TARGET_YEAR",
    "DEFAULT_REDUCTION_TARGET_PCT",
    "DEFAULT_ACTIVITY_GROWTH_PCT",
    "DEFAULT_OFFSET_RATE_PCT",
    "FORECAST_CSV_NAME",
    "SUMMARY_JSON_NAME",
]
