"""Tabular views of forecast results and serialisation to disk."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd

from pathway.constants import FORECAST_CSV_NAME, OFFSET_UNIT_COST, SUMMARY_JSON_NAME
from pathway.types import ChartSeries, ForecastParameters, ForecastResult

LOGGER = logging.getLogger(__name__)

FORECAST_COLUMNS: tuple[str, ...] = (
    "year",
    "forecasted_activity",
    "forecasted_emissions",
    "forecasted_offset",
    "target_trajectory",
    "is_forecast",
)


def to_frame(result: ForecastResult) -> pd.DataFrame:
    """Return ``result.series`` as a DataFrame with one row per year."""

    if not result.series:
        return pd.DataFrame(columns=list(FORECAST_COLUMNS))

    frame = pd.DataFrame(
        [
            {
                "year": column.year,
                "forecasted_activity": column.forecasted_activity,
                "forecasted_emissions": column.forecasted_emissions,
                "forecasted_offset": column.forecasted_offset,
                "target_trajectory": column.target_trajectory,
                "is_forecast": column.is_forecast,
            }
            for column in result.series
        ],
        columns=list(FORECAST_COLUMNS),
    )
    frame["year"] = frame["year"].astype(int)
    return frame


def chart_series(result: ForecastResult) -> ChartSeries:
    """Split ``result`` into parallel per-year lists keyed by year label."""

    series = result.series
    return ChartSeries(
        labels=tuple(column.label for column in series),
        forecasted_activity=tuple(column.forecasted_activity for column in series),
        forecasted_emissions=tuple(column.forecasted_emissions for column in series),
        forecasted_offset=tuple(column.forecasted_offset for column in series),
        target_trajectory=tuple(column.target_trajectory for column in series),
    )


def summary(result: ForecastResult, params: ForecastParameters | None = None) -> dict[str, object]:
    """Return the aggregate figures of ``result`` as a JSON-friendly mapping."""

    payload: dict[str, object] = {
        "total_carbon_offset": float(result.total_carbon_offset),
        "cost_per_year": float(result.cost_per_year),
        "offset_unit_cost": float(OFFSET_UNIT_COST),
        "years": list(result.years),
    }
    if params is not None:
        payload["parameters"] = params.as_dict()
    return payload


def write_outputs(
    result: ForecastResult,
    out_dir: str | Path,
    params: ForecastParameters | None = None,
) -> dict[str, Path]:
    """Persist the pathway table and summary into ``out_dir``."""

    directory = Path(out_dir).expanduser()
    directory.mkdir(parents=True, exist_ok=True)

    csv_path = directory / FORECAST_CSV_NAME
    to_frame(result).to_csv(csv_path, index=False)

    summary_path = directory / SUMMARY_JSON_NAME
    with summary_path.open("w", encoding="utf-8") as handle:
        json.dump(summary(result, params), handle, indent=2, sort_keys=True)
        handle.write("\n")

    LOGGER.info("Wrote forecast outputs to %s", directory)
    return {"forecast": csv_path, "summary": summary_path}


__all__ = ["FORECAST_COLUMNS", "chart_series", "summary", "to_frame", "write_outputs"]
