"""Immutable value types exchanged by the forecasting pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Tuple

from pathway.errors import MalformedInputError


def parse_year(value: Any) -> int:
    """Return ``value`` as an integer calendar year.

    Historical feeds deliver years either as integers or as numeric strings
    (``"2019"``); anything else is rejected with :class:`MalformedInputError`.
    """

    if isinstance(value, bool):
        raise MalformedInputError(f"Year label must be numeric, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        raise MalformedInputError(f"Year label must be a whole number, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError as exc:
            raise MalformedInputError(f"Year label must be numeric, got {value!r}") from exc
    raise MalformedInputError(f"Year label must be numeric, got {value!r}")


def is_finite_number(value: Any) -> bool:
    """Whether ``value`` is a finite ``int`` or ``float`` (``bool`` and numeric strings excluded)."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _parse_emissions(value: Any, year: int) -> float:
    if isinstance(value, bool) or value is None:
        raise MalformedInputError(f"Emissions for {year} must be numeric, got {value!r}")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(
            f"Emissions for {year} must be numeric, got {value!r}"
        ) from exc
    if not math.isfinite(parsed):
        raise MalformedInputError(f"Emissions for {year} must be finite, got {value!r}")
    return parsed


@dataclass(frozen=True)
class EmissionsRecord:
    """One observed historical data point."""

    year: int
    emissions: float

    @classmethod
    def coerce(cls, raw: "EmissionsRecord | Mapping[str, Any] | Tuple[Any, Any]") -> "EmissionsRecord":
        """Build a record from a mapping, a ``(year, emissions)`` pair or a record."""

        if isinstance(raw, EmissionsRecord):
            return raw
        if isinstance(raw, Mapping):
            try:
                year_raw = raw["year"]
                emissions_raw = raw["emissions"]
            except KeyError as exc:
                raise MalformedInputError(
                    f"Historical record is missing required key {exc.args[0]!r}: {dict(raw)!r}"
                ) from exc
        elif isinstance(raw, (tuple, list)) and len(raw) == 2:
            year_raw, emissions_raw = raw
        else:
            raise MalformedInputError(f"Unsupported historical record: {raw!r}")

        year = parse_year(year_raw)
        return cls(year=year, emissions=_parse_emissions(emissions_raw, year))


@dataclass(frozen=True)
class ForecastParameters:
    """Policy levers selected by the user.

    baseline_year: first year included in the historical restatement
    target_year: year by which the reduction goal should be reached
    reduction_target_pct: total cut relative to the first historical record
    activity_growth_pct: yearly compounding growth of the activity track
    offset_rate_pct: yearly compounding decay of the emissions track
    """

    baseline_year: int
    target_year: int
    reduction_target_pct: float
    activity_growth_pct: float
    offset_rate_pct: float

    def with_changes(self, **changes: Any) -> "ForecastParameters":
        """Return a copy with ``changes`` applied."""

        return replace(self, **changes)

    def as_dict(self) -> dict[str, float | int]:
        return {
            "baseline_year": self.baseline_year,
            "target_year": self.target_year,
            "reduction_target_pct": self.reduction_target_pct,
            "activity_growth_pct": self.activity_growth_pct,
            "offset_rate_pct": self.offset_rate_pct,
        }


@dataclass(frozen=True)
class YearColumn:
    """One row of the combined historical and simulated pathway."""

    year: int
    forecasted_activity: float
    forecasted_emissions: float
    forecasted_offset: float
    target_trajectory: float
    is_forecast: bool = False

    @property
    def label(self) -> str:
        return str(self.year)


@dataclass(frozen=True)
class ForecastResult:
    """Container bundling the pathway rows and the offset aggregates."""

    series: Tuple[YearColumn, ...] = ()
    total_carbon_offset: float = 0.0
    cost_per_year: float = 0.0

    @classmethod
    def empty(cls) -> "ForecastResult":
        return cls(series=(), total_carbon_offset=0.0, cost_per_year=0.0)

    @property
    def years(self) -> Tuple[int, ...]:
        return tuple(column.year for column in self.series)

    @property
    def target_trajectory(self) -> Tuple[float, ...]:
        return tuple(column.target_trajectory for column in self.series)

    def historical(self) -> Tuple[YearColumn, ...]:
        return tuple(column for column in self.series if not column.is_forecast)

    def forecasted(self) -> Tuple[YearColumn, ...]:
        return tuple(column for column in self.series if column.is_forecast)


@dataclass(frozen=True)
class ChartSeries:
    """Parallel per-year lists consumed by a chart renderer."""

    labels: Tuple[str, ...] = field(default_factory=tuple)
    forecasted_activity: Tuple[float, ...] = field(default_factory=tuple)
    forecasted_emissions: Tuple[float, ...] = field(default_factory=tuple)
    forecasted_offset: Tuple[float, ...] = field(default_factory=tuple)
    target_trajectory: Tuple[float, ...] = field(default_factory=tuple)


__all__ = [
    "ChartSeries",
    "EmissionsRecord",
    "ForecastParameters",
    "ForecastResult",
    "YearColumn",
    "is_finite_number",
    "parse_year",
]
