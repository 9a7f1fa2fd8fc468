"""Emissions pathway forecasting.

:func:`forecast` turns an entity's historical emissions and five policy levers
into a single year-indexed pathway.  The pathway has two phases that share one
linear target trajectory:

* historical restatement, covering recorded years from the baseline year up to
  (but excluding) the first simulated year, and
* a forward simulation from the current calendar year through the target year,
  compounding activity growth and emissions decay year over year.

The function is pure: it reads no global state besides the calendar year
(which callers may pin through ``current_year``) and returns frozen values.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, NamedTuple, Sequence

from pathway.constants import OFFSET_UNIT_COST
from pathway.errors import InvalidParametersError
from pathway.types import (
    EmissionsRecord,
    ForecastParameters,
    ForecastResult,
    YearColumn,
    is_finite_number,
)

LOGGER = logging.getLogger(__name__)


class _FoldState(NamedTuple):
    """Running values threaded from one simulated year to the next."""

    activity: float
    emissions: float
    offset: float
    total_offset: float


def _check_parameters(params: ForecastParameters) -> None:
    issues: list[str] = []
    for name in ("baseline_year", "target_year"):
        value = getattr(params, name)
        if isinstance(value, bool) or not isinstance(value, int):
            issues.append(f"{name} must be an integer year, got {value!r}")
    for name in ("reduction_target_pct", "activity_growth_pct", "offset_rate_pct"):
        value = getattr(params, name)
        if not is_finite_number(value):
            issues.append(f"{name} must be a finite number, got {value!r}")
    if issues:
        raise InvalidParametersError("; ".join(issues), issues)

    if params.target_year <= params.baseline_year:
        raise InvalidParametersError(
            f"target_year ({params.target_year}) must be later than "
            f"baseline_year ({params.baseline_year})"
        )


def trajectory_step(initial_emissions: float, params: ForecastParameters) -> float:
    """Return the yearly decrement of the linear target trajectory."""

    span = params.target_year - params.baseline_year
    return initial_emissions * params.reduction_target_pct / 100 / span


def _target_trajectory(
    initial_emissions: float,
    params: ForecastParameters,
    historical_count: int,
    forward_years: Sequence[int],
) -> list[float]:
    """Return the spliced trajectory for historical then forward rows.

    Historical rows are keyed by their position in the baseline-filtered
    history; forward rows are keyed by their calendar offset from the
    baseline year.  The two agree only when history runs without gaps from the
    baseline year up to the first forward year.
    """

    step = trajectory_step(initial_emissions, params)
    trajectory = [initial_emissions - index * step for index in range(historical_count)]
    trajectory.extend(
        initial_emissions - (year - params.baseline_year) * step for year in forward_years
    )
    return trajectory


def _restated_records(
    records: Sequence[EmissionsRecord],
    params: ForecastParameters,
    first_forward_year: int | None,
) -> list[EmissionsRecord]:
    upper = params.target_year
    if first_forward_year is not None:
        upper = min(upper, first_forward_year - 1)

    selected = [record for record in records if record.year >= params.baseline_year]
    restated = [record for record in selected if record.year <= upper]
    dropped = len(selected) - len(restated)
    if dropped:
        LOGGER.warning(
            "Ignoring %d historical record(s) after %d.",
            dropped,
            upper,
        )

    for index, record in enumerate(restated):
        if record.year != params.baseline_year + index:
            LOGGER.warning(
                "Historical years are not contiguous from baseline year %d (found %d at "
                "position %d); target trajectory is keyed by position for historical rows.",
                params.baseline_year,
                record.year,
                index,
            )
            break

    if restated and first_forward_year is not None and restated[-1].year + 1 != first_forward_year:
        LOGGER.warning(
            "Gap between last historical year %d and first simulated year %d.",
            restated[-1].year,
            first_forward_year,
        )
    return restated


def _seed_record(records: Sequence[EmissionsRecord], baseline_year: int) -> EmissionsRecord:
    for record in records:
        if record.year == baseline_year:
            return record
    LOGGER.debug(
        "No historical record for baseline year %d; seeding simulation from %d.",
        baseline_year,
        records[0].year,
    )
    return records[0]


def _seed_state(seed: EmissionsRecord, params: ForecastParameters) -> _FoldState:
    activity = seed.emissions
    offset = activity + activity * params.offset_rate_pct / 100
    return _FoldState(activity=activity, emissions=seed.emissions, offset=offset, total_offset=0.0)


def _advance(state: _FoldState, params: ForecastParameters) -> _FoldState:
    """Simulate one year; the total accrues the offset carried into the year."""

    activity = state.activity + state.activity * params.activity_growth_pct / 100
    emissions = state.emissions - state.emissions * params.offset_rate_pct / 100
    return _FoldState(
        activity=activity,
        emissions=emissions,
        offset=activity - emissions,
        total_offset=state.total_offset + state.offset,
    )


def forecast(
    history: Iterable[EmissionsRecord | Any],
    params: ForecastParameters,
    *,
    current_year: int | None = None,
) -> ForecastResult:
    """Return the emissions pathway for ``history`` under ``params``.

    Parameters
    ----------
    history:
        Historical records ascending by year.  Mappings with ``year`` and
        ``emissions`` keys and ``(year, emissions)`` pairs are accepted.
    params:
        Policy levers.  ``target_year`` must be later than ``baseline_year``.
    current_year:
        First simulated year.  Defaults to today's calendar year.

    Raises
    ------
    InvalidParametersError
        When the parameters would produce a non-finite trajectory.
    MalformedInputError
        When a historical record carries a non-numeric year or emissions value.
    """

    records = tuple(EmissionsRecord.coerce(item) for item in history)
    if not records:
        return ForecastResult.empty()

    _check_parameters(params)

    if current_year is None:
        current_year = date.today().year

    forward_years = list(range(current_year, params.target_year + 1))
    first_forward_year = forward_years[0] if forward_years else None

    initial_emissions = records[0].emissions
    restated = _restated_records(records, params, first_forward_year)
    trajectory = _target_trajectory(initial_emissions, params, len(restated), forward_years)

    series: list[YearColumn] = [
        YearColumn(
            year=record.year,
            forecasted_activity=record.emissions,
            forecasted_emissions=record.emissions,
            forecasted_offset=0.0,
            target_trajectory=trajectory[index],
        )
        for index, record in enumerate(restated)
    ]

    state = _seed_state(_seed_record(records, params.baseline_year), params)
    for index, year in enumerate(forward_years):
        state = _advance(state, params)
        series.append(
            YearColumn(
                year=year,
                forecasted_activity=state.activity,
                forecasted_emissions=state.emissions,
                forecasted_offset=state.offset,
                target_trajectory=trajectory[index + len(restated)],
                is_forecast=True,
            )
        )

    total_offset = state.total_offset
    LOGGER.debug(
        "Forecast %d-%d: %d historical and %d simulated rows, total offset %.3f",
        params.baseline_year,
        params.target_year,
        len(restated),
        len(forward_years),
        total_offset,
    )
    return ForecastResult(
        series=tuple(series),
        total_carbon_offset=total_offset,
        cost_per_year=total_offset * OFFSET_UNIT_COST,
    )


__all__ = ["forecast", "trajectory_step"]
