"""Tests for :mod:`pathway.forecast`."""

from __future__ import annotations

import dataclasses
import logging
import math

import pytest

from pathway.errors import InvalidParametersError, MalformedInputError
from pathway.forecast import forecast, trajectory_step
from pathway.types import EmissionsRecord, ForecastParameters, ForecastResult

SAMPLE_HISTORY = [
    {"year": "2019", "emissions": 500},
    {"year": "2020", "emissions": 230},
]


def _params(**changes) -> ForecastParameters:
    base = ForecastParameters(
        baseline_year=2019,
        target_year=2030,
        reduction_target_pct=50.0,
        activity_growth_pct=5.0,
        offset_rate_pct=15.0,
    )
    return base.with_changes(**changes)


def _contiguous_history() -> list[EmissionsRecord]:
    return [
        EmissionsRecord(2019, 500.0),
        EmissionsRecord(2020, 460.0),
        EmissionsRecord(2021, 440.0),
        EmissionsRecord(2022, 410.0),
        EmissionsRecord(2023, 395.0),
    ]


def test_worked_example_rows_and_totals():
    result = forecast(SAMPLE_HISTORY, _params(), current_year=2024)

    assert result.years == (2019, 2020, 2024, 2025, 2026, 2027, 2028, 2029, 2030)

    first, second = result.historical()
    assert first.forecasted_emissions == pytest.approx(500.0)
    assert first.forecasted_activity == pytest.approx(500.0)
    assert first.forecasted_offset == 0.0
    assert second.forecasted_emissions == pytest.approx(230.0)
    assert second.forecasted_offset == 0.0

    # Seeded from the 2019 record (500), not the latest one.
    opening = result.forecasted()[0]
    assert opening.year == 2024
    assert opening.forecasted_activity == pytest.approx(525.0)
    assert opening.forecasted_emissions == pytest.approx(425.0)
    assert opening.forecasted_offset == pytest.approx(100.0)

    closing = result.forecasted()[-1]
    assert closing.forecasted_activity == pytest.approx(703.550211328125)
    assert closing.forecasted_emissions == pytest.approx(160.288544140625)
    assert closing.forecasted_offset == pytest.approx(543.2616671875)

    assert result.total_carbon_offset == pytest.approx(2381.2611875)
    assert result.cost_per_year == pytest.approx(119063.059375)


def test_worked_example_trajectory():
    result = forecast(SAMPLE_HISTORY, _params(), current_year=2024)
    trajectory = result.target_trajectory
    step = 250.0 / 11

    assert trajectory[0] == pytest.approx(500.0)
    assert trajectory[1] == pytest.approx(500.0 - step)
    assert trajectory[2] == pytest.approx(500.0 - 5 * step)
    assert trajectory[-1] == pytest.approx(250.0)
    assert all(later < earlier for earlier, later in zip(trajectory, trajectory[1:]))


def test_total_offset_accumulates_entry_offset():
    """Each simulated year adds the offset carried in from the previous year."""

    result = forecast(SAMPLE_HISTORY, _params(), current_year=2024)
    forward = result.forecasted()

    seed_offset = 500.0 + 500.0 * 15.0 / 100
    expected = seed_offset + sum(column.forecasted_offset for column in forward[:-1])

    assert result.total_carbon_offset == pytest.approx(expected)


def test_empty_history_returns_empty_result():
    result = forecast([], _params(target_year=2019))

    assert result == ForecastResult.empty()
    assert result.series == ()
    assert result.total_carbon_offset == 0
    assert result.cost_per_year == 0


def test_forecast_is_idempotent():
    first = forecast(SAMPLE_HISTORY, _params(), current_year=2024)
    second = forecast(SAMPLE_HISTORY, _params(), current_year=2024)

    assert first == second


@pytest.mark.parametrize("target_year", [2025, 2020])
def test_target_not_after_baseline_is_rejected(target_year):
    with pytest.raises(InvalidParametersError):
        forecast(SAMPLE_HISTORY, _params(baseline_year=2025, target_year=target_year), current_year=2024)


def test_non_finite_parameter_is_rejected():
    with pytest.raises(InvalidParametersError) as exc:
        forecast(SAMPLE_HISTORY, _params(offset_rate_pct=math.nan), current_year=2024)

    assert any("offset_rate_pct" in issue for issue in exc.value.issues)


@pytest.mark.parametrize(
    "history",
    [
        [{"year": "20x9", "emissions": 500}],
        [{"year": None, "emissions": 500}],
        [{"year": 2019, "emissions": "lots"}],
        [{"emissions": 500}],
    ],
)
def test_malformed_history_is_rejected(history):
    with pytest.raises(MalformedInputError):
        forecast(history, _params(), current_year=2024)


def test_contiguous_history_produces_gapless_linear_series():
    result = forecast(_contiguous_history(), _params(), current_year=2024)

    assert result.years == tuple(range(2019, 2031))

    trajectory = result.target_trajectory
    slope = trajectory[1] - trajectory[0]
    for i in range(len(trajectory)):
        for j in range(i + 1, len(trajectory)):
            assert (trajectory[j] - trajectory[i]) / (j - i) == pytest.approx(slope)
    assert slope == pytest.approx(-trajectory_step(500.0, _params()))


def test_cost_matches_unit_cost_for_many_inputs():
    for growth in (0.0, 5.0, 12.5):
        for rate in (0.0, 15.0, 40.0):
            result = forecast(
                _contiguous_history(),
                _params(activity_growth_pct=growth, offset_rate_pct=rate),
                current_year=2024,
            )
            assert result.cost_per_year == result.total_carbon_offset * 50


def test_anchor_ignores_baseline_filter():
    """The trajectory starts from the first record even when it precedes the baseline."""

    history = [EmissionsRecord(2018, 800.0), *_contiguous_history()]
    result = forecast(history, _params(), current_year=2024)

    assert result.years[0] == 2019
    assert result.target_trajectory[0] == pytest.approx(800.0)
    assert result.target_trajectory[-1] == pytest.approx(400.0)
    # Seed comes from the baseline-year record.
    assert result.forecasted()[0].forecasted_emissions == pytest.approx(500.0 * 0.85)


def test_missing_baseline_record_seeds_from_first_record():
    history = [EmissionsRecord(2020, 300.0), EmissionsRecord(2021, 280.0)]
    result = forecast(history, _params(), current_year=2022)

    opening = result.forecasted()[0]
    assert opening.forecasted_activity == pytest.approx(315.0)
    assert opening.forecasted_emissions == pytest.approx(255.0)


def test_gap_in_history_keys_historical_trajectory_by_position(caplog):
    """Historical trajectory values follow row position, not calendar offset."""

    history = [EmissionsRecord(2019, 500.0), EmissionsRecord(2021, 450.0)]
    with caplog.at_level(logging.WARNING, logger="pathway.forecast"):
        result = forecast(history, _params(), current_year=2022)

    step = trajectory_step(500.0, _params())
    assert result.years[:3] == (2019, 2021, 2022)
    assert result.target_trajectory[1] == pytest.approx(500.0 - step)
    assert result.target_trajectory[2] == pytest.approx(500.0 - 3 * step)
    assert "not contiguous" in caplog.text


def test_history_overlapping_forward_years_is_not_duplicated(caplog):
    history = _contiguous_history() + [EmissionsRecord(2024, 380.0), EmissionsRecord(2025, 370.0)]
    with caplog.at_level(logging.WARNING, logger="pathway.forecast"):
        result = forecast(history, _params(), current_year=2024)

    assert result.years == tuple(range(2019, 2031))
    assert result.forecasted()[0].year == 2024
    assert "Ignoring 2 historical record(s)" in caplog.text


def test_target_year_already_passed_has_no_forward_rows():
    result = forecast(_contiguous_history(), _params(target_year=2022), current_year=2024)

    assert result.years == (2019, 2020, 2021, 2022)
    assert result.forecasted() == ()
    assert result.total_carbon_offset == 0.0
    assert result.target_trajectory[-1] == pytest.approx(250.0)


def test_out_of_range_percentages_are_computed_literally():
    result = forecast(
        _contiguous_history(),
        _params(activity_growth_pct=-10.0, offset_rate_pct=120.0),
        current_year=2024,
    )

    opening = result.forecasted()[0]
    assert opening.forecasted_activity == pytest.approx(450.0)
    assert opening.forecasted_emissions == pytest.approx(-100.0)
    assert opening.forecasted_offset == pytest.approx(550.0)


def test_result_is_immutable():
    result = forecast(SAMPLE_HISTORY, _params(), current_year=2024)

    with pytest.raises(dataclasses.FrozenInstanceError):
        result.total_carbon_offset = 0.0  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.series[0].forecasted_offset = 1.0  # type: ignore[misc]


def test_current_year_defaults_to_calendar(monkeypatch):
    import importlib

    module = importlib.import_module("pathway.forecast")

    class _FixedDate:
        @staticmethod
        def today():
            return type("D", (), {"year": 2028})()

    monkeypatch.setattr(module, "date", _FixedDate)
    result = forecast(SAMPLE_HISTORY, _params())

    assert result.forecasted()[0].year == 2028


@pytest.mark.parametrize("field", ["reduction_target_pct", "activity_growth_pct", "offset_rate_pct"])
def test_string_percentage_is_rejected_before_arithmetic(field):
    with pytest.raises(InvalidParametersError) as exc:
        forecast(SAMPLE_HISTORY, _params(**{field: "60"}), current_year=2024)

    assert exc.value.issues == (f"{field} must be a finite number, got '60'",)


def test_integer_percentages_are_accepted():
    result = forecast(
        SAMPLE_HISTORY,
        _params(reduction_target_pct=50, activity_growth_pct=5, offset_rate_pct=15),
        current_year=2024,
    )

    assert result.total_carbon_offset == pytest.approx(2381.2611875)
