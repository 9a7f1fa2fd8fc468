"""Tests for parameter bounds checks."""

from __future__ import annotations

import pytest

from pathway import constants
from pathway.errors import InvalidParametersError
from pathway.types import ForecastParameters
from pathway.validation import parameter_issues, validate_parameters


def _params(**changes) -> ForecastParameters:
    return ForecastParameters(
        baseline_year=2019,
        target_year=2030,
        reduction_target_pct=50.0,
        activity_growth_pct=5.0,
        offset_rate_pct=15.0,
    ).with_changes(**changes)


def test_default_form_values_are_valid():
    params = _params()

    assert validate_parameters(params) is params
    assert parameter_issues(params) == []


@pytest.mark.parametrize("target_year", [2021, 2051])
def test_target_year_outside_range(target_year):
    issues = parameter_issues(_params(target_year=target_year))

    assert len(issues) == 1
    assert "target_year must be between 2022 and 2050" in issues[0]


@pytest.mark.parametrize("field", ["reduction_target_pct", "activity_growth_pct", "offset_rate_pct"])
@pytest.mark.parametrize("value", [-0.5, 100.5])
def test_percentages_must_fall_within_zero_and_hundred(field, value):
    issues = parameter_issues(_params(**{field: value}))

    assert len(issues) == 1
    assert issues[0].startswith(field)


def test_percentage_bounds_are_inclusive():
    assert parameter_issues(_params(reduction_target_pct=0.0, offset_rate_pct=100.0)) == []


def test_target_must_follow_baseline():
    issues = parameter_issues(_params(baseline_year=2030, target_year=2030))

    assert any("must be later than" in issue for issue in issues)


def test_missing_values_are_reported_together():
    params = _params(baseline_year=None, activity_growth_pct=None)

    with pytest.raises(InvalidParametersError) as exc:
        validate_parameters(params)

    assert len(exc.value.issues) == 2
    assert "baseline_year is required" in exc.value.issues[0]
    assert "activity_growth_pct is required" in exc.value.issues[1]


def test_bounds_follow_constants(monkeypatch):
    monkeypatch.setattr(constants, "TARGET_YEAR_MAX", 2060)

    assert parameter_issues(_params(target_year=2055)) == []


@pytest.mark.parametrize("value", ["60", True])
def test_non_numeric_percentage_types_are_rejected(value):
    issues = parameter_issues(_params(reduction_target_pct=value))

    assert len(issues) == 1
    assert issues[0].startswith("reduction_target_pct is required and must be a finite number")
