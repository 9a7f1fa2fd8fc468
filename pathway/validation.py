"""Bounds checks applied to user-entered forecast parameters."""

from __future__ import annotations

import logging
from typing import Any

from pathway import constants
from pathway.errors import InvalidParametersError
from pathway.types import ForecastParameters, is_finite_number

LOGGER = logging.getLogger(__name__)

_PERCENT_FIELDS: tuple[str, ...] = (
    "reduction_target_pct",
    "activity_growth_pct",
    "offset_rate_pct",
)


def _is_year(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parameter_issues(params: ForecastParameters) -> list[str]:
    """Return a description of every bound ``params`` violates."""

    issues: list[str] = []

    if not _is_year(params.baseline_year):
        issues.append(f"baseline_year is required and must be an integer, got {params.baseline_year!r}")

    if not _is_year(params.target_year):
        issues.append(f"target_year is required and must be an integer, got {params.target_year!r}")
    elif not constants.TARGET_YEAR_MIN <= params.target_year <= constants.TARGET_YEAR_MAX:
        issues.append(
            f"target_year must be between {constants.TARGET_YEAR_MIN} and "
            f"{constants.TARGET_YEAR_MAX}, got {params.target_year}"
        )

    if (
        _is_year(params.baseline_year)
        and _is_year(params.target_year)
        and params.target_year <= params.baseline_year
    ):
        issues.append(
            f"target_year ({params.target_year}) must be later than "
            f"baseline_year ({params.baseline_year})"
        )

    for name in _PERCENT_FIELDS:
        value = getattr(params, name)
        if not is_finite_number(value):
            issues.append(f"{name} is required and must be a finite number, got {value!r}")
            continue
        if not constants.PERCENT_MIN <= float(value) <= constants.PERCENT_MAX:
            issues.append(
                f"{name} must be between {constants.PERCENT_MIN:g} and "
                f"{constants.PERCENT_MAX:g}, got {float(value):g}"
            )

    return issues


def validate_parameters(params: ForecastParameters) -> ForecastParameters:
    """Return ``params`` unchanged or raise :class:`InvalidParametersError`."""

    issues = parameter_issues(params)
    if issues:
        LOGGER.info("Rejected forecast parameters: %s", "; ".join(issues))
        raise InvalidParametersError("Invalid forecast parameters: " + "; ".join(issues), issues)
    return params


__all__ = ["parameter_issues", "validate_parameters"]
