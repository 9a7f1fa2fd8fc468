"""Utilities to construct forecast inputs from configuration mappings."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

try:  # pragma: no cover - Python < 3.11 fallback
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - dependency fallback
    import tomli as tomllib  # type: ignore[import-not-found]

from pathway import constants
from pathway.errors import InvalidParametersError
from pathway.history import HistoryLoader, csv_loader
from pathway.types import EmissionsRecord, ForecastParameters

LOGGER = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a configuration file cannot be read or is structurally invalid."""


# Canonical field -> accepted spellings, including the web form labels.
_PARAMETER_ALIASES: dict[str, tuple[str, ...]] = {
    "baseline_year": ("baseline_year", "baselineYear"),
    "target_year": ("target_year", "targetYear"),
    "reduction_target_pct": (
        "reduction_target_pct",
        "reduction_target",
        "emissionReductionTarget",
    ),
    "activity_growth_pct": (
        "activity_growth_pct",
        "activity_growth",
        "increaseActivity",
    ),
    "offset_rate_pct": (
        "offset_rate_pct",
        "offset_rate",
        "emissionOffsetYear",
    ),
}

_YEAR_FIELDS = frozenset({"baseline_year", "target_year"})


def default_parameters() -> ForecastParameters:
    """Return the parameters pre-filled in a fresh forecast form."""

    return ForecastParameters(
        baseline_year=constants.DEFAULT_BASELINE_YEAR,
        target_year=constants.DEFAULT_TARGET_YEAR,
        reduction_target_pct=constants.DEFAULT_REDUCTION_TARGET_PCT,
        activity_growth_pct=constants.DEFAULT_ACTIVITY_GROWTH_PCT,
        offset_rate_pct=constants.DEFAULT_OFFSET_RATE_PCT,
    )


def load_config_data(path: str | Path | None) -> dict[str, Any]:
    """Return the parsed TOML document at ``path`` (an empty mapping for ``None``)."""

    if path is None:
        return {}
    config_path = Path(path).expanduser()
    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration {config_path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {config_path}: {exc}") from exc
    LOGGER.debug("Loaded configuration from %s", config_path)
    return data


def _forecast_section(cfg: Mapping[str, Any]) -> Mapping[str, Any]:
    section = cfg.get("forecast", cfg)
    if not isinstance(section, Mapping):
        raise ConfigError("[forecast] must be a table of parameter values")
    return section


def _coerce_year(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise InvalidParametersError(f"{key} must be an integer year, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise InvalidParametersError(f"{key} must be an integer year, got {value!r}") from exc
    raise InvalidParametersError(f"{key} must be an integer year, got {value!r}")


def _coerce_percent(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise InvalidParametersError(f"{key} must be numeric, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParametersError(f"{key} must be numeric, got {value!r}") from exc


def _lookup(section: Mapping[str, Any], field: str) -> Any | None:
    for alias in _PARAMETER_ALIASES[field]:
        if alias in section and section[alias] not in (None, ""):
            return section[alias]
    return None


def parameters_from_config(
    cfg: Mapping[str, Any] | None,
    overrides: Mapping[str, Any] | None = None,
) -> ForecastParameters:
    """Return :class:`ForecastParameters` from ``cfg`` layered over the defaults.

    ``overrides`` takes precedence over the configuration; ``None`` values in
    ``overrides`` are ignored so CLI options left unset fall through.
    """

    section = _forecast_section(cfg or {})
    values: dict[str, Any] = default_parameters().as_dict()

    for field in _PARAMETER_ALIASES:
        raw = _lookup(section, field)
        if overrides is not None and overrides.get(field) is not None:
            raw = overrides[field]
        if raw is None:
            continue
        if field in _YEAR_FIELDS:
            values[field] = _coerce_year(raw, field)
        else:
            values[field] = _coerce_percent(raw, field)

    return ForecastParameters(**values)


def entity_from_config(cfg: Mapping[str, Any] | None) -> str:
    """Return the entity identifier named in ``[history]``, or the default."""

    history = (cfg or {}).get("history")
    if isinstance(history, Mapping) and history.get("entity_id"):
        return str(history["entity_id"])
    return constants.DEFAULT_ENTITY_ID


def history_loader_from_config(
    cfg: Mapping[str, Any] | None,
    base_dir: str | Path | None = None,
) -> HistoryLoader | None:
    """Return a loader for the ``[history]`` table, or ``None`` when absent.

    The table either names a ``csv`` file (relative paths resolve against
    ``base_dir``) or lists inline ``records`` of ``year``/``emissions``.
    """

    history = (cfg or {}).get("history")
    if history is None:
        return None
    if not isinstance(history, Mapping):
        raise ConfigError("[history] must be a table")

    csv_value = history.get("csv")
    records_value = history.get("records")
    if csv_value and records_value is not None:
        raise ConfigError("[history] must define either 'csv' or 'records', not both")

    if csv_value:
        csv_path = Path(str(csv_value)).expanduser()
        if not csv_path.is_absolute() and base_dir is not None:
            csv_path = Path(base_dir) / csv_path
        return csv_loader(csv_path)

    if records_value is not None:
        if isinstance(records_value, (str, bytes)) or not isinstance(records_value, list):
            raise ConfigError("[history].records must be an array of tables")
        records = tuple(EmissionsRecord.coerce(item) for item in records_value)

        def _inline(entity_id: str, baseline_year: int) -> tuple[EmissionsRecord, ...]:
            _ = entity_id, baseline_year
            return records

        return _inline

    return None


__all__ = [
    "ConfigError",
    "default_parameters",
    "entity_from_config",
    "history_loader_from_config",
    "load_config_data",
    "parameters_from_config",
]
