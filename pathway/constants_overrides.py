"""Overrides for the forecast's tunable constants.

A constant ``NAME`` resolves, in order, from

1. the ``PATHWAY_NAME`` environment variable,
2. ``NAME`` in the ``[pathway.constants]`` table of the run config (the file
   named by ``PATHWAY_RUN_CONFIG``, else ``run_config.toml`` at the repository
   root), and
3. the default compiled into :mod:`pathway.constants`.

An override that cannot be cast, falls below its floor, or inverts a
``(lower, upper)`` bound pair is logged and replaced by the default, so a bad
run config never widens or collapses the accepted parameter range.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

try:  # pragma: no cover - Python < 3.11 fallback
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - dependency fallback
    import tomli as tomllib  # type: ignore[import-not-found]


LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "PATHWAY_"
RUN_CONFIG_ENV = "PATHWAY_RUN_CONFIG"

N = TypeVar("N", int, float, str)


def run_config_path() -> Path | None:
    """Return the run config that supplies overrides, or ``None`` when there is none."""

    env_value = os.environ.get(RUN_CONFIG_ENV)
    if env_value:
        return Path(env_value).expanduser()
    default_path = Path(__file__).resolve().parents[1] / "run_config.toml"
    return default_path if default_path.exists() else None


@lru_cache(maxsize=1)
def _run_config_table() -> dict[str, Any]:
    path = run_config_path()
    if path is None:
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        LOGGER.warning("Ignoring constant overrides in %s: %s", path, exc)
        return {}

    table = data.get("pathway", {})
    table = table.get("constants", {}) if isinstance(table, Mapping) else {}
    if not isinstance(table, Mapping):
        LOGGER.warning("[pathway.constants] in %s is not a table; ignoring it", path)
        return {}
    return {str(key).upper(): value for key, value in table.items()}


def _lookup(name: str) -> tuple[Any, str] | None:
    env_key = f"{ENV_PREFIX}{name}"
    if env_key in os.environ:
        return os.environ[env_key], env_key
    table = _run_config_table()
    if name in table:
        return table[name], f"[pathway.constants].{name}"
    return None


def get_constant(
    name: str,
    default: N,
    cast_func: Callable[[Any], N] | None = None,
    *,
    minimum: float | None = None,
) -> N:
    """Return ``name`` from the overrides, or ``default``.

    ``minimum`` rejects overrides below a floor, e.g. a negative unit cost.
    """

    found = _lookup(name)
    if found is None:
        return default
    raw, origin = found

    converter = cast_func if cast_func is not None else type(default)
    try:
        value = converter(raw)
    except (TypeError, ValueError) as exc:
        LOGGER.warning("Invalid override for %s=%r from %s: %s", name, raw, origin, exc)
        return default

    if minimum is not None and value < minimum:
        LOGGER.warning(
            "Override %s=%r from %s is below the minimum %r; using %r",
            name,
            value,
            origin,
            minimum,
            default,
        )
        return default

    LOGGER.debug("Using override %s=%r from %s", name, value, origin)
    return value


def get_bounds(
    lower_name: str,
    lower_default: N,
    upper_name: str,
    upper_default: N,
    cast_func: Callable[[Any], N],
) -> tuple[N, N]:
    """Return an overridable ``(lower, upper)`` pair that never inverts."""

    lower = get_constant(lower_name, lower_default, cast_func)
    upper = get_constant(upper_name, upper_default, cast_func)
    if lower > upper:
        LOGGER.warning(
            "Overrides give %s=%r above %s=%r; using defaults %r..%r",
            lower_name,
            lower,
            upper_name,
            upper,
            lower_default,
            upper_default,
        )
        return lower_default, upper_default
    return lower, upper


def clear_cache() -> None:
    """Forget the parsed run config so the next lookup re-reads it."""

    _run_config_table.cache_clear()


__all__ = ["ENV_PREFIX", "RUN_CONFIG_ENV", "clear_cache", "get_bounds", "get_constant", "run_config_path"]
