"""Historical emissions retrieval with a per-entity cache."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

import pandas as pd

from pathway.errors import MalformedInputError
from pathway.types import EmissionsRecord

LOGGER = logging.getLogger(__name__)

HistoryLoader = Callable[[str, int], Iterable[Any]]

# Stand-in for the remote emissions service until a real client is wired in.
FIXTURE_HISTORY: tuple[Mapping[str, Any], ...] = (
    {"year": "2019", "emissions": 500},
    {"year": "2020", "emissions": 230},
)

_YEAR_COLUMN_HINTS: tuple[str, ...] = ("year", "reporting_year")
_EMISSIONS_COLUMN_HINTS: tuple[str, ...] = ("emissions", "emissions_tco2e", "emissions_tons")


def fixture_loader(entity_id: str, baseline_year: int) -> tuple[Mapping[str, Any], ...]:
    """Return the fixed two-year history used when no data source is configured."""

    _ = entity_id, baseline_year
    return FIXTURE_HISTORY


def _normalize_records(raw: Iterable[Any]) -> tuple[EmissionsRecord, ...]:
    records = [EmissionsRecord.coerce(item) for item in raw]
    ordered = sorted(records, key=lambda record: record.year)
    if ordered != records:
        LOGGER.warning(
            "Historical records were not ordered by year; sorted %d records "
            "(first record is now %d, was %d).",
            len(records),
            ordered[0].year,
            records[0].year,
        )
    return tuple(ordered)


def _pick_column(columns: Iterable[str], hints: Iterable[str]) -> str | None:
    lookup = {str(column).strip().lower(): column for column in columns}
    for hint in hints:
        if hint in lookup:
            return lookup[hint]
    return None


def load_history_csv(path: str | Path) -> tuple[EmissionsRecord, ...]:
    """Return historical records read from a ``year,emissions`` CSV file."""

    csv_path = Path(path).expanduser()
    try:
        frame = pd.read_csv(csv_path, dtype=str)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise MalformedInputError(f"Unable to parse historical emissions file {csv_path}: {exc}") from exc

    year_col = _pick_column(frame.columns, _YEAR_COLUMN_HINTS)
    emissions_col = _pick_column(frame.columns, _EMISSIONS_COLUMN_HINTS)
    if year_col is None or emissions_col is None:
        raise MalformedInputError(
            f"{csv_path} must provide 'year' and 'emissions' columns; "
            f"found {', '.join(map(str, frame.columns)) or 'none'}"
        )

    working = frame[[year_col, emissions_col]].dropna(how="all")
    rows = [
        {"year": year, "emissions": emissions}
        for year, emissions in working.itertuples(index=False, name=None)
    ]
    records = _normalize_records(rows)
    LOGGER.info("Loaded %d historical emissions records from %s", len(records), csv_path)
    return records


def csv_loader(path: str | Path) -> HistoryLoader:
    """Return a loader that serves the CSV at ``path`` for every entity."""

    def _load(entity_id: str, baseline_year: int) -> tuple[EmissionsRecord, ...]:
        _ = entity_id, baseline_year
        return load_history_csv(path)

    return _load


class HistoricalDataSource:
    """Fetch historical emissions per entity and cache them until invalidated."""

    def __init__(self, loader: HistoryLoader | None = None) -> None:
        self._loader: HistoryLoader = loader or fixture_loader
        self._cache: dict[str, tuple[EmissionsRecord, ...]] = {}
        self._lock = threading.Lock()

    def fetch(self, entity_id: str, baseline_year: int) -> tuple[EmissionsRecord, ...]:
        """Return the history for ``entity_id``, loading it on first use."""

        key = str(entity_id)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        LOGGER.debug("Loading historical emissions for %s (baseline %s)", key, baseline_year)
        records = _normalize_records(self._loader(key, baseline_year))
        with self._lock:
            self._cache[key] = records
        return records

    def invalidate(self, entity_id: str | None = None) -> None:
        """Drop the cached history for ``entity_id``, or for every entity."""

        with self._lock:
            if entity_id is None:
                self._cache.clear()
            else:
                self._cache.pop(str(entity_id), None)

    def cached_entities(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._cache))


__all__ = [
    "FIXTURE_HISTORY",
    "HistoricalDataSource",
    "HistoryLoader",
    "csv_loader",
    "fixture_loader",
    "load_history_csv",
]
