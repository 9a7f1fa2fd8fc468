"""Exceptions raised by the forecasting pipeline."""

from __future__ import annotations

from typing import Iterable


class ForecastError(ValueError):
    """Base class for errors raised while producing a forecast."""


class InvalidParametersError(ForecastError):
    """Raised when forecast parameters cannot produce a finite pathway."""

    def __init__(self, message: str, issues: Iterable[str] | None = None) -> None:
        self.issues: tuple[str, ...] = tuple(issues) if issues is not None else (message,)
        super().__init__(message)


class MalformedInputError(ForecastError):
    """Raised when historical records cannot be interpreted."""


__all__ = ["ForecastError", "InvalidParametersError", "MalformedInputError"]
