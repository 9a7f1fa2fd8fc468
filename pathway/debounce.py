"""Debounced recomputation of forecasts while parameters are being edited.

Parameter edits tend to arrive in bursts (a slider being dragged, digits typed
into a field).  :class:`Debouncer` collapses such a burst into one call once the
input has been quiet for a fixed period, and :class:`ForecastSession` uses it to
recompute the pathway for the latest parameters only.

Thread Safety:
- Callbacks run on a :class:`threading.Timer` worker thread, or on the caller's
  thread when :meth:`Debouncer.flush` is used
- Listeners must not assume they run on the thread that submitted the edit
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from pathway import constants
from pathway.errors import ForecastError
from pathway.forecast import forecast
from pathway.history import HistoricalDataSource
from pathway.types import ForecastParameters, ForecastResult
from pathway.validation import validate_parameters

LOGGER = logging.getLogger(__name__)


class Debouncer:
    """Invoke ``callback`` once input has settled for ``quiet_period`` seconds."""

    def __init__(self, callback: Callable[..., Any], quiet_period: float | None = None):
        """Initialize the debouncer.

        Args:
            callback: Function invoked with the arguments of the latest submit
            quiet_period: Seconds without a new submit before ``callback`` fires
        """
        if quiet_period is None:
            quiet_period = constants.DEBOUNCE_SECONDS
        if quiet_period < 0:
            raise ValueError("quiet_period must be non-negative")
        self.callback = callback
        self.quiet_period = float(quiet_period)

        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None
        # Incremented by every submit; a timer only fires for its own generation.
        self._generation = 0

    @property
    def pending(self) -> bool:
        """Whether a call is waiting for the quiet period to elapse."""
        with self._lock:
            return self._pending is not None

    def submit(self, *args: Any, **kwargs: Any) -> None:
        """Schedule ``callback(*args, **kwargs)``, replacing any pending call."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            self._generation += 1
            timer = threading.Timer(self.quiet_period, self._fire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()

    def flush(self) -> bool:
        """Run the pending call immediately.

        Returns:
            True when a pending call was executed
        """
        return self._fire()

    def cancel(self) -> None:
        """Discard the pending call without running it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def _fire(self, generation: int | None = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._generation:
                LOGGER.debug("Ignoring superseded debounce timer (generation %d)", generation)
                return False
            pending = self._pending
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None
        if pending is None:
            return False
        args, kwargs = pending
        self.callback(*args, **kwargs)
        return True


class ForecastSession:
    """Recompute the pathway for one entity whenever its parameters settle."""

    def __init__(
        self,
        params: ForecastParameters,
        on_result: Callable[[ForecastResult], None],
        *,
        source: HistoricalDataSource | None = None,
        entity_id: str | None = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        quiet_period: float | None = None,
        current_year: int | None = None,
    ):
        """Initialize the session.

        Args:
            params: Parameters the session starts from
            on_result: Listener receiving each freshly computed result
            source: Historical data source; defaults to the fixture-backed source
            entity_id: Entity whose history is forecast
            on_error: Listener receiving validation or input errors
            quiet_period: Debounce window in seconds
            current_year: First simulated year, pinned for reproducible runs
        """
        self.source = source or HistoricalDataSource()
        self.entity_id = entity_id or constants.DEFAULT_ENTITY_ID
        self.on_result = on_result
        self.on_error = on_error
        self.current_year = current_year

        self._params = params
        self._params_lock = threading.Lock()
        self._debouncer = Debouncer(self._recompute, quiet_period)

    @property
    def params(self) -> ForecastParameters:
        with self._params_lock:
            return self._params

    def update(self, **changes: Any) -> ForecastParameters:
        """Merge ``changes`` into the parameters and schedule a recomputation."""
        with self._params_lock:
            self._params = self._params.with_changes(**changes)
            params = self._params
        self._debouncer.submit(params)
        return params

    def refresh(self) -> Optional[ForecastResult]:
        """Recompute immediately, discarding any pending debounced run."""
        self._debouncer.cancel()
        return self._recompute(self.params)

    def flush(self) -> bool:
        """Run a pending recomputation now instead of waiting for the timer."""
        return self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.cancel()

    def _recompute(self, params: ForecastParameters) -> Optional[ForecastResult]:
        try:
            validate_parameters(params)
            history = self.source.fetch(self.entity_id, params.baseline_year)
            result = forecast(history, params, current_year=self.current_year)
        except (ForecastError, OSError) as exc:
            LOGGER.warning("Forecast for %s failed: %s", self.entity_id, exc)
            if self.on_error is not None:
                self.on_error(exc)
            return None
        self.on_result(result)
        return result


__all__ = ["Debouncer", "ForecastSession"]
