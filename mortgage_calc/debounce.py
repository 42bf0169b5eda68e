"""Helpers for callers that recompute as the user edits their inputs.

The engine itself is stateless and cheap to call. Interactive front ends
still want to avoid recalculating on every keystroke: ``Debouncer`` delays a
call until the inputs have stopped changing for a short window, and
``Recalculator`` skips the engine entirely when the inputs did not change.

Neither the CLI nor the web API needs them, since both compute once per
invocation or request. They are public helpers for embedding callers such as
desktop or notebook front ends that recalculate while a form is edited.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Optional, Tuple

from .data_models import Calculation, LoanParameters, RatePeriod, YearMode
from .engine import calculate

logger = logging.getLogger(__name__)


class Debouncer:
    """Coalesce bursts of calls into one call after ``wait`` seconds of quiet."""

    def __init__(self, func: Callable[..., Any], wait: float = 0.5) -> None:
        self._func = func
        self._wait = wait
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._args: Tuple[Any, ...] = ()
        self._kwargs: dict = {}

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        """Schedule a call with these arguments, replacing any pending one."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args, self._kwargs = args, kwargs
            self._timer = threading.Timer(self._wait, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> Any:
        """Run the pending call now. Returns its result, or None if nothing was pending."""
        with self._lock:
            if self._timer is None:
                return None
            self._timer.cancel()
            self._timer = None
            args, kwargs = self._args, self._kwargs
        return self._func(*args, **kwargs)

    def _fire(self) -> None:
        with self._lock:
            if self._timer is None or threading.current_thread() is not self._timer:
                return
            self._timer = None
            args, kwargs = self._args, self._kwargs
        try:
            self._func(*args, **kwargs)
        except Exception:
            logger.exception("Debounced call to %r failed", self._func)


class Recalculator:
    """Re-run the engine only when the inputs differ from the previous call."""

    def __init__(self, year_mode: YearMode = YearMode.LOAN_YEAR) -> None:
        self._year_mode = year_mode
        self._inputs: Optional[Tuple[LoanParameters, Tuple[RatePeriod, ...]]] = None
        self._result: Optional[Calculation] = None
        self.runs = 0

    @property
    def result(self) -> Optional[Calculation]:
        return self._result

    def recalculate(self, params: LoanParameters, periods: Iterable[RatePeriod]) -> Calculation:
        inputs = (params, tuple(periods))
        if self._result is not None and inputs == self._inputs:
            return self._result
        # Keep the previous result if the new inputs are invalid
        result = calculate(params, inputs[1], self._year_mode)
        self._inputs, self._result = inputs, result
        self.runs += 1
        return result
