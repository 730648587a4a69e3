"""
Execution monitors.

ExecutionContext is the default ExecutionMonitor: another party flips the
cancel flag, the learner polls it between rows. Nothing is preempted.
"""

from typing import Callable


class ExecutionContext:
    """
    Cancellation flag plus progress sink.

    Usage:
        ctx = ExecutionContext(on_progress=lambda f, msg: print(f, msg))
        solution = fit(table, target='y', monitor=ctx)

        # from a callback or another thread
        ctx.cancel()
    """

    def __init__(self, on_progress: Callable[[float, str | None], None] | None = None):
        self._cancelled = False
        self._on_progress = on_progress
        self._progress = 0.0
        self._message: str | None = None

    def cancel(self) -> None:
        self._cancelled = True

    def is_cancelled(self) -> bool:
        return self._cancelled

    def report_progress(self, fraction: float, message: str | None = None) -> None:
        # fractions outside [0, 1] are clamped
        self._progress = min(max(float(fraction), 0.0), 1.0)
        if message is not None:
            self._message = message
        if self._on_progress is not None:
            self._on_progress(self._progress, message)

    @property
    def progress(self) -> float:
        """Last reported fraction in [0, 1]."""
        return self._progress

    @property
    def message(self) -> str | None:
        return self._message


class NullMonitor:
    """Monitor that is never cancelled and ignores progress."""

    def is_cancelled(self) -> bool:
        return False

    def report_progress(self, fraction: float, message: str | None = None) -> None:
        pass
