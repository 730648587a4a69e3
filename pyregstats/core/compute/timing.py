"""
Execution timing utilities.

A fit is timed in named sections (plan, scan, solve, statistics) so the
Result envelope can report where the time went.
"""

import time
from contextlib import contextmanager
from typing import Iterator


class Timer:
    """
    Accumulating wall-clock timer with named sections.
    
    Usage:
        timer = Timer()
        timer.start()
        
        with timer.section('scan'):
            for row in dataset:
                solver.update(row.parameters, row.target)
            
        with timer.section('solve'):
            fitted = solver.result()
            
        timer.stop()
        result = timer.result()
        # {'total_seconds': 0.05, 'scan': 0.04, 'solve': 0.01}
    """
    
    def __init__(self):
        self._sections: dict[str, float] = {}
        self._start_time: float | None = None
        self._total: float | None = None
    
    def start(self) -> None:
        """Start the overall timer."""
        self._start_time = time.perf_counter()
        
    def stop(self) -> None:
        """Stop the overall timer."""
        if self._start_time is None:
            raise RuntimeError("Timer.stop() called before start()")
        self._total = time.perf_counter() - self._start_time
        
    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        """
        Time a named section.
        
        Sections may overlap each other and the total; a section entered
        more than once accumulates.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self._sections[name] = self._sections.get(name, 0.0) + elapsed
    
    def result(self) -> dict[str, float]:
        """
        Get timing results.
        
        Returns:
            Dictionary with 'total_seconds' and all section timings
            
        Raises:
            RuntimeError: If called before stop()
        """
        if self._total is None:
            raise RuntimeError("Timer.result() called before stop()")
        
        result = {'total_seconds': self._total}
        result.update(self._sections)
        return result


@contextmanager
def timed() -> Iterator[Timer]:
    """
    Context manager for simple timing.
    
    Usage:
        with timed() as timer:
            solution = fit(table, target='y')
        print(f"Took {timer.result()['total_seconds']:.3f}s")
    """
    timer = Timer()
    timer.start()
    try:
        yield timer
    finally:
        timer.stop()
