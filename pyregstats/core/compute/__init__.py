"""
Shared compute infrastructure for PyRegStats.

Submodules:
    timing: Execution timing utilities
"""

from pyregstats.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
