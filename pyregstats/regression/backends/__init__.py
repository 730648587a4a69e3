"""
Regression backends.

Available backends:
    IncrementalOLSSolver: CPU streaming least squares by Givens QR
"""

from pyregstats.regression.backends.cpu import IncrementalOLSSolver

__all__ = [
    "IncrementalOLSSolver",
]
