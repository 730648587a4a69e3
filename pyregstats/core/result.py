"""
Generic result container for PyRegStats computations.

The Result class is the envelope a fit is returned in. It keeps the domain
payload separate from run metadata (timing, solver identity, warnings) so
the payload stays a plain statistics object.

Design decisions:
    - Generic over parameter payload P
    - info dict for flexible metadata (rows scanned, rows skipped, rank)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for a regression run.
    
    Type Parameters:
        P: The domain-specific parameter payload type
        
    Attributes:
        params: Domain payload (a RegressionContent for linear fits)
        info: Structured metadata (rows scanned, rows skipped, rank, ...)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the solver that produced this result
        warnings: Non-fatal issues encountered during computation
        
    Examples:
        >>> Result(
        ...     params=content,
        ...     info={'rows': 100, 'rows_skipped': 2},
        ...     timing={'total_seconds': 0.01, 'scan': 0.008},
        ...     backend_name='cpu_incremental_ols',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    
    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
