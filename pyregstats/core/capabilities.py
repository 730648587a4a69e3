"""
Capability string constants for PyRegStats.

This module is the SINGLE SOURCE OF TRUTH for capability strings.
Import from here, never use raw strings.

Usage:
    from pyregstats.core.capabilities import CAPABILITY_REPEATABLE

    if table.supports(CAPABILITY_REPEATABLE):
        residual_pass(dataset)
"""

# All rows are held in memory
CAPABILITY_MATERIALIZED = 'materialized'

# Rows are produced one at a time by a cursor
CAPABILITY_STREAMING = 'streaming'

# The table can be scanned more than once (needed for residual passes)
CAPABILITY_REPEATABLE = 'repeatable'

# All capabilities as a frozenset for validation
ALL_CAPABILITIES = frozenset({
    CAPABILITY_MATERIALIZED,
    CAPABILITY_STREAMING,
    CAPABILITY_REPEATABLE,
})

__all__ = [
    'CAPABILITY_MATERIALIZED',
    'CAPABILITY_STREAMING',
    'CAPABILITY_REPEATABLE',
    'ALL_CAPABILITIES',
]
