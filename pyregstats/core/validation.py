"""
Input validation utilities for PyRegStats.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages

NaN is allowed everywhere here: it is how missing inputs and structurally
singular coefficients are represented.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pyregstats.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a float64 numpy array.
    
    Raises:
        ValidationError: If input cannot be converted to a numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e
    
    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if not (np.issubdtype(result.dtype, np.number) or np.issubdtype(result.dtype, np.bool_)):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    return result.astype(np.float64, copy=False)


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.
    
    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_square(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array is a square 2D matrix.

    Raises:
        DimensionError: If array is not 2D or not square
    """
    check_2d(array, name)
    if array.shape[0] != array.shape[1]:
        raise DimensionError(f"{name}: expected square matrix, got shape {array.shape}")


def check_length(array: NDArray[np.floating[Any]], length: int, name: str) -> None:
    """
    Verify a 1D array has exactly ``length`` entries.

    Raises:
        DimensionError: If the length differs
    """
    if array.shape[0] != length:
        raise DimensionError(f"{name}: expected length {length}, got {array.shape[0]}")
