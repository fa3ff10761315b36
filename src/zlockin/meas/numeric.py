"""Circular indexing and rounding helpers shared by the measurement core."""

from __future__ import annotations

import math

import numpy as np


def wrap_index(index: int, length: int) -> int:
    """Wrap an integer index into ``[0, length)``.

    Negative indices wrap from the end, e.g. ``wrap_index(-1, 8) == 7``.
    """
    if length <= 0:
        raise ValueError(f"length must be positive, got {length}")
    return int(index) % length


def wrap_position(position: float, length: int) -> float:
    """Wrap a fractional sample position into ``[0, length)``."""
    if length <= 0:
        raise ValueError(f"length must be positive, got {length}")
    wrapped = math.fmod(position, length)
    if wrapped < 0:
        wrapped += length
    # fmod of a value just below zero can land exactly on `length`
    return 0.0 if wrapped >= length else wrapped


def round_half_away(x):
    """Round to the nearest integer, halves away from zero.

    Unlike `round` and `np.rint` (which round halves to even), 2.5 -> 3 and
    -2.5 -> -3. Works on scalars and arrays.
    """
    rounded = np.sign(x) * np.floor(np.abs(x) + 0.5)
    if np.ndim(rounded) == 0:
        return int(rounded)
    return rounded.astype(np.int64)
