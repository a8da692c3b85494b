"""
SI autoscaling for display.

`si_factor` returns the multiplier that brings a value into a readable range and
`si_prefix` the matching prefix, e.g. 1.5e-8 -> (1e9, 'n') -> "15.00nF".
"""

from __future__ import annotations

from typing import Tuple

# (factor, prefix) tried in order while scaling up values below 1
_SUB_UNITY: Tuple[Tuple[float, str], ...] = (
    (1.0e3, "m"),
    (1.0e6, "u"),
    (1.0e9, "n"),
    (1.0e12, "p"),
)

# (factor, prefix) tried in order while scaling down values of 1 and above
_SUPER_UNITY: Tuple[Tuple[float, str], ...] = (
    (1.0, " "),
    (1.0e-3, "K"),
    (1.0e-6, "M"),
    (1.0e-9, "G"),
    (1.0e-12, "T"),
)


def si_scale(value: float) -> Tuple[float, str]:
    value = float(value)
    if value < 1.0:
        for factor, prefix in _SUB_UNITY:
            value *= 1000.0
            if value > 1.0:
                return factor, prefix
    else:
        for factor, prefix in _SUPER_UNITY:
            value /= 1000.0
            if value < 1.0:
                return factor, prefix
    # zero, negatives, below pico or above tera
    return 1.0, " "


def si_factor(value: float) -> float:
    return si_scale(value)[0]


def si_prefix(value: float) -> str:
    return si_scale(value)[1]


def format_si(value: float, unit: str = "", *, width: int = 6, precision: int = 2) -> str:
    factor, prefix = si_scale(value)
    return f"{value * factor:{width}.{precision}f}{prefix}{unit}"
