"""Low-level G-code line formatting helpers."""

from __future__ import annotations

import math
from typing import Optional


def fmt(value: float, decimals: int = 3) -> str:
    """Format a float for G-code, stripping trailing zeros."""
    if not math.isfinite(value):
        raise ValueError(f"cannot emit non-finite coordinate {value!r}")
    text = f"{value:.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def _words(
    code: str,
    x: Optional[float],
    y: Optional[float],
    z: Optional[float],
    f: Optional[float],
) -> str:
    parts = [code]
    if x is not None:
        parts.append(f"X{fmt(x)}")
    if y is not None:
        parts.append(f"Y{fmt(y)}")
    if z is not None:
        parts.append(f"Z{fmt(z)}")
    if f is not None:
        parts.append(f"F{fmt(f, 1)}")
    return " ".join(parts)


def rapid(
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    f: Optional[float] = None,
) -> str:
    """G0 rapid traverse."""
    return _words("G0", x, y, z, f)


def linear(
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    f: Optional[float] = None,
) -> str:
    """G1 linear interpolation."""
    return _words("G1", x, y, z, f)


def comment(text: str) -> str:
    """Semicolon comment line (Marlin / GRBL style)."""
    cleaned = " ".join(text.splitlines())
    return f"; {cleaned}"
