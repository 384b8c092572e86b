"""Physical units of the plotter bed and the G-code they select."""

from __future__ import annotations

from enum import Enum


class Units(Enum):
    MM = "mm"
    INCH = "inch"

    @classmethod
    def parse(cls, text: str) -> Units:
        """Accept ``mm``, ``in``, ``inch`` or ``inches`` in any case."""
        key = text.strip().lower()
        if key in ("mm", "millimeter", "millimeters", "millimetre", "millimetres"):
            return cls.MM
        if key in ("in", "inch", "inches"):
            return cls.INCH
        raise ValueError(f"unknown units {text!r}")

    def label(self) -> str:
        return "in" if self is Units.INCH else "mm"

    def feed_label(self) -> str:
        return f"{self.label()}/min"

    @property
    def gcode_modal(self) -> str:
        """Units word: G20 inch, G21 millimetres."""
        return "G20" if self is Units.INCH else "G21"
