"""Exception types raised by the plotting pipeline."""

from __future__ import annotations


class PlotterCamError(Exception):
    """Base class for all plottercam errors."""


class ParseError(PlotterCamError):
    """The markup is not well-formed or has no root ``<svg>`` element."""


class EmptyResult(PlotterCamError):
    """Extraction produced no drawable polylines."""

    def __init__(self, message: str = "No drawable elements found in SVG."):
        super().__init__(message)


class ConfigError(PlotterCamError, ValueError):
    """An option value is out of range."""


class ProcessingCancelled(PlotterCamError):
    """The run was superseded or cancelled.  Never shown to the user."""


class ProcessingTimeout(PlotterCamError):
    """The run exceeded its wall-clock budget."""

    def __init__(self, elapsed: float, budget: float):
        super().__init__(
            f"Processing took {elapsed:.1f}s (limit {budget:.1f}s)"
        )
        self.elapsed = elapsed
        self.budget = budget
