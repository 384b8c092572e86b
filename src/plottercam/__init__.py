"""plottercam: turn SVG drawings into pen-plotter G-code."""

__version__ = "0.1.0"
