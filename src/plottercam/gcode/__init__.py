"""G-code output for pen plotters."""

from .postprocessor import PlotterPostProcessor, PostProcessorConfig

__all__ = ["PlotterPostProcessor", "PostProcessorConfig"]
