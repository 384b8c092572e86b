"""Cooperative, cancellable execution of the plotting pipeline."""

from .context import ProcessingContext, ProcessingToken
from .scheduler import PipelineScheduler

__all__ = ["PipelineScheduler", "ProcessingContext", "ProcessingToken"]
