"""Plot configuration."""

from .settings import PlotConfig, load_config

__all__ = ["PlotConfig", "load_config"]
