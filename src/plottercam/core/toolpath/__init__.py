"""Toolpath generation package."""

from .base import EventType, Toolpath, ToolpathEvent
from .generator import ToolpathParams, generate_toolpath

__all__ = [
    "EventType", "Toolpath", "ToolpathEvent", "ToolpathParams", "generate_toolpath",
]
