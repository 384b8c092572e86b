"""Plot options: geometry scaling, pen heights, feeds and route settings.

Lengths are in physical units (millimetres unless ``units`` says inch).
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from ..core.units import Units
from ..errors import ConfigError

MIN_UNITS_PER_PHYSICAL_UNIT = 0.0001
MIN_CIRCLE_RESOLUTION = 8
MAX_CIRCLE_RESOLUTION = 720


@dataclass
class PlotConfig:
    """Every option the SVG-to-G-code pipeline recognises."""

    # Document -> physical scaling and placement
    units_per_physical_unit: float = 1.0   # physical units per SVG user unit
    margin: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    auto_origin: bool = True
    flip_vertical: bool = False

    # Curve flattening
    max_segment_length: float = 1.0        # physical units
    circle_resolution: int = 72

    # Feeds
    feed_rate: float = 1500.0
    travel_rate: Optional[float] = None    # None -> same as feed_rate

    # Pen heights
    pen_down_depth: float = 0.0
    pen_up_depth: float = 2.0
    z_hop_threshold: float = 3.0           # gaps up to this are dragged

    # Route
    start_x: float = 0.0
    start_y: float = 0.0
    optimize_route: bool = True

    units: Units = Units.MM

    # Execution
    timeout: Optional[float] = None        # seconds, None = unbounded
    yield_every: int = 64

    @property
    def effective_units_per_physical_unit(self) -> float:
        return max(self.units_per_physical_unit, MIN_UNITS_PER_PHYSICAL_UNIT)

    @property
    def effective_travel_rate(self) -> float:
        return self.feed_rate if self.travel_rate is None else self.travel_rate

    @property
    def effective_circle_resolution(self) -> int:
        return max(
            MIN_CIRCLE_RESOLUTION,
            min(MAX_CIRCLE_RESOLUTION, int(round(self.circle_resolution))),
        )

    @property
    def segment_length_document(self) -> float:
        """Maximum flattening step converted to SVG user units."""
        return self.max_segment_length / self.effective_units_per_physical_unit

    def validate(self) -> "PlotConfig":
        """Raise ConfigError if any option is out of range; return self."""
        if self.z_hop_threshold < 0:
            raise ConfigError("z_hop_threshold must not be negative")
        if self.feed_rate <= 0:
            raise ConfigError("feed_rate must be positive")
        if self.effective_travel_rate <= 0:
            raise ConfigError("travel_rate must be positive")
        if self.max_segment_length <= 0:
            raise ConfigError("max_segment_length must be positive")
        if self.timeout is not None and self.timeout < 0:
            raise ConfigError("timeout must not be negative")
        if self.yield_every < 1:
            raise ConfigError("yield_every must be at least 1")
        return self

    def to_dict(self) -> dict:
        d = asdict(self)
        d["units"] = self.units.value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> PlotConfig:
        known = {f.name for f in fields(cls)}
        d = {k: v for k, v in d.items() if k in known}
        if "units" in d and not isinstance(d["units"], Units):
            d["units"] = Units.parse(str(d["units"]))
        return cls(**d)


def load_config(path: Path) -> PlotConfig:
    """Read a PlotConfig from a JSON file."""
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    return PlotConfig.from_dict(data)
