"""
Zone geometry: maps the LED strip layout onto pixel rectangles of the
downscaled screen.

Emission order follows the strip wiring, starting top-left:

    TOP     left -> right
    RIGHT   top -> bottom
    BOTTOM  right -> left
    LEFT    bottom -> top

The order is a hardware contract. Changing it makes the strip animate in the
wrong direction.
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

from errors import GeometryInvariantViolation

EDGES = ("top", "right", "bottom", "left")


class Zone(NamedTuple):
    """Pixel rectangle [x1, x2) x [y1, y2) feeding one LED."""

    index: int
    edge: str
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return max(0, self.x2 - self.x1)

    @property
    def height(self) -> int:
        return max(0, self.y2 - self.y1)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0


@dataclass(frozen=True)
class StripLayout:
    top: int
    right: int
    bottom: int
    left: int
    thickness: int
    resize_width: int

    def __post_init__(self):
        for edge in EDGES:
            if getattr(self, edge) <= 0:
                raise ValueError(f"LED count for {edge} edge must be > 0")
        if self.thickness <= 0:
            raise ValueError("Edge thickness must be > 0")
        if self.resize_width <= 0:
            raise ValueError("Resize width must be > 0")

    @classmethod
    def from_settings(cls, settings) -> "StripLayout":
        return cls(
            top=settings.num_top,
            right=settings.num_right,
            bottom=settings.num_bottom,
            left=settings.num_left,
            thickness=settings.edge_thickness,
            resize_width=settings.resize_width,
        )

    @property
    def total_leds(self) -> int:
        return self.top + self.right + self.bottom + self.left

    @property
    def counts(self) -> Tuple[int, int, int, int]:
        return self.top, self.right, self.bottom, self.left

    def describe(self) -> str:
        return (
            f"TOP({self.top}) -> RIGHT({self.right}) -> "
            f"BOTTOM({self.bottom}) -> LEFT({self.left})"
        )

    def validate_for(self, width: int, height: int):
        """Check the sampling thickness fits the buffer without degenerate zones."""
        if width <= 0 or height <= 0:
            raise GeometryInvariantViolation(f"Invalid buffer size {width}x{height}")
        if self.thickness * 2 >= min(width, height):
            raise GeometryInvariantViolation(
                f"Edge thickness {self.thickness}px too large for {width}x{height} buffer"
            )


def build_zones(layout: StripLayout, width: int, height: int) -> List[Zone]:
    """Return one zone per LED in strip emission order."""
    t = layout.thickness
    zones = []

    def add(edge, x1, y1, x2, y2):
        zones.append(Zone(len(zones), edge, x1, y1, x2, y2))

    for i in range(layout.top):
        add("top", i * width // layout.top, 0, (i + 1) * width // layout.top, t)

    for i in range(layout.right):
        y1 = i * height // layout.right
        y2 = (i + 1) * height // layout.right
        add("right", width - t, y1, width, y2)

    # Bottom runs right -> left
    for i in range(layout.bottom - 1, -1, -1):
        x1 = i * width // layout.bottom
        x2 = (i + 1) * width // layout.bottom
        add("bottom", x1, height - t, x2, height)

    # Left runs bottom -> top
    for i in range(layout.left - 1, -1, -1):
        y1 = i * height // layout.left
        y2 = (i + 1) * height // layout.left
        add("left", 0, y1, t, y2)

    return zones


class ZoneCache:
    """Zone list for the current resolution, rebuilt whenever it changes."""

    def __init__(self, layout: StripLayout):
        self.layout = layout
        self.size: Optional[Tuple[int, int]] = None
        self.zones: List[Zone] = []
        self.rebuilds = 0

    def get(self, width: int, height: int) -> List[Zone]:
        if self.size != (width, height):
            self.layout.validate_for(width, height)
            zones = build_zones(self.layout, width, height)
            if len(zones) != self.layout.total_leds:
                raise GeometryInvariantViolation(
                    f"Built {len(zones)} zones for {self.layout.total_leds} LEDs"
                )
            self.zones = zones
            self.size = (width, height)
            self.rebuilds += 1
            print(f"[Zones] Built {len(zones)} zones for {width}x{height}")
        return self.zones

    def clear(self):
        self.size = None
        self.zones = []
