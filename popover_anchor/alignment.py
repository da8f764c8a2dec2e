"""Value types shared by the alignment parser and the positioning helpers."""
from __future__ import annotations

from dataclasses import dataclass

ANCHOR_ROLE = "anchor"
POPOVER_ROLE = "popover"

# Positional order in which directive tokens are assigned.
ALIGNMENT_AXES = ("anchor_x", "anchor_y", "popover_x", "popover_y")


@dataclass(frozen=True)
class Alignment:
    """One resolved candidate: a point on the anchor box and a point on the popover box.

    Fractions are relative to the owning box (0,0 is the top-left corner).
    Offsets are added after fractional placement; their units are carried
    through untouched for the presentation layer to resolve.
    """

    anchor_x: float = 0.5
    anchor_x_offset: float = 0.0
    anchor_x_offset_unit: str = ""
    anchor_y: float = 1.0
    anchor_y_offset: float = 0.0
    anchor_y_offset_unit: str = ""
    popover_x: float = 0.5
    popover_x_offset: float = 0.0
    popover_x_offset_unit: str = ""
    popover_y: float = 0.0
    popover_y_offset: float = 0.0
    popover_y_offset_unit: str = ""


# Anchor bottom-center aligned with popover top-center.
DEFAULT_ALIGNMENT = Alignment()


@dataclass(frozen=True)
class Box:
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class AlignmentPoint:
    x: float
    y: float
    offset_x: float = 0.0
    offset_x_unit: str = ""
    offset_y: float = 0.0
    offset_y_unit: str = ""
