"""Point calculation and candidate selection (pure calculations, no Qt types)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from popover_anchor.alignment import ANCHOR_ROLE, POPOVER_ROLE, Alignment, AlignmentPoint, Box

_LOGGER = logging.getLogger("PopoverAnchor.Positioning")

FitPredicate = Callable[[AlignmentPoint, AlignmentPoint], bool]


@dataclass(frozen=True)
class Placement:
    """Outcome of candidate selection; ``dx``/``dy`` position the popover box."""

    dx: float
    dy: float
    index: int
    alignment: Alignment
    anchor_point: AlignmentPoint
    popover_point: AlignmentPoint
    fitted: bool = True


def compute_point(box: Box, alignment: Alignment, role: str) -> AlignmentPoint:
    """Resolve the alignment point for ``role`` on ``box``.

    Anchor points are absolute (they include the box origin); popover points are
    relative to the popover's own box.
    """

    if role == ANCHOR_ROLE:
        return AlignmentPoint(
            x=box.left + box.width * alignment.anchor_x,
            y=box.top + box.height * alignment.anchor_y,
            offset_x=alignment.anchor_x_offset,
            offset_x_unit=alignment.anchor_x_offset_unit,
            offset_y=alignment.anchor_y_offset,
            offset_y_unit=alignment.anchor_y_offset_unit,
        )
    if role == POPOVER_ROLE:
        return AlignmentPoint(
            x=box.width * alignment.popover_x,
            y=box.height * alignment.popover_y,
            offset_x=alignment.popover_x_offset,
            offset_x_unit=alignment.popover_x_offset_unit,
            offset_y=alignment.popover_y_offset,
            offset_y_unit=alignment.popover_y_offset_unit,
        )
    raise ValueError(f"Unknown alignment role: {role!r}")


def always_fits(anchor_point: AlignmentPoint, popover_point: AlignmentPoint) -> bool:
    return True


def contained_within(viewport: Box, overlay_box: Box, margin: float = 0.0) -> FitPredicate:
    """Build a predicate accepting placements that keep ``overlay_box`` inside ``viewport``.

    Edges are inclusive and ``margin`` shrinks the viewport on every side.
    Offsets are ignored because their units are not resolved here.
    """

    min_x = viewport.left + margin
    min_y = viewport.top + margin
    max_x = viewport.right - margin
    max_y = viewport.bottom - margin

    def _fits(anchor_point: AlignmentPoint, popover_point: AlignmentPoint) -> bool:
        left = anchor_point.x - popover_point.x
        top = anchor_point.y - popover_point.y
        return (
            left >= min_x
            and top >= min_y
            and left + overlay_box.width <= max_x
            and top + overlay_box.height <= max_y
        )

    return _fits


def select_alignment(
    candidates: Sequence[Alignment],
    anchor_box: Box,
    overlay_box: Box,
    fits: Optional[FitPredicate] = None,
    *,
    logger: Optional[logging.Logger] = None,
) -> Optional[Placement]:
    """Pick the first candidate accepted by ``fits``.

    When nothing fits the last candidate is used anyway. Returns ``None`` only
    for an empty candidate sequence.
    """

    predicate = fits or always_fits
    log = logger or _LOGGER
    last: Optional[Placement] = None
    for index, alignment in enumerate(candidates):
        anchor_point = compute_point(anchor_box, alignment, ANCHOR_ROLE)
        popover_point = compute_point(overlay_box, alignment, POPOVER_ROLE)
        fitted = bool(predicate(anchor_point, popover_point))
        last = Placement(
            dx=anchor_point.x - popover_point.x,
            dy=anchor_point.y - popover_point.y,
            index=index,
            alignment=alignment,
            anchor_point=anchor_point,
            popover_point=popover_point,
            fitted=fitted,
        )
        if fitted:
            return last
    if last is not None:
        log.debug("No alignment candidate fits; falling back to candidate %d", last.index)
    return last
