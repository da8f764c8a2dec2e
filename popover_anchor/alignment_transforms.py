"""Geometric transforms used to synthesise fallback alignment candidates.

Every transform takes an :class:`Alignment` and returns a new one; records are
frozen, so candidates handed out by the parser can be shared freely.
"""
from __future__ import annotations

from dataclasses import replace
from types import MappingProxyType
from typing import Callable, List, Mapping, Sequence, Tuple

from popover_anchor.alignment import Alignment

AlignmentTransform = Callable[[Alignment], Alignment]


def flip_x(alignment: Alignment) -> Alignment:
    return replace(
        alignment,
        anchor_x=1.0 - alignment.anchor_x,
        anchor_x_offset=-alignment.anchor_x_offset,
        popover_x=1.0 - alignment.popover_x,
        popover_x_offset=-alignment.popover_x_offset,
    )


def flip_y(alignment: Alignment) -> Alignment:
    return replace(
        alignment,
        anchor_y=1.0 - alignment.anchor_y,
        anchor_y_offset=-alignment.anchor_y_offset,
        popover_y=1.0 - alignment.popover_y,
        popover_y_offset=-alignment.popover_y_offset,
    )


def _axis_deltas(alignment: Alignment) -> Tuple[float, float]:
    return (
        abs(alignment.anchor_x - alignment.popover_x),
        abs(alignment.anchor_y - alignment.popover_y),
    )


def flip_major(alignment: Alignment) -> Alignment:
    """Flip the axis along which anchor and popover points are furthest apart."""

    delta_x, delta_y = _axis_deltas(alignment)
    if delta_x > delta_y:
        return flip_x(alignment)
    if delta_y > delta_x:
        return flip_y(alignment)
    return flip_y(flip_x(alignment))


def flip_minor(alignment: Alignment) -> Alignment:
    """Flip the axis along which anchor and popover points are closest."""

    delta_x, delta_y = _axis_deltas(alignment)
    if delta_x < delta_y:
        return flip_x(alignment)
    if delta_y < delta_x:
        return flip_y(alignment)
    return flip_y(flip_x(alignment))


def swap_axes(alignment: Alignment) -> Alignment:
    return replace(
        alignment,
        anchor_x=alignment.anchor_y,
        anchor_x_offset=alignment.anchor_y_offset,
        anchor_x_offset_unit=alignment.anchor_y_offset_unit,
        anchor_y=alignment.anchor_x,
        anchor_y_offset=alignment.anchor_x_offset,
        anchor_y_offset_unit=alignment.anchor_x_offset_unit,
        popover_x=alignment.popover_y,
        popover_x_offset=alignment.popover_y_offset,
        popover_x_offset_unit=alignment.popover_y_offset_unit,
        popover_y=alignment.popover_x,
        popover_y_offset=alignment.popover_x_offset,
        popover_y_offset_unit=alignment.popover_x_offset_unit,
    )


def center_x(alignment: Alignment) -> Alignment:
    return replace(
        alignment,
        anchor_x=0.5,
        anchor_x_offset=0.0,
        anchor_x_offset_unit="",
        popover_x=0.5,
        popover_x_offset=0.0,
        popover_x_offset_unit="",
    )


def center_y(alignment: Alignment) -> Alignment:
    return replace(
        alignment,
        anchor_y=0.5,
        anchor_y_offset=0.0,
        anchor_y_offset_unit="",
        popover_y=0.5,
        popover_y_offset=0.0,
        popover_y_offset_unit="",
    )


TRANSFORMS: Mapping[str, AlignmentTransform] = MappingProxyType(
    {
        "flip-x": flip_x,
        "flip-y": flip_y,
        "flip-major": flip_major,
        "flip-minor": flip_minor,
        "swap": swap_axes,
        "center-x": center_x,
        "center-y": center_y,
    }
)

# Applied in order to pad the explicit candidates.
FALLBACK_RECIPES: Tuple[Tuple[str, ...], ...] = (
    ("flip-major",),
    ("flip-minor",),
    ("swap",),
    ("swap", "flip-major"),
    ("center-x", "center-y"),
)

CANONICAL_CANDIDATE_COUNT = len(FALLBACK_RECIPES) + 1


def apply_transforms(alignment: Alignment, names: Sequence[str]) -> Alignment:
    """Compose the named transforms left to right."""

    result = alignment
    for name in names:
        result = TRANSFORMS[name](result)
    return result


def build_fallback_chain(explicit: Sequence[Alignment]) -> Tuple[Alignment, ...]:
    """Pad ``explicit`` up to the canonical candidate count.

    Slot ``N + i`` is seeded from ``explicit[i % N]`` and run through
    ``FALLBACK_RECIPES[i]``. Lists already at or above the canonical count are
    returned unchanged.
    """

    candidates: List[Alignment] = list(explicit)
    count = len(candidates)
    if count == 0:
        return ()
    for index in range(CANONICAL_CANDIDATE_COUNT - count):
        seed = candidates[index % count]
        candidates.append(apply_transforms(seed, FALLBACK_RECIPES[index]))
    return tuple(candidates)
