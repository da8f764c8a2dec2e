"""PyQt6 host for positioning a popover widget against an anchor widget.

The host only gathers geometry and applies the result: alignment parsing and
candidate selection live in :mod:`popover_anchor.alignment_parser` and
:mod:`popover_anchor.positioning`.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional, Union

from PyQt6.QtCore import QPoint, QRect, QRectF

from popover_anchor.alignment import Box
from popover_anchor.alignment_parser import AlignmentParser
from popover_anchor.popover_config import FIT_MODE_VIEWPORT, PopoverSettings
from popover_anchor.positioning import FitPredicate, Placement, always_fits, contained_within, select_alignment

_LOGGER = logging.getLogger("PopoverAnchor.QtHost")

AnchorResolver = Callable[[str], Optional[Any]]
ToggleCallback = Callable[[str, str], Optional[bool]]


def _toggle_state(is_open: bool) -> str:
    return "open" if is_open else "closed"


def box_from_rect(rect: Union[QRect, QRectF]) -> Box:
    return Box(
        left=float(rect.x()),
        top=float(rect.y()),
        width=float(rect.width()),
        height=float(rect.height()),
    )


def placement_to_point(placement: Placement) -> QPoint:
    # Half pixels always round up.
    return QPoint(math.floor(placement.dx + 0.5), math.floor(placement.dy + 0.5))


def global_to_move_point(widget: Any, point: QPoint) -> QPoint:
    """Convert a global point into the coordinates ``widget.move`` expects.

    Top-level windows move in global coordinates; child widgets move relative
    to their parent. Objects without ``isWindow`` are treated as windows.
    """

    is_window = getattr(widget, "isWindow", None)
    if not callable(is_window) or is_window():
        return point
    parent = widget.parentWidget()
    if parent is None:
        return point
    return parent.mapFromGlobal(point)


def widget_global_box(widget: Any) -> Box:
    """Return the widget's box in global coordinates.

    Widgets without ``mapToGlobal`` fall back to ``geometry()``.
    """

    map_to_global = getattr(widget, "mapToGlobal", None)
    if callable(map_to_global):
        origin = map_to_global(QPoint(0, 0))
        size = widget.size()
        return Box(
            left=float(origin.x()),
            top=float(origin.y()),
            width=float(size.width()),
            height=float(size.height()),
        )
    return box_from_rect(widget.geometry())


class PopoverPositioner:
    """Keep a popover widget aligned to a named anchor widget while open.

    ``anchor_resolver`` maps the anchor name to a widget (for example
    ``window.findChild``). Opening the popover re-runs the alignment.
    """

    def __init__(
        self,
        popover: Any,
        anchor_resolver: AnchorResolver,
        settings: Optional[PopoverSettings] = None,
        *,
        parser: Optional[AlignmentParser] = None,
        viewport: Optional[Union[QRect, QRectF]] = None,
        before_toggle: Optional[ToggleCallback] = None,
        on_toggle: Optional[ToggleCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._popover = popover
        self._before_toggle = before_toggle
        self._on_toggle = on_toggle
        self._resolve_anchor = anchor_resolver
        self._settings = settings or PopoverSettings()
        self._parser = parser or AlignmentParser()
        self._viewport = viewport
        self._logger = logger or _LOGGER
        self._anchor: Optional[str] = None
        self._anchor_alignment: Optional[str] = None
        self._open = False

    @property
    def anchor(self) -> Optional[str]:
        return self._anchor

    @anchor.setter
    def anchor(self, value: Optional[str]) -> None:
        self._anchor = value

    @property
    def anchor_alignment(self) -> Optional[str]:
        return self._anchor_alignment

    @anchor_alignment.setter
    def anchor_alignment(self, value: Optional[str]) -> None:
        self._anchor_alignment = value

    @property
    def open(self) -> bool:
        return self._open

    @open.setter
    def open(self, value: bool) -> None:
        was_open = self._open
        self._open = bool(value)
        if not was_open and self._open:
            self._on_open()
        elif was_open and not self._open:
            self._logger.debug("Popover closed (anchor=%s)", self._anchor)

    # Public API ---------------------------------------------------------

    def show_popover(self) -> None:
        self._popover.show()
        self.open = True

    def hide_popover(self) -> None:
        self._popover.hide()
        self.open = False

    def toggle_popover(self, force: Optional[bool] = None) -> bool:
        """Show or hide the popover; returns the resulting open state.

        ``before_toggle(new_state, old_state)`` may return ``False`` to cancel;
        ``on_toggle(new_state, old_state)`` is told once the state changed.
        States are ``"open"`` or ``"closed"``.
        """

        target = (not self._open) if force is None else bool(force)
        old_state = _toggle_state(self._open)
        new_state = _toggle_state(target)
        if self._before_toggle is not None and self._before_toggle(new_state, old_state) is False:
            self._logger.debug("Popover toggle to %s cancelled", new_state)
            return self._open
        if target:
            self.show_popover()
        else:
            self.hide_popover()
        if self._on_toggle is not None:
            self._on_toggle(new_state, old_state)
        return target

    def update_anchor_alignment(self, anchor_widget: Any, alignment: Optional[str]) -> Optional[Placement]:
        """Move the popover next to ``anchor_widget`` and return the chosen placement."""

        if anchor_widget is None:
            return None
        candidates = self._parser.parse(alignment, clamp=self._settings.clamp)
        anchor_box = widget_global_box(anchor_widget)
        overlay_box = widget_global_box(self._popover)
        placement = select_alignment(
            candidates,
            anchor_box,
            overlay_box,
            self._fit_predicate(overlay_box),
            logger=self._logger,
        )
        if placement is None:
            return None
        self._logger.debug(
            "Placing popover with candidate %d at dx=%.1f dy=%.1f",
            placement.index,
            placement.dx,
            placement.dy,
        )
        self._popover.move(global_to_move_point(self._popover, placement_to_point(placement)))
        return placement

    # Internal helpers ---------------------------------------------------

    def _on_open(self) -> None:
        if not self._anchor:
            return
        anchor_widget = self._resolve_anchor(self._anchor)
        if anchor_widget is None:
            self._logger.debug("Popover anchor %r not found; leaving position unchanged", self._anchor)
            return
        alignment = self._anchor_alignment or self._settings.default_alignment
        if not alignment:
            return
        self.update_anchor_alignment(anchor_widget, alignment)

    def _fit_predicate(self, overlay_box: Box) -> FitPredicate:
        if self._settings.fit_mode != FIT_MODE_VIEWPORT:
            return always_fits
        viewport = self._viewport_box()
        if viewport is None:
            return always_fits
        return contained_within(viewport, overlay_box, self._settings.viewport_margin)

    def _viewport_box(self) -> Optional[Box]:
        if self._viewport is not None:
            return box_from_rect(self._viewport)
        screen_getter = getattr(self._popover, "screen", None)
        if not callable(screen_getter):
            return None
        screen = screen_getter()
        if screen is None:
            return None
        return box_from_rect(screen.availableGeometry())
