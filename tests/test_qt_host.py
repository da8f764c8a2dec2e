from __future__ import annotations

import os
from typing import List, Optional

import pytest

from PyQt6.QtCore import QPoint, QRect, QRectF, QSize

from popover_anchor.alignment import DEFAULT_ALIGNMENT, AlignmentPoint, Box
from popover_anchor.alignment_parser import AlignmentParser
from popover_anchor.popover_config import FIT_MODE_VIEWPORT, PopoverSettings
from popover_anchor.positioning import Placement
from popover_anchor.qt_host import (
    PopoverPositioner,
    box_from_rect,
    global_to_move_point,
    placement_to_point,
    widget_global_box,
)


class _FakeWidget:
    def __init__(self, x: int, y: int, width: int, height: int) -> None:
        self._origin = QPoint(x, y)
        self._size = QSize(width, height)
        self.visible = False
        self.moves: List[QPoint] = []

    def mapToGlobal(self, point: QPoint) -> QPoint:
        return QPoint(self._origin.x() + point.x(), self._origin.y() + point.y())

    def size(self) -> QSize:
        return self._size

    def move(self, point: QPoint) -> None:
        self.moves.append(QPoint(point))
        self._origin = QPoint(point)

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False


class _FakeScreen:
    def __init__(self, rect: QRect) -> None:
        self._rect = rect

    def availableGeometry(self) -> QRect:
        return self._rect


class _ScreenWidget(_FakeWidget):
    def __init__(self, screen: Optional[_FakeScreen], *args: int) -> None:
        super().__init__(*args)
        self._screen = screen

    def screen(self) -> Optional[_FakeScreen]:
        return self._screen


class _GeometryOnly:
    def geometry(self) -> QRect:
        return QRect(5, 6, 70, 80)


def _positioner(anchor: _FakeWidget, popover: Optional[_FakeWidget] = None, **kwargs):
    popover = popover or _FakeWidget(0, 0, 30, 10)
    widgets = {"button": anchor}
    positioner = PopoverPositioner(popover, widgets.get, **kwargs)
    positioner.anchor = "button"
    return positioner, popover


def test_box_from_rect_accepts_int_and_float_rects():
    assert box_from_rect(QRect(1, 2, 3, 4)) == Box(1.0, 2.0, 3.0, 4.0)
    assert box_from_rect(QRectF(1.5, 2.5, 3.0, 4.0)) == Box(1.5, 2.5, 3.0, 4.0)


def test_placement_to_point_rounds():
    point = AlignmentPoint(x=0.0, y=0.0)
    placement = Placement(dx=10.6, dy=-0.4, index=0, alignment=DEFAULT_ALIGNMENT, anchor_point=point, popover_point=point)
    assert placement_to_point(placement) == QPoint(11, 0)


def test_widget_global_box_falls_back_to_geometry():
    assert widget_global_box(_GeometryOnly()) == Box(5.0, 6.0, 70.0, 80.0)
    assert widget_global_box(_FakeWidget(10, 20, 30, 40)) == Box(10.0, 20.0, 30.0, 40.0)


def test_show_popover_moves_below_anchor():
    positioner, popover = _positioner(_FakeWidget(100, 200, 50, 20))
    positioner.anchor_alignment = "0.5 1 0.5 0"
    positioner.show_popover()
    assert positioner.open is True
    assert popover.visible is True
    assert popover.moves == [QPoint(110, 220)]


def test_open_without_alignment_leaves_position_unchanged():
    positioner, popover = _positioner(_FakeWidget(100, 200, 50, 20))
    positioner.show_popover()
    assert positioner.open is True
    assert popover.moves == []


def test_settings_default_alignment_is_used():
    settings = PopoverSettings(default_alignment="1 0.5 0 0.5")
    positioner, popover = _positioner(_FakeWidget(100, 200, 50, 20), settings=settings)
    positioner.open = True
    # Right of the anchor, vertically centred.
    assert popover.moves == [QPoint(150, 205)]


def test_unknown_anchor_is_ignored():
    positioner, popover = _positioner(_FakeWidget(100, 200, 50, 20))
    positioner.anchor = "missing"
    positioner.anchor_alignment = "0.5 1 0.5 0"
    positioner.show_popover()
    assert popover.moves == []


def test_reopening_realigns_and_closing_does_not():
    positioner, popover = _positioner(_FakeWidget(100, 200, 50, 20))
    positioner.anchor_alignment = "0.5 1 0.5 0"
    assert positioner.toggle_popover() is True
    assert positioner.toggle_popover() is False
    assert popover.visible is False
    assert len(popover.moves) == 1
    assert positioner.toggle_popover(force=True) is True
    assert positioner.toggle_popover(force=True) is True
    assert len(popover.moves) == 2


def test_viewport_fit_mode_uses_explicit_viewport():
    settings = PopoverSettings(fit_mode=FIT_MODE_VIEWPORT)
    positioner, popover = _positioner(
        _FakeWidget(100, 90, 50, 20),
        settings=settings,
        viewport=QRect(0, 0, 200, 100),
    )
    positioner.anchor_alignment = "0.5 1 0.5 0"
    positioner.show_popover()
    assert popover.moves == [QPoint(110, 80)]


def test_viewport_fit_mode_falls_back_to_widget_screen():
    settings = PopoverSettings(fit_mode=FIT_MODE_VIEWPORT)
    popover = _ScreenWidget(_FakeScreen(QRect(0, 0, 200, 100)), 0, 0, 30, 10)
    positioner, _ = _positioner(_FakeWidget(100, 90, 50, 20), popover=popover, settings=settings)
    placement = positioner.update_anchor_alignment(_FakeWidget(100, 90, 50, 20), "")
    assert placement is not None
    assert placement.index == 1
    assert popover.moves == [QPoint(110, 80)]


def test_first_fit_mode_ignores_viewport():
    positioner, popover = _positioner(_FakeWidget(100, 90, 50, 20), viewport=QRect(0, 0, 200, 100))
    placement = positioner.update_anchor_alignment(_FakeWidget(100, 90, 50, 20), "0.5 1 0.5 0")
    assert placement is not None
    assert placement.index == 0
    assert popover.moves == [QPoint(110, 110)]


def test_update_without_anchor_widget_returns_none():
    positioner, popover = _positioner(_FakeWidget(100, 200, 50, 20))
    assert positioner.update_anchor_alignment(None, "0.5 1 0.5 0") is None
    assert popover.moves == []


def test_injected_parser_keeps_last_alignment_cached():
    parser = AlignmentParser()
    positioner, _ = _positioner(_FakeWidget(100, 200, 50, 20), parser=parser)
    positioner.anchor_alignment = " 0.5 1 0.5 0 "
    positioner.show_popover()
    assert parser.cached_input == ("0.5 1 0.5 0", True)


def test_placement_to_point_rounds_half_pixels_up():
    point = AlignmentPoint(x=0.0, y=0.0)
    placement = Placement(dx=110.5, dy=111.5, index=0, alignment=DEFAULT_ALIGNMENT, anchor_point=point, popover_point=point)
    assert placement_to_point(placement) == QPoint(111, 112)


@pytest.fixture(scope="module")
def qt_app():
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    try:
        from PyQt6.QtWidgets import QApplication
    except ImportError as exc:  # pragma: no cover - environment guard
        pytest.skip(f"PyQt6 widgets unavailable: {exc}")
    app = QApplication.instance() or QApplication([])
    yield app


def test_child_popover_moves_in_parent_coordinates(qt_app):
    from PyQt6.QtWidgets import QWidget

    window = QWidget()
    window.setGeometry(300, 200, 400, 300)
    anchor = QWidget(window)
    anchor.setGeometry(100, 50, 50, 20)
    popover = QWidget(window)
    popover.resize(30, 10)
    try:
        positioner = PopoverPositioner(popover, {"button": anchor}.get)
        positioner.anchor = "button"
        positioner.anchor_alignment = "0.5 1 0.5 0"
        positioner.open = True

        assert popover.pos() == QPoint(110, 70)
        global_origin = popover.mapToGlobal(QPoint(0, 0))
        assert (global_origin.x(), global_origin.y()) == (410, 270)
    finally:
        window.deleteLater()


def test_global_to_move_point_leaves_windows_alone():
    assert global_to_move_point(_FakeWidget(0, 0, 10, 10), QPoint(5, 6)) == QPoint(5, 6)


def test_toggle_callbacks_report_states():
    seen = []
    positioner, popover = _positioner(
        _FakeWidget(100, 200, 50, 20),
        before_toggle=lambda new, old: seen.append(("before", new, old)),
        on_toggle=lambda new, old: seen.append(("after", new, old)),
    )
    assert positioner.toggle_popover() is True
    assert positioner.toggle_popover() is False
    assert seen == [
        ("before", "open", "closed"),
        ("after", "open", "closed"),
        ("before", "closed", "open"),
        ("after", "closed", "open"),
    ]


def test_before_toggle_can_cancel():
    notified = []
    positioner, popover = _positioner(
        _FakeWidget(100, 200, 50, 20),
        before_toggle=lambda new, old: False,
        on_toggle=lambda new, old: notified.append(new),
    )
    positioner.anchor_alignment = "0.5 1 0.5 0"
    assert positioner.toggle_popover() is False
    assert positioner.open is False
    assert popover.visible is False
    assert popover.moves == []
    assert notified == []
