"""
Tests for ToolController pointer routing.

The surface is 800 x 416 device pixels, exactly the viewbox of the 20x8
shell, so at zoom 1 a feet coordinate f sits at pixel f * 32 + 80.

Covers:
- Select tool: drag with thresholds, marquee, rotation handle, locked fixtures
- Pointer capture: grab, release, capture loss, cancel, escape mid-gesture
- Wall tool on mouse (two clicks) and touch (press-drag-release)
- Pan tool and middle button, wheel and pinch zoom
- Measure, annotate, pending placement and zone edit mode
- Unmeasurable surfaces
"""
import pytest
from PyQt5.QtCore import Qt

from actions.editor_actions import (
    AddZone, CancelInteraction, SetPendingPlacement, SetTool, SetZoneEditMode, ToggleFixtureLock,
)
from conftest import px
from models.editor_state import Tool
from models.transform import Vec2
from services.tool_controller import (
    BUTTON_MIDDLE, BUTTON_SECONDARY, PointerEvent, ToolController,
)
from utils.coordinate_transforms import SurfaceGeometry


class RecordingCapture:

    def __init__(self):
        self.grabbed = []
        self.released = []

    def grab(self, pointer_id):
        self.grabbed.append(pointer_id)

    def release(self, pointer_id):
        self.released.append(pointer_id)


@pytest.fixture
def capture():
    return RecordingCapture()


@pytest.fixture
def controller(session, surface, capture):
    return ToolController(session, lambda: surface, capture=capture)


def at(x_ft, y_ft, pointer_id=1, **kwargs):
    """PointerEvent at a feet position"""
    return PointerEvent(pointer_id, px(x_ft), px(y_ft), **kwargs)


def position(session, fixture_id='a'):
    fixture = session.state.design.fixture(fixture_id)
    return fixture.x_ft, fixture.y_ft


# ══════════════════════════════════════════════════════════════════════════
# Select tool
# ══════════════════════════════════════════════════════════════════════════

class TestSelectDrag:

    def test_press_move_release_moves_fixture(self, session, controller, capture):
        assert controller.pointer_down(at(5, 4))
        assert session.state.drag is not None
        assert capture.grabbed == [1]
        controller.pointer_move(at(6, 4))
        controller.pointer_move(at(7.1, 4))
        # Live drag is unsnapped
        assert position(session) == pytest.approx((7.1, 4))
        controller.pointer_up(at(7.1, 4))
        assert position(session) == (7.0, 4)
        assert session.state.drag is None
        assert len(session.state.history) == 1
        assert capture.released == [1]
        assert controller.captured_id is None

    def test_press_selects(self, session, controller):
        controller.pointer_down(at(5, 4))
        assert session.state.selected_ids == ('a',)

    def test_touch_tap_below_threshold_does_not_move(self, session, controller):
        controller.pointer_down(at(5, 4, pointer_type='touch'))
        controller.pointer_move(PointerEvent(1, px(5) + 6, px(4), pointer_type='touch'))
        controller.pointer_up(PointerEvent(1, px(5) + 6, px(4), pointer_type='touch'))
        assert position(session) == (5, 4)
        assert session.state.history == ()

    def test_mouse_threshold_is_smaller(self, session, controller):
        controller.pointer_down(at(5, 4))
        controller.pointer_move(PointerEvent(1, px(5) + 6, px(4)))
        controller.pointer_up(PointerEvent(1, px(5) + 6, px(4)))
        assert position(session) == (5.25, 4)

    def test_other_pointer_ignored_while_captured(self, session, controller):
        controller.pointer_down(at(5, 4, pointer_id=1))
        assert controller.pointer_down(at(10, 4, pointer_id=2)) is False
        assert controller.pointer_move(at(10, 4, pointer_id=2)) is False
        assert controller.pointer_up(at(10, 4, pointer_id=2)) is False
        assert session.state.drag is not None

    def test_locked_fixture_selected_not_dragged(self, session, controller, capture):
        session.dispatch(ToggleFixtureLock('a'))
        controller.pointer_down(at(5, 4))
        assert session.state.drag is None
        assert session.state.selected_ids == ('a',)
        assert capture.grabbed == []

    def test_secondary_button_ignored(self, session, controller):
        assert controller.pointer_down(at(5, 4, button=BUTTON_SECONDARY)) is False
        assert session.state.interaction is None

    def test_shift_press_appends(self, session, controller):
        from actions.editor_actions import AddFixture
        session.dispatch(AddFixture('fixture-box', 12, 4, fixture_id='b'))
        controller.pointer_down(at(5, 4, modifiers=frozenset({'shift'})))
        assert session.state.selected_ids == ('b', 'a')


class TestMarqueeAndHandles:

    def test_marquee_selects(self, session, controller):
        controller.pointer_down(at(1, 1))
        assert session.state.marquee is not None
        controller.pointer_move(at(5, 5))
        controller.pointer_up(at(7, 6))
        assert session.state.selected_ids == ('a',)
        assert session.state.marquee is None
        assert controller.captured_id is None

    def test_rotation_handle_rotates_immediately(self, session, controller, capture):
        controller.pointer_down(at(5, 4))
        controller.pointer_up(at(5, 4))
        # Handle sits 0.75ft above the top edge (y = 3)
        controller.pointer_down(at(5, 2.25))
        assert session.state.design.fixture('a').rotation_deg == 90
        assert session.state.interaction is None
        assert controller.captured_id is None
        assert len(session.state.history) == 1

    def test_cursor_over_rotation_handle(self, session, controller):
        from actions.editor_actions import SelectFixture
        session.dispatch(SelectFixture('a'))
        assert controller.cursor_at(px(5), px(2.25)) == Qt.PointingHandCursor
        assert controller.cursor_at(px(15), px(6)) == Qt.ArrowCursor


# ══════════════════════════════════════════════════════════════════════════
# Capture model
# ══════════════════════════════════════════════════════════════════════════

class TestCapture:

    def test_capture_lost_ends_at_last_position(self, session, controller, capture):
        controller.pointer_down(at(5, 4))
        controller.pointer_move(at(8, 4))
        controller.capture_lost(1)
        assert session.state.drag is None
        assert position(session) == (8, 4)
        assert len(session.state.history) == 1
        assert controller.captured_id is None

    def test_pointer_cancel_ends_marquee(self, session, controller):
        controller.pointer_down(at(1, 1))
        controller.pointer_move(at(7, 6))
        assert controller.pointer_cancel(at(7, 6))
        assert session.state.marquee is None
        assert session.state.selected_ids == ('a',)

    def test_escape_aborts_and_releases(self, session, controller, capture):
        controller.pointer_down(at(5, 4))
        controller.pointer_move(at(8, 4))
        session.dispatch(CancelInteraction())
        assert controller.captured_id is None
        assert capture.released == [1]
        assert position(session) == (5, 4)
        # Later moves of the same pointer go nowhere
        assert controller.pointer_move(at(9, 4)) is False
        assert session.state.history == ()

    def test_tool_switch_aborts_and_releases(self, session, controller):
        controller.pointer_down(at(1, 1))
        session.dispatch(SetTool(Tool.PAN))
        assert controller.captured_id is None
        assert session.state.marquee is None

    def test_capture_lost_for_other_pointer_ignored(self, session, controller):
        controller.pointer_down(at(5, 4))
        controller.capture_lost(7)
        assert session.state.drag is not None


# ══════════════════════════════════════════════════════════════════════════
# Wall tool
# ══════════════════════════════════════════════════════════════════════════

class TestWallTool:

    def test_mouse_two_clicks(self, session, controller, capture):
        session.dispatch(SetTool(Tool.WALL))
        controller.pointer_down(at(2, 2))
        assert session.state.wall_draw.start_ft == Vec2(2, 2)
        assert controller.pointer_up(at(2, 2)) is False
        assert controller.pointer_move(at(5, 2))
        assert session.state.wall_draw.current_ft == Vec2(5, 2)
        controller.pointer_down(at(6, 2))
        wall = session.state.design.fixtures[-1]
        assert wall.catalog_key == 'fixture-wall'
        assert wall.properties['lengthOverrideFt'] == 4
        assert session.state.tool == Tool.SELECT
        assert capture.grabbed == []

    def test_touch_press_drag_release(self, session, controller):
        session.dispatch(SetTool(Tool.WALL))
        controller.pointer_down(at(3, 1, pointer_type='touch'))
        assert controller.captured_id == 1
        controller.pointer_move(at(3, 6, pointer_type='touch'))
        controller.pointer_up(at(3, 6, pointer_type='touch'))
        wall = session.state.design.fixtures[-1]
        assert wall.rotation_deg == 0
        assert (wall.x_ft, wall.y_ft) == (3, 3.5)
        assert controller.captured_id is None

    def test_short_touch_wall_discarded(self, session, controller):
        session.dispatch(SetTool(Tool.WALL))
        controller.pointer_down(at(3, 1, pointer_type='touch'))
        controller.pointer_up(at(3, 1.2, pointer_type='touch'))
        assert len(session.state.design.fixtures) == 1
        assert session.state.wall_draw is None


# ══════════════════════════════════════════════════════════════════════════
# Viewport gestures
# ══════════════════════════════════════════════════════════════════════════

class TestViewportGestures:

    def test_pan_tool(self, session, controller):
        session.dispatch(SetTool(Tool.PAN))
        controller.pointer_down(PointerEvent(1, 100, 100))
        controller.pointer_move(PointerEvent(1, 150, 120))
        controller.pointer_up(PointerEvent(1, 160, 120))
        viewport = session.state.viewport
        assert (viewport.offset_x, viewport.offset_y) == (60, 20)
        assert session.state.history == ()
        assert controller.captured_id is None

    def test_middle_button_pans_in_select(self, session, controller):
        controller.pointer_down(PointerEvent(1, 100, 100, button=BUTTON_MIDDLE))
        controller.pointer_move(PointerEvent(1, 90, 100, button=BUTTON_MIDDLE))
        assert session.state.viewport.offset_x == -10
        assert session.state.interaction is None

    def test_pan_on_letterboxed_surface(self, session):
        controller = ToolController(session, lambda: SurfaceGeometry(0, 0, 1600, 832))
        session.dispatch(SetTool(Tool.PAN))
        controller.pointer_down(PointerEvent(1, 100, 100))
        controller.pointer_move(PointerEvent(1, 140, 100))
        assert session.state.viewport.offset_x == 20

    def test_wheel_zooms_about_cursor(self, session, controller):
        assert controller.wheel(120, 400, 208)
        viewport = session.state.viewport
        assert viewport.scale == pytest.approx(1.1)
        assert viewport.offset_x == pytest.approx(-40)
        assert controller.wheel(0, 400, 208) is False

    def test_pinch(self, session, controller):
        controller.pinch(2.0, 400, 208)
        assert session.state.viewport.scale == pytest.approx(2.0)

    def test_pan_by(self, session, controller):
        controller.pan_by(12, -8)
        assert (session.state.viewport.offset_x, session.state.viewport.offset_y) == (12, -8)

    def test_drag_after_zoom_lands_in_feet(self, session, controller):
        # At zoom 2 about the origin a feet offset covers twice the pixels
        controller.pinch(2.0, 0, 0)
        start = (px(5) * 2, px(4) * 2)
        controller.pointer_down(PointerEvent(1, *start))
        controller.pointer_move(PointerEvent(1, start[0] + 128, start[1]))
        controller.pointer_up(PointerEvent(1, start[0] + 128, start[1]))
        assert position(session) == (7, 4)


# ══════════════════════════════════════════════════════════════════════════
# Other tools
# ══════════════════════════════════════════════════════════════════════════

class TestOtherTools:

    def test_measure(self, session, controller):
        session.dispatch(SetTool(Tool.MEASURE))
        controller.pointer_down(at(1.1, 1))
        controller.pointer_down(at(4, 5))
        assert session.state.measure_points == (Vec2(1, 1), Vec2(4, 5))
        assert session.overlays().measure_distance_ft == pytest.approx(5)

    def test_annotate(self, session, controller):
        session.dispatch(SetTool(Tool.ANNOTATE))
        controller.pointer_down(at(10, 6))
        note = session.state.design.annotations[0]
        assert note.anchor_ft == Vec2(10, 6)
        assert session.state.tool == Tool.SELECT

    def test_pending_placement(self, session, controller):
        session.dispatch(SetPendingPlacement('fixture-box'))
        controller.pointer_down(at(14.1, 2.9))
        placed = session.state.design.fixtures[-1]
        assert (placed.x_ft, placed.y_ft) == (14, 3)
        assert session.state.pending_placement is None

    def test_zone_edit_mode_drags_zone(self, session, controller):
        session.dispatch(AddZone(zone_id='z1', x_ft=0, length_ft=8))
        session.dispatch(SetZoneEditMode(True))
        controller.pointer_down(at(4, 4))
        assert session.state.zone_drag is not None
        controller.pointer_move(at(6, 4))
        controller.pointer_up(at(6, 4))
        assert session.state.design.zone('z1').x_ft == 2
        assert session.state.zone_drag is None

    def test_zone_resize_handle(self, session, controller):
        session.dispatch(AddZone(zone_id='z1', x_ft=0, length_ft=8))
        session.dispatch(SetZoneEditMode(True))
        controller.pointer_down(at(8, 4))
        assert session.state.zone_resize is not None
        assert session.state.zone_resize.handle == 'e'
        controller.pointer_up(at(10, 4))
        assert session.state.design.zone('z1').length_ft == 10

    def test_unmeasurable_surface(self, session):
        controller = ToolController(session, lambda: SurfaceGeometry(0, 0, 0, 0))
        assert controller.pointer_down(at(5, 4)) is False
        assert controller.wheel(120, 10, 10) is False
        assert session.state.interaction is None
