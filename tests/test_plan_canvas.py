"""
Integration tests for PlanCanvasWidget using pytest-qt.

The widget is sized to 800 x 416 so widget pixels equal world units of the
20x8 shell at zoom 1.

Covers:
- Surface measurement from the widget size
- Mouse press/move/release routed through the ToolController
- Key events turned into key sequences and editor commands
- stateChanged emitted for every published state
"""
import pytest
from PyQt5.QtCore import QEvent, QPoint, QPointF, Qt
from PyQt5.QtGui import QKeyEvent, QMouseEvent, QWheelEvent

from actions.editor_actions import AddFixture, SelectFixture
from components.plan_canvas import PlanCanvasWidget, key_sequence, modifier_names
from conftest import px


@pytest.fixture
def canvas(qtbot, session):
    widget = PlanCanvasWidget(session)
    qtbot.addWidget(widget)
    widget.resize(800, 416)
    widget.show()
    return widget


def mouse(event_type, x, y, button=Qt.LeftButton, modifiers=Qt.NoModifier):
    buttons = Qt.NoButton if event_type == QEvent.MouseButtonRelease else button
    return QMouseEvent(event_type, QPointF(x, y), button, buttons, modifiers)


def key(qt_key, modifiers=Qt.NoModifier):
    return QKeyEvent(QEvent.KeyPress, qt_key, modifiers)


class TestSurface:

    def test_geometry_follows_widget_size(self, canvas):
        surface = canvas.surface_geometry()
        assert (surface.left, surface.top, surface.width, surface.height) == (0.0, 0.0, 800.0, 416.0)
        assert surface.measurable

    def test_commands_use_session_bindings(self, qtbot, box_design, catalog):
        from services.session import EditorSession
        from utils.config import EditorConfig
        session = EditorSession(box_design, catalog, config=EditorConfig(key_bindings={'X': 'undo'}))
        widget = PlanCanvasWidget(session)
        qtbot.addWidget(widget)
        assert widget.commands.command_for_key('X') == 'undo'


class TestMouse:

    def test_drag_moves_fixture(self, canvas, session):
        canvas.mousePressEvent(mouse(QEvent.MouseButtonPress, px(5), px(4)))
        canvas.mouseMoveEvent(mouse(QEvent.MouseMove, px(6), px(4)))
        canvas.mouseReleaseEvent(mouse(QEvent.MouseButtonRelease, px(7), px(4)))
        fixture = session.state.design.fixture('a')
        assert (fixture.x_ft, fixture.y_ft) == (7, 4)
        assert canvas.controller.captured_id is None
        assert session.can_undo

    def test_shift_click_appends(self, canvas, session):
        session.dispatch(AddFixture('fixture-box', 12, 4, fixture_id='b'))
        canvas.mousePressEvent(mouse(QEvent.MouseButtonPress, px(5), px(4), modifiers=Qt.ShiftModifier))
        canvas.mouseReleaseEvent(mouse(QEvent.MouseButtonRelease, px(5), px(4)))
        assert session.state.selected_ids == ('b', 'a')

    def test_hover_sets_cursor(self, canvas, session):
        session.dispatch(SelectFixture('a'))
        canvas.mouseMoveEvent(mouse(QEvent.MouseMove, px(5), px(2.25), button=Qt.NoButton))
        assert canvas.cursor().shape() == Qt.PointingHandCursor

    def test_wheel_zooms(self, canvas, session):
        event = QWheelEvent(QPointF(400, 208), QPointF(400, 208), QPoint(0, 0), QPoint(0, 120),
                            Qt.NoButton, Qt.NoModifier, Qt.NoScrollPhase, False)
        canvas.wheelEvent(event)
        assert session.state.viewport.scale == pytest.approx(1.1)


class TestKeys:

    @pytest.mark.parametrize("qt_key, modifiers, expected", [
        (Qt.Key_Z, Qt.ControlModifier, 'Ctrl+Z'),
        (Qt.Key_Z, Qt.ControlModifier | Qt.ShiftModifier, 'Ctrl+Shift+Z'),
        (Qt.Key_Delete, Qt.NoModifier, 'Del'),
        (Qt.Key_Escape, Qt.NoModifier, 'Esc'),
        (Qt.Key_Up, Qt.KeypadModifier, 'Up'),
    ])
    def test_key_sequence(self, qt_key, modifiers, expected):
        assert key_sequence(key(qt_key, modifiers)) == expected

    def test_modifier_names(self):
        assert modifier_names(Qt.ShiftModifier | Qt.ControlModifier) == frozenset({'shift', 'ctrl'})
        assert modifier_names(Qt.NoModifier) == frozenset()

    def test_undo_key(self, canvas, session):
        session.dispatch(AddFixture('fixture-box', 12, 4, fixture_id='b'))
        canvas.keyPressEvent(key(Qt.Key_Z, Qt.ControlModifier))
        assert session.state.design.fixture('b') is None

    def test_tab_cycles_instead_of_moving_focus(self, canvas, session):
        assert canvas.event(key(Qt.Key_Tab))
        assert session.state.primary_selected_id == 'a'

    def test_unbound_key_ignored(self, canvas, session):
        before = session.state
        canvas.keyPressEvent(key(Qt.Key_F12))
        assert session.state is before


class TestSignals:

    def test_state_changed_emitted(self, qtbot, canvas, session):
        with qtbot.waitSignal(canvas.stateChanged, timeout=1000) as blocker:
            session.dispatch(SelectFixture('a'))
        assert blocker.args[0].selected_ids == ('a',)
