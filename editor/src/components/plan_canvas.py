"""Plan canvas widget - Qt input backend for the plan editor.

Mouse, touch, pinch gesture, wheel and key events are measured against the
widget rectangle and forwarded to the ToolController / CommandDispatcher as
device pixels and key sequence strings. Painting the plan is left to the
renderer connected to stateChanged.
"""

import logging

from PyQt5.QtCore import Qt, QEvent, pyqtSignal
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import QWidget, QSizePolicy

from services.commands import CommandDispatcher
from services.tool_controller import (
	ToolController, PointerEvent, BUTTON_PRIMARY, BUTTON_MIDDLE, BUTTON_SECONDARY,
)
from utils.coordinate_transforms import SurfaceGeometry

logger = logging.getLogger(__name__)

MOUSE_POINTER_ID = 0

BUTTONS = {
	Qt.LeftButton: BUTTON_PRIMARY,
	Qt.MiddleButton: BUTTON_MIDDLE,
	Qt.RightButton: BUTTON_SECONDARY,
}

MODIFIERS = (
	(Qt.ShiftModifier, 'shift'),
	(Qt.ControlModifier, 'ctrl'),
	(Qt.AltModifier, 'alt'),
	(Qt.MetaModifier, 'meta'),
)


def modifier_names(modifiers):
	return frozenset(name for flag, name in MODIFIERS if modifiers & flag)


def key_sequence(event):
	"""Qt key-sequence string for a key event ('Ctrl+Z', 'Del', 'Backtab', ...)"""
	modifiers = int(event.modifiers()) & ~int(Qt.KeypadModifier)
	return QKeySequence(modifiers | event.key()).toString()


class MouseCapture:
	"""Capture port for the canvas: the mouse is grabbed, touch points stay with the widget that got TouchBegin"""

	def __init__(self, widget):
		self.widget = widget

	def grab(self, pointer_id):
		if pointer_id == MOUSE_POINTER_ID:
			self.widget.grabMouse()

	def release(self, pointer_id):
		if pointer_id == MOUSE_POINTER_ID:
			self.widget.releaseMouse()


class PlanCanvasWidget(QWidget):
	"""Input surface of the plan view"""

	stateChanged = pyqtSignal(object)

	def __init__(self, session, parent=None, bindings=None):
		super().__init__(parent)

		# Enable wheel/key focus, hover tracking, touch and pinch
		self.setFocusPolicy(Qt.StrongFocus)
		self.setMouseTracking(True)
		self.setAttribute(Qt.WA_AcceptTouchEvents)
		self.grabGesture(Qt.PinchGesture)

		# Allow widget to expand to fill available space
		self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

		self.session = session
		self.controller = ToolController(session, self.surface_geometry, capture=MouseCapture(self))
		self.commands = CommandDispatcher(session, bindings or session.config.key_bindings)
		self._touch_ids = {}  # Qt touch point id -> pointer id
		session.add_listener(self._on_state_changed)

	def surface_geometry(self):
		"""Measured drawing surface in widget-local logical pixels"""
		return SurfaceGeometry(0.0, 0.0, float(self.width()), float(self.height()), 1.0)

	def _on_state_changed(self, state, previous):
		self.stateChanged.emit(state)
		self.update()

	# ========================================
	# Mouse
	# ========================================

	def _mouse_pointer(self, event):
		return PointerEvent(
			MOUSE_POINTER_ID, event.x(), event.y(),
			BUTTONS.get(event.button(), BUTTON_PRIMARY), 'mouse',
			modifier_names(event.modifiers()),
		)

	def mousePressEvent(self, event):
		"""Start a tool gesture"""
		self.setFocus()
		if self.controller.pointer_down(self._mouse_pointer(event)):
			event.accept()
		else:
			super().mousePressEvent(event)

	def mouseMoveEvent(self, event):
		"""Advance the captured gesture, or update the hover cursor"""
		if self.controller.pointer_move(self._mouse_pointer(event)):
			event.accept()
			return
		if self.controller.captured_id is None:
			self.setCursor(self.controller.cursor_at(event.x(), event.y()))
		super().mouseMoveEvent(event)

	def mouseReleaseEvent(self, event):
		"""End the captured gesture"""
		if self.controller.pointer_up(self._mouse_pointer(event)):
			event.accept()
		else:
			super().mouseReleaseEvent(event)

	def wheelEvent(self, event):
		"""Zoom about the cursor"""
		pos = event.pos()
		if self.controller.wheel(event.angleDelta().y(), pos.x(), pos.y()):
			event.accept()
		else:
			super().wheelEvent(event)

	def focusOutEvent(self, event):
		"""Switching windows mid-drag ends the gesture where it was"""
		if event.reason() == Qt.ActiveWindowFocusReason and self.controller.captured_id is not None:
			self.controller.capture_lost(self.controller.captured_id)
		super().focusOutEvent(event)

	# ========================================
	# Keys
	# ========================================

	def keyPressEvent(self, event):
		"""Route bound key sequences to editor commands"""
		if self.commands.handle_key(key_sequence(event)):
			event.accept()
		else:
			super().keyPressEvent(event)

	# ========================================
	# Touch / gestures
	# ========================================

	def event(self, event):
		event_type = event.type()
		if event_type in (QEvent.TouchBegin, QEvent.TouchUpdate, QEvent.TouchEnd, QEvent.TouchCancel):
			self._touch_event(event)
			return True
		if event_type == QEvent.Gesture:
			return self._gesture_event(event)
		if event_type == QEvent.KeyPress and event.key() in (Qt.Key_Tab, Qt.Key_Backtab):
			# Keep Tab for fixture cycling instead of focus navigation
			self.keyPressEvent(event)
			return True
		return super().event(event)

	def _touch_pointer(self, point, modifiers):
		pointer_id = self._touch_ids.setdefault(point.id(), len(self._touch_ids) + 1)
		pos = point.pos()
		return PointerEvent(pointer_id, pos.x(), pos.y(), BUTTON_PRIMARY, 'touch', modifiers)

	def _touch_event(self, event):
		modifiers = modifier_names(event.modifiers())
		if event.type() == QEvent.TouchCancel:
			if self.controller.captured_id is not None:
				self.controller.capture_lost(self.controller.captured_id)
			self._touch_ids.clear()
			event.accept()
			return

		for point in event.touchPoints():
			pointer = self._touch_pointer(point, modifiers)
			state = point.state()
			if state == Qt.TouchPointPressed:
				# A second finger belongs to the pinch gesture, not to the tool
				if len(event.touchPoints()) == 1:
					self.controller.pointer_down(pointer)
			elif state == Qt.TouchPointMoved:
				self.controller.pointer_move(pointer)
			elif state == Qt.TouchPointReleased:
				self.controller.pointer_up(pointer)

		if event.type() == QEvent.TouchEnd:
			self._touch_ids.clear()
		event.accept()

	def _gesture_event(self, event):
		pinch = event.gesture(Qt.PinchGesture)
		if pinch is None:
			return super().event(event)
		if pinch.changeFlags() & pinch.ScaleFactorChanged:
			center = self.mapFromGlobal(pinch.centerPoint().toPoint())
			self.controller.pinch(pinch.scaleFactor(), center.x(), center.y())
		if pinch.changeFlags() & pinch.CenterPointChanged:
			delta = pinch.centerPoint() - pinch.lastCenterPoint()
			self.controller.pan_by(delta.x(), delta.y())
		event.accept(pinch)
		return True
