"""
Fixture Layout Editor - Tool Controller

Turns raw pointer input (device pixels from any backend: mouse, touch, pen)
into reducer actions for the active tool:

- select: handles first (rotate, wall ends, zone resize, annotations), then
  fixtures (drag), zones in zone edit mode, then empty space (marquee)
- pan: drag pans the viewport, outside history
- wall: two clicks with a mouse, press-drag-release on touch
- measure: each click adds a point
- annotate: a click adds an annotation at the snapped point

A pointer that starts a gesture is captured through the CapturePort until the
gesture ends. Losing the capture or a pointer_cancel ends the gesture at the
last known position. Escape or a tool switch aborts it through the reducer;
the controller notices the interaction vanish and releases the capture.
"""

import logging
from dataclasses import dataclass

from actions.editor_actions import (
	AddAnnotation, AddMeasurePoint, EndAnnotationDrag, EndDrag, EndMarquee,
	EndWallDraw, EndWallLengthDrag, EndZoneDrag, EndZoneResize, PanViewport,
	PlacePendingFixture, SelectAnnotation, SelectFixture, SelectZone, StartAnnotationDrag,
	StartDrag, StartMarquee, StartWallDraw, StartWallLengthDrag, StartZoneDrag,
	StartZoneResize, UpdateAnnotationDrag, UpdateDrag, UpdateFixtureRotation, UpdateMarquee,
	UpdateWallDraw, UpdateWallLengthDrag, UpdateZoneDrag, UpdateZoneResize, ZoomViewport,
)
from components.handles import handle_at, cursor_for
from constants import WHEEL_ZOOM_STEP
from models.editor_state import Tool
from models.transform import Vec2
from utils.coordinate_transforms import (
	device_delta_to_viewbox, device_to_feet, device_to_viewbox, device_to_world, viewbox_size,
)
from utils.geometry import fixture_at_point, snap, zone_rect

logger = logging.getLogger(__name__)

BUTTON_PRIMARY = 0
BUTTON_MIDDLE = 1
BUTTON_SECONDARY = 2

WHEEL_NOTCH = 120  # Qt angle delta per wheel notch


@dataclass(frozen=True)
class PointerEvent:
	"""A pointer sample in device pixels"""
	pointer_id: int
	x: float
	y: float
	button: int = BUTTON_PRIMARY
	pointer_type: str = 'mouse'       # 'mouse' | 'touch' | 'pen'
	modifiers: frozenset = frozenset()  # subset of {'shift', 'ctrl', 'alt', 'meta'}

	@property
	def append(self):
		return bool(self.modifiers & {'shift', 'ctrl', 'meta'})


class NullCapture:
	"""CapturePort that does nothing (headless use)"""

	def grab(self, pointer_id):
		pass

	def release(self, pointer_id):
		pass


class ToolController:
	"""Routes pointer input to reducer actions through an EditorSession"""

	def __init__(self, session, surface_provider, capture=None, config=None):
		"""
		Args:
			session: EditorSession
			surface_provider: Callable returning the current SurfaceGeometry
			capture: CapturePort with grab(pointer_id) / release(pointer_id)
			config: EditorConfig for drag thresholds (session config if omitted)
		"""
		self.session = session
		self.surface_provider = surface_provider
		self.capture = capture or NullCapture()
		self.config = config or session.config

		self.captured_id = None
		self._press = None           # (device_x, device_y, pointer_type) of the capturing press
		self._threshold_passed = False
		self._pan_last = None        # device position of the last pan sample
		self._last = None            # last PointerEvent of the captured pointer

		session.add_listener(self._on_state_changed)

	# ======================================================================
	# COORDINATES
	# ======================================================================

	def _geometry(self):
		surface = self.surface_provider()
		if surface is None:
			return None
		return surface, viewbox_size(self.session.state.design.shell)

	def _feet(self, event):
		geometry = self._geometry()
		if geometry is None:
			return None
		point = device_to_feet(event.x, event.y, *geometry, self.session.state.viewport)
		return None if point is None else Vec2(*point)

	def _world(self, event):
		geometry = self._geometry()
		if geometry is None:
			return None
		point = device_to_world(event.x, event.y, *geometry, self.session.state.viewport)
		return None if point is None else Vec2(*point)

	def _viewbox(self, x, y):
		geometry = self._geometry()
		if geometry is None:
			return None
		point = device_to_viewbox(x, y, *geometry)
		return None if point is None else Vec2(*point)

	def _snapped(self, point):
		inc = self.session.state.snap_increment
		return Vec2(snap(point.x, inc), snap(point.y, inc))

	# ======================================================================
	# CAPTURE
	# ======================================================================

	def _grab(self, event):
		self.captured_id = event.pointer_id
		self._press = (event.x, event.y, event.pointer_type)
		self._threshold_passed = False
		self._last = event
		self.capture.grab(event.pointer_id)

	def _release(self):
		if self.captured_id is not None:
			self.capture.release(self.captured_id)
		self.captured_id = None
		self._press = None
		self._threshold_passed = False
		self._pan_last = None
		self._last = None

	def _on_state_changed(self, state, previous):
		# Escape / tool switch aborted the gesture: give the pointer back
		if self.captured_id is None or self._pan_last is not None:
			return
		if previous.interaction is not None and state.interaction is None:
			self._release()

	def _past_threshold(self, event):
		if self._threshold_passed or self._press is None:
			return True
		x, y, pointer_type = self._press
		limit = (self.config.touch_drag_threshold_px if pointer_type == 'touch'
				 else self.config.mouse_drag_threshold_px)
		if ((event.x - x) ** 2 + (event.y - y) ** 2) ** 0.5 >= limit:
			self._threshold_passed = True
		return self._threshold_passed

	# ======================================================================
	# POINTER EVENTS
	# ======================================================================

	def pointer_down(self, event):
		"""
		Handle a pointer press

		Returns:
			True if the event started or advanced a gesture
		"""
		if self.captured_id is not None:
			return False
		point = self._feet(event)
		if point is None:
			return False
		state = self.session.state
		dispatch = self.session.dispatch

		if event.button == BUTTON_MIDDLE or state.tool == Tool.PAN:
			self._grab(event)
			self._pan_last = (event.x, event.y)
			return True
		if event.button != BUTTON_PRIMARY:
			return False

		if state.pending_placement is not None:
			dispatch(PlacePendingFixture(self._snapped(point)))
			return True

		if state.tool == Tool.WALL:
			return self._wall_down(event, point)
		if state.tool == Tool.MEASURE:
			dispatch(AddMeasurePoint(self._snapped(point)))
			return True
		if state.tool == Tool.ANNOTATE:
			dispatch(AddAnnotation(self._snapped(point)))
			return True
		return self._select_down(event, point)

	def _wall_down(self, event, point):
		state = self.session.state
		if state.wall_draw is not None:
			# Second click of a mouse wall
			self.session.dispatch(EndWallDraw(point))
			return True
		self.session.dispatch(StartWallDraw(point))
		if event.pointer_type == 'touch':
			self._grab(event)
		return True

	def _select_down(self, event, point):
		state = self.session.state
		dispatch = self.session.dispatch
		catalog = self.session.catalog
		world = self._world(event)

		hit = handle_at(state, catalog, point)
		if hit is not None:
			if hit.kind == 'rotate':
				fixture = state.design.fixture(hit.target_id)
				dispatch(UpdateFixtureRotation(fixture.id, (fixture.rotation_deg + 90) % 360))
				return True
			if hit.kind == 'wall_end':
				dispatch(StartWallLengthDrag(hit.target_id, hit.name, world))
			elif hit.kind == 'zone_resize':
				dispatch(StartZoneResize(hit.target_id, hit.name, world))
			else:
				dispatch(StartAnnotationDrag(hit.target_id, hit.name, self._viewbox(event.x, event.y)))
			if self.session.state.interaction is not None:
				self._grab(event)
			return True

		if state.zone_edit_mode:
			zone = next((z for z in reversed(state.design.zones) if zone_rect(z).contains(point)), None)
			if zone is None:
				dispatch(SelectZone(None))
				return True
			dispatch(StartZoneDrag(zone.id, world))
			self._grab(event)
			return True

		fixture = fixture_at_point(state.design.fixtures, point, catalog)
		if fixture is not None:
			if state.selected_annotation_id is not None:
				dispatch(SelectAnnotation(None))
			if fixture.locked:
				# Locked fixtures can still be selected for viewing
				dispatch(SelectFixture(fixture.id, append=event.append))
				return True
			dispatch(StartDrag(fixture.id, world, append=event.append))
			self._grab(event)
			return True

		if state.selected_annotation_id is not None:
			dispatch(SelectAnnotation(None))
		dispatch(StartMarquee(point, append=event.append))
		self._grab(event)
		return True

	def pointer_move(self, event):
		"""Handle pointer motion (captured gesture, pan or mouse wall preview)"""
		if self.captured_id is not None and event.pointer_id != self.captured_id:
			return False
		state = self.session.state

		if self._pan_last is not None:
			return self._pan_to(event)

		if self.captured_id is None:
			# Uncaptured motion only matters for the mouse wall preview
			if state.wall_draw is not None:
				point = self._feet(event)
				if point is not None:
					self.session.dispatch(UpdateWallDraw(point))
					return True
			return False

		self._last = event
		action = self._update_action(event)
		if action is None:
			return False
		self.session.dispatch(action)
		return True

	def _pan_to(self, event):
		geometry = self._geometry()
		last_x, last_y = self._pan_last
		if geometry is None:
			return False
		delta = device_delta_to_viewbox(event.x - last_x, event.y - last_y, *geometry)
		if delta is None:
			return False
		self._pan_last = (event.x, event.y)
		self._last = event
		self.session.dispatch(PanViewport(*delta))
		return True

	def _update_action(self, event):
		"""UPDATE action for the active interaction at event, or None"""
		state = self.session.state
		if state.drag is not None:
			if not self._past_threshold(event):
				return None
			world = self._world(event)
			return None if world is None else UpdateDrag(world, skip_snap=True)
		if state.annotation_drag is not None:
			viewbox = self._viewbox(event.x, event.y)
			return None if viewbox is None else UpdateAnnotationDrag(viewbox)
		if state.marquee is not None or state.wall_draw is not None:
			point = self._feet(event)
			if point is None:
				return None
			return UpdateMarquee(point) if state.marquee is not None else UpdateWallDraw(point)
		world = self._world(event)
		if world is None:
			return None
		if state.zone_drag is not None:
			return UpdateZoneDrag(world)
		if state.zone_resize is not None:
			return UpdateZoneResize(world)
		if state.wall_length_drag is not None:
			return UpdateWallLengthDrag(world)
		return None

	def pointer_up(self, event):
		"""Handle pointer release: END the captured gesture at the release position"""
		if self.captured_id is None or event.pointer_id != self.captured_id:
			return False
		if self._pan_last is not None:
			self._pan_to(event)
			self._release()
			return True

		state = self.session.state
		if state.wall_draw is not None:
			point = self._feet(event)
			self.session.dispatch(EndWallDraw(point if point is not None else state.wall_draw.current_ft
											  or state.wall_draw.start_ft))
			self._release()
			return True

		action = self._update_action(event)
		if action is not None:
			self.session.dispatch(action)
		self._end_gesture()
		return True

	def pointer_cancel(self, event):
		"""Backend cancelled the pointer: END at the last known position"""
		if self.captured_id is None or event.pointer_id != self.captured_id:
			return False
		self.capture_lost(event.pointer_id)
		return True

	def capture_lost(self, pointer_id):
		"""The captured pointer was taken away: END at the last known position"""
		if self.captured_id != pointer_id:
			return
		logger.debug(f"Pointer {pointer_id} lost capture, ending gesture")
		state = self.session.state
		if state.wall_draw is not None:
			end = state.wall_draw.current_ft or state.wall_draw.start_ft
			self.session.dispatch(EndWallDraw(end))
			self._release()
			return
		self._end_gesture()

	def _end_gesture(self):
		state = self.session.state
		end_action = None
		if state.drag is not None:
			end_action = EndDrag()
		elif state.marquee is not None:
			end_action = EndMarquee()
		elif state.zone_drag is not None:
			end_action = EndZoneDrag()
		elif state.zone_resize is not None:
			end_action = EndZoneResize()
		elif state.wall_length_drag is not None:
			end_action = EndWallLengthDrag()
		elif state.annotation_drag is not None:
			end_action = EndAnnotationDrag()
		# Release before dispatching so the listener does not see a live capture
		self._release()
		if end_action is not None:
			self.session.dispatch(end_action)

	# ======================================================================
	# VIEWPORT GESTURES
	# ======================================================================

	def wheel(self, angle_delta, x, y):
		"""Zoom about the cursor; angle_delta is in Qt units (120 per notch)"""
		center = self._viewbox(x, y)
		if center is None or angle_delta == 0:
			return False
		self.session.dispatch(ZoomViewport(angle_delta / WHEEL_NOTCH * WHEEL_ZOOM_STEP, center))
		return True

	def pinch(self, scale_factor, x, y):
		"""Apply an incremental pinch scale factor about a device point"""
		center = self._viewbox(x, y)
		if center is None or scale_factor <= 0:
			return False
		scale = self.session.state.viewport.scale
		self.session.dispatch(ZoomViewport(scale * (scale_factor - 1.0), center))
		return True

	def pan_by(self, dx, dy):
		"""Pan by a device-pixel displacement (two-finger drag)"""
		geometry = self._geometry()
		if geometry is None:
			return False
		delta = device_delta_to_viewbox(dx, dy, *geometry)
		if delta is None:
			return False
		self.session.dispatch(PanViewport(*delta))
		return True

	# ======================================================================
	# HOVER
	# ======================================================================

	def cursor_at(self, x, y):
		"""Qt cursor shape for a hover position"""
		point = self._feet(PointerEvent(-1, x, y))
		if point is None:
			return cursor_for(None)
		return cursor_for(handle_at(self.session.state, self.session.catalog, point))
