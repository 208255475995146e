"""Plan handle system - hit-testing for the interactive handles drawn on the plan.

Each handle type is a class that knows:
- Where it sits for a given fixture, zone or annotation (in feet)
- How to test if a pointer position hits it
- Which cursor to show while hovering it

Handle radii are given in feet at zoom 1 and shrink as the plan is zoomed in,
so they keep a constant size on screen.
"""

from abc import ABC, abstractmethod
from collections import namedtuple
import math

from PyQt5.QtCore import Qt

from constants import (
	ROTATION_HANDLE_OFFSET_FT, HANDLE_HIT_RADIUS_FT, ANNOTATION_HIT_RADIUS_FT,
	WALL_KEY_HINT, ZONE_HANDLE_NAMES,
)
from models.transform import Vec2
from utils.geometry import rect_from_fixture, zone_rect


HandleHit = namedtuple('HandleHit', ['kind', 'target_id', 'name'])


class Handle(ABC):
	"""Abstract base class for plan handles."""

	kind = None

	def __init__(self, name, radius_ft=HANDLE_HIT_RADIUS_FT):
		self.name = name
		self.radius_ft = radius_ft

	@abstractmethod
	def position(self, target, catalog):
		"""Handle position in feet for target, or None if it has no such handle"""
		pass

	@abstractmethod
	def get_cursor(self):
		"""Qt cursor shape shown when hovering this handle"""
		pass

	def hit_test(self, point, target, catalog, zoom=1.0):
		"""Test if a point in feet hits this handle.

		Args:
			point: Vec2 pointer position in feet
			target: Fixture, Zone or Annotation the handle belongs to
			catalog: Catalog for fixture footprints
			zoom: Current viewport scale
		"""
		pos = self.position(target, catalog)
		if pos is None:
			return False
		return math.hypot(point.x - pos.x, point.y - pos.y) <= self.radius_ft / max(zoom, 1e-9)


class RotationHandle(Handle):
	"""Round handle above the top edge of the selected fixture; a click turns it 90 degrees."""

	kind = 'rotate'

	def __init__(self, offset_ft=ROTATION_HANDLE_OFFSET_FT, radius_ft=HANDLE_HIT_RADIUS_FT):
		super().__init__('rotate', radius_ft)
		self.offset_ft = offset_ft

	def position(self, fixture, catalog):
		rect = rect_from_fixture(fixture, catalog.get(fixture.catalog_key))
		return Vec2(rect.x + rect.width / 2, rect.y - self.offset_ft)

	def get_cursor(self):
		return Qt.PointingHandCursor


class WallEndHandle(Handle):
	"""Endpoint of a wall fixture; 'start' is the left/top end, 'end' the right/bottom end."""

	kind = 'wall_end'

	def position(self, fixture, catalog):
		if WALL_KEY_HINT not in fixture.catalog_key.lower():
			return None
		rect = rect_from_fixture(fixture, catalog.get(fixture.catalog_key))
		if rect.width > rect.height:
			x = rect.x if self.name == 'start' else rect.right
			return Vec2(x, rect.y + rect.height / 2)
		y = rect.y if self.name == 'start' else rect.bottom
		return Vec2(rect.x + rect.width / 2, y)

	def get_cursor(self):
		return Qt.SizeAllCursor


class ZoneResizeHandle(Handle):
	"""Corner or edge handle of a zone: n, s, e, w, ne, nw, se, sw."""

	kind = 'zone_resize'

	CURSORS = {
		'n': Qt.SizeVerCursor, 's': Qt.SizeVerCursor,
		'e': Qt.SizeHorCursor, 'w': Qt.SizeHorCursor,
		'nw': Qt.SizeFDiagCursor, 'se': Qt.SizeFDiagCursor,
		'ne': Qt.SizeBDiagCursor, 'sw': Qt.SizeBDiagCursor,
	}

	def position(self, zone, catalog):
		rect = zone_rect(zone)
		x = rect.x + rect.width / 2
		y = rect.y + rect.height / 2
		if 'w' in self.name:
			x = rect.x
		if 'e' in self.name:
			x = rect.right
		if 'n' in self.name:
			y = rect.y
		if 's' in self.name:
			y = rect.bottom
		return Vec2(x, y)

	def get_cursor(self):
		return self.CURSORS[self.name]


class AnnotationHandle(Handle):
	"""Anchor point or label of an annotation."""

	kind = 'annotation'

	def __init__(self, name, radius_ft=ANNOTATION_HIT_RADIUS_FT):
		super().__init__(name, radius_ft)

	def position(self, annotation, catalog):
		return annotation.anchor_ft if self.name == 'anchor' else annotation.label_ft

	def get_cursor(self):
		return Qt.OpenHandCursor


ROTATION_HANDLE = RotationHandle()
WALL_END_HANDLES = [WallEndHandle('start'), WallEndHandle('end')]
# Corners before edges so a corner wins where both are in reach
ZONE_RESIZE_HANDLES = [ZoneResizeHandle(name) for name in sorted(ZONE_HANDLE_NAMES, key=len, reverse=True)]
ANNOTATION_HANDLES = [AnnotationHandle('label'), AnnotationHandle('anchor')]


def handle_at(state, catalog, point):
	"""Find which handle (if any) is under a pointer position in feet.

	Priority order: annotation points, then (outside zone edit mode) the
	primary fixture's wall ends and rotation handle, then (in zone edit mode)
	the selected zone's resize handles. Locked fixtures show no handles.

	Returns:
		HandleHit or None
	"""
	zoom = state.viewport.scale
	design = state.design

	for annotation in reversed(design.annotations):
		for handle in ANNOTATION_HANDLES:
			if handle.hit_test(point, annotation, catalog, zoom):
				return HandleHit(handle.kind, annotation.id, handle.name)

	if state.zone_edit_mode:
		zone = design.zone(state.selected_zone_id)
		if zone is not None:
			for handle in ZONE_RESIZE_HANDLES:
				if handle.hit_test(point, zone, catalog, zoom):
					return HandleHit(handle.kind, zone.id, handle.name)
		return None

	fixture = design.fixture(state.primary_selected_id)
	if fixture is None or fixture.locked:
		return None
	for handle in WALL_END_HANDLES:
		if handle.hit_test(point, fixture, catalog, zoom):
			return HandleHit(handle.kind, fixture.id, handle.name)
	if ROTATION_HANDLE.hit_test(point, fixture, catalog, zoom):
		return HandleHit(ROTATION_HANDLE.kind, fixture.id, ROTATION_HANDLE.name)
	return None


def cursor_for(hit):
	"""Cursor for a HandleHit, or the arrow cursor"""
	if hit is None:
		return Qt.ArrowCursor
	if hit.kind == ROTATION_HANDLE.kind:
		return ROTATION_HANDLE.get_cursor()
	if hit.kind == 'wall_end':
		return WALL_END_HANDLES[0].get_cursor()
	if hit.kind == 'zone_resize':
		return ZoneResizeHandle.CURSORS[hit.name]
	return ANNOTATION_HANDLES[0].get_cursor()
