"""Coordinate transformation utilities for the plan canvas.

Provides conversion between the coordinate spaces a pointer position passes
through on its way into the design:
- Device pixels (input backend, widget-local, Y-down)
- Viewbox units (logical plan surface: shell at BASE_SCALE plus padding)
- World units (viewbox with the pan/zoom viewport removed)
- Design feet

Stage 1 is derived only from the measured bounding box of the drawing surface,
so mouse, touch and gesture backends that report device pixels all land on the
same feet. Every forward stage has an exact inverse. Snapping is not applied
here.
"""
from dataclasses import dataclass

from constants import BASE_SCALE, CANVAS_PADDING


@dataclass(frozen=True)
class SurfaceGeometry:
	"""Measured bounding box of the drawing surface in device pixels.

	pixel_ratio converts raw device coordinates into the units the box was
	measured in (1.0 when the backend already reports logical pixels).
	"""
	left: float
	top: float
	width: float
	height: float
	pixel_ratio: float = 1.0

	@property
	def measurable(self):
		return self.width > 0 and self.height > 0 and self.pixel_ratio > 0


def viewbox_size(shell):
	"""Logical size of the plan surface for a shell.
	
	Args:
		shell: Shell with length_ft (X) and width_ft (Y)
		
	Returns:
		(width, height): Viewbox units
	"""
	return (shell.length_ft * BASE_SCALE + CANVAS_PADDING * 2,
			shell.width_ft * BASE_SCALE + CANVAS_PADDING * 2)


def _letterbox(surface, viewbox):
	"""Uniform fit of the viewbox inside the surface, content centered.
	
	Returns:
		(scale, inset_x, inset_y) or None if either box has no area
	"""
	vb_w, vb_h = viewbox
	if not surface.measurable or vb_w <= 0 or vb_h <= 0:
		return None
	scale = min(surface.width / vb_w, surface.height / vb_h)
	inset_x = (surface.width - vb_w * scale) / 2.0
	inset_y = (surface.height - vb_h * scale) / 2.0
	return scale, inset_x, inset_y


# ======================================================================
# STAGE 1: DEVICE <-> VIEWBOX
# ======================================================================

def device_to_viewbox(px, py, surface, viewbox):
	"""Convert a device pointer position to viewbox units.
	
	Args:
		px, py: Device pixel coordinates
		surface: SurfaceGeometry of the drawing surface
		viewbox: (width, height) of the logical plan surface
		
	Returns:
		(vx, vy), or None if the surface is not measurable yet
	"""
	fit = _letterbox(surface, viewbox)
	if fit is None:
		return None
	scale, inset_x, inset_y = fit
	local_x = px / surface.pixel_ratio - surface.left - inset_x
	local_y = py / surface.pixel_ratio - surface.top - inset_y
	return local_x / scale, local_y / scale


def viewbox_to_device(vx, vy, surface, viewbox):
	"""Inverse of device_to_viewbox; None if the surface is not measurable"""
	fit = _letterbox(surface, viewbox)
	if fit is None:
		return None
	scale, inset_x, inset_y = fit
	px = (vx * scale + inset_x + surface.left) * surface.pixel_ratio
	py = (vy * scale + inset_y + surface.top) * surface.pixel_ratio
	return px, py


def device_delta_to_viewbox(dx, dy, surface, viewbox):
	"""Convert a device-pixel displacement (pan, pinch drift) to viewbox units"""
	fit = _letterbox(surface, viewbox)
	if fit is None:
		return None
	scale = fit[0]
	return dx / surface.pixel_ratio / scale, dy / surface.pixel_ratio / scale


# ======================================================================
# STAGE 2: VIEWBOX <-> WORLD (pan/zoom)
# ======================================================================

def viewbox_to_world(vx, vy, viewport):
	"""Remove the viewport transform: world = (viewbox - offset) / scale"""
	return (vx - viewport.offset_x) / viewport.scale, (vy - viewport.offset_y) / viewport.scale


def world_to_viewbox(wx, wy, viewport):
	return wx * viewport.scale + viewport.offset_x, wy * viewport.scale + viewport.offset_y


# ======================================================================
# STAGE 3: WORLD <-> FEET
# ======================================================================

def world_to_feet(wx, wy):
	"""Strip canvas padding and convert pixels to feet"""
	return (wx - CANVAS_PADDING) / BASE_SCALE, (wy - CANVAS_PADDING) / BASE_SCALE


def feet_to_world(x_ft, y_ft):
	return x_ft * BASE_SCALE + CANVAS_PADDING, y_ft * BASE_SCALE + CANVAS_PADDING


# ======================================================================
# COMPOSITES
# ======================================================================

def device_to_world(px, py, surface, viewbox, viewport):
	"""Device pixels to world units; None if the surface is not measurable"""
	vb = device_to_viewbox(px, py, surface, viewbox)
	if vb is None:
		return None
	return viewbox_to_world(vb[0], vb[1], viewport)


def device_to_feet(px, py, surface, viewbox, viewport):
	"""Full forward chain: device pixels to design feet.
	
	Args:
		px, py: Device pixel coordinates
		surface: SurfaceGeometry of the drawing surface
		viewbox: (width, height) from viewbox_size()
		viewport: Current Viewport (scale, offset_x, offset_y)
		
	Returns:
		(x_ft, y_ft), or None if the surface is not measurable
	"""
	world = device_to_world(px, py, surface, viewbox, viewport)
	if world is None:
		return None
	return world_to_feet(*world)


def feet_to_viewbox(x_ft, y_ft, viewport):
	return world_to_viewbox(*feet_to_world(x_ft, y_ft), viewport)


def feet_to_device(x_ft, y_ft, surface, viewbox, viewport):
	"""Full inverse chain: design feet to device pixels (None if not measurable)"""
	vx, vy = feet_to_viewbox(x_ft, y_ft, viewport)
	return viewbox_to_device(vx, vy, surface, viewbox)


def device_distance_to_feet(distance_px, surface, viewbox, viewport):
	"""Length of a device-pixel distance in feet at the current zoom"""
	fit = _letterbox(surface, viewbox)
	if fit is None:
		return None
	return distance_px / surface.pixel_ratio / fit[0] / viewport.scale / BASE_SCALE
