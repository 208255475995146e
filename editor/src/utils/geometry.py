"""
Fixture Layout Editor - Geometry Utilities

Pure, stateless helpers used by the reducer, the tool controller and the
renderer. rect_from_fixture() is the only place that turns a stored fixture
(anchor position, rotation, overrides) into a physical rectangle; everything
else that needs "where is this fixture" goes through it.

All rectangles are axis-aligned and in feet.
"""
import math
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from constants import (
    ALIGN_THRESHOLD_FT, FALLBACK_FOOTPRINT_FT, MIN_FIXTURE_OVERRIDE_FT,
    WALL_KEY_HINT, DOOR_KEY_HINT,
)
from models.transform import Rect, Vec2


@dataclass(frozen=True)
class Guide:
    """Alignment guide line; value is an X (vertical) or Y (horizontal) in feet"""
    orientation: str
    value: float


def snap(value, increment):
    """Round value to the nearest multiple of increment.

    Ties (exactly half an increment) round away from zero, so snap(0.125, 0.25)
    is 0.25 and snap(-0.125, 0.25) is -0.25. A non-positive increment disables
    snapping.
    """
    if increment <= 0:
        return value
    steps = value / increment
    rounded = math.floor(abs(steps) + 0.5)
    return round(math.copysign(rounded, steps) * increment, 9)


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


# ======================================================================
# FIXTURE RECTANGLES
# ======================================================================

def footprint_of(fixture, item):
    """Resolve (length, width) of a fixture including size override properties"""
    if item is None:
        length = width = FALLBACK_FOOTPRINT_FT
    else:
        length, width = item.footprint_length_ft, item.footprint_width_ft
    props = fixture.properties or {}
    override = props.get('lengthOverrideFt')
    if isinstance(override, (int, float)) and not isinstance(override, bool):
        length = max(float(override), MIN_FIXTURE_OVERRIDE_FT)
    override = props.get('widthOverrideFt')
    if isinstance(override, (int, float)) and not isinstance(override, bool):
        width = max(float(override), MIN_FIXTURE_OVERRIDE_FT)
    return length, width


def rect_size(fixture, item, rotation_deg=None):
    """(width, height) of the fixture's plan rectangle; 90/270 swap the axes"""
    length, width = footprint_of(fixture, item)
    rotation = fixture.rotation_deg if rotation_deg is None else rotation_deg
    if rotation in (90, 270):
        return length, width
    return width, length


def rect_from_fixture(fixture, item) -> Rect:
    """Convert a fixture + catalog item into its rectangle in feet.

    Args:
        fixture: Fixture with anchor position, rotation and optional overrides
        item: CatalogItem (None falls back to a 1ft square centered on the anchor)

    Returns:
        Rect with x, y at the top-left corner
    """
    width, height = rect_size(fixture, item)
    anchor = item.footprint_anchor if item is not None else 'center'
    if anchor == 'center':
        return Rect(fixture.x_ft - width / 2, fixture.y_ft - height / 2, width, height)
    # front-left / back-left: the stored position is already the corner
    return Rect(fixture.x_ft, fixture.y_ft, width, height)


def clamp_to_shell(x_ft, y_ft, width, height, shell, anchor='center'):
    """Clamp an anchor position so the whole rectangle stays inside the shell"""
    if anchor == 'center':
        half_w, half_h = width / 2, height / 2
        return (clamp(x_ft, half_w, shell.length_ft - half_w),
                clamp(y_ft, half_h, shell.width_ft - half_h))
    return (clamp(x_ft, 0.0, shell.length_ft - width),
            clamp(y_ft, 0.0, shell.width_ft - height))


def rects_overlap(a: Rect, b: Rect, clearance=0.0) -> bool:
    return not (a.right + clearance <= b.x or b.right + clearance <= a.x or
                a.bottom + clearance <= b.y or b.bottom + clearance <= a.y)


def is_inside_shell(shell, rect: Rect) -> bool:
    return rect.x >= 0 and rect.y >= 0 and rect.right <= shell.length_ft and rect.bottom <= shell.width_ft


def zone_rect(zone) -> Rect:
    return Rect(zone.x_ft, zone.y_ft, zone.length_ft, zone.width_ft)


def is_inside_zone(zone, rect: Rect) -> bool:
    z = zone_rect(zone)
    return rect.x >= z.x and rect.y >= z.y and rect.right <= z.right and rect.bottom <= z.bottom


def zones_containing_rect(zones, rect: Rect):
    """Zones the rectangle overlaps, even partially"""
    return [zone for zone in zones if rects_overlap(zone_rect(zone), rect)]


# ======================================================================
# CLEARANCES
# ======================================================================

def rotate_clearance(clearance, rotation_deg):
    """Map object-relative clearances (front/back/left/right) to plan sides.

    At 0 degrees the fixture front faces +Y (down on the plan); rotation is
    clockwise.

    Returns:
        dict with top, bottom, left, right in feet
    """
    c = {side: float((clearance or {}).get(side) or 0.0) for side in ('front', 'back', 'left', 'right')}
    if rotation_deg == 90:
        return {'top': c['left'], 'bottom': c['right'], 'left': c['front'], 'right': c['back']}
    if rotation_deg == 180:
        return {'top': c['front'], 'bottom': c['back'], 'left': c['right'], 'right': c['left']}
    if rotation_deg == 270:
        return {'top': c['right'], 'bottom': c['left'], 'left': c['back'], 'right': c['front']}
    return {'top': c['back'], 'bottom': c['front'], 'left': c['left'], 'right': c['right']}


def clearance_rect(fixture, item) -> Optional[Rect]:
    """Fixture rectangle grown by its catalog minimum clearance, or None"""
    if item is None or not item.min_clearance_ft:
        return None
    rect = rect_from_fixture(fixture, item)
    c = rotate_clearance(item.min_clearance_ft, fixture.rotation_deg)
    return Rect(rect.x - c['left'], rect.y - c['top'],
                rect.width + c['left'] + c['right'],
                rect.height + c['top'] + c['bottom'])


# ======================================================================
# COLLISIONS / GUIDES / SELECTION
# ======================================================================

def _collision_exempt(key_a, key_b):
    a, b = key_a.lower(), key_b.lower()
    wall_a, wall_b = WALL_KEY_HINT in a, WALL_KEY_HINT in b
    if wall_a and wall_b:
        return True
    return (DOOR_KEY_HINT in a and wall_b) or (wall_a and DOOR_KEY_HINT in b)


def collisions(fixtures, catalog) -> List[Rect]:
    """Overlap rectangles for every colliding fixture pair.

    Pairs on different mount layers, wall/wall pairs and door/wall pairs are
    exempt. Fixtures whose catalog key cannot be resolved are skipped.
    Results are ordered by (i, j) in the input order.
    """
    placed = [(f, catalog.get(f.catalog_key)) for f in fixtures]
    placed = [(f, item) for f, item in placed if item is not None]
    n = len(placed)
    if n < 2:
        return []

    bounds = np.array([[r.x, r.y, r.right, r.bottom]
                       for r in (rect_from_fixture(f, item) for f, item in placed)], dtype=float)
    left = np.maximum(bounds[:, None, 0], bounds[None, :, 0])
    top = np.maximum(bounds[:, None, 1], bounds[None, :, 1])
    width = np.minimum(bounds[:, None, 2], bounds[None, :, 2]) - left
    height = np.minimum(bounds[:, None, 3], bounds[None, :, 3]) - top

    mounts = np.array([item.mount for _, item in placed])
    candidates = np.triu(np.ones((n, n), dtype=bool), k=1)
    candidates &= mounts[:, None] == mounts[None, :]
    candidates &= (width > 0) & (height > 0)

    overlaps = []
    for i, j in zip(*np.nonzero(candidates)):
        if _collision_exempt(placed[i][0].catalog_key, placed[j][0].catalog_key):
            continue
        overlaps.append(Rect(float(left[i, j]), float(top[i, j]),
                             float(width[i, j]), float(height[i, j])))
    return overlaps


def alignment_guides(fixtures, selected_ids, catalog) -> List[Guide]:
    """Guides for edges of other fixtures within ALIGN_THRESHOLD_FT of the selection.

    Only computed when exactly one existing fixture is selected.
    """
    by_id = {f.id: f for f in fixtures}
    live = [fid for fid in selected_ids if fid in by_id]
    if len(live) != 1:
        return []
    selected = by_id[live[0]]
    item = catalog.get(selected.catalog_key)
    if item is None:
        return []
    target = rect_from_fixture(selected, item)

    guides = []
    for candidate in fixtures:
        if candidate.id == selected.id:
            continue
        candidate_item = catalog.get(candidate.catalog_key)
        if candidate_item is None:
            continue
        rect = rect_from_fixture(candidate, candidate_item)
        if abs(rect.x - target.x) <= ALIGN_THRESHOLD_FT:
            guides.append(Guide('vertical', rect.x))
        if abs(rect.right - target.right) <= ALIGN_THRESHOLD_FT:
            guides.append(Guide('vertical', rect.right))
        if abs(rect.y - target.y) <= ALIGN_THRESHOLD_FT:
            guides.append(Guide('horizontal', rect.y))
        if abs(rect.bottom - target.bottom) <= ALIGN_THRESHOLD_FT:
            guides.append(Guide('horizontal', rect.bottom))
    return guides


def selection_bounds(fixtures, selected_ids, catalog) -> Optional[Rect]:
    """Bounding box of all selected fixtures, ignoring ids that no longer exist"""
    wanted = set(selected_ids)
    rects = [rect_from_fixture(f, catalog.get(f.catalog_key))
             for f in fixtures if f.id in wanted and catalog.get(f.catalog_key) is not None]
    if not rects:
        return None
    min_x = min(r.x for r in rects)
    min_y = min(r.y for r in rects)
    max_x = max(r.right for r in rects)
    max_y = max(r.bottom for r in rects)
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)


def fixtures_in_rect(fixtures, rect: Rect, catalog):
    """Ids of fixtures whose rectangle intersects rect (touching edges do not count)"""
    return [f.id for f in fixtures
            if rects_overlap(rect_from_fixture(f, catalog.get(f.catalog_key)), rect)]


def fixture_at_point(fixtures, point: Vec2, catalog):
    """Topmost fixture (last drawn) whose rectangle contains point, or None"""
    for fixture in reversed(list(fixtures)):
        if rect_from_fixture(fixture, catalog.get(fixture.catalog_key)).contains(point):
            return fixture
    return None


def sort_by_distance(fixtures, origin: Vec2):
    """Fixtures ordered by anchor distance from origin (stable for ties)"""
    return sorted(fixtures, key=lambda f: math.hypot(f.x_ft - origin.x, f.y_ft - origin.y))


def sort_by_position(fixtures):
    """Reading order: rows (1ft tolerance) top to bottom, then left to right"""
    return sorted(fixtures, key=lambda f: (math.floor(f.y_ft), f.x_ft))


# ======================================================================
# OVERLAYS
# ======================================================================

@dataclass(frozen=True)
class Overlays:
    """Derived geometry the renderer paints on top of the plan"""
    selection_bounds: Optional[Rect]
    guides: List[Guide]
    collisions: List[Rect]
    measure_distance_ft: Optional[float] = None


def overlays(state, catalog) -> Overlays:
    """Bundle selection bounds, alignment guides, collisions and the measured distance"""
    fixtures = state.design.fixtures
    distance = None
    if len(state.measure_points) == 2:
        a, b = state.measure_points
        distance = math.hypot(b.x - a.x, b.y - a.y)
    return Overlays(
        selection_bounds=selection_bounds(fixtures, state.selected_ids, catalog),
        guides=alignment_guides(fixtures, state.selected_ids, catalog),
        collisions=collisions(fixtures, catalog),
        measure_distance_ft=distance,
    )
