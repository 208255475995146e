"""
Tests for the device -> viewbox -> world -> feet pipeline.

Covers:
- Viewbox size of a shell
- Letterboxing when the surface aspect ratio differs from the plan's
- Pixel ratio and surface offset correction
- Unmeasurable surfaces returning None at every stage that needs them
- Round trips through the full chain for arbitrary viewports
"""
import pytest

from constants import BASE_SCALE, CANVAS_PADDING
from models.design import empty_design
from models.editor_state import Viewport
from utils.coordinate_transforms import (
    SurfaceGeometry, viewbox_size, device_to_viewbox, viewbox_to_device, device_delta_to_viewbox,
    viewbox_to_world, world_to_viewbox, world_to_feet, feet_to_world, device_to_feet,
    feet_to_device, device_distance_to_feet,
)


@pytest.fixture
def viewbox():
    return viewbox_size(empty_design().shell)


# ══════════════════════════════════════════════════════════════════════════
# Stage 1: device <-> viewbox
# ══════════════════════════════════════════════════════════════════════════

class TestDeviceToViewbox:

    def test_viewbox_size_includes_padding(self, viewbox):
        assert viewbox == (20 * BASE_SCALE + 2 * CANVAS_PADDING, 8 * BASE_SCALE + 2 * CANVAS_PADDING)

    def test_exact_fit_is_identity(self, surface, viewbox):
        assert device_to_viewbox(100, 50, surface, viewbox) == pytest.approx((100, 50))

    def test_surface_twice_as_large_halves_units(self, viewbox):
        surface = SurfaceGeometry(0, 0, 1600, 832)
        assert device_to_viewbox(400, 200, surface, viewbox) == pytest.approx((200, 100))

    def test_tall_surface_letterboxes_vertically(self, viewbox):
        # Width limits the scale (1.0); the 416 spare pixels split above and below
        surface = SurfaceGeometry(0, 0, 800, 832)
        assert device_to_viewbox(0, 208, surface, viewbox) == pytest.approx((0, 0))
        assert device_to_viewbox(800, 624, surface, viewbox) == pytest.approx(viewbox)

    def test_wide_surface_letterboxes_horizontally(self, viewbox):
        surface = SurfaceGeometry(0, 0, 1000, 416)
        assert device_to_viewbox(100, 0, surface, viewbox) == pytest.approx((0, 0))

    def test_surface_offset_and_pixel_ratio(self, viewbox):
        surface = SurfaceGeometry(10, 20, 800, 416, pixel_ratio=2.0)
        # Raw device coordinates are in physical pixels
        assert device_to_viewbox(2 * (10 + 100), 2 * (20 + 50), surface, viewbox) == pytest.approx((100, 50))

    def test_inverse(self, viewbox):
        surface = SurfaceGeometry(5, 7, 640, 900, pixel_ratio=1.5)
        vx, vy = device_to_viewbox(321, 456, surface, viewbox)
        assert viewbox_to_device(vx, vy, surface, viewbox) == pytest.approx((321, 456))

    def test_delta_ignores_inset(self, viewbox):
        surface = SurfaceGeometry(50, 50, 1600, 2000)
        assert device_delta_to_viewbox(20, -10, surface, viewbox) == pytest.approx((10, -5))


class TestUnmeasurableSurface:

    @pytest.mark.parametrize("surface", [
        SurfaceGeometry(0, 0, 0, 0),
        SurfaceGeometry(0, 0, 800, 0),
        SurfaceGeometry(0, 0, 800, 416, pixel_ratio=0),
    ])
    def test_every_stage_returns_none(self, surface, viewbox):
        assert not surface.measurable
        assert device_to_viewbox(1, 1, surface, viewbox) is None
        assert viewbox_to_device(1, 1, surface, viewbox) is None
        assert device_delta_to_viewbox(1, 1, surface, viewbox) is None
        assert device_to_feet(1, 1, surface, viewbox, Viewport()) is None
        assert feet_to_device(1, 1, surface, viewbox, Viewport()) is None
        assert device_distance_to_feet(10, surface, viewbox, Viewport()) is None

    def test_empty_viewbox(self, surface):
        assert device_to_viewbox(1, 1, surface, (0, 416)) is None


# ══════════════════════════════════════════════════════════════════════════
# Stages 2 and 3
# ══════════════════════════════════════════════════════════════════════════

class TestViewportAndFeet:

    def test_viewbox_to_world_removes_pan_zoom(self):
        viewport = Viewport(scale=2.0, offset_x=100, offset_y=-40)
        assert viewbox_to_world(300, 160, viewport) == pytest.approx((100, 100))
        assert world_to_viewbox(100, 100, viewport) == pytest.approx((300, 160))

    def test_padding_is_origin(self):
        assert world_to_feet(CANVAS_PADDING, CANVAS_PADDING) == (0, 0)
        assert feet_to_world(1, 2) == (CANVAS_PADDING + BASE_SCALE, CANVAS_PADDING + 2 * BASE_SCALE)

    def test_device_to_feet_at_identity(self, surface, viewbox):
        assert device_to_feet(5 * 32 + 80, 4 * 32 + 80, surface, viewbox, Viewport()) == pytest.approx((5, 4))

    def test_device_distance_to_feet_accounts_for_zoom(self, surface, viewbox):
        assert device_distance_to_feet(32, surface, viewbox, Viewport()) == pytest.approx(1.0)
        assert device_distance_to_feet(32, surface, viewbox, Viewport(scale=2.0)) == pytest.approx(0.5)


# ══════════════════════════════════════════════════════════════════════════
# Round trips
# ══════════════════════════════════════════════════════════════════════════

class TestRoundTrip:

    @pytest.mark.parametrize("scale", [0.25, 0.6, 1.0, 2.5, 4.0])
    @pytest.mark.parametrize("offset", [(0, 0), (-350.5, 120.25), (800, -999)])
    def test_device_feet_device(self, viewbox, scale, offset):
        surface = SurfaceGeometry(12, 34, 1024, 700, pixel_ratio=1.25)
        viewport = Viewport(scale=scale, offset_x=offset[0], offset_y=offset[1])
        for point in [(15, 42.5), (700, 333), (1280, 875)]:
            feet = device_to_feet(*point, surface, viewbox, viewport)
            assert feet_to_device(*feet, surface, viewbox, viewport) == pytest.approx(point)

    def test_backends_agree(self, viewbox):
        # A backend reporting physical pixels and one reporting logical pixels
        # land on the same feet for the same physical position
        logical = SurfaceGeometry(0, 0, 800, 600, pixel_ratio=1.0)
        physical = SurfaceGeometry(0, 0, 800, 600, pixel_ratio=2.0)
        viewport = Viewport(scale=1.5, offset_x=-20, offset_y=10)
        assert device_to_feet(300, 200, logical, viewbox, viewport) == pytest.approx(
            device_to_feet(600, 400, physical, viewbox, viewport))
