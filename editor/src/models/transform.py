"""Coordinate data structures shared by the pipeline, geometry and reducer."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Vec2:
    """2D vector for coordinate pairs.

    Used for any x/y coordinate pair across different spaces:
    - Device pixels (widget-local, top-left origin)
    - Viewbox units (logical plan surface)
    - World units (viewbox with pan/zoom removed)
    - Design feet
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = vec2"""
        return iter((self.x, self.y))

    def __add__(self, other):
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other):
        return Vec2(self.x - other.x, self.y - other.y)

    def length(self) -> float:
        return (self.x * self.x + self.y * self.y) ** 0.5


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in feet (x, y is the top-left corner)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, point: Vec2) -> bool:
        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    @classmethod
    def from_points(cls, a: Vec2, b: Vec2) -> 'Rect':
        """Normalized rectangle spanned by two corner points."""
        x0, x1 = sorted((a.x, b.x))
        y0, y1 = sorted((a.y, b.y))
        return cls(x0, y0, x1 - x0, y1 - y0)
