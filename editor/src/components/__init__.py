"""UI components for the Fixture Layout Editor

- handles: hit-testing for the rotation, wall-end, zone-resize and annotation handles
- plan_canvas: Qt input backend feeding the tool controller and key commands

Direct imports for convenience:
"""

from .handles import HandleHit, handle_at, cursor_for
from .plan_canvas import PlanCanvasWidget

__all__ = [
    'HandleHit',
    'handle_at',
    'cursor_for',
    'PlanCanvasWidget',
]
