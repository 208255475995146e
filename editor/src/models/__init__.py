"""
Fixture Layout Editor - Data Models

This module contains the document model (Design and its parts), the catalog
lookup and the editor state consumed by the reducer and the renderer.
This is the MODEL in MVC architecture.
"""

from .transform import Vec2, Rect
from .design import Shell, Zone, ZoneConstraints, Fixture, Annotation, Design, new_id, empty_design
from .catalog import Catalog, CatalogItem, entry_to_item, default_catalog
from .editor_state import (
    Tool, Viewport, PendingPlacement, EditorState, initial_state,
    DragState, ZoneDragState, ZoneResizeState, MarqueeState,
    WallDrawState, WallLengthDragState, AnnotationDragState,
)

__all__ = [
    'Vec2', 'Rect',
    'Shell', 'Zone', 'ZoneConstraints', 'Fixture', 'Annotation', 'Design', 'new_id', 'empty_design',
    'Catalog', 'CatalogItem', 'entry_to_item', 'default_catalog',
    'Tool', 'Viewport', 'PendingPlacement', 'EditorState', 'initial_state',
    'DragState', 'ZoneDragState', 'ZoneResizeState', 'MarqueeState',
    'WallDrawState', 'WallLengthDragState', 'AnnotationDragState',
]
