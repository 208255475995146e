"""
Fixture Layout Editor - Editor State

Transient editing state owned by the editor reducer: the current design,
selection, viewport, undo/redo stacks, the active tool and the single
in-progress pointer interaction.

The seven interaction kinds share one `interaction` slot, so at most one of
them can be active; the named properties (drag, zone_drag, ...) are read-only
views of that slot.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from constants import DEFAULT_SNAP_INCREMENT, DEFAULT_ZOOM
from models.design import Design
from models.transform import Vec2


class Tool(str, Enum):
    SELECT = 'select'
    PAN = 'pan'
    WALL = 'wall'
    MEASURE = 'measure'
    ANNOTATE = 'annotate'


@dataclass(frozen=True)
class Viewport:
    """Pan/zoom applied to the whole plan: viewbox = world * scale + offset"""
    scale: float = DEFAULT_ZOOM
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class PendingPlacement:
    """Catalog item waiting to be dropped on the plan by the next click"""
    catalog_key: str
    rotation_deg: int = 0


# ======================================================================
# INTERACTIONS
# ======================================================================
# Pointer positions are in world units unless noted. `origin` is the design as
# it was when the gesture started; cancelling restores it and committing pushes
# it onto the history stack.

@dataclass(frozen=True)
class DragState:
    kind: ClassVar[str] = 'drag'
    fixture_id: str
    start: Vec2
    pointer_start: Vec2
    width: float
    height: float
    anchor: str
    origin: Design


@dataclass(frozen=True)
class ZoneDragState:
    kind: ClassVar[str] = 'zone_drag'
    zone_id: str
    start: Vec2
    pointer_start: Vec2
    origin: Design


@dataclass(frozen=True)
class ZoneResizeState:
    kind: ClassVar[str] = 'zone_resize'
    zone_id: str
    handle: str
    start_x: float
    start_y: float
    start_length: float
    start_width: float
    pointer_start: Vec2
    origin: Design


@dataclass(frozen=True)
class MarqueeState:
    """Rubber-band selection; both corners in feet"""
    kind: ClassVar[str] = 'marquee'
    origin_ft: Vec2
    current_ft: Vec2
    append: bool = False


@dataclass(frozen=True)
class WallDrawState:
    """Wall stroke in progress; points in feet, already snapped"""
    kind: ClassVar[str] = 'wall_draw'
    start_ft: Vec2
    current_ft: Optional[Vec2] = None


@dataclass(frozen=True)
class WallLengthDragState:
    kind: ClassVar[str] = 'wall_length_drag'
    fixture_id: str
    end: str                    # 'start' | 'end'
    initial_length: float
    initial: Vec2
    horizontal: bool            # wall extends left-right on screen
    pointer_start: Vec2
    origin: Design


@dataclass(frozen=True)
class AnnotationDragState:
    """Anchor or label drag; pointer positions are in viewbox units"""
    kind: ClassVar[str] = 'annotation_drag'
    annotation_id: str
    target: str                 # 'anchor' | 'label'
    start: Vec2
    pointer_start: Vec2
    origin: Design


Interaction = Union[DragState, ZoneDragState, ZoneResizeState, MarqueeState,
                    WallDrawState, WallLengthDragState, AnnotationDragState]


# ======================================================================
# EDITOR STATE
# ======================================================================

@dataclass(frozen=True)
class EditorState:
    design: Design
    selected_ids: Tuple[str, ...] = ()
    primary_selected_id: Optional[str] = None
    selected_zone_id: Optional[str] = None
    selected_annotation_id: Optional[str] = None
    viewport: Viewport = Viewport()
    snap_increment: float = DEFAULT_SNAP_INCREMENT
    history: Tuple[Design, ...] = ()
    future: Tuple[Design, ...] = ()
    interaction: Optional[Interaction] = None
    tool: Tool = Tool.SELECT
    zone_edit_mode: bool = False
    measure_points: Tuple[Vec2, ...] = ()
    pending_placement: Optional[PendingPlacement] = None

    def _interaction_of(self, cls):
        return self.interaction if isinstance(self.interaction, cls) else None

    @property
    def drag(self) -> Optional[DragState]:
        return self._interaction_of(DragState)

    @property
    def zone_drag(self) -> Optional[ZoneDragState]:
        return self._interaction_of(ZoneDragState)

    @property
    def zone_resize(self) -> Optional[ZoneResizeState]:
        return self._interaction_of(ZoneResizeState)

    @property
    def marquee(self) -> Optional[MarqueeState]:
        return self._interaction_of(MarqueeState)

    @property
    def wall_draw(self) -> Optional[WallDrawState]:
        return self._interaction_of(WallDrawState)

    @property
    def wall_length_drag(self) -> Optional[WallLengthDragState]:
        return self._interaction_of(WallLengthDragState)

    @property
    def annotation_drag(self) -> Optional[AnnotationDragState]:
        return self._interaction_of(AnnotationDragState)

    @property
    def can_undo(self) -> bool:
        return len(self.history) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.future) > 0

    def live_selected_ids(self):
        """Selected ids that still reference fixtures in the design"""
        existing = set(self.design.fixture_ids())
        return [fid for fid in self.selected_ids if fid in existing]

    def selected_fixtures(self):
        return [f for f in (self.design.fixture(fid) for fid in self.selected_ids) if f is not None]


def initial_state(design: Design, snap_increment=DEFAULT_SNAP_INCREMENT) -> EditorState:
    return EditorState(design=design, snap_increment=snap_increment)
