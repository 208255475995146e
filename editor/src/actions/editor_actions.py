"""
Editor actions - the closed set of messages accepted by EditorReducer.dispatch

Every action is a frozen dataclass with a `type` tag. Pointer positions are in
world units (pixels with pan/zoom removed) except for annotation drags, which
carry viewbox units; plain positions (x_ft, points named *_ft or Vec2 fields of
wall/marquee/measure actions) are in feet.
"""
from dataclasses import dataclass, field, fields
from typing import ClassVar, Dict, Optional, Tuple

from constants import BASE_SCALE
from models.design import Design
from models.transform import Vec2


# ======================================================================
# SELECTION
# ======================================================================

@dataclass(frozen=True)
class SelectFixture:
    type: ClassVar[str] = 'SELECT_FIXTURE'
    id: Optional[str] = None
    append: bool = False


@dataclass(frozen=True)
class SelectFixtures:
    type: ClassVar[str] = 'SELECT_FIXTURES'
    ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ToggleFixtureSelection:
    type: ClassVar[str] = 'TOGGLE_FIXTURE_SELECTION'
    id: str


@dataclass(frozen=True)
class ClearSelection:
    type: ClassVar[str] = 'CLEAR_SELECTION'


@dataclass(frozen=True)
class SelectAll:
    type: ClassVar[str] = 'SELECT_ALL'


@dataclass(frozen=True)
class SelectZone:
    type: ClassVar[str] = 'SELECT_ZONE'
    id: Optional[str] = None


@dataclass(frozen=True)
class SelectAnnotation:
    type: ClassVar[str] = 'SELECT_ANNOTATION'
    id: Optional[str] = None


# ======================================================================
# FIXTURES
# ======================================================================

@dataclass(frozen=True)
class AddFixture:
    type: ClassVar[str] = 'ADD_FIXTURE'
    catalog_key: str
    x_ft: Optional[float] = None
    y_ft: Optional[float] = None
    rotation_deg: int = 0
    zone_id: Optional[str] = None
    properties: Optional[Dict[str, object]] = None
    fixture_id: Optional[str] = None


@dataclass(frozen=True)
class RemoveFixture:
    type: ClassVar[str] = 'REMOVE_FIXTURE'
    id: str


@dataclass(frozen=True)
class RemoveFixtures:
    type: ClassVar[str] = 'REMOVE_FIXTURES'
    ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UpdateFixturePosition:
    type: ClassVar[str] = 'UPDATE_FIXTURE_POSITION'
    id: str
    x_ft: float
    y_ft: float


@dataclass(frozen=True)
class UpdateFixtureRotation:
    type: ClassVar[str] = 'UPDATE_FIXTURE_ROTATION'
    id: str
    rotation_deg: int


@dataclass(frozen=True)
class MoveFixtures:
    type: ClassVar[str] = 'MOVE_FIXTURES'
    ids: Tuple[str, ...]
    dx_ft: float = 0.0
    dy_ft: float = 0.0


@dataclass(frozen=True)
class RotateFixtures:
    type: ClassVar[str] = 'ROTATE_FIXTURES'
    ids: Tuple[str, ...]
    delta_deg: int = 90


@dataclass(frozen=True)
class UpdateFixtureSize:
    type: ClassVar[str] = 'UPDATE_FIXTURE_SIZE'
    id: str
    length_ft: Optional[float] = None
    width_ft: Optional[float] = None


@dataclass(frozen=True)
class UpdateFixtureProperties:
    type: ClassVar[str] = 'UPDATE_FIXTURE_PROPERTIES'
    id: str
    properties: Dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ToggleFixtureLock:
    type: ClassVar[str] = 'TOGGLE_FIXTURE_LOCK'
    id: str


# ======================================================================
# FIXTURE DRAG
# ======================================================================

@dataclass(frozen=True)
class StartDrag:
    type: ClassVar[str] = 'START_DRAG'
    id: str
    pointer: Vec2
    append: bool = False


@dataclass(frozen=True)
class UpdateDrag:
    type: ClassVar[str] = 'UPDATE_DRAG'
    pointer: Vec2
    skip_snap: bool = False
    scale_px_per_ft: float = BASE_SCALE


@dataclass(frozen=True)
class EndDrag:
    type: ClassVar[str] = 'END_DRAG'


# ======================================================================
# MARQUEE
# ======================================================================

@dataclass(frozen=True)
class StartMarquee:
    type: ClassVar[str] = 'START_MARQUEE'
    origin: Vec2
    append: bool = False


@dataclass(frozen=True)
class UpdateMarquee:
    type: ClassVar[str] = 'UPDATE_MARQUEE'
    current: Vec2


@dataclass(frozen=True)
class EndMarquee:
    type: ClassVar[str] = 'END_MARQUEE'


# ======================================================================
# VIEWPORT
# ======================================================================
# bounds are (min_x, max_x, min_y, max_y) for the resulting offsets

@dataclass(frozen=True)
class PanViewport:
    type: ClassVar[str] = 'PAN_VIEWPORT'
    dx: float
    dy: float
    bounds: Optional[Tuple[float, float, float, float]] = None


@dataclass(frozen=True)
class ZoomViewport:
    type: ClassVar[str] = 'ZOOM_VIEWPORT'
    delta_scale: float
    center: Optional[Vec2] = None
    bounds: Optional[Tuple[float, float, float, float]] = None


@dataclass(frozen=True)
class SetViewport:
    type: ClassVar[str] = 'SET_VIEWPORT'
    scale: float
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass(frozen=True)
class SetSnapIncrement:
    type: ClassVar[str] = 'SET_SNAP_INCREMENT'
    increment: float


# ======================================================================
# HISTORY / DOCUMENT
# ======================================================================

@dataclass(frozen=True)
class Undo:
    type: ClassVar[str] = 'UNDO'


@dataclass(frozen=True)
class Redo:
    type: ClassVar[str] = 'REDO'


@dataclass(frozen=True)
class UpdateDesign:
    type: ClassVar[str] = 'UPDATE_DESIGN'
    design: Design


@dataclass(frozen=True)
class LoadDesign:
    type: ClassVar[str] = 'LOAD_DESIGN'
    design: Design


# ======================================================================
# ZONES
# ======================================================================

@dataclass(frozen=True)
class AddZone:
    type: ClassVar[str] = 'ADD_ZONE'
    name: Optional[str] = None
    x_ft: Optional[float] = None
    y_ft: Optional[float] = None
    length_ft: Optional[float] = None
    width_ft: Optional[float] = None
    zone_id: Optional[str] = None


@dataclass(frozen=True)
class RemoveZone:
    type: ClassVar[str] = 'REMOVE_ZONE'
    id: str


@dataclass(frozen=True)
class RenameZone:
    type: ClassVar[str] = 'RENAME_ZONE'
    id: str
    name: str


@dataclass(frozen=True)
class UpdateZone:
    type: ClassVar[str] = 'UPDATE_ZONE'
    id: str
    x_ft: Optional[float] = None
    y_ft: Optional[float] = None
    length_ft: Optional[float] = None
    width_ft: Optional[float] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class ResizeZone:
    type: ClassVar[str] = 'RESIZE_ZONE'
    zone_id: str
    new_length_ft: float


@dataclass(frozen=True)
class StartZoneDrag:
    type: ClassVar[str] = 'START_ZONE_DRAG'
    id: str
    pointer: Vec2


@dataclass(frozen=True)
class UpdateZoneDrag:
    type: ClassVar[str] = 'UPDATE_ZONE_DRAG'
    pointer: Vec2
    scale_px_per_ft: float = BASE_SCALE


@dataclass(frozen=True)
class EndZoneDrag:
    type: ClassVar[str] = 'END_ZONE_DRAG'


@dataclass(frozen=True)
class StartZoneResize:
    type: ClassVar[str] = 'START_ZONE_RESIZE'
    id: str
    handle: str
    pointer: Vec2


@dataclass(frozen=True)
class UpdateZoneResize:
    type: ClassVar[str] = 'UPDATE_ZONE_RESIZE'
    pointer: Vec2
    scale_px_per_ft: float = BASE_SCALE


@dataclass(frozen=True)
class EndZoneResize:
    type: ClassVar[str] = 'END_ZONE_RESIZE'


# ======================================================================
# WALLS
# ======================================================================

@dataclass(frozen=True)
class StartWallDraw:
    type: ClassVar[str] = 'START_WALL_DRAW'
    start: Vec2


@dataclass(frozen=True)
class UpdateWallDraw:
    type: ClassVar[str] = 'UPDATE_WALL_DRAW'
    current: Vec2


@dataclass(frozen=True)
class EndWallDraw:
    type: ClassVar[str] = 'END_WALL_DRAW'
    end: Vec2
    fixture_id: Optional[str] = None


@dataclass(frozen=True)
class CancelWallDraw:
    type: ClassVar[str] = 'CANCEL_WALL_DRAW'


@dataclass(frozen=True)
class StartWallLengthDrag:
    type: ClassVar[str] = 'START_WALL_LENGTH_DRAG'
    fixture_id: str
    end: str
    pointer: Vec2
    horizontal: Optional[bool] = None


@dataclass(frozen=True)
class UpdateWallLengthDrag:
    type: ClassVar[str] = 'UPDATE_WALL_LENGTH_DRAG'
    pointer: Vec2
    scale_px_per_ft: float = BASE_SCALE


@dataclass(frozen=True)
class EndWallLengthDrag:
    type: ClassVar[str] = 'END_WALL_LENGTH_DRAG'


# ======================================================================
# ANNOTATIONS
# ======================================================================

@dataclass(frozen=True)
class AddAnnotation:
    type: ClassVar[str] = 'ADD_ANNOTATION'
    anchor: Vec2
    label: Optional[Vec2] = None
    text: str = ''
    annotation_id: Optional[str] = None


@dataclass(frozen=True)
class UpdateAnnotation:
    type: ClassVar[str] = 'UPDATE_ANNOTATION'
    id: str
    anchor: Optional[Vec2] = None
    label: Optional[Vec2] = None
    text: Optional[str] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class RemoveAnnotation:
    type: ClassVar[str] = 'REMOVE_ANNOTATION'
    id: str


@dataclass(frozen=True)
class StartAnnotationDrag:
    type: ClassVar[str] = 'START_ANNOTATION_DRAG'
    id: str
    target: str
    pointer: Vec2


@dataclass(frozen=True)
class UpdateAnnotationDrag:
    type: ClassVar[str] = 'UPDATE_ANNOTATION_DRAG'
    pointer: Vec2
    scale_px_per_ft: Optional[float] = None


@dataclass(frozen=True)
class EndAnnotationDrag:
    type: ClassVar[str] = 'END_ANNOTATION_DRAG'


# ======================================================================
# TOOLS / EPHEMERAL STATE
# ======================================================================

@dataclass(frozen=True)
class SetTool:
    type: ClassVar[str] = 'SET_TOOL'
    tool: str


@dataclass(frozen=True)
class SetZoneEditMode:
    type: ClassVar[str] = 'SET_ZONE_EDIT_MODE'
    enabled: bool


@dataclass(frozen=True)
class AddMeasurePoint:
    type: ClassVar[str] = 'ADD_MEASURE_POINT'
    point: Vec2


@dataclass(frozen=True)
class ClearMeasure:
    type: ClassVar[str] = 'CLEAR_MEASURE'


@dataclass(frozen=True)
class SetPendingPlacement:
    type: ClassVar[str] = 'SET_PENDING_PLACEMENT'
    catalog_key: Optional[str] = None
    rotation_deg: int = 0


@dataclass(frozen=True)
class RotatePendingPlacement:
    type: ClassVar[str] = 'ROTATE_PENDING_PLACEMENT'


@dataclass(frozen=True)
class PlacePendingFixture:
    type: ClassVar[str] = 'PLACE_PENDING_FIXTURE'
    point: Vec2
    fixture_id: Optional[str] = None


@dataclass(frozen=True)
class CancelInteraction:
    type: ClassVar[str] = 'CANCEL_INTERACTION'


ACTION_TYPES = {cls.type: cls for cls in (
    SelectFixture, SelectFixtures, ToggleFixtureSelection, ClearSelection, SelectAll,
    SelectZone, SelectAnnotation,
    AddFixture, RemoveFixture, RemoveFixtures, UpdateFixturePosition, UpdateFixtureRotation,
    MoveFixtures, RotateFixtures, UpdateFixtureSize, UpdateFixtureProperties, ToggleFixtureLock,
    StartDrag, UpdateDrag, EndDrag,
    StartMarquee, UpdateMarquee, EndMarquee,
    PanViewport, ZoomViewport, SetViewport, SetSnapIncrement,
    Undo, Redo, UpdateDesign, LoadDesign,
    AddZone, RemoveZone, RenameZone, UpdateZone, ResizeZone,
    StartZoneDrag, UpdateZoneDrag, EndZoneDrag, StartZoneResize, UpdateZoneResize, EndZoneResize,
    StartWallDraw, UpdateWallDraw, EndWallDraw, CancelWallDraw,
    StartWallLengthDrag, UpdateWallLengthDrag, EndWallLengthDrag,
    AddAnnotation, UpdateAnnotation, RemoveAnnotation,
    StartAnnotationDrag, UpdateAnnotationDrag, EndAnnotationDrag,
    SetTool, SetZoneEditMode, AddMeasurePoint, ClearMeasure,
    SetPendingPlacement, RotatePendingPlacement, PlacePendingFixture, CancelInteraction,
)}


def _convert(field_type, value):
    if value is None:
        return None
    if field_type in (Vec2, Optional[Vec2]):
        if isinstance(value, dict):
            return Vec2(float(value['x']), float(value['y']))
        return Vec2(float(value[0]), float(value[1]))
    if field_type is Design:
        return Design.from_dict(value)
    if isinstance(value, list):
        return tuple(value)
    return value


def action_from_dict(data):
    """
    Build an action from its JSON form ({'type': 'START_DRAG', 'id': ..., 'pointer': {'x':..,'y':..}})

    Raises:
        ValueError: If the type tag is unknown or required fields are missing
    """
    action_type = data.get('type') if isinstance(data, dict) else None
    cls = ACTION_TYPES.get(action_type)
    if cls is None:
        raise ValueError(f"Unknown action type: {action_type!r}")
    kwargs = {f.name: _convert(f.type, data[f.name]) for f in fields(cls) if f.name in data}
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValueError(f"Invalid {action_type} action: {e}") from e
