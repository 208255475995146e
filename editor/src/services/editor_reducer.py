"""
Fixture Layout Editor - Editor Reducer

The single mutation surface of the editing engine. reduce(state, action)
validates an action against the current EditorState and returns the next
state; the design is only ever replaced here.

Rules every handler follows:
- Invalid or out-of-context actions return the incoming state object.
- START/UPDATE actions never touch history; END actions and explicit edits
  commit exactly once, pushing the design the gesture started from.
- Only one interaction can be active; a START while one is active is ignored.
- Locked fixtures can be selected but never dragged, resized or rotated.

Diagnostics go to an optional observer with on_event(kind, message, data).
"""
import math
from dataclasses import replace

from constants import (
    BASE_SCALE, MIN_ZOOM, MAX_ZOOM, VALID_ROTATIONS, MIN_ZONE_SIZE_FT, DEFAULT_ZONE_LENGTH_FT,
    ZONE_HANDLE_NAMES, WALL_CATALOG_KEY, MIN_WALL_LENGTH_FT, MIN_WALL_DRAG_LENGTH_FT,
    DEFAULT_WALL_MATERIAL, MIN_FIXTURE_OVERRIDE_FT, ANNOTATION_LABEL_OFFSET_FT, MAX_MEASURE_POINTS,
)
from models.design import Annotation, Design, Fixture, Zone, new_id
from models.editor_state import (
    AnnotationDragState, DragState, MarqueeState, PendingPlacement, Tool, Viewport,
    WallDrawState, WallLengthDragState, ZoneDragState, ZoneResizeState,
)
from models.transform import Rect, Vec2
from utils.geometry import (
    clamp, clamp_to_shell, fixtures_in_rect, footprint_of, rect_from_fixture, rect_size, snap,
)
from utils.history_manager import HistoryManager
from utils.zone_utils import ZoneResizeError, resize_zone

# Properties that change a fixture's footprint
SIZE_OVERRIDE_KEYS = frozenset({'lengthOverrideFt', 'widthOverrideFt'})


def _finite(*values):
    return all(math.isfinite(v) for v in values)


class EditorReducer:
    """Applies editor actions to EditorState"""

    def __init__(self, catalog, history=None, observer=None, id_factory=new_id):
        """
        Args:
            catalog: Catalog used to size and clamp fixtures
            history: HistoryManager (a default one is created if omitted)
            observer: Optional object with on_event(kind, message, data)
            id_factory: Callable returning new document ids
        """
        self.catalog = catalog
        self.history = history or HistoryManager()
        self.observer = observer
        self.id_factory = id_factory
        self._handlers = {
            'SELECT_FIXTURE': self._select_fixture,
            'SELECT_FIXTURES': self._select_fixtures,
            'TOGGLE_FIXTURE_SELECTION': self._toggle_fixture_selection,
            'CLEAR_SELECTION': self._clear_selection,
            'SELECT_ALL': self._select_all,
            'SELECT_ZONE': self._select_zone,
            'SELECT_ANNOTATION': self._select_annotation,
            'ADD_FIXTURE': self._add_fixture,
            'REMOVE_FIXTURE': self._remove_fixture,
            'REMOVE_FIXTURES': self._remove_fixtures,
            'UPDATE_FIXTURE_POSITION': self._update_fixture_position,
            'UPDATE_FIXTURE_ROTATION': self._update_fixture_rotation,
            'MOVE_FIXTURES': self._move_fixtures,
            'ROTATE_FIXTURES': self._rotate_fixtures,
            'UPDATE_FIXTURE_SIZE': self._update_fixture_size,
            'UPDATE_FIXTURE_PROPERTIES': self._update_fixture_properties,
            'TOGGLE_FIXTURE_LOCK': self._toggle_fixture_lock,
            'START_DRAG': self._start_drag,
            'UPDATE_DRAG': self._update_drag,
            'END_DRAG': self._end_drag,
            'START_MARQUEE': self._start_marquee,
            'UPDATE_MARQUEE': self._update_marquee,
            'END_MARQUEE': self._end_marquee,
            'PAN_VIEWPORT': self._pan_viewport,
            'ZOOM_VIEWPORT': self._zoom_viewport,
            'SET_VIEWPORT': self._set_viewport,
            'SET_SNAP_INCREMENT': self._set_snap_increment,
            'UNDO': self._undo,
            'REDO': self._redo,
            'UPDATE_DESIGN': self._update_design,
            'LOAD_DESIGN': self._load_design,
            'ADD_ZONE': self._add_zone,
            'REMOVE_ZONE': self._remove_zone,
            'RENAME_ZONE': self._rename_zone,
            'UPDATE_ZONE': self._update_zone,
            'RESIZE_ZONE': self._resize_zone,
            'START_ZONE_DRAG': self._start_zone_drag,
            'UPDATE_ZONE_DRAG': self._update_zone_drag,
            'END_ZONE_DRAG': self._end_zone_drag,
            'START_ZONE_RESIZE': self._start_zone_resize,
            'UPDATE_ZONE_RESIZE': self._update_zone_resize,
            'END_ZONE_RESIZE': self._end_zone_resize,
            'START_WALL_DRAW': self._start_wall_draw,
            'UPDATE_WALL_DRAW': self._update_wall_draw,
            'END_WALL_DRAW': self._end_wall_draw,
            'CANCEL_WALL_DRAW': self._cancel_wall_draw,
            'START_WALL_LENGTH_DRAG': self._start_wall_length_drag,
            'UPDATE_WALL_LENGTH_DRAG': self._update_wall_length_drag,
            'END_WALL_LENGTH_DRAG': self._end_wall_length_drag,
            'ADD_ANNOTATION': self._add_annotation,
            'UPDATE_ANNOTATION': self._update_annotation,
            'REMOVE_ANNOTATION': self._remove_annotation,
            'START_ANNOTATION_DRAG': self._start_annotation_drag,
            'UPDATE_ANNOTATION_DRAG': self._update_annotation_drag,
            'END_ANNOTATION_DRAG': self._end_annotation_drag,
            'SET_TOOL': self._set_tool,
            'SET_ZONE_EDIT_MODE': self._set_zone_edit_mode,
            'ADD_MEASURE_POINT': self._add_measure_point,
            'CLEAR_MEASURE': self._clear_measure,
            'SET_PENDING_PLACEMENT': self._set_pending_placement,
            'ROTATE_PENDING_PLACEMENT': self._rotate_pending_placement,
            'PLACE_PENDING_FIXTURE': self._place_pending_fixture,
            'CANCEL_INTERACTION': self._cancel_interaction,
        }

    def reduce(self, state, action):
        """
        Apply one action

        Args:
            state: Current EditorState
            action: Any action from actions.editor_actions

        Returns:
            The next EditorState (the same object when nothing changed)
        """
        action_type = getattr(action, 'type', None)
        handler = self._handlers.get(action_type)
        if handler is None:
            return self._reject(state, f"Unknown action: {action!r}")
        try:
            return handler(state, action)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            self._emit('error', f"{action_type} ignored: {e}", {'action': action_type})
            return state

    __call__ = reduce

    # ======================================================================
    # HELPERS
    # ======================================================================

    def _emit(self, kind, message, data=None):
        if self.observer is not None:
            self.observer.on_event(kind, message, data or {})

    def _reject(self, state, message, **data):
        self._emit('rejected', message, data)
        return state

    def _commit(self, state, next_design, description, origin=None, **changes):
        state = self.history.commit(state, next_design, origin=origin, description=description)
        self._emit('commit', description, {'history': len(state.history)})
        return replace(state, **changes) if changes else state

    def _busy(self, state, action_type):
        if state.interaction is None:
            return False
        self._emit('rejected', f"{action_type} ignored: {state.interaction.kind} in progress",
                   {'active': state.interaction.kind})
        return True

    def _abort_interaction(self, state):
        """End the active gesture without committing, restoring its start design"""
        interaction = state.interaction
        if interaction is None:
            return state
        origin = getattr(interaction, 'origin', None)
        self._emit('cancelled', f"{interaction.kind} cancelled", {'active': interaction.kind})
        return replace(state, design=state.design if origin is None else origin, interaction=None)

    def _finish(self, state, origin, description):
        """Commit a gesture if it changed the design, otherwise just close it"""
        if state.design == origin:
            return replace(state, design=origin, interaction=None)
        return self._commit(state, state.design, description, origin=origin, interaction=None)

    def _prune_selection(self, state):
        design = state.design
        existing = set(design.fixture_ids())
        selected = tuple(fid for fid in state.selected_ids if fid in existing)
        primary = state.primary_selected_id if state.primary_selected_id in existing else (
            selected[-1] if selected else None)
        zone_id = state.selected_zone_id if design.zone(state.selected_zone_id) else None
        annotation_id = state.selected_annotation_id if design.annotation(state.selected_annotation_id) else None
        if (selected, primary, zone_id, annotation_id) == (state.selected_ids, state.primary_selected_id,
                                                           state.selected_zone_id, state.selected_annotation_id):
            return state
        return replace(state, selected_ids=selected, primary_selected_id=primary,
                       selected_zone_id=zone_id, selected_annotation_id=annotation_id)

    def _item(self, fixture):
        return self.catalog.get(fixture.catalog_key)

    def _place(self, state, fixture, x_ft, y_ft, rotation_deg=None, snapped=True):
        """Snap (optionally) and clamp an anchor position for fixture inside the shell"""
        item = self._item(fixture)
        width, height = rect_size(fixture, item, rotation_deg)
        anchor = item.footprint_anchor if item is not None else 'center'
        if snapped:
            x_ft, y_ft = snap(x_ft, state.snap_increment), snap(y_ft, state.snap_increment)
        return clamp_to_shell(x_ft, y_ft, width, height, state.design.shell, anchor)

    def _editable_fixture(self, state, fixture_id, action_type):
        """Fixture that may be moved/rotated/resized, or None after reporting why not"""
        fixture = state.design.fixture(fixture_id)
        if fixture is None:
            return None
        if fixture.locked:
            self._emit('rejected', f"{action_type} ignored: fixture {fixture_id} is locked",
                       {'id': fixture_id})
            return None
        return fixture

    def _scale(self, value):
        if not _finite(value) or value <= 0:
            raise ValueError(f"invalid scale {value}")
        return value

    # ======================================================================
    # SELECTION
    # ======================================================================

    def _select_fixture(self, state, action):
        if action.id is None:
            return replace(state, selected_ids=(), primary_selected_id=None)
        if state.design.fixture(action.id) is None:
            return self._reject(state, f"Cannot select missing fixture {action.id}")
        if action.append:
            ids = state.selected_ids if action.id in state.selected_ids else state.selected_ids + (action.id,)
            return replace(state, selected_ids=ids, primary_selected_id=action.id)
        return replace(state, selected_ids=(action.id,), primary_selected_id=action.id)

    def _select_fixtures(self, state, action):
        existing = set(state.design.fixture_ids())
        ids = tuple(dict.fromkeys(fid for fid in action.ids if fid in existing))
        return replace(state, selected_ids=ids, primary_selected_id=ids[0] if ids else None)

    def _toggle_fixture_selection(self, state, action):
        if action.id in state.selected_ids:
            ids = tuple(fid for fid in state.selected_ids if fid != action.id)
        elif state.design.fixture(action.id) is not None:
            ids = state.selected_ids + (action.id,)
        else:
            return self._reject(state, f"Cannot select missing fixture {action.id}")
        return replace(state, selected_ids=ids, primary_selected_id=ids[-1] if ids else None)

    def _clear_selection(self, state, action):
        if not state.selected_ids and state.primary_selected_id is None:
            return state
        return replace(state, selected_ids=(), primary_selected_id=None)

    def _select_all(self, state, action):
        ids = tuple(state.design.fixture_ids())
        return replace(state, selected_ids=ids, primary_selected_id=ids[0] if ids else None)

    def _select_zone(self, state, action):
        if action.id is not None and state.design.zone(action.id) is None:
            return self._reject(state, f"Cannot select missing zone {action.id}")
        return replace(state, selected_zone_id=action.id, selected_ids=(), primary_selected_id=None)

    def _select_annotation(self, state, action):
        if action.id is not None and state.design.annotation(action.id) is None:
            return self._reject(state, f"Cannot select missing annotation {action.id}")
        return replace(state, selected_annotation_id=action.id, selected_ids=(),
                       primary_selected_id=None, selected_zone_id=None)

    # ======================================================================
    # FIXTURES
    # ======================================================================

    def _insert_fixture(self, state, catalog_key, x_ft, y_ft, rotation_deg=0, zone_id=None,
                        properties=None, fixture_id=None, description='Add fixture'):
        if catalog_key not in self.catalog:
            return self._reject(state, f"Unknown catalog key {catalog_key!r}")
        if rotation_deg not in VALID_ROTATIONS:
            return self._reject(state, f"Invalid rotation {rotation_deg}")
        fixture_id = fixture_id or self.id_factory()
        if state.design.fixture(fixture_id) is not None:
            return self._reject(state, f"Fixture id {fixture_id} already exists")
        shell = state.design.shell
        fixture = Fixture(
            id=fixture_id,
            catalog_key=catalog_key,
            x_ft=shell.length_ft / 2 if x_ft is None else float(x_ft),
            y_ft=shell.width_ft / 2 if y_ft is None else float(y_ft),
            rotation_deg=rotation_deg,
            properties=dict(properties or {}),
            zone=zone_id,
        )
        if not _finite(fixture.x_ft, fixture.y_ft):
            return self._reject(state, "Fixture position must be finite")
        x, y = self._place(state, fixture, fixture.x_ft, fixture.y_ft, snapped=False)
        fixture = replace(fixture, x_ft=x, y_ft=y)
        design = replace(state.design, fixtures=state.design.fixtures + (fixture,))
        return self._commit(state, design, description,
                            selected_ids=(fixture_id,), primary_selected_id=fixture_id)

    def _add_fixture(self, state, action):
        return self._insert_fixture(state, action.catalog_key, action.x_ft, action.y_ft,
                                    action.rotation_deg, action.zone_id, action.properties,
                                    action.fixture_id)

    def _without_fixtures(self, state, ids, description):
        ids = set(ids) & set(state.design.fixture_ids())
        if not ids:
            return state
        targeted = getattr(state.interaction, 'fixture_id', None)
        if targeted in ids:
            state = self._abort_interaction(state)
        design = replace(state.design, fixtures=tuple(f for f in state.design.fixtures if f.id not in ids))
        selected = tuple(fid for fid in state.selected_ids if fid not in ids)
        primary = state.primary_selected_id if state.primary_selected_id in selected else (
            selected[-1] if selected else None)
        return self._commit(state, design, description, selected_ids=selected, primary_selected_id=primary)

    def _remove_fixture(self, state, action):
        return self._without_fixtures(state, [action.id], 'Remove fixture')

    def _remove_fixtures(self, state, action):
        return self._without_fixtures(state, action.ids, f"Remove {len(action.ids)} fixtures")

    def _update_fixture_position(self, state, action):
        fixture = self._editable_fixture(state, action.id, action.type)
        if fixture is None:
            return state
        if not _finite(action.x_ft, action.y_ft):
            return self._reject(state, "Fixture position must be finite")
        x, y = self._place(state, fixture, action.x_ft, action.y_ft)
        if (x, y) == (fixture.x_ft, fixture.y_ft):
            return state
        return self._commit(state, state.design.with_fixture(replace(fixture, x_ft=x, y_ft=y)),
                            'Move fixture')

    def _rotated(self, state, fixture, rotation_deg):
        x, y = self._place(state, fixture, fixture.x_ft, fixture.y_ft, rotation_deg, snapped=False)
        return replace(fixture, rotation_deg=rotation_deg, x_ft=x, y_ft=y)

    def _update_fixture_rotation(self, state, action):
        if action.rotation_deg not in VALID_ROTATIONS:
            return self._reject(state, f"Invalid rotation {action.rotation_deg}")
        fixture = self._editable_fixture(state, action.id, action.type)
        if fixture is None or fixture.rotation_deg == action.rotation_deg:
            return state
        return self._commit(state, state.design.with_fixture(self._rotated(state, fixture, action.rotation_deg)),
                            'Rotate fixture')

    def _move_fixtures(self, state, action):
        if not _finite(action.dx_ft, action.dy_ft):
            return self._reject(state, "Nudge distance must be finite")
        design = state.design
        for fixture_id in action.ids:
            fixture = self._editable_fixture(state, fixture_id, action.type)
            if fixture is None:
                continue
            x, y = self._place(state, fixture, fixture.x_ft + action.dx_ft, fixture.y_ft + action.dy_ft)
            design = design.with_fixture(replace(fixture, x_ft=x, y_ft=y))
        if design == state.design:
            return state
        return self._commit(state, design, 'Nudge fixtures')

    def _rotate_fixtures(self, state, action):
        if action.delta_deg % 90 != 0:
            return self._reject(state, f"Rotation step must be a multiple of 90, got {action.delta_deg}")
        design = state.design
        for fixture_id in action.ids:
            fixture = self._editable_fixture(state, fixture_id, action.type)
            if fixture is None:
                continue
            design = design.with_fixture(self._rotated(state, fixture, (fixture.rotation_deg + action.delta_deg) % 360))
        if design == state.design:
            return state
        return self._commit(state, design, 'Rotate fixtures')

    def _update_fixture_size(self, state, action):
        fixture = self._editable_fixture(state, action.id, action.type)
        if fixture is None:
            return state
        properties = dict(fixture.properties)
        if action.length_ft is not None:
            properties['lengthOverrideFt'] = max(float(action.length_ft), MIN_FIXTURE_OVERRIDE_FT)
        if action.width_ft is not None:
            properties['widthOverrideFt'] = max(float(action.width_ft), MIN_FIXTURE_OVERRIDE_FT)
        if properties == fixture.properties:
            return state
        return self._commit(state, state.design.with_fixture(replace(fixture, properties=properties)),
                            'Resize fixture')

    def _update_fixture_properties(self, state, action):
        fixture = state.design.fixture(action.id)
        if fixture is None:
            return state
        if not isinstance(action.properties, dict):
            return self._reject(state, "Fixture properties must be a mapping")
        if fixture.locked and SIZE_OVERRIDE_KEYS & set(action.properties):
            return self._reject(state, f"{action.type} ignored: fixture {fixture.id} is locked",
                                id=fixture.id)
        properties = {**fixture.properties, **action.properties}
        if properties == fixture.properties:
            return state
        return self._commit(state, state.design.with_fixture(replace(fixture, properties=properties)),
                            'Edit fixture properties')

    def _toggle_fixture_lock(self, state, action):
        fixture = state.design.fixture(action.id)
        if fixture is None:
            return state
        return self._commit(state, state.design.with_fixture(replace(fixture, locked=not fixture.locked)),
                            'Unlock fixture' if fixture.locked else 'Lock fixture')

    # ======================================================================
    # FIXTURE DRAG
    # ======================================================================

    def _start_drag(self, state, action):
        if self._busy(state, action.type):
            return state
        fixture = self._editable_fixture(state, action.id, action.type)
        if fixture is None:
            return state
        item = self._item(fixture)
        width, height = rect_size(fixture, item)
        if action.append:
            selected = state.selected_ids if action.id in state.selected_ids else state.selected_ids + (action.id,)
        else:
            selected = state.selected_ids if action.id in state.selected_ids else (action.id,)
        drag = DragState(
            fixture_id=fixture.id,
            start=Vec2(fixture.x_ft, fixture.y_ft),
            pointer_start=action.pointer,
            width=width,
            height=height,
            anchor=item.footprint_anchor if item is not None else 'center',
            origin=state.design,
        )
        return replace(state, interaction=drag, selected_ids=selected, primary_selected_id=fixture.id)

    def _update_drag(self, state, action):
        drag = state.drag
        if drag is None:
            return state
        fixture = state.design.fixture(drag.fixture_id)
        if fixture is None:
            return state
        scale = self._scale(action.scale_px_per_ft)
        x = drag.start.x + (action.pointer.x - drag.pointer_start.x) / scale
        y = drag.start.y + (action.pointer.y - drag.pointer_start.y) / scale
        if not _finite(x, y):
            return self._reject(state, "Drag position must be finite")
        if not action.skip_snap:
            x, y = snap(x, state.snap_increment), snap(y, state.snap_increment)
        x, y = clamp_to_shell(x, y, drag.width, drag.height, state.design.shell, drag.anchor)
        if (x, y) == (fixture.x_ft, fixture.y_ft):
            return state
        return replace(state, design=state.design.with_fixture(replace(fixture, x_ft=x, y_ft=y)))

    def _end_drag(self, state, action):
        drag = state.drag
        if drag is None:
            return state
        fixture = state.design.fixture(drag.fixture_id)
        if fixture is not None and (fixture.x_ft, fixture.y_ft) != tuple(drag.start):
            # Unsnapped live drags land on the grid at release
            x = snap(fixture.x_ft, state.snap_increment)
            y = snap(fixture.y_ft, state.snap_increment)
            x, y = clamp_to_shell(x, y, drag.width, drag.height, state.design.shell, drag.anchor)
            state = replace(state, design=state.design.with_fixture(replace(fixture, x_ft=x, y_ft=y)))
        return self._finish(state, drag.origin, 'Move fixture')

    # ======================================================================
    # MARQUEE
    # ======================================================================

    def _start_marquee(self, state, action):
        if self._busy(state, action.type):
            return state
        marquee = MarqueeState(origin_ft=action.origin, current_ft=action.origin, append=action.append)
        return replace(state, interaction=marquee)

    def _update_marquee(self, state, action):
        marquee = state.marquee
        if marquee is None:
            return state
        return replace(state, interaction=replace(marquee, current_ft=action.current))

    def _end_marquee(self, state, action):
        marquee = state.marquee
        if marquee is None:
            return state
        rect = Rect.from_points(marquee.origin_ft, marquee.current_ft)
        hits = fixtures_in_rect(state.design.fixtures, rect, self.catalog)
        if marquee.append:
            existing = set(state.design.fixture_ids())
            hits = [fid for fid in state.selected_ids if fid in existing] + [
                fid for fid in hits if fid not in state.selected_ids]
        ids = tuple(hits)
        return replace(state, interaction=None, selected_ids=ids,
                       primary_selected_id=ids[0] if ids else None)

    # ======================================================================
    # VIEWPORT (never undoable)
    # ======================================================================

    def _bounded(self, offset_x, offset_y, bounds):
        if bounds is None:
            return offset_x, offset_y
        min_x, max_x, min_y, max_y = bounds
        return clamp(offset_x, min_x, max_x), clamp(offset_y, min_y, max_y)

    def _pan_viewport(self, state, action):
        if not _finite(action.dx, action.dy):
            return self._reject(state, "Pan delta must be finite")
        viewport = state.viewport
        x, y = self._bounded(viewport.offset_x + action.dx, viewport.offset_y + action.dy, action.bounds)
        return replace(state, viewport=replace(viewport, offset_x=x, offset_y=y))

    def _zoom_viewport(self, state, action):
        if not _finite(action.delta_scale):
            return self._reject(state, "Zoom delta must be finite")
        viewport = state.viewport
        scale = clamp(viewport.scale + action.delta_scale, MIN_ZOOM, MAX_ZOOM)
        x, y = viewport.offset_x, viewport.offset_y
        if action.center is not None:
            # Keep the viewbox point under the cursor fixed
            factor = scale / viewport.scale
            x = action.center.x - factor * (action.center.x - x)
            y = action.center.y - factor * (action.center.y - y)
        x, y = self._bounded(x, y, action.bounds)
        return replace(state, viewport=Viewport(scale=scale, offset_x=x, offset_y=y))

    def _set_viewport(self, state, action):
        if not _finite(action.scale, action.offset_x, action.offset_y) or action.scale <= 0:
            return self._reject(state, "Viewport values must be finite with a positive scale")
        return replace(state, viewport=Viewport(clamp(action.scale, MIN_ZOOM, MAX_ZOOM),
                                                action.offset_x, action.offset_y))

    def _set_snap_increment(self, state, action):
        if not _finite(action.increment) or action.increment <= 0:
            return self._reject(state, f"Snap increment must be positive, got {action.increment}")
        return replace(state, snap_increment=float(action.increment))

    # ======================================================================
    # HISTORY / DOCUMENT
    # ======================================================================

    def _undo(self, state, action):
        if not self.history.can_undo(state):
            return state
        return self._prune_selection(self.history.undo(self._abort_interaction(state)))

    def _redo(self, state, action):
        if not self.history.can_redo(state):
            return state
        return self._prune_selection(self.history.redo(self._abort_interaction(state)))

    def _update_design(self, state, action):
        if not isinstance(action.design, Design):
            return self._reject(state, "UPDATE_DESIGN needs a Design")
        state = self._abort_interaction(state)
        if action.design == state.design:
            return state
        return self._prune_selection(self._commit(state, action.design, 'Replace design'))

    def _load_design(self, state, action):
        if not isinstance(action.design, Design):
            return self._reject(state, "LOAD_DESIGN needs a Design")
        self._emit('load', f"Loaded design with {len(action.design.fixtures)} fixtures")
        return replace(state, design=action.design, history=(), future=(), selected_ids=(),
                       primary_selected_id=None, selected_zone_id=None, selected_annotation_id=None,
                       interaction=None, measure_points=(), pending_placement=None, tool=Tool.SELECT)

    # ======================================================================
    # ZONES
    # ======================================================================

    def _add_zone(self, state, action):
        shell = state.design.shell
        zone = Zone(
            id=action.zone_id or self.id_factory(),
            name=action.name if action.name is not None else f"Zone {len(state.design.zones) + 1}",
            x_ft=float(action.x_ft if action.x_ft is not None else 0.0),
            y_ft=float(action.y_ft if action.y_ft is not None else 0.0),
            length_ft=float(action.length_ft if action.length_ft is not None else DEFAULT_ZONE_LENGTH_FT),
            width_ft=float(action.width_ft if action.width_ft is not None else shell.width_ft),
        )
        if state.design.zone(zone.id) is not None:
            return self._reject(state, f"Zone id {zone.id} already exists")
        if zone.length_ft < MIN_ZONE_SIZE_FT or zone.width_ft < MIN_ZONE_SIZE_FT:
            return self._reject(state, f"Zone must be at least {MIN_ZONE_SIZE_FT}ft on each side")
        design = replace(state.design, zones=state.design.zones + (zone,))
        return self._commit(state, design, 'Add zone', selected_zone_id=zone.id)

    def _remove_zone(self, state, action):
        if state.design.zone(action.id) is None:
            return state
        if getattr(state.interaction, 'zone_id', None) == action.id:
            state = self._abort_interaction(state)
        design = replace(
            state.design,
            zones=tuple(z for z in state.design.zones if z.id != action.id),
            fixtures=tuple(replace(f, zone=None) if f.zone == action.id else f for f in state.design.fixtures),
        )
        selected_zone = None if state.selected_zone_id == action.id else state.selected_zone_id
        return self._commit(state, design, 'Remove zone', selected_zone_id=selected_zone)

    def _rename_zone(self, state, action):
        zone = state.design.zone(action.id)
        if zone is None or zone.name == action.name:
            return state
        return self._commit(state, state.design.with_zone(replace(zone, name=str(action.name))), 'Rename zone')

    def _update_zone(self, state, action):
        zone = state.design.zone(action.id)
        if zone is None:
            return state
        shell, inc = state.design.shell, state.snap_increment
        updates = {}
        length = action.length_ft if action.length_ft is not None else zone.length_ft
        width = action.width_ft if action.width_ft is not None else zone.width_ft
        if action.x_ft is not None:
            updates['x_ft'] = clamp(snap(action.x_ft, inc), 0.0, shell.length_ft - length)
        if action.y_ft is not None:
            updates['y_ft'] = clamp(snap(action.y_ft, inc), 0.0, shell.width_ft - width)
        if action.length_ft is not None:
            updates['length_ft'] = max(MIN_ZONE_SIZE_FT, snap(action.length_ft, inc))
        if action.width_ft is not None:
            updates['width_ft'] = max(MIN_ZONE_SIZE_FT, snap(action.width_ft, inc))
        if action.name is not None:
            updates['name'] = str(action.name)
        updated = replace(zone, **updates)
        if updated == zone:
            return state
        return self._commit(state, state.design.with_zone(updated), 'Edit zone')

    def _resize_zone(self, state, action):
        try:
            design = resize_zone(state.design, action.zone_id, float(action.new_length_ft))
        except ZoneResizeError as e:
            return self._reject(state, f"Cannot resize zone: {e}", id=action.zone_id)
        if design is state.design:
            return state
        return self._commit(state, design, 'Resize zone')

    def _start_zone_drag(self, state, action):
        if self._busy(state, action.type):
            return state
        zone = state.design.zone(action.id)
        if zone is None:
            return state
        drag = ZoneDragState(zone_id=zone.id, start=Vec2(zone.x_ft, zone.y_ft),
                             pointer_start=action.pointer, origin=state.design)
        return replace(state, interaction=drag, selected_zone_id=zone.id)

    def _update_zone_drag(self, state, action):
        drag = state.zone_drag
        if drag is None:
            return state
        zone = state.design.zone(drag.zone_id)
        if zone is None:
            return state
        scale = self._scale(action.scale_px_per_ft)
        shell, inc = state.design.shell, state.snap_increment
        x = drag.start.x + (action.pointer.x - drag.pointer_start.x) / scale
        y = drag.start.y + (action.pointer.y - drag.pointer_start.y) / scale
        x = clamp(snap(x, inc), 0.0, shell.length_ft - zone.length_ft)
        y = clamp(snap(y, inc), 0.0, shell.width_ft - zone.width_ft)
        if (x, y) == (zone.x_ft, zone.y_ft):
            return state
        return replace(state, design=state.design.with_zone(replace(zone, x_ft=x, y_ft=y)))

    def _end_zone_drag(self, state, action):
        drag = state.zone_drag
        if drag is None:
            return state
        return self._finish(state, drag.origin, 'Move zone')

    def _start_zone_resize(self, state, action):
        if self._busy(state, action.type):
            return state
        if action.handle not in ZONE_HANDLE_NAMES:
            return self._reject(state, f"Unknown zone handle {action.handle!r}")
        zone = state.design.zone(action.id)
        if zone is None:
            return state
        resize = ZoneResizeState(
            zone_id=zone.id, handle=action.handle,
            start_x=zone.x_ft, start_y=zone.y_ft,
            start_length=zone.length_ft, start_width=zone.width_ft,
            pointer_start=action.pointer, origin=state.design,
        )
        return replace(state, interaction=resize, selected_zone_id=zone.id)

    def _update_zone_resize(self, state, action):
        resize = state.zone_resize
        if resize is None:
            return state
        zone = state.design.zone(resize.zone_id)
        if zone is None:
            return state
        scale = self._scale(action.scale_px_per_ft)
        shell, inc = state.design.shell, state.snap_increment
        dx = (action.pointer.x - resize.pointer_start.x) / scale
        dy = (action.pointer.y - resize.pointer_start.y) / scale
        handle = resize.handle

        # The edge opposite the dragged handle never moves
        x, y = resize.start_x, resize.start_y
        length, width = resize.start_length, resize.start_width
        right, bottom = x + length, y + width
        if 'e' in handle:
            length = min(max(MIN_ZONE_SIZE_FT, snap(resize.start_length + dx, inc)), shell.length_ft - x)
        if 'w' in handle:
            length = max(MIN_ZONE_SIZE_FT, snap(resize.start_length - dx, inc))
            x = max(0.0, right - length)
            length = right - x
        if 's' in handle:
            width = min(max(MIN_ZONE_SIZE_FT, snap(resize.start_width + dy, inc)), shell.width_ft - y)
        if 'n' in handle:
            width = max(MIN_ZONE_SIZE_FT, snap(resize.start_width - dy, inc))
            y = max(0.0, bottom - width)
            width = bottom - y

        updated = replace(zone, x_ft=x, y_ft=y, length_ft=length, width_ft=width)
        if updated == zone:
            return state
        return replace(state, design=state.design.with_zone(updated))

    def _end_zone_resize(self, state, action):
        resize = state.zone_resize
        if resize is None:
            return state
        return self._finish(state, resize.origin, 'Resize zone')

    # ======================================================================
    # WALLS
    # ======================================================================

    def _snapped(self, state, point):
        return Vec2(snap(point.x, state.snap_increment), snap(point.y, state.snap_increment))

    def _start_wall_draw(self, state, action):
        if self._busy(state, action.type):
            return state
        return replace(state, interaction=WallDrawState(start_ft=self._snapped(state, action.start)))

    def _update_wall_draw(self, state, action):
        wall = state.wall_draw
        if wall is None:
            return state
        return replace(state, interaction=replace(wall, current_ft=self._snapped(state, action.current)))

    def _end_wall_draw(self, state, action):
        wall = state.wall_draw
        if wall is None:
            return state
        inc = state.snap_increment
        start, end = wall.start_ft, self._snapped(state, action.end)
        dx, dy = end.x - start.x, end.y - start.y
        if math.hypot(dx, dy) < MIN_WALL_LENGTH_FT:
            self._emit('discarded', f"Wall shorter than {MIN_WALL_LENGTH_FT}ft discarded")
            return replace(state, interaction=None)

        # A wall's length runs along Y at 0 degrees: strokes that are mostly
        # horizontal need a quarter turn.
        angle = math.degrees(math.atan2(dy, dx))
        rotation = 0 if 45 <= abs(angle) < 135 else 90
        length = abs(dy) if rotation == 0 else abs(dx)

        fixture_id = action.fixture_id or self.id_factory()
        if state.design.fixture(fixture_id) is not None:
            return self._reject(state, f"Fixture id {fixture_id} already exists")
        wall_fixture = Fixture(
            id=fixture_id,
            catalog_key=WALL_CATALOG_KEY,
            x_ft=snap((start.x + end.x) / 2, inc),
            y_ft=snap((start.y + end.y) / 2, inc),
            rotation_deg=rotation,
            properties={
                'lengthOverrideFt': max(MIN_WALL_DRAG_LENGTH_FT, snap(length, inc)),
                'material': DEFAULT_WALL_MATERIAL,
                'transparent3D': True,
            },
        )
        design = replace(state.design, fixtures=state.design.fixtures + (wall_fixture,))
        return self._commit(state, design, 'Draw wall', interaction=None, tool=Tool.SELECT,
                            selected_ids=(fixture_id,), primary_selected_id=fixture_id)

    def _cancel_wall_draw(self, state, action):
        if state.wall_draw is None:
            return state
        return replace(state, interaction=None)

    def _start_wall_length_drag(self, state, action):
        if self._busy(state, action.type):
            return state
        if action.end not in ('start', 'end'):
            return self._reject(state, f"Unknown wall end {action.end!r}")
        fixture = self._editable_fixture(state, action.fixture_id, action.type)
        if fixture is None:
            return state
        item = self._item(fixture)
        horizontal = action.horizontal
        if horizontal is None:
            rect = rect_from_fixture(fixture, item)
            horizontal = rect.width > rect.height
        drag = WallLengthDragState(
            fixture_id=fixture.id,
            end=action.end,
            initial_length=footprint_of(fixture, item)[0],
            initial=Vec2(fixture.x_ft, fixture.y_ft),
            horizontal=bool(horizontal),
            pointer_start=action.pointer,
            origin=state.design,
        )
        return replace(state, interaction=drag)

    def _update_wall_length_drag(self, state, action):
        drag = state.wall_length_drag
        if drag is None:
            return state
        fixture = state.design.fixture(drag.fixture_id)
        if fixture is None:
            return state
        scale = self._scale(action.scale_px_per_ft)
        delta_px = (action.pointer.x - drag.pointer_start.x) if drag.horizontal else (
            action.pointer.y - drag.pointer_start.y)
        delta_ft = delta_px / scale
        if drag.end == 'start':
            delta_ft = -delta_ft

        # No snapping while dragging; the opposite end stays put
        length = max(MIN_WALL_DRAG_LENGTH_FT, drag.initial_length + delta_ft)
        shift = (length - drag.initial_length) / 2
        if drag.end == 'start':
            shift = -shift
        x, y = drag.initial
        if drag.horizontal:
            x += shift
        else:
            y += shift
        properties = {**fixture.properties, 'lengthOverrideFt': length}
        updated = replace(fixture, x_ft=x, y_ft=y, properties=properties)
        return replace(state, design=state.design.with_fixture(updated))

    def _end_wall_length_drag(self, state, action):
        drag = state.wall_length_drag
        if drag is None:
            return state
        fixture = state.design.fixture(drag.fixture_id)
        if fixture is None or fixture == drag.origin.fixture(drag.fixture_id):
            return replace(state, design=drag.origin, interaction=None)

        inc = state.snap_increment
        half = drag.initial_length / 2
        along = drag.initial.x if drag.horizontal else drag.initial.y
        fixed_edge = snap(along - half if drag.end == 'end' else along + half, inc)
        length = snap(footprint_of(fixture, self._item(fixture))[0], inc)
        center = fixed_edge + length / 2 if drag.end == 'end' else fixed_edge - length / 2
        if drag.horizontal:
            x, y = center, snap(fixture.y_ft, inc)
        else:
            x, y = snap(fixture.x_ft, inc), center
        properties = {**fixture.properties, 'lengthOverrideFt': length}
        state = replace(state, design=state.design.with_fixture(
            replace(fixture, x_ft=x, y_ft=y, properties=properties)))
        return self._finish(state, drag.origin, 'Change wall length')

    # ======================================================================
    # ANNOTATIONS
    # ======================================================================

    def _add_annotation(self, state, action):
        anchor = action.anchor
        if not _finite(anchor.x, anchor.y):
            return self._reject(state, "Annotation anchor must be finite")
        label = action.label
        if label is None:
            dx, dy = ANNOTATION_LABEL_OFFSET_FT
            label = Vec2(anchor.x + dx, max(0.0, anchor.y + dy))
        annotation = Annotation(id=action.annotation_id or self.id_factory(),
                                anchor_ft=anchor, label_ft=label, text=str(action.text))
        if state.design.annotation(annotation.id) is not None:
            return self._reject(state, f"Annotation id {annotation.id} already exists")
        design = replace(state.design, annotations=state.design.annotations + (annotation,))
        tool = Tool.SELECT if state.tool == Tool.ANNOTATE else state.tool
        return self._commit(state, design, 'Add annotation', selected_annotation_id=annotation.id,
                            selected_ids=(), primary_selected_id=None, selected_zone_id=None, tool=tool)

    def _update_annotation(self, state, action):
        annotation = state.design.annotation(action.id)
        if annotation is None:
            return state
        updates = {}
        if action.anchor is not None:
            updates['anchor_ft'] = action.anchor
        if action.label is not None:
            updates['label_ft'] = action.label
        if action.text is not None:
            updates['text'] = str(action.text)
        if action.color is not None:
            updates['color'] = action.color
        updated = replace(annotation, **updates)
        if updated == annotation:
            return state
        return self._commit(state, state.design.with_annotation(updated), 'Edit annotation')

    def _remove_annotation(self, state, action):
        if state.design.annotation(action.id) is None:
            return state
        if getattr(state.interaction, 'annotation_id', None) == action.id:
            state = self._abort_interaction(state)
        design = replace(state.design,
                         annotations=tuple(a for a in state.design.annotations if a.id != action.id))
        selected = None if state.selected_annotation_id == action.id else state.selected_annotation_id
        return self._commit(state, design, 'Remove annotation', selected_annotation_id=selected)

    def _start_annotation_drag(self, state, action):
        if self._busy(state, action.type):
            return state
        if action.target not in ('anchor', 'label'):
            return self._reject(state, f"Unknown annotation target {action.target!r}")
        annotation = state.design.annotation(action.id)
        if annotation is None:
            return state
        drag = AnnotationDragState(
            annotation_id=annotation.id,
            target=action.target,
            start=annotation.anchor_ft if action.target == 'anchor' else annotation.label_ft,
            pointer_start=action.pointer,
            origin=state.design,
        )
        return replace(state, interaction=drag, selected_annotation_id=annotation.id,
                       selected_ids=(), primary_selected_id=None, selected_zone_id=None)

    def _update_annotation_drag(self, state, action):
        drag = state.annotation_drag
        if drag is None:
            return state
        annotation = state.design.annotation(drag.annotation_id)
        if annotation is None:
            return state
        # Pointer is in viewbox units, so the zoom in effect now sets the scale
        scale = self._scale(action.scale_px_per_ft or BASE_SCALE * state.viewport.scale)
        point = self._snapped(state, Vec2(drag.start.x + (action.pointer.x - drag.pointer_start.x) / scale,
                                          drag.start.y + (action.pointer.y - drag.pointer_start.y) / scale))
        field_name = 'anchor_ft' if drag.target == 'anchor' else 'label_ft'
        if getattr(annotation, field_name) == point:
            return state
        return replace(state, design=state.design.with_annotation(replace(annotation, **{field_name: point})))

    def _end_annotation_drag(self, state, action):
        drag = state.annotation_drag
        if drag is None:
            return state
        return self._finish(state, drag.origin, 'Move annotation')

    # ======================================================================
    # TOOLS / EPHEMERAL STATE
    # ======================================================================

    def _set_tool(self, state, action):
        try:
            tool = Tool(action.tool)
        except ValueError:
            return self._reject(state, f"Unknown tool {action.tool!r}")
        state = self._abort_interaction(state)
        if tool == state.tool and not state.measure_points and state.pending_placement is None:
            return state
        return replace(state, tool=tool, measure_points=(), pending_placement=None)

    def _set_zone_edit_mode(self, state, action):
        enabled = bool(action.enabled)
        if enabled == state.zone_edit_mode:
            return state
        state = self._abort_interaction(state)
        if enabled:
            return replace(state, zone_edit_mode=True, selected_ids=(), primary_selected_id=None)
        return replace(state, zone_edit_mode=False, selected_zone_id=None)

    def _add_measure_point(self, state, action):
        point = action.point
        if not _finite(point.x, point.y):
            return self._reject(state, "Measure point must be finite")
        points = state.measure_points
        points = (point,) if len(points) >= MAX_MEASURE_POINTS else points + (point,)
        return replace(state, measure_points=points)

    def _clear_measure(self, state, action):
        if not state.measure_points:
            return state
        return replace(state, measure_points=())

    def _set_pending_placement(self, state, action):
        if action.catalog_key is None:
            if state.pending_placement is None:
                return state
            return replace(state, pending_placement=None)
        if action.catalog_key not in self.catalog:
            return self._reject(state, f"Unknown catalog key {action.catalog_key!r}")
        if action.rotation_deg not in VALID_ROTATIONS:
            return self._reject(state, f"Invalid rotation {action.rotation_deg}")
        state = self._abort_interaction(state)
        return replace(state, pending_placement=PendingPlacement(action.catalog_key, action.rotation_deg),
                       tool=Tool.SELECT, measure_points=())

    def _rotate_pending_placement(self, state, action):
        pending = state.pending_placement
        if pending is None:
            return state
        return replace(state, pending_placement=replace(pending, rotation_deg=(pending.rotation_deg + 90) % 360))

    def _place_pending_fixture(self, state, action):
        pending = state.pending_placement
        if pending is None:
            return state
        point = self._snapped(state, action.point)
        placed = self._insert_fixture(state, pending.catalog_key, point.x, point.y, pending.rotation_deg,
                                      fixture_id=action.fixture_id, description='Place fixture')
        if placed is state:
            return state
        return replace(placed, pending_placement=None)

    def _cancel_interaction(self, state, action):
        return self._abort_interaction(state)
