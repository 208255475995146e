"""
Fixture Layout Editor - Design Document Model

The persisted document: a shell, its zones, the fixtures placed in it and
free-form annotations. All classes are immutable; the editor reducer builds new
instances with dataclasses.replace() instead of mutating in place, so a Design
reference held by the history stacks never changes underneath it.

The dict form produced by to_dict()/from_dict() is the serialization contract
with external persistence (camelCase keys, feet units).
"""
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

from constants import DEFAULT_SHELL, VALID_ROTATIONS
from models.transform import Vec2


def new_id() -> str:
    """Generate a document-unique identifier for fixtures, zones and annotations"""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Shell:
    """Fixed container bounds; length runs along X, width along Y"""
    id: str
    length_ft: float
    width_ft: float
    height_ft: float

    def to_dict(self):
        return {'id': self.id, 'lengthFt': self.length_ft,
                'widthFt': self.width_ft, 'heightFt': self.height_ft}

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data.get('id', 'shell')),
            length_ft=float(data['lengthFt']),
            width_ft=float(data['widthFt']),
            height_ft=float(data.get('heightFt', 0.0)),
        )


@dataclass(frozen=True)
class ZoneConstraints:
    min_length_ft: float
    max_length_ft: Optional[float] = None
    can_resize: bool = True


@dataclass(frozen=True)
class Zone:
    """Named axis-aligned sub-rectangle of the shell"""
    id: str
    name: str
    x_ft: float
    y_ft: float
    length_ft: float
    width_ft: float
    constraints: Optional[ZoneConstraints] = None

    def to_dict(self):
        data = {'id': self.id, 'name': self.name, 'xFt': self.x_ft, 'yFt': self.y_ft,
                'lengthFt': self.length_ft, 'widthFt': self.width_ft}
        if self.constraints is not None:
            data['constraints'] = {
                'minLengthFt': self.constraints.min_length_ft,
                'maxLengthFt': self.constraints.max_length_ft,
                'canResize': self.constraints.can_resize,
            }
        return data

    @classmethod
    def from_dict(cls, data):
        constraints = None
        raw = data.get('constraints')
        if isinstance(raw, dict):
            constraints = ZoneConstraints(
                min_length_ft=float(raw.get('minLengthFt', 0.0)),
                max_length_ft=raw.get('maxLengthFt'),
                can_resize=bool(raw.get('canResize', True)),
            )
        return cls(
            id=str(data['id']),
            name=str(data.get('name', data['id'])),
            x_ft=float(data['xFt']),
            y_ft=float(data['yFt']),
            length_ft=float(data['lengthFt']),
            width_ft=float(data['widthFt']),
            constraints=constraints,
        )


@dataclass(frozen=True)
class Fixture:
    """A placed catalog item.

    (x_ft, y_ft) is the anchor position; what it means depends on the catalog
    item's footprint anchor, see utils.geometry.rect_from_fixture.
    """
    id: str
    catalog_key: str
    x_ft: float
    y_ft: float
    rotation_deg: int = 0
    locked: bool = False
    properties: Dict[str, object] = field(default_factory=dict)
    zone: Optional[str] = None
    name: Optional[str] = None

    def to_dict(self):
        data = {'id': self.id, 'catalogKey': self.catalog_key, 'xFt': self.x_ft,
                'yFt': self.y_ft, 'rotationDeg': self.rotation_deg}
        if self.locked:
            data['locked'] = True
        if self.properties:
            data['properties'] = dict(self.properties)
        if self.zone is not None:
            data['zone'] = self.zone
        if self.name is not None:
            data['name'] = self.name
        return data

    @classmethod
    def from_dict(cls, data):
        rotation = int(data.get('rotationDeg', 0))
        if rotation not in VALID_ROTATIONS:
            raise ValueError(f"Fixture {data.get('id')!r} has non-cardinal rotation {rotation}")
        properties = data.get('properties') or {}
        if not isinstance(properties, dict):
            raise ValueError(f"Fixture {data.get('id')!r} properties must be a mapping")
        return cls(
            id=str(data['id']),
            catalog_key=str(data['catalogKey']),
            x_ft=float(data['xFt']),
            y_ft=float(data['yFt']),
            rotation_deg=rotation,
            locked=bool(data.get('locked', False)),
            properties=dict(properties),
            zone=data.get('zone'),
            name=data.get('name'),
        )


@dataclass(frozen=True)
class Annotation:
    """Free-form note: a leader line from anchor_ft to the text at label_ft"""
    id: str
    anchor_ft: Vec2
    label_ft: Vec2
    text: str = ''
    color: Optional[str] = None

    def to_dict(self):
        data = {'id': self.id,
                'anchorFt': {'x': self.anchor_ft.x, 'y': self.anchor_ft.y},
                'labelFt': {'x': self.label_ft.x, 'y': self.label_ft.y},
                'text': self.text}
        if self.color is not None:
            data['color'] = self.color
        return data

    @classmethod
    def from_dict(cls, data):
        anchor = data['anchorFt']
        label = data['labelFt']
        return cls(
            id=str(data['id']),
            anchor_ft=Vec2(float(anchor['x']), float(anchor['y'])),
            label_ft=Vec2(float(label['x']), float(label['y'])),
            text=str(data.get('text', '')),
            color=data.get('color'),
        )


@dataclass(frozen=True)
class Design:
    """The persisted document owned by the editor reducer while editing"""
    shell: Shell
    zones: Tuple[Zone, ...] = ()
    fixtures: Tuple[Fixture, ...] = ()
    annotations: Tuple[Annotation, ...] = ()
    version: int = 1

    # ── lookups ──

    def fixture(self, fixture_id) -> Optional[Fixture]:
        for fixture in self.fixtures:
            if fixture.id == fixture_id:
                return fixture
        return None

    def zone(self, zone_id) -> Optional[Zone]:
        for zone in self.zones:
            if zone.id == zone_id:
                return zone
        return None

    def annotation(self, annotation_id) -> Optional[Annotation]:
        for annotation in self.annotations:
            if annotation.id == annotation_id:
                return annotation
        return None

    def fixture_ids(self):
        return [fixture.id for fixture in self.fixtures]

    # ── copy-on-write helpers ──

    def with_fixture(self, updated: Fixture) -> 'Design':
        """Return a copy with the fixture of the same id replaced"""
        fixtures = tuple(updated if f.id == updated.id else f for f in self.fixtures)
        return replace(self, fixtures=fixtures)

    def with_zone(self, updated: Zone) -> 'Design':
        zones = tuple(updated if z.id == updated.id else z for z in self.zones)
        return replace(self, zones=zones)

    def with_annotation(self, updated: Annotation) -> 'Design':
        annotations = tuple(updated if a.id == updated.id else a for a in self.annotations)
        return replace(self, annotations=annotations)

    # ── serialization ──

    def to_dict(self):
        return {
            'version': self.version,
            'shell': self.shell.to_dict(),
            'zones': [zone.to_dict() for zone in self.zones],
            'fixtures': [fixture.to_dict() for fixture in self.fixtures],
            'annotations': [annotation.to_dict() for annotation in self.annotations],
        }

    @classmethod
    def from_dict(cls, data) -> 'Design':
        """Build a Design from its dict form.

        Raises:
            ValueError: If the document is structurally invalid
        """
        if not isinstance(data, dict) or 'shell' not in data:
            raise ValueError("Design document must be a mapping with a 'shell' entry")
        try:
            return cls(
                shell=Shell.from_dict(data['shell']),
                zones=tuple(Zone.from_dict(z) for z in data.get('zones') or []),
                fixtures=tuple(Fixture.from_dict(f) for f in data.get('fixtures') or []),
                annotations=tuple(Annotation.from_dict(a) for a in data.get('annotations') or []),
                version=int(data.get('version', 1)),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid design document: {e}") from e


def empty_design(shell_data=None) -> Design:
    """Blank document inside the default (or given) shell"""
    return Design(shell=Shell.from_dict(shell_data or DEFAULT_SHELL))
