"""
Fixture Layout Editor - Catalog Lookup

The fixture catalog (labels, pricing, 3D models) lives outside the editing
engine. The engine only needs the physical part of each entry: footprint,
footprint anchor and mount layer. Catalog wraps a key -> CatalogItem mapping
and converts legacy database rows (schemaJson blobs) into items.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from constants import FOOTPRINT_ANCHORS, WALL_CATALOG_KEY


@dataclass(frozen=True)
class CatalogItem:
    key: str
    label: str
    category: str
    footprint_length_ft: float
    footprint_width_ft: float
    footprint_anchor: str = 'center'
    mount: str = 'floor'
    min_clearance_ft: Optional[Dict[str, float]] = None
    allowed_zones: Optional[Tuple[str, ...]] = None
    hidden: bool = False

    @classmethod
    def from_dict(cls, data):
        footprint = data.get('footprintFt') or {}
        anchor = data.get('footprintAnchor', 'center')
        if anchor not in FOOTPRINT_ANCHORS:
            raise ValueError(f"Catalog item {data.get('key')!r} has unknown anchor {anchor!r}")
        zones = data.get('allowedZones')
        return cls(
            key=str(data['key']),
            label=str(data.get('label', data['key'])),
            category=str(data.get('category', 'interior')),
            footprint_length_ft=float(footprint['length']),
            footprint_width_ft=float(footprint['width']),
            footprint_anchor=anchor,
            mount=data.get('mount', 'floor'),
            min_clearance_ft=data.get('minClearanceFt'),
            allowed_zones=tuple(zones) if zones else None,
            hidden=bool(data.get('hidden', False)),
        )


def entry_to_item(entry) -> Optional[CatalogItem]:
    """Convert a legacy catalog row into a CatalogItem.

    Args:
        entry: Dict with 'key', 'name', 'category' and a 'schemaJson' blob

    Returns:
        CatalogItem, or None if the row has no key
    """
    key = entry.get('key')
    if not key:
        return None
    schema = entry.get('schemaJson') or {}
    category = str(entry.get('category', 'interior'))

    length, width = 6.0, 4.0
    footprint = schema.get('footprintFt')
    if isinstance(footprint, dict):
        if isinstance(footprint.get('length'), (int, float)) and isinstance(footprint.get('width'), (int, float)):
            length, width = float(footprint['length']), float(footprint['width'])
    elif category == 'opening':
        # Openings are described by their width along the wall; give them a thin plan depth
        opening_width = schema.get('widthFt')
        length = float(opening_width) if isinstance(opening_width, (int, float)) else 3.0
        width = 0.5

    anchor = schema.get('footprintAnchor') or ('center' if 'fixture' in category else 'front-left')
    mount = schema.get('mount') or ('wall' if 'opening' in category else 'floor')

    clearance = schema.get('minClearanceFt')
    if isinstance(clearance, dict):
        clearance = {side: float(clearance[side]) for side in ('front', 'back', 'left', 'right')
                     if isinstance(clearance.get(side), (int, float))}
    else:
        clearance = None

    zones = schema.get('allowedZones')
    zones = tuple(z for z in zones if isinstance(z, str)) if isinstance(zones, list) else None

    return CatalogItem(
        key=str(key),
        label=str(entry.get('name', key)),
        category=category,
        footprint_length_ft=length,
        footprint_width_ft=width,
        footprint_anchor=anchor,
        mount=mount,
        min_clearance_ft=clearance,
        allowed_zones=zones,
        hidden=schema.get('hidden') is True,
    )


@dataclass
class Catalog:
    """Key -> CatalogItem lookup consumed by geometry and the reducer"""
    items: Dict[str, CatalogItem] = field(default_factory=dict)

    def get(self, key) -> Optional[CatalogItem]:
        return self.items.get(key)

    def __contains__(self, key):
        return key in self.items

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items.values())

    @classmethod
    def from_items(cls, items):
        return cls({item.key: item for item in items})

    @classmethod
    def from_list(cls, data):
        """Build from a list of item dicts (catalog JSON export)"""
        return cls.from_items(CatalogItem.from_dict(d) for d in data)

    @classmethod
    def from_entries(cls, entries):
        """Build from legacy catalog rows, skipping rows without a key"""
        return cls.from_items(item for item in (entry_to_item(e) for e in entries) if item)


def default_catalog() -> Catalog:
    """Small built-in catalog used by the host shell and the replay CLI"""
    return Catalog.from_items([
        CatalogItem(WALL_CATALOG_KEY, 'Interior Wall', 'shell-structure', 4.0, 0.5, 'center', 'floor', hidden=True),
        CatalogItem('opening-door', 'Door', 'opening', 3.0, 0.5, 'center', 'floor'),
        CatalogItem('opening-window', 'Window', 'opening', 3.0, 0.5, 'center', 'wall'),
        CatalogItem('fixture-toilet', 'Toilet', 'fixture-bath', 2.5, 1.5, 'center', 'floor',
                    min_clearance_ft={'front': 2.0}),
        CatalogItem('fixture-shower', 'Shower', 'fixture-bath', 3.0, 3.0, 'center', 'floor'),
        CatalogItem('fixture-sink', 'Sink', 'fixture-galley', 2.0, 2.0, 'center', 'floor',
                    min_clearance_ft={'front': 2.5}),
        CatalogItem('fixture-bed-queen', 'Queen Bed', 'fixture-sleep', 6.7, 5.0, 'center', 'floor',
                    min_clearance_ft={'left': 1.5, 'right': 1.5}),
        CatalogItem('storage-upper-cabinet', 'Upper Cabinet', 'storage', 1.0, 3.0, 'back-left', 'wall'),
        CatalogItem('storage-base-cabinet', 'Base Cabinet', 'storage', 2.0, 3.0, 'back-left', 'floor'),
    ])
