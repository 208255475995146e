"""
Zone layout helpers.

Zones of a template shell are laid out left to right along the shell length.
Resizing one of them hands the difference to its neighbour so the zones keep
covering the whole shell.
"""
from dataclasses import replace

from constants import ZONE_CONSTRAINTS
from models.design import ZoneConstraints


class ZoneResizeError(ValueError):
    """Raised when a zone resize violates a length constraint"""


def get_zone_type(zone_id):
    """Zone type key for ids like 'bedroom' or 'Kitchen-Living', or None"""
    normalized = str(zone_id).lower()
    return normalized if normalized in ZONE_CONSTRAINTS else None


def constraints_for(zone):
    """Explicit zone constraints, else the per-type defaults, else None"""
    if zone.constraints is not None:
        return zone.constraints
    zone_type = get_zone_type(zone.id)
    if zone_type is None:
        return None
    limits = ZONE_CONSTRAINTS[zone_type]
    return ZoneConstraints(limits['min_length_ft'], limits['max_length_ft'], limits['can_resize'])


def check_zone_length(zone, new_length_ft):
    """
    Validate a new length for a zone

    Raises:
        ZoneResizeError: If the zone type is unknown, fixed, or the length is out of range
    """
    constraints = constraints_for(zone)
    if constraints is None:
        raise ZoneResizeError(f"Unknown zone type: {zone.id}")
    if not constraints.can_resize:
        raise ZoneResizeError(f"Zone {zone.name} cannot be resized")
    if new_length_ft < constraints.min_length_ft:
        raise ZoneResizeError(f"Minimum size of {zone.name} is {constraints.min_length_ft}ft")
    if constraints.max_length_ft is not None and new_length_ft > constraints.max_length_ft:
        raise ZoneResizeError(f"Maximum size of {zone.name} is {constraints.max_length_ft}ft")


def resize_zone(design, zone_id, new_length_ft):
    """
    Resize a zone and compensate with its neighbour

    The next zone absorbs the change (the previous one when resizing the last
    zone). Zones are then re-laid from x=0 and fixtures keep their relative
    position inside their zone.

    Args:
        design: Current Design
        zone_id: Zone to resize
        new_length_ft: Requested length in feet

    Returns:
        New Design (the same object if zone_id is unknown)

    Raises:
        ZoneResizeError: If either zone would violate its constraints or the
            zones would no longer span the shell
    """
    old_zones = list(design.zones)
    index = next((i for i, z in enumerate(old_zones) if z.id == zone_id), -1)
    if index == -1:
        return design

    zone = old_zones[index]
    check_zone_length(zone, new_length_ft)
    delta = new_length_ft - zone.length_ft

    zones = list(old_zones)
    zones[index] = replace(zone, length_ft=new_length_ft)
    neighbour = index + 1 if index < len(zones) - 1 else index - 1
    if neighbour >= 0 and neighbour != index:
        other = zones[neighbour]
        check_zone_length(other, other.length_ft - delta)
        zones[neighbour] = replace(other, length_ft=other.length_ft - delta)

    relaid = []
    cursor = 0.0
    for z in zones:
        relaid.append(replace(z, x_ft=cursor))
        cursor += z.length_ft
    if abs(cursor - design.shell.length_ft) > 0.01:
        raise ZoneResizeError(
            f"Zone resize would create invalid total length: {cursor}ft vs {design.shell.length_ft}ft")

    before = {z.id: z for z in old_zones}
    after = {z.id: z for z in relaid}
    fixtures = []
    for fixture in design.fixtures:
        old_zone, new_zone = before.get(fixture.zone), after.get(fixture.zone)
        if old_zone is None or new_zone is None or old_zone.length_ft <= 0:
            fixtures.append(fixture)
            continue
        relative = (fixture.x_ft - old_zone.x_ft) / old_zone.length_ft
        fixtures.append(replace(fixture, x_ft=new_zone.x_ft + relative * new_zone.length_ft))

    return replace(design, zones=tuple(relaid), fixtures=tuple(fixtures))


def zone_boundaries(zones):
    """Shared edges between consecutive zones, for boundary resize handles

    Returns:
        List of (x_ft, left_zone_id, right_zone_id)
    """
    return [(left.x_ft + left.length_ft, left.id, right.id) for left, right in zip(zones, zones[1:])]
