"""
Fixture Layout Editor - Constants and Configuration

This module contains all constant values used throughout the editing engine:
- Plan canvas scale and padding (feet <-> pixel conversion)
- Viewport zoom limits
- Snapping, alignment and collision thresholds
- Interaction thresholds for mouse and touch input
- Default document values (walls, zones, annotations)
"""

# ======================================================================
# PLAN CANVAS GEOMETRY
# ======================================================================
# The logical plan surface is the shell drawn at BASE_SCALE pixels per foot,
# surrounded by CANVAS_PADDING pixels on every side.

BASE_SCALE = 32          # world pixels per foot
CANVAS_PADDING = 80      # world pixels around the shell

# ======================================================================
# VIEWPORT
# ======================================================================

MIN_ZOOM = 0.25
MAX_ZOOM = 4.0
DEFAULT_ZOOM = 1.0
WHEEL_ZOOM_STEP = 0.1    # scale delta per wheel notch (120 units)

# ======================================================================
# SNAPPING / GUIDES / HISTORY
# ======================================================================

DEFAULT_SNAP_INCREMENT = 0.25   # 0.25ft lets 0.5ft-deep fixtures sit flush against walls
ALIGN_THRESHOLD_FT = 0.25
MAX_HISTORY = 50

# ======================================================================
# INTERACTION THRESHOLDS
# ======================================================================
# Device pixels a pointer must travel before a press on a fixture turns into a drag

TOUCH_DRAG_THRESHOLD_PX = 10
MOUSE_DRAG_THRESHOLD_PX = 3

ROTATION_HANDLE_OFFSET_FT = 0.75   # handle sits this far above the selected fixture
HANDLE_HIT_RADIUS_FT = 0.35
ANNOTATION_HIT_RADIUS_FT = 0.5

# ======================================================================
# FIXTURES / WALLS
# ======================================================================

WALL_CATALOG_KEY = 'fixture-wall'
WALL_KEY_HINT = 'wall'          # catalog keys containing these are exempt from
DOOR_KEY_HINT = 'door'          # wall-wall and door-wall collision checks
MIN_WALL_LENGTH_FT = 0.5        # shorter wall strokes are discarded
MIN_WALL_DRAG_LENGTH_FT = 1.0   # floor for wall length override
DEFAULT_WALL_LENGTH_FT = 4.0
DEFAULT_WALL_MATERIAL = 'drywall'
MIN_FIXTURE_OVERRIDE_FT = 0.5
FALLBACK_FOOTPRINT_FT = 1.0     # used when a catalog key cannot be resolved

VALID_ROTATIONS = (0, 90, 180, 270)
FOOTPRINT_ANCHORS = ('center', 'front-left', 'back-left')
MOUNT_LAYERS = ('floor', 'wall')

# ======================================================================
# ZONES
# ======================================================================

MIN_ZONE_SIZE_FT = 1.0
DEFAULT_ZONE_LENGTH_FT = 8.0
ZONE_HANDLE_NAMES = ('n', 's', 'e', 'w', 'ne', 'nw', 'se', 'sw')

# Per zone-type length limits used by the adjacent-compensating resize
ZONE_CONSTRAINTS = {
    'kitchen-living': {'min_length_ft': 10, 'max_length_ft': 24, 'can_resize': True},
    'bathroom':       {'min_length_ft': 4,  'max_length_ft': 12, 'can_resize': True},
    'hallway':        {'min_length_ft': 2,  'max_length_ft': 8,  'can_resize': True},
    'bedroom':        {'min_length_ft': 8,  'max_length_ft': 16, 'can_resize': True},
    'bath-hallway':   {'min_length_ft': 8,  'max_length_ft': 14, 'can_resize': True},
}

# ======================================================================
# ANNOTATIONS / MEASURE
# ======================================================================

ANNOTATION_LABEL_OFFSET_FT = (2.0, -2.0)
MAX_MEASURE_POINTS = 2

# ======================================================================
# DEFAULT DOCUMENT
# ======================================================================

DEFAULT_SHELL = {'id': 'shell-20', 'lengthFt': 20.0, 'widthFt': 8.0, 'heightFt': 9.5}
