"""
Shared fixtures for Fixture Layout Editor tests.

Provides a small deterministic catalog, designs, reducers with recording
observers, sessions and a measured drawing surface.
"""
import sys
import os
import itertools
import pytest

# Ensure editor/src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'editor', 'src'))

# Qt widgets are created without a display
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')


# ── Catalog ─────────────────────────────────────────────────────────────

def _test_catalog():
    from models.catalog import Catalog, CatalogItem
    return Catalog.from_items([
        CatalogItem('fixture-box', 'Box', 'fixture-test', 2.0, 2.0, 'center', 'floor'),
        CatalogItem('fixture-block', 'Block', 'fixture-test', 4.0, 4.0, 'front-left', 'floor'),
        CatalogItem('storage-upper', 'Upper', 'storage', 4.0, 4.0, 'front-left', 'wall'),
        CatalogItem('fixture-wall', 'Wall', 'shell-structure', 4.0, 0.5, 'center', 'floor', hidden=True),
        CatalogItem('opening-door', 'Door', 'opening', 3.0, 0.5, 'center', 'floor'),
        CatalogItem('fixture-toilet', 'Toilet', 'fixture-bath', 2.5, 1.5, 'center', 'floor',
                    min_clearance_ft={'front': 2.0}),
    ])


@pytest.fixture
def catalog():
    """Catalog with 2x2 centred boxes, 4x4 corner-anchored blocks, walls and doors"""
    return _test_catalog()


# ── Designs ─────────────────────────────────────────────────────────────

@pytest.fixture
def design():
    """Empty 20ft x 8ft shell"""
    from models.design import empty_design
    return empty_design()


@pytest.fixture
def big_design():
    """Empty 20ft x 20ft shell"""
    from models.design import empty_design
    return empty_design({'id': 'shell-square', 'lengthFt': 20.0, 'widthFt': 20.0, 'heightFt': 9.0})


@pytest.fixture
def box_design(design):
    """20x8 shell with one 2x2 box 'a' at (5, 4)"""
    from dataclasses import replace
    from models.design import Fixture
    return replace(design, fixtures=(Fixture('a', 'fixture-box', 5.0, 4.0),))


# ── Reducer / session ───────────────────────────────────────────────────

class RecordingObserver:
    """Observer port that keeps every event"""

    def __init__(self):
        self.events = []

    def on_event(self, kind, message, data):
        self.events.append((kind, message, data))

    def kinds(self):
        return [kind for kind, _, _ in self.events]


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def id_factory():
    """Deterministic ids: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def reducer(catalog, observer, id_factory):
    from services.editor_reducer import EditorReducer
    from utils.history_manager import HistoryManager
    return EditorReducer(catalog, HistoryManager(max_history=50), observer, id_factory)


@pytest.fixture
def state(design):
    from models.editor_state import initial_state
    return initial_state(design)


@pytest.fixture
def box_state(box_design):
    """State with box 'a' selected"""
    from dataclasses import replace
    from models.editor_state import initial_state
    return replace(initial_state(box_design), selected_ids=('a',), primary_selected_id='a')


@pytest.fixture
def persistence():
    from services.persistence import MemoryPersistence
    return MemoryPersistence()


@pytest.fixture
def session(box_design, catalog, persistence, observer):
    """Session over box_design with in-memory autosave"""
    from services.session import EditorSession
    return EditorSession(box_design, catalog, persistence=persistence, observer=observer)


# ── Surface ─────────────────────────────────────────────────────────────
# 800 x 416 is exactly the viewbox of a 20x8 shell, so with the default
# viewport device pixels equal world units: px = ft * 32 + 80

@pytest.fixture
def surface():
    from utils.coordinate_transforms import SurfaceGeometry
    return SurfaceGeometry(0.0, 0.0, 800.0, 416.0, 1.0)


def px(ft):
    """Device pixel for a feet coordinate on the 800x416 surface at zoom 1"""
    return ft * 32 + 80
