"""
Tests for the headless action replay CLI.
"""
import json

import pytest

import headless
from services.persistence import load_design_from_file, save_design_to_file


CATALOG_ROWS = [
    {'key': 'fixture-box', 'label': 'Box', 'category': 'fixture-test',
     'footprintFt': {'length': 2, 'width': 2}, 'footprintAnchor': 'center'},
    {'key': 'fixture-wall', 'label': 'Wall', 'category': 'shell-structure',
     'footprintFt': {'length': 4, 'width': 0.5}, 'hidden': True},
]

DRAG_ACTIONS = [
    {'type': 'START_DRAG', 'id': 'a', 'pointer': {'x': 240, 'y': 208}},
    {'type': 'UPDATE_DRAG', 'pointer': {'x': 304, 'y': 208}},
    {'type': 'END_DRAG'},
]


def write_json(path, data):
    path.write_text(json.dumps(data), encoding='utf-8')
    return str(path)


@pytest.fixture
def files(tmp_path, box_design):
    design_path = str(tmp_path / 'plan.json')
    save_design_to_file(box_design, design_path)
    return {
        'design': design_path,
        'catalog': write_json(tmp_path / 'catalog.json', CATALOG_ROWS),
        'actions': write_json(tmp_path / 'actions.json', DRAG_ACTIONS),
        'output': str(tmp_path / 'out.json'),
    }


class TestMain:

    def test_replays_drag(self, files, capsys):
        code = headless.main([files['design'], files['actions'], '-o', files['output'],
                              '--catalog', files['catalog']])
        assert code == 0
        fixture = load_design_from_file(files['output']).fixture('a')
        assert (fixture.x_ft, fixture.y_ft) == (7, 4)
        out = capsys.readouterr().out
        assert 'Replaying 3 action(s)' in out
        assert 'History depth: 1' in out

    def test_default_output_path(self, files, tmp_path):
        assert headless.main([files['design'], files['actions'], '-c', files['catalog']]) == 0
        assert (tmp_path / 'plan_out.json').exists()

    def test_missing_design(self, files, tmp_path, capsys):
        code = headless.main([str(tmp_path / 'nope.json'), files['actions']])
        assert code == 1
        assert capsys.readouterr().out.startswith('Error:')

    def test_unknown_action_type(self, files, tmp_path):
        actions = write_json(tmp_path / 'bad.json', [{'type': 'EXPLODE'}])
        assert headless.main([files['design'], actions, '-c', files['catalog']]) == 1

    def test_actions_must_be_a_list(self, files, tmp_path):
        actions = write_json(tmp_path / 'bad.json', {'type': 'END_DRAG'})
        assert headless.main([files['design'], actions, '-c', files['catalog']]) == 1

    def test_rejected_actions_reported(self, files, tmp_path, capsys):
        actions = write_json(tmp_path / 'select.json', [{'type': 'SELECT_FIXTURE', 'id': 'ghost'}])
        assert headless.main([files['design'], actions, '-o', files['output'], '-c', files['catalog']]) == 0
        assert 'Ignored actions: 1 rejected, 0 malformed' in capsys.readouterr().out


class TestLoaders:

    def test_catalog_list(self, files):
        catalog = headless.load_catalog(files['catalog'])
        assert len(catalog) == 2
        assert catalog.get('fixture-wall').hidden

    def test_catalog_legacy_rows(self, tmp_path):
        path = write_json(tmp_path / 'rows.json', [
            {'key': 'opening-door', 'name': 'Door', 'category': 'opening', 'schemaJson': {'widthFt': 3}},
            {'name': 'no key', 'schemaJson': {}},
        ])
        catalog = headless.load_catalog(path)
        door = catalog.get('opening-door')
        assert (door.footprint_length_ft, door.footprint_width_ft) == (3.0, 0.5)
        assert door.mount == 'wall'
        assert len(catalog) == 1

    def test_catalog_must_be_list(self, tmp_path):
        with pytest.raises(ValueError):
            headless.load_catalog(write_json(tmp_path / 'c.json', {}))

    def test_load_actions(self, files):
        actions = headless.load_actions(files['actions'])
        assert [a.type for a in actions] == ['START_DRAG', 'UPDATE_DRAG', 'END_DRAG']

    def test_replay(self, box_design, catalog):
        from actions.editor_actions import action_from_dict
        session = headless.replay(box_design, [action_from_dict(a) for a in DRAG_ACTIONS], catalog)
        assert session.state.design.fixture('a').x_ft == 7
