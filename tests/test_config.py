"""
Tests for EditorConfig loading and saving.

Covers:
- Defaults when the file is missing, corrupt or not an object
- Round trip through save_config / load_config
- Unknown keys ignored, vanished recent files dropped
- Out-of-range or wrongly typed values replaced by defaults
- Recent file list ordering and cap
"""
import json

import pytest

from constants import DEFAULT_SNAP_INCREMENT, MAX_HISTORY
from utils.config import EditorConfig, MAX_RECENT_FILES, config_path, load_config, save_config


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path))
        assert config == EditorConfig()
        assert config.snap_increment == DEFAULT_SNAP_INCREMENT
        assert config.max_history == MAX_HISTORY
        assert config.autosave is True

    def test_round_trip(self, tmp_path):
        recent = tmp_path / 'plan.json'
        recent.write_text('{}', encoding='utf-8')
        config = EditorConfig(snap_increment=0.5, key_bindings={'X': 'undo'}, recent_files=[str(recent)])
        save_config(config, str(tmp_path))
        assert load_config(str(tmp_path)) == config

    def test_corrupt_file_gives_defaults(self, tmp_path):
        with open(config_path(str(tmp_path)), 'w', encoding='utf-8') as f:
            f.write('{not json')
        assert load_config(str(tmp_path)) == EditorConfig()

    def test_non_object_gives_defaults(self, tmp_path):
        with open(config_path(str(tmp_path)), 'w', encoding='utf-8') as f:
            json.dump([1, 2, 3], f)
        assert load_config(str(tmp_path)) == EditorConfig()

    def test_unknown_keys_ignored(self, tmp_path):
        with open(config_path(str(tmp_path)), 'w', encoding='utf-8') as f:
            json.dump({'snap_increment': 1.0, 'theme': 'dark'}, f)
        assert load_config(str(tmp_path)).snap_increment == 1.0

    def test_missing_recent_files_dropped(self, tmp_path):
        kept = tmp_path / 'kept.json'
        kept.write_text('{}', encoding='utf-8')
        with open(config_path(str(tmp_path)), 'w', encoding='utf-8') as f:
            json.dump({'recent_files': [str(tmp_path / 'gone.json'), str(kept)]}, f)
        assert load_config(str(tmp_path)).recent_files == [str(kept)]

    def test_out_of_range_values_give_defaults(self, tmp_path, caplog):
        with open(config_path(str(tmp_path)), 'w', encoding='utf-8') as f:
            json.dump({'max_history': 0, 'snap_increment': -1, 'mouse_drag_threshold_px': 2}, f)
        config = load_config(str(tmp_path))
        assert config.max_history == MAX_HISTORY
        assert config.snap_increment == DEFAULT_SNAP_INCREMENT
        assert config.mouse_drag_threshold_px == 2
        assert 'max_history=0' in caplog.text

    def test_wrong_types_give_defaults(self, tmp_path):
        with open(config_path(str(tmp_path)), 'w', encoding='utf-8') as f:
            json.dump({'snap_increment': 'big', 'max_history': 2.5, 'autosave': 'yes',
                       'key_bindings': ['X'], 'recent_files': None}, f)
        assert load_config(str(tmp_path)) == EditorConfig()


class TestEditorConfig:

    @pytest.mark.parametrize("value", [0, -0.25, float('nan'), float('inf'), True])
    def test_bad_snap_increment_replaced(self, value):
        assert EditorConfig(snap_increment=value).snap_increment == DEFAULT_SNAP_INCREMENT

    def test_valid_values_kept(self):
        config = EditorConfig(snap_increment=0.5, max_history=1, touch_drag_threshold_px=0)
        assert (config.snap_increment, config.max_history, config.touch_drag_threshold_px) == (0.5, 1, 0)


class TestSaveConfig:

    def test_creates_directory(self, tmp_path):
        target = tmp_path / 'a' / 'b'
        save_config(EditorConfig(), str(target))
        with open(config_path(str(target)), 'r', encoding='utf-8') as f:
            assert json.load(f)['autosave'] is True

    def test_write_failure_raises(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('', encoding='utf-8')
        with pytest.raises(OSError):
            save_config(EditorConfig(), str(blocker / 'sub'))


class TestRecentFiles:

    def test_most_recent_first_without_duplicates(self):
        config = EditorConfig()
        for path in ('a.json', 'b.json', 'a.json'):
            config.add_recent_file(path)
        assert config.recent_files == ['a.json', 'b.json']

    def test_capped(self):
        config = EditorConfig()
        for n in range(MAX_RECENT_FILES + 5):
            config.add_recent_file(f"{n}.json")
        assert len(config.recent_files) == MAX_RECENT_FILES
        assert config.recent_files[0] == f"{MAX_RECENT_FILES + 4}.json"
