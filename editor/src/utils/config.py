"""Configuration management for the Fixture Layout Editor"""

import os
import json
import math
import logging
from dataclasses import MISSING, dataclass, field, fields, asdict

from constants import (
	DEFAULT_SNAP_INCREMENT, MAX_HISTORY, TOUCH_DRAG_THRESHOLD_PX, MOUSE_DRAG_THRESHOLD_PX,
)
from utils.logger import loggerRaise

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.path.join(os.path.expanduser('~'), '.fixture_layout')
CONFIG_FILENAME = 'config.json'
MAX_RECENT_FILES = 10


def _is_number(value):
	return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


# Setting name -> predicate its value must satisfy
SETTING_CHECKS = {
	'snap_increment': lambda v: _is_number(v) and v > 0,
	'max_history': lambda v: isinstance(v, int) and not isinstance(v, bool) and v > 0,
	'touch_drag_threshold_px': lambda v: _is_number(v) and v >= 0,
	'mouse_drag_threshold_px': lambda v: _is_number(v) and v >= 0,
	'key_bindings': lambda v: isinstance(v, dict),
	'autosave': lambda v: isinstance(v, bool),
	'recent_files': lambda v: isinstance(v, list),
}


def _valid_setting(name, value):
	check = SETTING_CHECKS.get(name)
	return check is None or check(value)


@dataclass
class EditorConfig:
	"""User settings persisted between sessions"""
	snap_increment: float = DEFAULT_SNAP_INCREMENT
	max_history: int = MAX_HISTORY
	touch_drag_threshold_px: float = TOUCH_DRAG_THRESHOLD_PX
	mouse_drag_threshold_px: float = MOUSE_DRAG_THRESHOLD_PX
	key_bindings: dict = field(default_factory=dict)   # key sequence -> command, merged onto defaults
	autosave: bool = True
	recent_files: list = field(default_factory=list)

	def __post_init__(self):
		"""Replace out-of-range or wrongly typed values with their defaults"""
		for f in fields(self):
			value = getattr(self, f.name)
			if not _valid_setting(f.name, value):
				default = f.default_factory() if f.default is MISSING else f.default
				logger.warning(f"Invalid config value {f.name}={value!r}, using {default!r}")
				setattr(self, f.name, default)

	@classmethod
	def from_dict(cls, data):
		"""Build a config from a JSON object, ignoring unknown keys"""
		known = {f.name for f in fields(cls)}
		return cls(**{k: v for k, v in data.items() if k in known})

	def to_dict(self):
		return asdict(self)

	def add_recent_file(self, filepath):
		"""Move filepath to the front of the recent files list"""
		if filepath in self.recent_files:
			self.recent_files.remove(filepath)
		self.recent_files.insert(0, filepath)
		del self.recent_files[MAX_RECENT_FILES:]


def config_path(config_dir=None):
	return os.path.join(config_dir or DEFAULT_CONFIG_DIR, CONFIG_FILENAME)


def load_config(config_dir=None):
	"""
	Load the editor config

	Missing or unreadable files fall back to defaults.

	Args:
		config_dir: Directory holding config.json (defaults to ~/.fixture_layout)

	Returns:
		EditorConfig
	"""
	path = config_path(config_dir)
	if not os.path.exists(path):
		return EditorConfig()
	try:
		with open(path, 'r', encoding='utf-8') as f:
			data = json.load(f)
	except (OSError, json.JSONDecodeError) as e:
		logger.warning(f"Could not read config {path}, using defaults: {e}")
		return EditorConfig()
	if not isinstance(data, dict):
		logger.warning(f"Config {path} is not a JSON object, using defaults")
		return EditorConfig()
	try:
		config = EditorConfig.from_dict(data)
	except TypeError as e:
		logger.warning(f"Invalid config {path}, using defaults: {e}")
		return EditorConfig()
	# Filter out files that no longer exist
	config.recent_files = [f for f in config.recent_files if os.path.exists(f)]
	return config


def save_config(config, config_dir=None):
	"""Write the config as indented JSON, creating the directory if needed"""
	path = config_path(config_dir)
	try:
		os.makedirs(os.path.dirname(path), exist_ok=True)
		with open(path, 'w', encoding='utf-8') as f:
			json.dump(config.to_dict(), f, indent=2)
	except OSError as e:
		loggerRaise(e, "Error saving config")
