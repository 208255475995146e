"""
Fixture Layout Editor - Keyboard Commands

Logical editor commands ('undo', 'nudge-left', ...) and the swappable key
binding table that maps Qt key-sequence strings onto them. The dispatcher
never sees key events; the canvas widget turns them into sequence strings.
"""

import logging

from actions.editor_actions import (
	Undo, Redo, RemoveAnnotation, RemoveFixtures, MoveFixtures, RotateFixtures,
	RotatePendingPlacement, SetPendingPlacement, CancelInteraction, SelectAnnotation,
	ClearSelection, SetTool, SelectFixture, SelectAll,
)
from models.editor_state import Tool
from models.transform import Vec2
from utils.geometry import sort_by_distance, sort_by_position

logger = logging.getLogger(__name__)

DEFAULT_KEY_BINDINGS = {
	'Ctrl+Z': 'undo',
	'Ctrl+Y': 'redo',
	'Ctrl+Shift+Z': 'redo',
	'Del': 'delete-selection',
	'Backspace': 'delete-selection',
	'Up': 'nudge-up',
	'Down': 'nudge-down',
	'Left': 'nudge-left',
	'Right': 'nudge-right',
	'R': 'rotate-selection',
	'Esc': 'escape',
	'V': 'tool-select',
	'H': 'tool-pan',
	'W': 'tool-wall',
	'M': 'tool-measure',
	'A': 'tool-annotate',
	'Tab': 'cycle-next',
	'Shift+Tab': 'cycle-prev',
	'Backtab': 'cycle-prev',
	'Shift+Backtab': 'cycle-prev',
	'Ctrl+A': 'select-all',
}

NUDGE_DIRECTIONS = {
	'nudge-up': (0, -1),
	'nudge-down': (0, 1),
	'nudge-left': (-1, 0),
	'nudge-right': (1, 0),
}


class CommandDispatcher:
	"""Runs logical commands against an EditorSession"""

	def __init__(self, session, bindings=None):
		"""
		Args:
			session: EditorSession to dispatch into
			bindings: Optional key sequence -> command overrides merged onto the defaults
		"""
		self.session = session
		self.bindings = dict(DEFAULT_KEY_BINDINGS)
		if bindings:
			self.bindings.update(bindings)
		self._commands = {
			'undo': self.undo,
			'redo': self.redo,
			'delete-selection': self.delete_selection,
			'rotate-selection': self.rotate_selection,
			'escape': self.escape,
			'cycle-next': lambda: self.cycle(reverse=False),
			'cycle-prev': lambda: self.cycle(reverse=True),
			'select-all': self.select_all,
		}
		for name in NUDGE_DIRECTIONS:
			self._commands[name] = lambda name=name: self.nudge(*NUDGE_DIRECTIONS[name])
		for tool in Tool:
			self._commands[f'tool-{tool.value}'] = lambda tool=tool: self.session.dispatch(SetTool(tool))

		# Tab cycling remembers where it started so repeated Tabs walk outward
		self._cycle_anchor_id = None
		self._cycle_index = 0
		self._cycle_last_id = None

	@property
	def commands(self):
		return sorted(self._commands)

	def command_for_key(self, sequence):
		"""Logical command bound to a key sequence string, or None"""
		return self.bindings.get(sequence)

	def handle_key(self, sequence):
		"""
		Run the command bound to a key sequence

		Returns:
			True if a command was bound (the key is consumed)
		"""
		command = self.command_for_key(sequence)
		if command is None:
			return False
		self.run(command)
		return True

	def run(self, command):
		"""Run a logical command by name"""
		handler = self._commands.get(command)
		if handler is None:
			raise KeyError(f"Unknown command: {command}")
		logger.debug(f"Command: {command}")
		handler()

	# ======================================================================
	# COMMANDS
	# ======================================================================

	def undo(self):
		self.session.dispatch(Undo())

	def redo(self):
		self.session.dispatch(Redo())

	def delete_selection(self):
		state = self.session.state
		if state.selected_annotation_id is not None:
			self.session.dispatch(RemoveAnnotation(state.selected_annotation_id))
			return
		ids = tuple(state.live_selected_ids())
		if ids:
			self.session.dispatch(RemoveFixtures(ids))

	def nudge(self, dx, dy):
		state = self.session.state
		ids = tuple(state.live_selected_ids())
		if not ids:
			return
		step = state.snap_increment
		self.session.dispatch(MoveFixtures(ids, dx * step, dy * step))

	def rotate_selection(self):
		state = self.session.state
		if state.pending_placement is not None:
			self.session.dispatch(RotatePendingPlacement())
			return
		ids = tuple(state.live_selected_ids())
		if ids:
			self.session.dispatch(RotateFixtures(ids))

	def escape(self):
		"""Back out one level: placement, gesture, annotation, then selection and tool"""
		state = self.session.state
		if state.pending_placement is not None:
			self.session.dispatch(SetPendingPlacement(None))
		elif state.interaction is not None:
			self.session.dispatch(CancelInteraction())
		elif state.selected_annotation_id is not None:
			self.session.dispatch(SelectAnnotation(None))
		else:
			self.session.dispatch(ClearSelection())
			self.session.dispatch(SetTool(Tool.SELECT))

	def select_all(self):
		self.session.dispatch(SelectAll())

	def cycle(self, reverse=False):
		"""
		Select the next fixture by distance from where cycling started

		With nothing selected the first fixture in reading order is picked.
		"""
		state = self.session.state
		fixtures = list(state.design.fixtures)
		if not fixtures:
			return
		current = state.primary_selected_id
		if current is None or state.design.fixture(current) is None:
			first = sort_by_position(fixtures)[0]
			self._select_cycled(first.id, first.id, 0)
			return

		if current != self._cycle_last_id or state.design.fixture(self._cycle_anchor_id) is None:
			self._cycle_anchor_id = current
			self._cycle_index = None
		anchor = state.design.fixture(self._cycle_anchor_id)
		ordered = sort_by_distance(fixtures, Vec2(anchor.x_ft, anchor.y_ft))
		if self._cycle_index is None:
			self._cycle_index = [f.id for f in ordered].index(anchor.id)
		step = -1 if reverse else 1
		index = (self._cycle_index + step) % len(ordered)
		self._select_cycled(ordered[index].id, self._cycle_anchor_id, index)

	def _select_cycled(self, fixture_id, anchor_id, index):
		self._cycle_anchor_id = anchor_id
		self._cycle_index = index
		self._cycle_last_id = fixture_id
		self.session.dispatch(SelectFixture(fixture_id))
