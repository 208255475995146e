"""
Fixture Layout Editor - Editor Session

Host for one editing session: owns the current EditorState, routes every
action through the reducer, notifies listeners and snapshots the design
through the persistence port after each committed edit.
"""

import logging

from actions.editor_actions import LoadDesign
from models.editor_state import initial_state
from services.editor_reducer import EditorReducer
from utils.config import EditorConfig
from utils.geometry import overlays
from utils.history_manager import HistoryManager

logger = logging.getLogger(__name__)


class EditorSession:
	"""State owner and single dispatch entry point for the editor"""

	def __init__(self, design, catalog, persistence=None, observer=None, config=None):
		"""
		Args:
			design: Initial Design
			catalog: Catalog for fixture footprints
			persistence: Optional port with save(design) / load()
			observer: Optional reducer observer (on_event(kind, message, data))
			config: EditorConfig (defaults used if omitted)
		"""
		self.config = config or EditorConfig()
		self.catalog = catalog
		self.persistence = persistence
		self.observer = observer
		self.history = HistoryManager(self.config.max_history)
		self.reducer = EditorReducer(catalog, self.history, observer)
		self._state = initial_state(design, self.config.snap_increment)
		self._listeners = []

	@property
	def state(self):
		return self._state

	@property
	def can_undo(self):
		return self._state.can_undo

	@property
	def can_redo(self):
		return self._state.can_redo

	def add_listener(self, callback):
		"""
		Register a callback for state changes

		Args:
			callback: Function called with (state, previous_state)
		"""
		self._listeners.append(callback)

	def remove_listener(self, callback):
		if callback in self._listeners:
			self._listeners.remove(callback)

	def dispatch(self, action):
		"""
		Apply an action and publish the result

		Returns:
			The new EditorState (the previous one if nothing changed)
		"""
		previous = self._state
		state = self.reducer.reduce(previous, action)
		if state is previous:
			return state
		self._state = state

		if self._committed(previous, state, action):
			self._autosave(state.design)
		self.history.notify_listeners(state)
		for callback in list(self._listeners):
			callback(state, previous)
		return state

	def dispatch_all(self, actions):
		"""Dispatch a sequence of actions, returning the final state"""
		for action in actions:
			self.dispatch(action)
		return self._state

	def load(self):
		"""Replace the current design with the one held by the persistence port"""
		if self.persistence is None:
			raise RuntimeError("No persistence port configured")
		return self.dispatch(LoadDesign(self.persistence.load()))

	def save(self):
		"""Snapshot the current design through the persistence port"""
		if self.persistence is None:
			raise RuntimeError("No persistence port configured")
		self.persistence.save(self._state.design)

	def overlays(self):
		"""Selection bounds, guides, collisions and measure distance for the renderer"""
		return overlays(self._state, self.catalog)

	def _committed(self, previous, state, action):
		if action.type == LoadDesign.type or state.design is previous.design:
			return False
		return state.history is not previous.history or state.future is not previous.future

	def _autosave(self, design):
		if self.persistence is None or not self.config.autosave:
			return
		try:
			self.persistence.save(design)
		except Exception as e:
			# Reported, never raised into dispatch
			logger.error(f"Autosave failed: {e}")
			if self.observer is not None:
				self.observer.on_event('error', f"Autosave failed: {e}", {})
