"""
Undo/Redo History Manager for the Fixture Layout Editor

Applies atomic commits to the bounded past/future stacks kept in EditorState.
Snapshots are immutable Design values, so pushing a reference is enough; no
copying is needed. A multi-event gesture commits once, pushing the design it
started from, which makes the whole gesture a single undo step.
"""

import logging
from dataclasses import replace

from constants import MAX_HISTORY

logger = logging.getLogger(__name__)


class HistoryManager:
	"""Commit/undo/redo over EditorState.history and EditorState.future"""
	
	def __init__(self, max_history=MAX_HISTORY):
		"""
		Initialize the history manager
		
		Args:
			max_history: Maximum number of designs kept on each stack
		"""
		self.max_history = max(0, int(max_history))
		self._listeners = []  # Callbacks to notify on stack changes
	
	def commit(self, state, next_design, origin=None, description=""):
		"""
		Push the pre-edit design and make next_design current
		
		Args:
			state: Current EditorState
			next_design: Design after the edit
			origin: Design to push instead of state.design (gesture start)
			description: Optional description of the change, for the log
			
		Returns:
			New EditorState with future cleared
		"""
		previous = state.design if origin is None else origin
		history = self._keep_last(state.history + (previous,))
		logger.debug(f"[History] Commit: {description} (depth: {len(history)})")
		return replace(state, design=next_design, history=history, future=())
	
	def undo(self, state):
		"""
		Restore the most recent design from history
		
		Returns:
			New EditorState, or the same state object if there is nothing to undo
		"""
		if not self.can_undo(state):
			logger.debug("[History] Cannot undo - at beginning of history")
			return state
		previous = state.history[-1]
		future = ((state.design,) + state.future)[:self.max_history]
		logger.debug(f"[History] Undo (depth: {len(state.history) - 1}, redo: {len(future)})")
		return replace(state, design=previous, history=state.history[:-1], future=future)
	
	def redo(self, state):
		"""
		Re-apply the most recently undone design
		
		Returns:
			New EditorState, or the same state object if there is nothing to redo
		"""
		if not self.can_redo(state):
			logger.debug("[History] Cannot redo - at end of history")
			return state
		following = state.future[0]
		history = self._keep_last(state.history + (state.design,))
		logger.debug(f"[History] Redo (depth: {len(history)}, redo: {len(state.future) - 1})")
		return replace(state, design=following, history=history, future=state.future[1:])
	
	def _keep_last(self, stack):
		"""Trim stack to its newest max_history entries"""
		return stack[len(stack) - self.max_history:] if len(stack) > self.max_history else stack
	
	def clear(self, state):
		"""Drop both stacks"""
		logger.debug("[History] History cleared")
		return replace(state, history=(), future=())
	
	def can_undo(self, state):
		return len(state.history) > 0
	
	def can_redo(self, state):
		return len(state.future) > 0
	
	def add_listener(self, callback):
		"""
		Add a listener to be notified when stack availability changes
		
		Args:
			callback: Function called with (can_undo, can_redo)
		"""
		self._listeners.append(callback)
	
	def remove_listener(self, callback):
		"""Remove a listener"""
		if callback in self._listeners:
			self._listeners.remove(callback)
	
	def notify_listeners(self, state):
		"""Notify all listeners of the stack state after a change"""
		for callback in self._listeners:
			try:
				callback(self.can_undo(state), self.can_redo(state))
			except Exception as e:
				logger.warning(f"[History] Error notifying listener: {e}")
