"""Editor actions accepted by services.editor_reducer.EditorReducer"""

from .editor_actions import ACTION_TYPES, action_from_dict

__all__ = ['ACTION_TYPES', 'action_from_dict']
