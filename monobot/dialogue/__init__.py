from .engine import DialogueEngine
from .events import ButtonPress, Event, TextCommand, TextReply, event_from_update
from .state import ConversationState, Phase, SelectionMode
from .store import ConversationStore

__all__ = [
    "DialogueEngine",
    "ButtonPress",
    "Event",
    "TextCommand",
    "TextReply",
    "event_from_update",
    "ConversationState",
    "Phase",
    "SelectionMode",
    "ConversationStore",
]
