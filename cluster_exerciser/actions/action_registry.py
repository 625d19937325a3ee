from typing import TYPE_CHECKING, Awaitable, Callable

from .action_type import ActionType

if TYPE_CHECKING:
    from cluster_exerciser.results.action_outcome import ActionOutcome

ActionHandler = Callable[[], Awaitable["ActionOutcome"]]


class ActionRegistry:
    def __init__(self) -> None:
        self._handlers: dict[ActionType, ActionHandler] = {}

    def register(self, action_type: ActionType, handler: ActionHandler) -> None:
        self._handlers[action_type] = handler

    def get(self, action_type: ActionType) -> ActionHandler:
        if action_type not in self._handlers:
            raise ValueError(f"Unknown action type: {action_type}")
        return self._handlers[action_type]

    def __contains__(self, action_type: ActionType) -> bool:
        return action_type in self._handlers
