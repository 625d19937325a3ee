from .action_registry import (
    ActionHandler as ActionHandler,
    ActionRegistry as ActionRegistry,
)
from .action_type import ActionType as ActionType
from .action_weights import (
    DEFAULT_WEIGHTS as DEFAULT_WEIGHTS,
    ActionWeights as ActionWeights,
)
