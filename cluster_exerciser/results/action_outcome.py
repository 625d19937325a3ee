from dataclasses import dataclass

from cluster_exerciser.actions.action_type import ActionType


@dataclass(slots=True)
class ActionOutcome:
    action: ActionType
    succeeded: bool
    duration_seconds: float
    details: str | None = None
