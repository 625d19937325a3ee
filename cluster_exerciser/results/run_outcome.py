from collections import Counter
from dataclasses import dataclass, field

from cluster_exerciser.actions.action_type import ActionType

from .action_outcome import ActionOutcome
from .run_result import RunResult


@dataclass(slots=True)
class RunOutcome:
    seed: int
    result: RunResult
    duration_seconds: float
    steps_requested: int
    steps_completed: int = 0
    oracle_length: int = 0
    actions: list[ActionOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def passed(self) -> bool:
        return self.result == RunResult.PASSED

    def action_counts(self) -> dict[ActionType, int]:
        return dict(Counter(outcome.action for outcome in self.actions))
