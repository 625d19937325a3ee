from .action_outcome import ActionOutcome as ActionOutcome
from .run_outcome import RunOutcome as RunOutcome
from .run_result import RunResult as RunResult
