from .env import Env as Env
from .errors import (
    ExerciserError as ExerciserError,
    OrderViolationError as OrderViolationError,
)
from .results import (
    RunOutcome as RunOutcome,
    RunResult as RunResult,
)
from .scheduler import Scheduler as Scheduler
from .validation import DurabilityOracle as DurabilityOracle
