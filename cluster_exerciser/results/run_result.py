from enum import Enum


class RunResult(Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
