from .exercise import (
    exercise as exercise,
    run_exerciser as run_exerciser,
)
