from .scheduler import (
    Scheduler as Scheduler,
    ServerFactory as ServerFactory,
)
