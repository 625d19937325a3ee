from .env import (
    Env as Env,
    TransportErrorPolicy as TransportErrorPolicy,
)
from .load_env import load_env as load_env
from .time_parser import TimeParser as TimeParser
