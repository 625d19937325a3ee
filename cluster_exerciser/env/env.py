import pathlib
from typing import Callable, Dict, Literal, Union

from pydantic import (
    BaseModel,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from cluster_exerciser.logging.models import LogLevelName

from .time_parser import TimeParser

PrimaryType = Union[str, int, float, bytes, bool]

TransportErrorPolicy = Literal["fail", "tolerate"]

Duration = StrictStr | StrictInt | StrictFloat


def parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    EXERCISER_HOST: StrictStr = "localhost"
    EXERCISER_BASE_PORT: StrictInt = 44000
    EXERCISER_STORAGE_PREFIX: StrictStr = "jetstream_test_"
    EXERCISER_CONFIG_DIRECTORY: StrictStr = "confs"
    EXERCISER_CONFIG_PREFIX: StrictStr = "supercluster_"
    EXERCISER_STREAM_NAME: StrictStr = "exercise_stream"
    EXERCISER_RECEIVE_TIMEOUT: Duration = "1s"
    EXERCISER_READY_TIMEOUT: Duration = "10s"
    EXERCISER_READY_POLL_INTERVAL: Duration = "0.1s"
    EXERCISER_CONNECT_TIMEOUT: Duration = "2s"
    EXERCISER_ALLOW_RECONNECT: StrictBool = True
    EXERCISER_MAX_RECONNECT_ATTEMPTS: StrictInt = 5
    EXERCISER_RECONNECT_TIME_WAIT: Duration = "0.5s"
    EXERCISER_TRANSPORT_ERROR_POLICY: TransportErrorPolicy = "fail"
    EXERCISER_LOG_LEVEL: LogLevelName = "info"
    EXERCISER_LOG_OUTPUT: Literal["stdout", "stderr"] = "stdout"
    EXERCISER_LOG_FILE: StrictStr | None = None

    @field_validator(
        "EXERCISER_RECEIVE_TIMEOUT",
        "EXERCISER_READY_TIMEOUT",
        "EXERCISER_READY_POLL_INTERVAL",
        "EXERCISER_CONNECT_TIMEOUT",
        "EXERCISER_RECONNECT_TIME_WAIT",
    )
    @classmethod
    def validate_duration(cls, value: str | int | float):
        if TimeParser().parse(value) <= 0:
            raise ValueError(f"duration {value!r} must be greater than zero")

        return value

    @field_validator("EXERCISER_MAX_RECONNECT_ATTEMPTS")
    @classmethod
    def validate_max_reconnect_attempts(cls, value: int):
        # -1 retries forever
        if value < -1:
            raise ValueError(f"max reconnect attempts {value} must be -1 or more")

        return value

    @field_validator("EXERCISER_LOG_FILE")
    @classmethod
    def validate_log_file(cls, value: str | None):
        if value is not None and pathlib.Path(value).suffix != ".json":
            raise ValueError(f"log file {value!r} must be a .json file")

        return value

    @classmethod
    def types_map(self) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "EXERCISER_HOST": str,
            "EXERCISER_BASE_PORT": int,
            "EXERCISER_STORAGE_PREFIX": str,
            "EXERCISER_CONFIG_DIRECTORY": str,
            "EXERCISER_CONFIG_PREFIX": str,
            "EXERCISER_STREAM_NAME": str,
            "EXERCISER_RECEIVE_TIMEOUT": str,
            "EXERCISER_READY_TIMEOUT": str,
            "EXERCISER_READY_POLL_INTERVAL": str,
            "EXERCISER_CONNECT_TIMEOUT": str,
            "EXERCISER_ALLOW_RECONNECT": parse_bool,
            "EXERCISER_MAX_RECONNECT_ATTEMPTS": int,
            "EXERCISER_RECONNECT_TIME_WAIT": str,
            "EXERCISER_TRANSPORT_ERROR_POLICY": str,
            "EXERCISER_LOG_LEVEL": str,
            "EXERCISER_LOG_OUTPUT": str,
            "EXERCISER_LOG_FILE": str,
        }

    @property
    def receive_timeout(self) -> float:
        return TimeParser().parse(self.EXERCISER_RECEIVE_TIMEOUT)

    @property
    def ready_timeout(self) -> float:
        return TimeParser().parse(self.EXERCISER_READY_TIMEOUT)

    @property
    def ready_poll_interval(self) -> float:
        return TimeParser().parse(self.EXERCISER_READY_POLL_INTERVAL)

    @property
    def connect_timeout(self) -> float:
        return TimeParser().parse(self.EXERCISER_CONNECT_TIMEOUT)

    @property
    def reconnect_time_wait(self) -> float:
        return TimeParser().parse(self.EXERCISER_RECONNECT_TIME_WAIT)
