import os
from typing import Any, Dict, Union

from dotenv import dotenv_values
from pydantic import ValidationError

from cluster_exerciser.errors import ConfigurationError

from .env import Env

PrimaryType = Union[str, int, bool, float, bytes]


def load_env(
    default: type[Env] = Env,
    env_file: str | None = None,
    overrides: Dict[str, Any] | None = None,
) -> Env:
    envars = default.types_map()

    if env_file is None:
        env_file = ".env"

    values: Dict[str, PrimaryType] = {}

    try:
        for envar_name, envar_type in envars.items():
            envar_value = os.getenv(envar_name)
            if envar_value:
                values[envar_name] = envar_type(envar_value)

        if env_file and os.path.exists(env_file):
            env_file_values = dotenv_values(dotenv_path=env_file)

            for envar_name, envar_value in env_file_values.items():
                envar_type = envars.get(envar_name)
                if envar_type and envar_value is not None:
                    values[envar_name] = envar_type(envar_value)

        if overrides:
            values.update(overrides)

        env = default(
            **{name: value for name, value in values.items() if value is not None}
        )

        return env

    except (ValueError, ValidationError) as err:
        raise ConfigurationError(f"Invalid configuration - {err}") from err
