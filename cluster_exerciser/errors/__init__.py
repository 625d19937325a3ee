from .errors import (
    ConfigurationError as ConfigurationError,
    ExerciserError as ExerciserError,
    OrderViolationError as OrderViolationError,
    PayloadDecodeError as PayloadDecodeError,
    ProcessControlError as ProcessControlError,
    ServerStartError as ServerStartError,
    TransportError as TransportError,
)
