from .models import Entry, LogLevel


class RunInfo(Entry, kw_only=True):
    seed: int
    level: LogLevel = LogLevel.INFO

class RunFatal(Entry, kw_only=True):
    seed: int
    level: LogLevel = LogLevel.FATAL

class ServerInfo(Entry, kw_only=True):
    server_index: int
    server_port: int
    pid: int | None = None
    level: LogLevel = LogLevel.INFO

class ActionInfo(Entry, kw_only=True):
    step: int
    action: str
    level: LogLevel = LogLevel.INFO

class ActionWarning(Entry, kw_only=True):
    step: int
    action: str
    level: LogLevel = LogLevel.WARN

class ValidationDebug(Entry, kw_only=True):
    consumer_id: int
    consumer_length: int
    oracle_length: int
    level: LogLevel = LogLevel.DEBUG

class ValidationFatal(Entry, kw_only=True):
    consumer_id: int
    consumer_length: int
    oracle_length: int
    level: LogLevel = LogLevel.FATAL
