from enum import Enum


class ActionType(Enum):
    RESTART_SERVER = "restart_server"
    PAUSE_SERVER = "pause_server"
    RESUME_SERVER = "resume_server"
    PUBLISH = "publish"
    CONSUME = "consume"
