from .process_control import ProcessControl as ProcessControl
from .server_handle import ServerHandle as ServerHandle
from .server_spec import ServerSpec as ServerSpec
