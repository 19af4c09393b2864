"""Interpreter bridge library.

Modules:
- bootstrap: Command loop script run inside the child interpreter
- channel: Line-framed JSON channel over the child's stdin/stdout
- commands: Command/response models and value encoding
- errors: Error taxonomy (all derive from InterpError)
- interp: Interp handle and new_interp()
- process: Supervisor, ProcessSpec and configuration options
"""

from pyinterp.lib.bootstrap import BOOTSTRAP_SCRIPT
from pyinterp.lib.channel import Channel
from pyinterp.lib.commands import (
    Command,
    ErrorResponse,
    GetResponse,
    Response,
    RunResponse,
    SetResponse,
    build_get,
    build_run,
    build_set,
    parse_response,
    resolve_refs,
)
from pyinterp.lib.errors import (
    ChannelClosedError,
    ChannelError,
    ConfigError,
    EncodingError,
    InterpError,
    KillError,
    NotRunningError,
    RemoteError,
    StartError,
    WaitError,
)
from pyinterp.lib.interp import Interp, InterpState, new_interp
from pyinterp.lib.process import (
    Option,
    ProcessSpec,
    Supervisor,
    default_options,
    with_args,
    with_cwd,
    with_env,
    with_path,
    with_pipes,
)

__all__ = [
    # Bootstrap
    "BOOTSTRAP_SCRIPT",
    # Channel
    "Channel",
    # Commands
    "Command",
    "ErrorResponse",
    "GetResponse",
    "Response",
    "RunResponse",
    "SetResponse",
    "build_get",
    "build_run",
    "build_set",
    "parse_response",
    "resolve_refs",
    # Errors
    "ChannelClosedError",
    "ChannelError",
    "ConfigError",
    "EncodingError",
    "InterpError",
    "KillError",
    "NotRunningError",
    "RemoteError",
    "StartError",
    "WaitError",
    # Interp
    "Interp",
    "InterpState",
    "new_interp",
    # Process
    "Option",
    "ProcessSpec",
    "Supervisor",
    "default_options",
    "with_args",
    "with_cwd",
    "with_env",
    "with_path",
    "with_pipes",
]
