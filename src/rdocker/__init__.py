from .base import rsync, ssh_exec, ssh_exec_cd_and_run
from .errors import *
from .rdocker_client import (
    InvocationContext,
    create_remote_dir,
    exec_remote_command,
    parse_args,
    remote_path,
    run,
    sync_directory,
    validate_command,
)
