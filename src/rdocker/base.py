import subprocess
from shlex import quote as _quote_cmdline_str
from typing import Optional


def _popen(cmd: list[str], silent: bool = False, capture: bool = True, **kwargs):
    """Run a command and return the process return code and its output lines.

    With ``capture=False`` the child inherits our stdout/stderr, so its output
    shows up live and the returned line list is empty. Otherwise stdout and
    stderr are merged into one stream and collected. Stdin is /dev/null unless
    the caller passes its own.
    """
    kwargs.setdefault("stdin", subprocess.DEVNULL)
    if not silent:
        print(f"Executing: {' '.join(cmd)}", flush=True)
    if not capture:
        with subprocess.Popen(cmd, **kwargs) as process:
            return process.wait(), []
    output_lines = []
    with subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        encoding="utf-8",
        errors="replace",
        bufsize=1,  # Line-buffered output
        **kwargs
    ) as process:
        for line in process.stdout:
            output_lines.append(line)
        return_code = process.wait()
    return return_code, output_lines


def quote_remote_path(path: str) -> str:
    """Shell-quote a remote path, leaving a leading ``~/`` for the remote shell to expand."""
    if path == "~":
        return path
    if path.startswith("~/"):
        return "~/" + _quote_cmdline_str(path[2:])
    return _quote_cmdline_str(path)


def ssh_args(remote: str, command: str, key_path: Optional[str] = None) -> list[str]:
    """Arguments for ``ssh`` (without the binary name) running `command` on `remote`."""
    args = []
    if key_path:
        args.extend(["-i", key_path])
    args.append(remote)
    args.append(command)
    return args


def rsync_args(src: str, dst: str, args: Optional[list[str]] = None, key_path: Optional[str] = None) -> list[str]:
    """Arguments for ``rsync`` (without the binary name) copying `src` to `dst`."""
    command = []
    if key_path:
        command.extend(["-e", f"ssh -i {_quote_cmdline_str(key_path)}"])
    command.append("-avz")
    if args is not None:
        command.extend(args)
    command.append(str(src))
    command.append(dst)
    return command


def rsync(src: str, dst: str, args: Optional[list[str]] = None, key_path: Optional[str] = None, **kwargs):
    """Sync a directory to a remote host using rsync, streaming its progress."""
    kwargs.setdefault("capture", False)
    return _popen(["rsync", *rsync_args(src, dst, args=args, key_path=key_path)], **kwargs)


def ssh_exec(remote: str, command: str, key_path: Optional[str] = None, **kwargs):
    """Execute a command on a remote host using ssh."""
    return _popen(["ssh", *ssh_args(remote, command, key_path=key_path)], **kwargs)


def ssh_exec_cd_and_run(
    remote: str,
    dirname: str,
    command: str,
    sudo: bool = True,
    key_path: Optional[str] = None,
    **kwargs
):
    """Change into `dirname` on the remote host and run `command` there.

    `command` is passed through as-is; only the directory is quoted (see quote_remote_path).
    """
    prefix = "sudo " if sudo else ""
    remote_command = f"cd {quote_remote_path(str(dirname))} && {prefix}{command}"
    return ssh_exec(remote=remote, command=remote_command, key_path=key_path, **kwargs)
