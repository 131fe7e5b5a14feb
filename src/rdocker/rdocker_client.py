import argparse
import posixpath
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .base import quote_remote_path, rsync, ssh_exec, ssh_exec_cd_and_run
from .errors import (
    InvalidOptionError,
    MissingCommandError,
    MissingComposeFileError,
    MissingDockerfileError,
    MissingHostError,
    MissingSeparatorError,
    MissingUserError,
    RDockerError,
    RemoteExecError,
    RemoteProvisionError,
    SyncError,
    UsageError,
)

SEPARATOR = "--"
DEFAULT_REMOTE_BASE = "/tmp"
ALWAYS_EXCLUDED = (".git",)
COMPOSE_FILES = ("docker-compose.yml", "compose.yaml")
DOCKERFILE = "Dockerfile"


@dataclass(frozen=True)
class InvocationContext:
    user: str
    remote_host: str
    remote_command: str
    local_dir: Path
    key_path: Optional[str] = None
    remote_base: str = DEFAULT_REMOTE_BASE
    excludes: tuple[str, ...] = ALWAYS_EXCLUDED
    delete: bool = True
    sudo: bool = True
    verbose: bool = False

    @property
    def local_dir_name(self) -> str:
        return self.local_dir.name

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.remote_host}"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise InvalidOptionError(message)


def _build_parser(prog: str) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=prog,
        usage="%(prog)s [options] <remote_host> -- <docker/docker-compose command>",
        description="Sync the current directory to a remote host and run a Docker command there.",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message and exit")
    parser.add_argument("-u", dest="user", type=str, default=None, help="SSH user for the remote host")
    parser.add_argument("-k", dest="key_path", type=str, default=None, help="Path to SSH private key file (optional)")
    parser.add_argument("--remote-base", type=str, default=DEFAULT_REMOTE_BASE, help=f"Remote parent directory. Defaults to {DEFAULT_REMOTE_BASE}.")
    parser.add_argument("--exclude", action="append", default=[], help="Extra rsync exclude pattern; .git is always excluded.")
    parser.add_argument("--no-delete", dest="delete", action="store_false", help="Keep remote files that no longer exist locally.")
    parser.add_argument("--no-sudo", dest="sudo", action="store_false", help="Run the remote command without sudo.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output.")
    parser.add_argument("hosts", nargs="*", metavar="remote_host", help="SSH host; the last one given is used")
    return parser


def parse_args(argv: list[str], cwd: Union[str, Path, None] = None) -> InvocationContext:
    """Turn a full argument list (program name first) into an InvocationContext."""
    prog = Path(argv[0]).name if argv else "rdocker"
    parser = _build_parser(prog)

    if len(argv) <= 1:
        raise UsageError(parser.format_help().rstrip("\n"))

    args = argv[1:]
    head = args[:args.index(SEPARATOR)] if SEPARATOR in args else args
    if "-h" in head or "--help" in head:
        raise UsageError(parser.format_help().rstrip("\n"))

    if SEPARATOR not in args:
        raise MissingSeparatorError(f"Separator '{SEPARATOR}' is required.")
    separator_index = args.index(SEPARATOR)

    options = parser.parse_intermixed_args(args[:separator_index])
    if not options.hosts:
        raise MissingHostError("Remote host is required.")

    remote_command = " ".join(args[separator_index + 1:])
    if remote_command == "":
        raise MissingCommandError(f"Docker command is required after '{SEPARATOR}'.")

    if not options.user:
        raise MissingUserError("SSH user (-u) is required.")

    try:
        local_dir = Path(cwd).resolve() if cwd is not None else Path.cwd()
    except OSError as e:
        raise RDockerError(f"failed to get current directory: {e}") from e
    excludes = ALWAYS_EXCLUDED + tuple(p for p in options.exclude if p not in ALWAYS_EXCLUDED)
    return InvocationContext(
        user=options.user,
        remote_host=options.hosts[-1],
        remote_command=remote_command,
        local_dir=local_dir,
        key_path=options.key_path or None,
        remote_base=options.remote_base,
        excludes=excludes,
        delete=options.delete,
        sudo=options.sudo,
        verbose=options.verbose,
    )


def validate_command(command: str, cwd: Union[str, Path]) -> None:
    """Refuse docker/docker-compose commands run from a directory without the matching files.

    This is a plain prefix check: "dockerfile-lint" counts as a docker command.
    """
    cwd = Path(cwd)
    if command.startswith("docker-compose"):
        if not any((cwd / name).exists() for name in COMPOSE_FILES):
            raise MissingComposeFileError(
                "docker-compose command can only be executed in a directory with a "
                f"{' or '.join(COMPOSE_FILES)} file"
            )
    elif command.startswith("docker"):
        if not (cwd / DOCKERFILE).exists():
            raise MissingDockerfileError(f"docker command can only be executed in a directory with a {DOCKERFILE}")


def remote_path(ctx: InvocationContext) -> str:
    return posixpath.join(ctx.remote_base, ctx.local_dir_name)


def create_remote_dir(ctx: InvocationContext) -> str:
    """Create the remote directory (mkdir -p) and return its path."""
    if not ctx.local_dir_name:
        raise RemoteProvisionError(f"failed to create remote directory: {ctx.local_dir} has no directory name to mirror")
    remote_dir = remote_path(ctx)
    if ctx.verbose:
        print(f"Remote directory: {ctx.remote_host}:{remote_dir}")
    try:
        return_code, _ = ssh_exec(
            remote=ctx.destination,
            command=f"mkdir -p {quote_remote_path(remote_dir)}",
            key_path=ctx.key_path,
            capture=False,
        )
    except OSError as e:
        raise RemoteProvisionError(f"failed to create remote directory: {e}") from e
    if return_code != 0:
        raise RemoteProvisionError(f"failed to create remote directory: ssh exited with status {return_code}")
    return remote_dir


def sync_directory(ctx: InvocationContext, remote_dir: str) -> None:
    """Mirror the contents of the local directory into `remote_dir`."""
    args = []
    if ctx.delete:
        args.append("--delete")
    for pattern in ctx.excludes:
        args.extend(["--exclude", pattern])
    try:
        return_code, _ = rsync(
            src="./",
            dst=f"{ctx.destination}:{remote_dir}",
            args=args,
            key_path=ctx.key_path,
            cwd=str(ctx.local_dir),
        )
    except OSError as e:
        raise SyncError(f"failed to sync current directory: {e}") from e
    if return_code != 0:
        raise SyncError(f"failed to sync current directory: rsync exited with status {return_code}")


def exec_remote_command(ctx: InvocationContext, remote_dir: str) -> str:
    """Run the command inside `remote_dir` and return its combined output."""
    try:
        return_code, output_lines = ssh_exec_cd_and_run(
            remote=ctx.destination,
            dirname=remote_dir,
            command=ctx.remote_command,
            sudo=ctx.sudo,
            key_path=ctx.key_path,
        )
    except OSError as e:
        raise RemoteExecError(f"failed to execute Docker command: {e}") from e
    output = "".join(output_lines)
    if return_code != 0:
        raise RemoteExecError(
            f"failed to execute Docker command: ssh exited with status {return_code}\nOutput: {output}",
            output=output,
        )
    return output


def run(ctx: InvocationContext) -> str:
    """Validate, provision, sync, execute. The first failing step aborts the rest."""
    validate_command(ctx.remote_command, ctx.local_dir)
    remote_dir = create_remote_dir(ctx)
    if ctx.verbose:
        print(f"Syncing {ctx.local_dir} to {ctx.remote_host}:{remote_dir} ...", flush=True)
    sync_directory(ctx, remote_dir)
    if ctx.verbose:
        print(f"[{ctx.remote_host}:{remote_dir}] > {ctx.remote_command}", flush=True)
    return exec_remote_command(ctx, remote_dir)


def main(argv: Optional[list[str]] = None):
    if argv is None:
        argv = sys.argv
    try:
        ctx = parse_args(argv)
        output = run(ctx)
    except UsageError as e:
        print(e, file=sys.stderr)
        sys.exit(e.exit_code)
    except RDockerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted; remote state may be partially updated.", file=sys.stderr)
        sys.exit(130)

    print(output, end="" if output.endswith("\n") else "\n")


if __name__ == "__main__":
    main()
