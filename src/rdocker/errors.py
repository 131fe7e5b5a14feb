class RDockerError(Exception):
    """Base class for every failure surfaced to the user."""

    exit_code = 1


class UsageError(RDockerError):
    """Raised when the program is started without any arguments."""

    exit_code = 0


class MissingSeparatorError(RDockerError):
    pass


class InvalidOptionError(RDockerError):
    pass


class MissingHostError(RDockerError):
    pass


class MissingCommandError(RDockerError):
    pass


class MissingUserError(RDockerError):
    pass


class MissingComposeFileError(RDockerError):
    pass


class MissingDockerfileError(RDockerError):
    pass


class RemoteProvisionError(RDockerError):
    pass


class SyncError(RDockerError):
    pass


class RemoteExecError(RDockerError):
    """The remote command failed; `output` holds whatever it printed."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output
