"""Exception hierarchy for the export pipeline."""


class WakasyncError(Exception):
    """Base class for every error the CLI reports to the operator."""


class SourceConnectionError(WakasyncError):
    """The Wakapi database could not be opened or read."""


class ValidationError(WakasyncError):
    """A source row or remote payload does not have the expected shape."""


class DuplicateIdentifierError(WakasyncError):
    def __init__(self, identifier: str):
        super().__init__(f'Duplicate identifier "{identifier}" found when building report')
        self.identifier = identifier


class RemoteCallError(WakasyncError):
    """Network failure or non-2xx response from the remote API."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(WakasyncError):
    """Required settings are missing or malformed.

    ``problems`` lists every issue found so the operator can fix them in one go.
    """

    def __init__(self, problems: list[str] | str):
        if isinstance(problems, str):
            problems = [problems]
        super().__init__("; ".join(problems))
        self.problems = problems
