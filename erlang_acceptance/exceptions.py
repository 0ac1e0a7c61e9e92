"""
Exception hierarchy for the Erlang acceptance engine.

All exceptions inherit from AcceptanceError for easy catching.
"""


class AcceptanceError(Exception):
    """Base exception for the acceptance engine.

    All other exceptions in this module inherit from this,
    allowing callers to catch any acceptance error with a single except.

    Attributes:
        output: Captured command output related to the error (may be empty)
    """

    def __init__(self, message: str = "", output: str = ""):
        super().__init__(message)
        self.output = output


class ApplyError(AcceptanceError):
    """The convergence engine could not apply a declaration.

    Raised when:
    - The engine exits with a failure code
    - The engine binary is not found
    - The report is malformed (exit code and resource events disagree)
    """

    def __init__(self, message: str = "", output: str = "", failures=None):
        super().__init__(message, output)
        self.failures = list(failures or [])


class ProbeError(AcceptanceError):
    """A state query failed or returned output we cannot parse.

    An absent package or repository is NOT this error.
    """
    pass


class NotIdempotentError(AcceptanceError):
    """Re-applying a declaration changed resources.

    Attributes:
        changes: Resources changed by the second application
        first: ApplyResult of the first application
        second: ApplyResult of the second application
    """

    def __init__(self, message: str = "", changes=None, first=None, second=None):
        output = second.stdout if second is not None else ""
        super().__init__(message, output)
        self.changes = list(changes or [])
        self.first = first
        self.second = second


class AssertionMismatchError(AcceptanceError):
    """Probed state does not match the declaration's expectation.

    Attributes:
        mismatches: One human-readable line per failed expectation
    """

    def __init__(self, message: str = "", mismatches=None, output: str = ""):
        super().__init__(message, output)
        self.mismatches = list(mismatches or [])


class TimeoutError(AcceptanceError):
    """An external command exceeded its timeout.

    Raised when:
    - A convergence run exceeds the engine timeout
    - A probe query exceeds the probe timeout
    - A scenario exhausts its overall budget
    """
    pass


class ConfigurationError(AcceptanceError):
    """Error in configuration.

    Raised when:
    - Config file not found
    - Config validation fails
    - Unknown OS family
    """
    pass


class MatrixError(AcceptanceError):
    """Error building, loading or validating a scenario matrix.

    Raised when:
    - A declaration has invalid fields
    - A matrix YAML file is missing or malformed
    """
    pass
