"""Error taxonomy for flake evaluation.

Every error raised while resolving, building or composing is fatal for the
platform being evaluated. Nothing here is retried: evaluation is deterministic,
so retrying with unchanged inputs cannot succeed.

A missing primary executable at run time has no error class here. The
wrapper execs the primary by name and the shell reports
"command not found" (exit 127) on its own.
"""


class IonflakeError(Exception):
    """Base class for evaluation errors.

    Attributes:
        exit_code: Process exit code the CLI uses for this error
    """

    exit_code = 1


class ResolutionError(IonflakeError):
    """Raised when an input reference cannot be located or conflicts with another."""

    exit_code = 2


class HashMismatchError(IonflakeError):
    """Raised when a recomputed dependency closure hash differs from the pinned one."""

    exit_code = 3

    def __init__(self, artifact: str, specified: str, got: str):
        self.artifact = artifact
        self.specified = specified
        self.got = got
        super().__init__(
            f"hash mismatch in fixed-output artifact '{artifact}':\n  specified: {specified}\n     got:    {got}"
        )


class BackendBuildError(IonflakeError):
    """Raised when the build backend reports failure.

    Attributes:
        diagnostics: Backend output, kept verbatim
    """

    exit_code = 4

    def __init__(self, message: str, diagnostics: str = ""):
        self.diagnostics = diagnostics
        if diagnostics:
            message = f"{message}\n{diagnostics}"
        super().__init__(message)


class CompositionError(IonflakeError):
    """Raised for a malformed profile/location combination."""

    exit_code = 5


class DescriptorError(IonflakeError):
    """Raised when flake.yaml is missing or invalid."""
