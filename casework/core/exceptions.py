"""Error taxonomy shared by the case-management services.

Services raise subclasses of these so routers and other callers can tell
"your input is wrong" from "already exists" from "try again later" without
parsing messages.
"""


class CaseworkError(Exception):
    """Base exception for case-management errors."""

    code = "server"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(CaseworkError):
    """Missing or malformed input (caller's fault)."""

    code = "validation"


class ConflictError(CaseworkError):
    """Duplicate identifier."""

    code = "conflict"


class NotFoundError(CaseworkError):
    """Referenced record, session, or artifact does not exist."""

    code = "not_found"


class DependencyError(CaseworkError):
    """A store or external collaborator failed. Safe for the caller to retry."""

    code = "dependency"
