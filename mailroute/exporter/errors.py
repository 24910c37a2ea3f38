"""Error taxonomy shared by the exporter pipeline stages."""

from __future__ import annotations


class ExportError(RuntimeError):
    """Base error for export failures.

    ``stage`` names the pipeline stage that failed and ``cause`` keeps the
    underlying exception so callers can log both without unpacking chains.
    """

    def __init__(self, message: str, *, stage: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause

    def describe(self) -> str:
        parts = [str(self)]
        if self.stage:
            parts.insert(0, f"[{self.stage}]")
        if self.cause is not None and str(self.cause) not in str(self):
            parts.append(f"(cause: {self.cause})")
        return " ".join(parts)


class DirectoryUnavailable(ExportError):
    """Raised when the directory service cannot be reached or queried."""


class QueryTimeout(ExportError):
    """Raised when a directory query does not complete in time."""


class IOFailure(ExportError):
    """Raised when an export target cannot be written."""


class UnsupportedOperation(ExportError):
    """Raised for operation modes the exporter does not implement."""


class InvalidScope(LookupError):
    """Signal that a search scope could not be resolved from the catalog.

    This is not a run failure: the caller is expected to obtain a scope
    interactively and resolve again.
    """

    def __init__(self, candidate: str | None, message: str | None = None) -> None:
        if message is None:
            message = (
                "No search scope supplied." if candidate is None else f"Search scope '{candidate}' is not in the catalog."
            )
        super().__init__(message)
        self.candidate = candidate


__all__ = [
    "DirectoryUnavailable",
    "ExportError",
    "IOFailure",
    "InvalidScope",
    "QueryTimeout",
    "UnsupportedOperation",
]
