"""Exception hierarchy for vmwriter."""

from __future__ import annotations


class VmWriterError(Exception):
    """Base class for all vmwriter errors."""


class ValidationError(VmWriterError, ValueError):
    """Raised by :meth:`MetricsWriter.add` when a series is rejected.

    *rule* names the violated rule (``empty_name``, ``length_mismatch``,
    ``reserved_label`` ...) so callers can branch on it without parsing
    the message.
    """

    def __init__(self, rule: str, message: str) -> None:
        super().__init__(message)
        self.rule = rule


class WriteError(VmWriterError):
    """Base class for failures of :meth:`MetricsWriter.send`."""


class TransportError(WriteError):
    """The request could not be completed (connect, timeout, DNS, ...)."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class RemoteError(WriteError):
    """The import endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"invalid response status code {status_code}: {body.strip()}")
        self.status_code = status_code
        self.body = body
