"""Exceptions raised by httpdoc."""

from __future__ import annotations


class HttpDocError(Exception):
    """Base class for httpdoc errors."""


class BodyFormatError(HttpDocError, ValueError):
    """A request body could not be pretty-printed.

    Raised when a body declared as JSON or GraphQL does not parse. The
    builder catches it, keeps the original body and reports the error
    unless the build is strict.
    """

    def __init__(
        self,
        strategy: str,
        cause: Exception,
        block_index: int | None = None,
    ) -> None:
        self.strategy = strategy
        self.cause = cause
        self.block_index = block_index
        super().__init__(str(self))

    def __str__(self) -> str:
        where = f" in block {self.block_index}" if self.block_index is not None else ""
        return f"Could not format {self.strategy} body{where}: {self.cause}"
