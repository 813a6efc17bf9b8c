"""Error taxonomy shared by the engine, the adapters and the store."""

from __future__ import annotations


class CredenceError(Exception):
    """Base class for all Credence errors."""


class InvalidInputError(CredenceError):
    """Content is empty or too short to analyse.  Terminal, reported to the caller."""


class AdapterUnavailableError(CredenceError):
    """An external signal source was unreachable or returned malformed data.

    Always recovered locally: the pipeline treats the adapter as "no data".
    """

    def __init__(self, adapter: str, message: str) -> None:
        super().__init__(f"{adapter}: {message}")
        self.adapter = adapter


class PersistenceError(CredenceError):
    """A store read or write failed."""


class RecordNotFoundError(PersistenceError):
    """The requested record does not exist (or is not owned by the caller)."""
