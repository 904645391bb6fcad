"""
Exception hierarchy for the audit conduct engine.
"""

from __future__ import annotations


class AuditError(Exception):
    """Base class for all audit engine errors."""


class SessionStoreError(AuditError):
    """A session store call (find/create/update) failed."""


class FinalizeError(AuditError):
    """
    Terminal persistence failed.

    Always retryable: the draft and every answer are left untouched, so the
    host can call submit again straight away.
    """

    retryable = True

    def __init__(self, message: str, session_id: str | None = None):
        super().__init__(message)
        self.session_id = session_id


class EngineStateError(AuditError):
    """The engine was used outside its mounted lifetime."""


class CatalogError(AuditError):
    """The question catalog could not be read."""
