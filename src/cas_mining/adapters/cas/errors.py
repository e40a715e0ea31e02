"""
Exceptions raised when talking to the CAS server.
"""

from typing import Optional, Sequence


class CASError(RuntimeError):
    """Base class for CAS connection and action failures."""


class CASConnectionError(CASError):
    """The session could not be established."""


class CASActionError(CASError):
    """A CAS action finished with error severity."""

    def __init__(
        self,
        action: str,
        severity: int,
        reason: Optional[str] = None,
        messages: Optional[Sequence[str]] = None,
    ):
        self.action = action
        self.severity = severity
        self.reason = reason
        self.messages = list(messages or [])
        detail = "; ".join(self.messages) if self.messages else "no messages"
        super().__init__(
            f"CAS action {action} failed (severity={severity}, reason={reason}): {detail}"
        )
