"""Exceptions raised by the directory checker and the mail notifier.

Both carry the protocol stage that failed and a short reason made of the
exception class name and, where available, the numeric reply code. Server
messages and credentials are never copied into them.
"""
from __future__ import annotations

from typing import Optional


class AccountRequestError(Exception):
    """Base class for failures while processing an account request."""

    def __init__(self, stage: str, reason: Optional[str] = None):
        self.stage = stage
        self.reason = reason
        message = f"{stage} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DirectoryUnavailableError(AccountRequestError):
    """The existence check could not be completed (connect, tls, bind or search)."""
    pass


class DeliveryFailedError(AccountRequestError):
    """The notification could not be delivered; the stage names where it stopped."""
    pass


def describe_error(exc: BaseException, code: Optional[int] = None) -> str:
    """Reduce an exception to a log-safe reason string."""
    name = type(exc).__name__
    if code is not None:
        return f"{name} ({code})"
    return name
