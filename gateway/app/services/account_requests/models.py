"""
Data models for the account request pipeline.

These type-safe data structures define clear contracts between the HTTP
boundary, the pipeline and its two collaborators.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

SUBJECT = "New Account Request!"


@dataclass(frozen=True)
class AccountRequest:
    """
    A candidate account submitted through the intake endpoint.

    Attributes:
        username: Requested directory username
        email: Contact address of the requester
    """
    username: str
    email: str

    @property
    def is_complete(self) -> bool:
        return bool(self.username) and bool(self.email)


@dataclass(frozen=True)
class NotificationMessage:
    """
    Message delivered to the administrative mailbox.

    Attributes:
        sender: Envelope and header sender
        recipient: The single administrative recipient
        subject: Subject line (always SUBJECT for account requests)
        body: Plain text body
    """
    sender: str
    recipient: str
    subject: str
    body: str

    @classmethod
    def for_request(cls, request: AccountRequest, *, sender: str, recipient: str) -> 'NotificationMessage':
        return cls(
            sender=sender,
            recipient=recipient,
            subject=SUBJECT,
            body=format_body(request.username, request.email),
        )


def format_body(username: str, email: str) -> str:
    return f"Username: {username}\nEmail: {email}"


def parse_body(body: str) -> Tuple[str, str]:
    """
    Recover (username, email) from a body produced by format_body.

    Raises:
        ValueError: If the body does not have the two expected lines
    """
    lines = body.split("\n")
    if len(lines) != 2 or not lines[0].startswith("Username: ") or not lines[1].startswith("Email: "):
        raise ValueError("body is not an account request notification")
    return lines[0][len("Username: "):], lines[1][len("Email: "):]


class Outcome(enum.Enum):
    SUCCESS = 'success'
    CONFLICT = 'conflict'
    VALIDATION_FAILED = 'validation_failed'
    DIRECTORY_UNAVAILABLE = 'directory_unavailable'
    DELIVERY_FAILED = 'delivery_failed'

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def public_message(self) -> str:
        return _PUBLIC_MESSAGES[self]


_STATUS_CODES = {
    Outcome.SUCCESS: 200,
    Outcome.CONFLICT: 409,
    Outcome.VALIDATION_FAILED: 400,
    Outcome.DIRECTORY_UNAVAILABLE: 500,
    Outcome.DELIVERY_FAILED: 500,
}

_PUBLIC_MESSAGES = {
    Outcome.SUCCESS: "Email sent successfully",
    Outcome.CONFLICT: "Username already exists!",
    Outcome.VALIDATION_FAILED: "Username and email are required",
    Outcome.DIRECTORY_UNAVAILABLE: "Error processing request",
    Outcome.DELIVERY_FAILED: "Error sending email",
}


@dataclass(frozen=True)
class ProcessingResult:
    """
    Result of processing one account request.

    This explicit result type keeps the route free of exception handling
    for expected outcomes.

    Attributes:
        outcome: Which category the request ended in
        stage: Protocol stage that failed (failures only)
        detail: Log-safe cause (failures only)
    """
    outcome: Outcome
    stage: Optional[str] = None
    detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def status_code(self) -> int:
        return self.outcome.status_code

    @property
    def message(self) -> str:
        return self.outcome.public_message

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.stage:
            return f"ProcessingResult(outcome={self.outcome.value}, stage={self.stage}, detail={self.detail})"
        return f"ProcessingResult(outcome={self.outcome.value})"
