"""Duplicate-check-and-notify pipeline.

Strictly linear: a notification is only sent after the directory confirmed
the username is absent, and success is only reported after the relay
committed the message. Every failure ends in exactly one Outcome.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gateway.app.services.account_requests.errors import (
    DeliveryFailedError,
    DirectoryUnavailableError,
    describe_error,
)
from gateway.app.services.account_requests.models import (
    AccountRequest,
    NotificationMessage,
    Outcome,
    ProcessingResult,
)

if TYPE_CHECKING:
    from gateway.app.services.directory.ldap_checker import DirectoryChecker
    from gateway.app.services.mail.smtp_notifier import MailTransport

logger = logging.getLogger(__name__)


class RequestPipeline:
    """Sequences the directory check and the notification for one request."""

    def __init__(self, directory: DirectoryChecker, mailer: MailTransport, *, sender: str, recipient: str):
        self.directory = directory
        self.mailer = mailer
        self.sender = sender
        self.recipient = recipient

    def process(self, request: AccountRequest) -> ProcessingResult:
        if not request.is_complete:
            return ProcessingResult(Outcome.VALIDATION_FAILED, detail='username and email are required')

        try:
            exists = self.directory.exists(request.username)
        except DirectoryUnavailableError as e:
            logger.error(f"Directory check for {request.username!r} failed at {e.stage}: {e.reason}")
            return ProcessingResult(Outcome.DIRECTORY_UNAVAILABLE, stage=e.stage, detail=e.reason)
        except Exception as e:
            # fail closed: an unconfirmed lookup is never "not found"
            logger.exception(f"Unexpected error checking directory for {request.username!r}")
            return ProcessingResult(Outcome.DIRECTORY_UNAVAILABLE, stage='directory', detail=describe_error(e))

        if exists:
            logger.info(f"Account request for existing username {request.username!r} rejected")
            return ProcessingResult(Outcome.CONFLICT)

        message = NotificationMessage.for_request(request, sender=self.sender, recipient=self.recipient)
        try:
            self.mailer.notify(message)
        except DeliveryFailedError as e:
            logger.error(f"Notification for {request.username!r} failed at {e.stage}: {e.reason}")
            return ProcessingResult(Outcome.DELIVERY_FAILED, stage=e.stage, detail=e.reason)
        except Exception as e:
            logger.exception(f"Unexpected error sending notification for {request.username!r}")
            return ProcessingResult(Outcome.DELIVERY_FAILED, stage='mail', detail=describe_error(e))

        logger.info(f"Account request for {request.username!r} forwarded")
        return ProcessingResult(Outcome.SUCCESS)
