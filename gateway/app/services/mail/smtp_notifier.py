"""SMTP delivery of account request notifications.

A delivery walks a fixed sequence of stages and stops at the first failure:

    connect -> starttls -> authenticate -> set_sender -> set_recipient
            -> write_body -> commit

The message only counts as sent once the relay accepts the end of DATA
(commit). The session is terminated with QUIT (falling back to closing the
socket) whatever happened before. Nothing is retried here.
"""
from __future__ import annotations

import logging
import smtplib
import ssl
from typing import Optional, Protocol

from flask_mail import Message

from gateway.app.services.account_requests.errors import DeliveryFailedError, describe_error
from gateway.app.services.account_requests.models import NotificationMessage
from gateway.app.settings import MailSettings

logger = logging.getLogger(__name__)

STAGES = (
    'connect',
    'starttls',
    'authenticate',
    'set_sender',
    'set_recipient',
    'write_body',
    'commit',
)


class MailTransport(Protocol):
    def notify(self, message: NotificationMessage) -> None:
        ...


def render_message(message: NotificationMessage) -> str:
    """Render the MIME text of a notification. Needs an app context with Flask-Mail initialised."""
    msg = Message(
        subject=message.subject,
        recipients=[message.recipient],
        body=message.body,
        sender=message.sender,
    )
    return msg.as_string()


class SmtpMailNotifier:
    def __init__(self, settings: MailSettings, ssl_context: Optional[ssl.SSLContext] = None):
        self.settings = settings
        self.ssl_context = ssl_context or ssl.create_default_context(cafile=settings.ca_file)

    def notify(self, message: NotificationMessage) -> None:
        """Deliver one message.

        Raises:
            DeliveryFailedError: With the stage at which delivery stopped
        """
        payload = render_message(message)
        smtp = None
        stage = 'connect'
        try:
            smtp = self._connect()
            stage = 'starttls'
            self._starttls(smtp)
            stage = 'authenticate'
            self._authenticate(smtp)
            stage = 'set_sender'
            code, resp = smtp.mail(message.sender)
            if code != 250:
                raise smtplib.SMTPSenderRefused(code, resp, message.sender)
            stage = 'set_recipient'
            code, resp = smtp.rcpt(message.recipient)
            if code not in (250, 251):
                raise smtplib.SMTPRecipientsRefused({message.recipient: (code, resp)})
            stage = 'write_body'
            self._write_body(smtp, payload)
            stage = 'commit'
            code, resp = smtp.getreply()
            if code != 250:
                raise smtplib.SMTPDataError(code, resp)
        except (smtplib.SMTPException, OSError) as e:
            reason = describe_error(e, getattr(e, 'smtp_code', None))
            logger.warning(f"Mail delivery to {message.recipient} failed at {stage}: {reason}")
            raise DeliveryFailedError(stage, reason) from None
        finally:
            if smtp is not None:
                self._terminate(smtp)
        logger.info(f"Account request notification sent to {message.recipient}")

    def _connect(self) -> smtplib.SMTP:
        # The host given here is also the server_hostname checked by starttls().
        # Raises SMTPConnectError unless the greeting is 220.
        smtp = smtplib.SMTP(self.settings.tls_server_name, self.settings.port,
                            timeout=self.settings.connect_timeout)
        # connect timeout covered the TCP handshake; commands get their own deadline
        smtp.timeout = self.settings.command_timeout
        smtp.sock.settimeout(self.settings.command_timeout)
        return smtp

    def _starttls(self, smtp: smtplib.SMTP) -> None:
        smtp.ehlo()
        smtp.starttls(context=self.ssl_context)
        smtp.ehlo()

    def _authenticate(self, smtp: smtplib.SMTP) -> None:
        smtp.user = self.settings.username
        smtp.password = self.settings.password
        smtp.auth('PLAIN', smtp.auth_plain)

    def _write_body(self, smtp: smtplib.SMTP, payload: str) -> None:
        code, resp = smtp.docmd('DATA')
        if code != 354:
            raise smtplib.SMTPDataError(code, resp)
        data = smtplib.quotedata(payload).encode('utf-8')
        if not data.endswith(b'\r\n'):
            data += b'\r\n'
        smtp.send(data + b'.\r\n')

    def _terminate(self, smtp: smtplib.SMTP) -> None:
        try:
            smtp.quit()
        except (smtplib.SMTPException, OSError):
            smtp.close()
