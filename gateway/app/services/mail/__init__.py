"""Notification delivery through an SMTP relay."""

from .smtp_notifier import STAGES, MailTransport, SmtpMailNotifier

__all__ = ['STAGES', 'MailTransport', 'SmtpMailNotifier']
