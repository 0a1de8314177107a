"""Notification dispatch"""

from .email import EmailNotifier, LogTransport, MailTransport, SmtpTransport

__all__ = ["EmailNotifier", "LogTransport", "MailTransport", "SmtpTransport"]
