"""Outbound notification delivery."""

from .email_notifier import LoggingNotifier, SmtpEmailNotifier, render_notice

__all__ = ["LoggingNotifier", "SmtpEmailNotifier", "render_notice"]
