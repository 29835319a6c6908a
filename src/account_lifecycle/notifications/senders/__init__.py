"""Notification sender adapters."""

from __future__ import annotations

from .console import ConsoleSender
from .memory import InMemorySender, SentMessage
from .smtp import SmtpEmailSender

__all__: list[str] = ["ConsoleSender", "InMemorySender", "SentMessage", "SmtpEmailSender"]
