"""Jinja2 rendering and the built-in account e-mail templates."""

from __future__ import annotations

import logging
from typing import Any

from jinja2 import StrictUndefined, Template

from .delivery import NotificationChannel, RenderedNotification
from .ports import ITemplateRenderer, NotificationTemplate

logger = logging.getLogger(__name__)


RECOVERY_CODE_TEMPLATE = NotificationTemplate(
    template_id="password_recovery_code",
    channel=NotificationChannel.EMAIL,
    subject_template="Password recovery",
    body_template=(
        "<html><body>"
        "<h1>Hey {{ email }},</h1>"
        "<h2>Use the following code to reset your password</h2>"
        "<p>{{ code }}</p>"
        "<i>If you did not request this code, you can ignore this email.</i>"
        "</body></html>"
    ),
    text_template=(
        "Hey {{ email }},\n\n"
        "Use the following code to reset your password: {{ code }}\n\n"
        "If you did not request this code, you can ignore this email."
    ),
)

VERIFICATION_LINK_TEMPLATE = NotificationTemplate(
    template_id="email_verification_link",
    channel=NotificationChannel.EMAIL,
    subject_template="Email verification",
    body_template=(
        "<html><body>"
        "<h1>Verify your email address</h1>"
        "<p>Click the following link to verify your email address:</p>"
        '<a href="{{ link }}">Verify email address</a>'
        "<i>If you did not ask to verify this address, you can ignore this email.</i>"
        "</body></html>"
    ),
    text_template=(
        "Verify your email address by opening this link:\n{{ link }}\n\n"
        "If you did not ask to verify this address, you can ignore this email."
    ),
)


class JinjaTemplateRenderer(ITemplateRenderer):
    """
    Renders notifications using the Jinja2 engine.

    Missing context variables raise (``StrictUndefined``). HTML bodies are
    autoescaped.
    """

    async def render(
        self, template: NotificationTemplate, context: dict[str, Any]
    ) -> RenderedNotification:
        """Render template using Jinja2."""
        try:
            subject = None
            if template.subject_template:
                subject = Template(
                    template.subject_template,
                    undefined=StrictUndefined,
                ).render(**context)

            body = Template(
                template.body_template,
                undefined=StrictUndefined,
                autoescape=True,
            ).render(**context)

            body_html = None
            if "<html>" in body.lower() or "<body>" in body.lower():
                body_html = body

            body_text = body
            if template.text_template:
                body_text = Template(
                    template.text_template,
                    undefined=StrictUndefined,
                ).render(**context)

            return RenderedNotification(
                subject=subject,
                body_text=body_text,
                body_html=body_html,
            )
        except Exception as e:
            logger.error("Jinja2 rendering of %s failed: %s", template.template_id, e)
            raise


__all__: list[str] = [
    "JinjaTemplateRenderer",
    "RECOVERY_CODE_TEMPLATE",
    "VERIFICATION_LINK_TEMPLATE",
]
