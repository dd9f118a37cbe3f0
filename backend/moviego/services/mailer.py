"""
MovieGo API: Templated SMTP Mailer
==================================

What:  Renders a Jinja2 template into subject, plain-text and HTML parts and
       delivers the message over SMTP.
How:   Each template defines three blocks: `subject`, `plain_body` and
       `html_body`. Rendering and delivery are blocking, so both run in the
       thread pool. Delivery is retried with exponential backoff (tenacity)
       because mail relays commonly reject or drop connections transiently.
Who:   UserService sends `user_welcome.j2` after registration, always through
       the BackgroundTaskSupervisor so the HTTP response does not wait.

Retry Strategy:
    attempts: `mail_retry_attempts` (default 3)
    wait:     exponential in multiples of `retry_wait` (capped at 8x) plus
              up to `retry_wait` seconds of random jitter
    retried:  smtplib.SMTPException and OSError (refused, reset, timeout)
"""

import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from moviego.config import Settings

logger = logging.getLogger(__name__)

TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "templates"


class Mailer:
    """
    Sends templated mail through one SMTP relay.

    Attributes:
        sender:          RFC 5322 From value, e.g. "MovieGo <no-reply@moviego.local>"
        timeout:         Socket timeout per SMTP connection, in seconds
        retry_attempts:  Total delivery attempts before giving up
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        timeout: float = 5.0,
        retry_attempts: int = 3,
        retry_wait: float = 1.0,
        templates_path: Optional[Path] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait
        self._env = Environment(
            loader=FileSystemLoader(str(templates_path or TEMPLATES_PATH)),
            autoescape=select_autoescape(default=True, default_for_string=True),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Mailer":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=settings.smtp_sender,
            timeout=settings.smtp_timeout,
            retry_attempts=settings.mail_retry_attempts,
        )

    # ── Rendering ─────────────────────────────────────────────────────────

    def render(self, template_name: str, data: Dict[str, Any]) -> Tuple[str, str, str]:
        """Returns (subject, plain_body, html_body) for `template_name`."""
        template = self._env.get_template(template_name)
        context = template.new_context(data)

        def block(name: str) -> str:
            return "".join(template.blocks[name](context)).strip()

        return block("subject"), block("plain_body"), block("html_body")

    def build_message(self, recipient: str, template_name: str, data: Dict[str, Any]) -> EmailMessage:
        subject, plain_body, html_body = self.render(template_name, data)
        message = EmailMessage()
        message["To"] = recipient
        message["From"] = self.sender
        message["Subject"] = subject
        message.set_content(plain_body)
        message.add_alternative(html_body, subtype="html")
        return message

    # ── Delivery ──────────────────────────────────────────────────────────

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)

    async def send(self, recipient: str, template_name: str, data: Dict[str, Any]) -> None:
        """
        Render and deliver one message, retrying transient SMTP failures.

        Raises:
            jinja2.TemplateError: the template is missing or broken (not retried)
            smtplib.SMTPException / OSError: every attempt failed
        """
        message = await run_in_threadpool(self.build_message, recipient, template_name, data)

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((smtplib.SMTPException, OSError)),
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=self.retry_wait * 8)
            + wait_random(0, self.retry_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await run_in_threadpool(self._deliver, message)

        logger.info("Sent %s (subject=%r)", template_name, message["Subject"])
