from __future__ import annotations

import logging
import mimetypes
import smtplib
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

from till.config import Settings
from till.errors import ExternalServiceFailure

logger = logging.getLogger(__name__)


class SmtpMailTransport:
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpMailTransport:
        password = settings.smtp_password.get_secret_value() if settings.smtp_password else None
        return cls(
            host=settings.smtp_host or "localhost",
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=password,
            use_tls=settings.smtp_use_tls,
        )

    def send(self, sender: str, recipient: str, subject: str, body: str, attachment: Path) -> None:
        message = EmailMessage()
        message["From"] = sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        content_type, _ = mimetypes.guess_type(attachment.name)
        maintype, _, subtype = (content_type or "application/octet-stream").partition("/")
        try:
            message.add_attachment(
                attachment.read_bytes(), maintype=maintype, subtype=subtype, filename=attachment.name
            )
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (OSError, smtplib.SMTPException) as exc:
            raise ExternalServiceFailure(f"could not mail {attachment.name} to {recipient}: {exc}") from exc
        logger.info("Mailed %s to %s", attachment.name, recipient)
