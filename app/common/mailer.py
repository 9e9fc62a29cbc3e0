# app/common/mailer.py

import logging
import smtplib
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from email.message import EmailMessage
from typing import Deque, List, Optional

from app.core.config import settings
from app.db.base_class import utcnow

logger = logging.getLogger(__name__)


@dataclass
class OutgoingMail:
    to: str
    subject: str
    body: str
    sent_at: datetime = field(default_factory=utcnow)


class Mailer:
    """
    Sends account emails (verification and recovery codes).

    Without an SMTP host the mail is only logged and kept in ``outbox``,
    which is what development and the test suite rely on.
    """

    def __init__(
        self,
        host: str = "",
        port: int = 587,
        username: str = "",
        password: str = "",
        sender: str = "no-reply@localhost",
        starttls: bool = True,
        keep: int = 200,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.starttls = starttls
        self.outbox: Deque[OutgoingMail] = deque(maxlen=keep)

    def send(self, to: str, subject: str, body: str) -> OutgoingMail:
        mail = OutgoingMail(to=to, subject=subject, body=body)
        self.outbox.append(mail)
        if not self.host:
            logger.info("Mail to %s queued in outbox: %s", to, subject)
            logger.debug("Mail body for %s:\n%s", to, body)
            return mail

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
        logger.info("Mail to %s sent via %s: %s", to, self.host, subject)
        return mail

    def sent_to(self, address: str) -> List[OutgoingMail]:
        return [m for m in self.outbox if m.to == address]

    def last_to(self, address: str) -> Optional[OutgoingMail]:
        sent = self.sent_to(address)
        return sent[-1] if sent else None


mailer = Mailer(
    host=settings.SMTP_HOST,
    port=settings.SMTP_PORT,
    username=settings.SMTP_USERNAME,
    password=settings.SMTP_PASSWORD,
    sender=settings.MAIL_SENDER,
    starttls=settings.SMTP_STARTTLS,
)


def get_mailer() -> Mailer:
    return mailer
