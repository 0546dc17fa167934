# =============================================================================
# utils/mailer.py - SMTP report delivery
# =============================================================================

import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional


class Mailer:
    """Sends HTML reports with a plain-text fallback"""

    def __init__(self, smtp_server: str, smtp_port: int, sender: str, recipients: List[str],
                 username: Optional[str] = None, password: Optional[str] = None,
                 starttls: bool = False, timeout: int = 30):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.sender = sender
        self.recipients = recipients
        self.username = username
        self.password = password
        self.starttls = starttls
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def build_message(self, subject: str, html_body: str, text_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        msg["Subject"] = subject
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def send(self, subject: str, html_body: str, text_body: str) -> None:
        """Send one report; SMTP and socket errors propagate to the caller"""
        msg = self.build_message(subject, html_body, text_body)

        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)

        self.logger.info(f"Sent '{subject}' to {', '.join(self.recipients)}")
