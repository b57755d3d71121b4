"""
Email Service

SMTP delivery for platform notifications. Messages are rendered from jinja2
templates (html plus optional txt) and sent with aiosmtplib.
"""

import os
import re
import asyncio
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, TemplateNotFound

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


class EmailServiceConfig:
    """SMTP settings read from the environment."""

    def __init__(self):
        self.smtp_host = os.getenv('SMTP_HOST', '')
        self.smtp_port = int(os.getenv('SMTP_PORT', '587'))
        self.smtp_username = os.getenv('SMTP_USERNAME', '')
        self.smtp_password = os.getenv('SMTP_PASSWORD', '')
        self.smtp_use_tls = os.getenv('SMTP_USE_TLS', 'true').lower() == 'true'
        self.smtp_use_ssl = os.getenv('SMTP_USE_SSL', 'false').lower() == 'true'
        self.from_email = os.getenv('FROM_EMAIL', 'noreply@mindfold.app')
        self.from_name = os.getenv('FROM_NAME', 'Mindfold')
        self.template_dir = os.getenv('EMAIL_TEMPLATE_DIR', str(_DEFAULT_TEMPLATE_DIR))

    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_port and self.from_email)

    def validate(self) -> List[str]:
        errors = []
        if not self.smtp_host:
            errors.append("SMTP_HOST is required")
        if self.smtp_port <= 0:
            errors.append("SMTP_PORT must be a positive integer")
        if not self.from_email:
            errors.append("FROM_EMAIL is required")
        if self.smtp_use_ssl and self.smtp_use_tls:
            errors.append("Cannot use both SSL and TLS simultaneously")
        return errors


class EmailService:
    """Renders and sends transactional emails."""

    def __init__(self, config: Optional[EmailServiceConfig] = None):
        self.config = config or EmailServiceConfig()
        template_path = Path(self.config.template_dir)
        if not template_path.exists():
            logger.warning("Email template directory not found: %s", template_path)
        self.template_env = Environment(loader=FileSystemLoader(str(template_path)), autoescape=True)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> tuple[str, str]:
        """
        Render `<name>.html` and `<name>.txt`.

        Returns:
            Tuple of (html_content, text_content); the text part is derived
            from the html when no txt template exists.
        """
        html_content = self.template_env.get_template(f"{template_name}.html").render(**context)
        try:
            text_content = self.template_env.get_template(f"{template_name}.txt").render(**context)
        except TemplateNotFound:
            text_content = _html_to_text(html_content)
        return html_content, text_content

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one message.

        Returns:
            Dict with 'success' and, on failure, 'error'.
        """
        if not self.config.is_configured():
            return {'success': False, 'error': 'Email service not configured'}
        validation_errors = self.config.validate()
        if validation_errors:
            return {'success': False, 'error': f"Configuration errors: {', '.join(validation_errors)}"}

        message = MIMEMultipart('alternative')
        message['From'] = f"{self.config.from_name} <{self.config.from_email}>"
        message['To'] = to_email
        message['Subject'] = subject
        if text_content:
            message.attach(MIMEText(text_content, 'plain', 'utf-8'))
        message.attach(MIMEText(html_content, 'html', 'utf-8'))

        smtp_kwargs = {
            'hostname': self.config.smtp_host,
            'port': self.config.smtp_port,
            'start_tls': self.config.smtp_use_tls and not self.config.smtp_use_ssl,
            'use_tls': self.config.smtp_use_ssl,
        }
        try:
            async with aiosmtplib.SMTP(**smtp_kwargs) as smtp:
                if self.config.smtp_username and self.config.smtp_password:
                    await smtp.login(self.config.smtp_username, self.config.smtp_password)
                await smtp.send_message(message)
        except Exception as exc:
            logger.error("Failed to send email '%s' to %s: %s", subject, to_email, exc)
            return {'success': False, 'error': str(exc)}

        logger.info("Email sent to %s: %s", to_email, subject)
        return {'success': True}


def _html_to_text(html_content: str) -> str:
    text = re.sub(r'<[^>]+>', '', html_content)
    text = text.replace('&amp;', '&').replace('&lt;', '<').replace('&gt;', '>')
    text = text.replace('&quot;', '"').replace('&#39;', "'")
    return re.sub(r'\s+', ' ', text).strip()


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service


def send_email_sync(to_email: str, subject: str, html_content: str, text_content: Optional[str] = None) -> Dict[str, Any]:
    """Blocking wrapper used from synchronous request handlers."""
    return asyncio.run(get_email_service().send_email(
        to_email=to_email,
        subject=subject,
        html_content=html_content,
        text_content=text_content,
    ))


def send_verification_decision(to_email: str, *, therapist_name: str, status: str, reason: Optional[str] = None, can_resubmit: bool = True) -> Dict[str, Any]:
    """Tell a therapist their verification was approved or rejected. Never raises."""
    try:
        service = get_email_service()
        html_content, text_content = service.render_template(
            "therapist_verification",
            {
                "therapist_name": therapist_name,
                "status": status,
                "reason": reason,
                "can_resubmit": can_resubmit,
                "app_url": os.getenv("APP_BASE_URL", "http://localhost:3000"),
            },
        )
        subject = (
            "Your Mindfold therapist profile is approved"
            if status == "approved"
            else "Update on your Mindfold therapist verification"
        )
        return send_email_sync(to_email, subject, html_content, text_content)
    except Exception as exc:
        logger.error("Verification email to %s failed: %s", to_email, exc)
        return {'success': False, 'error': str(exc)}
