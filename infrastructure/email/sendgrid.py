"""SendGrid implementation of EmailProvider.

Sends through the SendGrid v3 mail/send HTTP API using the shared async
HttpClient; message bodies are Jinja2 templates under templates/emails.
"""

import os
from datetime import datetime
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class SendGridProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_url: str = "http://localhost:5173",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_url = app_url
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def _send(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        if not self._settings.sendgrid_api_key:
            log.error("email_send_failed", reason="api_key_not_configured")
            return False

        recipient: dict = {"email": to_email}
        if to_name:
            recipient["name"] = to_name

        content = []
        if text_body:
            content.append({"type": "text/plain", "value": text_body})
        content.append({"type": "text/html", "value": html_body})

        payload = {
            "personalizations": [{"to": [recipient]}],
            "from": {
                "email": self._settings.email_from,
                "name": self._settings.email_from_name,
            },
            "subject": subject,
            "content": content,
        }
        headers = {
            "Authorization": f"Bearer {self._settings.sendgrid_api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(
                _SENDGRID_API_URL, json=payload, headers=headers
            )
        except Exception as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code in (200, 201, 202):
            log.info("email_sent_success", to_email=to_email, subject=subject)
            return True
        log.error(
            "email_sent_failed",
            to_email=to_email,
            subject=subject,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    async def send_password_reset_otp(
        self, email: str, username: Optional[str], otp_code: str, ttl_minutes: int
    ) -> bool:
        subject = "OTP code to verify password recovery"
        template = self._jinja.get_template("password_reset.html")
        html_body = template.render(
            otp_code=otp_code,
            username=username,
            ttl_minutes=ttl_minutes,
            app_url=self._app_url,
        )
        text_body = (
            f"Hello{f' {username}' if username else ''},\n\n"
            f"The OTP code to retrieve your password is: {otp_code}\n"
            f"It is valid for {ttl_minutes} minutes.\n\n"
            f"Please do not share this code with anyone."
        )
        return await self._send(email, username, subject, html_body, text_body)

    async def send_test_drive_confirmation(
        self,
        email: str,
        name: str,
        car_label: str,
        preferred_date: Optional[datetime],
    ) -> bool:
        subject = f"Your test drive request for the {car_label}"
        when = preferred_date.strftime("%Y-%m-%d %H:%M UTC") if preferred_date else None
        template = self._jinja.get_template("test_drive_confirmation.html")
        html_body = template.render(
            name=name, car_label=car_label, when=when, app_url=self._app_url
        )
        text_body = (
            f"Hello {name},\n\n"
            f"We received your test drive request for the {car_label}"
            f"{f' on {when}' if when else ''}.\n"
            f"Our team will contact you shortly to confirm."
        )
        return await self._send(email, name, subject, html_body, text_body)
