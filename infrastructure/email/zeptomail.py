"""ZeptoMail implementation of EmailProvider.

Delivers verification codes as transactional mail through the ZeptoMail REST
API. The provider reports delivery as a bool and never raises, which lets the
OTP engine decide how to roll back a code the user will never receive.
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"
_TOKEN_PREFIX = "Zoho-enczapikey "
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_url: str = "http://localhost:8000",
        app_name: str = "FeedTools",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_url = app_url
        self._app_name = app_name
        self._templates = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _authorization(self) -> str:
        token = self._settings.zepto_api_token
        return token if token.startswith(_TOKEN_PREFIX) else _TOKEN_PREFIX + token

    def _message(
        self, recipient: str, recipient_name: Optional[str], subject: str, html: str, text: str
    ) -> dict:
        return {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [
                {"email_address": {"address": recipient, "name": recipient_name or recipient}}
            ],
            "subject": subject,
            "htmlbody": html,
            "textbody": text,
        }

    async def _deliver(self, message: dict) -> bool:
        recipient = message["to"][0]["email_address"]["address"]
        if not self._settings.zepto_api_token:
            log.error("verification_email_failed", to_email=recipient, reason="no_api_token")
            return False

        try:
            response = await self._http.post(
                _ZEPTO_API_URL,
                json=message,
                headers={
                    "Authorization": self._authorization(),
                    "Content-Type": "application/json",
                },
            )
        except Exception as e:
            log.error(
                "verification_email_failed",
                to_email=recipient,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if 200 <= response.status_code < 300:
            log.info("verification_email_sent", to_email=recipient)
            return True
        log.error(
            "verification_email_failed",
            to_email=recipient,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str, ttl_minutes: int
    ) -> bool:
        html = self._templates.get_template("verification.html").render(
            otp_code=otp_code,
            user_name=user_name,
            ttl_minutes=ttl_minutes,
            app_url=self._app_url,
            app_name=self._app_name,
        )
        greeting = f"Hello {user_name}," if user_name else "Hello,"
        text = (
            f"{greeting}\n\n"
            f"Your {self._app_name} verification code is {otp_code}.\n"
            f"It expires in {ttl_minutes} minutes."
        )
        subject = f"Your {self._app_name} verification code"
        return await self._deliver(self._message(email, user_name, subject, html, text))
