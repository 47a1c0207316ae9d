"""ZeptoMail implementation of EmailProvider.

Posts the verification code email to the ZeptoMail v1.1 API. HTML and
plain-text bodies are rendered from the Jinja2 templates in
templates/emails/. The httpx client is owned by the app lifespan.
"""

import os
from typing import Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from shared.logging import get_logger

log = get_logger(__name__)

ZEPTO_API_URL = "https://api.zeptomail.in/v1.1/email"
_AUTH_PREFIX = "Zoho-enczapikey "
_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: httpx.AsyncClient,
        app_name: str = "ElectroHub",
        app_url: str = "https://electrohub.store",
        template_dir: str = _TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_name = app_name
        self._app_url = app_url
        self._templates = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )

    def _authorization(self) -> str:
        token = self._settings.zepto_api_token
        return token if token.startswith(_AUTH_PREFIX) else _AUTH_PREFIX + token

    def _payload(self, email: str, name: Optional[str], subject: str, context: dict) -> dict:
        return {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": email, "name": name or email}}],
            "subject": subject,
            "htmlbody": self._templates.get_template("verification_code.html").render(context),
            "textbody": self._templates.get_template("verification_code.txt").render(context),
        }

    async def send_verification_code_email(
        self, email: str, name: Optional[str], code: str, expires_in_minutes: int
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("verification_email_not_sent", reason="zepto_token_not_configured")
            return False

        context = {
            "code": code,
            "name": name,
            "app_name": self._app_name,
            "app_url": self._app_url,
            "expires_in_minutes": expires_in_minutes,
        }
        payload = self._payload(
            email, name, f"Your {self._app_name} verification code", context
        )

        try:
            response = await self._http.post(
                ZEPTO_API_URL,
                json=payload,
                headers={"Authorization": self._authorization()},
            )
        except httpx.HTTPError as e:
            log.error(
                "verification_email_transport_error",
                to_email=email,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not response.is_success:
            log.error(
                "verification_email_rejected",
                to_email=email,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False

        log.info("verification_email_sent", to_email=email)
        return True
