"""Email sending via an HTTP mail provider (Postmark-style API).

One EmailClient, and therefore one httpx.AsyncClient connection pool, is
shared by every request. The client carries a hard timeout: a stalled
provider surfaces as a TransportError instead of holding a worker.
"""

import logging

import httpx
from pydantic import SecretStr

from newsletter.core.config import Settings
from newsletter.domain.errors import TransportError
from newsletter.domain.subscriber_email import SubscriberEmail

logger = logging.getLogger(__name__)

_SERVER_TOKEN_HEADER = "X-Postmark-Server-Token"


class EmailClient:
    """Mail Gateway collaborator.

    Args:
        base_url: Provider base URL; messages are POSTed to ``{base_url}/email``.
        sender: Validated From address.
        authorization_token: Provider API token.
        timeout: Per-request timeout in seconds.
        http_client: Pre-built client (tests inject one with a MockTransport).
    """

    def __init__(
        self,
        *,
        base_url: str,
        sender: SubscriberEmail,
        authorization_token: SecretStr,
        timeout: float,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self._authorization_token = authorization_token
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._timeout = timeout

    @classmethod
    def from_settings(
        cls, settings: Settings, *, http_client: httpx.AsyncClient | None = None
    ) -> "EmailClient":
        """Build the client from settings.

        Raises:
            SubscriberValidationError: If EMAIL_SENDER is not a valid address.
        """
        return cls(
            base_url=settings.email_base_url,
            sender=SubscriberEmail.parse(settings.email_sender),
            authorization_token=settings.email_authorization_token,
            timeout=settings.email_send_timeout,
            http_client=http_client,
        )

    async def send_email(
        self,
        recipient: SubscriberEmail,
        subject: str,
        html_content: str,
        text_content: str,
    ) -> None:
        """Send one email.

        Args:
            recipient: Validated To address.
            subject: Subject line.
            html_content: HTML body.
            text_content: Plain-text body.

        Raises:
            TransportError: On non-2xx status, timeout or connection failure.
        """
        try:
            resp = await self._http_client.post(
                f"{self.base_url}/email",
                headers={
                    _SERVER_TOKEN_HEADER: self._authorization_token.get_secret_value(),
                },
                json={
                    "From": self.sender.value,
                    "To": recipient.value,
                    "Subject": subject,
                    "HtmlBody": html_content,
                    "TextBody": text_content,
                },
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Mail provider request failed: %s", type(exc).__name__)
            raise TransportError(f"Failed to send email to {recipient}") from exc

    async def aclose(self) -> None:
        """Release the shared connection pool."""
        await self._http_client.aclose()
