"""Subscription engine: subscriber lifecycle.

subscribe():
    parse -> insert subscription + token (one transaction) -> commit ->
    send confirmation email. A mail failure is reported but the committed
    row stays in ``pending_confirmation``.

confirm():
    token lookup -> status ``confirmed``. Idempotent; tokens never expire.

This module is the only writer of the subscriptions and
subscription_tokens tables.
"""

import re
import secrets
import string
import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.core.email import EmailClient
from newsletter.domain.errors import (
    ConfirmUnauthorizedError,
    ConfirmUnexpectedError,
    SubscribeUnexpectedError,
    TransportError,
)
from newsletter.domain.new_subscriber import NewSubscriber
from newsletter.domain.subscriber_email import SubscriberEmail
from newsletter.repositories.subscription_repository import SubscriptionRepository
from newsletter.repositories.subscription_token_repository import (
    SubscriptionTokenRepository,
)

logger = structlog.get_logger()

SUBSCRIPTION_TOKEN_LENGTH = 25
_TOKEN_ALPHABET = string.ascii_letters + string.digits
_TOKEN_SHAPE = re.compile(f"[A-Za-z0-9]{{{SUBSCRIPTION_TOKEN_LENGTH}}}")

CONFIRMATION_SUBJECT = "Welcome!"


def generate_subscription_token() -> str:
    """Generate a confirmation token.

    25 characters drawn uniformly from ``[A-Za-z0-9]`` with the OS CSPRNG.
    The token is a bearer credential, so ``random`` is not acceptable here.
    """
    return "".join(
        secrets.choice(_TOKEN_ALPHABET) for _ in range(SUBSCRIPTION_TOKEN_LENGTH)
    )


def build_confirmation_link(base_url: str, subscription_token: str) -> str:
    """Public URL that confirms the subscription owning ``subscription_token``."""
    return (
        f"{base_url.rstrip('/')}/subscriptions/confirm"
        f"?subscription_token={subscription_token}"
    )


async def send_confirmation_email(
    email_client: EmailClient,
    recipient: SubscriberEmail,
    base_url: str,
    subscription_token: str,
) -> None:
    """Send the welcome email carrying the confirmation link.

    Raises:
        TransportError: If the mail provider call fails.
    """
    link = build_confirmation_link(base_url, subscription_token)
    html_body = (
        "Welcome to our newsletter!<br />"
        f'Click <a href="{link}">here</a> to confirm your subscription.'
    )
    text_body = (
        f"Welcome to our newsletter!\nVisit {link} to confirm your subscription."
    )
    await email_client.send_email(recipient, CONFIRMATION_SUBJECT, html_body, text_body)


async def subscribe(
    db: AsyncSession,
    email_client: EmailClient,
    base_url: str,
    name_raw: str,
    email_raw: str,
) -> uuid.UUID:
    """Register a new pending subscriber and email them a confirmation link.

    Args:
        db: Async database session. Committed here on success.
        email_client: Shared mail gateway client.
        base_url: Public base URL for the confirmation link.
        name_raw: Unvalidated subscriber name.
        email_raw: Unvalidated subscriber email.

    Returns:
        Id of the new subscription.

    Raises:
        SubscriberValidationError: Invalid name or email (nothing written).
        SubscribeUnexpectedError: Storage failure (rolled back) or mail
            failure (row kept).
    """
    # Parse before any I/O: invalid input never reaches the database
    new_subscriber = NewSubscriber.parse(name_raw, email_raw)
    log = logger.bind(
        subscriber_email=new_subscriber.email.value,
        subscriber_name=new_subscriber.name.value,
    )

    subscription_token = generate_subscription_token()
    try:
        subscription = await SubscriptionRepository.create_pending(db, new_subscriber)
        await SubscriptionTokenRepository.create(
            db,
            subscription_token=subscription_token,
            subscription_id=subscription.id,
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        log.error("subscription_store_failed", exc_info=True)
        raise SubscribeUnexpectedError(
            "Failed to store the new subscriber and its token."
        ) from exc

    log.info("subscription_created", subscription_id=str(subscription.id))

    try:
        await send_confirmation_email(
            email_client, new_subscriber.email, base_url, subscription_token
        )
    except TransportError as exc:
        log.error("confirmation_email_failed", exc_info=True)
        raise SubscribeUnexpectedError("Failed to send a confirmation email.") from exc

    return subscription.id


async def confirm(db: AsyncSession, subscription_token: str) -> uuid.UUID:
    """Redeem a confirmation token.

    Args:
        db: Async database session. Committed here on success.
        subscription_token: Token from the confirmation link.

    Returns:
        Id of the confirmed subscription.

    Raises:
        ConfirmUnauthorizedError: Token unknown (or malformed).
        ConfirmUnexpectedError: Storage failure.
    """
    # Malformed tokens get the same answer as unknown ones and never reach
    # the database (PostgreSQL rejects NUL in text parameters)
    if _TOKEN_SHAPE.fullmatch(subscription_token) is None:
        raise ConfirmUnauthorizedError(
            "There is no subscriber associated with the provided token."
        )

    try:
        subscription_id = await SubscriptionTokenRepository.get_subscription_id(
            db, subscription_token
        )
        if subscription_id is None:
            raise ConfirmUnauthorizedError(
                "There is no subscriber associated with the provided token."
            )
        await SubscriptionRepository.mark_confirmed(db, subscription_id)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("subscription_confirm_failed", exc_info=True)
        raise ConfirmUnexpectedError("Failed to confirm the subscription.") from exc

    logger.info("subscription_confirmed", subscription_id=str(subscription_id))
    return subscription_id
