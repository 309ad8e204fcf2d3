"""Newsletter dispatcher: fan-out of one issue to every confirmed subscriber.

Failure policy:
- A stored email that no longer parses is logged and skipped; one corrupt
  row never blocks delivery to the rest of the list.
- A failed send aborts the whole call and names the recipient. Sends
  already issued are not undone and nothing is retried here.

Authentication is the caller's precondition (HTTP Basic at the route).
Concurrent publishes are not serialized.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.core.email import EmailClient
from newsletter.domain.errors import (
    PublishUnexpectedError,
    SubscriberValidationError,
    TransportError,
)
from newsletter.domain.subscriber_email import SubscriberEmail
from newsletter.repositories.subscription_repository import SubscriptionRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class NewsletterIssue:
    """Content of one issue."""

    title: str
    html_content: str
    text_content: str


@dataclass(frozen=True)
class DispatchSummary:
    """Outcome of a successful publish.

    Attributes:
        delivered: Number of emails accepted by the mail provider.
        skipped: Stored addresses that failed re-validation.
    """

    delivered: int
    skipped: int


async def get_confirmed_subscribers(
    db: AsyncSession,
) -> list[SubscriberEmail | SubscriberValidationError]:
    """Load confirmed subscribers, re-validating each stored address.

    Invalid rows come back as the validation error instead of raising, so
    the caller decides per row.

    Raises:
        PublishUnexpectedError: On database failure.
    """
    try:
        stored_emails = await SubscriptionRepository.list_confirmed_emails(db)
    except SQLAlchemyError as exc:
        logger.error("confirmed_subscribers_query_failed", exc_info=True)
        raise PublishUnexpectedError(
            "Failed to retrieve confirmed subscribers."
        ) from exc

    subscribers: list[SubscriberEmail | SubscriberValidationError] = []
    for stored_email in stored_emails:
        try:
            subscribers.append(SubscriberEmail.parse(stored_email))
        except SubscriberValidationError as exc:
            subscribers.append(exc)
    return subscribers


async def publish(
    db: AsyncSession,
    email_client: EmailClient,
    issue: NewsletterIssue,
    *,
    should_abort: Callable[[], Awaitable[bool]] | None = None,
) -> DispatchSummary:
    """Send ``issue`` to every confirmed subscriber.

    Args:
        db: Async database session (read-only use).
        email_client: Shared mail gateway client.
        issue: Title and bodies to send.
        should_abort: Optional async predicate polled before each send
            (e.g. ``request.is_disconnected``). True stops the loop.

    Returns:
        DispatchSummary with delivered and skipped counts.

    Raises:
        PublishUnexpectedError: Database failure, a send failure (``recipient``
            set), or an abort requested through ``should_abort``.
    """
    subscribers = await get_confirmed_subscribers(db)

    delivered = 0
    skipped = 0
    for subscriber in subscribers:
        if isinstance(subscriber, SubscriberValidationError):
            skipped += 1
            logger.warning(
                "skipping_confirmed_subscriber",
                reason="stored contact details are invalid",
                error=str(subscriber),
            )
            continue

        if should_abort is not None and await should_abort():
            logger.warning("newsletter_publish_aborted", delivered=delivered)
            raise PublishUnexpectedError(
                f"Newsletter delivery aborted after {delivered} emails."
            )

        try:
            await email_client.send_email(
                subscriber, issue.title, issue.html_content, issue.text_content
            )
        except TransportError as exc:
            logger.error(
                "newsletter_send_failed",
                recipient=subscriber.value,
                delivered=delivered,
                exc_info=True,
            )
            raise PublishUnexpectedError(
                f"Failed to send newsletter issue to {subscriber}",
                recipient=subscriber.value,
            ) from exc
        delivered += 1

    logger.info("newsletter_published", delivered=delivered, skipped=skipped)
    return DispatchSummary(delivered=delivered, skipped=skipped)
