"""Newsletter publishing endpoint.

POST /newsletters: HTTP Basic authenticated; fans one issue out to every
confirmed subscriber.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict

from newsletter.api.deps import DbSession, MailClient, PublisherId
from newsletter.core.responses import DataResponse
from newsletter.services.newsletter_dispatch import NewsletterIssue, publish

router = APIRouter()


# ===================================================================
# Request / response models
# ===================================================================


class NewsletterContent(BaseModel):
    """Issue bodies."""

    model_config = ConfigDict(extra="forbid")

    html: str
    text: str


class PublishNewsletterRequest(BaseModel):
    """Request body for POST /newsletters."""

    model_config = ConfigDict(extra="forbid")

    title: str
    content: NewsletterContent


class PublishResult(BaseModel):
    """Delivery counts for a completed publish."""

    delivered: int
    skipped: int


# ===================================================================
# POST /newsletters
# ===================================================================


@router.post("/newsletters")
async def publish_newsletter(
    request: Request,
    body: PublishNewsletterRequest,
    publisher_id: PublisherId,  # noqa: ARG001
    db: DbSession,
    email_client: MailClient,
) -> DataResponse[PublishResult]:
    """Send an issue to all confirmed subscribers.

    401 with ``WWW-Authenticate: Basic realm="publish"`` on any credential
    failure; 500 when the subscriber query or any send fails. Sending stops
    early once the client disconnects.
    """
    summary = await publish(
        db,
        email_client,
        NewsletterIssue(
            title=body.title,
            html_content=body.content.html,
            text_content=body.content.text,
        ),
        should_abort=request.is_disconnected,
    )
    return DataResponse(
        data=PublishResult(delivered=summary.delivered, skipped=summary.skipped)
    )
