"""Inbound webhooks."""

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from carecheck.api.dependencies import OcgIngestionServiceDep
from carecheck.api.middleware.auth import verify_ocg_webhook
from carecheck.api.models.verification import OcgWebhookRequest
from carecheck.observability.logging import get_logger
from carecheck.verification.errors import SubmissionValidationError
from carecheck.verification.ocg.ingest import OcgIngestionReport

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks")


async def _read_html(request: Request) -> str:
    """The email HTML from a JSON body or an ``html`` form field."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = OcgWebhookRequest.model_validate(await request.json())
        except (ValueError, ValidationError):
            raise SubmissionValidationError("Invalid JSON body", fields=["html"]) from None
        html = body.html
    else:
        form = await request.form()
        value = form.get("html")
        html = value if isinstance(value, str) else None

    if not html or not html.strip():
        raise SubmissionValidationError("Missing OCG email html", fields=["html"])
    return html


@router.post(
    "/ocg",
    response_model=OcgIngestionReport,
    dependencies=[Depends(verify_ocg_webhook)],
)
async def ingest_ocg_email(
    request: Request,
    ingestion: OcgIngestionServiceDep,
) -> OcgIngestionReport:
    """Apply an OCG verification-results email.

    Returns the per-row report; 422 if the email isn't a recognisable OCG
    notification.
    """
    html = await _read_html(request)
    logger.info("ocg_webhook_received", size=len(html))
    return await ingestion.ingest(html)
