"""API routes for the email composer."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from crm_composer.api.schemas import (
    MAX_EMAIL_ADDRESS_LENGTH,
    MAX_QUERY_LENGTH,
    FormatDraftRequest,
    FormatDraftResponse,
    GenerateEmailRequest,
    GenerateEmailResponse,
    HealthResponse,
    RecipientSearchResponse,
)
from crm_composer.config import settings
from crm_composer.formatter import draft_formatter
from crm_composer.recipients import CrmStoreError, RecipientContext, recipient_resolver
from crm_composer.security import redact_sensitive_for_logging
from crm_composer.services.draft_generator import draft_generator

logger = logging.getLogger(__name__)

router = APIRouter()

# Same key function as the app-level limiter in main.py
limiter = Limiter(key_func=get_remote_address)


@router.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=settings.app_version)


@router.post("/api/gemini-email", response_model=GenerateEmailResponse)
@limiter.limit("20/minute")  # More restrictive - prevents API cost abuse
async def generate_email(
    request: Request,
    generate_request: GenerateEmailRequest,
):
    """
    Generate a raw email draft for the compose window.

    Returns the model output unformatted; the composer runs the draft
    formatter over it. Rate limited to 20 requests/minute.
    """
    if not settings.openai_api_key:
        return JSONResponse(status_code=400, content={"error": "Missing OPENAI_API_KEY"})

    recipient = RecipientContext.from_dict(generate_request.recipient)
    if not recipient.email and generate_request.to:
        recipient.email = generate_request.to

    logger.info(
        f"Generating {generate_request.mode} email for "
        f"{redact_sensitive_for_logging(recipient.email) or 'unknown recipient'}"
    )

    try:
        output = draft_generator.generate(
            prompt=generate_request.prompt,
            recipient=recipient,
            mode=generate_request.mode,
        )
    except Exception as e:
        logger.exception("Failed to generate email")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate email", "message": str(e)},
        )

    return GenerateEmailResponse(ok=True, output=output)


@router.post("/api/compose/format", response_model=FormatDraftResponse)
@limiter.limit("60/minute")
async def format_draft(
    request: Request,
    format_request: FormatDraftRequest,
) -> FormatDraftResponse:
    """Run the draft formatter over a raw model completion."""
    recipient = RecipientContext.from_dict(format_request.recipient)
    try:
        email = draft_formatter.format(
            format_request.output,
            recipient,
            format_request.mode,
            prompt=format_request.prompt,
            subject_seed=format_request.subject_seed,
            resolve_tokens=format_request.resolve_tokens,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return FormatDraftResponse(subject=email.subject, html=email.html)


@router.get("/api/recipients/search", response_model=RecipientSearchResponse)
@limiter.limit("120/minute")
async def search_recipients(
    request: Request,
    q: str = Query(default="", max_length=MAX_QUERY_LENGTH),
    limit: int | None = Query(default=None, ge=1, le=50),
) -> RecipientSearchResponse:
    """Autocomplete contacts by name, email, title or company fragment."""
    try:
        results = recipient_resolver.search(q, limit=limit)
    except CrmStoreError as e:
        logger.error(f"Recipient search failed: {e}")
        raise HTTPException(status_code=503, detail="CRM data source unavailable")

    return RecipientSearchResponse(query=q, results=[context.to_dict() for context in results])


@router.get("/api/recipients/resolve")
@limiter.limit("120/minute")
async def resolve_recipient(
    request: Request,
    email: str = Query(..., max_length=MAX_EMAIL_ADDRESS_LENGTH),
) -> dict:
    """Resolve an exact email address to a recipient context."""
    try:
        context = recipient_resolver.resolve_by_exact_email(email)
    except CrmStoreError as e:
        logger.error(f"Recipient lookup failed: {e}")
        raise HTTPException(status_code=503, detail="CRM data source unavailable")

    if context is None:
        raise HTTPException(status_code=404, detail="No contact with that email")
    return context.to_dict()
