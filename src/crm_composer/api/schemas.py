"""Pydantic schemas for API request/response models."""

from typing import Any, Literal

from pydantic import BaseModel, Field

# =============================================================================
# INPUT SIZE LIMITS (Security)
# =============================================================================

MAX_PROMPT_LENGTH = 2000
MAX_OUTPUT_LENGTH = 50000
MAX_EMAIL_ADDRESS_LENGTH = 320  # RFC 5321 limit
MAX_QUERY_LENGTH = 200


class GenerateEmailRequest(BaseModel):
    """Request body for the generation endpoint."""

    prompt: str = Field(
        default="",
        description="What the user wants the email to do",
        max_length=MAX_PROMPT_LENGTH,
    )
    mode: Literal["standard", "html"] = Field(default="standard")
    recipient: dict[str, Any] | None = Field(
        default=None,
        description="Recipient context (camelCase wire form)",
    )
    to: str = Field(default="", max_length=MAX_EMAIL_ADDRESS_LENGTH)
    style: str = Field(default="auto", max_length=50)
    subject_style: str = Field(default="auto", alias="subjectStyle", max_length=50)
    subject_seed: str | int | None = Field(default="", alias="subjectSeed")

    class Config:
        populate_by_name = True


class GenerateEmailResponse(BaseModel):
    """Successful generation: the raw model output."""

    ok: bool = Field(default=True)
    output: str = Field(..., description="Raw model completion")


class FormatDraftRequest(BaseModel):
    """Request body for formatting a raw model completion."""

    output: str = Field(..., description="Raw model completion", max_length=MAX_OUTPUT_LENGTH)
    recipient: dict[str, Any] | None = Field(default=None)
    mode: Literal["standard", "html"] = Field(default="standard")
    prompt: str = Field(default="", max_length=MAX_PROMPT_LENGTH)
    subject_seed: str | int | None = Field(default=None, alias="subjectSeed")
    resolve_tokens: bool = Field(
        default=False,
        alias="resolveTokens",
        description="Replace {{scope.key}} tokens with literal values",
    )

    class Config:
        populate_by_name = True


class FormatDraftResponse(BaseModel):
    """Formatted draft."""

    subject: str
    html: str


class RecipientSearchResponse(BaseModel):
    """Autocomplete results."""

    query: str
    results: list[dict[str, Any]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str
