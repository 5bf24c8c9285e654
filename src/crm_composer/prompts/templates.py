"""Prompt templates for email draft generation."""

import re

from crm_composer.formatter.dates import month_year
from crm_composer.recipients.models import RecipientContext
from crm_composer.security import sanitize_for_prompt
from crm_composer.security.sanitization import (
    MAX_NOTES_LENGTH,
    MAX_PROMPT_LENGTH,
    MAX_TRANSCRIPT_LENGTH,
)

# =============================================================================
# Identity
# =============================================================================

IDENTITY_PROMPT = """You are {brand_name}' email assistant. Create a {length_style} professional email.

WHO WE ARE: {brand_name} helps companies save on electricity and natural gas by competitively sourcing from 100+ suppliers, negotiating contracts, and managing renewals."""


# =============================================================================
# Email Type Instructions
# =============================================================================

HEALTH_CHECK_INSTRUCTIONS = """EMAIL TYPE: Energy Health Check Invitation
STRUCTURE:
- Greeting + warm intro (reference day/season)
- Explain what the Energy Health Check is (1-2 sentences): review of current bill, supplier, rate, contract end, usage estimate and projected savings
- Offer 2 specific time slots
- ONE clear CTA question"""

INVOICE_INSTRUCTIONS = """EMAIL TYPE: Invoice Request Follow-up
STRUCTURE:
- Greeting + warm reminder
- Explain why we need the invoice (3 bullet points):
  - ESID(s)
  - Contract End Date
  - Service Address
- ONE time-bounded CTA (today or end of day)"""

COLD_EMAIL_INSTRUCTIONS = """EMAIL TYPE: Cold Email (Never Spoke Before)
STRUCTURE:
- Greeting + warm intro (reference day/season)
- Paragraph 1: Pattern-interrupt hook with a specific pain point or opportunity
- Paragraph 2: "I recently spoke with [colleague name] at {company} and wanted to connect with you as well" + value prop
- ONE clear CTA"""

GENERAL_INSTRUCTIONS = """EMAIL TYPE: {email_type}
STRUCTURE:
- Greeting + personalized intro (reference day/season, call transcript if available)
- 1-2 short paragraphs (1-2 sentences each)
- Include relevant energy details naturally if available
- ONE clear CTA"""


# =============================================================================
# Quality Rules and Output Format
# =============================================================================

QUALITY_RULES = """QUALITY REQUIREMENTS:
- Length: 70-110 words total
- Greeting: Use "{greeting_name}," then add season/day awareness
- NO duplicate phrases or repeated information
- ONE call-to-action only
- Reference energy data naturally if provided{energy_summary}
- Use transcript insights if available
- Subject line: Under 50 chars, include {subject_hint}, be specific
- Dates: Month YYYY only (never exact day)
- Closing: "Best regards," then sender name on next line
- NO placeholders like {{{{name}}}} - use actual names"""

OUTPUT_FORMAT = """OUTPUT FORMAT:
Subject: [Your subject line here]

[{body_hint}]"""


HEALTH_CHECK_REQUEST = re.compile(r"energy.*health.*check", re.IGNORECASE)
INVOICE_REQUEST = re.compile(r"invoice.*request|send.*invoice", re.IGNORECASE)
COLD_EMAIL_REQUEST = re.compile(r"cold.*email|could.*not.*reach", re.IGNORECASE)


def email_type_instructions(prompt: str, company: str) -> str:
    """Pick the structure instructions matching the user's request."""
    if HEALTH_CHECK_REQUEST.search(prompt):
        return HEALTH_CHECK_INSTRUCTIONS
    if INVOICE_REQUEST.search(prompt):
        return INVOICE_INSTRUCTIONS
    if COLD_EMAIL_REQUEST.search(prompt):
        return COLD_EMAIL_INSTRUCTIONS.format(company=company or "your company")

    lowered = prompt.lower()
    if "follow" in lowered:
        email_type = "Follow-up"
    elif "warm" in lowered:
        email_type = "Warm Intro"
    else:
        email_type = "General Outreach"
    return GENERAL_INSTRUCTIONS.format(email_type=email_type)


def format_recipient_for_prompt(recipient: RecipientContext) -> str:
    """
    Format recipient facts for inclusion in the prompt.

    Free-text notes and call transcripts are sanitized and truncated.
    """
    energy = recipient.energy
    if not energy.has_facts and recipient.account is not None:
        energy = recipient.account.energy

    notes = "\n".join(
        part for part in (recipient.notes, recipient.account.notes if recipient.account else "") if part
    )
    transcript = sanitize_for_prompt(recipient.transcript, max_length=MAX_TRANSCRIPT_LENGTH)
    notes = sanitize_for_prompt(notes, max_length=MAX_NOTES_LENGTH)

    lines = [
        "RECIPIENT:",
        f"- Name: {recipient.display_first_name or 'there'} ({recipient.company or 'Unknown Company'})",
        f"- Role: {recipient.title or 'Unknown'}",
        f"- Industry: {recipient.industry or 'Unknown'}",
    ]
    if energy.supplier:
        lines.append(f"- Current Supplier: {energy.supplier}")
    if energy.current_rate:
        lines.append(f"- Current Rate: {energy.current_rate}/kWh")
    if energy.contract_end:
        lines.append(f"- Contract Ends: {month_year(energy.contract_end)}")
    if transcript:
        lines.append(f"- Recent Call Notes: {transcript}")
    if notes:
        lines.append(f"- Additional Context: {notes}")
    return "\n".join(lines)


def build_system_prompt(
    prompt: str,
    recipient: RecipientContext,
    mode: str = "standard",
    brand_name: str = "Power Choosers",
) -> str:
    """
    Build the full generation prompt for one compose request.

    Args:
        prompt: What the user asked for.
        recipient: Resolved recipient context.
        mode: "standard" or "html".
        brand_name: Company the sender writes for.

    Returns:
        Prompt text for the LLM.
    """
    request = sanitize_for_prompt(prompt or "", max_length=MAX_PROMPT_LENGTH) or "Draft outreach email"

    energy = recipient.energy
    if not energy.has_facts and recipient.account is not None:
        energy = recipient.account.energy
    energy_parts = []
    if energy.supplier:
        energy_parts.append(f"supplier {energy.supplier}")
    if energy.current_rate:
        energy_parts.append(f"rate {energy.current_rate}")
    if energy.contract_end:
        energy_parts.append(f"contract ends {month_year(energy.contract_end)}")

    sections = [
        IDENTITY_PROMPT.format(
            brand_name=brand_name,
            length_style="structured" if mode == "html" else "concise",
        ),
        format_recipient_for_prompt(recipient),
        email_type_instructions(request, recipient.company),
        QUALITY_RULES.format(
            greeting_name=recipient.display_first_name or "there",
            energy_summary=f" ({', '.join(energy_parts)})" if energy_parts else "",
            subject_hint="recipient name" if recipient.display_first_name else "company name",
        ),
        OUTPUT_FORMAT.format(
            body_hint=(
                "Body content as plain text paragraphs - it will be styled afterwards"
                if mode == "html"
                else "Body as plain text paragraphs"
            )
        ),
        f"USER REQUEST: {request}",
    ]
    return "\n\n".join(sections)
