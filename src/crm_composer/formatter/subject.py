"""Subject line cleanup: replace generic model subjects with personalized ones."""

import logging
import random
import re

from crm_composer.formatter.dates import month_year, redact_dates
from crm_composer.recipients.models import RecipientContext

logger = logging.getLogger(__name__)

GENERIC_SUBJECT = re.compile(r"^(?:(?:hi|hello|hey|dear)\b|re:|fwd?:)", re.IGNORECASE)
MIN_SUBJECT_LENGTH = 8

# (template, fields it needs)
SUBJECT_TEMPLATES = [
    ("{first_name}, quick question about {company}'s energy contract", ("first_name", "company")),
    ("{company}: {supplier} contract ending {contract_month}", ("company", "supplier", "contract_month")),
    ("{first_name}, your {supplier} rate before {contract_month}", ("first_name", "supplier", "contract_month")),
    ("{first_name}, planning ahead of {contract_month}", ("first_name", "contract_month")),
    ("Energy costs at {company}", ("company",)),
    ("{company} and the {supplier} renewal", ("company", "supplier")),
]
NAME_ONLY_SUBJECT = "{first_name}, quick question"
FALLBACK_SUBJECT = "Quick question about your energy contract"


def is_generic_subject(subject: str) -> bool:
    """Empty, very short, or starting with a greeting / reply marker."""
    text = (subject or "").strip()
    if len(text) < MIN_SUBJECT_LENGTH:
        return True
    return GENERIC_SUBJECT.match(text) is not None


def subject_fields(recipient: RecipientContext) -> dict[str, str]:
    energy = recipient.energy
    if not energy.has_facts and recipient.account is not None:
        energy = recipient.account.energy
    return {
        "first_name": recipient.display_first_name,
        "company": recipient.company or (recipient.account.name if recipient.account else ""),
        "supplier": energy.supplier,
        "contract_month": month_year(energy.contract_end) if energy.contract_end else "",
    }


def improve_subject(subject: str, recipient: RecipientContext, seed=None) -> str:
    """
    Keep a specific subject; replace a generic one from the templates.

    The variant is picked with ``random.Random(seed)`` among templates whose
    fields are all known, so a fixed seed gives a stable subject.
    """
    if not is_generic_subject(subject):
        return redact_dates(subject.strip())

    values = subject_fields(recipient)
    eligible = [
        template
        for template, needed in SUBJECT_TEMPLATES
        if all(values.get(name) for name in needed)
    ]

    if eligible:
        chosen = random.Random(seed).choice(eligible)
    elif values["first_name"]:
        chosen = NAME_ONLY_SUBJECT
    else:
        chosen = FALLBACK_SUBJECT

    improved = chosen.format(**values)
    logger.debug(f"Replaced generic subject with template ({len(eligible)} eligible)")
    return improved
