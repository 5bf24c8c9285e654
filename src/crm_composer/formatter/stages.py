"""
Cleanup stages for model-drafted emails.

Each stage is a pure function over text or paragraph lists so it can be
exercised on its own; ``DraftFormatter`` runs them in order.
"""

import logging
import re

from bs4 import BeautifulSoup

from crm_composer.formatter.cta import default_cta, pick_cta, shorten_cta
from crm_composer.formatter.dates import month_year, redact_dates
from crm_composer.recipients.models import EnergyInfo, RecipientContext, normalize_rate

logger = logging.getLogger(__name__)

SUBJECT_LINE = re.compile(r"^Subject:\s*(.+)$", re.IGNORECASE | re.MULTILINE)
MAX_IMPLICIT_SUBJECT_LENGTH = 120

HTML_TAG = re.compile(r"</?[a-zA-Z][^>]*>")
BLOCK_TAGS = [
    "p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol",
    "table", "tr", "blockquote", "section", "article", "header", "footer",
]
CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*$", re.MULTILINE)

GREETING_LINE = re.compile(
    r"^(?:hi|hello|hey|dear)(?:\s+[\w.'’-]+){0,4}\s*[,!.:-]?\s*$",
    re.IGNORECASE,
)
# "Hi Dana, rates moved..." keeps the text after the greeting
GREETING_PREFIX = re.compile(
    r"^(?:hi|hello|hey|dear)(?:\s+[\w.'’-]+){1,4}\s*,\s*(?=\S)",
    re.IGNORECASE,
)
CLOSING_LINE = re.compile(
    r"^(?i:(?:best|kind|warm|warmest)\s+regards|regards|sincerely|yours\s+truly|"
    r"thanks|thank\s+you|many\s+thanks|cheers|all\s+the\s+best|best)"
    r"[\s,.!]*(?:[A-Z][\w.'-]*\s*){0,3}$"
)
PLACEHOLDER = re.compile(r"\[(?:your|sender)?\s*name\]", re.IGNORECASE)

BULLET_LINE = re.compile(r"^(?:[-*•]|\d+[.)])\s+")
SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9\"'(\[$])")

MAX_PARAGRAPHS = 2
MAX_SENTENCES = 2
MAX_WORDS = 100


# ----------------------------------------------------------------------
# Subject and plain text
# ----------------------------------------------------------------------


def extract_subject(raw_output: str) -> tuple[str, str]:
    """
    Split a model completion into subject and body.

    An explicit ``Subject:`` line wins. Otherwise a short first line
    followed by more content is taken as the subject.

    Returns:
        Tuple of (subject, body). Subject dates are reduced to month/year.
    """
    text = (raw_output or "").replace("\r\n", "\n").replace("\r", "\n").strip()
    text = CODE_FENCE.sub("", text).strip()

    match = SUBJECT_LINE.search(text)
    if match:
        subject = _clean_subject(match.group(1))
        body = (text[: match.start()] + text[match.end():]).strip()
        return redact_dates(subject), body

    lines = text.split("\n")
    first = lines[0].strip() if lines else ""
    rest = "\n".join(lines[1:]).strip()
    if first and rest and len(first) <= MAX_IMPLICIT_SUBJECT_LENGTH and not first.startswith("<"):
        return redact_dates(_clean_subject(first)), rest

    return "", text


def _clean_subject(subject: str) -> str:
    subject = HTML_TAG.sub("", subject)
    subject = subject.replace("**", "").strip()
    return subject.strip("\"'").strip()


def normalize_to_plain_text(body: str) -> str:
    """Strip HTML (block tags become paragraph breaks) and Markdown emphasis."""
    text = CODE_FENCE.sub("", body or "")

    if HTML_TAG.search(text):
        text = _html_to_text(text)

    text = re.sub(r"\*\*(.+?)\*\*", r"\1", text)
    text = re.sub(r"[ \t]+\n", "\n", text)
    return text.strip()


def _html_to_text(markup: str) -> str:
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for item in soup.find_all("li"):
        item.insert_before("\n- ")
        item.insert_after("\n")
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_before("\n\n")
        block.insert_after("\n\n")

    return soup.get_text().replace("\xa0", " ")


# ----------------------------------------------------------------------
# Greeting / closing
# ----------------------------------------------------------------------


def is_closing_line(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and (CLOSING_LINE.match(stripped) is not None or PLACEHOLDER.search(stripped) is not None)


def strip_greetings_and_closings(text: str) -> str:
    """
    Drop every greeting line and cut the body at the first closing.

    The formatter adds its own greeting and closing, so whatever the model
    wrote is discarded. A greeting that shares its line with the first
    sentence (``Hi Dana, rates moved...``) is cut off and the sentence kept.
    """
    kept = []
    for line in (text or "").split("\n"):
        if is_closing_line(line):
            logger.debug(f"Cutting draft at closing line: {line.strip()[:40]}")
            break
        if GREETING_LINE.match(line.strip()):
            continue
        prefix = GREETING_PREFIX.match(line.strip())
        if prefix:
            rest = line.strip()[prefix.end():]
            line = rest[:1].upper() + rest[1:]
        kept.append(line)
    return "\n".join(kept).strip()


# ----------------------------------------------------------------------
# Paragraphs and sentences
# ----------------------------------------------------------------------


def is_bullet_paragraph(paragraph: str) -> bool:
    return any(BULLET_LINE.match(line.strip()) for line in paragraph.split("\n"))


def normalize_paragraphs(text: str) -> list[str]:
    """
    Split into paragraphs, join soft-wrapped lines and drop duplicates.

    Bullet-list paragraphs keep their line structure. Exact dates are
    reduced to month/year.
    """
    paragraphs = []
    seen = set()

    for block in re.split(r"\n\s*\n", (text or "").strip()):
        lines = [line.strip() for line in block.split("\n") if line.strip()]
        if not lines:
            continue

        if any(BULLET_LINE.match(line) for line in lines):
            paragraph = "\n".join(lines)
        else:
            paragraph = re.sub(r"\s{2,}", " ", " ".join(lines))
        paragraph = redact_dates(paragraph)

        normalized = " ".join(paragraph.lower().split())
        if normalized in seen:
            logger.debug(f"Removing duplicate paragraph: {paragraph[:50]}...")
            continue
        seen.add(normalized)
        paragraphs.append(paragraph)

    return paragraphs


def split_sentences(paragraph: str) -> list[str]:
    return [sentence.strip() for sentence in SENTENCE_BREAK.split(paragraph.strip()) if sentence.strip()]


def _units(paragraph: str) -> list[str]:
    """Trimmable units: bullet lines for lists, sentences otherwise."""
    if is_bullet_paragraph(paragraph):
        return [line for line in paragraph.split("\n") if line.strip()]
    return split_sentences(paragraph)


def _join_units(paragraph: str, units: list[str]) -> str:
    return ("\n" if is_bullet_paragraph(paragraph) else " ").join(units)


def word_count(*texts: str) -> int:
    return sum(len(text.split()) for text in texts if text)


# ----------------------------------------------------------------------
# Account facts
# ----------------------------------------------------------------------


def format_rate(rate: str) -> str:
    """``.062`` / ``$0.062/kWh`` -> ``$0.062/kWh``."""
    value = normalize_rate(rate).lstrip("$").strip()
    value = re.sub(r"\s*/\s*kwh$", "", value, flags=re.IGNORECASE)
    return f"${value}/kWh" if value else ""


def recipient_energy(recipient: RecipientContext) -> EnergyInfo:
    if recipient.energy.has_facts:
        return recipient.energy
    if recipient.account is not None:
        return recipient.account.energy
    return recipient.energy


def build_fact_sentence(energy: EnergyInfo) -> str:
    """
    Standalone sentence stating the account's known energy facts.

    Returns:
        e.g. ``Per your account: Supplier X | Current rate $0.062/kWh |
        Contract end March 2026.``, or an empty string without facts.
    """
    parts = []
    if energy.supplier:
        parts.append(f"Supplier {energy.supplier}")
    if energy.current_rate:
        parts.append(f"Current rate {format_rate(energy.current_rate)}")
    if energy.contract_end:
        parts.append(f"Contract end {month_year(energy.contract_end)}")
    if not parts:
        return ""
    return "Per your account: " + " | ".join(parts) + "."


# ----------------------------------------------------------------------
# Brevity
# ----------------------------------------------------------------------


def _same_sentence(a: str, b: str) -> bool:
    return " ".join(a.lower().split()) == " ".join(b.lower().split())


def enforce_brevity(
    paragraphs: list[str],
    fact_sentence: str = "",
    prompt: str = "",
) -> tuple[list[str], str]:
    """
    Cap the body and pull out a single call to action.

    The fact sentence (when given) becomes the first paragraph and counts
    toward the paragraph cap but is never trimmed. Non-bullet paragraphs
    keep at most two sentences. When the body plus CTA exceeds the word
    budget, trailing sentences of the last paragraph go first, then the
    CTA is shortened. If single long sentences still overflow, trailing
    paragraphs are dropped and the last one is cut at a word boundary.

    Returns:
        Tuple of (content paragraphs, CTA sentence).
    """
    sentences = [
        sentence
        for paragraph in paragraphs
        if not is_bullet_paragraph(paragraph)
        for sentence in split_sentences(paragraph)
    ]
    cta = pick_cta(sentences)

    body = []
    for paragraph in paragraphs:
        if cta and not is_bullet_paragraph(paragraph):
            remaining = [s for s in split_sentences(paragraph) if not _same_sentence(s, cta)]
            if not remaining:
                continue
            paragraph = " ".join(remaining)
        body.append(paragraph)

    if not cta:
        cta = default_cta(prompt)
        logger.debug("No CTA in draft, using default")

    limit = MAX_PARAGRAPHS - (1 if fact_sentence else 0)
    body = [
        paragraph if is_bullet_paragraph(paragraph) else " ".join(split_sentences(paragraph)[:MAX_SENTENCES])
        for paragraph in body[:limit]
    ]

    content = ([fact_sentence] if fact_sentence else []) + body

    while word_count(*content, cta) > MAX_WORDS and body:
        last = body[-1]
        units = _units(last)
        if len(units) <= 1:
            break
        body[-1] = _join_units(last, units[:-1])
        content = ([fact_sentence] if fact_sentence else []) + body

    if word_count(*content, cta) > MAX_WORDS:
        cta = shorten_cta(cta)

    # Long single sentences: drop trailing paragraphs, then cut words
    while word_count(*content, cta) > MAX_WORDS and len(body) > 1:
        body.pop()
        content = ([fact_sentence] if fact_sentence else []) + body
    if word_count(*content, cta) > MAX_WORDS and body:
        budget = MAX_WORDS - word_count(*content[:-1], cta)
        body[-1] = _cut_words(body[-1], budget)
        body = [paragraph for paragraph in body if paragraph]
        content = ([fact_sentence] if fact_sentence else []) + body
        logger.debug(f"Cut body to {budget} word(s) to fit the word budget")

    return content, cta


def _cut_words(paragraph: str, budget: int) -> str:
    """First ``budget`` words of a paragraph, ended as a sentence."""
    words = paragraph.split()
    if budget <= 0:
        return ""
    if len(words) <= budget:
        return paragraph
    cut = " ".join(words[:budget]).rstrip(",;:-")
    return cut if cut.endswith((".", "!", "?")) else cut + "."


# ----------------------------------------------------------------------
# Greeting
# ----------------------------------------------------------------------


def synthesize_greeting(recipient: RecipientContext) -> str:
    first_name = recipient.display_first_name
    if first_name:
        return f"Hi {first_name},"
    company = recipient.company or (recipient.account.name if recipient.account else "")
    if company:
        return f"Hi {company} team,"
    return "Hi,"
