"""Date handling for generated emails: exact days are never shown."""

import re

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

_MONTH_NAMES = "|".join(
    MONTHS + ["Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sept", "Sep", "Oct", "Nov", "Dec"]
)

# 2025-03-14, 2025/03/14
ISO_DATE = re.compile(r"\b(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:T[\d:.]+Z?)?\b")
# 03/14/2025, 3-14-25
US_DATE = re.compile(r"\b(\d{1,2})[/-](\d{1,2})[/-](\d{4}|\d{2})\b")
# March 14, 2025 / Mar 14th 2025
NAMED_DATE = re.compile(
    rf"\b({_MONTH_NAMES})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?,?\s+(\d{{4}})\b",
    re.IGNORECASE,
)
# 14 March 2025
DAY_FIRST_DATE = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+({_MONTH_NAMES})\.?,?\s+(\d{{4}})\b",
    re.IGNORECASE,
)
# 2025-03 (no day)
ISO_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")


def _month_index(name: str) -> int | None:
    lowered = name.lower()[:3]
    for index, month in enumerate(MONTHS):
        if month.lower().startswith(lowered):
            return index + 1
    return None


def _format(year: int, month: int) -> str | None:
    if not 1 <= month <= 12:
        return None
    if year < 100:
        year += 2000
    return f"{MONTHS[month - 1]} {year}"


def month_year(value: str) -> str:
    """
    Reduce a date string to "Month YYYY".

    Unrecognized values are returned unchanged (stripped).
    """
    text = (value or "").strip()
    if not text:
        return ""

    match = ISO_DATE.fullmatch(text) or ISO_DATE.match(text)
    if match:
        return _format(int(match.group(1)), int(match.group(2))) or text

    match = ISO_MONTH.match(text)
    if match:
        return _format(int(match.group(1)), int(match.group(2))) or text

    match = US_DATE.fullmatch(text)
    if match:
        return _format(int(match.group(3)), int(match.group(1))) or text

    match = NAMED_DATE.fullmatch(text)
    if match:
        return _format(int(match.group(3)), _month_index(match.group(1))) or text

    match = DAY_FIRST_DATE.fullmatch(text)
    if match:
        return _format(int(match.group(3)), _month_index(match.group(2))) or text

    return text


def redact_dates(text: str) -> str:
    """Replace every exact calendar date in ``text`` with its month and year."""
    if not text:
        return text

    def iso(match: re.Match) -> str:
        return _format(int(match.group(1)), int(match.group(2))) or match.group(0)

    def us(match: re.Match) -> str:
        return _format(int(match.group(3)), int(match.group(1))) or match.group(0)

    def named(match: re.Match) -> str:
        return _format(int(match.group(3)), _month_index(match.group(1))) or match.group(0)

    def day_first(match: re.Match) -> str:
        return _format(int(match.group(3)), _month_index(match.group(2))) or match.group(0)

    text = ISO_DATE.sub(iso, text)
    text = US_DATE.sub(us, text)
    text = NAMED_DATE.sub(named, text)
    return DAY_FIRST_DATE.sub(day_first, text)
