"""
Call-to-action detection.

A CTA is the single scheduling ask an email ends with. Detection is
keyword based: a sentence qualifies when it uses meeting vocabulary or
names a day/time, unless it is a "spoke with your colleague" line or a
sentence explaining what the service is. A sentence that is both
explanatory and schedule-related is treated as explanatory.
"""

import re

SCHEDULING_PATTERN = re.compile(
    r"\b(schedule|scheduling|meet|meeting|call|chat|calendar|availability|available|"
    r"book|connect|demo|walk\s+you\s+through|"
    r"(?:\d+|five|ten|fifteen|twenty|thirty)[- ]minutes?)\b",
    re.IGNORECASE,
)

TIME_SIGNAL_PATTERN = re.compile(
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday|tomorrow|"
    r"next\s+week|this\s+week|morning|afternoon|"
    r"\d{1,2}(?::\d{2})?\s*(?:am|pm))\b",
    re.IGNORECASE,
)

COLLEAGUE_PATTERN = re.compile(
    r"\b(?:spoke|speaking|talked|chatted)\s+(?:with|to)\b|\bcolleague\b",
    re.IGNORECASE,
)

EXPLANATORY_PATTERN = re.compile(
    r"\b(?:we\s+help|we\s+work\s+with|we've\s+helped|"
    r"our\s+(?:team|service|program|platform|process|analysis|review)\s+(?:is|helps|looks|compares|covers)|"
    r"(?:health\s+check|review|assessment|audit|analysis|program|service)\s+"
    r"(?:is|includes|covers|looks\s+at|compares)|"
    r"which\s+means|this\s+means|designed\s+to)\b",
    re.IGNORECASE,
)

HEALTH_CHECK_PROMPT = re.compile(r"health\s+check|energy\s+review|audit", re.IGNORECASE)
INVOICE_PROMPT = re.compile(r"invoice|bill\b|statement", re.IGNORECASE)

DEFAULT_CTAS = {
    "health_check": "Do you have 15 minutes on Tuesday or Thursday for a quick call?",
    "invoice": "Could you send over a recent invoice so I can review your current rate this week?",
    "general": "Would you be open to a quick call next week?",
}

MAX_CTA_WORDS = 10


def is_cta(sentence: str) -> bool:
    """Whether a sentence reads as a scheduling ask."""
    if not sentence:
        return False
    if not (SCHEDULING_PATTERN.search(sentence) or TIME_SIGNAL_PATTERN.search(sentence)):
        return False
    if COLLEAGUE_PATTERN.search(sentence):
        return False
    if EXPLANATORY_PATTERN.search(sentence):
        return False
    return True


def pick_cta(sentences: list[str]) -> str:
    """Choose one CTA among candidate sentences: the last question, else the last match."""
    candidates = [sentence for sentence in sentences if is_cta(sentence)]
    if not candidates:
        return ""
    questions = [sentence for sentence in candidates if sentence.rstrip().endswith("?")]
    return (questions or candidates)[-1]


def prompt_type(prompt: str) -> str:
    if HEALTH_CHECK_PROMPT.search(prompt or ""):
        return "health_check"
    if INVOICE_PROMPT.search(prompt or ""):
        return "invoice"
    return "general"


def default_cta(prompt: str = "") -> str:
    """Fallback CTA when the draft contains none."""
    return DEFAULT_CTAS[prompt_type(prompt)]


def shorten_cta(cta: str, max_words: int = MAX_CTA_WORDS) -> str:
    """Cut a CTA to ``max_words`` words, keeping its closing punctuation."""
    words = cta.split()
    if len(words) <= max_words:
        return cta
    terminal = "?" if cta.rstrip().endswith("?") else "."
    return " ".join(words[:max_words]).rstrip(",;:-.!?") + terminal
