"""
Recipient resolution: typed fragment or exact email -> RecipientContext.

Contacts are matched client-side against a full scan of the contact
collection, then joined with the best-matching account.
"""

import logging
import re

from crm_composer.config import settings
from crm_composer.recipients.models import RecipientContext
from crm_composer.recipients.store import CrmStore, crm_store
from crm_composer.security.sanitization import redact_sensitive_for_logging

logger = logging.getLogger(__name__)

# Legal suffixes dropped before comparing company names
LEGAL_SUFFIX_PATTERN = re.compile(
    r"(\s+(inc|llc|l\.l\.c|corp|corporation|company|co|ltd|limited|lp|llp|plc))+$",
    re.IGNORECASE,
)

# Mailbox providers never identify a company
FREE_MAIL_DOMAINS = {
    "gmail.com",
    "googlemail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "live.com",
    "aol.com",
    "icloud.com",
    "me.com",
    "msn.com",
    "proton.me",
    "protonmail.com",
}

SEARCH_FIELDS = ("name", "email", "title", "company")


def _punctuation_folded(name: str) -> str:
    folded = re.sub(r"[^a-z0-9\s]", " ", (name or "").lower().replace(".", ""))
    return re.sub(r"\s+", " ", folded).strip()


def normalize_company_name(name: str) -> str:
    """
    Normalize a company name for comparison.

    Lowercases, drops punctuation and legal suffixes (Inc, LLC, Corp, ...),
    trims and collapses whitespace: ``"Acme Corp."`` -> ``"acme"``.
    """
    return LEGAL_SUFFIX_PATTERN.sub("", _punctuation_folded(name)).strip()


def company_names_match(left: str, right: str) -> bool:
    """
    Compare two company names after normalization.

    Names match when their normalized forms are equal, or when either
    normalized name is a substring of the other.
    """
    a = normalize_company_name(left)
    b = normalize_company_name(right)
    if not a or not b:
        return False
    return a in b or b in a


def extract_host(value: str) -> str:
    """Host part of a domain or website value, without scheme or ``www.``."""
    host = (value or "").strip().lower()
    host = re.sub(r"^[a-z]+://", "", host)
    host = host.split("/")[0].split("?")[0].split(":")[0]
    if host.startswith("www."):
        host = host[4:]
    return host


def email_domain(email: str) -> str:
    if "@" not in (email or ""):
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def _field(record: dict, *keys: str) -> str:
    for key in keys:
        value = record.get(key)
        if value:
            return str(value).strip()
    return ""


def contact_name(contact: dict) -> str:
    name = _field(contact, "name", "fullName", "full_name")
    if name:
        return name
    return f"{_field(contact, 'firstName', 'first_name')} {_field(contact, 'lastName', 'last_name')}".strip()


def contact_company(contact: dict) -> str:
    return _field(contact, "companyName", "company", "accountName")


def account_name(account: dict) -> str:
    return _field(account, "accountName", "name", "companyName")


class RecipientResolver:
    """Maps typed fragments or email addresses to recipient contexts."""

    def __init__(self, store: CrmStore | None = None, limit: int | None = None) -> None:
        """
        Initialize with an optional store for testing.

        Args:
            store: CRM document source. Defaults to the shared store.
            limit: Maximum number of search results.
        """
        self.store = store or crm_store
        self.limit = limit or settings.search_limit

    def search(self, query: str, limit: int | None = None) -> list[RecipientContext]:
        """
        Autocomplete contacts from a partially typed name or email.

        Case-insensitive substring match over name, email, title and
        company. Contacts where any field starts with the fragment rank
        before plain substring matches; ties are broken by name.

        Args:
            query: Typed fragment.
            limit: Maximum results (defaults to the resolver limit).

        Returns:
            Matching recipient contexts, possibly empty.
        """
        fragment = (query or "").strip().lower()
        if not fragment:
            return []

        ranked = []
        for contact in self.store.list_contacts():
            values = [self._search_value(contact, field).lower() for field in SEARCH_FIELDS]
            if not any(fragment in value for value in values):
                continue
            rank = 0 if any(value.startswith(fragment) for value in values) else 1
            ranked.append((rank, contact_name(contact).lower(), contact))

        ranked.sort(key=lambda item: (item[0], item[1]))
        top = [contact for _, _, contact in ranked[: limit or self.limit]]

        logger.debug(f"Recipient search matched {len(ranked)} contact(s), returning {len(top)}")

        if not top:
            return []
        accounts = self.store.list_accounts()
        return [self.build_context(contact, self.match_account(contact, accounts)) for contact in top]

    def resolve_by_exact_email(self, email: str) -> RecipientContext | None:
        """
        Resolve a recipient by exact (case-insensitive) email address.

        Args:
            email: Email address typed or selected in the To field.

        Returns:
            RecipientContext with its matched account, or None.
        """
        target = (email or "").strip().lower()
        if not target:
            return None

        for contact in self.store.list_contacts():
            if _field(contact, "email").lower() == target:
                account = self.match_account(contact, self.store.list_accounts())
                return self.build_context(contact, account)

        logger.info(f"No contact found for {redact_sensitive_for_logging(target)}")
        return None

    def match_account(self, contact: dict, accounts: list[dict]) -> dict | None:
        """
        Find the account a contact belongs to.

        Strategies, first match wins:
        1. Explicit contact -> account id reference.
        2. Normalized company name equality or containment.
        3. Email domain suffix against the account domain or website host.
        """
        account_id = _field(contact, "accountId", "account_id")
        if account_id:
            for account in accounts:
                if _field(account, "id") == account_id:
                    return account

        company = contact_company(contact)
        if company:
            for account in accounts:
                if company_names_match(company, account_name(account)):
                    return account

        domain = email_domain(_field(contact, "email"))
        if domain and domain not in FREE_MAIL_DOMAINS:
            for account in accounts:
                host = extract_host(_field(account, "domain", "website"))
                if host and (domain == host or domain.endswith("." + host)):
                    return account

        return None

    def build_context(self, contact: dict, account: dict | None) -> RecipientContext:
        """Join a contact and its account into a recipient context."""
        return RecipientContext.from_records(contact, account)

    def _search_value(self, contact: dict, field: str) -> str:
        if field == "name":
            return contact_name(contact)
        if field == "company":
            return contact_company(contact)
        if field == "title":
            return _field(contact, "title", "jobTitle")
        return _field(contact, field)


recipient_resolver = RecipientResolver()
