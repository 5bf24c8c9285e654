"""Recipient resolution: contacts, accounts and the recipient context."""

from crm_composer.recipients.models import (
    AccountInfo,
    EnergyInfo,
    RecipientContext,
    normalize_rate,
)
from crm_composer.recipients.resolver import (
    RecipientResolver,
    company_names_match,
    normalize_company_name,
    recipient_resolver,
)
from crm_composer.recipients.store import CrmStore, CrmStoreError, crm_store

__all__ = [
    "AccountInfo",
    "EnergyInfo",
    "RecipientContext",
    "normalize_rate",
    "RecipientResolver",
    "company_names_match",
    "normalize_company_name",
    "recipient_resolver",
    "CrmStore",
    "CrmStoreError",
    "crm_store",
]
