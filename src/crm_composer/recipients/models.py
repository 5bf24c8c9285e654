"""
Recipient context built per compose session.

A RecipientContext bundles a contact with its best-matching account so the
draft formatter can personalize the greeting and inject account facts.
"""

import re
from dataclasses import dataclass, field
from typing import Any

_BARE_DECIMAL = re.compile(r"^([$]?)\.(\d)")


def normalize_rate(value: Any) -> str:
    """Normalize a rate string to carry a leading zero (``.062`` -> ``0.062``)."""
    if value is None:
        return ""
    rate = str(value).strip()
    return _BARE_DECIMAL.sub(r"\g<1>0.\2", rate)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _first(record: dict, *keys: str) -> str:
    """First non-empty value among record aliases."""
    for key in keys:
        value = _text(record.get(key))
        if value:
            return value
    return ""


@dataclass
class EnergyInfo:
    """Energy contract facts sourced from a matched account."""

    usage: str = ""
    supplier: str = ""
    current_rate: str = ""
    contract_end: str = ""

    def __post_init__(self) -> None:
        self.current_rate = normalize_rate(self.current_rate)

    @property
    def has_facts(self) -> bool:
        return bool(self.supplier or self.current_rate or self.contract_end)

    def to_dict(self) -> dict[str, str]:
        return {
            "usage": self.usage,
            "supplier": self.supplier,
            "currentRate": self.current_rate,
            "contractEnd": self.contract_end,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "EnergyInfo":
        data = data or {}
        return cls(
            usage=_first(data, "usage", "annualUsage", "annual_usage"),
            supplier=_first(data, "supplier", "electricitySupplier"),
            current_rate=_first(data, "currentRate", "current_rate"),
            contract_end=_first(data, "contractEnd", "contract_end", "contractEndDate"),
        )


@dataclass
class AccountInfo:
    """Subset of an account record used for personalization."""

    id: str = ""
    name: str = ""
    industry: str = ""
    domain: str = ""
    city: str = ""
    state: str = ""
    notes: str = ""
    energy: EnergyInfo = field(default_factory=EnergyInfo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "industry": self.industry,
            "domain": self.domain,
            "city": self.city,
            "state": self.state,
            "notes": self.notes,
            "energy": self.energy.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AccountInfo":
        energy = data.get("energy")
        return cls(
            id=_first(data, "id"),
            name=_first(data, "name", "accountName", "companyName"),
            industry=_first(data, "industry"),
            domain=_first(data, "domain", "website"),
            city=_first(data, "city"),
            state=_first(data, "state"),
            notes=_first(data, "notes"),
            energy=EnergyInfo.from_dict(energy if isinstance(energy, dict) else data),
        )


@dataclass
class RecipientContext:
    """Resolved contact + account facts for one compose session."""

    id: str = ""
    name: str = ""
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    email: str = ""
    company: str = ""
    title: str = ""
    industry: str = ""
    energy: EnergyInfo = field(default_factory=EnergyInfo)
    account: AccountInfo | None = None
    notes: str = ""
    transcript: str = ""

    @property
    def display_first_name(self) -> str:
        """Explicit first name, else the first word of the full name."""
        if self.first_name:
            return self.first_name
        for candidate in (self.full_name, self.name):
            if candidate and "@" not in candidate:
                return candidate.split()[0]
        return ""

    @property
    def display_name(self) -> str:
        return (
            self.full_name
            or self.name
            or f"{self.first_name} {self.last_name}".strip()
            or self.email
        )

    def token_values(self, scope: str) -> dict[str, str]:
        """Values for ``{{contact.*}}`` or ``{{account.*}}`` tokens."""
        if scope == "contact":
            return {
                "first_name": self.display_first_name,
                "last_name": self.last_name,
                "full_name": self.display_name,
                "name": self.display_name,
                "email": self.email,
                "title": self.title,
                "company": self.company,
                "industry": self.industry,
            }
        if scope == "account":
            account = self.account or AccountInfo(name=self.company, industry=self.industry)
            return {
                "name": account.name or self.company,
                "industry": account.industry or self.industry,
                "website": account.domain,
                "domain": account.domain,
                "city": account.city,
                "state": account.state,
                "supplier": self.energy.supplier,
                "current_rate": self.energy.current_rate,
                "contract_end": self.energy.contract_end,
            }
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the wire shape sent to the generation endpoint."""
        return {
            "id": self.id,
            "name": self.name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "email": self.email,
            "company": self.company,
            "title": self.title,
            "industry": self.industry,
            "energy": self.energy.to_dict(),
            "account": self.account.to_dict() if self.account else None,
            "notes": self.notes,
            "transcript": self.transcript,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "RecipientContext":
        """Create from a wire dict; accepts camelCase and snake_case keys."""
        data = data or {}
        account_data = data.get("account")
        return cls(
            id=_first(data, "id"),
            name=_first(data, "name"),
            first_name=_first(data, "firstName", "first_name"),
            last_name=_first(data, "lastName", "last_name"),
            full_name=_first(data, "fullName", "full_name"),
            email=_first(data, "email"),
            company=_first(data, "company", "companyName", "accountName"),
            title=_first(data, "title", "job", "role"),
            industry=_first(data, "industry"),
            energy=EnergyInfo.from_dict(data.get("energy")),
            account=AccountInfo.from_dict(account_data) if isinstance(account_data, dict) else None,
            notes=_first(data, "notes"),
            transcript=_first(data, "transcript", "callTranscript", "latestTranscript"),
        )

    @classmethod
    def from_records(cls, contact: dict, account: dict | None = None) -> "RecipientContext":
        """Join a contact document with its matched account document."""
        first_name = _first(contact, "firstName", "first_name")
        last_name = _first(contact, "lastName", "last_name")
        full_name = _first(contact, "fullName", "full_name", "name") or f"{first_name} {last_name}".strip()
        account_info = AccountInfo.from_dict(account) if account else None

        return cls(
            id=_first(contact, "id"),
            name=_first(contact, "name") or full_name,
            first_name=first_name,
            last_name=last_name,
            full_name=full_name,
            email=_first(contact, "email"),
            company=_first(contact, "companyName", "company", "accountName")
            or (account_info.name if account_info else ""),
            title=_first(contact, "title", "jobTitle"),
            industry=_first(contact, "industry") or (account_info.industry if account_info else ""),
            energy=account_info.energy if account_info else EnergyInfo(),
            account=account_info,
            notes=_first(contact, "notes"),
            transcript=_first(contact, "transcript", "callTranscript", "latestTranscript"),
        )
