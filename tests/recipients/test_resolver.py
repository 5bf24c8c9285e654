"""
Tests for recipient resolution.

Tests cover:
- Company name normalization and matching
- Autocomplete search ranking
- Exact email resolution
- Account matching strategies (id, company, email domain)
"""

import pytest

from crm_composer.recipients.resolver import (
    RecipientResolver,
    company_names_match,
    email_domain,
    extract_host,
    normalize_company_name,
)


@pytest.fixture
def resolver(mock_store) -> RecipientResolver:
    return RecipientResolver(store=mock_store, limit=8)


def by_id(records: list[dict], record_id: str) -> dict:
    return next(record for record in records if record["id"] == record_id)


class TestCompanyNames:
    """Tests for company name normalization."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Acme Corp.", "acme"),
            ("ACME CORP", "acme"),
            ("Widgets, Inc.", "widgets"),
            ("Smith & Co LLC", "smith"),
            ("  Gulf   Coast Logistics ", "gulf coast logistics"),
        ],
    )
    def test_normalize(self, name: str, expected: str) -> None:
        assert normalize_company_name(name) == expected

    def test_equal_after_normalization(self) -> None:
        assert company_names_match("Acme Corp.", "ACME CORP")

    def test_multi_word_containment(self) -> None:
        """Should match a name contained in another."""
        assert company_names_match("Gulf Coast", "Gulf Coast Logistics LLC")

    def test_single_word_containment(self) -> None:
        """Should match a one-word company against a longer account name."""
        assert company_names_match("Acme", "Acme Holdings")
        assert company_names_match("Acme Holdings", "Acme")

    def test_containment_after_suffix_stripping(self) -> None:
        """Should compare the suffix-stripped names: 'acme' is inside 'acme corporate solutions'."""
        assert company_names_match("Acme Corp.", "Acme Corporate Solutions")

    def test_unrelated_names(self) -> None:
        assert not company_names_match("Brightline", "Gulf Coast Logistics")

    def test_empty_names(self) -> None:
        assert not company_names_match("", "Acme")
        assert not company_names_match("Inc.", "Acme")


class TestDomains:
    """Tests for domain helpers."""

    def test_extract_host(self) -> None:
        assert extract_host("https://www.acmecorp.com/path?x=1") == "acmecorp.com"
        assert extract_host("brightline.io") == "brightline.io"
        assert extract_host("") == ""

    def test_email_domain(self) -> None:
        assert email_domain("Dana@AcmeCorp.com") == "acmecorp.com"
        assert email_domain("not-an-email") == ""


class TestSearch:
    """Tests for RecipientResolver.search."""

    def test_ranks_prefix_matches_first(self, resolver) -> None:
        """Should rank starts-with matches before substring matches."""
        results = resolver.search("da")
        assert [r.full_name for r in results] == ["Dana Reyes", "Daniel Okafor", "Maria Dantes"]

    def test_case_insensitive(self, resolver) -> None:
        assert [r.full_name for r in resolver.search("DANA")] == ["Dana Reyes"]

    def test_matches_title_and_email(self, resolver) -> None:
        assert [r.full_name for r in resolver.search("cfo")] == ["Daniel Okafor"]
        assert [r.full_name for r in resolver.search("gmail")] == ["Sam Lee"]

    def test_respects_limit(self, resolver) -> None:
        assert len(resolver.search("da", limit=2)) == 2

    def test_empty_query(self, resolver, mock_store) -> None:
        """Should return nothing without scanning for a blank query."""
        assert resolver.search("   ") == []
        mock_store.list_contacts.assert_not_called()

    def test_results_include_account(self, resolver) -> None:
        results = resolver.search("dana")
        assert results[0].account.name == "ACME CORP"
        assert results[0].energy.supplier == "ACME Power"


class TestResolveByExactEmail:
    """Tests for RecipientResolver.resolve_by_exact_email."""

    def test_resolves_case_insensitively(self, resolver) -> None:
        """Should build the full context for a known email."""
        context = resolver.resolve_by_exact_email("dana.reyes@ACMECORP.com")

        assert context is not None
        assert context.first_name == "Dana"
        assert context.company == "Acme Corp."
        assert context.account.id == "a-1"
        assert context.energy.current_rate == "0.072"
        assert context.energy.contract_end == "2026-01-01"

    def test_unknown_email(self, resolver) -> None:
        assert resolver.resolve_by_exact_email("nobody@example.com") is None

    def test_blank_email(self, resolver) -> None:
        assert resolver.resolve_by_exact_email("") is None


class TestMatchAccount:
    """Tests for RecipientResolver.match_account."""

    def test_account_id_wins(self, resolver, crm_snapshot) -> None:
        contact = by_id(crm_snapshot["contacts"], "c-2")
        account = resolver.match_account(contact, crm_snapshot["accounts"])
        assert account["id"] == "a-3"

    def test_company_name(self, resolver, crm_snapshot) -> None:
        contact = by_id(crm_snapshot["contacts"], "c-1")
        account = resolver.match_account(contact, crm_snapshot["accounts"])
        assert account["id"] == "a-1"

    def test_company_name_contained_in_account_name(self, resolver) -> None:
        """Should join a contact at 'Acme' to the account 'Acme Holdings'."""
        accounts = [{"id": "a-9", "accountName": "Acme Holdings"}]
        account = resolver.match_account({"companyName": "Acme"}, accounts)
        assert account["id"] == "a-9"

    def test_email_domain_against_website(self, resolver, crm_snapshot) -> None:
        """Should match the email domain to the account website host."""
        contact = by_id(crm_snapshot["contacts"], "c-3")
        account = resolver.match_account(contact, crm_snapshot["accounts"])
        assert account["id"] == "a-4"

    def test_subdomain_email(self, resolver, crm_snapshot) -> None:
        contact = {"email": "ops@mail.brightline.io"}
        account = resolver.match_account(contact, crm_snapshot["accounts"])
        assert account["id"] == "a-3"

    def test_free_mail_never_matches(self, resolver, crm_snapshot) -> None:
        contact = by_id(crm_snapshot["contacts"], "c-4")
        assert resolver.match_account(contact, crm_snapshot["accounts"]) is None

    def test_company_from_account_when_contact_has_none(self, resolver) -> None:
        context = resolver.resolve_by_exact_email("maria@gulfcoastlogistics.com")
        assert context.company == "Gulf Coast Logistics"
