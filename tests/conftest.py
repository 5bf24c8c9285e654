"""Shared test fixtures and configuration."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from crm_composer.recipients.models import EnergyInfo, RecipientContext
from crm_composer.user_config import SenderProfile


@pytest.fixture
def crm_snapshot() -> dict:
    """Load the CRM contacts/accounts fixture."""
    fixtures_path = Path(__file__).parent / "fixtures" / "crm_snapshot.json"
    with open(fixtures_path) as f:
        return json.load(f)


@pytest.fixture
def mock_store(crm_snapshot: dict) -> MagicMock:
    """CRM store serving the fixture snapshot."""
    store = MagicMock()
    store.list_contacts.return_value = crm_snapshot["contacts"]
    store.list_accounts.return_value = crm_snapshot["accounts"]
    return store


@pytest.fixture
def dana() -> RecipientContext:
    """Recipient with full energy facts."""
    return RecipientContext(
        first_name="Dana",
        company="Acme",
        email="dana@acme.com",
        energy=EnergyInfo(
            supplier="ACME Power",
            current_rate="0.065",
            contract_end="2025-09-01",
        ),
    )


@pytest.fixture
def sender() -> SenderProfile:
    return SenderProfile(first_name="Lewis", last_name="Patterson", email="lewis@powerchoosers.com")


@pytest.fixture
def mock_draft_output() -> str:
    """Typical raw model completion."""
    return """Subject: Hi Dana

Hi Dana,

I hope you're having a productive week. I took a look at how businesses like Acme are buying power this year.

Rates have moved since your last renewal. An Energy Health Check is a quick review of your bill, supplier and rate.

Does Tuesday at 10am or Thursday at 2pm work for a 15-minute call?

Best regards,
[Your Name]"""


@pytest.fixture
def test_client():
    """FastAPI test client."""
    from crm_composer.main import app

    with TestClient(app) as client:
        yield client
