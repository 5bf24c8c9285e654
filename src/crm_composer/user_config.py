"""
Sender profile from config.yaml.

This module loads the sending user's profile, which resolves the
``{{sender.*}}`` variable tokens and fills the signature block of
HTML-mode emails. These are separate from environment-based settings
in config.py.

config.yaml is for:
- Sender name, title and company
- Contact details shown in the signature block

.env is for:
- API keys (secrets)
- Endpoint URLs
- Feature flags
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

# Default config path
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.yaml"


@dataclass
class SenderProfile:
    """The user sending emails from the composer."""

    first_name: str = ""
    last_name: str = ""
    title: str = "Energy Strategist"
    company: str = "Power Choosers"
    email: str = ""
    phone: str = ""
    location: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def display_name(self) -> str:
        """Name used in signatures, falling back to the team name."""
        return self.full_name or f"{self.company} Team"

    def token_values(self) -> dict[str, str]:
        """Values for ``{{sender.key}}`` tokens."""
        return {
            "first_name": self.first_name or self.display_name,
            "last_name": self.last_name,
            "full_name": self.display_name,
            "name": self.display_name,
            "title": self.title,
            "company": self.company,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
        }


def load_sender_profile(config_path: Path | str | None = None) -> SenderProfile:
    """
    Load the sender profile from config.yaml.

    Args:
        config_path: Path to config.yaml. Uses default if None.

    Returns:
        SenderProfile with loaded or default values.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return SenderProfile()

    try:
        raw_config = yaml.safe_load(config_path.read_text())

        if raw_config is None:
            return SenderProfile()

        sender = raw_config.get("sender", {}) or {}
        defaults = SenderProfile()

        return SenderProfile(
            first_name=str(sender.get("first_name", "")).strip(),
            last_name=str(sender.get("last_name", "")).strip(),
            title=str(sender.get("title", defaults.title)).strip(),
            company=str(sender.get("company", defaults.company)).strip(),
            email=str(sender.get("email", "")).strip(),
            phone=str(sender.get("phone", "")).strip(),
            location=str(sender.get("location", "")).strip(),
        )

    except Exception as e:
        logger.error(f"Failed to load config.yaml: {e}")
        return SenderProfile()


@lru_cache(maxsize=1)
def get_sender_profile() -> SenderProfile:
    """
    Get cached sender profile.

    Returns:
        SenderProfile loaded from config.yaml (cached).
    """
    return load_sender_profile()
