"""Unit tests for draft generation service."""

from unittest.mock import MagicMock, patch

from langchain_core.messages import HumanMessage


class TestDraftGenerator:
    """Tests for DraftGenerator class."""

    @patch("crm_composer.services.draft_generator.ChatOpenAI")
    @patch("crm_composer.services.draft_generator.settings")
    def test_generate_health_check_draft(self, mock_settings, mock_llm_class, dana):
        """Test generating a draft for a known recipient."""
        mock_settings.openai_api_key = "test-key"
        mock_settings.openai_model = "gpt-4o-mini"
        mock_settings.temperature = 0.7
        mock_settings.max_tokens = 500
        mock_settings.brand_name = "Power Choosers"

        mock_llm = MagicMock()
        mock_response = MagicMock()
        mock_response.content = """  Subject: Dana, your ACME Power renewal

Hi Dana,

Quick note on your contract.  """
        mock_llm.invoke.return_value = mock_response
        mock_llm_class.return_value = mock_llm

        from crm_composer.services.draft_generator import DraftGenerator

        generator = DraftGenerator()
        output = generator.generate("Write an energy health check email", recipient=dana)

        assert output.startswith("Subject: Dana, your ACME Power renewal")
        assert output.endswith("Quick note on your contract.")

        messages = mock_llm.invoke.call_args[0][0]
        assert len(messages) == 1
        assert isinstance(messages[0], HumanMessage)
        assert "Energy Health Check Invitation" in messages[0].content
        assert "Current Supplier: ACME Power" in messages[0].content

        mock_llm_class.assert_called_once_with(
            model="gpt-4o-mini",
            api_key="test-key",
            temperature=0.7,
            max_tokens=500,
        )

    @patch("crm_composer.services.draft_generator.ChatOpenAI")
    @patch("crm_composer.services.draft_generator.settings")
    def test_llm_created_once(self, mock_settings, mock_llm_class):
        """Test that the model client is created lazily and reused."""
        mock_settings.brand_name = "Power Choosers"
        mock_llm_class.return_value.invoke.return_value = MagicMock(content="Draft")

        from crm_composer.services.draft_generator import DraftGenerator

        generator = DraftGenerator()
        mock_llm_class.assert_not_called()

        generator.generate("Hi")
        generator.generate("Hi again")

        assert mock_llm_class.call_count == 1

    @patch("crm_composer.services.draft_generator.ChatOpenAI")
    @patch("crm_composer.services.draft_generator.settings")
    def test_non_text_content_returns_empty(self, mock_settings, mock_llm_class):
        mock_settings.brand_name = "Power Choosers"
        mock_llm_class.return_value.invoke.return_value = MagicMock(content=[{"type": "image"}])

        from crm_composer.services.draft_generator import DraftGenerator

        assert DraftGenerator().generate("Hi") == ""
