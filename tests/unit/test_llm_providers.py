"""Tests for generative provider adapters and registry."""

from unittest.mock import MagicMock, patch

import pytest

from recruitsearch.llm import available_providers, get_provider
from recruitsearch.llm.base import DEFAULT_MAX_TOKENS, DEFAULT_SYSTEM_PROMPT, LLMProvider


def _chat_response(text: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = text
    return response


# ---------------------------------------------------------------------------
# Registry tests
# ---------------------------------------------------------------------------
class TestProviderRegistry:
    @pytest.mark.parametrize("name", ["anthropic", "openai", "azure-openai", "gemini", "ollama"])
    def test_get_provider(self, name: str) -> None:
        provider = get_provider(name)
        assert isinstance(provider, LLMProvider)
        assert provider.provider_id == name

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown LLM provider 'nope'"):
            get_provider("nope")

    def test_available_providers_sorted(self) -> None:
        assert available_providers() == ["anthropic", "azure-openai", "gemini", "ollama", "openai"]


# ---------------------------------------------------------------------------
# Anthropic provider tests
# ---------------------------------------------------------------------------
class TestAnthropicProvider:
    def test_provider_id(self) -> None:
        provider = get_provider("anthropic")
        assert provider.default_model == "claude-sonnet-4-20250514"
        assert provider.env_var == "ANTHROPIC_API_KEY"

    def test_missing_api_key(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="ANTHROPIC_API_KEY"),
        ):
            provider.complete("resume text")

    def test_missing_sdk(self) -> None:
        provider = get_provider("anthropic")
        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"anthropic": None}),
            pytest.raises(ImportError, match="anthropic is required"),
        ):
            provider.complete("resume text")

    def test_request_parameters(self) -> None:
        provider = get_provider("anthropic")
        mock_client = MagicMock()
        mock_client.messages.create.return_value = MagicMock(content=[MagicMock(text="{}")])
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            assert provider.complete("text", system="custom", temperature=0.0) == "{}"

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "custom"
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == DEFAULT_MAX_TOKENS
        assert kwargs["model"] == "claude-sonnet-4-20250514"

    def test_falls_back_to_default_system_prompt(self) -> None:
        provider = get_provider("anthropic")
        mock_client = MagicMock()
        mock_client.messages.create.return_value = MagicMock(content=[MagicMock(text="ok")])
        mock_anthropic = MagicMock()
        mock_anthropic.Anthropic.return_value = mock_client

        with (
            patch.dict("os.environ", {"ANTHROPIC_API_KEY": "key"}),
            patch.dict("sys.modules", {"anthropic": mock_anthropic}),
        ):
            provider.complete("text")

        assert mock_client.messages.create.call_args.kwargs["system"] == DEFAULT_SYSTEM_PROMPT


# ---------------------------------------------------------------------------
# OpenAI provider tests
# ---------------------------------------------------------------------------
class TestOpenAIProvider:
    def test_missing_api_key(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="OPENAI_API_KEY"),
        ):
            provider.complete("resume text")

    def test_missing_sdk(self) -> None:
        provider = get_provider("openai")
        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("resume text")

    def test_messages(self) -> None:
        provider = get_provider("openai")
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _chat_response('{"a": 1}')
        mock_openai = MagicMock()
        mock_openai.OpenAI.return_value = mock_client

        with (
            patch.dict("os.environ", {"OPENAI_API_KEY": "key"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            assert provider.complete("resume", "gpt-4o", max_tokens=50) == '{"a": 1}'

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 50
        assert kwargs["messages"][0] == {"role": "system", "content": DEFAULT_SYSTEM_PROMPT}
        assert kwargs["messages"][1] == {"role": "user", "content": "resume"}


# ---------------------------------------------------------------------------
# Azure OpenAI provider tests
# ---------------------------------------------------------------------------
class TestAzureOpenAIProvider:
    def test_missing_endpoint(self) -> None:
        provider = get_provider("azure-openai")
        with (
            patch.dict("os.environ", {"AZURE_OPENAI_API_KEY": "key"}, clear=True),
            pytest.raises(ValueError, match="AZURE_OPENAI_ENDPOINT"),
        ):
            provider.complete("resume text")

    def test_deployment_from_env(self) -> None:
        provider = get_provider("azure-openai")
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _chat_response("{}")
        mock_openai = MagicMock()
        mock_openai.AzureOpenAI.return_value = mock_client
        env = {
            "AZURE_OPENAI_ENDPOINT": "https://example.openai.azure.com",
            "AZURE_OPENAI_API_KEY": "key",
            "AZURE_OPENAI_DEPLOYMENT_NAME": "gpt-4-resumes",
        }

        with (
            patch.dict("os.environ", env, clear=True),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            provider.complete("resume")

        client_kwargs = mock_openai.AzureOpenAI.call_args.kwargs
        assert client_kwargs["azure_endpoint"] == "https://example.openai.azure.com"
        assert client_kwargs["api_version"] == "2024-02-15-preview"
        assert mock_client.chat.completions.create.call_args.kwargs["model"] == "gpt-4-resumes"

    def test_default_deployment(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            assert get_provider("azure-openai").default_model == "gpt-4"


# ---------------------------------------------------------------------------
# Gemini provider tests
# ---------------------------------------------------------------------------
class TestGeminiProvider:
    def test_missing_api_key(self) -> None:
        provider = get_provider("gemini")
        with (
            patch.dict("os.environ", {}, clear=True),
            pytest.raises(ValueError, match="GOOGLE_API_KEY"),
        ):
            provider.complete("resume text")

    def test_missing_sdk(self) -> None:
        provider = get_provider("gemini")
        with (
            patch.dict("os.environ", {"GOOGLE_API_KEY": "test-key"}),
            patch.dict("sys.modules", {"google": None, "google.genai": None}),
            pytest.raises(ImportError, match="google-genai is required"),
        ):
            provider.complete("resume text")

    def test_system_instruction(self) -> None:
        provider = get_provider("gemini")
        mock_client = MagicMock()
        mock_client.models.generate_content.return_value = MagicMock(text="{}")
        mock_types = MagicMock()
        mock_genai = MagicMock(types=mock_types)
        mock_genai.Client.return_value = mock_client
        mock_google = MagicMock(genai=mock_genai)

        with (
            patch.dict("os.environ", {"GOOGLE_API_KEY": "key"}),
            patch.dict("sys.modules", {
                "google": mock_google,
                "google.genai": mock_genai,
                "google.genai.types": mock_types,
            }),
        ):
            assert provider.complete("text", system="custom") == "{}"

        config_kwargs = mock_types.GenerateContentConfig.call_args.kwargs
        assert config_kwargs["system_instruction"] == "custom"
        assert config_kwargs["max_output_tokens"] == DEFAULT_MAX_TOKENS


# ---------------------------------------------------------------------------
# Ollama provider tests
# ---------------------------------------------------------------------------
class TestOllamaProvider:
    def test_no_api_key_needed(self) -> None:
        provider = get_provider("ollama")
        assert provider.default_model == "llama3"
        assert provider.env_var is None

    def test_missing_sdk(self) -> None:
        provider = get_provider("ollama")
        with (
            patch.dict("sys.modules", {"openai": None}),
            pytest.raises(ImportError, match="openai is required"),
        ):
            provider.complete("resume text")

    def test_base_url_override(self) -> None:
        provider = get_provider("ollama")
        mock_openai = MagicMock()
        mock_openai.OpenAI.return_value.chat.completions.create.return_value = _chat_response("{}")

        with (
            patch.dict("os.environ", {"OLLAMA_BASE_URL": "http://gpu-box:11434/v1"}),
            patch.dict("sys.modules", {"openai": mock_openai}),
        ):
            provider.complete("text")

        assert mock_openai.OpenAI.call_args.kwargs["base_url"] == "http://gpu-box:11434/v1"
