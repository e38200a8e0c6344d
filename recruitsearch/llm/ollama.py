"""Ollama local provider (OpenAI-compatible API)."""

import logging
import os

from recruitsearch.llm.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    LLMProvider,
)

logger = logging.getLogger(__name__)

_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(LLMProvider):
    """Provider using a local Ollama instance via its OpenAI-compatible API."""

    @property
    def provider_id(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return "llama3"

    @property
    def env_var(self) -> None:
        return None

    def complete(
        self,
        user_prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for Ollama (OpenAI-compatible API). "
                "Install with: pip install 'recruitsearch[openai]'"
            )
            raise ImportError(msg) from None

        base_url = os.environ.get("OLLAMA_BASE_URL", _OLLAMA_BASE_URL)
        client = openai.OpenAI(base_url=base_url, api_key="ollama")
        use_model = model or self.default_model
        use_system = system if system is not None else DEFAULT_SYSTEM_PROMPT

        logger.info("Sending prompt to Ollama (%s)...", use_model)
        response = client.chat.completions.create(
            model=use_model,
            max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
            temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
            messages=[
                {"role": "system", "content": use_system},
                {"role": "user", "content": user_prompt},
            ],
        )

        return response.choices[0].message.content  # type: ignore[no-any-return]
