"""OpenAI provider."""

import logging
import os

from recruitsearch.llm.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    LLMProvider,
)

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Provider using the OpenAI chat completions API."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        user_prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            msg = "OPENAI_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for generative extraction. "
                "Install with: pip install 'recruitsearch[openai]'"
            )
            raise ImportError(msg) from None

        client = openai.OpenAI(api_key=api_key)
        use_model = model or self.default_model
        use_system = system if system is not None else DEFAULT_SYSTEM_PROMPT

        logger.info("Sending prompt to OpenAI API (%s)...", use_model)
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
