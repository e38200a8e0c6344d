"""Google Gemini provider (google-genai SDK)."""

import logging
import os

from recruitsearch.llm.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    LLMProvider,
)

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Provider using the Google Gemini API (google-genai SDK)."""

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.5-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def complete(
        self,
        user_prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        api_key = os.environ.get("GOOGLE_API_KEY")
        if not api_key:
            msg = "GOOGLE_API_KEY environment variable is required"
            raise ValueError(msg)

        try:
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for generative extraction. "
                "Install with: pip install 'recruitsearch[gemini]'"
            )
            raise ImportError(msg) from None

        use_model = model or self.default_model

        logger.info("Sending prompt to Gemini API (%s)...", use_model)
        client = genai.Client(api_key=api_key)
        response = client.models.generate_content(
            model=use_model,
            contents=user_prompt,
            config=genai_types.GenerateContentConfig(
                system_instruction=system if system is not None else DEFAULT_SYSTEM_PROMPT,
                max_output_tokens=max_tokens or DEFAULT_MAX_TOKENS,
                temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
            ),
        )

        return response.text  # type: ignore[no-any-return]
