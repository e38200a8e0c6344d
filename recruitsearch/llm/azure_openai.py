"""Azure OpenAI provider (deployment-addressed chat completions)."""

import logging
import os

from recruitsearch.llm.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_SYSTEM_PROMPT,
    DEFAULT_TEMPERATURE,
    LLMProvider,
)

logger = logging.getLogger(__name__)

_DEFAULT_API_VERSION = "2024-02-15-preview"


class AzureOpenAIProvider(LLMProvider):
    """Provider using an Azure OpenAI resource.

    The endpoint and key come from ``AZURE_OPENAI_ENDPOINT`` and
    ``AZURE_OPENAI_API_KEY``. The model argument names a deployment; it
    defaults to ``AZURE_OPENAI_DEPLOYMENT_NAME`` or ``gpt-4``.
    """

    @property
    def provider_id(self) -> str:
        return "azure-openai"

    @property
    def default_model(self) -> str:
        return os.environ.get("AZURE_OPENAI_DEPLOYMENT_NAME", "gpt-4")

    @property
    def env_var(self) -> str:
        return "AZURE_OPENAI_API_KEY"

    def complete(
        self,
        user_prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        endpoint = os.environ.get("AZURE_OPENAI_ENDPOINT")
        api_key = os.environ.get("AZURE_OPENAI_API_KEY")
        if not endpoint or not api_key:
            msg = "AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY environment variables are required"
            raise ValueError(msg)

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for Azure OpenAI. "
                "Install with: pip install 'recruitsearch[openai]'"
            )
            raise ImportError(msg) from None

        client = openai.AzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=os.environ.get("AZURE_OPENAI_API_VERSION", _DEFAULT_API_VERSION),
        )
        deployment = model or self.default_model
        use_system = system if system is not None else DEFAULT_SYSTEM_PROMPT

        logger.info("Sending prompt to Azure OpenAI deployment %s...", deployment)
        response = client.chat.completions.create(
            model=deployment,
            max_tokens=max_tokens or DEFAULT_MAX_TOKENS,
            temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
            messages=[
                {"role": "system", "content": use_system},
                {"role": "user", "content": user_prompt},
            ],
        )

        return response.choices[0].message.content  # type: ignore[no-any-return]
