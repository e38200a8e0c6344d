"""Generative-text provider registry with lazy loading.

Usage:
    from recruitsearch.llm import get_provider, validate_output

    provider = get_provider("anthropic")
    raw = provider.complete(prompt)
    result = validate_output(raw, GeneratedResume)
"""

import importlib

from recruitsearch.llm.base import (
    LLMProvider,
    SchemaResult,
    parse_json_text,
    validate_output,
)

__all__ = [
    "LLMProvider",
    "SchemaResult",
    "available_providers",
    "get_provider",
    "parse_json_text",
    "validate_output",
]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("recruitsearch.llm.anthropic", "AnthropicProvider"),
    "openai": ("recruitsearch.llm.openai", "OpenAIProvider"),
    "azure-openai": ("recruitsearch.llm.azure_openai", "AzureOpenAIProvider"),
    "gemini": ("recruitsearch.llm.gemini", "GeminiProvider"),
    "ollama": ("recruitsearch.llm.ollama", "OllamaProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate and return a provider by name.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
