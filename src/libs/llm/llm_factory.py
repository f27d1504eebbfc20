"""Factory for creating LLM provider instances.

Providers register themselves by name; :meth:`LLMFactory.create` picks one
based on ``settings.llm.provider``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from src.libs.llm.base_llm import BaseLLM

if TYPE_CHECKING:
    from src.core.settings import Settings


class LLMFactory:
    """Factory for creating LLM provider instances.

    Design Principles Applied:
    - Factory Pattern: Centralizes object creation logic.
    - Config-Driven: Provider selection based on settings.yaml.
    - Fail-Fast: Raises clear errors for unknown providers.
    """

    _PROVIDERS: dict[str, type[BaseLLM]] = {}

    @classmethod
    def register_provider(cls, name: str, provider_class: type[BaseLLM]) -> None:
        """Register a new LLM provider implementation.

        Args:
            name: The provider identifier (e.g., 'ollama').
            provider_class: The BaseLLM subclass implementing the provider.

        Raises:
            ValueError: If provider_class doesn't inherit from BaseLLM.
        """
        if not issubclass(provider_class, BaseLLM):
            raise ValueError(
                f"Provider class {provider_class.__name__} must inherit from BaseLLM"
            )
        cls._PROVIDERS[name.lower()] = provider_class

    @classmethod
    def create(cls, settings: Settings, **override_kwargs: Any) -> BaseLLM:
        """Create an LLM instance based on configuration.

        Args:
            settings: The application settings containing LLM configuration.
            **override_kwargs: Optional parameters passed to the provider.

        Returns:
            An instance of the configured LLM provider.

        Raises:
            ValueError: If the configured provider is missing or not supported.
            RuntimeError: If the provider fails to initialize.
        """
        try:
            provider_name = settings.llm.provider.lower()
        except AttributeError as e:
            raise ValueError(
                "Missing required configuration: settings.llm.provider. "
                "Please ensure 'llm.provider' is specified in settings.yaml"
            ) from e

        provider_class = cls._PROVIDERS.get(provider_name)
        if provider_class is None:
            available = ", ".join(sorted(cls._PROVIDERS.keys())) if cls._PROVIDERS else "none"
            raise ValueError(
                f"Unsupported LLM provider: '{provider_name}'. "
                f"Available providers: {available}"
            )

        try:
            return provider_class(settings=settings, **override_kwargs)
        except Exception as e:
            raise RuntimeError(
                f"Failed to instantiate LLM provider '{provider_name}': {e}"
            ) from e

    @classmethod
    def list_providers(cls) -> list[str]:
        """List all registered provider names."""
        return sorted(cls._PROVIDERS.keys())


def _register_builtin_providers() -> None:
    """Register built-in LLM providers with the factory."""
    from src.libs.llm.ollama_llm import OllamaLLM
    LLMFactory.register_provider("ollama", OllamaLLM)


_register_builtin_providers()
