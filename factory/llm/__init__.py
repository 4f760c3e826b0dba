import logging
from typing import Optional, Dict, Type

from django.conf import settings

from factory.llm_config import get_model_provider_map, get_default_model_key
from .base import BaseLLMProvider, ProviderNotConfigured
from .anthropic import AnthropicProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """Factory class for creating LLM provider instances"""

    # Provider mapping
    _providers: Dict[str, Type[BaseLLMProvider]] = {
        'anthropic': AnthropicProvider,
        'openai': OpenAIProvider,
    }

    # Model to provider mapping, extended from config/llm_models.json
    _model_to_provider: Dict[str, str] = {}

    @classmethod
    def default_model(cls) -> str:
        return getattr(settings, 'LLM_DEFAULT_MODEL', '') or get_default_model_key() or 'claude_4_sonnet'

    @classmethod
    def provider_for_model(cls, selected_model: str) -> Optional[str]:
        return cls._model_to_provider.get(selected_model) or get_model_provider_map().get(selected_model)

    @classmethod
    def get_provider(cls, provider_name: Optional[str] = None,
                     selected_model: Optional[str] = None) -> BaseLLMProvider:
        """
        Get the appropriate LLM provider instance.

        Args:
            provider_name: Name of the provider (optional, can be inferred from model)
            selected_model: The model identifier (optional, defaults to the configured model)

        Returns:
            An instance of the appropriate LLM provider
        """
        selected_model = selected_model or cls.default_model()

        # If provider_name not specified, infer from model
        if not provider_name:
            provider_name = cls.provider_for_model(selected_model)
            if not provider_name:
                logger.warning(f"Unknown model {selected_model}, defaulting to Anthropic provider")
                provider_name = 'anthropic'

        logger.info(f"Creating provider with provider_name: {provider_name}, selected_model: {selected_model}")

        provider_class = cls._providers.get(provider_name)
        if provider_class:
            return provider_class(selected_model)

        logger.warning(f"Unknown provider {provider_name}, defaulting to Anthropic")
        return AnthropicProvider(selected_model)

    @classmethod
    def register_provider(cls, name: str, provider_class: Type[BaseLLMProvider]):
        """Register a new provider class"""
        cls._providers[name] = provider_class
        logger.info(f"Registered new provider: {name}")

    @classmethod
    def unregister_provider(cls, name: str):
        cls._providers.pop(name, None)
        for model, provider in list(cls._model_to_provider.items()):
            if provider == name:
                del cls._model_to_provider[model]

    @classmethod
    def register_model(cls, model_name: str, provider_name: str):
        """Register a new model to provider mapping"""
        cls._model_to_provider[model_name] = provider_name
        logger.info(f"Registered model {model_name} for provider {provider_name}")


def get_provider(selected_model: Optional[str] = None) -> BaseLLMProvider:
    """Provider for the given model key, or the configured default model."""
    return LLMProviderFactory.get_provider(None, selected_model)


__all__ = [
    'LLMProviderFactory',
    'BaseLLMProvider',
    'ProviderNotConfigured',
    'AnthropicProvider',
    'OpenAIProvider',
    'get_provider',
]
