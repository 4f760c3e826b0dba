import logging
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, AsyncGenerator

from django.conf import settings

from factory.llm_config import get_model_metadata

logger = logging.getLogger(__name__)


class ProviderNotConfigured(Exception):
    """The provider cannot be used, e.g. no API key is configured."""


class BaseLLMProvider(ABC):
    """Base class for all LLM providers"""

    # Name of the settings attribute holding this provider's API key
    api_key_setting = ''

    def __init__(self, selected_model: str, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None):
        self.selected_model = selected_model
        self.temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self.max_tokens = settings.LLM_MAX_TOKENS if max_tokens is None else max_tokens
        self.client = None
        self.api_key = ''

        logger.info(f"{self.__class__.__name__} initialized with model: {selected_model}")

    @property
    def model_metadata(self) -> Dict[str, Any]:
        return get_model_metadata(self.selected_model) or {}

    @property
    def supports_temperature(self) -> bool:
        return self.model_metadata.get("supports_temperature", True)

    async def _ensure_client(self):
        """Ensure the client is initialized with API key"""
        if self.client is not None:
            return
        self.api_key = getattr(settings, self.api_key_setting, '') if self.api_key_setting else ''
        if self.api_key:
            self.client = self._create_client(self.api_key)
        else:
            logger.warning(f"No API key configured for {self.__class__.__name__}")

    @abstractmethod
    def _create_client(self, api_key: str):
        """Build the provider SDK client"""
        pass

    @abstractmethod
    async def generate_stream(self, messages: List[Dict[str, Any]],
                              system: Optional[str] = None) -> AsyncGenerator[str, None]:
        """Generate streaming response from the AI provider"""
        pass

    @abstractmethod
    def _convert_messages_to_provider_format(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Convert messages from standard format to provider-specific format"""
        pass
