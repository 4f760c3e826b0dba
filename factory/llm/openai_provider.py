import logging
from typing import List, Dict, Any, Optional, AsyncGenerator

import openai

from factory.llm_config import get_provider_model_mapping
from .base import BaseLLMProvider, ProviderNotConfigured

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"


class OpenAIProvider(BaseLLMProvider):
    """OpenAI provider implementation using the Responses API"""

    api_key_setting = 'OPENAI_API_KEY'

    def __init__(self, selected_model: str, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None):
        super().__init__(selected_model, temperature, max_tokens)

        self.model = get_provider_model_mapping("openai").get(selected_model, DEFAULT_MODEL)
        logger.debug(f"Using OpenAI model: {self.model}")

    def _create_client(self, api_key: str):
        return openai.AsyncOpenAI(api_key=api_key)

    def _convert_messages_to_provider_format(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Convert chat messages to Responses API input items"""
        items = []
        for msg in messages:
            role = msg.get("role")
            if role not in ("user", "assistant"):
                continue
            content_type = "output_text" if role == "assistant" else "input_text"
            items.append({
                "role": role,
                "content": [{"type": content_type, "text": msg.get("content") or ""}],
            })
        return items

    async def generate_stream(self, messages: List[Dict[str, Any]],
                              system: Optional[str] = None) -> AsyncGenerator[str, None]:
        """Stream text deltas from the Responses API"""
        await self._ensure_client()
        if not self.client:
            raise ProviderNotConfigured("No OpenAI API key configured.")

        params = {
            "model": self.model,
            "input": self._convert_messages_to_provider_format(messages),
            "max_output_tokens": self.max_tokens,
            "stream": True,
        }
        if system:
            params["instructions"] = system
        if self.supports_temperature:
            params["temperature"] = self.temperature

        logger.debug(f"Sending {len(params['input'])} input items to OpenAI model {self.model}")
        stream = await self.client.responses.create(**params)
        async for event in stream:
            event_type = getattr(event, "type", "")
            if event_type == "response.output_text.delta":
                delta = getattr(event, "delta", "")
                if delta:
                    yield delta
            elif event_type == "response.completed":
                break
            elif event_type in ("response.failed", "error"):
                error = getattr(event, "error", None) or getattr(event, "message", "")
                raise RuntimeError(f"OpenAI stream failed: {error}")
