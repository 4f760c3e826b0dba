import logging
from typing import List, Dict, Any, Optional, AsyncGenerator

import anthropic

from factory.llm_config import get_provider_model_mapping
from .base import BaseLLMProvider, ProviderNotConfigured

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude provider implementation"""

    api_key_setting = 'ANTHROPIC_API_KEY'

    def __init__(self, selected_model: str, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None):
        super().__init__(selected_model, temperature, max_tokens)

        # Map model selection to actual model name
        self.model = get_provider_model_mapping("anthropic").get(selected_model, DEFAULT_MODEL)
        logger.debug(f"Using Claude model: {self.model}")

    def _create_client(self, api_key: str):
        return anthropic.AsyncAnthropic(api_key=api_key)

    def _convert_messages_to_provider_format(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Convert chat messages to Claude format"""
        claude_messages = []
        for msg in messages:
            role = msg.get("role")
            if role not in ("user", "assistant"):
                # Claude takes the system prompt as a separate parameter
                continue
            content = msg.get("content") or ""
            if isinstance(content, list):
                claude_messages.append({"role": role, "content": content})
            else:
                claude_messages.append({"role": role, "content": [{"type": "text", "text": content}]})
        return claude_messages

    async def generate_stream(self, messages: List[Dict[str, Any]],
                              system: Optional[str] = None) -> AsyncGenerator[str, None]:
        """Stream text deltas from Claude"""
        await self._ensure_client()
        if not self.client:
            raise ProviderNotConfigured("No Anthropic API key configured.")

        params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": self._convert_messages_to_provider_format(messages),
        }
        if system:
            params["system"] = system
        if self.supports_temperature:
            params["temperature"] = self.temperature

        logger.debug(f"Sending {len(params['messages'])} messages to Claude model {self.model}")
        async with self.client.messages.stream(**params) as stream:
            async for text in stream.text_stream:
                if text:
                    yield text
