import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from factory.llm import AnthropicProvider, LLMProviderFactory, OpenAIProvider, ProviderNotConfigured, get_provider
from factory.llm_config import (
    clear_config_cache,
    get_available_models,
    get_default_model_key,
    get_model_provider_map,
    get_provider_model_mapping,
)


def _collect(agen):
    async def run():
        return [chunk async for chunk in agen]

    return asyncio.run(run())


@pytest.fixture(autouse=True)
def _fresh_config():
    clear_config_cache()
    yield
    clear_config_cache()


class _FakeClaudeStream:

    def __init__(self, texts):
        self._texts = texts

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def text_stream(self):
        async def gen():
            for text in self._texts:
                yield text

        return gen()


async def _events(*events):
    for event in events:
        yield event


class TestModelConfig:

    def test_shipped_config(self):
        assert get_default_model_key() == 'claude_4_sonnet'
        assert get_provider_model_mapping('anthropic')['claude_4_sonnet'] == 'claude-sonnet-4-20250514'
        assert get_model_provider_map()['gpt_4o'] == 'openai'
        assert {m['value'] for m in get_available_models()} >= {'claude_4_sonnet', 'gpt_4o'}

    def test_missing_config_falls_back(self, settings, tmp_path):
        settings.LLM_MODELS_CONFIG = str(tmp_path / 'missing.json')
        assert get_default_model_key() == 'claude_4_sonnet'
        assert get_model_provider_map() == {}

    def test_custom_config(self, settings, tmp_path):
        path = tmp_path / 'models.json'
        path.write_text(json.dumps({
            'default_model': 'small',
            'providers': {'openai': {'models': [{'key': 'small', 'provider_model': 'gpt-4o-mini'}]}},
        }), encoding='utf-8')
        settings.LLM_MODELS_CONFIG = str(path)
        settings.LLM_DEFAULT_MODEL = ''

        provider = get_provider()
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == 'gpt-4o-mini'


class TestProviderFactory:

    def test_infers_provider_from_model(self):
        assert isinstance(LLMProviderFactory.get_provider(None, 'claude_4_sonnet'), AnthropicProvider)
        assert isinstance(LLMProviderFactory.get_provider(None, 'gpt_4o'), OpenAIProvider)

    def test_unknown_model_defaults_to_anthropic(self):
        provider = LLMProviderFactory.get_provider(None, 'mystery')
        assert isinstance(provider, AnthropicProvider)
        assert provider.model == 'claude-sonnet-4-20250514'

    def test_default_model_from_settings(self, settings):
        settings.LLM_DEFAULT_MODEL = 'gpt_4o'
        assert isinstance(get_provider(), OpenAIProvider)

    def test_model_parameters_from_settings(self, settings):
        settings.LLM_TEMPERATURE = 0.2
        settings.LLM_MAX_TOKENS = 128
        provider = get_provider('claude_4_sonnet')
        assert (provider.temperature, provider.max_tokens) == (0.2, 128)


class TestAnthropicProvider:

    def test_missing_api_key(self, settings):
        settings.ANTHROPIC_API_KEY = ''
        provider = AnthropicProvider('claude_4_sonnet')
        with pytest.raises(ProviderNotConfigured, match='No Anthropic API key'):
            _collect(provider.generate_stream([{'role': 'user', 'content': 'hi'}], system='S'))

    def test_streams_text(self):
        provider = AnthropicProvider('claude_4_sonnet')
        provider.client = MagicMock()
        provider.client.messages.stream.return_value = _FakeClaudeStream(['Hel', '', 'lo'])

        chunks = _collect(provider.generate_stream([
            {'role': 'system', 'content': 'ignored'},
            {'role': 'user', 'content': 'hi'},
        ], system='SYSTEM'))

        assert chunks == ['Hel', 'lo']
        params = provider.client.messages.stream.call_args.kwargs
        assert params['model'] == 'claude-sonnet-4-20250514'
        assert params['system'] == 'SYSTEM'
        assert params['temperature'] == provider.temperature
        assert params['max_tokens'] == provider.max_tokens
        assert params['messages'] == [{'role': 'user', 'content': [{'type': 'text', 'text': 'hi'}]}]


class TestOpenAIProvider:

    def test_missing_api_key(self, settings):
        settings.OPENAI_API_KEY = ''
        provider = OpenAIProvider('gpt_4o')
        with pytest.raises(ProviderNotConfigured, match='No OpenAI API key'):
            _collect(provider.generate_stream([{'role': 'user', 'content': 'hi'}]))

    def test_streams_deltas(self):
        provider = OpenAIProvider('gpt_4o')
        provider.client = MagicMock()
        provider.client.responses.create = AsyncMock(return_value=_events(
            SimpleNamespace(type='response.created'),
            SimpleNamespace(type='response.output_text.delta', delta='Hi '),
            SimpleNamespace(type='response.output_text.delta', delta='there'),
            SimpleNamespace(type='response.completed'),
        ))

        chunks = _collect(provider.generate_stream([
            {'role': 'user', 'content': 'hi'},
            {'role': 'assistant', 'content': 'hello'},
        ], system='SYSTEM'))

        assert chunks == ['Hi ', 'there']
        params = provider.client.responses.create.call_args.kwargs
        assert params['instructions'] == 'SYSTEM'
        assert params['stream'] is True
        assert params['input'][1] == {'role': 'assistant', 'content': [{'type': 'output_text', 'text': 'hello'}]}

    def test_model_without_temperature(self):
        provider = OpenAIProvider('gpt-5-mini')
        provider.client = MagicMock()
        provider.client.responses.create = AsyncMock(return_value=_events())

        _collect(provider.generate_stream([{'role': 'user', 'content': 'hi'}]))

        assert 'temperature' not in provider.client.responses.create.call_args.kwargs

    def test_failed_response_raises(self):
        provider = OpenAIProvider('gpt_4o')
        provider.client = MagicMock()
        provider.client.responses.create = AsyncMock(return_value=_events(
            SimpleNamespace(type='response.failed', error='overloaded'),
        ))
        with pytest.raises(RuntimeError, match='overloaded'):
            _collect(provider.generate_stream([{'role': 'user', 'content': 'hi'}]))
