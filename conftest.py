"""Shared pytest fixtures: users, a fresh project, and a scripted LLM provider."""
import pytest

from factory.llm import BaseLLMProvider, LLMProviderFactory
from factory.prompts import clear_prompt_cache


class FakeProvider(BaseLLMProvider):
    """Provider that replays scripted chunks and records what it was asked."""

    chunks = ['Hello', ', ', 'founder']
    fail_after = None
    error = None
    calls = []

    @classmethod
    def reset(cls):
        cls.chunks = ['Hello', ', ', 'founder']
        cls.fail_after = None
        cls.error = None
        cls.calls = []

    def _create_client(self, api_key):
        return None

    def _convert_messages_to_provider_format(self, messages):
        return list(messages)

    async def generate_stream(self, messages, system=None):
        FakeProvider.calls.append({'messages': list(messages), 'system': system})
        if self.error is not None:
            raise self.error
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index == self.fail_after:
                raise RuntimeError('provider went away')
            yield chunk


@pytest.fixture
def fake_llm(settings):
    FakeProvider.reset()
    LLMProviderFactory.register_provider('fake', FakeProvider)
    LLMProviderFactory.register_model('fake-model', 'fake')
    settings.LLM_DEFAULT_MODEL = 'fake-model'
    yield FakeProvider
    LLMProviderFactory.unregister_provider('fake')


@pytest.fixture(autouse=True)
def _fresh_prompt_cache():
    clear_prompt_cache()
    yield
    clear_prompt_cache()


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(username='ada', password='pw')


@pytest.fixture
def other_user(django_user_model):
    return django_user_model.objects.create_user(username='grace', password='pw')


@pytest.fixture
def project(user):
    from projects.models import Project

    return Project.create_with_pieces(owner=user, name='Meal Planner', description='Plans weekly meals')


@pytest.fixture
def api_client(client, user):
    client.force_login(user)
    return client
