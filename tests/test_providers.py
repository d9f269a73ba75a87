import json
from types import SimpleNamespace

import pytest

from csvbabel.errors import (
    TranslationProviderConfigurationError,
    TranslationProviderError,
)
from csvbabel.providers import (
    TRANSLATION_SCHEMA,
    EchoTranslationProvider,
    LegacyOpenAITranslationProvider,
    OpenAITranslationProvider,
    build_provider,
)
from csvbabel.structures import Batch, TranslationRequest


def make_batch():
    return Batch(
        batch_id=1,
        source_lang="en",
        target_lang="fr",
        requests=[
            TranslationRequest("r0:fr", 0, "en", "fr", "hello"),
            TranslationRequest("r1:fr", 1, "en", "fr", "goodbye"),
        ],
    )


class FakeEndpoint:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.response


def responses_client(text):
    endpoint = FakeEndpoint(
        SimpleNamespace(output=[SimpleNamespace(content=[SimpleNamespace(text=text)])])
    )
    return SimpleNamespace(responses=endpoint), endpoint


TRANSLATIONS = {
    "translations": [
        {"id": "r0:fr", "translated": "bonjour"},
        {"id": "r1:fr", "translated": "au revoir"},
    ]
}


@pytest.mark.asyncio
async def test_echo_provider_returns_input():
    results = await EchoTranslationProvider().translate(make_batch())

    assert [(r.request_id, r.translated_text) for r in results] == [
        ("r0:fr", "hello"),
        ("r1:fr", "goodbye"),
    ]


@pytest.mark.asyncio
async def test_openai_provider_sends_ids_and_parses_response():
    client, endpoint = responses_client(json.dumps(TRANSLATIONS))
    provider = OpenAITranslationProvider(client=client)

    results = await provider.translate(make_batch())

    assert [(r.request_id, r.original_text, r.translated_text) for r in results] == [
        ("r0:fr", "hello", "bonjour"),
        ("r1:fr", "goodbye", "au revoir"),
    ]
    assert endpoint.kwargs["model"] == "gpt-4o-mini"
    payload = json.loads(endpoint.kwargs["input"][1]["content"][0]["text"])
    assert payload == {
        "source_language": "en",
        "target_language": "fr",
        "segments": [
            {"id": "r0:fr", "text": "hello"},
            {"id": "r1:fr", "text": "goodbye"},
        ],
    }


@pytest.mark.asyncio
async def test_openai_provider_strips_code_fences_and_honours_model():
    client, endpoint = responses_client("```json\n" + json.dumps(TRANSLATIONS) + "\n```")
    provider = OpenAITranslationProvider(client=client, default_model="base-model")

    results = await provider.translate(make_batch(), model="other-model")

    assert len(results) == 2
    assert endpoint.kwargs["model"] == "other-model"


@pytest.mark.asyncio
async def test_openai_provider_falls_back_to_output_text():
    response = SimpleNamespace(output=[], output_text=json.dumps(TRANSLATIONS["translations"]))
    client = SimpleNamespace(responses=FakeEndpoint(response))

    results = await OpenAITranslationProvider(client=client).translate(make_batch())

    assert [r.translated_text for r in results] == ["bonjour", "au revoir"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "text",
    [
        "not json at all",
        json.dumps({"something": "else"}),
        json.dumps({"translations": ["bonjour"]}),
        json.dumps({"translations": [{"id": "r0:fr"}]}),
    ],
)
async def test_openai_provider_rejects_malformed_responses(text):
    client, _ = responses_client(text)

    with pytest.raises(TranslationProviderError):
        await OpenAITranslationProvider(client=client).translate(make_batch())


@pytest.mark.asyncio
async def test_openai_provider_wraps_client_errors():
    client = SimpleNamespace(responses=FakeEndpoint(error=RuntimeError("rate limited")))

    with pytest.raises(TranslationProviderError, match="rate limited"):
        await OpenAITranslationProvider(client=client).translate(make_batch())


@pytest.mark.asyncio
async def test_legacy_provider_uses_structured_chat_output():
    message = SimpleNamespace(content=json.dumps(TRANSLATIONS))
    endpoint = FakeEndpoint(SimpleNamespace(choices=[SimpleNamespace(message=message)]))
    client = SimpleNamespace(chat=SimpleNamespace(completions=endpoint))

    results = await LegacyOpenAITranslationProvider(client=client).translate(make_batch())

    assert [r.translated_text for r in results] == ["bonjour", "au revoir"]
    assert endpoint.kwargs["response_format"] == TRANSLATION_SCHEMA
    assert endpoint.kwargs["temperature"] == 0


@pytest.mark.asyncio
async def test_legacy_provider_rejects_empty_choices():
    endpoint = FakeEndpoint(SimpleNamespace(choices=[]))
    client = SimpleNamespace(chat=SimpleNamespace(completions=endpoint))

    with pytest.raises(TranslationProviderError):
        await LegacyOpenAITranslationProvider(client=client).translate(make_batch())


def test_build_provider_by_name():
    assert isinstance(build_provider("echo"), EchoTranslationProvider)
    with pytest.raises(TranslationProviderConfigurationError):
        build_provider("babelfish")


def test_openai_provider_requires_api_key():
    settings = SimpleNamespace(LLM_PROVIDER="openai", OPENAI_API_KEY=None, CSVBABEL_MODEL=None)

    with pytest.raises(TranslationProviderConfigurationError, match="OPENAI_API_KEY"):
        build_provider("openai", settings)


def test_azure_provider_reports_missing_settings():
    settings = SimpleNamespace(
        LLM_PROVIDER="azure_openai",
        AZURE_OPENAI_API_KEY="key",
        AZURE_OPENAI_ENDPOINT=None,
        AZURE_OPENAI_API_VERSION=None,
        AZURE_OPENAI_DEPLOYMENT_NAME="deployment",
        CSVBABEL_MODEL=None,
    )

    with pytest.raises(TranslationProviderConfigurationError) as excinfo:
        build_provider("openai", settings)
    assert "AZURE_OPENAI_ENDPOINT" in str(excinfo.value)
    assert "AZURE_OPENAI_API_VERSION" in str(excinfo.value)
