import pytest
from unittest.mock import patch, MagicMock

from prpal.core.errors import ProviderError
from prpal.llms.litellm_client import LiteLLMClient
from prpal.llms.llm_factory import llm


@pytest.fixture
def client():
    return LiteLLMClient(timeout=30)


@pytest.fixture
def mock_completion():
    with patch("prpal.llms.litellm_client.litellm") as mock_litellm:
        yield mock_litellm


def _make_completion_response(content):
    mock_response = MagicMock()
    mock_response.choices = [MagicMock()]
    mock_response.choices[0].message.content = content
    return mock_response


def test_model_name_is_prefixed_with_provider():
    assert LiteLLMClient.model_name("anthropic", "claude-3-sonnet-20241022") == (
        "anthropic/claude-3-sonnet-20241022"
    )
    assert LiteLLMClient.model_name("openai", "openai/gpt-4o") == "openai/gpt-4o"


def test_complete_sends_a_single_user_message(client, mock_completion):
    mock_completion.completion.return_value = _make_completion_response("Hello there")

    result = client.complete("openai", "gpt-4o", "sk-test", "Say hello")

    assert result == "Hello there"
    mock_completion.completion.assert_called_once_with(
        model="openai/gpt-4o",
        messages=[{"role": "user", "content": "Say hello"}],
        timeout=30,
        api_key="sk-test",
    )


def test_complete_without_api_key_lets_litellm_resolve_it(client, mock_completion):
    mock_completion.completion.return_value = _make_completion_response("Hi")

    client.complete("anthropic", "claude-3-sonnet-20241022", None, "Say hello")

    call_kwargs = mock_completion.completion.call_args.kwargs
    assert "api_key" not in call_kwargs


def test_complete_api_error(client, mock_completion):
    mock_completion.completion.side_effect = Exception("API is down")

    with pytest.raises(ProviderError) as exc_info:
        client.complete("openai", "gpt-4o", "sk-test", "Say hello")

    assert "API is down" in exc_info.value.message


def test_complete_empty_reply(client, mock_completion):
    mock_completion.completion.return_value = _make_completion_response("")

    with pytest.raises(ProviderError):
        client.complete("openai", "gpt-4o", "sk-test", "Say hello")


def test_llm_factory_returns_a_singleton():
    assert isinstance(llm(), LiteLLMClient)
    assert llm() is llm()
