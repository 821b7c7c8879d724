"""Unit tests for the embedding layer: dimensions, cache, retry and HTTP clients."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import FakeEmbeddingClient
from nlweb_search.config import ProviderConfig
from nlweb_search.embeddings.anthropic_client import AnthropicEmbeddingClient
from nlweb_search.embeddings.cache import InMemoryEmbeddingCache, make_cache_key
from nlweb_search.embeddings.factory import (
    available_models,
    available_providers,
    create_embedding_client,
    create_embedding_provider,
    default_model,
)
from nlweb_search.embeddings.gemini_client import GeminiEmbeddingClient
from nlweb_search.embeddings.ollama_client import OllamaEmbeddingClient
from nlweb_search.embeddings.openai_client import OpenAIEmbeddingClient
from nlweb_search.embeddings.provider import MAX_INPUT_CHARS, EmbeddingProvider
from nlweb_search.embeddings.retry import RetryExecutor, is_retryable
from nlweb_search.errors import (
    ConfigError,
    ModelPullingError,
    PermanentProviderError,
    RetryExhaustedError,
    TransientProviderError,
)


def _response(status: int = 200, body: object = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {}
    resp.text = str(body)
    return resp


def _session(*responses: MagicMock) -> MagicMock:
    session = MagicMock()
    session.post.side_effect = list(responses)
    return session


# ── Dimension tables ───────────────────────────────────────────────────


class TestDimensions:
    @pytest.mark.parametrize(
        ("client", "model", "expected"),
        [
            (OpenAIEmbeddingClient("k"), "text-embedding-3-small", 1536),
            (OpenAIEmbeddingClient("k"), "text-embedding-3-large", 3072),
            (OpenAIEmbeddingClient("k"), "text-embedding-ada-002", 1536),
            (GeminiEmbeddingClient("k"), "embedding-001", 768),
            (OllamaEmbeddingClient(), "nomic-embed-text", 768),
            (OllamaEmbeddingClient(), "snowflake-arctic-embed2", 1024),
            (OllamaEmbeddingClient(), "granite-embedding", 1536),
            (AnthropicEmbeddingClient("k"), "voyage-3", 1024),
            (AnthropicEmbeddingClient("k"), "voyage-3-lite", 512),
        ],
    )
    def test_known_models(self, client, model: str, expected: int) -> None:
        assert client.get_dimension_for_model(model) == expected

    def test_unknown_model_defaults(self) -> None:
        assert OpenAIEmbeddingClient("k").get_dimension_for_model("other") == 1536
        assert AnthropicEmbeddingClient("k").get_dimension_for_model("other") == 1536
        assert GeminiEmbeddingClient("k").get_dimension_for_model("other") == 768
        assert OllamaEmbeddingClient().get_dimension_for_model("llama3") == 2048

    def test_flexible_voyage_dimension(self) -> None:
        client = AnthropicEmbeddingClient("k")
        assert client.get_dimension_for_model("voyage-3-large:2048") == 2048
        assert client.get_dimension_for_model("voyage-code-3:256") == 256
        # only listed sizes are honoured
        assert client.get_dimension_for_model("voyage-3-large:300") == 1536


# ── Cache ──────────────────────────────────────────────────────────────


class TestCache:
    def test_key_is_deterministic_and_scoped(self) -> None:
        key = make_cache_key("hello", "m", "openai")
        assert key == make_cache_key("hello", "m", "openai")
        assert key.startswith("nlweb_embedding_")
        assert key != make_cache_key("hello", "m", "gemini")
        assert key != make_cache_key("hello", "other", "openai")

    def test_entries_expire_lazily(self) -> None:
        now = [100.0]
        cache = InMemoryEmbeddingCache(clock=lambda: now[0])
        cache.set("k", [1.0, 2.0], ttl=10)
        assert cache.get("k") == [1.0, 2.0]

        now[0] = 110.0
        assert cache.get("k") is None
        assert len(cache) == 0


# ── EmbeddingProvider ──────────────────────────────────────────────────


class TestEmbeddingProvider:
    def test_second_call_is_served_from_cache(self, provider, fake_client) -> None:
        first = provider.get_embedding("sourdough starter")
        second = provider.get_embedding("sourdough starter")

        assert len(fake_client.calls) == 1
        assert first.values == second.values
        assert first.provider == "fake"
        assert first.model == "fake-model"

    def test_cache_disabled_always_calls_api(self, fake_client) -> None:
        provider = EmbeddingProvider(
            fake_client, cache=InMemoryEmbeddingCache(), cache_enabled=False
        )
        provider.get_embedding("x")
        provider.get_embedding("x")
        assert len(fake_client.calls) == 2

    def test_input_is_truncated(self, provider, fake_client) -> None:
        provider.get_embedding("a" * (MAX_INPUT_CHARS + 500))
        assert len(fake_client.calls[0]) == MAX_INPUT_CHARS

    def test_dimension_comes_from_client_table(self) -> None:
        provider = EmbeddingProvider(OpenAIEmbeddingClient("k", "text-embedding-3-large"))
        assert provider.get_dimension() == 3072
        assert provider.name == "openai"


# ── Retry ──────────────────────────────────────────────────────────────


@patch("nlweb_search.embeddings.retry.time.sleep")
class TestRetryExecutor:
    def test_succeeds_after_two_transient_failures(self, mock_sleep) -> None:
        operation = MagicMock(
            side_effect=[
                TransientProviderError("rate limit exceeded"),
                RuntimeError("HTTP 503 Service Unavailable"),
                [0.1, 0.2],
            ]
        )
        result = RetryExecutor(attempts=3, base_delay_ms=1000).run(operation, "text")

        assert result == [0.1, 0.2]
        assert operation.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_permanent_error_is_not_retried(self, mock_sleep) -> None:
        operation = MagicMock(side_effect=PermanentProviderError("HTTP 401: invalid key"))
        with pytest.raises(PermanentProviderError):
            RetryExecutor(attempts=3).run(operation)
        assert operation.call_count == 1
        mock_sleep.assert_not_called()

    def test_unrecognised_message_is_not_retried(self, mock_sleep) -> None:
        operation = MagicMock(side_effect=ValueError("bad input"))
        with pytest.raises(ValueError):
            RetryExecutor(attempts=3).run(operation)
        assert operation.call_count == 1

    def test_exhaustion_reports_last_error(self, mock_sleep) -> None:
        operation = MagicMock(side_effect=TransientProviderError("connection reset"))
        with pytest.raises(RetryExhaustedError) as excinfo:
            RetryExecutor(attempts=3, base_delay_ms=10).run(operation)

        assert operation.call_count == 3
        assert excinfo.value.attempts == 3
        assert "connection reset" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, TransientProviderError)
        # no sleep after the final attempt
        assert mock_sleep.call_count == 2

    def test_classification(self, mock_sleep) -> None:
        assert is_retryable(RuntimeError("Too Many Requests"))
        assert is_retryable(RuntimeError("socket closed"))
        assert is_retryable(RuntimeError("server overloaded"))
        assert not is_retryable(RuntimeError("invalid model"))
        assert not is_retryable(ConfigError("timeout missing"))
        assert not is_retryable(ModelPullingError("nomic-embed-text"))


# ── HTTP clients ───────────────────────────────────────────────────────


class TestOpenAIClient:
    def test_parses_first_embedding(self) -> None:
        session = _session(_response(200, {"data": [{"embedding": [0.1, 0.2]}]}))
        client = OpenAIEmbeddingClient("sk-test", session=session)

        assert client.generate_embedding("hi") == [0.1, 0.2]
        args, kwargs = session.post.call_args
        assert args[0] == "https://api.openai.com/v1/embeddings"
        assert kwargs["json"] == {"model": "text-embedding-3-small", "input": "hi"}
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"

    def test_missing_key_is_config_error(self) -> None:
        session = MagicMock()
        with pytest.raises(ConfigError):
            OpenAIEmbeddingClient("", session=session).generate_embedding("hi")
        session.post.assert_not_called()

    def test_auth_failure_is_permanent(self) -> None:
        body = {"error": {"message": "Incorrect API key"}}
        client = OpenAIEmbeddingClient("bad", session=_session(_response(401, body)))
        with pytest.raises(PermanentProviderError, match="Incorrect API key"):
            client.generate_embedding("hi")

    def test_server_error_is_transient(self) -> None:
        client = OpenAIEmbeddingClient("k", session=_session(_response(503, {"error": "down"})))
        with pytest.raises(TransientProviderError, match="HTTP 503"):
            client.generate_embedding("hi")

    def test_timeout_is_transient(self) -> None:
        session = MagicMock()
        session.post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(TransientProviderError):
            OpenAIEmbeddingClient("k", session=session).generate_embedding("hi")

    def test_malformed_body_is_permanent(self) -> None:
        client = OpenAIEmbeddingClient("k", session=_session(_response(200, {"data": []})))
        with pytest.raises(PermanentProviderError, match="Invalid response"):
            client.generate_embedding("hi")


class TestAnthropicClient:
    def test_accepts_top_level_embedding(self) -> None:
        client = AnthropicEmbeddingClient("k", session=_session(_response(200, {"embedding": [1.0]})))
        assert client.generate_embedding("hi") == [1.0]

    def test_flexible_model_sends_output_dimension(self) -> None:
        session = _session(_response(200, {"data": [{"embedding": [0.5]}]}))
        client = AnthropicEmbeddingClient("k", "voyage-3-large:512", session=session)

        assert client.generate_embedding("hi") == [0.5]
        assert session.post.call_args.kwargs["json"] == {
            "model": "voyage-3-large",
            "input": "hi",
            "output_dimension": 512,
        }


class TestGeminiClient:
    def test_calls_embed_content(self) -> None:
        session = _session(_response(200, {"embedding": {"values": [0.3, 0.4]}}))
        client = GeminiEmbeddingClient("g-key", session=session)

        assert client.generate_embedding("hi") == [0.3, 0.4]
        args, kwargs = session.post.call_args
        assert args[0].endswith("/models/embedding-001:embedContent?key=g-key")
        assert kwargs["json"] == {"content": {"parts": [{"text": "hi"}]}}


class TestOllamaClient:
    def test_embeds_when_model_present(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": [{"name": "nomic-embed-text:latest"}]})
        session.post.return_value = _response(200, {"embedding": [0.9, 0.8]})
        client = OllamaEmbeddingClient(session=session)

        assert client.generate_embedding("hi") == [0.9, 0.8]
        args, kwargs = session.post.call_args
        assert args[0] == "http://localhost:11434/api/embeddings"
        assert kwargs["json"] == {"model": "nomic-embed-text", "prompt": "hi"}

    def test_missing_model_reports_pulling(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": []})
        session.post.side_effect = requests.Timeout("pull still running")
        client = OllamaEmbeddingClient(session=session)

        with pytest.raises(ModelPullingError) as excinfo:
            client.generate_embedding("hi")
        assert excinfo.value.model == "nomic-embed-text"

        # while the pull runs no second pull is issued
        with pytest.raises(ModelPullingError):
            client.generate_embedding("hi")
        assert session.post.call_count == 1

    def test_stale_pull_is_sent_again(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": []})
        session.post.side_effect = requests.Timeout("pull still running")
        client = OllamaEmbeddingClient(session=session, pull_timeout=180.0)

        with patch("nlweb_search.embeddings.ollama_client.time.monotonic") as clock:
            clock.return_value = 1000.0
            with pytest.raises(ModelPullingError):
                client.ensure_model_available()

            clock.return_value = 1100.0
            with pytest.raises(ModelPullingError):
                client.ensure_model_available()
            assert session.post.call_count == 1

            clock.return_value = 1181.0
            with pytest.raises(ModelPullingError):
                client.ensure_model_available()
            assert session.post.call_count == 2

    def test_concurrent_callers_share_one_pull(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": []})
        session.post.side_effect = requests.Timeout("pull still running")
        client = OllamaEmbeddingClient(session=session)

        def attempt(_: int) -> str:
            try:
                client.ensure_model_available()
            except ModelPullingError:
                return "pulling"
            return "ready"

        with ThreadPoolExecutor(max_workers=4) as pool:
            outcomes = list(pool.map(attempt, range(8)))

        assert outcomes == ["pulling"] * 8
        assert session.post.call_count == 1

    def test_pull_then_embed(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": []})
        session.post.side_effect = [
            _response(200, {"status": "success"}),
            _response(200, {"embedding": [0.1]}),
        ]
        client = OllamaEmbeddingClient(session=session)

        assert client.generate_embedding("hi") == [0.1]
        pull_call = session.post.call_args_list[0]
        assert pull_call.args[0] == "http://localhost:11434/api/pull"
        assert pull_call.kwargs["json"] == {"name": "nomic-embed-text", "stream": False}

    def test_rejected_pull_is_permanent(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": []})
        session.post.return_value = _response(500, {"error": "no such model"})
        client = OllamaEmbeddingClient("does-not-exist", session=session)

        assert client.ensure_model_available() is False
        with pytest.raises(PermanentProviderError):
            client.generate_embedding("hi")

    def test_pulling_is_not_retried_by_provider(self) -> None:
        session = MagicMock()
        session.get.return_value = _response(200, {"models": []})
        session.post.side_effect = requests.Timeout("slow")
        provider = EmbeddingProvider(OllamaEmbeddingClient(session=session), retry=RetryExecutor(3, 0))

        with pytest.raises(ModelPullingError):
            provider.get_embedding("hi")
        assert session.post.call_count == 1


# ── Factory ────────────────────────────────────────────────────────────


class TestFactory:
    def test_creates_each_provider(self) -> None:
        for name, cls in [
            ("openai", OpenAIEmbeddingClient),
            ("anthropic", AnthropicEmbeddingClient),
            ("gemini", GeminiEmbeddingClient),
            ("ollama", OllamaEmbeddingClient),
        ]:
            client = create_embedding_client(ProviderConfig(provider=name, api_key="k"))
            assert isinstance(client, cls)
            assert client.model == default_model(name)

    def test_unknown_provider_is_config_error(self) -> None:
        with pytest.raises(ConfigError, match="Unknown embedding provider"):
            create_embedding_client(ProviderConfig(provider="cohere"))

    def test_provider_gets_cache_and_retry_settings(self) -> None:
        config = ProviderConfig(
            provider="openai",
            api_key="k",
            model="text-embedding-3-large",
            retry_attempts=5,
            retry_base_delay_ms=250,
        )
        provider = create_embedding_provider(config)

        assert provider.get_dimension() == 3072
        assert provider.cache_enabled is True
        assert provider.retry.attempts == 5
        assert provider.retry.base_delay_ms == 250

    def test_catalogue(self) -> None:
        assert set(available_providers()) == {"openai", "anthropic", "gemini", "ollama"}
        assert "voyage-3" in available_models("anthropic")
        assert available_models("unknown") == {}

    def test_fake_client_satisfies_protocol(self) -> None:
        provider = EmbeddingProvider(FakeEmbeddingClient(dimension=8))
        assert provider.get_dimension() == 8
        assert provider.get_embedding("x").dimension == 8
