import httpx
import openai
import pytest

from lyricmind_pipeline import embeddings


class DummyEmbeddingItem:
    def __init__(self, vec):
        self.embedding = vec


class DummyResponse:
    def __init__(self, vectors):
        self.data = [DummyEmbeddingItem(v) for v in vectors]


class RecordingClient:
    """
    Fake OpenAI client recording calls to embeddings.create.

    responses: one list of vectors per expected call.
    """
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

        class _Embeddings:
            def __init__(self, outer):
                self._outer = outer

            def create(self, model, input):
                self._outer.calls.append({"model": model, "input": input})
                if not self._outer.responses:
                    raise RuntimeError("No more fake responses configured")
                return DummyResponse(self._outer.responses.pop(0))

        self.embeddings = _Embeddings(self)


@pytest.fixture(autouse=True)
def real_mode(monkeypatch):
    monkeypatch.setattr(embeddings, "USE_FAKE_EMBEDDINGS", False)


def test_embed_texts_empty_returns_empty(monkeypatch):
    """Empty input returns [] without touching the client."""
    class ExplodingClient:
        class _Embeddings:
            def create(self, *args, **kwargs):
                raise AssertionError("embeddings.create should not be called")
        embeddings = _Embeddings()

    monkeypatch.setattr(embeddings, "client", ExplodingClient())

    assert embeddings.embed_texts([]) == []


def test_single_batch_returns_one_vector_per_text(monkeypatch):
    fake_client = RecordingClient(responses=[
        [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]],
    ])
    monkeypatch.setattr(embeddings, "client", fake_client)

    texts = ["Title: A\nArtist: B\nLyrics: C\n", "Title: D\nArtist: E\nLyrics: F\n"]
    vectors = embeddings.embed_texts(texts, batch_size=10)

    assert vectors == [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]
    assert len(fake_client.calls) == 1
    assert fake_client.calls[0]["input"] == texts
    assert fake_client.calls[0]["model"] == embeddings.EMBEDDING_MODEL


def test_batch_size_respected(monkeypatch):
    fake_client = RecordingClient(responses=[
        [[0.0, 0.1], [0.0, 0.2]],
        [[0.0, 0.3], [0.0, 0.4]],
        [[0.0, 0.5]],
    ])
    monkeypatch.setattr(embeddings, "client", fake_client)

    vectors = embeddings.embed_texts(["t1", "t2", "t3", "t4", "t5"], batch_size=2)

    assert [len(c["input"]) for c in fake_client.calls] == [2, 2, 1]
    assert len(vectors) == 5


def test_inconsistent_dimension_raises(monkeypatch):
    fake_client = RecordingClient(responses=[[[0.1, 0.2, 0.3], [0.4, 0.5]]])
    monkeypatch.setattr(embeddings, "client", fake_client)

    with pytest.raises(ValueError, match="Inconsistent embedding dimension"):
        embeddings.embed_texts(["a", "b"], batch_size=10)


def test_api_error_is_reraised(monkeypatch):
    class ErrorClient:
        class _Embeddings:
            def create(self, *args, **kwargs):
                raise RuntimeError("Simulated API failure")
        embeddings = _Embeddings()

    monkeypatch.setattr(embeddings, "client", ErrorClient())

    with pytest.raises(RuntimeError, match="Simulated API failure"):
        embeddings.embed_texts(["a"])


def test_long_lyrics_are_truncated_before_sending(monkeypatch):
    fake_client = RecordingClient(responses=[[[0.1, 0.2]]])
    monkeypatch.setattr(embeddings, "client", fake_client)

    embeddings.embed_texts(["la " * 10000], max_chars=1000)

    sent_text = fake_client.calls[0]["input"][0]
    assert len(sent_text) <= 1000
    # cut lands on a word boundary
    assert not sent_text.endswith("l")


def test_truncate_keeps_short_text():
    assert embeddings._truncate_for_embedding("short", max_chars=100) == "short"
    assert embeddings._truncate_for_embedding("", max_chars=100) == ""


def test_fake_embeddings_mode_skips_client(monkeypatch):
    monkeypatch.setattr(embeddings, "USE_FAKE_EMBEDDINGS", True)
    monkeypatch.setattr(embeddings, "client", None)

    vectors = embeddings.embed_texts(["a", "b"])

    assert vectors == [[0.0] * embeddings.FAKE_EMBEDDING_DIM] * 2
    assert embeddings.client is None


def _rate_limit_error(message="slow down"):
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    response = httpx.Response(429, request=request)
    return openai.RateLimitError(message, response=response, body=None)


def test_retry_on_rate_limit_then_succeeds(monkeypatch):
    calls = {"n": 0}

    def flaky_embed_texts(texts, **kwargs):
        calls["n"] += 1
        if calls["n"] == 1:
            raise _rate_limit_error()
        return [[1.0] for _ in texts]

    monkeypatch.setattr(embeddings, "embed_texts", flaky_embed_texts)
    monkeypatch.setattr(embeddings.time, "sleep", lambda s: None)

    assert embeddings.embed_texts_with_retry(["a"]) == [[1.0]]
    assert calls["n"] == 2


def test_retry_gives_up_on_insufficient_quota(monkeypatch):
    calls = {"n": 0}

    def quota_embed_texts(texts, **kwargs):
        calls["n"] += 1
        raise _rate_limit_error("insufficient_quota: check your plan")

    monkeypatch.setattr(embeddings, "embed_texts", quota_embed_texts)
    monkeypatch.setattr(embeddings.time, "sleep", lambda s: None)

    with pytest.raises(openai.RateLimitError):
        embeddings.embed_texts_with_retry(["a"])
    assert calls["n"] == 1
