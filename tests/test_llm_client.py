from types import SimpleNamespace

import pytest

from chat_relay.llm.client import EchoClient, GroqClient, LLMClientFactory


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    def __init__(self, chunks):
        self.chunks = chunks
        self.closed = False

    def __iter__(self):
        return iter(self.chunks)

    def close(self):
        self.closed = True


def make_groq(create, **kwargs):
    client = GroqClient(api_key="test-key", model="llama-3.1-8b-instant", **kwargs)
    client.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client


def test_generate_returns_first_choice():
    calls = []

    def create(**params):
        calls.append(params)
        return _completion("Summary: yes.")

    client = make_groq(create)
    messages = [{"role": "system", "content": "s"}, {"role": "user", "content": "q"}]

    assert client.generate(messages) == "Summary: yes."
    assert calls[0] == {"model": "llama-3.1-8b-instant", "messages": messages}


def test_generate_missing_content_is_empty_string():
    assert make_groq(lambda **p: _completion(None)).generate([]) == ""
    assert make_groq(lambda **p: SimpleNamespace(choices=[])).generate([]) == ""


def test_generate_passes_overrides():
    calls = []

    def create(**params):
        calls.append(params)
        return _completion("ok")

    make_groq(create, temperature=0.2, max_tokens=256).generate([])

    assert calls[0]["temperature"] == 0.2
    assert calls[0]["max_tokens"] == 256


def test_generate_propagates_provider_errors():
    def create(**params):
        raise RuntimeError("rate limit")

    with pytest.raises(RuntimeError):
        make_groq(create).generate([])


def test_stream_yields_deltas_and_closes():
    stream = FakeStream([_chunk("Hel"), _chunk(None), SimpleNamespace(choices=[]), _chunk("lo")])
    calls = []

    def create(**params):
        calls.append(params)
        return stream

    deltas = make_groq(create).stream([{"role": "user", "content": "hi"}])

    # Request is sent before iteration starts
    assert calls[0]["stream"] is True
    assert [d for d in deltas if d] == ["Hel", "lo"]

    deltas.close()
    assert stream.closed


def test_stream_open_failure_raises_immediately():
    def create(**params):
        raise ConnectionError("unreachable")

    with pytest.raises(ConnectionError):
        make_groq(create).stream([])


def test_missing_api_key_rejected():
    with pytest.raises(ValueError):
        GroqClient(api_key=None)


def test_echo_client_replies_with_last_user_message():
    client = EchoClient(chunk_size=3)
    messages = [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "first"},
        {"role": "assistant", "content": "reply"},
        {"role": "user", "content": "Hello"},
    ]

    assert client.generate(messages) == "Hello"
    assert list(client.stream(messages)) == ["Hel", "lo"]


def test_factory_rejects_unknown_type():
    with pytest.raises(ValueError):
        LLMClientFactory.create_client("carrier-pigeon")


def test_factory_creates_echo_client():
    assert isinstance(LLMClientFactory.create_client("echo"), EchoClient)
