from types import SimpleNamespace

import pytest

from chat_relay.llm.streaming import StreamState
from chat_relay.models.request import ChatMessage
from chat_relay.rag.prompt import PromptBuilder, PromptTemplates
from chat_relay.services.chat_service import ChatService


def _messages(*pairs):
    return [ChatMessage(role=role, content=content) for role, content in pairs]


def test_prepare_messages_puts_system_first():
    svc = ChatService(llm_client=SimpleNamespace(), prompt_builder=PromptBuilder("assistant"))

    prepared = svc.prepare_messages(_messages(("user", "Hi"), ("assistant", "Hello"), ("user", "Bye")))

    assert prepared[0] == {"role": "system", "content": PromptTemplates.ASSISTANT.template}
    assert [m["role"] for m in prepared[1:]] == ["user", "assistant", "user"]
    assert [m["content"] for m in prepared[1:]] == ["Hi", "Hello", "Bye"]


def test_prepare_messages_rejects_empty_conversation():
    svc = ChatService(llm_client=SimpleNamespace(), prompt_builder=PromptBuilder())

    with pytest.raises(ValueError):
        svc.prepare_messages([])


def test_generate_reply_returns_provider_text():
    class FakeLLM:
        model = "fake-model"

        def generate(self, messages, **kwargs):
            return "This is an answer"

    svc = ChatService(llm_client=FakeLLM(), prompt_builder=PromptBuilder())

    assert svc.generate_reply(_messages(("user", "Hello world"))) == "This is an answer"


def test_retrieval_uses_latest_message():
    seen = []

    def retrieve(query, top_k=None):
        seen.append(query)
        return [{"text": "first"}, {"text": "second"}, {"text": "third"}]

    svc = ChatService(
        llm_client=SimpleNamespace(),
        prompt_builder=PromptBuilder("fate"),
        retriever=SimpleNamespace(retrieve=retrieve),
    )

    prepared = svc.prepare_messages(_messages(("user", "old question"), ("assistant", "answer"), ("user", "new question")))

    assert seen == ["new question"]
    system = prepared[0]["content"]
    assert system.startswith(PromptTemplates.FATE.template)
    assert system.endswith("first\n\nsecond\n\nthird")
    assert svc.rag_enabled


def test_open_stream_yields_encoded_chunks():
    class FakeLLMStream:
        model = "fake-model"

        def stream(self, messages, **kwargs):
            return iter(["chunk1", "chunk2"])

    svc = ChatService(llm_client=FakeLLMStream(), prompt_builder=PromptBuilder())

    relay = svc.open_stream(_messages(("user", "Hi")))
    items = list(relay)

    assert items == [b"chunk1", b"chunk2"]
    assert relay.state is StreamState.COMPLETED


def test_open_stream_raises_before_streaming():
    class FailingLLM:
        model = "fake-model"

        def stream(self, messages, **kwargs):
            raise RuntimeError("rate limited")

    svc = ChatService(llm_client=FailingLLM(), prompt_builder=PromptBuilder())

    with pytest.raises(RuntimeError, match="rate limited"):
        svc.open_stream(_messages(("user", "Hi")))


def test_unknown_system_prompt_rejected():
    with pytest.raises(ValueError):
        PromptBuilder("pirate")
