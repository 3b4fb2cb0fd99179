import copy

import pytest
import requests

from chat_relay.client.session import APOLOGY, ChatClientError, ChatSession


class FakeResponse:
    def __init__(self, status_code=200, json_body=None, chunks=None, fail_after=None):
        self.status_code = status_code
        self._json = json_body
        self._chunks = chunks or []
        self._fail_after = fail_after
        self.encoding = "utf-8"
        self.closed = False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._json is None:
            raise ValueError("no json body")
        return self._json

    def iter_content(self, chunk_size=None, decode_unicode=False):
        for i, chunk in enumerate(self._chunks):
            if i == self._fail_after:
                raise requests.exceptions.ChunkedEncodingError("connection broken")
            yield chunk

    def close(self):
        self.closed = True


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, json=None, timeout=None, stream=False):
        self.posts.append({"url": url, "json": copy.deepcopy(json), "stream": stream})
        if self.error:
            raise self.error
        return self.response


def test_send_appends_reply():
    http = FakeHttp(FakeResponse(json_body={"reply": "Hello back"}))
    session = ChatSession(base_url="http://relay/", http=http)

    reply = session.send("Hello")

    assert reply == "Hello back"
    assert http.posts[0]["url"] == "http://relay/api/chat"
    assert http.posts[0]["json"] == {"messages": [{"role": "user", "content": "Hello"}]}
    assert session.messages == [
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Hello back"},
    ]


def test_send_posts_full_history():
    http = FakeHttp(FakeResponse(json_body={"reply": "ok"}))
    session = ChatSession(http=http)

    session.send("first")
    session.send("second")

    assert [m["content"] for m in http.posts[1]["json"]["messages"]] == ["first", "ok", "second"]


def test_send_failure_substitutes_apology():
    session = ChatSession(http=FakeHttp(error=requests.ConnectionError("refused")))

    reply = session.send("Hello")

    assert reply == APOLOGY
    assert session.messages[-1] == {"role": "assistant", "content": APOLOGY}


def test_send_server_error_substitutes_apology():
    http = FakeHttp(FakeResponse(status_code=500, json_body={"error": "Internal server error"}))
    session = ChatSession(http=http)

    assert session.send("Hello") == APOLOGY


def test_send_ignores_blank_input():
    http = FakeHttp()
    session = ChatSession(http=http)

    assert session.send("   ") is None
    assert http.posts == []
    assert session.messages == []


def test_send_stream_grows_placeholder():
    response = FakeResponse(chunks=["Sum", "mary", ": ok"])
    http = FakeHttp(response)
    session = ChatSession(http=http)
    updates = []

    reply = session.send_stream("Hello", on_update=updates.append)

    assert reply == "Summary: ok"
    assert updates == ["Sum", "Summary", "Summary: ok"]
    assert session.messages[-1] == {"role": "assistant", "content": "Summary: ok"}
    assert http.posts[0]["url"].endswith("/api/stream")
    assert http.posts[0]["stream"] is True
    # The placeholder is not part of the request
    assert http.posts[0]["json"] == {"messages": [{"role": "user", "content": "Hello"}]}
    assert response.closed


def test_send_stream_truncated_raises_and_keeps_partial():
    session = ChatSession(http=FakeHttp(FakeResponse(chunks=["partial ", "reply", "lost"], fail_after=2)))

    with pytest.raises(ChatClientError):
        session.send_stream("Hello")

    assert session.messages[-1] == {"role": "assistant", "content": "partial reply"}


def test_send_stream_request_failure_substitutes_apology():
    session = ChatSession(http=FakeHttp(FakeResponse(status_code=400)))

    reply = session.send_stream("Hello")

    assert reply == APOLOGY
    assert session.messages[-1] == {"role": "assistant", "content": APOLOGY}


def test_render_and_reset():
    session = ChatSession(http=FakeHttp(FakeResponse(json_body={"reply": "Tips: - Save - Invest"})))
    reply = session.send("tips?")

    assert session.render(reply) == "Tips:\n- Save\n- Invest"

    session.reset()
    assert session.messages == []
