from unittest.mock import MagicMock, patch

import pytest
import requests

from app.client import ERROR_REPLY, GREETING, ChatClientError, ChatTranscript, HttpTransport


class RecordingTransport:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    def __call__(self, message, history):
        self.requests.append((message, history))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_transcript_starts_with_greeting():
    transcript = ChatTranscript(RecordingTransport([]))
    assert [(m.role, m.content) for m in transcript.messages] == [("assistant", GREETING)]


def test_submit_sends_full_history_including_greeting():
    transport = RecordingTransport(["A", "B"])
    transcript = ChatTranscript(transport)
    transcript.submit("Q")
    transcript.submit("Q2")
    assert transport.requests[0] == ("Q", [{"role": "assistant", "content": GREETING}])
    assert transport.requests[1] == (
        "Q2",
        [
            {"role": "assistant", "content": GREETING},
            {"role": "user", "content": "Q"},
            {"role": "assistant", "content": "A"},
        ],
    )
    assert [m.content for m in transcript.messages][-2:] == ["Q2", "B"]


def test_blank_input_is_ignored():
    transport = RecordingTransport([])
    transcript = ChatTranscript(transport)
    assert transcript.submit("   ") is None
    assert transport.requests == []
    assert len(transcript.messages) == 1


def test_failure_adds_flagged_error_message():
    transcript = ChatTranscript(RecordingTransport([ChatClientError("quota exceeded"), "ok"]))
    reply = transcript.submit("Q")
    assert reply.error and reply.content == ERROR_REPLY
    assert transcript.last_error == "quota exceeded"
    transcript.submit("again")
    assert transcript.last_error is None
    assert transcript.messages[-1].content == "ok"


def _http_response(status, payload):
    resp = MagicMock()
    resp.ok = status < 400
    resp.json.return_value = payload
    return resp


def test_http_transport_posts_json():
    with patch("app.client.requests.post", return_value=_http_response(200, {"response": "hey"})) as post:
        assert HttpTransport("http://x/api/chat")("hi", []) == "hey"
    assert post.call_args.kwargs["json"] == {"message": "hi", "history": []}


def test_http_transport_raises_details():
    payload = {"error": "Failed to process your request", "details": "overloaded"}
    with patch("app.client.requests.post", return_value=_http_response(500, payload)):
        with pytest.raises(ChatClientError, match="overloaded"):
            HttpTransport("http://x/api/chat")("hi", [])


def test_http_transport_connection_error():
    with patch("app.client.requests.post", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(ChatClientError, match="refused"):
            HttpTransport("http://x/api/chat")("hi", [])


@pytest.mark.parametrize("payload", [[], "oops", None])
def test_http_transport_non_object_error_body(payload):
    with patch("app.client.requests.post", return_value=_http_response(502, payload)):
        with pytest.raises(ChatClientError, match="Failed to get response"):
            HttpTransport("http://x/api/chat")("hi", [])
