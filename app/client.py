"""
Client side of /api/chat: transcript state plus an HTTP transport.

The transcript is seeded with a local greeting and always sends the full history;
dropping that greeting is the server's job.
"""
import logging
from dataclasses import dataclass
from typing import Callable

import requests

logger = logging.getLogger(__name__)

GREETING = "Hello! I'm Gemini, an AI assistant. How can I help you today?"
ERROR_REPLY = "Sorry, I encountered an error. Please try again."

# (message, history) -> reply text; raises on failure
Transport = Callable[[str, list[dict]], str]


class ChatClientError(Exception):
    pass


@dataclass(frozen=True)
class TranscriptMessage:
    role: str
    content: str
    error: bool = False

    def to_payload(self) -> dict:
        return {"role": self.role, "content": self.content}


class HttpTransport:
    def __init__(self, url: str = "http://127.0.0.1:8000/api/chat", timeout: float = 120.0):
        self.url = url
        self.timeout = timeout

    def __call__(self, message: str, history: list[dict]) -> str:
        try:
            resp = requests.post(self.url, json={"message": message, "history": history}, timeout=self.timeout)
        except requests.RequestException as e:
            raise ChatClientError(str(e)) from e
        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}
        if not resp.ok:
            raise ChatClientError(data.get("details") or data.get("error") or "Failed to get response")
        return data.get("response", "")


class ChatTranscript:
    def __init__(self, transport: Transport, greeting: str = GREETING):
        self.transport = transport
        self.messages: list[TranscriptMessage] = [TranscriptMessage("assistant", greeting)]
        self.last_error: str | None = None

    def submit(self, text: str) -> TranscriptMessage | None:
        """Send one user message. Returns the appended assistant message, or None for blank input."""
        if not text.strip():
            return None
        self.last_error = None
        history = [m.to_payload() for m in self.messages]
        self.messages.append(TranscriptMessage("user", text))
        try:
            reply = TranscriptMessage("assistant", self.transport(text, history))
        except Exception as e:
            logger.error("Chat request failed: %s", e)
            self.last_error = str(e) or "An unknown error occurred"
            reply = TranscriptMessage("assistant", ERROR_REPLY, error=True)
        self.messages.append(reply)
        return reply
