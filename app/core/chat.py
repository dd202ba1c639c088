"""Chat service: resolve model -> build conversation -> execute, and shape the outcome."""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from app.core.backend import GenerativeBackend
from app.core.config import Settings
from app.core.conversation import build_conversation
from app.core.errors import error_message
from app.core.executor import RequestExecutor
from app.core.resolver import ModelResolver

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to process your request"


@dataclass(frozen=True)
class ChatSuccess:
    text: str


@dataclass(frozen=True)
class ChatFailure:
    error_kind: str
    detail: str


ChatResult = ChatSuccess | ChatFailure


class ChatService:
    """One instance per app; all per-request state lives inside reply()."""

    def __init__(
        self,
        backend: GenerativeBackend,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.backend = backend
        self.settings = settings
        self.resolver = ModelResolver(backend)
        self.executor = RequestExecutor(
            backend,
            generation_config=settings.generation_config,
            retry_policy=settings.retry_policy,
            sleep=sleep,
        )

    def reply(self, message: str, history: Iterable[Any]) -> ChatResult:
        try:
            model = self.resolver.resolve(self.settings.gemini_model)
            conversation = build_conversation(history)
            text = self.executor.execute(model, message, conversation)
        except Exception as e:
            logger.exception("Error processing chat request: %s", e)
            return ChatFailure(error_kind=type(e).__name__, detail=error_message(e))
        return ChatSuccess(text=text)
