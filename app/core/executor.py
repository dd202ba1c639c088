"""
Request executor: send the current message (single-turn or via a replayed session),
retrying with backoff on overload and switching model once as a last resort.
"""
import logging
import time
from typing import Callable

from app.core.backend import GenerativeBackend, ModelHandle, normalize_model_id
from app.core.config import GenerationConfig, RetryPolicy
from app.core.conversation import ConversationTurn
from app.core.errors import is_transient

logger = logging.getLogger(__name__)


class RequestExecutor:
    def __init__(
        self,
        backend: GenerativeBackend,
        generation_config: GenerationConfig | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        transient: Callable[[BaseException], bool] = is_transient,
    ):
        self.backend = backend
        self.generation_config = generation_config or GenerationConfig()
        self.retry_policy = retry_policy or RetryPolicy()
        self.sleep = sleep
        self.transient = transient

    def execute(self, model: ModelHandle, message: str, conversation: list[ConversationTurn]) -> str:
        """Return the model's reply text. Non-overload errors propagate untouched."""
        send = self._prepare(model, message, conversation)
        try:
            return send()
        except Exception as e:
            if not self.transient(e):
                raise
            logger.warning("Model %s appears overloaded, retrying with backoff then attempting model switch: %s", model.model_id, e)
            last_error: Exception = e

        for attempt, delay in enumerate(self.retry_policy.delays(), start=1):
            self.sleep(delay)
            try:
                return send()
            except Exception as e:
                logger.warning("Retry %d on %s failed: %s", attempt, model.model_id, e)
                last_error = e

        alternative = self._alternative_model(model)
        if alternative is None:
            raise last_error
        logger.info("Switching to alternative model due to overload: %s", alternative)
        replacement = self.backend.instantiate(alternative)
        # One attempt only on the replacement model
        return self._prepare(replacement, message, conversation)()

    def _prepare(self, model: ModelHandle, message: str, conversation: list[ConversationTurn]) -> Callable[[], str]:
        """Build the send for this model. With history, opens a session and replays user turns first."""
        if not conversation:
            return lambda: self.backend.generate(model, message)

        session = self.backend.open_session(model, self.generation_config)
        # Assistant turns are not sent; the session produces its own replies to each user turn
        for turn in conversation:
            if turn.role == "user":
                session.send(turn.text)
        return lambda: session.send(message)

    def _alternative_model(self, current: ModelHandle) -> str | None:
        try:
            models = self.backend.list_models()
        except Exception as e:
            logger.error("ListModels failed during overload fallback: %s", e)
            return None
        for m in models:
            model_id = normalize_model_id(m.id)
            if model_id and model_id != current.model_id:
                return model_id
        return None
