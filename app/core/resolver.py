"""Model resolution: use the preferred model, or discover a chat-capable one from the catalog."""
import logging
import re

from app.core.backend import GenerativeBackend, ModelDescriptor, ModelHandle, normalize_model_id
from app.core.errors import ModelUnavailable

logger = logging.getLogger(__name__)

GENERATE_OPERATIONS = frozenset({"generateContent", "batchGenerateContent"})
CHAT_NAME_PATTERN = re.compile(r"gemini|bison|text-bison|chat", re.IGNORECASE)


def is_chat_capable(model: ModelDescriptor) -> bool:
    return bool(model.supported_operations & GENERATE_OPERATIONS) and bool(CHAT_NAME_PATTERN.search(model.id))


def first_chat_capable(models: list[ModelDescriptor]) -> ModelDescriptor | None:
    """First match in catalog order; there is deliberately no ranking."""
    for m in models:
        if is_chat_capable(m):
            return m
    return None


class ModelResolver:
    def __init__(self, backend: GenerativeBackend):
        self.backend = backend

    def resolve(self, preferred: str) -> ModelHandle:
        try:
            return self.backend.instantiate(preferred)
        except Exception as err:
            logger.warning("Preferred model %s unavailable, attempting to discover a supported model: %s", preferred, err)
            return self._fallback(preferred, err)

    def _fallback(self, preferred: str, err: Exception) -> ModelHandle:
        try:
            available = self.backend.list_models()
        except Exception as list_err:
            logger.error("Failed to list models for fallback discovery: %s", list_err)
            raise ModelUnavailable(preferred, cause=err) from err

        candidate = first_chat_capable(available)
        if candidate is None:
            logger.error("No suitable fallback model found among %d listed model(s)", len(available))
            raise ModelUnavailable(preferred, cause=err) from err

        fallback_id = normalize_model_id(candidate.id)
        logger.info("Falling back to model (raw): %s => using: %s", candidate.id, fallback_id)
        try:
            return self.backend.instantiate(fallback_id)
        except Exception as fallback_err:
            logger.error("Fallback model %s could not be instantiated: %s", fallback_id, fallback_err)
            raise
