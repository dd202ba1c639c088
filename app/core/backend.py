"""
Generative backend: the one seam between the chat core and the Gemini API.

The core only talks to GenerativeBackend (instantiate / list_models / generate / open_session),
so tests swap in a fake and the provider wire details stay in GeminiBackend.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import requests

from app.core.config import GenerationConfig
from app.core.errors import CatalogUnavailable, Overloaded, UpstreamError, error_message, is_transient, status_code_of

logger = logging.getLogger(__name__)

MODEL_PREFIX = "models/"
# Guard against a catalog that keeps handing out page tokens
MAX_CATALOG_PAGES = 20


@dataclass(frozen=True)
class ModelHandle:
    model_id: str


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    supported_operations: frozenset[str] = field(default_factory=frozenset)


class ChatSession(Protocol):
    def send(self, text: str) -> str:
        ...


class GenerativeBackend(Protocol):
    """What the resolver and executor need from a provider."""

    def instantiate(self, model_id: str) -> ModelHandle:
        ...

    def list_models(self) -> list[ModelDescriptor]:
        ...

    def generate(self, model: ModelHandle, text: str) -> str:
        ...

    def open_session(self, model: ModelHandle, config: GenerationConfig) -> ChatSession:
        ...


def normalize_model_id(raw: str) -> str:
    """'models/gemini-2.5-flash' -> 'gemini-2.5-flash'; unprefixed ids pass through."""
    raw = str(raw).strip()
    if raw.startswith(MODEL_PREFIX):
        return raw[len(MODEL_PREFIX):]
    return raw


def _entry_id(entry: Any) -> str:
    if isinstance(entry, dict):
        for key in ("name", "id", "model"):
            if entry.get(key):
                return str(entry[key])
    return str(entry)


def parse_catalog(payload: Any) -> list[ModelDescriptor]:
    """Accept {"models": [...]} or a bare list. Ids keep their namespace prefix; callers normalize."""
    if isinstance(payload, list):
        entries = payload
    elif isinstance(payload, dict):
        entries = payload.get("models") or []
    else:
        entries = []
    out = []
    for entry in entries:
        methods = entry.get("supportedGenerationMethods") if isinstance(entry, dict) else None
        ops = frozenset(str(m) for m in methods) if isinstance(methods, list) else frozenset()
        out.append(ModelDescriptor(id=_entry_id(entry), supported_operations=ops))
    return out


def _response_text(response: Any) -> str:
    """Reply text, or UpstreamError naming the block/finish reason when the model produced none."""
    text = getattr(response, "text", None)
    if text is not None:
        return text
    reason = None
    feedback = getattr(response, "prompt_feedback", None)
    if feedback is not None and getattr(feedback, "block_reason", None):
        reason = f"prompt blocked: {feedback.block_reason}"
    else:
        candidates = getattr(response, "candidates", None) or []
        if candidates and getattr(candidates[0], "finish_reason", None):
            reason = f"finish reason: {candidates[0].finish_reason}"
    raise UpstreamError(f"Response contained no text ({reason or 'no candidates'})")


def _wrap_provider_error(exc: Exception) -> UpstreamError:
    cls = Overloaded if is_transient(exc) else UpstreamError
    return cls(error_message(exc), status_code=status_code_of(exc))


class GeminiChatSession:
    """Adapter over a google-genai chat; keeps the session's own turn history."""

    def __init__(self, chat: Any):
        self._chat = chat

    def send(self, text: str) -> str:
        try:
            response = self._chat.send_message(text)
        except Exception as e:
            raise _wrap_provider_error(e) from e
        return _response_text(response)


class GeminiBackend:
    """Gemini Developer API via google-genai, with the model catalog read over REST."""

    def __init__(self, api_key: str, api_base: str, timeout: float = 15.0, client: Any = None):
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def instantiate(self, model_id: str) -> ModelHandle:
        model_id = normalize_model_id(model_id)
        if not model_id:
            raise ValueError("model id must not be empty")
        # Fails for unknown ids or an invalid key; callers fall back to the catalog
        self._get_client().models.get(model=model_id)
        return ModelHandle(model_id)

    def list_models(self) -> list[ModelDescriptor]:
        url = f"{self.api_base}/models"
        params: dict[str, Any] = {"key": self.api_key, "pageSize": 1000}
        models: list[ModelDescriptor] = []
        for _ in range(MAX_CATALOG_PAGES):
            try:
                resp = requests.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                logger.error("ListModels request failed: %s", self._redact(str(e)))
                raise CatalogUnavailable(f"ListModels failed: {self._redact(str(e))}") from e
            if not resp.ok:
                logger.error("ListModels HTTP error: %s %s", resp.status_code, self._redact(resp.text[:500]))
                raise CatalogUnavailable(f"ListModels failed: {resp.status_code}", status_code=resp.status_code)
            try:
                payload = resp.json()
            except ValueError as e:
                raise CatalogUnavailable("ListModels returned a non-JSON body") from e
            models.extend(parse_catalog(payload))
            token = payload.get("nextPageToken") if isinstance(payload, dict) else None
            if not token:
                break
            params["pageToken"] = token
        logger.info("Discovered models count: %d", len(models))
        return models

    def generate(self, model: ModelHandle, text: str) -> str:
        try:
            response = self._get_client().models.generate_content(model=model.model_id, contents=text)
        except Exception as e:
            raise _wrap_provider_error(e) from e
        return _response_text(response)

    def open_session(self, model: ModelHandle, config: GenerationConfig) -> ChatSession:
        from google.genai import types

        chat = self._get_client().chats.create(
            model=model.model_id,
            config=types.GenerateContentConfig(
                temperature=config.temperature,
                top_p=config.top_p,
                top_k=config.top_k,
            ),
        )
        return GeminiChatSession(chat)

    def _redact(self, text: str) -> str:
        return text.replace(self.api_key, "***") if self.api_key else text
