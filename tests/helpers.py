"""Test doubles for the generative backend."""
from app.core.backend import ModelDescriptor, ModelHandle
from app.core.errors import UpstreamError


def overloaded(msg: str = "503 Service Unavailable: The model is overloaded.") -> UpstreamError:
    return UpstreamError(msg, status_code=503)


class FakeSession:
    def __init__(self, backend: "FakeBackend", model_id: str, config):
        self.backend = backend
        self.model_id = model_id
        self.config = config

    def send(self, text: str) -> str:
        self.backend.calls.append(("send", self.model_id, text))
        return self.backend._respond(self.model_id, text)


class FakeBackend:
    """Records every call. Replies are "<model>: <text>" unless a failure is scripted for (model, text)."""

    def __init__(self, catalog=None, instantiate_errors=None):
        self.catalog = catalog if catalog is not None else []
        self.instantiate_errors = dict(instantiate_errors or {})
        self.failures: dict[tuple[str, str], list[Exception]] = {}
        self.persistent: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple] = []
        self.sessions: list[FakeSession] = []

    def fail(self, model_id: str, text: str, *errors: Exception) -> None:
        self.failures.setdefault((model_id, text), []).extend(errors)

    def fail_always(self, model_id: str, text: str, error: Exception) -> None:
        self.persistent[(model_id, text)] = error

    def _respond(self, model_id: str, text: str) -> str:
        queue = self.failures.get((model_id, text))
        if queue:
            raise queue.pop(0)
        if (model_id, text) in self.persistent:
            raise self.persistent[(model_id, text)]
        return f"{model_id}: {text}"

    @property
    def sends(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("generate", "send")]

    def instantiate(self, model_id: str) -> ModelHandle:
        self.calls.append(("instantiate", model_id))
        if model_id in self.instantiate_errors:
            raise self.instantiate_errors[model_id]
        return ModelHandle(model_id)

    def list_models(self) -> list[ModelDescriptor]:
        self.calls.append(("list_models",))
        if isinstance(self.catalog, Exception):
            raise self.catalog
        return list(self.catalog)

    def generate(self, model: ModelHandle, text: str) -> str:
        self.calls.append(("generate", model.model_id, text))
        return self._respond(model.model_id, text)

    def open_session(self, model: ModelHandle, config) -> FakeSession:
        self.calls.append(("open_session", model.model_id))
        session = FakeSession(self, model.model_id, config)
        self.sessions.append(session)
        return session


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def chat_model(name: str, *methods: str) -> ModelDescriptor:
    return ModelDescriptor(id=name, supported_operations=frozenset(methods or ("generateContent",)))

