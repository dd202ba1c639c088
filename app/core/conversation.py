"""Flat client history -> provider turns ("user" / "model")."""
from dataclasses import dataclass
from typing import Any, Iterable


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    parts: tuple[dict[str, str], ...]

    @property
    def text(self) -> str:
        return self.parts[0]["text"] if self.parts else ""

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [dict(p) for p in self.parts]}


def _field(msg: Any, name: str) -> str:
    value = msg.get(name) if isinstance(msg, dict) else getattr(msg, name, None)
    return "" if value is None else str(value)


def provider_role(role: str) -> str:
    return "user" if role == "user" else "model"


def build_conversation(history: Iterable[Any]) -> list[ConversationTurn]:
    """
    Drop a leading assistant greeting (index 0 only), then map roles 1:1 in order.
    Accepts dicts or objects with role/content. Never fails: unknown roles become "model".
    """
    turns = []
    for index, msg in enumerate(history):
        role = _field(msg, "role")
        if index == 0 and role == "assistant":
            continue
        turns.append(ConversationTurn(role=provider_role(role), parts=({"text": _field(msg, "content")},)))
    return turns
