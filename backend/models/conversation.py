"""Conversation data models."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class Role(str, Enum):
    """Author of a chat turn."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat_z(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ChatTurn:
    """A single message exchanged in a conversation."""
    role: Role
    content: str
    timestamp: datetime = field(default_factory=utc_now)

    def as_message(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class ConversationContext:
    """
    Ordered, oldest-to-newest view of a conversation used to answer one request.

    Rebuilt for every request; the newest turn is always the user's message.
    """
    turns: Tuple[ChatTurn, ...]
    user_id: str = "anonymous"
    session_id: str = "default"

    @classmethod
    def build(
        cls,
        user_turn: ChatTurn,
        history: Iterable[ChatTurn] = (),
        system_prompt: Optional[str] = None,
        user_id: str = "anonymous",
        session_id: str = "default",
    ) -> "ConversationContext":
        turns: List[ChatTurn] = []
        if system_prompt:
            turns.append(ChatTurn(role=Role.SYSTEM, content=system_prompt))
        turns.extend(turn for turn in history if turn.role is not Role.SYSTEM)
        turns.append(user_turn)
        return cls(turns=tuple(turns), user_id=user_id, session_id=session_id)

    @property
    def latest_user_message(self) -> str:
        for turn in reversed(self.turns):
            if turn.role is Role.USER:
                return turn.content
        return ""

    @property
    def system_turn(self) -> Optional[ChatTurn]:
        if self.turns and self.turns[0].role is Role.SYSTEM:
            return self.turns[0]
        return None

    @property
    def history(self) -> Tuple[ChatTurn, ...]:
        """Turns between the system instruction and the newest user turn."""
        start = 1 if self.system_turn else 0
        return self.turns[start:-1]

    def with_history(self, history: Iterable[ChatTurn]) -> "ConversationContext":
        """Return a copy with the middle of the conversation replaced."""
        turns: List[ChatTurn] = []
        if self.system_turn:
            turns.append(self.system_turn)
        turns.extend(history)
        turns.append(self.turns[-1])
        return replace(self, turns=tuple(turns))

    def as_messages(self) -> List[Dict[str, str]]:
        return [turn.as_message() for turn in self.turns]


@dataclass(frozen=True)
class ThreadBinding:
    """Remote assistant thread reused for a (user, session) pair."""
    user_id: str
    session_id: str
    thread_id: str
    created_at: datetime = field(default_factory=utc_now)

    @property
    def thread_key(self) -> str:
        return thread_key(self.user_id, self.session_id)


def thread_key(user_id: str, session_id: str) -> str:
    return f"{user_id}-{session_id}"
