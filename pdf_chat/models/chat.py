"""
Chat models: answers, conversation entries and the per-document conversation log.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class ResponseSource(str, Enum):
    """Which responder produced an answer."""
    HEURISTIC = "heuristic"
    MODEL = "model"


class ConversationRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Answer:
    """Answer returned by the response orchestrator."""
    content: str
    source: ResponseSource
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ConversationEntry:
    """A single message in the conversation log."""
    role: ConversationRole
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    source: Optional[ResponseSource] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source.value if self.source else None
        }


class Conversation:
    """Append-only conversation log scoped to one document."""

    def __init__(self, document_id: Optional[str] = None):
        self.document_id = document_id
        self._entries: List[ConversationEntry] = []

    def add_user_message(self, content: str) -> ConversationEntry:
        return self.append(ConversationEntry(role=ConversationRole.USER, content=content))

    def add_answer(self, answer: Answer) -> ConversationEntry:
        return self.append(ConversationEntry(
            role=ConversationRole.ASSISTANT,
            content=answer.content,
            timestamp=answer.timestamp,
            source=answer.source
        ))

    def append(self, entry: ConversationEntry) -> ConversationEntry:
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> Tuple[ConversationEntry, ...]:
        return tuple(self._entries)

    def __iter__(self) -> Iterator[ConversationEntry]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
