"""Conversation message data model."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class MessageRecord:
    """A chat message stored in a channel's conversation history."""

    channel_id: str
    message_id: str
    content: str
    author_id: str
    author_name: str
    is_bot: bool = False
    responds_to: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if not self.channel_id:
            raise ValueError("channel_id must not be empty")
        if not self.message_id:
            raise ValueError("message_id must not be empty")
