"""Per-channel conversation history backed by SQLAlchemy.

Bot replies and the user messages that triggered them are kept so the
feedback loop can find which question an answer was given to.
"""

import logging
from pathlib import Path

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from src.models.message import MessageRecord, utcnow

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_MAX_MESSAGES = 100


class MessageHistoryRow(Base):
    __tablename__ = "message_history"
    __table_args__ = (
        UniqueConstraint("channel_id", "message_id", name="message_history_channel_message_idx"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel_id = Column(String(64), nullable=False, index=True)
    message_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    author_id = Column(String(64), nullable=False)
    author_name = Column(String(255), nullable=False)
    is_bot = Column(Boolean, nullable=False, default=False)
    responds_to = Column(String(64), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def to_record(self) -> MessageRecord:
        return MessageRecord(
            channel_id=self.channel_id,
            message_id=self.message_id,
            content=self.content,
            author_id=self.author_id,
            author_name=self.author_name,
            is_bot=self.is_bot,
            responds_to=self.responds_to,
            created_at=self.created_at,
        )


def create_history_engine(url: str):
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if url in ("sqlite://", "sqlite:///:memory:", ":memory:"):
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.startswith("sqlite:///"):
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


class ConversationHistory:
    """Stores channel messages, keeping only the newest ``max_messages`` per channel."""

    def __init__(self, url: str = "sqlite:///./data/history.db", max_messages: int = DEFAULT_MAX_MESSAGES):
        if max_messages <= 0:
            raise ValueError("max_messages must be > 0")
        self._url = url
        self.max_messages = max_messages
        self._engine = None
        self._sessions = None

    def open(self) -> "ConversationHistory":
        """Connect and create the history table if needed."""
        if self._engine is None:
            self._engine = create_history_engine(self._url)
            Base.metadata.create_all(bind=self._engine)
            self._sessions = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessions = None

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc_info):
        self.close()

    def _session(self):
        if self._sessions is None:
            raise RuntimeError("ConversationHistory is not open")
        return self._sessions()

    def append(self, record: MessageRecord) -> bool:
        """Store a message and prune the channel's overflow.

        Returns False if the message was already stored.
        """
        with self._session() as session:
            session.add(MessageHistoryRow(
                channel_id=record.channel_id,
                message_id=record.message_id,
                content=record.content,
                author_id=record.author_id,
                author_name=record.author_name,
                is_bot=record.is_bot,
                responds_to=record.responds_to,
                created_at=record.created_at,
            ))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.debug("Message %s already in history", record.message_id)
                return False

            overflow = session.scalars(
                select(MessageHistoryRow.id)
                .where(MessageHistoryRow.channel_id == record.channel_id)
                .order_by(MessageHistoryRow.created_at.desc(), MessageHistoryRow.id.desc())
                .offset(self.max_messages)
            ).all()
            if overflow:
                session.execute(delete(MessageHistoryRow).where(MessageHistoryRow.id.in_(overflow)))
                session.commit()
                logger.debug("Pruned %d messages from channel %s", len(overflow), record.channel_id)
        return True

    def recent_window(self, channel_id: str, limit: int = DEFAULT_MAX_MESSAGES) -> list[MessageRecord]:
        """Latest ``limit`` messages of a channel, oldest first."""
        with self._session() as session:
            rows = session.scalars(
                select(MessageHistoryRow)
                .where(MessageHistoryRow.channel_id == channel_id)
                .order_by(MessageHistoryRow.created_at.desc(), MessageHistoryRow.id.desc())
                .limit(limit)
            ).all()
            return [row.to_record() for row in reversed(rows)]

    def get_message(self, channel_id: str, message_id: str) -> MessageRecord | None:
        with self._session() as session:
            row = session.scalars(
                select(MessageHistoryRow).where(
                    MessageHistoryRow.channel_id == channel_id,
                    MessageHistoryRow.message_id == message_id,
                )
            ).first()
            return row.to_record() if row else None

    def clear_channel(self, channel_id: str) -> None:
        with self._session() as session:
            session.execute(delete(MessageHistoryRow).where(MessageHistoryRow.channel_id == channel_id))
            session.commit()
