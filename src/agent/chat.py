"""Chat assistant: answers channel messages and records them in history."""

import logging
import uuid

from langchain_core.language_models.chat_models import BaseChatModel

from src.agent.graph import build_graph
from src.history.store import ConversationHistory
from src.models.message import MessageRecord
from src.retrieval.search import SearchEngine

logger = logging.getLogger(__name__)

HISTORY_TURNS = 10
BOT_AUTHOR_ID = "repochat"
BOT_AUTHOR_NAME = "repochat"


class ChatAssistant:
    """Answers questions in a channel using retrieval plus a chat model."""

    def __init__(
        self,
        search_engine: SearchEngine,
        history: ConversationHistory,
        llm: BaseChatModel,
        project_name: str,
    ):
        self._history = history
        self._graph = build_graph(search_engine, llm, project_name)

    def answer(
        self,
        channel_id: str,
        content: str,
        user_name: str,
        message_id: str | None = None,
    ) -> MessageRecord:
        """Answer a user message; both messages are stored in channel history."""
        # Prior turns only; the question itself goes in with the context block
        prior = self._history.recent_window(channel_id, limit=HISTORY_TURNS)

        question = MessageRecord(
            channel_id=channel_id,
            message_id=message_id or uuid.uuid4().hex,
            content=content,
            author_id=user_name,
            author_name=user_name,
        )
        self._history.append(question)

        state = {
            "query": content,
            "user_name": user_name,
            "history": [
                {"role": "assistant" if m.is_bot else "user", "content": m.content}
                for m in prior
            ],
            "retrieved_chunks": [],
            "exemplars": [],
            "answer": None,
        }
        result = self._graph.invoke(state)

        reply = MessageRecord(
            channel_id=channel_id,
            message_id=uuid.uuid4().hex,
            content=result["answer"],
            author_id=BOT_AUTHOR_ID,
            author_name=BOT_AUTHOR_NAME,
            is_bot=True,
            responds_to=question.message_id,
        )
        self._history.append(reply)
        logger.info("Answered %s in %s with %s", question.message_id, channel_id, reply.message_id)
        return reply
