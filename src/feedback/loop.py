"""Feedback loop: turns votes on bot answers into chunk ranking signal.

A vote on an answer is attributed to the chunks that retrieval returns for
the question behind that answer. The answer itself is kept as an exemplar
chunk carrying its own vote tally, so well-received replies can later be
shown to the model as examples.
"""

import logging

from src.history.store import ConversationHistory
from src.models.chunk import ChunkMetadata, CodeChunk, exemplar_id
from src.models.enums import ChunkSource, Vote
from src.models.message import MessageRecord
from src.retrieval.search import DEFAULT_LIMIT, SearchEngine

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 100

FAILURE_MESSAGE = "Sorry, I couldn't record your feedback right now."


def find_triggering_query(answer: MessageRecord, window: list[MessageRecord]) -> MessageRecord | None:
    """Best guess at the user message an answer replied to.

    Uses the answer's recorded ``responds_to`` link when that message is in
    the window, otherwise the latest non-bot message sent no later than the
    answer.
    """
    if answer.responds_to:
        for message in window:
            if message.message_id == answer.responds_to and not message.is_bot:
                return message

    candidates = [
        m for m in window
        if not m.is_bot and m.created_at <= answer.created_at
    ]
    if not candidates:
        return None
    # window is chronological; max() keeps the last of equal timestamps
    return max(reversed(candidates), key=lambda m: m.created_at)


class FeedbackLoop:
    """Records votes on bot answers against the chunks that produced them."""

    def __init__(
        self,
        history: ConversationHistory,
        search_engine: SearchEngine,
        attribution_limit: int = DEFAULT_LIMIT,
        window_size: int = HISTORY_WINDOW,
    ):
        self._history = history
        self._search = search_engine
        self._store = search_engine.store
        self.attribution_limit = attribution_limit
        self.window_size = window_size

    def _locate_answer(
        self, channel_id: str, message_id: str, window: list[MessageRecord]
    ) -> MessageRecord | None:
        answer = self._history.get_message(channel_id, message_id)
        if answer is not None and answer.is_bot:
            return answer
        for message in window:
            if message.is_bot and message.message_id == message_id:
                return message
        return None

    def record_feedback(self, channel_id: str, message_id: str, vote: Vote | int) -> str | None:
        """Apply a vote on a bot message.

        Returns a confirmation message, None when the message is not a tracked
        answer (or its question cannot be found), or a failure message when
        something went wrong. Never raises.
        """
        try:
            vote = Vote(vote)
            window = self._history.recent_window(channel_id, limit=self.window_size)

            answer = self._locate_answer(channel_id, message_id, window)
            if answer is None:
                logger.debug("Ignoring feedback on untracked message %s/%s", channel_id, message_id)
                return None

            query = find_triggering_query(answer, window)
            if query is None:
                logger.debug("No triggering query found for answer %s", message_id)
                return None

            updated = self._apply_vote(answer, query, vote)
        except Exception as e:
            logger.exception("Failed to record feedback on %s/%s: %s", channel_id, message_id, e)
            return FAILURE_MESSAGE

        label = "upvote" if vote == Vote.UP else "downvote"
        return f"Thanks for the {label}! Adjusted {updated} source chunk(s) for future answers."

    def _apply_vote(self, answer: MessageRecord, query: MessageRecord, vote: Vote) -> int:
        """Count the vote on the attributed chunks and the answer exemplar, all or nothing."""
        results = self._search.search(query.content, limit=self.attribution_limit)
        answer_chunk_id = exemplar_id(answer.channel_id, answer.message_id)

        ids = [r.chunk.id for r in results]
        if answer_chunk_id not in ids:
            ids.append(answer_chunk_id)

        # Re-read so concurrent votes since the search are not lost
        current = self._store.get_chunks(ids)
        updates = {
            chunk_id: chunk.metadata.apply_vote(vote)
            for chunk_id, chunk in current.items()
        }

        # Embed before any write so an embedding failure leaves the store untouched
        exemplar = None
        if answer_chunk_id not in current:
            exemplar = self._build_exemplar(answer, query, vote)

        if exemplar is not None:
            self._store.upsert_chunks([exemplar])
        try:
            applied = self._store.update_metadata_batch(updates)
        except Exception:
            if exemplar is not None:
                self._store.delete_chunks([exemplar.id])
            raise

        if exemplar is not None:
            logger.info("Stored answer %s as exemplar", answer.message_id)
        logger.info(
            "Recorded %s on %s: %d chunks updated",
            vote.name.lower(), answer.message_id, applied,
        )
        return applied - (1 if answer_chunk_id in current else 0)

    def _build_exemplar(self, answer: MessageRecord, query: MessageRecord, vote: Vote) -> CodeChunk | None:
        """The answer text as a retrievable exemplar chunk, counting the first vote."""
        if not answer.content.strip():
            return None
        chunk_id = exemplar_id(answer.channel_id, answer.message_id)
        line_count = answer.content.count("\n")
        return CodeChunk(
            file_path=chunk_id,
            content=answer.content,
            chunk_index=0,
            start_line=0,
            end_line=line_count,
            metadata=ChunkMetadata(
                language="markdown",
                source=ChunkSource.AI_RESPONSE,
                extra={"channel_id": answer.channel_id, "query": query.content[:500]},
            ).apply_vote(vote),
            embedding=self._search.embedding_provider.embed([answer.content])[0],
            chunk_id=chunk_id,
        )
