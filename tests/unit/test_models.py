"""Tests for chunk, search result and message models."""

import pytest

from src.models.chunk import ChunkMetadata, CodeChunk, exemplar_id
from src.models.enums import ChunkSource, Vote
from src.models.message import MessageRecord
from src.models.search import SearchResult
from src.models.source_file import RepoFile


class TestChunkMetadata:

    def test_defaults(self):
        meta = ChunkMetadata()
        assert meta.source == ChunkSource.CODE
        assert (meta.upvotes, meta.downvotes, meta.feedback_score) == (0, 0, 0)
        assert not meta.is_exemplar

    def test_source_coerced_from_string(self):
        meta = ChunkMetadata(source="ai_response")
        assert meta.source == ChunkSource.AI_RESPONSE
        assert meta.is_exemplar

    def test_negative_counters_rejected(self):
        with pytest.raises(ValueError):
            ChunkMetadata(upvotes=-1)

    def test_apply_vote_returns_copy(self):
        meta = ChunkMetadata(extra={"k": "v"})
        up = meta.apply_vote(Vote.UP)
        down = up.apply_vote(Vote.DOWN)

        assert (up.upvotes, up.downvotes, up.feedback_score) == (1, 0, 1)
        assert (down.upvotes, down.downvotes, down.feedback_score) == (1, 1, 0)
        assert meta.upvotes == 0
        assert up.extra == {"k": "v"} and up.extra is not meta.extra

    def test_apply_vote_accepts_int(self):
        assert ChunkMetadata().apply_vote(-1).downvotes == 1

    def test_score_is_unbounded(self):
        meta = ChunkMetadata()
        for _ in range(25):
            meta = meta.apply_vote(Vote.UP)
        assert meta.feedback_score == 25


class TestCodeChunk:

    def test_id_from_path_and_index(self):
        chunk = CodeChunk(file_path="src/a.ts", content="x", chunk_index=3, start_line=10, end_line=12)
        assert chunk.id == "src/a.ts#3"
        assert chunk.line_range == "10-12"

    def test_explicit_id_wins(self):
        chunk = CodeChunk(file_path="p", content="x", chunk_index=0, start_line=0, end_line=0, chunk_id="custom")
        assert chunk.id == "custom"

    def test_invalid_span(self):
        with pytest.raises(ValueError):
            CodeChunk(file_path="p", content="x", chunk_index=0, start_line=5, end_line=4)

    def test_empty_path(self):
        with pytest.raises(ValueError):
            CodeChunk(file_path="", content="x", chunk_index=0, start_line=0, end_line=0)

    def test_negative_index(self):
        with pytest.raises(ValueError):
            CodeChunk(file_path="p", content="x", chunk_index=-1, start_line=0, end_line=0)

    def test_exemplar_id(self):
        assert exemplar_id("general", "42") == "ai_response/general/42"


class TestSearchResult:

    def test_similarity_range(self):
        chunk = CodeChunk(file_path="p", content="x", chunk_index=0, start_line=0, end_line=0)
        with pytest.raises(ValueError):
            SearchResult(chunk=chunk, similarity=1.5)

    def test_to_dict(self):
        chunk = CodeChunk(file_path="src/a.ts", content="code", chunk_index=1, start_line=3, end_line=9,
                          metadata=ChunkMetadata(language="typescript"))
        result = SearchResult(chunk=chunk, similarity=0.812345)
        assert result.to_dict() == {
            "chunk_id": "src/a.ts#1",
            "file_path": "src/a.ts",
            "content": "code",
            "lines": "3-9",
            "language": "typescript",
            "similarity": 0.8123,
        }
        assert result.ranking_score == 0.812345

    def test_ranking_score_prefers_score(self):
        chunk = CodeChunk(file_path="p", content="x", chunk_index=0, start_line=0, end_line=0)
        result = SearchResult(chunk=chunk, similarity=0.5, score=0.6)
        assert result.ranking_score == 0.6
        assert result.to_dict()["score"] == 0.6


class TestMessageRecord:

    def test_requires_ids(self):
        with pytest.raises(ValueError):
            MessageRecord(channel_id="", message_id="1", content="hi", author_id="u", author_name="U")
        with pytest.raises(ValueError):
            MessageRecord(channel_id="c", message_id="", content="hi", author_id="u", author_name="U")

    def test_defaults(self):
        record = MessageRecord(channel_id="c", message_id="1", content="hi", author_id="u", author_name="U")
        assert not record.is_bot
        assert record.responds_to is None
        assert record.created_at.tzinfo is None


class TestRepoFile:

    def test_size_from_content(self):
        assert RepoFile(path="a.md", content="héllo").size == 6
