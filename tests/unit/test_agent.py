"""Tests for the chat workflow nodes, tools and assistant."""

from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from src.agent.chat import ChatAssistant
from src.agent.nodes import (
    FALLBACK_ANSWER,
    MAX_TOOL_STEPS,
    collect_exemplars,
    generate_answer,
    retrieve_context,
)
from src.agent.prompt import format_code_context, format_exemplars, get_system_prompt
from src.agent.tools import build_tools
from src.models.chunk import ChunkMetadata, CodeChunk
from src.models.enums import ChunkSource


def _chunk(path, content, source=ChunkSource.CODE) -> CodeChunk:
    return CodeChunk(file_path=path, content=content, chunk_index=0, start_line=1, end_line=4,
                     metadata=ChunkMetadata(language="typescript", source=source))


@pytest.fixture
def indexed_engine(search_engine, embedder):
    chunks = [
        _chunk("src/player/VideoPlayer.tsx", "video player playback controls"),
        _chunk("ai_response/c1/9", "The video player lives in src/player.", source=ChunkSource.AI_RESPONSE),
    ]
    for chunk, vector in zip(chunks, embedder.embed([c.content for c in chunks])):
        chunk.embedding = vector
    search_engine.store.upsert_chunks(chunks)
    return search_engine


def _llm(*responses):
    llm = MagicMock()
    llm.bind_tools.return_value = llm
    llm.invoke.side_effect = list(responses)
    return llm


def _state(**overrides):
    state = {
        "query": "how does the video player work",
        "user_name": "alice",
        "history": [],
        "retrieved_chunks": [],
        "exemplars": [],
        "answer": None,
    }
    state.update(overrides)
    return state


class TestPrompt:

    def test_system_prompt_names_project(self):
        prompt = get_system_prompt("Streamyfin")
        assert "support assistant for Streamyfin" in prompt
        assert "NEVER suggest code changes" in prompt

    def test_code_context_block(self):
        text = format_code_context([{
            "file_path": "a.ts", "lines": "1-4", "language": "typescript", "content": "code",
        }])
        assert text.startswith("Relevant Code Context:")
        assert "[1] a.ts (lines 1-4, typescript)\ncode" in text

    def test_empty_blocks(self):
        assert format_code_context([]) == ""
        assert format_exemplars([]) == ""

    def test_exemplars_numbered(self):
        text = format_exemplars(["first", "second"])
        assert "Example 1:\nfirst" in text and "Example 2:\nsecond" in text


class TestTools:

    def test_search_codebase(self, indexed_engine):
        tools = {t.name: t for t in build_tools(indexed_engine)}
        output = tools["search_codebase"].invoke({"query": "video player playback"})
        paths = [r["file_path"] for r in output["results"]]
        assert "src/player/VideoPlayer.tsx" in paths

    def test_get_file_content(self, indexed_engine):
        tools = {t.name: t for t in build_tools(indexed_engine)}
        output = tools["get_file_content"].invoke({"file_path": "VideoPlayer"})
        assert output["results"][0]["lines"] == "1-4"
        assert output["results"][0]["language"] == "typescript"


class TestRetrievalNodes:

    def test_retrieve_context(self, indexed_engine):
        update = retrieve_context(_state(), search_engine=indexed_engine)
        assert any(c["file_path"] == "src/player/VideoPlayer.tsx" for c in update["retrieved_chunks"])

    def test_retrieve_context_failure_is_empty(self):
        engine = MagicMock()
        engine.search.side_effect = RuntimeError("down")
        assert retrieve_context(_state(), search_engine=engine) == {"retrieved_chunks": []}

    def test_collect_exemplars_only_answers(self, indexed_engine):
        update = collect_exemplars(_state(), search_engine=indexed_engine)
        assert update["exemplars"] == ["The video player lives in src/player."]


class TestGenerateAnswer:

    def test_direct_answer(self):
        llm = _llm(AIMessage(content="It streams via the player hook."))
        chunks = [{"file_path": "a.ts", "lines": "1-4", "language": "typescript", "content": "code"}]

        update = generate_answer(
            _state(retrieved_chunks=chunks, exemplars=["Great answer"],
                   history=[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]),
            llm=llm, tools=[], project_name="Streamyfin",
        )

        assert update == {"answer": "It streams via the player hook."}
        messages = llm.invoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert "Example 1:\nGreat answer" in messages[0].content
        assert isinstance(messages[1], HumanMessage) and isinstance(messages[2], AIMessage)
        assert messages[-1].content.startswith("alice: how does the video player work")
        assert "Relevant Code Context" in messages[-1].content

    def test_tool_loop(self, indexed_engine):
        llm = _llm(
            AIMessage(content="", tool_calls=[
                {"name": "search_codebase", "args": {"query": "video player"}, "id": "call_1"},
            ]),
            AIMessage(content="Found it in VideoPlayer.tsx."),
        )

        update = generate_answer(_state(), llm=llm, tools=build_tools(indexed_engine), project_name="P")

        assert update["answer"] == "Found it in VideoPlayer.tsx."
        final_messages = llm.invoke.call_args.args[0]
        tool_messages = [m for m in final_messages if isinstance(m, ToolMessage)]
        assert len(tool_messages) == 1
        assert tool_messages[0].tool_call_id == "call_1"
        assert "VideoPlayer.tsx" in tool_messages[0].content

    def test_step_limit(self, indexed_engine):
        looping = [
            AIMessage(content="", tool_calls=[
                {"name": "get_file_content", "args": {"file_path": "Video"}, "id": f"call_{i}"},
            ])
            for i in range(MAX_TOOL_STEPS + 3)
        ]
        llm = _llm(*looping)

        update = generate_answer(_state(), llm=llm, tools=build_tools(indexed_engine), project_name="P")

        assert llm.invoke.call_count == MAX_TOOL_STEPS
        assert update["answer"] == FALLBACK_ANSWER

    def test_unknown_tool_reported_to_model(self):
        llm = _llm(
            AIMessage(content="", tool_calls=[{"name": "rm_rf", "args": {}, "id": "call_1"}]),
            AIMessage(content="Done."),
        )
        generate_answer(_state(), llm=llm, tools=[], project_name="P")
        tool_message = [m for m in llm.invoke.call_args.args[0] if isinstance(m, ToolMessage)][0]
        assert "Unknown tool" in tool_message.content

    def test_content_blocks_joined(self):
        llm = _llm(AIMessage(content=[{"type": "text", "text": "Part one. "}, {"type": "text", "text": "Part two."}]))
        assert generate_answer(_state(), llm=llm, tools=[], project_name="P")["answer"] == "Part one. Part two."


class TestChatAssistant:

    def test_answer_records_both_messages(self, indexed_engine, history):
        llm = _llm(AIMessage(content="Check src/player/VideoPlayer.tsx."))
        assistant = ChatAssistant(indexed_engine, history, llm, "Streamyfin")

        reply = assistant.answer("c1", "how does the video player work", "alice", message_id="m1")

        assert reply.is_bot
        assert reply.responds_to == "m1"
        assert reply.content == "Check src/player/VideoPlayer.tsx."
        window = history.recent_window("c1")
        assert [m.message_id for m in window] == ["m1", reply.message_id]

    def test_prior_turns_passed_as_history(self, indexed_engine, history):
        llm = _llm(AIMessage(content="First."), AIMessage(content="Second."))
        assistant = ChatAssistant(indexed_engine, history, llm, "Streamyfin")

        assistant.answer("c1", "first question", "alice")
        assistant.answer("c1", "second question", "alice")

        messages = llm.invoke.call_args.args[0]
        assert [type(m) for m in messages[1:3]] == [HumanMessage, AIMessage]
        assert messages[1].content == "first question"
        assert messages[2].content == "First."
