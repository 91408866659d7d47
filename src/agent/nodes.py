"""Agent graph nodes for the repository chat workflow."""

import json
import logging

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool

from src.agent.prompt import format_code_context, format_exemplars, get_system_prompt
from src.agent.state import ChatState
from src.retrieval.search import DEFAULT_LIMIT, SearchEngine

logger = logging.getLogger(__name__)

MAX_TOOL_STEPS = 5
EXEMPLAR_LIMIT = 2

FALLBACK_ANSWER = "Sorry, I couldn't come up with an answer to that."


def retrieve_context(state: ChatState, search_engine: SearchEngine) -> dict:
    """Pull feedback-aware code context for the question."""
    try:
        results = search_engine.search(state["query"], limit=DEFAULT_LIMIT, learn=True)
    except Exception as e:
        logger.warning("Context retrieval failed: %s", e)
        return {"retrieved_chunks": []}
    return {"retrieved_chunks": [r.to_dict() for r in results]}


def collect_exemplars(state: ChatState, search_engine: SearchEngine) -> dict:
    """Find well-received past answers to similar questions."""
    try:
        results = search_engine.top_answer_exemplars(state["query"], limit=EXEMPLAR_LIMIT)
    except Exception as e:
        logger.warning("Exemplar lookup failed: %s", e)
        return {"exemplars": []}
    return {"exemplars": [r.chunk.content for r in results]}


def _build_messages(state: ChatState, project_name: str) -> list:
    system = get_system_prompt(project_name)
    examples = format_exemplars(state.get("exemplars", []))
    if examples:
        system = f"{system}\n\n{examples}"

    messages = [SystemMessage(content=system)]
    for entry in state.get("history", []):
        if entry["role"] == "assistant":
            messages.append(AIMessage(content=entry["content"]))
        else:
            messages.append(HumanMessage(content=entry["content"]))

    context = format_code_context(state.get("retrieved_chunks", []))
    question = f"{state['user_name']}: {state['query']}"
    if context:
        question = f"{question}\n\n{context}"
    messages.append(HumanMessage(content=question))
    return messages


def _text_of(message) -> str:
    content = message.content
    if isinstance(content, str):
        return content
    # Anthropic returns a list of content blocks
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in content
    )


def generate_answer(
    state: ChatState,
    llm: BaseChatModel,
    tools: list[BaseTool],
    project_name: str,
) -> dict:
    """Answer the question, letting the model call retrieval tools.

    The model gets at most MAX_TOOL_STEPS model calls; tool calls still
    pending after the last one are dropped.
    """
    messages = _build_messages(state, project_name)
    tools_by_name = {t.name: t for t in tools}
    bound = llm.bind_tools(tools) if tools else llm

    response = None
    for step in range(MAX_TOOL_STEPS):
        response = bound.invoke(messages)
        messages.append(response)

        tool_calls = getattr(response, "tool_calls", None) or []
        if not tool_calls or step == MAX_TOOL_STEPS - 1:
            break

        for call in tool_calls:
            tool = tools_by_name.get(call["name"])
            if tool is None:
                output = {"error": f"Unknown tool: {call['name']}"}
            else:
                try:
                    output = tool.invoke(call["args"])
                except Exception as e:
                    logger.warning("Tool %s failed: %s", call["name"], e)
                    output = {"error": str(e)}
            logger.info("Tool call %s(%s)", call["name"], call["args"])
            messages.append(ToolMessage(content=json.dumps(output), tool_call_id=call["id"]))

    answer = _text_of(response).strip() if response is not None else ""
    return {"answer": answer or FALLBACK_ANSWER}
