"""LangGraph workflow definition for the repository chat assistant."""

from functools import partial

from langchain_core.language_models.chat_models import BaseChatModel
from langgraph.graph import END, StateGraph

from src.agent.nodes import collect_exemplars, generate_answer, retrieve_context
from src.agent.state import ChatState
from src.agent.tools import build_tools
from src.retrieval.search import SearchEngine


def build_graph(search_engine: SearchEngine, llm: BaseChatModel, project_name: str):
    """Build the chat workflow.

    retrieve_context → collect_exemplars → generate_answer

    Returns:
        A compiled LangGraph StateGraph.
    """
    tools = build_tools(search_engine)
    graph = StateGraph(ChatState)

    graph.add_node("retrieve_context", partial(retrieve_context, search_engine=search_engine))
    graph.add_node("collect_exemplars", partial(collect_exemplars, search_engine=search_engine))
    graph.add_node(
        "generate_answer",
        partial(generate_answer, llm=llm, tools=tools, project_name=project_name),
    )

    graph.set_entry_point("retrieve_context")
    graph.add_edge("retrieve_context", "collect_exemplars")
    graph.add_edge("collect_exemplars", "generate_answer")
    graph.add_edge("generate_answer", END)

    return graph.compile()
