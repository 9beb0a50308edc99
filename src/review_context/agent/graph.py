"""LangGraph graph definition — the review-analysis workflow.

1. **Retrieve** organisation context similar to the review.
2. **Generate** a sentiment read and a draft reply grounded in that context.

The graph can be tested without OpenAI by injecting a fake embedder and a
stub chat model (see tests).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from langgraph.graph import END, StateGraph

from review_context.agent.nodes import ReviewNodes
from review_context.agent.state import ReviewAnalysis, ReviewState

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from review_context.ingestion.embedder import EmbeddingProvider
    from review_context.retrieval.retriever import SimilarityRetriever


def build_graph(
    retriever: SimilarityRetriever,
    embedder: EmbeddingProvider,
    llm: BaseChatModel | None = None,
    **node_kwargs: Any,
):
    """Construct and return the compiled review-analysis graph.

    Graph topology::

        START → retrieve_context → generate_response → END

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.ainvoke()``.
    """
    nodes = ReviewNodes(retriever, embedder, llm, **node_kwargs)

    workflow = StateGraph(ReviewState)
    workflow.add_node("retrieve_context", nodes.retrieve_context)
    workflow.add_node("generate_response", nodes.generate_response)

    workflow.set_entry_point("retrieve_context")
    workflow.add_edge("retrieve_context", "generate_response")
    workflow.add_edge("generate_response", END)

    return workflow.compile()


async def analyze_review(
    review: str,
    rating: int,
    *,
    retriever: SimilarityRetriever,
    embedder: EmbeddingProvider,
    llm: BaseChatModel | None = None,
) -> dict[str, Any]:
    """Run the graph for one review and return a JSON-ready result.

    Usage::

        result = await analyze_review("App keeps crashing", 2, retriever=r, embedder=e)
        print(result["sentiment"], result["suggested_response"])
    """
    graph = build_graph(retriever, embedder, llm)
    final = await graph.ainvoke({"review": review, "rating": rating})

    analysis: ReviewAnalysis = final.get("analysis") or ReviewAnalysis()
    return {
        **analysis.to_dict(),
        "relevant_context": [
            {"title": c.title or c.source, "similarity": c.similarity} for c in final.get("contexts", [])
        ],
    }
