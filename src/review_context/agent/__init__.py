"""
Agent — review analysis grounded in retrieved organisation context.

Public API
----------
- :func:`build_graph` — compile the LangGraph workflow.
- :func:`analyze_review` — run it for one review.
- :class:`ReviewAnalysis`, :class:`ReviewState` — data flowing through it.
"""

from review_context.agent.graph import analyze_review, build_graph
from review_context.agent.nodes import ReviewNodes, parse_llm_output
from review_context.agent.state import ReviewAnalysis, ReviewState

__all__ = [
    "ReviewAnalysis",
    "ReviewNodes",
    "ReviewState",
    "analyze_review",
    "build_graph",
    "parse_llm_output",
]
