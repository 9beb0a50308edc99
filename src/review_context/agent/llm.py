"""Chat model used to draft review replies.

``LLM_BASE_URL`` points the client at any OpenAI-compatible server (a
local vLLM or Ollama deployment, for instance); otherwise the OpenAI API
is used with ``OPENAI_API_KEY``.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from review_context.config import settings

logger = logging.getLogger(__name__)


def get_llm(temperature: float | None = None) -> ChatOpenAI:
    """Build the configured chat model.

    Parameters
    ----------
    temperature:
        Sampling temperature; ``settings.llm_temperature`` when omitted.
    """
    api_key = settings.openai_api_key
    base_url = settings.llm_base_url or None
    if base_url:
        logger.info("Drafting replies with OpenAI-compatible server at %s", base_url)
        # compatible servers ignore the key but the client rejects an empty one
        api_key = api_key or "EMPTY"

    return ChatOpenAI(
        model=settings.llm_model_name,
        temperature=settings.llm_temperature if temperature is None else temperature,
        api_key=api_key,
        base_url=base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries,
    )
