"""
Anise - LLM Client.

Provides structured LLM calls via Instructor.
"""

from anise.llm.client import LLMResult, StructuredLLM, get_async_client, get_llm

__all__ = [
    "LLMResult",
    "StructuredLLM",
    "get_async_client",
    "get_llm",
]
