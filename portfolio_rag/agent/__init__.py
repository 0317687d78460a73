"""
Agent module for the portfolio assistant.

This module provides the LLM-backed question answering over portfolio data.
"""

from .llm_config import LLMClient, LLMSettings, get_llm_client
from .assistant import PortfolioAssistant
from .prompts import get_system_prompt

__all__ = [
    "LLMClient",
    "LLMSettings",
    "get_llm_client",
    "PortfolioAssistant",
    "get_system_prompt"
]
