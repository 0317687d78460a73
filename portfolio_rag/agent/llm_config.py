"""
LiteLLM Configuration Module

Unified interface to the hosted chat-completion model that answers
portfolio questions. LiteLLM gives every provider an OpenAI-compatible API.

Environment variables:
- LLM_PROVIDER: Provider name (e.g., "openai", "anthropic", "azure")
- LLM_MODEL: Model identifier (e.g., "gpt-4o-mini", "claude-3-5-sonnet-20241022")
- LLM_API_KEY: API key for the provider (or provider-specific key like OPENAI_API_KEY)
- LLM_BASE_URL: (Optional) Custom base URL for self-hosted or proxy endpoints
- LLM_MAX_TOKENS: (Optional) Max tokens for responses (default: 1024)
- LLM_TEMPERATURE: (Optional) Temperature for responses (default: 0.2)
"""

from typing import Any, Dict, List, Optional

import litellm
from litellm import completion
from pydantic import Field
from pydantic_settings import BaseSettings


class LLMSettings(BaseSettings):
    """LLM configuration settings"""

    # Provider and model
    llm_provider: str = Field(default="openai", description="LLM provider name")
    llm_model: str = Field(default="gpt-4o-mini", description="Model identifier")

    # API credentials
    llm_api_key: Optional[str] = Field(default=None, description="API key for LLM provider")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API key")
    azure_api_key: Optional[str] = Field(default=None, description="Azure API key")

    # Optional configuration
    llm_base_url: Optional[str] = Field(default=None, description="Custom base URL")
    llm_max_tokens: int = Field(default=1024, description="Max tokens for completion")
    llm_temperature: float = Field(default=0.2, description="Sampling temperature")
    llm_timeout: int = Field(default=60, description="Request timeout in seconds")

    # LiteLLM specific settings
    litellm_log_level: str = Field(default="ERROR", description="LiteLLM log level")
    litellm_drop_params: bool = Field(
        default=True,
        description="Drop unsupported params for each provider"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra fields from .env


class LLMClient:
    """Chat-completion client using LiteLLM."""

    def __init__(self, settings: Optional[LLMSettings] = None):
        """
        Initialize LLM client.

        Args:
            settings: LLM settings (defaults to loading from environment)
        """
        self.settings = settings or LLMSettings()

        litellm.drop_params = self.settings.litellm_drop_params
        litellm.set_verbose = self.settings.litellm_log_level == "DEBUG"

        self.api_key = self._resolve_api_key()
        self.model = self._build_model_string()

    def _resolve_api_key(self) -> Optional[str]:
        """Pick the API key for the selected provider"""
        provider = self.settings.llm_provider.lower()

        # Priority: provider-specific key > generic llm_api_key
        if provider == "openai":
            return self.settings.openai_api_key or self.settings.llm_api_key
        if provider == "anthropic":
            return self.settings.anthropic_api_key or self.settings.llm_api_key
        if provider == "azure":
            return self.settings.azure_api_key or self.settings.llm_api_key
        return self.settings.llm_api_key

    def _build_model_string(self) -> str:
        """
        Build LiteLLM model string.

        Examples:
        - "gpt-4o-mini" (OpenAI default)
        - "claude-3-5-sonnet-20241022" (Anthropic, auto-detected)
        - "azure/gpt-4"
        """
        provider = self.settings.llm_provider.lower()
        model = self.settings.llm_model

        if provider in ["azure", "bedrock", "vertex_ai"]:
            return f"{provider}/{model}"

        return model

    def complete(self, messages: List[Dict[str, str]], **kwargs) -> Any:
        """
        Generate completion using LiteLLM.

        Args:
            messages: List of message dicts with 'role' and 'content'
            **kwargs: Additional parameters to pass to litellm.completion()

        Returns:
            LiteLLM completion response
        """
        params = {
            "model": self.model,
            "messages": messages,
            "max_tokens": kwargs.get("max_tokens", self.settings.llm_max_tokens),
            "temperature": kwargs.get("temperature", self.settings.llm_temperature),
            "timeout": kwargs.get("timeout", self.settings.llm_timeout),
        }

        if self.api_key:
            params["api_key"] = self.api_key

        if self.settings.llm_base_url:
            params["api_base"] = self.settings.llm_base_url

        params.update({k: v for k, v in kwargs.items() if k not in params})

        return completion(**params)

    def complete_text(self, messages: List[Dict[str, str]], **kwargs) -> str:
        """Run a completion and return the answer text."""
        response = self.complete(messages, **kwargs)
        return response.choices[0].message.content or ""

    def count_tokens(self, messages: List[Dict[str, str]]) -> int:
        """
        Count tokens in messages using LiteLLM's token counter.

        Args:
            messages: List of message dicts

        Returns:
            Estimated token count
        """
        try:
            return litellm.token_counter(model=self.model, messages=messages)
        except Exception:
            # Fallback: rough estimate (4 chars = 1 token)
            total_chars = sum(len(msg.get("content", "")) for msg in messages)
            return total_chars // 4


_default_client: Optional[LLMClient] = None


def get_llm_client(settings: Optional[LLMSettings] = None) -> LLMClient:
    """
    Get or create the default LLM client.

    Args:
        settings: Optional settings (creates new client if provided)

    Returns:
        LLM client instance
    """
    global _default_client

    if settings is not None:
        return LLMClient(settings)

    if _default_client is None:
        _default_client = LLMClient()

    return _default_client
