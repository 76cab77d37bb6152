"""LLM access for the AI document-extraction steps."""

from carecheck.providers.llm.base import (
    LLMMessage,
    LLMResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)
from carecheck.providers.llm.executor import (
    ExecutionContext,
    LLMExecutor,
    ModelRoute,
    create_executor_from_step_config,
    execution_scope,
    get_execution_context,
    parse_model_string,
)

__all__ = [
    "LLMMessage",
    "LLMResponse",
    "ProviderError",
    "ProviderTimeoutError",
    "RateLimitError",
    "LLMExecutor",
    "ModelRoute",
    "parse_model_string",
    "ExecutionContext",
    "execution_scope",
    "get_execution_context",
    "create_executor_from_step_config",
]
