"""Model calls for document extraction, routed through Agno.

A model string names both the provider and the provider's model id:

    openrouter/openai/gpt-4o   OpenRouter, id "openai/gpt-4o"
    anthropic/claude-3-5-haiku Claude
    openai/gpt-4o-mini         OpenAIChat
    groq/llama-3.2-90b-vision  Groq
    mock/anything              canned text, no network

An executor tries its primary model and then each fallback in order.
The verification a call belongs to travels in a context variable so
extractors never have to pass it down.
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from carecheck.observability.logging import get_logger
from carecheck.providers.llm.base import (
    LLMMessage,
    LLMResponse,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)

if TYPE_CHECKING:
    from agno.agent import Agent

    from carecheck.config.models.pipeline import (
        ExtractionStepConfig,
        OpenRouterProviderConfig,
    )

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_JSON_INSTRUCTIONS = """{prompt}

Answer with one JSON object that validates against this schema:
```json
{schema}
```

Do not add any text outside the JSON object."""


@dataclass(frozen=True)
class ExecutionContext:
    """The record and phase a model call is made on behalf of."""

    verification_id: UUID
    candidate_id: UUID
    phase: str | None = None


_current: ContextVar[ExecutionContext | None] = ContextVar(
    "carecheck_execution_context", default=None
)


def get_execution_context() -> ExecutionContext | None:
    return _current.get()


@contextmanager
def execution_scope(ctx: ExecutionContext) -> Iterator[ExecutionContext]:
    """Attach ``ctx`` to model calls made inside the block."""
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


class ModelRoute(NamedTuple):
    provider: str
    model_id: str


def parse_model_string(model: str) -> ModelRoute:
    """Split ``provider/model-id``; a string without a prefix is treated as mock."""
    provider, sep, model_id = model.partition("/")
    if not sep:
        return ModelRoute("mock", model)
    return ModelRoute(provider, model_id)


def _openrouter(route: ModelRoute, max_tokens: int, extra_body: dict | None) -> Any:
    from agno.models.openrouter import OpenRouter

    return OpenRouter(id=route.model_id, max_tokens=max_tokens, extra_body=extra_body)


def _anthropic(route: ModelRoute, max_tokens: int, extra_body: dict | None) -> Any:
    from agno.models.anthropic import Claude

    return Claude(id=route.model_id, max_tokens=max_tokens)


def _openai(route: ModelRoute, max_tokens: int, extra_body: dict | None) -> Any:
    from agno.models.openai import OpenAIChat

    return OpenAIChat(id=route.model_id, max_tokens=max_tokens, temperature=0.0)


def _groq(route: ModelRoute, max_tokens: int, extra_body: dict | None) -> Any:
    from agno.models.groq import Groq

    return Groq(id=route.model_id, max_tokens=max_tokens)


_MODEL_BUILDERS: dict[str, Callable[[ModelRoute, int, dict | None], Any]] = {
    "openrouter": _openrouter,
    "anthropic": _anthropic,
    "openai": _openai,
    "groq": _groq,
}


def _agent_input(messages: list[LLMMessage]) -> tuple[str | None, str, list[str]]:
    """Flatten messages into (instructions, input text, image urls) for an Agno agent."""
    instructions = None
    texts: list[str] = []
    images: list[str] = []
    for message in messages:
        if message.role == "system":
            instructions = message.content
            continue
        texts.append(message.content)
        images.extend(message.images)
    return instructions, "\n\n".join(texts), images


def _classify_failure(model: str, exc: Exception) -> ProviderError:
    text = str(exc).lower()
    if "rate" in text and "limit" in text:
        return RateLimitError(f"{model} rate limited: {exc}")
    return ProviderError(f"{model} failed: {exc}")


def _strip_code_fence(content: str) -> str:
    """Return the body of the first fenced block, or the stripped text if there is none."""
    text = content.strip()
    opening = text.find("```")
    if opening == -1:
        return text
    body_start = text.find("\n", opening)
    if body_start == -1:
        body_start = opening + 3
    closing = text.find("```", body_start)
    if closing == -1:
        return text
    return text[body_start:closing].strip()


class LLMExecutor:
    """Runs one extraction step's prompts against a model chain.

    Example:
        executor = LLMExecutor(model="openai/gpt-4o-mini", step_name="identity")
        parsed, response = await executor.generate_structured(
            prompt, PassportExtraction, images=[passport_url, selfie_url]
        )
    """

    def __init__(
        self,
        model: str,
        fallback_models: list[str] | None = None,
        timeout: float = 25.0,
        max_tokens: int = 1500,
        step_name: str | None = None,
        openrouter_config: OpenRouterProviderConfig | None = None,
    ) -> None:
        self._chain = [model, *(fallback_models or [])]
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._step_name = step_name
        self._openrouter_config = openrouter_config
        self._agents: dict[str, Agent] = {}

    @property
    def model(self) -> str:
        return self._chain[0]

    @property
    def step_name(self) -> str | None:
        return self._step_name

    async def generate(self, messages: list[LLMMessage]) -> LLMResponse:
        """Ask each model in the chain until one answers.

        Raises:
            ProviderError: when every model in the chain failed
        """
        failures: list[str] = []
        for model in self._chain:
            try:
                response = await self._generate_with_model(model, messages)
            except ProviderError as exc:
                logger.warning(
                    "llm_model_failed",
                    model=model,
                    step=self._step_name,
                    rate_limited=isinstance(exc, RateLimitError),
                    error=str(exc),
                )
                failures.append(f"{model}: {exc}")
                continue
            return self._annotate(response)

        raise ProviderError(
            f"All models failed for step {self._step_name}: " + "; ".join(failures)
        )

    async def generate_structured(
        self,
        prompt: str,
        schema: type[SchemaT],
        *,
        system_prompt: str | None = None,
        images: list[str] | None = None,
    ) -> tuple[SchemaT, LLMResponse]:
        """Prompt for JSON and validate it into ``schema``.

        Raises:
            ProviderError: when no model answered or the answer does not validate
        """
        content = _JSON_INSTRUCTIONS.format(
            prompt=prompt,
            schema=json.dumps(schema.model_json_schema(), indent=2),
        )
        messages = [LLMMessage(role="user", content=content, images=images or [])]
        if system_prompt:
            messages.insert(0, LLMMessage(role="system", content=system_prompt))

        response = await self.generate(messages)
        payload = _strip_code_fence(response.content)
        try:
            return schema.model_validate_json(payload), response
        except ValidationError as exc:
            logger.warning(
                "llm_output_unparseable",
                schema=schema.__name__,
                step=self._step_name,
                model=response.model,
                preview=payload[:200],
            )
            raise ProviderError(
                f"Failed to parse {schema.__name__} from {response.model}"
            ) from exc

    def _annotate(self, response: LLMResponse) -> LLMResponse:
        response.metadata["step"] = self._step_name
        ctx = get_execution_context()
        if ctx is not None:
            response.metadata["verification_id"] = str(ctx.verification_id)
            response.metadata["phase"] = ctx.phase
        return response

    def _agent_for(self, model: str, route: ModelRoute) -> Agent:
        agent = self._agents.get(model)
        if agent is not None:
            return agent

        from agno.agent import Agent

        builder = _MODEL_BUILDERS.get(route.provider)
        if builder is None:
            logger.warning("llm_unknown_provider", model=model, provider=route.provider)
            builder, route = _openrouter, ModelRoute("openrouter", model)
        extra_body = None
        if route.provider == "openrouter" and self._openrouter_config is not None:
            extra_body = self._openrouter_config.to_request_params()

        agent = Agent(model=builder(route, self._max_tokens, extra_body), markdown=False)
        self._agents[model] = agent
        return agent

    async def _generate_with_model(self, model: str, messages: list[LLMMessage]) -> LLMResponse:
        route = parse_model_string(model)
        if route.provider == "mock":
            return LLMResponse(content=f"Mock response for {model}", model=model, provider="mock")

        from agno.media import Image

        agent = self._agent_for(model, route)
        instructions, text, image_urls = _agent_input(messages)
        if instructions:
            agent.instructions = [instructions]

        started = time.perf_counter()
        try:
            run = await asyncio.wait_for(
                agent.arun(text, images=[Image(url=url) for url in image_urls] or None),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            raise ProviderTimeoutError(f"{model} gave no answer in {self._timeout}s") from exc
        except Exception as exc:
            raise _classify_failure(model, exc) from exc
        latency_ms = (time.perf_counter() - started) * 1000

        content = run.content if isinstance(run.content, str) else str(run.content or "")
        logger.debug(
            "llm_call_complete",
            model=model,
            step=self._step_name,
            latency_ms=round(latency_ms, 2),
            images=len(image_urls),
        )
        return LLMResponse(
            content=content,
            model=model,
            provider=route.provider,
            latency_ms=latency_ms,
        )


def create_executor_from_step_config(
    step_config: ExtractionStepConfig,
    step_name: str,
) -> LLMExecutor:
    return LLMExecutor(
        model=step_config.model,
        fallback_models=step_config.fallback_models,
        timeout=step_config.timeout,
        max_tokens=step_config.max_tokens,
        step_name=step_name,
        openrouter_config=step_config.openrouter,
    )
