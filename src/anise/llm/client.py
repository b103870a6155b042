"""
Anise - LLM Client.

Wraps AsyncOpenAI with Instructor for schema-validated structured output.
Every call is priced once from the provider's usage block and the usage is
recorded into the ambient job/step context.
"""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

import instructor
from instructor.core import InstructorRetryException
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from anise.config import settings
from anise.errors import LLMError, SchemaValidationError
from anise.jobs.context import record_usage
from anise.llm.prompt_logger import log_prompt
from anise.observability.usage import UsageStats

logger = logging.getLogger(__name__)

# Type variable for generic structured output
T = TypeVar("T", bound=BaseModel)

# Singleton client instance
_client: instructor.AsyncInstructor | None = None


def get_async_client() -> instructor.AsyncInstructor:
    """
    Get the Instructor-wrapped AsyncOpenAI client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        _client = instructor.from_openai(AsyncOpenAI(api_key=settings.openai_api_key))

    return _client


@dataclass
class LLMResult(Generic[T]):
    """A validated structured response plus what it cost."""

    output: T
    usage: UsageStats
    model: str


class StructuredLLM:
    """
    Capability: generate a schema-conforming object from a prompt.

    Services take an instance by injection; tests pass one built around a
    fake Instructor client.
    """

    def __init__(
        self,
        client: instructor.AsyncInstructor | None = None,
        *,
        model: str | None = None,
        temperature: float | None = None,
    ):
        self._client = client
        self._model = model
        self._temperature = temperature

    @property
    def client(self) -> instructor.AsyncInstructor:
        if self._client is None:
            self._client = get_async_client()
        return self._client

    @property
    def model(self) -> str:
        return self._model or settings.llm_model

    @property
    def temperature(self) -> float:
        return self._temperature if self._temperature is not None else settings.llm_temperature

    async def generate(
        self,
        *,
        response_model: type[T],
        system_prompt: str,
        user_prompt: str,
        name: str = "llm",
        max_retries: int = 2,
    ) -> LLMResult[T]:
        """
        Make a structured LLM call.

        Args:
            response_model: Pydantic model class for the response
            system_prompt: Static instructions (kept first so the provider can cache them)
            user_prompt: The per-call content
            name: Label for logs and prompt files
            max_retries: Instructor re-asks when the output fails validation (0 = one attempt)

        Returns:
            LLMResult with the validated object and its UsageStats

        Raises:
            SchemaValidationError: output never validated against response_model
            LLMError: the provider call itself failed
        """
        model = self.model
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        try:
            output, completion = await self.client.chat.completions.create_with_completion(
                model=model,
                messages=messages,
                response_model=response_model,
                max_retries=max_retries,
                temperature=self.temperature,
            )
        except (InstructorRetryException, ValidationError) as e:
            failed_usage = getattr(e, "total_usage", None)
            if failed_usage is not None:
                record_usage(UsageStats.from_completion(model, failed_usage), model)
            log_prompt(
                name=name,
                model=model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                response_model=response_model.__name__,
                error=str(e),
            )
            raise SchemaValidationError(
                f"{name}: response did not match {response_model.__name__}: {e}"
            ) from e
        except OpenAIError as e:
            log_prompt(
                name=name,
                model=model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                response_model=response_model.__name__,
                error=str(e),
            )
            raise LLMError(f"{name}: LLM call failed: {e}") from e

        response_model_name = getattr(completion, "model", None) or model
        usage = UsageStats.from_completion(response_model_name, getattr(completion, "usage", None))
        record_usage(usage, response_model_name)

        log_prompt(
            name=name,
            model=response_model_name,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            response_model=response_model.__name__,
            response=output,
            usage=usage,
        )
        logger.debug(f"{name}: {usage.total_tokens} tokens, ${usage.total_cost:.6f}")

        return LLMResult(output=output, usage=usage, model=response_model_name)


_default_llm: StructuredLLM | None = None


def get_llm() -> StructuredLLM:
    """Default StructuredLLM bound to the shared client."""
    global _default_llm
    if _default_llm is None:
        _default_llm = StructuredLLM()
    return _default_llm
