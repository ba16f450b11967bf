"""
LLM Client Infrastructure
==========================

Wrapper for OpenAI-compatible chat completion providers used by the ticket
analyzer.

This module abstracts the LLM client implementation following the
Dependency Inversion Principle - the assignment layer depends on
``ILLMClient``, not on the SDK.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from openai import AsyncOpenAI

from helpdesk.core import ConfigurationException, LLMException
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ChatCompletionResult:
    """Result of a chat completion."""

    def __init__(
        self,
        content: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        latency_ms: int
    ):
        self.content = content
        self.model = model
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.total_tokens = prompt_tokens + completion_tokens
        self.latency_ms = latency_ms


class ILLMClient(ABC):
    """
    Interface for LLM client operations.

    Following Interface Segregation Principle - only the chat completion
    call needed by ticket analysis is defined.
    """

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Generate chat completion."""


class OpenAILLMClient(ILLMClient):
    """
    OpenAI client implementation.

    ``base_url`` points the SDK at any OpenAI-compatible provider
    (e.g. Groq at https://api.groq.com/openai/v1).
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None
    ):
        if not api_key:
            raise ConfigurationException("OpenAI API key not configured")

        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """
        Generate chat completion.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens to generate
            operation: Operation name recorded in the latency log

        Returns:
            ChatCompletionResult with generated text

        Raises:
            LLMException: If completion fails
        """
        start_time = time.perf_counter()

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )
        except Exception as e:
            raise LLMException(f"Chat completion failed: {str(e)}")

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        content = response.choices[0].message.content or ""
        usage = response.usage

        result = ChatCompletionResult(
            content=content,
            model=self._model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms
        )

        logger.info(
            "LLM call completed",
            extra={
                "operation": operation,
                "model": self._model,
                "total_tokens": result.total_tokens,
                "latency_ms": latency_ms
            }
        )
        return result


class MockLLMClient(ILLMClient):
    """
    Mock LLM client for development and testing.

    Returns a predictable ticket analysis without calling external APIs.
    """

    def __init__(self, response: Optional[dict] = None):
        self._response = response or {
            "requiredSkills": ["troubleshooting", "customer-support"],
            "priority": "medium",
            "aiNotes": "Mock: review the reported symptoms and confirm the affected account.",
            "estimatedResolutionTime": 8,
            "category": "general"
        }

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        """Return the canned analysis as a fenced JSON block."""
        content = f"```json\n{json.dumps(self._response, indent=2)}\n```"

        return ChatCompletionResult(
            content=content,
            model="mock-model",
            prompt_tokens=100,
            completion_tokens=len(content.split()),
            latency_ms=100
        )


class UnavailableLLMClient(ILLMClient):
    """
    Stand-in used when no API key is configured.

    Every call raises ``LLMException`` so callers take their default path.
    """

    def __init__(self, reason: str = "LLM API key not configured"):
        self._reason = reason

    async def chat_completion(
        self,
        messages: List[dict],
        temperature: float = 0.3,
        max_tokens: int = 800,
        operation: str = "chat_completion"
    ) -> ChatCompletionResult:
        raise LLMException(self._reason)
