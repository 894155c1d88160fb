"""Retry wrapper applied around every text-generation call.

Every failure is retried the same way: exponential backoff of
``base_delay * 2**(attempt - 1)`` seconds plus up to ~1s of jitter. After
``max_retries`` retries (``max_retries + 1`` attempts in total) the last error
is re-raised as BackendCallError.
"""

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from contextsmith.core.constants import DEFAULT_BASE_DELAY_SECONDS, DEFAULT_MAX_RETRIES
from contextsmith.core.exceptions import BackendCallError
from contextsmith.interfaces.llm_provider import LLMProvider, Message

SleepFunc = Callable[[float], Awaitable[Any]]


def _default_jitter() -> float:
    return random.uniform(0.0, 0.999)


class ResilientCaller:
    """Calls an LLMProvider with bounded exponential-backoff retries."""

    def __init__(
        self,
        provider: LLMProvider,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
        sleep: SleepFunc | None = None,
        jitter: Callable[[], float] | None = None,
    ):
        """Initialize the caller.

        Args:
            provider: Provider performing exactly one request per call
            max_retries: Retries after the first failure
            base_delay: Backoff base in seconds
            sleep: Awaitable sleep (defaults to asyncio.sleep)
            jitter: Jitter source in seconds (defaults to uniform 0..0.999)
        """
        self._provider = provider
        self._max_retries = max(max_retries, 0)
        self._base_delay = base_delay
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._jitter = jitter or _default_jitter

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retrying after failed attempt number ``attempt`` (1-based)."""
        return self._base_delay * (2 ** (attempt - 1)) + self._jitter()

    async def generate(self, prompt: str) -> str:
        """Single user prompt; returns the reply text."""
        return await self.generate_with_context([Message.user(prompt)])

    async def generate_with_context(self, messages: list[Message]) -> str:
        """Ordered chat messages; returns the reply text.

        Raises:
            BackendCallError: When every attempt failed
        """
        attempt = 0
        while True:
            start = time.perf_counter()
            try:
                response = await self._provider.generate_with_context(messages)
            except Exception as e:
                attempt += 1
                logger.warning(
                    f"{self._provider.name} call failed on attempt {attempt}: {e}"
                )
                if attempt > self._max_retries:
                    logger.error(
                        f"All {self._max_retries + 1} attempts failed for {self._provider.name}"
                    )
                    raise BackendCallError(
                        f"{self._provider.name} call failed after {attempt} attempts: {e}",
                        attempts=attempt,
                    ) from e

                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"Retrying in {delay:.2f}s (attempt {attempt}/{self._max_retries})"
                )
                await self._sleep(delay)
                continue

            logger.debug(
                f"{self._provider.name} call succeeded on attempt {attempt + 1} "
                f"({time.perf_counter() - start:.2f}s)"
            )
            return response.content
