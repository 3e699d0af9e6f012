"""Retry wrapper around a narrative generator."""

from __future__ import annotations

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from solo_rpg.core.config import NarrativeSettings, get_settings
from solo_rpg.core.exceptions import NarrativeGenerationError
from solo_rpg.core.logging import get_logger
from solo_rpg.dm.narrative import ChunkCallback, NarrativeGenerator, NarrativeRequest, NarrativeResponse


logger = get_logger(__name__)


class RetryingNarrator:
    """Retries transient generation failures with exponential backoff.

    Only NarrativeGenerationError is retried. A malformed response
    (NarrativeResponseError) will not improve on a second try and is
    raised straight away. Chunks streamed by a failed attempt have already
    reached ``on_chunk``; callers that display them should reset on retry.

    Example:
        >>> narrator = RetryingNarrator(backend, max_attempts=3)
        >>> response = await narrator.generate(request)
    """

    def __init__(
        self,
        inner: NarrativeGenerator,
        max_attempts: int = 3,
        *,
        wait_min: float = 2.0,
        wait_max: float = 10.0,
    ) -> None:
        """Wrap a generator.

        Args:
            inner: Generator doing the actual work.
            max_attempts: Total attempts, including the first.
            wait_min: Lower bound of the backoff in seconds.
            wait_max: Upper bound of the backoff in seconds.
        """
        self.inner = inner
        self.max_attempts = max(1, max_attempts)
        self.wait_min = wait_min
        self.wait_max = wait_max

    @classmethod
    def from_settings(
        cls,
        inner: NarrativeGenerator,
        settings: NarrativeSettings | None = None,
    ) -> "RetryingNarrator":
        """Build from ``NarrativeSettings.max_retries`` (extra attempts after the first)."""
        settings = settings or get_settings().narrative
        return cls(inner, max_attempts=settings.max_retries + 1)

    async def generate(
        self,
        request: NarrativeRequest,
        on_chunk: ChunkCallback | None = None,
    ) -> NarrativeResponse:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(NarrativeGenerationError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.wait_min, max=self.wait_max),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                if number > 1:
                    logger.warning(
                        "Retrying narrative generation",
                        attempt=number,
                        max_attempts=self.max_attempts,
                        kind=request.kind.value,
                    )
                return await self.inner.generate(request, on_chunk)
        raise NarrativeGenerationError("Narrative generation gave up without a result")


__all__ = ["RetryingNarrator"]
