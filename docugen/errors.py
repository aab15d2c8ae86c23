"""Domain exceptions for provider calls, chapter generation, and CLI diagnostics.

Key types:
- `ProviderError`: a generation provider request failed or returned malformed output.
- `RateLimitError`: provider failure that is known to be rate-limit shaped.
- `ChapterStageError`: a chapter pipeline stage failed, tagged with its failure kind.
- `PipelineStageError`: command-level failure rendered by the CLI.
"""

from __future__ import annotations


SCRIPT_ERROR = "SCRIPT_ERROR"
IMAGE_ERROR = "IMAGE_ERROR"
AUDIO_ERROR = "AUDIO_ERROR"
UNKNOWN_ERROR = "UNKNOWN"


class ProviderError(RuntimeError):
    """Raised when a generation provider request fails or returns malformed output."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
        provider_code: str | None = None,
    ) -> None:
        """Initialize provider error metadata for stage-aware diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code
        self.provider_code = provider_code


class RateLimitError(ProviderError):
    """Raised when the provider rejects a request because of rate limits or quota."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = 429,
        provider_code: str | None = "RESOURCE_EXHAUSTED",
    ) -> None:
        """Initialize a rate-limit error with 429-shaped defaults."""

        super().__init__(
            message,
            failure_kind="rate_limited",
            status_code=status_code,
            provider_code=provider_code,
        )


class ChapterStageError(RuntimeError):
    """Raised inside the chapter pipeline when one stage fails."""

    def __init__(self, failure: str, detail: str) -> None:
        """Initialize a stage-tagged chapter error."""

        super().__init__(failure)
        self.failure = failure
        self.detail = detail


class PipelineStageError(RuntimeError):
    """Raised when a specific command stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped pipeline error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
