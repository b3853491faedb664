"""Protocol for inference providers used for claim extraction and verification."""

from typing import Dict, Protocol


class InferenceProvider(Protocol):
    """Protocol defining the interface for text inference services.

    Implementations return the raw text produced by the model and translate
    transport failures into the error taxonomy of ``domain.errors``:
    HTTP 429 raises ``RateLimitExceeded``, 529 raises ``ServiceOverloadedError``,
    other 5xx responses and timeouts raise ``TransientServiceError``.
    """

    async def initialize(self) -> None:
        """Initialize the provider."""
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    async def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = 4096,
        request_timeout: float = 20.0,
        read_timeout: float = 15.0,
    ) -> str:
        """Send a single-turn prompt and return the model's text."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if the provider is available and ready."""
        ...

    @property
    def capabilities(self) -> Dict[str, bool]:
        """Get the provider's capabilities."""
        ...
