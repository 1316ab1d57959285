"""
Base Generator class for the image bridge.
"""
from typing import List

from ..models import GenerationRequest, GenerationResult


class BaseGenerator:
    """Abstract base class for image generators."""

    # Environment variables a generator needs before it can be used
    REQUIRED_ENV: List[str] = []

    def is_configured(self) -> bool:
        return not self.get_missing_config()

    def get_missing_config(self) -> List[str]:
        """Return list of missing configuration variables."""
        return []

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate one image for the request.
        Must be implemented by subclasses.

        Args:
            request: Validated generation request

        Returns:
            GenerationResult holding the encoded image

        Raises:
            ProviderNoImage: provider answered without an image payload
            ProviderCallFailed: transport error, non-2xx status or unreadable body
        """
        raise NotImplementedError("Subclasses must implement generate")


def redact(message: str, secret) -> str:
    """Strip a credential out of text that may reach a client or a log."""
    if isinstance(secret, str) and secret:
        return message.replace(secret, "***")
    return message
