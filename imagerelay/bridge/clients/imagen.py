"""
Imagen predict generator used by the relay.
Calls the Generative Language REST endpoint with a server-side API key.

Required Environment Variables:
    GEMINI_API_KEY: Google API key for the Generative Language API
    IMAGEN_MODEL: Model name (default: imagen-4.0-generate-001)
    IMAGEN_ENDPOINT: API base URL (default: Generative Language v1beta)
    IMAGEN_TIMEOUT: Request timeout in seconds (default: 120)
"""
import logging
import os
import time
from typing import List

import requests

from ..errors import ProviderCallFailed, ProviderNoImage
from ..models import DEFAULT_MIME_TYPE, GenerationRequest, GenerationResult
from .base import BaseGenerator, redact

logger = logging.getLogger(__name__)


class ImagenPredictGenerator(BaseGenerator):
    """Imagen text-to-image generator over the REST :predict call."""

    ENV_API_KEY = "GEMINI_API_KEY"
    ENV_MODEL = "IMAGEN_MODEL"
    ENV_ENDPOINT = "IMAGEN_ENDPOINT"
    ENV_TIMEOUT = "IMAGEN_TIMEOUT"

    DEFAULT_MODEL = "imagen-4.0-generate-001"
    DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_TIMEOUT = 120

    REQUIRED_ENV = [ENV_API_KEY]

    def __init__(self, api_key: str = None, model: str = None, endpoint: str = None, timeout: float = None):
        self.api_key = api_key if api_key is not None else os.getenv(self.ENV_API_KEY)
        self.model = model or os.getenv(self.ENV_MODEL, self.DEFAULT_MODEL)
        self.endpoint = (endpoint or os.getenv(self.ENV_ENDPOINT, self.DEFAULT_ENDPOINT)).rstrip("/")
        self.timeout = timeout or float(os.getenv(self.ENV_TIMEOUT, self.DEFAULT_TIMEOUT))

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:predict"

    def get_missing_config(self) -> List[str]:
        return [] if self.api_key else [self.ENV_API_KEY]

    def build_payload(self, request: GenerationRequest) -> dict:
        return {
            "instances": [{"prompt": request.prompt}],
            "parameters": {
                "sampleCount": request.image_count,
                "aspectRatio": request.aspect_ratio.value,
            },
        }

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate an image with the Imagen predict endpoint."""
        if not self.is_configured():
            raise ProviderCallFailed(f"Missing required environment variables: {', '.join(self.get_missing_config())}")

        headers = {
            "Content-Type": "application/json",
            # Header rather than ?key= so the credential never shows up in exception URLs
            "x-goog-api-key": self.api_key,
        }

        start_time = time.time()
        logger.info(f"Submitting Imagen request: model={self.model} ratio={request.aspect_ratio.value} prompt={request.prompt[:50]!r}")

        try:
            response = requests.post(self.url, headers=headers, json=self.build_payload(request), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            message = redact(str(e), self.api_key)
            logger.error(f"Imagen request failed: {message}")
            raise ProviderCallFailed(message) from None

        latency = time.time() - start_time
        logger.info(f"Imagen response: status={response.status_code} latency={latency:.2f}s")

        try:
            result = response.json()
        except ValueError:
            message = f"Provider returned HTTP {response.status_code} with an unreadable body"
            logger.error(message)
            raise ProviderCallFailed(message) from None

        if not response.ok:
            detail = ""
            if isinstance(result, dict) and isinstance(result.get("error"), dict):
                detail = result["error"].get("message", "")
            message = redact(f"Provider returned HTTP {response.status_code}: {detail or response.reason}", self.api_key)
            logger.error(message)
            raise ProviderCallFailed(message)

        predictions = result.get("predictions") if isinstance(result, dict) else None
        encoded = None
        if predictions:
            encoded = (predictions[0] or {}).get("bytesBase64Encoded")

        if not encoded:
            logger.warning(f"Imagen returned no image; keys: {list(result.keys()) if isinstance(result, dict) else type(result).__name__}")
            raise ProviderNoImage()

        return GenerationResult(image_b64=encoded, mime_type=DEFAULT_MIME_TYPE)
