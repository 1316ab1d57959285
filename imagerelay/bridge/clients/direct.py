"""
Direct Imagen generator.
Calls the provider through the google-genai SDK from the calling process, so the
API key has to be available there. Output is always requested as PNG.
"""
import logging
import os
from typing import List

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import ProviderCallFailed, ProviderNoImage
from ..models import DEFAULT_MIME_TYPE, GenerationRequest, GenerationResult
from .base import BaseGenerator, redact

logger = logging.getLogger(__name__)


class ImagenDirectGenerator(BaseGenerator):
    """Imagen generator using `models.generate_images`."""

    ENV_API_KEY = "GEMINI_API_KEY"
    ENV_MODEL = "IMAGEN_MODEL"
    DEFAULT_MODEL = "imagen-4.0-generate-001"

    REQUIRED_ENV = [ENV_API_KEY]

    def __init__(self, api_key: str = None, model: str = None, client=None):
        # Read once at construction; later environment changes are not picked up
        self.api_key = api_key if api_key is not None else os.getenv(self.ENV_API_KEY)
        self.model = model or os.getenv(self.ENV_MODEL, self.DEFAULT_MODEL)
        self._client = client

    def get_missing_config(self) -> List[str]:
        return [] if self.api_key or self._client is not None else [self.ENV_API_KEY]

    @property
    def client(self):
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def generate(self, request: GenerationRequest) -> GenerationResult:
        if not self.is_configured():
            raise ProviderCallFailed(f"Missing required environment variables: {', '.join(self.get_missing_config())}")

        logger.info(f"Generating image with model {self.model} ratio={request.aspect_ratio.value}")
        config = types.GenerateImagesConfig(
            number_of_images=request.image_count,
            output_mime_type=DEFAULT_MIME_TYPE,
            aspect_ratio=request.aspect_ratio.value,
        )

        try:
            response = self.client.models.generate_images(
                model=self.model,
                prompt=request.prompt,
                config=config,
            )
        except (genai_errors.APIError, httpx.HTTPError, ValueError, OSError) as e:
            message = redact(str(e), self.api_key)
            logger.error(f"Direct Imagen call failed: {message}")
            raise ProviderCallFailed(message) from None

        generated = response.generated_images or []
        image = generated[0].image if generated else None
        if image is None or not image.image_bytes:
            raise ProviderNoImage()

        return GenerationResult.from_bytes(image.image_bytes, image.mime_type or DEFAULT_MIME_TYPE)
