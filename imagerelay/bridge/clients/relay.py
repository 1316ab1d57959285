"""
Relay client.
Sends prompts to the imagerelay service, which holds the provider key.
"""
import logging
import os
from typing import List

import requests

from ..errors import DecodeFailure, ProviderCallFailed, ProviderNoImage
from ..models import GenerationRequest, GenerationResult
from .base import BaseGenerator

logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = ProviderNoImage().args[0]


class RelayClient(BaseGenerator):
    """HTTP client for `POST /generate` on the relay."""

    ENV_URL = "RELAY_URL"
    DEFAULT_URL = "http://localhost:3000"

    def __init__(self, base_url: str = None, timeout: float = None, session: requests.Session = None):
        self.base_url = (base_url or os.getenv(self.ENV_URL, self.DEFAULT_URL)).rstrip("/")
        # None means no client-side timeout, same as the transport default
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_missing_config(self) -> List[str]:
        return []

    def generate(self, request: GenerationRequest) -> GenerationResult:
        url = f"{self.base_url}/generate"
        body = {"prompt": request.prompt, "aspectRatio": request.aspect_ratio.value}
        logger.info(f"POST {url} ratio={request.aspect_ratio.value}")

        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Relay request failed: {e}")
            raise ProviderCallFailed(str(e)) from None

        try:
            payload = response.json()
        except ValueError:
            raise ProviderCallFailed(f"Relay returned HTTP {response.status_code} with an unreadable body") from None

        if not isinstance(payload, dict):
            raise ProviderCallFailed("Relay returned an unexpected response shape")

        # The relay reports failures in the body and always answers 200
        error = payload.get("error")
        if error:
            if error == NO_IMAGE_MESSAGE:
                raise ProviderNoImage(error)
            raise ProviderCallFailed(str(error))

        if not response.ok:
            raise ProviderCallFailed(f"Relay returned HTTP {response.status_code}")

        image = payload.get("image")
        if not image:
            raise ProviderNoImage()
        try:
            return GenerationResult.from_data_uri(image)
        except DecodeFailure as e:
            raise ProviderCallFailed(str(e)) from None
