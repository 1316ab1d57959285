"""
Form Controller
Holds one session's form state and drives a generator for each submission.
"""
import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

from .clients import BaseGenerator
from .errors import EmptyPrompt, ImageRelayError, ImageTooLarge, InvalidImageType
from .models import (
    DEFAULT_ASPECT_RATIO,
    MAX_REFERENCE_IMAGE_BYTES,
    AspectRatio,
    DownloadArtifact,
    GenerationRequest,
    GenerationResult,
    Phase,
    ReferenceImage,
)

logger = logging.getLogger(__name__)

ERROR_PREVIEW_CHARS = 150


def format_failure(message: str, limit: int = ERROR_PREVIEW_CHARS) -> str:
    """User-facing text for a failed submission."""
    return f"Failed to generate image: {message[:limit]}..."


@dataclass
class SessionState:
    """Form state for one session. Not persisted."""
    prompt: str = ""
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    reference_image: Optional[ReferenceImage] = None
    loading: bool = False
    error: Optional[str] = None
    result: Optional[GenerationResult] = None
    phase: Phase = Phase.IDLE
    # Id of the most recent dispatch; responses for older ids are dropped
    latest_request_id: int = 0

    @property
    def image_url(self) -> Optional[str]:
        return self.result.data_uri if self.result else None


class FormController:
    """
    Collects a generation request from user input, dispatches it and keeps
    the outcome.

    Overlapping submissions are allowed. Each dispatch gets an increasing id
    and only the response for the latest id updates the visible state.
    """

    def __init__(self, generator: BaseGenerator,
                 save_action: Optional[Callable[[DownloadArtifact], object]] = None,
                 state: Optional[SessionState] = None):
        self.generator = generator
        if save_action is None:
            from ..storage import ArtifactStore
            save_action = ArtifactStore().save
        self.save_action = save_action
        self.state = state or SessionState()
        self._lock = threading.Lock()

    def snapshot(self) -> SessionState:
        with self._lock:
            return replace(self.state)

    def _edited(self):
        if self.state.phase in (Phase.SUCCESS, Phase.FAILED):
            self.state.phase = Phase.IDLE

    def update_prompt(self, text: str):
        with self._lock:
            self.state.prompt = text
            self._edited()

    def select_aspect_ratio(self, value: Union[str, AspectRatio]):
        ratio = AspectRatio.parse(value)
        with self._lock:
            self.state.aspect_ratio = ratio
            self._edited()

    def attach_reference_image(self, image: ReferenceImage):
        """
        Keep a reference image for display. It is not sent to the provider.

        Raises:
            InvalidImageType: declared type is not image/*
            ImageTooLarge: image is over 5 MiB
        """
        content_type = (image.content_type or "").lower()
        try:
            if not content_type.startswith("image/"):
                raise InvalidImageType()
            if image.size > MAX_REFERENCE_IMAGE_BYTES:
                raise ImageTooLarge()
        except ImageRelayError as e:
            with self._lock:
                self.state.error = str(e)
            logger.info(f"Rejected reference image {image.filename}: {e}")
            raise

        with self._lock:
            self.state.reference_image = image
            self.state.error = None

    def clear_reference_image(self):
        with self._lock:
            self.state.reference_image = None

    def submit(self) -> Optional[GenerationResult]:
        """
        Send the current prompt and aspect ratio to the generator.

        Returns:
            The generated result, or None when the call failed or was superseded
            by a newer submission.

        Raises:
            EmptyPrompt: prompt is blank; nothing is sent
        """
        with self._lock:
            try:
                request = GenerationRequest.build(self.state.prompt, self.state.aspect_ratio)
            except EmptyPrompt as e:
                self.state.error = str(e)
                raise
            self.state.latest_request_id += 1
            request_id = self.state.latest_request_id
            self.state.loading = True
            self.state.phase = Phase.LOADING
            self.state.error = None
            self.state.result = None

        logger.info(f"Dispatching request #{request_id}")
        result = None
        error = None
        try:
            result = self.generator.generate(request)
            result.decode()
        except ImageRelayError as e:
            result = None
            error = format_failure(str(e))
            logger.error(f"Request #{request_id} failed: {e}")
        except Exception as e:
            result = None
            error = format_failure(str(e) or type(e).__name__)
            logger.exception(f"Request #{request_id} failed unexpectedly")

        with self._lock:
            if request_id != self.state.latest_request_id:
                logger.info(f"Discarding stale response for request #{request_id}")
                return None
            self.state.loading = False
            if error is None:
                self.state.result = result
                self.state.phase = Phase.SUCCESS
            else:
                self.state.error = error
                self.state.phase = Phase.FAILED
        return result

    def download(self) -> Optional[DownloadArtifact]:
        """Decode the held image and hand it to the save action. No-op without a result."""
        with self._lock:
            result = self.state.result
            aspect_ratio = self.state.aspect_ratio
        if result is None:
            return None

        artifact = DownloadArtifact.for_result(result, aspect_ratio)
        self.save_action(artifact)
        logger.info(f"Saved {artifact.filename} ({len(artifact.data)} bytes)")
        return artifact
