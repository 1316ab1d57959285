"""
Data model for the generation bridge.
All entities are transient and live for one session at most.
"""
import base64
import binascii
import mimetypes
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .errors import DecodeFailure, EmptyPrompt

DEFAULT_MIME_TYPE = "image/png"

# Reference images above this size are rejected
MAX_REFERENCE_IMAGE_BYTES = 5 * 1024 * 1024

ARTIFACT_PREFIX = "digi-ai-image"

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]*)(?P<b64>;base64)?,(?P<payload>.*)$", re.DOTALL)


class AspectRatio(str, Enum):
    """Width:height presets accepted by the provider."""
    WIDE = "16:9"
    TALL = "9:16"
    SQUARE = "1:1"

    @property
    def label(self) -> str:
        return _RATIO_LABELS[self]

    @property
    def slug(self) -> str:
        """Filename-safe form, e.g. '16x9'."""
        return self.value.replace(":", "x")

    @classmethod
    def parse(cls, value: Union[str, "AspectRatio"]) -> "AspectRatio":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unsupported aspect ratio: {value}") from None


_RATIO_LABELS = {
    AspectRatio.WIDE: "Landscape",
    AspectRatio.TALL: "Portrait",
    AspectRatio.SQUARE: "Square",
}

DEFAULT_ASPECT_RATIO = AspectRatio.WIDE


class Phase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class GenerationRequest:
    """A single text-to-image request. Always asks for exactly one image."""
    prompt: str
    aspect_ratio: AspectRatio = DEFAULT_ASPECT_RATIO
    image_count: int = field(default=1, init=False)

    @classmethod
    def build(cls, prompt: str, aspect_ratio: Union[str, AspectRatio] = DEFAULT_ASPECT_RATIO) -> "GenerationRequest":
        """
        Validate user input and build a request.

        Raises:
            EmptyPrompt: prompt is empty after trimming whitespace
            ValueError: aspect ratio is not one of the supported presets
        """
        if not prompt or not prompt.strip():
            raise EmptyPrompt()
        return cls(prompt=prompt, aspect_ratio=AspectRatio.parse(aspect_ratio))


@dataclass(frozen=True)
class GenerationResult:
    """A generated image held as base64 text plus its MIME type."""
    image_b64: str
    mime_type: str = DEFAULT_MIME_TYPE

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.image_b64}"

    def decode(self) -> bytes:
        """Return the raw image bytes, raising DecodeFailure on bad or empty payloads."""
        try:
            data = base64.b64decode(self.image_b64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeFailure(f"Image payload is not valid base64: {e}") from e
        if not data:
            raise DecodeFailure("Image payload is empty")
        return data

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: Optional[str] = None) -> "GenerationResult":
        return cls(image_b64=base64.b64encode(data).decode("ascii"), mime_type=mime_type or DEFAULT_MIME_TYPE)

    @classmethod
    def from_data_uri(cls, uri: str) -> "GenerationResult":
        match = _DATA_URI_RE.match(uri or "")
        if not match or not match.group("b64"):
            raise DecodeFailure("Image is not a base64 data URI")
        return cls(image_b64=match.group("payload"), mime_type=match.group("mime") or DEFAULT_MIME_TYPE)


@dataclass
class ReferenceImage:
    """A locally held image used for inspiration only. Never sent to the provider."""
    filename: str
    content_type: str
    data: bytes = b""
    size: Optional[int] = None

    def __post_init__(self):
        if self.size is None:
            self.size = len(self.data)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ReferenceImage":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        data = path.read_bytes()
        return cls(
            filename=path.name,
            content_type=content_type or "application/octet-stream",
            data=data,
            size=len(data),
        )


@dataclass(frozen=True)
class DownloadArtifact:
    """A named, decoded image ready to be saved."""
    filename: str
    data: bytes
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def for_result(cls, result: GenerationResult, aspect_ratio: AspectRatio,
                   timestamp_ms: Optional[int] = None) -> "DownloadArtifact":
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        return cls(
            filename=f"{ARTIFACT_PREFIX}-{aspect_ratio.slug}-{timestamp_ms}.png",
            data=result.decode(),
        )
