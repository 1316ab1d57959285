"""
Bridge Module
Form controller, data model and generator clients for prompt-to-image requests.
"""
from .controller import FormController, SessionState
from .clients import get_generator
from .models import AspectRatio, GenerationRequest, GenerationResult, ReferenceImage, DownloadArtifact

__all__ = [
    "FormController",
    "SessionState",
    "get_generator",
    "AspectRatio",
    "GenerationRequest",
    "GenerationResult",
    "ReferenceImage",
    "DownloadArtifact",
]
