"""
Error kinds raised across the generation bridge.
Generators raise these; the relay route and the form controller convert them
into an error message at their own boundary.
"""


class ImageRelayError(Exception):
    """Base class for every bridge failure."""


class EmptyPrompt(ImageRelayError):
    def __init__(self, message: str = "Please enter a creative prompt."):
        super().__init__(message)


class InvalidImageType(ImageRelayError):
    def __init__(self, message: str = "Please upload a valid image file."):
        super().__init__(message)


class ImageTooLarge(ImageRelayError):
    def __init__(self, message: str = "Image is too large. Please upload an image smaller than 5MB."):
        super().__init__(message)


class ProviderNoImage(ImageRelayError):
    def __init__(self, message: str = "API returned no image"):
        super().__init__(message)


class ProviderCallFailed(ImageRelayError):
    """Transport failure, non-2xx status or unreadable provider body."""


class DecodeFailure(ImageRelayError):
    """Encoded payload cannot be turned into image bytes."""
