import base64

import pytest

from imagerelay.bridge.clients import BaseGenerator
from imagerelay.bridge.errors import ProviderNoImage
from imagerelay.bridge.models import GenerationResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(32))
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


class FakeGenerator(BaseGenerator):
    """Records requests and replays a scripted outcome."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.requests = []

    def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise ProviderNoImage()
        return self.result


@pytest.fixture
def png_result():
    return GenerationResult(image_b64=PNG_B64)


@pytest.fixture
def fake_generator(png_result):
    return FakeGenerator(result=png_result)


@pytest.fixture
def saved():
    """Artifacts handed to the save action; pass `saved.append` as the action."""
    return []
