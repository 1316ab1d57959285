from unittest.mock import MagicMock, patch

import pytest
import requests

from imagerelay.bridge.clients.imagen import ImagenPredictGenerator
from imagerelay.bridge.errors import ProviderCallFailed, ProviderNoImage
from imagerelay.bridge.models import AspectRatio, GenerationRequest

from .conftest import PNG_B64

SECRET = "test-secret-key"


def make_response(status_code=200, json_data=None, json_error=None, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = reason
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def generator():
    return ImagenPredictGenerator(api_key=SECRET, model="imagen-4.0-generate-001", endpoint="https://example.test/v1beta")


@pytest.fixture
def request_():
    return GenerationRequest.build("a red fox in snow", AspectRatio.SQUARE)


def test_configuration_from_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    monkeypatch.setenv("IMAGEN_MODEL", "imagen-custom")
    generator = ImagenPredictGenerator()
    assert generator.api_key == "from-env"
    assert generator.model == "imagen-custom"
    assert generator.is_configured()


def test_missing_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    generator = ImagenPredictGenerator()
    assert generator.get_missing_config() == ["GEMINI_API_KEY"]
    with pytest.raises(ProviderCallFailed, match="GEMINI_API_KEY"):
        generator.generate(GenerationRequest.build("a fox"))


def test_builds_provider_request(generator, request_):
    response = make_response(json_data={"predictions": [{"bytesBase64Encoded": PNG_B64, "mimeType": "image/png"}]})
    with patch("imagerelay.bridge.clients.imagen.requests.post", return_value=response) as post:
        result = generator.generate(request_)

    url = post.call_args.args[0]
    kwargs = post.call_args.kwargs
    assert url == "https://example.test/v1beta/models/imagen-4.0-generate-001:predict"
    assert SECRET not in url
    assert kwargs["headers"]["x-goog-api-key"] == SECRET
    assert kwargs["json"] == {
        "instances": [{"prompt": "a red fox in snow"}],
        "parameters": {"sampleCount": 1, "aspectRatio": "1:1"},
    }
    assert kwargs["timeout"] == 120
    assert result.image_b64 == PNG_B64
    assert result.data_uri.startswith("data:image/png;base64,")


@pytest.mark.parametrize("body", [{}, {"predictions": []}, {"predictions": [{}]}, {"predictions": [{"bytesBase64Encoded": ""}]}])
def test_no_image(generator, request_, body):
    with patch("imagerelay.bridge.clients.imagen.requests.post", return_value=make_response(json_data=body)):
        with pytest.raises(ProviderNoImage, match="API returned no image"):
            generator.generate(request_)


def test_connection_error_is_redacted(generator, request_):
    error = requests.exceptions.ConnectionError(f"failed to reach https://example.test/?key={SECRET}")
    with patch("imagerelay.bridge.clients.imagen.requests.post", side_effect=error):
        with pytest.raises(ProviderCallFailed) as excinfo:
            generator.generate(request_)
    assert SECRET not in str(excinfo.value)
    assert "failed to reach" in str(excinfo.value)


def test_non_2xx_with_error_body(generator, request_):
    response = make_response(400, {"error": {"code": 400, "message": "Prompt was blocked"}}, reason="Bad Request")
    with patch("imagerelay.bridge.clients.imagen.requests.post", return_value=response):
        with pytest.raises(ProviderCallFailed, match="HTTP 400: Prompt was blocked"):
            generator.generate(request_)


def test_unreadable_body(generator, request_):
    response = make_response(502, json_error=ValueError("no json"), reason="Bad Gateway")
    with patch("imagerelay.bridge.clients.imagen.requests.post", return_value=response):
        with pytest.raises(ProviderCallFailed, match="HTTP 502"):
            generator.generate(request_)


def test_credential_not_logged(generator, request_, caplog):
    response = make_response(json_data={"predictions": [{"bytesBase64Encoded": PNG_B64}]})
    with caplog.at_level("DEBUG"):
        with patch("imagerelay.bridge.clients.imagen.requests.post", return_value=response):
            generator.generate(request_)
    assert SECRET not in caplog.text
