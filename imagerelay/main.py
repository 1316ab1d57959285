import logging
import os
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ConfigDict, Field

from .bridge.clients import BaseGenerator, ImagenPredictGenerator, RelayClient
from .bridge.clients.base import redact
from .bridge.errors import EmptyPrompt, ImageRelayError
from .bridge.models import DEFAULT_ASPECT_RATIO, MAX_REFERENCE_IMAGE_BYTES, AspectRatio, GenerationRequest

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

app = FastAPI(
    title="Image Relay",
    description="Forwards prompts to Imagen and keeps the provider key server-side",
    version="1.0.0"
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

# Credential is read once, at process start
relay_generator = ImagenPredictGenerator()


def get_relay_generator() -> BaseGenerator:
    return relay_generator


class GenerateRequest(BaseModel):
    """Request body for the relay."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "prompt": "a red fox in snow",
                "aspectRatio": "1:1"
            }
        }
    )

    prompt: str = Field(default="", description="Text describing the image")
    aspect_ratio: Optional[str] = Field(
        default=None,
        alias="aspectRatio",
        description=f"One of {', '.join(r.value for r in AspectRatio)} (default: {DEFAULT_ASPECT_RATIO.value})"
    )


class GenerateResponse(BaseModel):
    """Either `image` (a data URI) or `error` is set."""
    image: Optional[str] = None
    error: Optional[str] = None


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Keep the relay contract for malformed bodies: status 200 and an `error` field.
    Other routes get the default 422 response.
    """
    if request.url.path != "/generate":
        return await request_validation_exception_handler(request, exc)

    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "invalid value")
    else:
        detail = "invalid body"
    logger.warning(f"Rejected /generate body: {detail}")
    return JSONResponse(status_code=200, content={"error": f"Invalid request: {detail}"})


@app.get("/", response_class=HTMLResponse)
def read_root(request: Request):
    """
    Serve the prompt form.
    """
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "ratios": list(AspectRatio),
            "default_ratio": DEFAULT_ASPECT_RATIO,
            "max_reference_bytes": MAX_REFERENCE_IMAGE_BYTES
        }
    )


@app.post("/generate", response_model=GenerateResponse, response_model_exclude_none=True, tags=["Relay"])
def generate(body: GenerateRequest, generator: BaseGenerator = Depends(get_relay_generator)):
    """
    Generate one image for the prompt.

    Always answers 200. Failures come back as `{"error": "..."}`, so callers
    have to check the body rather than the status code.
    """
    try:
        request = GenerationRequest.build(body.prompt, body.aspect_ratio or DEFAULT_ASPECT_RATIO)
    except EmptyPrompt:
        return GenerateResponse(error="Prompt must not be empty")
    except ValueError as e:
        return GenerateResponse(error=str(e))

    try:
        result = generator.generate(request)
    except ImageRelayError as e:
        logger.warning(f"Generation failed: {e}")
        return GenerateResponse(error=str(e))
    except Exception as e:
        message = redact(str(e), getattr(generator, "api_key", None))
        logger.error(f"Unexpected relay error: {message}")
        return GenerateResponse(error=message)

    return GenerateResponse(image=result.data_uri)


@app.get("/aspect-ratios", tags=["Relay"])
def list_aspect_ratios():
    """
    List supported aspect ratios.
    """
    return {
        "default": DEFAULT_ASPECT_RATIO.value,
        "aspect_ratios": [{"value": r.value, "label": r.label} for r in AspectRatio]
    }


@app.get("/providers", tags=["Relay"])
def list_providers(generator: BaseGenerator = Depends(get_relay_generator)):
    """
    List generator providers and their configuration status.
    """
    from .bridge.clients.direct import ImagenDirectGenerator

    direct = ImagenDirectGenerator()
    relay = RelayClient()

    def describe(name: str, description: str, gen: BaseGenerator, required: List[str]) -> dict:
        return {
            "name": name,
            "description": description,
            "configured": gen.is_configured(),
            "required_env_vars": required,
            "missing": gen.get_missing_config()
        }

    return {
        "providers": [
            describe("imagen", f"Imagen predict with {getattr(generator, 'model', 'default')} model (used by this relay)",
                     generator, list(generator.REQUIRED_ENV)),
            describe("direct", f"Imagen via google-genai with {direct.model} model (key held by the caller)",
                     direct, list(ImagenDirectGenerator.REQUIRED_ENV)),
            describe("relay", f"This relay at {relay.base_url}", relay, []),
        ]
    }


@app.get("/health")
def health(generator: BaseGenerator = Depends(get_relay_generator)):
    return {"ok": True, "provider_configured": generator.is_configured()}
