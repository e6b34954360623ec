"""FastAPI application entrypoint for source extraction and article generation."""

import logging
from typing import Optional, Type

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from sourcewriter.config import Settings, get_settings
from sourcewriter.errors import ValidationError, register_exception_handlers
from sourcewriter.generator import get_generator
from sourcewriter.guard import InFlightGuard
from sourcewriter.interpreter import Structured, interpret
from sourcewriter.logging_config import configure_logging
from sourcewriter.pipeline import extract_text
from sourcewriter.prompting import build_generation_prompt
from sourcewriter.schemas import (
    ExtractResponse,
    GenerateRequest,
    GenerateResponse,
    WebsiteExtractRequest,
    YouTubeExtractRequest,
)
from sourcewriter.sources import PdfSource, WebsiteSource, YouTubeSource


configure_logging(get_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Source to Article", version="1.0.0")
register_exception_handlers(app)

PDF_UPLOAD_NOTICE = (
    "PDF uploaded. Server-side extraction is available with ?mode=pdf; "
    "alternatively extract the PDF text client-side and send it to /api/generate."
)

# One generation at a time; a concurrent caller gets 409 instead of queueing.
generation_guard = InFlightGuard()


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(_request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(_request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def _read_json(request: Request, model: Type[BaseModel]) -> BaseModel:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(body)
    except SchemaValidationError as exc:
        raise ValidationError("Invalid request body", details=jsonable_encoder(exc.errors())) from exc


async def _read_upload(request: Request) -> bytes:
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise ValidationError("pdf file missing")
    data = await upload.read()
    if not data:
        raise ValidationError("pdf file missing")
    return data


@app.get("/health")
def health_check(settings: Settings = Depends(get_settings)):
    """Return service liveness and the configured generation backend."""
    return {
        "status": "ok",
        "backend": settings.generation_backend,
        "model": settings.hf_model,
    }


@app.post("/api/extract", response_model=ExtractResponse)
async def extract_source(
    request: Request,
    mode: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    """Extract plain text from a website, a YouTube transcript, or a PDF upload."""
    timeout = settings.fetch_timeout

    if mode == "website":
        payload = await _read_json(request, WebsiteExtractRequest)
        if not payload.url:
            raise ValidationError("url required")
        source = WebsiteSource(url=payload.url)
    elif mode == "youtube":
        payload = await _read_json(request, YouTubeExtractRequest)
        if not payload.video_url:
            raise ValidationError("videoUrl required")
        source = YouTubeSource(url=payload.video_url)
    elif mode == "pdf":
        source = PdfSource(data=await _read_upload(request))
    elif mode is None:
        # Plain uploads are acknowledged only; extraction happens client-side or via mode=pdf.
        await _read_upload(request)
        return ExtractResponse(text=PDF_UPLOAD_NOTICE)
    else:
        raise ValidationError(f"unknown mode: {mode}")

    logger.info("Extracting %s source", mode)
    text = await run_in_threadpool(extract_text, source, timeout)
    return ExtractResponse(text=text)


@app.post("/api/generate", response_model=GenerateResponse, response_model_exclude_none=True)
def generate_article(payload: GenerateRequest, settings: Settings = Depends(get_settings)):
    """Generate an article from extracted text, falling back to raw model output."""
    if not payload.text:
        raise ValidationError("text required")

    with generation_guard.hold():
        prompt = build_generation_prompt(payload.text, payload.options)
        generated = get_generator(settings).generate(prompt, payload.options)

    interpretation = interpret(generated)
    if isinstance(interpretation, Structured):
        return GenerateResponse(result=interpretation.result)
    return GenerateResponse(raw=interpretation.raw)
