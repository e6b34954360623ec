"""Error taxonomy and its translation to JSON responses."""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)

TRANSCRIPT_REMEDIATION = "Could not fetch transcript — please paste transcript text"


class SourceWriterError(Exception):
    """Base error for failures reported to API callers as `{error, details?}`."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Any = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(SourceWriterError):
    """A required request field is missing."""

    status_code = 400


class SourceFetchError(SourceWriterError):
    """Website or transcript retrieval failed."""

    status_code = 500


class TranscriptUnavailableError(SourceFetchError):
    """No transcript could be fetched; the user should paste one manually."""

    status_code = 422

    def __init__(self, message: str = TRANSCRIPT_REMEDIATION, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NoExtractableTextError(SourceWriterError):
    """The source decoded fine but yielded no usable text."""

    status_code = 422


class GenerationEndpointError(SourceWriterError):
    """The inference endpoint answered with a non-success status."""

    status_code = 502


class GenerationBusyError(SourceWriterError):
    """Another generation request is already in flight."""

    status_code = 409


class ResponseFormatError(SourceWriterError):
    """Generated text did not match the requested JSON shape.

    Raised only inside the interpreter, which recovers by returning the raw text.
    """


def register_exception_handlers(app: FastAPI) -> None:
    """Translate service errors into `{error}` JSON bodies on the given app."""

    @app.exception_handler(SourceWriterError)
    async def _service_error_handler(_request: Request, exc: SourceWriterError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s: %s", type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving request")
        return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})
