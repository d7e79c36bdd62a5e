"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from media_converter import __version__
from media_converter.api.routes import router
from media_converter.config import CORS_ORIGINS, MAX_UPLOAD_SIZE_BYTES, logger as config_logger
from media_converter.conversion.results import error_response
from media_converter.conversion.service import ConversionService
from media_converter.errors import AppError, InternalError, PayloadTooLarge, error_body

logging.getLogger("uvicorn").setLevel(logging.INFO)
logger = logging.getLogger("converter.api")

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "PAYLOAD_TOO_LARGE",
}


class BodySizeLimitMiddleware:
    """Reject request bodies over max_bytes, by declared length or while they stream in."""

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = dict(scope.get("headers") or []).get(b"content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            exc = PayloadTooLarge(self.max_bytes)
            logger.error("API error: %s - %s", exc.code, exc.message)
            response = JSONResponse(error_body(exc.message, exc.code), status_code=exc.status_code)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise PayloadTooLarge(self.max_bytes)
            return message

        await self.app(scope, limited_receive, send)


async def app_error_handler(request: Request, exc: AppError):
    logger.error("API error: %s - %s", exc.code, exc.message)
    status, body = error_response(exc)
    return JSONResponse(body, status_code=status)


async def payload_too_large_handler(request: Request, exc: PayloadTooLarge):
    logger.error("API error: %s - %s", exc.code, exc.message)
    return JSONResponse(error_body(exc.message, exc.code), status_code=exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse(
        error_body(str(exc.detail), code),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error("API error: BAD_REQUEST - %s", exc.errors())
    return JSONResponse(error_body("Invalid request parameters", "BAD_REQUEST"), status_code=400)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = InternalError("Internal server error")
    return JSONResponse(error_body(err.message, err.code), status_code=err.status_code)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.conversion_service = ConversionService()
    config_logger.info("Converter API started")
    yield
    app.state.conversion_service.shutdown()
    config_logger.info("Converter API shutting down")


def create_app(max_upload_bytes: int = MAX_UPLOAD_SIZE_BYTES) -> FastAPI:
    app = FastAPI(
        title="PNG/MP4 Converter API",
        description="Convert PNG images to WebP and MP4 videos to WebM.",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=max_upload_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Accept", "Content-Type"],
    )
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(PayloadTooLarge, payload_too_large_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    import uvicorn
    from media_converter.config import HOST, PORT
    config_logger.info("Server starting on http://%s:%s", HOST, PORT)
    uvicorn.run("media_converter.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
