import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from peticao.api.routes import router
from peticao.core.config import settings
from peticao.core.exceptions import AssemblyError
from peticao.core.exceptions import ConfigurationError
from peticao.core.exceptions import ConflictError
from peticao.core.exceptions import NotFoundError
from peticao.core.exceptions import StorageIOError
from peticao.core.exceptions import TransientIOError
from peticao.core.exceptions import ValidationError
from peticao.core.logging import setup_logging

setup_logging()

app = FastAPI(title="Petição Generator")

logger = logging.getLogger(__name__)


@app.on_event("startup")
async def startup_event() -> None:
    logger.info("Application started (bucket=%s)", settings.s3_bucket_name or "<unset>")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": exc.errors()},
        status_code=422,
    )


@app.exception_handler(ValidationError)
async def upload_validation_handler(_request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning(f"Upload rejected: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=400)


@app.exception_handler(StorageIOError)
async def storage_exception_handler(_request: Request, exc: StorageIOError) -> JSONResponse:
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, ConflictError):
        status_code = 409
    elif isinstance(exc, TransientIOError) or exc.kind == "transient":
        status_code = 503
    else:
        status_code = 502
    logger.error(f"Storage error ({status_code}): {str(exc)}")
    return JSONResponse({"error": str(exc), "code": exc.code}, status_code=status_code)


@app.exception_handler(AssemblyError)
async def assembly_exception_handler(_request: Request, exc: AssemblyError) -> JSONResponse:
    logger.error(f"Assembly error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(_request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Configuration error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
