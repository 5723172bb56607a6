import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from soundsnap.api.routes import health_check
from soundsnap.api.routes import router as api_router
from soundsnap.config import settings
from soundsnap.logging_config import configure_logging
from soundsnap.models.schemas import HealthResponse
from soundsnap.services.fal_client import close_http_client

logger = logging.getLogger(__name__)

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SoundSnap backend starting (fal api key %s)", "set" if settings.fal_key else "missing")
    yield
    await close_http_client()


app = FastAPI(title="SoundSnap Ambient Audio Backend", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_origin_regex=settings.cors_allowed_origin_regex,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(api_router)
app.add_api_route("/health", health_check, methods=["GET"], response_model=HealthResponse)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def main() -> None:
    uvicorn.run("soundsnap.app:app", host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    main()
