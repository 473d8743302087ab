from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import router
from app.core.config import Settings, settings as default_settings
from app.core.errors import InvalidInput, OrchestrationError
from app.core.logging import configure_logging
from app.ocr.factory import get_ocr_engine
from app.ocr.manager import RecognitionEngineManager
from app.pipeline.pipeline import ExtractionPipeline
from app.preprocessing.preprocessor import ImagePreprocessor

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("startup", extra={"ocr_provider": settings.ocr_provider, "env": settings.app_env})
        yield
        await app.state.engine_manager.shutdown()
        logger.info("shutdown")

    app = FastAPI(title="Price Tag Scanner", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    engine_manager = RecognitionEngineManager(
        partial(get_ocr_engine, settings),
        shutdown_timeout=settings.engine_shutdown_timeout,
    )
    app.state.settings = settings
    app.state.engine_manager = engine_manager
    app.state.pipeline = ExtractionPipeline(
        engine_manager,
        preprocessor=ImagePreprocessor(max_width=settings.preprocess_max_width),
    )

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to the Price Tag Scanner API",
            "docs": "/docs",
            "health": "/api/health",
        }

    @app.exception_handler(InvalidInput)
    async def _invalid_input(request: Request, exc: InvalidInput) -> JSONResponse:
        logger.warning("invalid_input", extra={"path": request.url.path, "error": exc.message})
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("invalid_input", extra={"path": request.url.path, "error": str(exc.errors())})
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    @app.exception_handler(OrchestrationError)
    async def _orchestration_error(request: Request, exc: OrchestrationError) -> JSONResponse:
        logger.error(
            "request_failed",
            extra={"path": request.url.path, "error_type": type(exc).__name__, "details": exc.details},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.public_message, "details": exc.details},
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
