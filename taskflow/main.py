import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskflow.config import Settings
from taskflow.db.storage import Storage, build_storage
from taskflow.exceptions import DuplicateRecordError, MissingReferenceError, StorageFault
from taskflow.logging_setup import configure_logging
from taskflow.routers import ai
from taskflow.routes.routes import router
from taskflow.services.llm_service import SuggestionService

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err["loc"][1:]) for err in exc.errors()]
        logger.info("Rejected %s %s: invalid %s", request.method, request.url.path, fields)
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request data", "fields": [f for f in fields if f]},
        )

    @app.exception_handler(DuplicateRecordError)
    async def duplicate_record(request: Request, exc: DuplicateRecordError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(MissingReferenceError)
    async def missing_reference(request: Request, exc: MissingReferenceError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StorageFault)
    async def storage_fault(request: Request, exc: StorageFault):
        logger.error("Storage fault on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Stored data could not be read"})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[Storage] = None,
    suggestions: Optional[SuggestionService] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    if storage is None:
        storage = build_storage(settings)
    if suggestions is None:
        suggestions = SuggestionService(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            timeout_seconds=settings.ai_timeout_seconds,
        )
    if not suggestions.available:
        logger.warning("GEMINI_API_KEY is not set; AI suggestions are disabled")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.storage.close()

    app = FastAPI(title="TaskFlow", lifespan=lifespan)
    app.state.settings = settings
    app.state.storage = storage
    app.state.suggestions = suggestions

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s %s in %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
        return response

    register_exception_handlers(app)

    # Register routers
    app.include_router(router)
    app.include_router(ai.router)
    return app


settings = Settings.from_env()
configure_logging(settings.log_level)
app = create_app(settings)


def main() -> None:
    import uvicorn
    uvicorn.run("taskflow.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
