# facematch/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import LOG_LEVEL, ServiceConfig
from .errors import InsufficientSamples, StorageFailure, ValidationError
from .routes.face_routes import router as face_router
from .service import FaceMatchService

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def _describe(exc: RequestValidationError) -> str:
    missing = [str(e["loc"][-1]) for e in exc.errors() if e.get("type") == "missing" and e.get("loc")]
    if missing:
        return f"Missing required fields ({', '.join(missing)})."
    first = exc.errors()[0] if exc.errors() else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid request.")
    return f"{loc}: {msg}" if loc else msg


def create_app(service: Optional[FaceMatchService] = None, config: Optional[ServiceConfig] = None) -> FastAPI:
    """
    Build the API. When no service is given one is created from `config`
    at startup and closed at shutdown.
    """
    config = config or (service.config if service is not None else ServiceConfig())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = service is None
        app.state.service = service or FaceMatchService.from_config(config)
        logger.info(f"Face matching service ready (storage: {config.storage_backend}, "
                    f"dim: {config.dimension}, threshold: {config.threshold})")
        try:
            yield
        finally:
            if owned:
                app.state.service.close()

    app = FastAPI(title="Face Enrollment & Matching API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"message": _describe(exc)})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(InsufficientSamples)
    async def insufficient_samples_handler(request: Request, exc: InsufficientSamples):
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure):
        logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Database error."})

    app.include_router(face_router)

    @app.get("/", tags=["Root"])
    def read_root():
        return {
            "ok": True,
            "service": "face-match",
            "endpoints": ["/enroll", "/match", "/match/auto", "/health"],
        }

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app


app = create_app()
