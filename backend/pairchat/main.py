"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from pairchat.config import Settings, get_settings
from pairchat.db.session import build_engine, build_session_factory
from pairchat.models.base import Base
from pairchat.routers import messages
from pairchat.schemas.common import ErrorResponse, ListErrorResponse

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """Build the application with its engine and session factory wired in once."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

    engine = engine or build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.create_schema_on_startup:
            try:
                Base.metadata.create_all(engine)
            except Exception:
                logger.exception("Schema creation failed; continuing, requests will report storage errors.")
        yield
        engine.dispose()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        if request.method == "GET":
            envelope: ErrorResponse = ListErrorResponse(error="Invalid request parameters")
        else:
            envelope = ErrorResponse(error="Request body must be valid JSON")
        return JSONResponse(status_code=400, content=envelope.model_dump())

    app.include_router(messages.router, tags=["messages"])

    @app.get("/health")
    def health() -> dict[str, str]:
        """Simple health check endpoint."""

        return {"status": "ok"}

    return app


app = create_app()
