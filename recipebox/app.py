import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import api
from .config import Settings
from .db import init_db, make_engine, make_session_factory
from .errors import RecipeBoxError, format_validation_errors

logger = logging.getLogger("recipebox.app")


async def handle_recipebox_error(request: Request, exc: RecipeBoxError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors and all((err.get("loc") or ("",))[0] == "query" for err in errors):
        message = "Invalid query parameters"
    else:
        message = "Invalid request data"
    return JSONResponse(
        status_code=400,
        content={"error": message, "details": format_validation_errors(errors)},
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers
    )


async def handle_database_error(request: Request, exc: SQLAlchemyError):
    # storage details stay in the log
    logger.error("database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around a settings instance.

    The engine and session factory live on ``app.state``; request handlers
    receive a session through the ``get_db`` dependency.
    """
    settings = settings or Settings()
    logging.getLogger("recipebox").setLevel(settings.log_level)

    engine = make_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Initialize DB once at startup
        init_db(engine)
        logger.info("recipebox started (%s)", settings.env.value)
        yield
        engine.dispose()

    app = FastAPI(title="recipebox", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RecipeBoxError, handle_recipebox_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(SQLAlchemyError, handle_database_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(api.router, prefix=settings.api_prefix)
    return app


app = create_app()
