from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from laneboard.db import init_db
from laneboard.core import get_settings
from laneboard.core.exceptions import LaneboardError
from laneboard.api.v1 import api_router
from laneboard.core.middleware import RequestLoggingMiddleware
from laneboard.services.broadcast_service import BoardBroadcaster
from laneboard.services.stream_service import BoardStreamRegistry
from laneboard.logs import api_logger, debug_logger

# Get application settings
settings = get_settings()


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        # Schema changes go through `alembic upgrade head`; this only fills gaps
        await init_db()
        api_logger.info("Database initialized")
    except Exception as e:
        api_logger.error(f"Error initializing database: {e}")
        raise

    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API for collaborative kanban boards with live updates",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Реестр подписок живет вместе с приложением
    app.state.stream_registry = BoardStreamRegistry()
    app.state.broadcaster = BoardBroadcaster(app.state.stream_registry)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(LaneboardError)
    async def laneboard_error_handler(request: Request, exc: LaneboardError):
        debug_logger.warning(f"{request.method} {request.url.path}: {exc.status_code} {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    app.include_router(api_router)

    @app.get("/")
    async def root(request: Request):
        """Health check endpoint"""
        api_logger.info(f"Received health check request: {request.method} {request.url}")
        return {"message": f"{settings.PROJECT_NAME} is running"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    api_logger.info("Сервер запускается на http://0.0.0.0:8000")

    uvicorn.run(
        "laneboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
