# Standard library
import time
import uuid
from contextlib import asynccontextmanager

# Third party
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sqlalchemy import text

# Local imports
from marketplace.core.exceptions import CategoryError
from marketplace.core.logging import get_logger
import marketplace.api as api


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application startup and shutdown events"""
    # Startup
    logger.info("Marketplace API starting up...")

    # Test database connection
    try:
        from marketplace.db.base import get_db_session

        session_gen = get_db_session()
        session = next(session_gen)
        session.execute(text("SELECT 1")).fetchone()
        session.close()
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    yield  # This is where FastAPI serves the application

    # Shutdown
    logger.info("Marketplace API shutting down...")


def create_app(check_database: bool = True) -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title="B2B Marketplace",
        description="Supplier catalog API: category hierarchy management.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan if check_database else None,
        default_response_class=JSONResponse,
    )

    # Mount supplier APIs (tenant-scoped CRUD)
    for name, router in api.supplier_routers:
        app.include_router(router, prefix="/api/v1", tags=[name])

    app.include_router(api.health_router, prefix="/api")

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CategoryError)
    async def category_error_handler(request: Request, exc: CategoryError):
        """Map each category failure kind to its status code"""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Add request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start_time = time.time()
        logger.info(f"[{request_id}] {request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"[{request_id}] Request failed after {process_time:.4f}s: {str(e)}",
                exc_info=True,
            )
            raise  # Re-raise the exception so it's handled properly

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Request-ID"] = request_id
        logger.info(f"[{request_id}] {response.status_code} in {process_time:.4f}s")
        return response

    return app


app = create_app()
