"""Health check endpoints for monitoring service status"""
from fastapi import APIRouter, status
from marketplace.db.base import get_db_session
from sqlalchemy import text
from datetime import datetime, timezone

health_router = APIRouter(
    prefix="/v1",
    tags=["health"],
)


@health_router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Check if the API is responsive"
)
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "marketplace-api"
    }


@health_router.get(
    "/health/detailed",
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
    description="Check the database dependency"
)
async def detailed_health_check():
    """Detailed health check including the database"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "marketplace-api",
        "dependencies": {}
    }

    # Check database
    try:
        db = next(get_db_session())
        db.execute(text("SELECT 1"))
        db.close()
        health_status["dependencies"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful"
        }
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["dependencies"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}"
        }

    return health_status
