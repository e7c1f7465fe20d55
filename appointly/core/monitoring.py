"""Health checks"""
import logging

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from appointly.config.database import get_db
from appointly.config.redis import get_redis
from appointly.config.settings import get_settings

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": get_settings().APP_NAME}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Database, plus Redis when bookings are locked through it"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "not used",
        "overall": "unknown"
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {str(e)}"

    if get_settings().BOOKING_LOCK_BACKEND.lower() == "redis":
        try:
            redis_client = await get_redis()
            await redis_client.ping()
            checks["redis"] = "healthy"
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            checks["redis"] = f"unhealthy: {str(e)}"

    component_states = [checks["database"], checks["redis"]]
    if all(state in ("healthy", "not used") for state in component_states):
        checks["overall"] = "healthy"
    else:
        checks["overall"] = "degraded"

    return checks
