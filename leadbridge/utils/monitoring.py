"""
Monitoring and health check utilities
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import psutil
import structlog
from sqlalchemy import text

from ..config import get_settings
from ..database.crud import LeadCRUD
from ..database.init_db import DatabaseManager, db_manager as default_db_manager

logger = structlog.get_logger("leadbridge.monitoring")


class MonitoringManager:
    """System monitoring and health checks"""

    def __init__(self, database: Optional[DatabaseManager] = None):
        self.settings = get_settings()
        self.database = database or default_db_manager
        self.start_time = datetime.now(timezone.utc)

    def get_uptime(self) -> Dict[str, Any]:
        """Process uptime and memory"""
        uptime = (datetime.now(timezone.utc) - self.start_time).total_seconds()
        process = psutil.Process(os.getpid())
        return {
            "uptime_seconds": round(uptime, 1),
            "memory_rss_mb": round(process.memory_info().rss / (1024 * 1024), 1),
        }

    async def check_database(self) -> Dict[str, Any]:
        """Check database connectivity and lead counts"""
        try:
            async with self.database.get_session() as session:
                start_time = datetime.now(timezone.utc)
                await session.execute(text("SELECT 1"))
                response_time = (datetime.now(timezone.utc) - start_time).total_seconds()
                leads_by_status = await LeadCRUD.count_by_status(session)

                return {
                    "status": "healthy",
                    "response_time_ms": round(response_time * 1000, 2),
                    "leads_by_status": leads_by_status
                }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    async def health_check(self) -> Dict[str, Any]:
        """Comprehensive health check"""
        database = await self.check_database()
        return {
            "status": "ok" if database["status"] == "healthy" else "degraded",
            "service": self.settings.app_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **self.get_uptime(),
            "checks": {"database": database},
        }
