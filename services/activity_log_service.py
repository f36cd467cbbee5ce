"""
Activity log sink (append-only).
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class ActivityLogService:
    def __init__(self):
        self.db = get_supabase_client()
        self.table = "activity_log"

    def append(
        self,
        entity_type: str,
        entity_id: str,
        action: str,
        details: dict[str, Any],
        performed_by: Optional[str] = None,
    ) -> None:
        """Append one activity entry."""
        try:
            self.db.table(self.table).insert({
                "entity_type": entity_type,
                "entity_id": entity_id,
                "action": action,
                "details": details,
                "performed_by": performed_by,
            }).execute()
        except Exception as e:
            logger.error(
                "activity_log_append_failed",
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))


_activity_log_service: Optional[ActivityLogService] = None


def get_activity_log_service() -> ActivityLogService:
    global _activity_log_service
    if _activity_log_service is None:
        _activity_log_service = ActivityLogService()
    return _activity_log_service
