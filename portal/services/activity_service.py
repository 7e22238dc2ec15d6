import logging

from fastapi import Request
from sqlalchemy.orm import Session

from portal.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    user_id: int,
    action: str,
    resource: str,
    resource_id=None,
    details: dict | None = None,
    request: Request | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details,
    )
    if request is not None:
        entry.ip_address = request.client.host if request.client else None
        entry.user_agent = (request.headers.get("user-agent") or "")[:255] or None
    db.add(entry)
    db.commit()
    logger.info("Activity user_id=%s %s %s %s", user_id, action, resource, entry.resource_id or "")
    return entry
