from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import NotFound
from portal.models.announcement import Announcement
from portal.models.user import User
from portal.schemas.announcement import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from portal.services.activity_service import log_activity
from portal.services.announcement_service import active_announcements_query
from portal.services.auth_middleware import require_admin, require_role
from portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api", tags=["Announcements"])


def _get_announcement(db: Session, announcement_id: int) -> Announcement:
    announcement = db.query(Announcement).filter(Announcement.id == announcement_id).first()
    if not announcement:
        raise NotFound("Announcement not found")
    return announcement


@router.get("/announcements")
def active_announcements(
    db: Session = Depends(get_db),
    auth_context=Depends(require_role),
):
    try:
        announcements = active_announcements_query(db).all()
        return create_response(
            message="Announcements fetched successfully",
            data=[AnnouncementResponse.model_validate(a).model_dump() for a in announcements],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/admin/announcements")
def list_announcements(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        announcements = db.query(Announcement).order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()
        return create_response(
            message="Announcements fetched successfully",
            data=[AnnouncementResponse.model_validate(a).model_dump() for a in announcements],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/admin/announcements")
def create_announcement(
    body: AnnouncementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        # Published on creation
        announcement = Announcement(
            **body.model_dump(),
            is_active=True,
            published_at=datetime.utcnow(),
            created_by=current_user.id,
        )
        db.add(announcement)
        db.commit()
        db.refresh(announcement)
        log_activity(db, current_user.id, "create", "announcement", announcement.id, {"title": announcement.title}, request)
        return create_response(
            message="Announcement created successfully",
            data=AnnouncementResponse.model_validate(announcement).model_dump(),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/admin/announcements/{announcement_id}")
def update_announcement(
    announcement_id: int,
    body: AnnouncementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        announcement = _get_announcement(db, announcement_id)
        for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(announcement, field, value)
        db.commit()
        db.refresh(announcement)
        return create_response(
            message="Announcement updated successfully",
            data=AnnouncementResponse.model_validate(announcement).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/admin/announcements/{announcement_id}")
def delete_announcement(
    announcement_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        announcement = _get_announcement(db, announcement_id)
        db.delete(announcement)
        db.commit()
        log_activity(db, current_user.id, "delete", "announcement", announcement_id, None, request)
        return create_response(
            message="Announcement deleted successfully",
            data={"id": announcement_id},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/admin/announcements/{announcement_id}/publish")
def publish_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        announcement = _get_announcement(db, announcement_id)
        announcement.is_active = True
        announcement.published_at = datetime.utcnow()
        db.commit()
        db.refresh(announcement)
        return create_response(
            message="Announcement published",
            data=AnnouncementResponse.model_validate(announcement).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
