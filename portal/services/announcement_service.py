import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.models.announcement import Announcement, AnnouncementRead

logger = logging.getLogger(__name__)


def active_announcements_query(db: Session, now: datetime | None = None):
    now = now or datetime.utcnow()
    return (
        db.query(Announcement)
        .filter(
            Announcement.is_active == True,
            or_(Announcement.expires_at.is_(None), Announcement.expires_at > now),
        )
        .order_by(Announcement.created_at.desc(), Announcement.id.desc())
    )


def unread_count(db: Session, investor_id: int, now: datetime | None = None) -> int:
    read_ids = db.query(AnnouncementRead.announcement_id).filter(AnnouncementRead.investor_id == investor_id)
    return active_announcements_query(db, now).filter(~Announcement.id.in_(read_ids)).count()


def mark_all_read(db: Session, investor_id: int, now: datetime | None = None) -> int:
    """Record a read receipt for every active announcement; returns how many were new."""
    read_ids = {
        row.announcement_id
        for row in db.query(AnnouncementRead.announcement_id).filter(AnnouncementRead.investor_id == investor_id)
    }
    created = 0
    for announcement in active_announcements_query(db, now).all():
        if announcement.id in read_ids:
            continue
        db.add(AnnouncementRead(announcement_id=announcement.id, investor_id=investor_id))
        created += 1
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request recorded some of the same receipts
        db.rollback()
        return mark_all_read(db, investor_id, now)
    logger.info("Marked %s announcement(s) read for investor_id=%s", created, investor_id)
    return created
