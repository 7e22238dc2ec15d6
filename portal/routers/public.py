import logging
import smtplib

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.lead import LeadCapture
from portal.schemas.admin import LeadCreate
from portal.services.email_services import send_lead_notification
from portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Public"])


def _notify_lead(lead: dict) -> None:
    try:
        send_lead_notification(lead)
    except (smtplib.SMTPException, OSError):
        logger.exception("Lead notification email failed")


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return create_response(
            message="OK",
            data={"status": "ok", "database": "ok"},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/leads")
def capture_lead(
    body: LeadCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    try:
        lead = LeadCapture(**body.model_dump(), source="website", status="new")
        db.add(lead)
        db.commit()
        db.refresh(lead)
        logger.info("Lead captured id=%s email=%s", lead.id, lead.email)

        background_tasks.add_task(_notify_lead, body.model_dump())
        return create_response(
            message="Thank you, we will be in touch",
            data={"id": lead.id, "status": lead.status},
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)
