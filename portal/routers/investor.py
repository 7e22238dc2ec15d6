from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import NotFound
from portal.models.investor import InvestorProfile, Portfolio
from portal.models.notification import Notification
from portal.models.statement import Statement
from portal.models.support_request import SupportRequest
from portal.models.transaction import Transaction
from portal.schemas.announcement import AnnouncementResponse
from portal.schemas.investor import (
    AllocationResponse,
    InvestorProfileResponse,
    InvestorSelfUpdate,
    NotificationResponse,
    PortfolioResponse,
    TransactionConfirmation,
    TransactionResponse,
)
from portal.schemas.statement import StatementResponse
from portal.schemas.support import SupportRequestCreate, SupportRequestResponse, SupportRequestUpdate
from portal.services.announcement_service import active_announcements_query, mark_all_read, unread_count
from portal.services.auth_middleware import require_investor
from portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/investor", tags=["Investor"])

EMPTY_PORTFOLIO = {"total_invested": "0", "current_value": "0", "returns": "0", "irr": "0"}


def _portfolio(db: Session, investor: InvestorProfile) -> Portfolio | None:
    return (
        db.query(Portfolio)
        .filter(Portfolio.investor_id == investor.id)
        .order_by(Portfolio.id)
        .first()
    )


def _transactions(db: Session, investor: InvestorProfile):
    return (
        db.query(Transaction)
        .filter(Transaction.investor_id == investor.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        portfolio = _portfolio(db, investor)
        recent = _transactions(db, investor).limit(5).all()
        announcements = active_announcements_query(db).limit(3).all()
        return create_response(
            message="Dashboard fetched successfully",
            data={
                "profile": InvestorProfileResponse.model_validate(investor).model_dump(),
                "portfolio": PortfolioResponse.model_validate(portfolio).model_dump() if portfolio else EMPTY_PORTFOLIO,
                "recent_transactions": [TransactionResponse.model_validate(t).model_dump() for t in recent],
                "announcements": [AnnouncementResponse.model_validate(a).model_dump() for a in announcements],
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/profile")
def get_profile(investor: InvestorProfile = Depends(require_investor)):
    try:
        return create_response(
            message="Profile fetched successfully",
            data=InvestorProfileResponse.model_validate(investor).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/profile")
def update_profile(
    body: InvestorSelfUpdate,
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        for field, value in body.model_dump(exclude_unset=True).items():
            setattr(investor, field, value)
        db.commit()
        db.refresh(investor)
        return create_response(
            message="Profile updated successfully",
            data=InvestorProfileResponse.model_validate(investor).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/portfolio")
def get_portfolio(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        portfolio = _portfolio(db, investor)
        return create_response(
            message="Portfolio fetched successfully",
            data=PortfolioResponse.model_validate(portfolio).model_dump() if portfolio else None,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/transactions")
def list_transactions(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        payload = [TransactionResponse.model_validate(t).model_dump() for t in _transactions(db, investor).all()]
        return create_response(
            message="Transactions fetched successfully",
            data=payload,
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/transactions/upload-confirmation")
def upload_confirmation(
    body: TransactionConfirmation,
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        transaction = db.query(Transaction).filter(Transaction.id == body.transaction_id).first()
        if not transaction or transaction.investor_id != investor.id:
            raise NotFound("Transaction not found")

        transaction.confirmation_url = body.confirmation_url
        transaction.status = "pending_verification"
        db.commit()
        db.refresh(transaction)
        return create_response(
            message="Confirmation uploaded successfully",
            data=TransactionResponse.model_validate(transaction).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/statements")
def list_statements(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        statements = (
            db.query(Statement)
            .filter(Statement.investor_id == investor.id)
            .order_by(Statement.year.desc(), Statement.generated_at.desc())
            .all()
        )
        return create_response(
            message="Statements fetched successfully",
            data=[StatementResponse.model_validate(s).model_dump() for s in statements],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/requests")
def list_requests(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        requests = (
            db.query(SupportRequest)
            .filter(SupportRequest.investor_id == investor.id)
            .order_by(SupportRequest.created_at.desc())
            .all()
        )
        return create_response(
            message="Requests fetched successfully",
            data=[SupportRequestResponse.model_validate(r).model_dump() for r in requests],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/requests")
def create_request(
    body: SupportRequestCreate,
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        request = SupportRequest(
            investor_id=investor.id,
            type=body.type,
            subject=body.subject,
            description=body.description,
            status="open",
            priority=body.priority or "normal",
        )
        db.add(request)
        db.commit()
        db.refresh(request)
        return create_response(
            message="Request created successfully",
            data=SupportRequestResponse.model_validate(request).model_dump(),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/requests/{request_id}")
def update_request(
    request_id: int,
    body: SupportRequestUpdate,
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        request = db.query(SupportRequest).filter(SupportRequest.id == request_id).first()
        if not request or request.investor_id != investor.id:
            raise NotFound("Request not found")

        if body.description is not None:
            request.description = body.description
        request.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(request)
        return create_response(
            message="Request updated successfully",
            data=SupportRequestResponse.model_validate(request).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/unread-announcements")
def unread_announcements(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        return create_response(
            message="Unread count fetched successfully",
            data={"count": unread_count(db, investor.id)},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/announcements/mark-all-read")
def mark_announcements_read(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        marked = mark_all_read(db, investor.id)
        return create_response(
            message="Announcements marked as read",
            data={"marked": marked},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/allocations")
def list_allocations(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        portfolio = _portfolio(db, investor)
        allocations = portfolio.allocations if portfolio else []
        return create_response(
            message="Allocations fetched successfully",
            data=[AllocationResponse.model_validate(a).model_dump() for a in allocations],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/notifications")
def list_notifications(
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        notifications = (
            db.query(Notification)
            .filter(Notification.investor_id == investor.id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )
        return create_response(
            message="Notifications fetched successfully",
            data=[NotificationResponse.model_validate(n).model_dump() for n in notifications],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    investor: InvestorProfile = Depends(require_investor),
):
    try:
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.investor_id == investor.id)
            .first()
        )
        if not notification:
            raise NotFound("Notification not found")

        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return create_response(
            message="Notification marked as read",
            data=NotificationResponse.model_validate(notification).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
