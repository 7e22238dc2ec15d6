import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import NotFound, ValidationError
from portal.models.announcement import AnnouncementRead
from portal.models.investor import InvestorProfile, Portfolio
from portal.models.notification import Notification
from portal.models.statement import Statement
from portal.models.support_request import SupportRequest
from portal.models.transaction import Transaction
from portal.models.user import User
from portal.schemas.investor import (
    BulkInvestorUpload,
    InvestorAdminUpdate,
    InvestorCreate,
    InvestorProfileResponse,
    PortfolioAdminUpdate,
    PortfolioResponse,
    TransactionResponse,
)
from portal.schemas.support import SupportRequestResponse, SupportStatusUpdate
from portal.services.account_service import (
    bulk_create_investors,
    create_investor_account,
    generate_temp_password,
    issue_credentials,
)
from portal.services.activity_service import log_activity
from portal.services.announcement_service import active_announcements_query
from portal.services.auth_middleware import get_investor_or_404, require_admin
from portal.services.email_services import send_credentials_email
from portal.services.pdf_service import statement_path
from portal.services.report_service import decimal_sum
from portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _investor_payload(db: Session, investor: InvestorProfile) -> dict:
    portfolio = (
        db.query(Portfolio)
        .filter(Portfolio.investor_id == investor.id)
        .order_by(Portfolio.id)
        .first()
    )
    payload = InvestorProfileResponse.model_validate(investor).model_dump()
    payload["portfolio"] = PortfolioResponse.model_validate(portfolio).model_dump() if portfolio else None
    return payload


def _support_payload(request: SupportRequest) -> dict:
    payload = SupportRequestResponse.model_validate(request).model_dump()
    investor = request.investor
    payload["investor_name"] = investor.full_name if investor else "Unknown Investor"
    payload["email"] = investor.email if investor else ""
    return payload


@router.get("/stats")
def stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        portfolios = db.query(Portfolio.total_invested, Portfolio.current_value).all()
        return create_response(
            message="Stats fetched successfully",
            data={
                "total_investors": db.query(InvestorProfile).count(),
                "active_investors": db.query(InvestorProfile).filter(InvestorProfile.is_active == True).count(),
                "total_invested": decimal_sum(row.total_invested for row in portfolios),
                "total_aum": decimal_sum(row.current_value for row in portfolios),
                "open_support_requests": db.query(SupportRequest).filter(SupportRequest.status == "open").count(),
                "pending_transactions": db.query(Transaction)
                .filter(Transaction.status.in_(("pending", "pending_verification")))
                .count(),
                "total_statements": db.query(Statement).count(),
                "active_announcements": active_announcements_query(db).count(),
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/investors")
def list_investors(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        base_query = db.query(InvestorProfile).order_by(InvestorProfile.id.asc())
        total = base_query.count()
        investors = base_query.offset((page - 1) * page_size).limit(page_size).all()
        payload = [_investor_payload(db, investor) for investor in investors]
        return create_response(
            message="Investors fetched successfully",
            data={
                "page": page,
                "page_size": page_size,
                "count": len(payload),
                "total": total,
                "has_next": page * page_size < total,
                "investors": payload
            },
            status_code=status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/investors")
def create_investor(
    body: InvestorCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        password = body.password or generate_temp_password()
        investor = create_investor_account(
            db,
            email=body.email,
            password=password,
            first_name=body.first_name,
            last_name=body.last_name,
            phone=body.phone,
            investment_amount=body.investment_amount,
            investor_type=body.investor_type,
            pan_number=body.pan_number,
        )
        log_activity(db, current_user.id, "create", "investor", investor.id, {"email": investor.email}, request)

        payload = _investor_payload(db, investor)
        # Shown once so the admin can pass it on
        payload["credentials"] = {"email": investor.email, "temp_password": password}
        return create_response(
            message="Investor created successfully",
            data=payload,
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/investors/bulk-upload")
def bulk_upload_investors(
    body: BulkInvestorUpload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        created, skipped = bulk_create_investors(db, body.investors)
        log_activity(
            db,
            current_user.id,
            "bulk_upload",
            "investor",
            None,
            {"created": len(created), "skipped": len(skipped)},
            request,
        )
        return create_response(
            message=f"Created {len(created)} investors",
            data={
                "created": len(created),
                "investors": [_investor_payload(db, investor) for investor in created],
                "skipped": skipped,
            },
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/investors/{investor_id}/send-credentials")
def send_credentials(
    investor_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        investor = get_investor_or_404(db, investor_id)
        user, password = issue_credentials(db, investor)
        emailed = send_credentials_email(user.email, password)
        log_activity(db, current_user.id, "send_credentials", "investor", investor.id, {"emailed": emailed}, request)
        return create_response(
            message="Credentials issued successfully",
            data={"email": user.email, "temp_password": password, "emailed": emailed},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/investors/{investor_id}/portfolio")
def update_portfolio(
    investor_id: int,
    body: PortfolioAdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        investor = get_investor_or_404(db, investor_id)
        portfolio = (
            db.query(Portfolio)
            .filter(Portfolio.investor_id == investor.id)
            .order_by(Portfolio.id)
            .first()
        )
        if not portfolio:
            raise NotFound("Portfolio not found")

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(portfolio, field, value)
        db.commit()
        db.refresh(portfolio)
        log_activity(db, current_user.id, "update", "portfolio", portfolio.id, {"fields": sorted(changes)}, request)
        return create_response(
            message="Portfolio updated successfully",
            data=PortfolioResponse.model_validate(portfolio).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/investors/{investor_id}")
def get_investor(
    investor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        investor = get_investor_or_404(db, investor_id)
        return create_response(
            message="Investor fetched successfully",
            data=_investor_payload(db, investor),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/investors/{investor_id}")
def update_investor(
    investor_id: int,
    body: InvestorAdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        investor = get_investor_or_404(db, investor_id)
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in changes and changes["email"]:
            changes["email"] = changes["email"].lower()
        for field, value in changes.items():
            setattr(investor, field, value)
        db.commit()
        db.refresh(investor)
        log_activity(db, current_user.id, "update", "investor", investor.id, {"fields": sorted(changes)}, request)
        return create_response(
            message="Investor updated successfully",
            data=_investor_payload(db, investor),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/investors/{investor_id}")
def delete_investor(
    investor_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        investor = get_investor_or_404(db, investor_id)
        file_names = [
            row.file_name
            for row in db.query(Statement.file_name).filter(Statement.investor_id == investor.id).all()
        ]

        # Dependent rows first; portfolios go with the profile
        db.query(AnnouncementRead).filter(AnnouncementRead.investor_id == investor.id).delete(synchronize_session=False)
        db.query(Statement).filter(Statement.investor_id == investor.id).delete(synchronize_session=False)
        db.query(Transaction).filter(Transaction.investor_id == investor.id).delete(synchronize_session=False)
        db.query(SupportRequest).filter(SupportRequest.investor_id == investor.id).delete(synchronize_session=False)
        db.query(Notification).filter(Notification.investor_id == investor.id).delete(synchronize_session=False)
        db.delete(investor)
        db.commit()

        # Generated PDFs are served publicly under /statements
        for file_name in file_names:
            statement_path(file_name).unlink(missing_ok=True)

        log_activity(db, current_user.id, "delete", "investor", investor_id, None, request)
        return create_response(
            message="Investor deleted successfully",
            data={"id": investor_id},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        db.rollback()
        return handle_exception(exc)


@router.get("/transactions")
def list_transactions(
    investor_id: int | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        query = db.query(Transaction)
        if investor_id is not None:
            query = query.filter(Transaction.investor_id == investor_id)
        transactions = query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).all()
        return create_response(
            message="Transactions fetched successfully",
            data=[TransactionResponse.model_validate(t).model_dump() for t in transactions],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


def _advance_transaction(db: Session, transaction_id: int, allowed_from: tuple[str, ...], new_status: str) -> Transaction:
    transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not transaction:
        raise NotFound("Transaction not found")
    if transaction.status not in allowed_from:
        raise ValidationError(f"Transaction in status '{transaction.status}' cannot become '{new_status}'")
    transaction.status = new_status
    if new_status == "processed":
        transaction.processed_at = datetime.utcnow()
    db.commit()
    db.refresh(transaction)
    return transaction


@router.put("/transactions/{transaction_id}/verify")
def verify_transaction(
    transaction_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        transaction = _advance_transaction(db, transaction_id, ("pending", "pending_verification"), "verified")
        log_activity(db, current_user.id, "verify", "transaction", transaction.id, None, request)
        return create_response(
            message="Transaction verified",
            data=TransactionResponse.model_validate(transaction).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/transactions/{transaction_id}/process")
def process_transaction(
    transaction_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        transaction = _advance_transaction(db, transaction_id, ("verified",), "processed")
        log_activity(db, current_user.id, "process", "transaction", transaction.id, None, request)
        return create_response(
            message="Transaction processed",
            data=TransactionResponse.model_validate(transaction).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/support-requests")
def list_support_requests(
    status_filter: str | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        query = db.query(SupportRequest)
        if status_filter:
            query = query.filter(SupportRequest.status == status_filter)
        requests = query.order_by(SupportRequest.created_at.desc()).all()
        return create_response(
            message="Support requests fetched successfully",
            data=[_support_payload(r) for r in requests],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/support-requests/{request_id}/status")
def update_support_status(
    request_id: int,
    body: SupportStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        support_request = db.query(SupportRequest).filter(SupportRequest.id == request_id).first()
        if not support_request:
            raise NotFound("Support request not found")

        now = datetime.utcnow()
        support_request.status = body.status
        support_request.updated_at = now
        if body.status in ("resolved", "closed"):
            support_request.resolved_at = now
        db.commit()
        db.refresh(support_request)

        log_activity(db, current_user.id, "status", "support_request", request_id, {"status": body.status}, request)
        return create_response(
            message="Status updated successfully",
            data=_support_payload(support_request),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/notifications/counts")
def notification_counts(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return create_response(
            message="Notification counts fetched successfully",
            data={
                "tickets": db.query(SupportRequest).filter(SupportRequest.status == "open").count(),
                "announcements": active_announcements_query(db).count(),
            },
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
