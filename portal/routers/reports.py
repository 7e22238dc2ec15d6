from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import ValidationError
from portal.models.user import User
from portal.schemas.fund import ReportExport
from portal.services import report_service
from portal.services.activity_service import log_activity
from portal.services.auth_middleware import require_admin
from portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/admin/reports", tags=["Reports"])


@router.get("/aum")
def aum(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return create_response(
            message="AUM report fetched successfully",
            data=report_service.aum_report(db),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/inflows")
def inflows(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return create_response(
            message="Inflows report fetched successfully",
            data=report_service.inflows_report(db),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/allocations")
def allocations(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return create_response(
            message="Allocations report fetched successfully",
            data=report_service.allocations_report(db),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/investor-segments")
def investor_segments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return create_response(
            message="Investor segments fetched successfully",
            data=report_service.investor_segments(db),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/export")
def export_report(
    body: ReportExport,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        if body.format.lower() != "csv":
            raise ValidationError("Only CSV format is currently supported for direct download.")

        file_name, content = report_service.export_csv(db, body.report_type)
        log_activity(db, current_user.id, "export", "report", None, {"report_type": body.report_type}, request)
        return StreamingResponse(
            iter([content]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={file_name}"}
        )
    except Exception as exc:
        return handle_exception(exc)
