import io
import logging
import zipfile

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.responses import FileResponse, StreamingResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import Forbidden, NotFound, ValidationError
from portal.models.statement import Statement
from portal.models.user import User
from portal.schemas.statement import StatementFilter, StatementGenerate, StatementResponse
from portal.services.activity_service import log_activity
from portal.services.auth_middleware import get_current_user, get_investor_or_404, require_admin
from portal.services.pdf_service import statement_path
from portal.services.role_service import get_admin_user, get_investor_profile
from portal.services.spreadsheet_service import parse_statement_sheet
from portal.services.statement_matcher import create_statement, match_and_attach
from portal.utils.response import create_response, handle_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Statements"])

XLSX_SUFFIXES = (".xlsx", ".xlsm")


@router.get("/admin/statements")
def list_statements(
    investor_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        query = db.query(Statement)
        if investor_id is not None:
            query = query.filter(Statement.investor_id == investor_id)
        statements = query.order_by(Statement.generated_at.desc(), Statement.id.desc()).all()
        return create_response(
            message="Statements fetched successfully",
            data=[StatementResponse.model_validate(s).model_dump() for s in statements],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/admin/statements/generate")
def generate_statement(
    body: StatementGenerate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        investor = get_investor_or_404(db, body.investor_id)
        statement = create_statement(
            db,
            investor,
            body.type,
            body.period,
            body.year,
            month=body.month,
            quarter=body.quarter,
        )
        log_activity(db, current_user.id, "generate", "statement", statement.id, {"investor_id": investor.id}, request)
        return create_response(
            message="Statement generated successfully",
            data=StatementResponse.model_validate(statement).model_dump(),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/admin/statements/upload")
async def upload_statements(
    request: Request,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        filename = (file.filename or "").lower()
        if not filename.endswith(XLSX_SUFFIXES):
            raise ValidationError("Please upload an Excel (.xlsx) file")

        content = await file.read()
        if not content:
            raise ValidationError("No file uploaded. Please select an Excel file.")
        logger.info("Statement sheet received: %s (%s bytes)", file.filename, len(content))

        rows, errors = parse_statement_sheet(content)
        result = match_and_attach(db, rows)
        result.unmatched = errors + result.unmatched

        log_activity(
            db,
            current_user.id,
            "upload",
            "statement",
            None,
            {"file": file.filename, "matched": len(result.matched), "unmatched": len(result.unmatched)},
            request,
        )
        return create_response(
            message=f"Processed {len(result.matched)} statements, {len(result.unmatched)} errors",
            data=result.model_dump(mode="json"),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)
    finally:
        await file.close()


@router.post("/admin/statements/download-filtered")
def download_filtered(
    body: StatementFilter,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        query = db.query(Statement)
        if body.type is not None:
            query = query.filter(Statement.type == body.type)
        if body.period:
            query = query.filter(func.lower(Statement.period) == body.period.strip().lower())
        if body.year is not None:
            query = query.filter(Statement.year == body.year)
        if body.investor_id is not None:
            query = query.filter(Statement.investor_id == body.investor_id)
        statements = query.order_by(Statement.id).all()
        if not statements:
            raise NotFound("No statements found matching the selected filters")

        zip_buffer = io.BytesIO()
        added = 0
        with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for statement in statements:
                path = statement_path(statement.file_name)
                if not path.is_file():
                    logger.warning("Statement %s has no file on disk", statement.id)
                    continue
                archive.write(path, arcname=statement.file_name)
                added += 1
        if not added:
            raise NotFound("No file content found for matching statements")

        zip_buffer.seek(0)
        type_name = body.type.value if body.type else "all"
        file_name = f"statements_{type_name}_{body.period or 'all'}_{body.year or 'all'}.zip"
        log_activity(db, current_user.id, "download", "statement", None, {"count": added}, request)
        return StreamingResponse(
            zip_buffer,
            media_type="application/zip",
            headers={"Content-Disposition": f"attachment; filename={file_name}"}
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/admin/statements/{statement_id}")
def delete_statement(
    statement_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        statement = db.query(Statement).filter(Statement.id == statement_id).first()
        if not statement:
            raise NotFound("Statement not found")

        path = statement_path(statement.file_name)
        db.delete(statement)
        db.commit()
        path.unlink(missing_ok=True)

        log_activity(db, current_user.id, "delete", "statement", statement_id, None, request)
        return create_response(
            message="Statement deleted successfully",
            data={"id": statement_id},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/statements/{statement_id}/download")
def download_statement(
    statement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        statement = db.query(Statement).filter(Statement.id == statement_id).first()
        if not statement:
            raise NotFound("Statement not found")

        admin = get_admin_user(db, current_user.id)
        if not (admin and admin.is_active):
            investor = get_investor_profile(db, current_user.id)
            if not investor or investor.id != statement.investor_id:
                raise Forbidden("Access denied")

        path = statement_path(statement.file_name)
        if not path.is_file():
            raise NotFound("Statement file not found")
        return FileResponse(path, media_type="application/pdf", filename=statement.file_name)
    except Exception as exc:
        return handle_exception(exc)
