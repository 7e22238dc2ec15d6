from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import NotFound
from portal.models.fund import NavHistory, ReturnsHistory
from portal.models.user import User
from portal.schemas.fund import (
    NavCreate,
    NavResponse,
    NavUpdate,
    ReturnsCreate,
    ReturnsResponse,
    ReturnsUpdate,
)
from portal.services.activity_service import log_activity
from portal.services.auth_middleware import require_admin
from portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/admin", tags=["Fund"])


@router.get("/nav")
def list_nav(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        entries = db.query(NavHistory).order_by(NavHistory.date.desc(), NavHistory.id.desc()).all()
        return create_response(
            message="NAV history fetched successfully",
            data=[NavResponse.model_validate(e).model_dump() for e in entries],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/nav")
def create_nav(
    body: NavCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        entry = NavHistory(**body.model_dump())
        db.add(entry)
        db.commit()
        db.refresh(entry)
        log_activity(db, current_user.id, "create", "nav", entry.id, {"nav": entry.nav, "aum": entry.aum}, request)
        return create_response(
            message="NAV entry created successfully",
            data=NavResponse.model_validate(entry).model_dump(),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/nav/{nav_id}")
def update_nav(
    nav_id: int,
    body: NavUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        entry = db.query(NavHistory).filter(NavHistory.id == nav_id).first()
        if not entry:
            raise NotFound("NAV entry not found")

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(entry, field, value)
        db.commit()
        db.refresh(entry)
        log_activity(db, current_user.id, "update", "nav", entry.id, {"fields": sorted(changes)}, request)
        return create_response(
            message="NAV entry updated successfully",
            data=NavResponse.model_validate(entry).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/returns")
def list_returns(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        entries = (
            db.query(ReturnsHistory)
            .order_by(
                ReturnsHistory.year.desc(),
                ReturnsHistory.quarter.desc(),
                ReturnsHistory.month.desc(),
                ReturnsHistory.id.desc(),
            )
            .all()
        )
        return create_response(
            message="Returns history fetched successfully",
            data=[ReturnsResponse.model_validate(e).model_dump() for e in entries],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/returns")
def create_returns(
    body: ReturnsCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        entry = ReturnsHistory(**body.model_dump())
        db.add(entry)
        db.commit()
        db.refresh(entry)
        log_activity(db, current_user.id, "create", "returns", entry.id, {"period": entry.period, "year": entry.year}, request)
        return create_response(
            message="Returns entry created successfully",
            data=ReturnsResponse.model_validate(entry).model_dump(),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/returns/{returns_id}")
def update_returns(
    returns_id: int,
    body: ReturnsUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        entry = db.query(ReturnsHistory).filter(ReturnsHistory.id == returns_id).first()
        if not entry:
            raise NotFound("Returns entry not found")

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(entry, field, value)
        db.commit()
        db.refresh(entry)
        log_activity(db, current_user.id, "update", "returns", entry.id, {"fields": sorted(changes)}, request)
        return create_response(
            message="Returns entry updated successfully",
            data=ReturnsResponse.model_validate(entry).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
