from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.errors import NotFound, ValidationError
from portal.models.activity_log import ActivityLog
from portal.models.admin_user import AdminUser
from portal.models.user import User
from portal.schemas.admin import (
    ActivityLogResponse,
    AdminCreate,
    AdminResponse,
    AdminUpdate,
    SystemSettingResponse,
    SystemSettingUpsert,
    SystemSettingValue,
)
from portal.services.account_service import create_admin_account
from portal.services.activity_service import log_activity
from portal.services.auth_middleware import get_current_user, require_super_admin
from portal.services.settings_service import list_settings, settings_map, upsert_setting
from portal.utils.response import create_response, handle_exception

router = APIRouter(prefix="/api/superadmin", tags=["Super Admin"])
system_router = APIRouter(prefix="/api/system", tags=["System"])
DEFAULT_LOG_LIMIT = 100
MAX_LOG_LIMIT = 500


def _admin_payload(admin: AdminUser) -> dict:
    payload = AdminResponse.model_validate(admin).model_dump()
    user = admin.user
    payload["first_name"] = user.first_name if user else None
    payload["last_name"] = user.last_name if user else None
    payload["email"] = user.email if user else None
    return payload


def _get_admin(db: Session, admin_id: int) -> AdminUser:
    admin = db.query(AdminUser).filter(AdminUser.id == admin_id).first()
    if not admin:
        raise NotFound("User not found")
    return admin


@router.get("/users")
def list_admins(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        admins = db.query(AdminUser).order_by(AdminUser.id.asc()).all()
        return create_response(
            message="Admin users fetched successfully",
            data=[_admin_payload(admin) for admin in admins],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.post("/users")
def create_admin(
    body: AdminCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        admin = create_admin_account(
            db,
            email=body.email,
            password=body.password,
            role=body.role,
            first_name=body.first_name,
            last_name=body.last_name,
            phone=body.phone,
            permissions=body.permissions,
        )
        log_activity(db, current_user.id, "create", "admin_user", admin.id, {"role": admin.role.value}, request)
        return create_response(
            message="Admin user created successfully",
            data=_admin_payload(admin),
            status_code=status.HTTP_201_CREATED
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/users/{admin_id}")
def update_admin(
    admin_id: int,
    body: AdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        admin = _get_admin(db, admin_id)
        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        if admin.user_id == current_user.id and (
            changes.get("is_active") is False or changes.get("role", admin.role) != admin.role
        ):
            raise ValidationError("You cannot change your own role or deactivate yourself")

        for field, value in changes.items():
            setattr(admin, field, value)
        db.commit()
        db.refresh(admin)
        log_activity(db, current_user.id, "update", "admin_user", admin.id, {"fields": sorted(changes)}, request)
        return create_response(
            message="Admin user updated successfully",
            data=_admin_payload(admin),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/users/{admin_id}")
def delete_admin(
    admin_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        admin = _get_admin(db, admin_id)
        if admin.user_id == current_user.id:
            raise ValidationError("You cannot remove your own admin access")

        # Removes the login too; a linked investor profile is unlinked, not deleted
        user = admin.user
        db.delete(admin)
        if user is not None:
            db.delete(user)
        db.commit()
        log_activity(db, current_user.id, "delete", "admin_user", admin_id, None, request)
        return create_response(
            message="Admin user deleted successfully",
            data={"id": admin_id},
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/activity-logs")
def activity_logs(
    limit: int = Query(DEFAULT_LOG_LIMIT, ge=1, le=MAX_LOG_LIMIT),
    user_id: int | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        query = db.query(ActivityLog)
        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        logs = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
        return create_response(
            message="Activity logs fetched successfully",
            data=[ActivityLogResponse.model_validate(entry).model_dump() for entry in logs],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/system-settings")
def list_system_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        return create_response(
            message="System settings fetched successfully",
            data=[SystemSettingResponse.model_validate(s).model_dump() for s in list_settings(db)],
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/system-settings")
def save_system_setting(
    body: SystemSettingUpsert,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        setting = upsert_setting(db, body.key, body.value, current_user.id, body.category, body.description)
        log_activity(db, current_user.id, "update", "system_setting", setting.key, {"value": setting.value}, request)
        return create_response(
            message="System setting saved successfully",
            data=SystemSettingResponse.model_validate(setting).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@router.put("/system-settings/{key}")
def update_system_setting(
    key: str,
    body: SystemSettingValue,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    try:
        setting = upsert_setting(db, key, body.value, current_user.id)
        log_activity(db, current_user.id, "update", "system_setting", setting.key, {"value": setting.value}, request)
        return create_response(
            message="System setting saved successfully",
            data=SystemSettingResponse.model_validate(setting).model_dump(),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)


@system_router.get("/settings")
def system_settings_map(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        return create_response(
            message="System settings fetched successfully",
            data=settings_map(db),
            status_code=status.HTTP_200_OK
        )
    except Exception as exc:
        return handle_exception(exc)
