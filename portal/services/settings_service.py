import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.models.system_setting import SystemSetting

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"


def list_settings(db: Session) -> list[SystemSetting]:
    return db.query(SystemSetting).order_by(SystemSetting.category, SystemSetting.key).all()


def settings_map(db: Session) -> dict[str, str]:
    return {setting.key: setting.value for setting in list_settings(db)}


def upsert_setting(
    db: Session,
    key: str,
    value: str,
    updated_by: int,
    category: str | None = None,
    description: str | None = None,
) -> SystemSetting:
    """Create or overwrite one setting; category and description are kept unless given."""
    setting = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if setting is None:
        setting = SystemSetting(key=key, category=category or DEFAULT_CATEGORY)
        db.add(setting)

    setting.value = value
    setting.updated_by = updated_by
    if category:
        setting.category = category
    if description is not None:
        setting.description = description

    try:
        db.commit()
    except IntegrityError:
        # Another request inserted the key first
        db.rollback()
        return upsert_setting(db, key, value, updated_by, category, description)

    db.refresh(setting)
    logger.info("System setting %s updated by user %s", key, updated_by)
    return setting
