import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.errors import DuplicateKey
from portal.models.user import User
from portal.schemas.user import UserCreate

logger = logging.getLogger(__name__)


def create_user(db: Session, data: UserCreate, commit: bool = True) -> User:
    """Persist a new user, relying on the unique indexes on email and phone.

    Raises DuplicateKey when either identifier is already taken.
    """
    user = User(**data.model_dump())
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.info("Duplicate user rejected email=%s phone=%s", data.email, data.phone)
        raise DuplicateKey("User with this email or phone already exists") from exc

    if commit:
        db.commit()
        db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def find_by_email(db: Session, email: str | None) -> User | None:
    if not email:
        return None
    return db.query(User).filter(User.email == email.strip().lower()).first()


def find_by_phone(db: Session, phone: str | None) -> User | None:
    if not phone:
        return None
    return db.query(User).filter(User.phone == phone).first()


def set_password(db: Session, user: User, password_hash: str) -> User:
    user.password_hash = password_hash
    db.commit()
    db.refresh(user)
    return user
