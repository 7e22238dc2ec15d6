from datetime import datetime, timedelta

import pytest

from portal.errors import AlreadyUsed, InvalidCode, OtpExpired
from portal.models.otp import Otp, OtpChannel
from portal.schemas.user import UserCreate
from portal.services.auth_service import hash_password
from portal.services.credential_store import create_user
from portal.services.otp_service import generate_code, issue_otp, verify_otp


@pytest.fixture()
def user(db):
    return create_user(db, UserCreate(email="otp@example.com", phone="9000000001", password_hash=hash_password("pw")))


def _other_code(code: str) -> str:
    return "".join(str((int(ch) + 1) % 10) for ch in code)


def test_generated_code_is_six_digits():
    code = generate_code()

    assert len(code) == 6
    assert code.isdigit()


def test_issue_then_verify_marks_code_used(db, user):
    code = issue_otp(db, user.id, OtpChannel.email)

    record = verify_otp(db, user.id, code, OtpChannel.email)

    assert record.is_used is True
    assert record.used_at is not None


def test_wrong_code_is_invalid(db, user):
    code = issue_otp(db, user.id)

    with pytest.raises(InvalidCode):
        verify_otp(db, user.id, _other_code(code))


def test_reissue_supersedes_previous_code(db, user):
    first = issue_otp(db, user.id)
    second = issue_otp(db, user.id)

    if first != second:
        with pytest.raises(InvalidCode):
            verify_otp(db, user.id, first)
    assert verify_otp(db, user.id, second).is_used is True
    live = db.query(Otp).filter(Otp.user_id == user.id, Otp.is_superseded == False).count()
    assert live == 1


def test_code_cannot_be_used_twice(db, user):
    code = issue_otp(db, user.id)
    verify_otp(db, user.id, code)

    with pytest.raises(AlreadyUsed):
        verify_otp(db, user.id, code)


def test_expired_code_is_rejected(db, user):
    issued_at = datetime.utcnow() - timedelta(minutes=30)
    code = issue_otp(db, user.id, now=issued_at)

    with pytest.raises(OtpExpired):
        verify_otp(db, user.id, code)


def test_channels_are_independent(db, user):
    email_code = issue_otp(db, user.id, OtpChannel.email)
    phone_code = issue_otp(db, user.id, OtpChannel.phone)

    assert verify_otp(db, user.id, email_code, OtpChannel.email).channel == OtpChannel.email
    assert verify_otp(db, user.id, phone_code, OtpChannel.phone).channel == OtpChannel.phone


def test_no_code_issued_is_invalid(db, user):
    with pytest.raises(InvalidCode):
        verify_otp(db, user.id, "123456")
