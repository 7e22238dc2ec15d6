"""Bootstrap accounts directly against the database.

    portal-admin create-admin <email> <password> [role] [phone]
    portal-admin create-investor <email> <password> [phone]
    portal-admin sample-sheet <path>
"""
import argparse
import logging
import sys

import pydantic

from portal.config import settings
from portal.errors import PortalError
from portal.models.admin_user import AdminRole

logger = logging.getLogger(__name__)


def _create_admin(args) -> int:
    from portal.database import SessionLocal
    from portal.services.account_service import create_admin_account

    db = SessionLocal()
    try:
        admin = create_admin_account(db, args.email, args.password, role=args.role, phone=args.phone)
        suffix = f" with phone {args.phone}" if args.phone else ""
        print(f"Admin user created successfully: {args.email}{suffix} (role={admin.role.value})")
        return 0
    finally:
        db.close()


def _create_investor(args) -> int:
    from portal.database import SessionLocal
    from portal.services.account_service import create_investor_account

    db = SessionLocal()
    try:
        create_investor_account(
            db,
            email=args.email,
            password=args.password,
            first_name="Test",
            last_name="Investor",
            phone=args.phone,
            investment_amount="1000000",
            kyc_status="verified",
            current_value="1100000",
            returns="10.0",
        )
        print(f"Investor user created successfully: {args.email}")
        return 0
    finally:
        db.close()


def _sample_sheet(args) -> int:
    from portal.services.spreadsheet_service import write_sample_sheet

    path = write_sample_sheet(args.path)
    print(f"Sample statement sheet written to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portal-admin", description="Investor portal account bootstrap")
    subparsers = parser.add_subparsers(dest="command", required=True)

    admin = subparsers.add_parser("create-admin", help="Create an admin login")
    admin.add_argument("email")
    admin.add_argument("password")
    admin.add_argument("role", nargs="?", default=AdminRole.super_admin.value, choices=[r.value for r in AdminRole])
    admin.add_argument("phone", nargs="?")
    admin.set_defaults(handler=_create_admin)

    investor = subparsers.add_parser("create-investor", help="Create an investor login with a starter portfolio")
    investor.add_argument("email")
    investor.add_argument("password")
    investor.add_argument("phone", nargs="?")
    investor.set_defaults(handler=_create_investor)

    sheet = subparsers.add_parser("sample-sheet", help="Write an example statement upload workbook")
    sheet.add_argument("path")
    sheet.set_defaults(handler=_sample_sheet)
    return parser


def main(argv=None) -> int:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s - %(message)s")
    args = build_parser().parse_args(argv)

    if args.command != "sample-sheet":
        from portal.database import init_db
        init_db()

    try:
        return args.handler(args)
    except PortalError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    except pydantic.ValidationError as exc:
        print(f"Error: invalid input\n{exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
