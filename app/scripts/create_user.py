"""
Create an account (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD EMAIL FIRSTNAME [--lastname L] [--role ROLE ...]
Example:
  python -m app.scripts.create_user admin 'P@ssw0rd' admin@example.com Ada --role ROLE_ADMIN
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import session_scope
from app.schemas.account import AccountType, RoleName
from app.services.accounts import create_account


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    parser = argparse.ArgumentParser(description="Create an account (no registration UI).")
    parser.add_argument("username", help="Username (3-20 chars)")
    parser.add_argument("password", help="Password (6-150 chars)")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("firstname", help="First name")
    parser.add_argument("--lastname", default=None)
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        choices=[r.value for r in RoleName],
        help="Role to assign (repeatable; default ROLE_USER)",
    )
    parser.add_argument("--service-account", action="store_true", help="Create a SERVICE_ACCOUNT")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not 3 <= len(username) <= 20:
        print("Username must be 3-20 characters.", file=sys.stderr)
        return 1
    if not 6 <= len(args.password) <= 150:
        print("Password must be 6-150 characters.", file=sys.stderr)
        return 1

    try:
        with session_scope() as db:
            create_account(
                db,
                username=username,
                password=args.password,
                email=args.email.strip().lower(),
                firstname=args.firstname.strip(),
                lastname=args.lastname,
                roles=args.roles,
                user_type=AccountType.SERVICE_ACCOUNT if args.service_account else AccountType.USER_ACCOUNT,
                bcrypt_rounds=get_settings().BCRYPT_ROUNDS,
            )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Created user '{username}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
