"""
Seed the default roles and permissions, then create a user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [--role admin|user] [--first-name NAME] [--last-name NAME]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password --role admin
"""
import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import session_scope
from app.core.errors import AppError
from app.services import auth as auth_service
from app.services.roles import seed_defaults

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Compliance Mait user with a password credential.")
    parser.add_argument("email", help="Email; also used as the login name")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument("--role", default="user", choices=["user", "admin"])
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    args = parser.parse_args(argv)

    settings = get_settings()
    role_id = settings.ADMIN_ROLE_ID if args.role == "admin" else settings.DEFAULT_ROLE_ID

    try:
        with session_scope() as db:
            seed_defaults(db, settings.ADMIN_ROLE_ID, settings.DEFAULT_ROLE_ID)
            result = auth_service.register(
                db,
                email=args.email,
                password=args.password,
                first_name=args.first_name,
                last_name=args.last_name,
                login_name=args.email,
                role_id=role_id,
            )
            print(f"Created user '{result.user.email}' (id={result.user.id}) with role '{args.role}'.")
    except AppError as e:
        print(f"Could not create user: {e.message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
