"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user EMAIL NAME PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com "Office Admin" 'S3cure-password' ADMIN
"""
import argparse
import sys

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory
from app.core.exceptions import DuplicateEmailError, ValidationError
from app.core.security import (
    PasswordHasher,
    normalize_email,
    validate_name,
    validate_password_strength,
)
from app.models import Role
from app.services.user_store import CredentialStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a user account (e.g. the first admin).")
    parser.add_argument("email", help="Login email")
    parser.add_argument("name", help="Display name (2-255 chars)")
    parser.add_argument("password", help="Password (8 chars to 72 bytes, upper, lower and a digit)")
    parser.add_argument(
        "role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role]
    )
    args = parser.parse_args(argv)

    try:
        email = normalize_email(args.email)
        name = validate_name(args.name)
        validate_password_strength(args.password)
    except ValidationError as e:
        print(e.message, file=sys.stderr)
        return 1

    load_dotenv()
    settings = get_settings()
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        CredentialStore(db).create(
            email=email,
            name=name,
            password_hash=hasher.hash(args.password),
            role=Role(args.role),
        )
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    except DuplicateEmailError:
        print(f"User '{email}' already exists.", file=sys.stderr)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
