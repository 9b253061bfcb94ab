import os
import sys
from typing import Optional

from tradepost.crud import user as user_crud
from tradepost.database import SessionLocal
from tradepost.utils.security import REVIEWER_ROLES


CONFIRM_PHRASE = "PROMOTE-TO-REVIEWER"


def _required_env(key: str) -> str:
    value = os.getenv(key, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {key}")
    return value


def promote_admin(email: Optional[str] = None, role: Optional[str] = None) -> int:
    """Grant an existing account a reviewer role so it can work the report queue."""
    try:
        confirm = _required_env("PROMOTE_ADMIN_CONFIRM")
        if confirm != CONFIRM_PHRASE:
            raise ValueError(
                f"Invalid PROMOTE_ADMIN_CONFIRM. Expected exact phrase: {CONFIRM_PHRASE}"
            )

        email = (email or _required_env("ADMIN_EMAIL")).strip().lower()
        role = (role or os.getenv("ADMIN_ROLE", "admin")).strip().lower()
        if role not in REVIEWER_ROLES:
            raise ValueError(f"ADMIN_ROLE must be one of: {', '.join(sorted(REVIEWER_ROLES))}")

        db = SessionLocal()
        try:
            user = user_crud.get_user_by_email(db, email)
            if not user:
                raise ValueError(f"No user registered with email {email}")
            if user.role == role:
                print(f"{email} already has role {role}")
                return 0

            user.role = role
            db.commit()
            print(f"{email} promoted to {role}")
            return 0
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
    except Exception as exc:
        print(f"Admin promotion failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(promote_admin(*sys.argv[1:3]))
