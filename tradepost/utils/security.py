from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from tradepost import models, schemas
from tradepost.config import settings
from tradepost.database import get_db, utcnow


# ==========================
# AUTH CONFIG
# ==========================

# Tokens are issued by the external auth service; this core only verifies them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

REVIEWER_ROLES = frozenset({"admin", "super_admin"})


# ==========================
# AUTHORIZATION COLLABORATORS
# ==========================

def is_reviewer(user: Optional[models.User]) -> bool:
    """Elevated privilege required to read the report queue and resolve reports."""
    if user is None:
        return False
    return (user.role or "").strip().lower() in REVIEWER_ROLES


def is_currently_suspended(user: models.User, now: Optional[datetime] = None) -> bool:
    """
    Lazy suspension check.

    Nothing clears ``is_suspended`` when the window passes; callers decide
    by comparing ``suspension_end_date`` against ``now``. A suspension
    without an end date never expires.
    """
    if not user.is_suspended:
        return False
    if user.suspension_end_date is None:
        return True
    now = now or utcnow()
    if now.tzinfo is not None:
        now = now.replace(tzinfo=None) - (now.utcoffset() or timedelta(0))
    return now < user.suspension_end_date


# ==========================
# DEPENDENCIES
# ==========================

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )

        email: str = payload.get("sub")
        if email is None:
            raise credentials_exception

        token_data = schemas.TokenData(email=email, role=payload.get("role"))

    except JWTError:
        raise credentials_exception

    user = db.query(models.User).filter(
        models.User.email == token_data.email
    ).first()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


def get_active_user(current_user: models.User = Depends(get_current_user)):
    """Caller identity for write endpoints; suspended accounts are refused."""
    if is_currently_suspended(current_user):
        until = current_user.suspension_end_date
        detail = "Your account is suspended"
        if until is not None:
            detail = f"Your account is suspended until {until.isoformat()}"
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    return current_user


def require_reviewer(current_user: models.User = Depends(get_current_user)):
    if not is_reviewer(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user
