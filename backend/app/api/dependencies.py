from datetime import datetime

from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..models import Contractor, User, UserType
from .auth import oauth2_scheme, decode_subject
from ..utils.auth import normalize_email


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    jwt_token = token or request.cookies.get("access_token")
    email = decode_subject(jwt_token)
    if email is None:
        raise credentials_exception
    user = (
        db.query(User)
        .options(joinedload(User.contractor))
        .filter(User.email == normalize_email(email))
        .first()
    )
    if user is None:
        raise credentials_exception
    return user


def get_current_active_client(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    # Contractors may also book other contractors' services.
    return current_user


def get_current_contractor(current_user: User = Depends(get_current_user)) -> Contractor:
    """Resolve the caller's contractor profile or refuse with 403."""
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    if current_user.user_type != UserType.CONTRACTOR or current_user.contractor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Contractor profile required",
        )
    return current_user.contractor


def get_now() -> datetime:
    """Server-local wall clock; overridden in tests to pin time."""
    return datetime.now()
