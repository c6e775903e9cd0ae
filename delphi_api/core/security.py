import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from delphi_api.config import settings
from delphi_api.core.errors import AuthenticationError, AuthorizationError
from delphi_api.db.models import AccessToken, User
from delphi_api.db.session import get_db

logger = logging.getLogger(__name__)

# Used to extract token from Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def _utcnow() -> datetime:
    # access_tokens.expires_at is stored naive, in UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> Tuple[str, datetime]:
    """Encode a JWT carrying `data` and return it with its (naive UTC) expiry."""
    expires_at = _utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = data.copy()
    to_encode.update({"exp": expires_at.replace(tzinfo=timezone.utc), "iat": _utcnow().replace(tzinfo=timezone.utc),
                      "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM), expires_at


def issue_token(db: Session, user: User) -> AccessToken:
    """Create a JWT for `user` and record it so it can be revoked."""
    token, expires_at = create_access_token({"sub": str(user.id)})
    record = AccessToken(user_id=user.id, token=token, expires_at=expires_at)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("JWT decode failed: %s", e)
        raise AuthenticationError("Invalid or expired token")


def get_current_token(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> AccessToken:
    """Resolve the bearer token to its stored, unexpired record."""
    if not token:
        raise AuthenticationError("Access token required")

    payload = decode_token(token)
    if payload.get("sub") is None:
        logger.warning("JWT token missing 'sub' claim")
        raise AuthenticationError("Invalid token")

    record = (
        db.query(AccessToken)
        .filter(AccessToken.token == token, AccessToken.expires_at > _utcnow())
        .first()
    )
    if record is None:
        raise AuthenticationError("Token has been revoked or has expired")
    if str(record.user_id) != str(payload["sub"]):
        raise AuthenticationError("Invalid token")
    return record


def get_current_user(record: AccessToken = Depends(get_current_token), db: Session = Depends(get_db)) -> User:
    user = db.get(User, record.user_id)
    if user is None:
        logger.warning("User %s not found for a valid token", record.user_id)
        raise AuthenticationError("User not found")
    return user


def purge_expired_tokens(db: Session) -> int:
    deleted = (
        db.query(AccessToken)
        .filter(AccessToken.expires_at <= _utcnow())
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def ensure_owner(entity, user: User, label: str, require_custom: bool = False):
    """Only the creator may change an entity; built-in rows are read-only."""
    if require_custom and not getattr(entity, "is_custom", True):
        raise AuthorizationError(f"Default {label.lower()}s cannot be modified")
    if entity.created_by != user.id:
        raise AuthorizationError(f"You can only modify your own {label.lower()}s")
