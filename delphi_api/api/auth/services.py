import logging

from sqlalchemy.orm import Session

from delphi_api.api.users import services as user_services
from delphi_api.api.users.schemas import UserUpdate
from delphi_api.core.errors import AuthenticationError, ValidationError
from delphi_api.core.hashing import Hasher
from delphi_api.core.security import issue_token, purge_expired_tokens
from delphi_api.db.models import AccessToken, User
from . import schemas

logger = logging.getLogger(__name__)


def login(db: Session, credentials: schemas.LoginRequest) -> schemas.Token:
    user = user_services.get_user_by_login(db, credentials.username, credentials.email)
    if not user or not Hasher.verify_password(credentials.password, user.password_hash):
        logger.info("Failed login for %s", credentials.username or credentials.email)
        raise AuthenticationError("Invalid credentials")

    record = issue_token(db, user)
    logger.info("User %s logged in", user.id)
    return schemas.Token(
        access_token=record.token,
        expires_at=record.expires_at,
        user=schemas.UserOut.model_validate(user),
    )


def register(db: Session, user: schemas.RegisterRequest) -> User:
    return user_services.create_user(db, user)


def logout(db: Session, record: AccessToken):
    db.delete(record)
    db.commit()


def logout_all(db: Session, user: User) -> int:
    removed = (
        db.query(AccessToken)
        .filter(AccessToken.user_id == user.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info("Revoked %d tokens of user %s", removed, user.id)
    return removed


def update_profile(db: Session, user: User, profile: schemas.ProfileUpdate) -> User:
    changes = profile.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationError("Username or email is required")
    return user_services.update_user(db, user.id, UserUpdate(**changes), user)


def cleanup_tokens(db: Session) -> int:
    return purge_expired_tokens(db)
