import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from delphi_api.core.errors import AuthorizationError, NotFoundError, ValidationError
from delphi_api.core.hashing import Hasher
from delphi_api.db.models.user import User
from . import schemas

logger = logging.getLogger(__name__)


def _check_unique(db: Session, username, email, exclude_id=None):
    for field, value in (("username", username), ("email", email)):
        if value is None:
            continue
        query = db.query(User).filter(getattr(User, field) == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise ValidationError(f"{field.capitalize()} already exists", {"field": field, "value": value})


def _commit(db: Session):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("User information already exists")


def get_users(db: Session):
    return db.query(User).order_by(User.id).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", {"id": user_id})
    return user


def get_user_by_login(db: Session, username=None, email=None):
    query = db.query(User)
    if username:
        return query.filter(User.username == username.strip()).first()
    if email:
        return query.filter(User.email == email.strip()).first()
    return None


def create_user(db: Session, user: schemas.UserCreate) -> User:
    if user.username is None and user.email is None:
        raise ValidationError("Username or email is required")
    _check_unique(db, user.username, user.email)

    db_user = User(
        username=user.username,
        email=user.email,
        password_hash=Hasher.hash_password(user.password.strip()),
    )
    db.add(db_user)
    _commit(db)
    db.refresh(db_user)
    logger.info("Created user %s", db_user.id)
    return db_user


def update_user(db: Session, user_id: int, user: schemas.UserUpdate, current_user: User) -> User:
    db_user = get_user(db, user_id)
    if db_user.id != current_user.id:
        raise AuthorizationError("You can only update your own account")

    changes = user.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("Username, email or password is required")
    _check_unique(db, changes.get("username"), changes.get("email"), exclude_id=db_user.id)

    password = changes.pop("password", None)
    if password:
        db_user.password_hash = Hasher.hash_password(password.strip())
    for key, value in changes.items():
        setattr(db_user, key, value)

    _commit(db)
    db.refresh(db_user)
    return db_user


def delete_user(db: Session, user_id: int, current_user: User):
    db_user = get_user(db, user_id)
    if db_user.id != current_user.id:
        raise AuthorizationError("You can only delete your own account")
    db.delete(db_user)
    db.commit()
    logger.info("Deleted user %s", user_id)
