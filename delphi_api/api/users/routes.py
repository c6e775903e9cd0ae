from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.core.responses import created, listing, success
from delphi_api.core.security import get_current_user
from delphi_api.db.models.user import User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


def _out(user):
    return schemas.UserOut.model_validate(user)


@router.get("/")
def read_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    users = services.get_users(db)
    return listing([_out(u) for u in users], "Users retrieved successfully")


@router.get("/{user_id}")
def read_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success(_out(services.get_user(db, user_id)), "User retrieved successfully")


@router.post("/", status_code=201)
def create_user(
    user: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return created(_out(services.create_user(db, user)), "User created successfully")


@router.put("/{user_id}")
def update_user(
    user_id: int,
    user: schemas.UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    updated = services.update_user(db, user_id, user, current_user)
    return success(_out(updated), "User updated successfully")


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    services.delete_user(db, user_id, current_user)
    return success(None, "User deleted successfully")
