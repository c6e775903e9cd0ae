from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from delphi_api.api.users.schemas import UserOut
from delphi_api.core.responses import created, success
from delphi_api.core.security import get_current_token, get_current_user
from delphi_api.db.models import AccessToken, User
from delphi_api.db.session import get_db
from . import schemas, services

router = APIRouter()


@router.get("/")
def auth_endpoints():
    return success({
        "login": "POST /auth/login",
        "register": "POST /auth/register",
        "logout": "POST /auth/logout",
        "logout-all": "POST /auth/logout-all",
        "verify": "GET /auth/verify",
        "profile": "GET /auth/profile",
        "update-profile": "PUT /auth/profile",
        "cleanup-tokens": "POST /auth/cleanup-tokens",
    }, "Authentication endpoints")


@router.post("/register", status_code=201)
def register(user: schemas.RegisterRequest, db: Session = Depends(get_db)):
    new_user = services.register(db, user)
    return created(UserOut.model_validate(new_user), "User created successfully")


@router.post("/login")
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    return success(services.login(db, credentials), "Login successful")


@router.post("/logout")
def logout(record: AccessToken = Depends(get_current_token), db: Session = Depends(get_db)):
    services.logout(db, record)
    return success(None, "Logout successful")


@router.post("/logout-all")
def logout_all(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    removed = services.logout_all(db, current_user)
    return success({"tokens_removed": removed}, "Logged out from all devices successfully")


@router.get("/verify")
def verify(record: AccessToken = Depends(get_current_token), current_user: User = Depends(get_current_user)):
    return success(
        {"user": UserOut.model_validate(current_user), "expires_at": record.expires_at},
        "Token is valid",
    )


@router.get("/profile")
def read_profile(current_user: User = Depends(get_current_user)):
    return success(UserOut.model_validate(current_user), "Profile retrieved successfully")


@router.put("/profile")
def update_profile(
    profile: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    user = services.update_profile(db, current_user, profile)
    return success(UserOut.model_validate(user), "Profile updated successfully")


@router.post("/cleanup-tokens")
def cleanup_tokens(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    removed = services.cleanup_tokens(db)
    return success({"tokens_removed": removed}, "Expired tokens cleaned up successfully")
