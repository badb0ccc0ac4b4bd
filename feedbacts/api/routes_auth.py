from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user
from feedbacts.core.rate_limit import auth_rate_limit
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.auth_schema import ChangePasswordRequest, LoginRequest, ProfileUpdateRequest, SignupRequest
from feedbacts.services.auth_service import change_password, login, register_user, update_profile
from feedbacts.services.user_service import serialize_user

router = APIRouter()


@router.post("/signup", status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
def signup(request: Request, data: SignupRequest, db: Session = Depends(get_db)):
    user = register_user(db, data)
    return {
        "success": True,
        "message": "User registered successfully. Your account is pending approval.",
        "user": user,
    }


@router.post("/login")
@auth_rate_limit()
def login_endpoint(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    result = login(db, data.email, data.password)
    return {"success": True, "message": "Login successful", **result}


@router.get("/verify")
def verify_token(user: User = Depends(get_current_user)):
    return {"success": True, "user": serialize_user(user)}


@router.get("/profile")
def get_profile(user: User = Depends(get_current_user)):
    return {"success": True, "user": serialize_user(user, with_profile=True)}


@router.put("/profile")
def update_profile_endpoint(
    data: ProfileUpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    updated = update_profile(db, user, data.full_name)
    return {"success": True, "message": "Profile updated successfully", "user": updated}


@router.put("/change-password")
def change_password_endpoint(
    data: ChangePasswordRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    change_password(db, user, data.current_password, data.new_password)
    return {"success": True, "message": "Password changed successfully"}
