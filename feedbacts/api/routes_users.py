from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user, require_admin
from feedbacts.db.database import get_db
from feedbacts.models.user import User, UserStatus
from feedbacts.schemas.auth_schema import SignupRequest
from feedbacts.schemas.user_schema import UpdateUserRequest, UserStatusRequest
from feedbacts.services import user_service
from feedbacts.services.auth_service import register_user
from feedbacts.services.form_service import get_assigned_forms
from feedbacts.utils.validation import VALID_ROLES

router = APIRouter()


@router.get("")
def list_users(
    role: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"success": True, **user_service.list_users(db, role, status_filter, search, page, limit)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(data: SignupRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    # accounts made by an admin are active straight away and may be admins
    user = register_user(db, data, allowed_roles=VALID_ROLES, status=UserStatus.active)
    return {"success": True, "message": "User created successfully", "user": user}


@router.get("/assigned-forms")
def assigned_forms(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "forms": get_assigned_forms(db, user.id)}


@router.get("/{user_id}")
def get_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"success": True, "user": user_service.get_user(db, user_id)}


@router.patch("/{user_id}")
def update_user(
    user_id: int, data: UpdateUserRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    user = user_service.update_user(db, user_id, data.model_dump())
    return {"success": True, "message": "User updated successfully", "user": user}


@router.delete("/{user_id}")
def delete_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id, admin.id)
    return {"success": True, "message": "User deleted successfully"}


@router.patch("/{user_id}/approve")
def approve_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = user_service.approve_user(db, user_id)
    return {"success": True, "message": "User approved successfully", "user": user}


@router.patch("/{user_id}/reject")
def reject_user(user_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    user = user_service.reject_user(db, user_id)
    return {"success": True, "message": "User rejected successfully", "user": user}


@router.put("/{user_id}/status")
def update_user_status(
    user_id: int, data: UserStatusRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    user = user_service.set_user_status(db, user_id, data.status)
    return {"success": True, "message": "User status updated successfully", "user": user}
