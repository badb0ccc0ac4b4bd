from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user, require_admin
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.settings_schema import BulkSettingsUpdate, SettingUpdate
from feedbacts.services import settings_service

router = APIRouter()


@router.get("")
def get_settings(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"success": True, "settings": settings_service.list_settings(db)}


@router.get("/current-semester")
def current_semester(department: Optional[str] = None, db: Session = Depends(get_db)):
    return {"success": True, "data": settings_service.get_current_semester(db, department)}


@router.get("/department/{department}")
def department_settings(department: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    settings = settings_service.get_department_settings(db, department)
    return {"success": True, "department": department, "settings": settings}


@router.put("/bulk/update")
def bulk_update(data: BulkSettingsUpdate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    results = settings_service.bulk_update_settings(db, data.settings)
    return {"success": True, "message": "Settings updated successfully", "results": results}


@router.put("/{key}")
def update_setting(
    key: str, data: SettingUpdate, user: User = Depends(require_admin), db: Session = Depends(get_db)
):
    result = settings_service.update_setting(db, key, data.value, data.department)
    message = "Setting created successfully" if result["created"] else "Setting updated successfully"
    return {"success": True, "message": message, "setting": result["setting"]}


@router.delete("/{key}")
def delete_setting(
    key: str, department: Optional[str] = None, user: User = Depends(require_admin), db: Session = Depends(get_db)
):
    settings_service.delete_setting(db, key, department)
    return {"success": True, "message": "Setting deleted successfully"}
