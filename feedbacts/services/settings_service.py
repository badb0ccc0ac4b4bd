"""Key/value system settings, optionally scoped to a department.

A row with no department is the general value; a department row overrides
it for that department. The current semester and academic year are read
from the ``current_semester`` and ``current_academic_year`` keys.
"""
import logging
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy.orm import Session

from feedbacts.models.system_setting import SystemSetting
from feedbacts.schemas.settings_schema import SettingItem
from feedbacts.utils.formatting import iso

logger = logging.getLogger(__name__)

CURRENT_SEMESTER = "current_semester"
CURRENT_ACADEMIC_YEAR = "current_academic_year"
DEFAULT_SEMESTER = "1st"
DEFAULT_ACADEMIC_YEAR = "2025-2026"

COLLEGE = "College"
SENIOR_HIGH = "Senior High"


def _setting_dict(setting: SystemSetting) -> Dict:
    return {
        "id": setting.id,
        "setting_key": setting.setting_key,
        "setting_value": setting.setting_value,
        "department": setting.department,
        "description": setting.description,
        "updated_at": iso(setting.updated_at),
    }


def _find(db: Session, key: str, department: Optional[str]) -> Optional[SystemSetting]:
    query = db.query(SystemSetting).filter(SystemSetting.setting_key == key)
    if department is None:
        query = query.filter(SystemSetting.department.is_(None))
    else:
        query = query.filter(SystemSetting.department == department)
    return query.first()


def list_settings(db: Session) -> List[Dict]:
    rows = db.query(SystemSetting).order_by(SystemSetting.department, SystemSetting.setting_key).all()
    return [_setting_dict(s) for s in rows]


def _upsert(db: Session, key: str, value: Optional[str], department: Optional[str]) -> Tuple[SystemSetting, bool]:
    if value is None or not value.strip():
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="Value is required")
    department = department or None

    setting = _find(db, key, department)
    created = setting is None
    if created:
        setting = SystemSetting(setting_key=key, department=department)
        db.add(setting)
    setting.setting_value = value.strip()
    # later items of a bulk update must find this row
    db.flush()
    return setting, created


def update_setting(db: Session, key: str, value: Optional[str], department: Optional[str] = None) -> Dict:
    setting, created = _upsert(db, key, value, department)
    db.commit()
    db.refresh(setting)
    logger.info("Setting %s (%s) %s", key, setting.department or "general", "created" if created else "updated")
    return {"setting": _setting_dict(setting), "created": created}


def bulk_update_settings(db: Session, items: List[SettingItem]) -> List[Dict]:
    """Apply every item in one transaction; a blank value aborts the batch."""
    results = []
    try:
        for item in items:
            setting, created = _upsert(db, item.key, item.value, item.department)
            results.append(
                {
                    "key": item.key,
                    "value": setting.setting_value,
                    "department": setting.department,
                    "status": "created" if created else "updated",
                }
            )
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    logger.info("Bulk updated %d settings", len(results))
    return results


def delete_setting(db: Session, key: str, department: Optional[str] = None) -> None:
    setting = _find(db, key, department or None)
    if not setting:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Setting not found")
    db.delete(setting)
    db.commit()
    logger.info("Setting %s (%s) deleted", key, department or "general")


def get_department_settings(db: Session, department: str) -> Dict[str, str]:
    """General settings overlaid with the department's own values."""
    rows = (
        db.query(SystemSetting)
        .filter((SystemSetting.department == department) | SystemSetting.department.is_(None))
        .all()
    )
    values = {s.setting_key: s.setting_value for s in rows if s.department is None}
    values.update({s.setting_key: s.setting_value for s in rows if s.department == department})
    return values


def _term(values: Dict[str, str]) -> Dict:
    return {
        "semester": values.get(CURRENT_SEMESTER, DEFAULT_SEMESTER),
        "academic_year": values.get(CURRENT_ACADEMIC_YEAR, DEFAULT_ACADEMIC_YEAR),
    }


def get_current_semester(db: Session, department: Optional[str] = None) -> Dict:
    if department:
        return {"department": department, **_term(get_department_settings(db, department))}
    return {
        "college": _term(get_department_settings(db, COLLEGE)),
        "senior_high": _term(get_department_settings(db, SENIOR_HIGH)),
    }
