from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user, require_admin
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.course_schema import ProgramCreate, ProgramUpdate
from feedbacts.services import course_service

router = APIRouter()


# public: the signup screen needs the program list
@router.get("")
def list_programs(department: Optional[str] = None, include_inactive: bool = False, db: Session = Depends(get_db)):
    return {"success": True, "programs": course_service.list_programs(db, department, include_inactive)}


@router.get("/departments")
def list_departments(db: Session = Depends(get_db)):
    return {"success": True, "departments": course_service.list_departments(db)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_program(data: ProgramCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    program = course_service.create_program(db, data)
    return {"success": True, "message": "Program created successfully", "program": program}


@router.get("/{program_id}")
def get_program(program_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "program": course_service.get_program(db, program_id)}


@router.put("/{program_id}")
def update_program(
    program_id: int, data: ProgramUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    program = course_service.update_program(db, program_id, data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Program updated successfully", "program": program}


@router.patch("/{program_id}/toggle")
def toggle_program(program_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    program = course_service.toggle_program(db, program_id)
    message = "Program activated successfully" if program["status"] == "active" else "Program deactivated successfully"
    return {"success": True, "message": message, "program": program}


@router.delete("/{program_id}")
def delete_program(program_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    course_service.delete_program(db, program_id)
    return {"success": True, "message": "Program deleted successfully"}
