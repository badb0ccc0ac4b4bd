from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedbacts.api.deps import require_form_author
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.services import user_service

router = APIRouter()


@router.get("/departments")
def departments(user: User = Depends(require_form_author), db: Session = Depends(get_db)):
    return {"success": True, "departments": user_service.get_departments(db)}


@router.get("/course-sections")
def course_sections(user: User = Depends(require_form_author), db: Session = Depends(get_db)):
    return {"success": True, "course_sections": user_service.get_course_sections(db)}


@router.get("/alumni-companies")
def alumni_companies(user: User = Depends(require_form_author), db: Session = Depends(get_db)):
    return {"success": True, "companies": user_service.get_alumni_companies(db)}


@router.get("/employer-companies")
def employer_companies(user: User = Depends(require_form_author), db: Session = Depends(get_db)):
    return {"success": True, "companies": user_service.get_employer_companies(db)}
