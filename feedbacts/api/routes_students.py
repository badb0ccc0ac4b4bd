from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from feedbacts.api.deps import require_admin
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.promotion_schema import GraduateRequest, PromoteRequest
from feedbacts.services import promotion_service

router = APIRouter()


@router.get("/eligible")
def eligible_students(
    department: Optional[str] = None,
    program_code: Optional[str] = None,
    year_level: Optional[int] = None,
    section: Optional[str] = None,
    course_section: Optional[str] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    students = promotion_service.get_eligible_students(
        db, department, program_code, year_level, section, course_section
    )
    return {"success": True, "students": students, "count": len(students)}


@router.get("/programs")
def all_programs(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"success": True, **promotion_service.get_all_programs(db)}


@router.get("/target-programs/{current_program_id}")
def target_programs(current_program_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"success": True, **promotion_service.get_target_programs(db, current_program_id)}


@router.get("/promotion-history")
def promotion_history(
    student_id: Optional[int] = None,
    user_id: Optional[int] = None,
    promotion_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = promotion_service.get_promotion_history(
        db, student_id, user_id, promotion_type, start_date, end_date, limit, offset
    )
    return {"success": True, **result}


@router.post("/promote")
def promote(data: PromoteRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = promotion_service.promote_students(db, data.student_ids, data.new_program_id, admin.id, data.notes)
    return {
        "success": True,
        "message": f"Promoted {result['promoted']} of {len(data.student_ids)} students",
        **result,
    }


@router.post("/graduate")
def graduate(data: GraduateRequest, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = promotion_service.graduate_students(
        db,
        data.student_ids,
        data.graduation_year,
        admin.id,
        degree=data.degree,
        honors=data.honors,
        ceremony_date=data.ceremony_date,
        job_title=data.job_title,
        notes=data.notes,
    )
    return {
        "success": True,
        "message": f"Graduated {result['graduated']} of {len(data.student_ids)} students",
        **result,
    }
