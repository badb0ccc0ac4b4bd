"""Academic-year promotion and graduation of students.

Each student in a batch is handled in its own transaction: one bad id
or failed write is recorded in the returned `errors` list and the rest
of the batch carries on.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from feedbacts.models.alumni import Alumni
from feedbacts.models.course import CatalogStatus, Program
from feedbacts.models.promotion import GraduationRecord, PromotionType, StudentPromotionHistory
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.utils.formatting import iso

logger = logging.getLogger(__name__)

COLLEGE = "College"
COLLEGE_FINAL_YEAR = 4
SENIOR_HIGH_FINAL_YEAR = 12


def _program_dict(program: Optional[Program]) -> Optional[Dict]:
    if program is None:
        return None
    return {
        "id": program.id,
        "department": program.department,
        "program_name": program.program_name,
        "program_code": program.program_code,
        "year_level": program.year_level,
        "section": program.section,
        "course_section": program.course_section,
    }


def get_eligible_students(
    db: Session,
    department: Optional[str] = None,
    program_code: Optional[str] = None,
    year_level: Optional[int] = None,
    section: Optional[str] = None,
    course_section: Optional[str] = None,
) -> List[Dict]:
    query = (
        db.query(User, Student, Program)
        .join(Student, Student.user_id == User.id)
        .join(Program, Student.program_id == Program.id)
        .filter(
            User.role == UserRole.student,
            User.status == UserStatus.active,
            Program.status == CatalogStatus.active,
        )
    )
    if department:
        query = query.filter(Program.department == department)
    if program_code:
        query = query.filter(Program.program_code == program_code)
    if year_level is not None:
        query = query.filter(Program.year_level == year_level)
    if section:
        query = query.filter(Program.section == section)
    if course_section:
        query = query.filter(Program.course_section == course_section)

    rows = query.order_by(
        Program.department, Program.program_code, Program.year_level, Program.section, User.full_name
    ).all()
    return [
        {
            "student_id": student.id,
            "user_id": user.id,
            "full_name": user.full_name,
            "email": user.email,
            "student_number": student.student_number,
            "academic_year": student.academic_year,
            "program": _program_dict(program),
        }
        for user, student, program in rows
    ]


def get_target_programs(db: Session, current_program_id: int) -> Dict:
    """Candidate programs one year above the current one."""
    current = db.query(Program).filter(Program.id == current_program_id).first()
    if not current:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Current program not found")

    target_year = current.year_level + 1
    department = current.department
    if current.year_level == SENIOR_HIGH_FINAL_YEAR:
        target_year = 1
        department = COLLEGE

    if department == COLLEGE and target_year > COLLEGE_FINAL_YEAR:
        return {
            "current_program": _program_dict(current),
            "programs": [],
            "message": "Students are at final year - consider graduation instead",
        }

    active = db.query(Program).filter(
        Program.status == CatalogStatus.active,
        Program.department == department,
        Program.year_level == target_year,
    )
    programs = (
        active.filter(Program.program_code == current.program_code).order_by(Program.section).all()
    )
    if not programs:
        programs = active.order_by(Program.program_code, Program.section).all()

    return {
        "current_program": _program_dict(current),
        "programs": [_program_dict(p) for p in programs],
        "message": None,
    }


def promote_students(
    db: Session, student_ids: List[int], new_program_id: int, promoted_by: int, notes: str = ""
) -> Dict:
    program = db.query(Program).filter(Program.id == new_program_id).first()
    if not program:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Target program not found")

    today = date.today()
    details, errors = [], []

    # a repeated id is promoted once
    for student_id in dict.fromkeys(student_ids):
        student = db.query(Student).filter(Student.id == student_id).first()
        if not student:
            errors.append({"student_id": student_id, "error": "Student not found"})
            continue
        if student.user.role != UserRole.student:
            errors.append({"student_id": student_id, "error": "Student has already graduated"})
            continue
        if student.program_id == program.id:
            errors.append({"student_id": student_id, "error": "Student is already in the target program"})
            continue

        previous_program_id = student.program_id
        try:
            student.previous_program_id = previous_program_id
            student.program_id = program.id
            student.academic_year = program.year_level
            student.promotion_date = today
            db.add(
                StudentPromotionHistory(
                    student_id=student.id,
                    user_id=student.user_id,
                    previous_program_id=previous_program_id,
                    new_program_id=program.id,
                    promotion_type=PromotionType.academic_year,
                    promotion_date=today,
                    promoted_by=promoted_by,
                    notes=notes,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Promotion of student %s failed: %s", student_id, e)
            errors.append({"student_id": student_id, "error": str(e)})
            continue

        details.append(
            {
                "student_id": student_id,
                "user_id": student.user_id,
                "previous_program_id": previous_program_id,
                "new_program_id": program.id,
            }
        )

    logger.info("Promoted %d students to program %s (%d errors)", len(details), program.id, len(errors))
    return {"promoted": len(details), "errors": errors, "details": details}


def graduate_students(
    db: Session,
    student_ids: List[int],
    graduation_year: int,
    promoted_by: int,
    degree: Optional[str] = None,
    honors: Optional[str] = None,
    ceremony_date: Optional[date] = None,
    job_title: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict:
    """Turn students into alumni; the students row stays with program_id cleared."""
    today = date.today()
    details, errors = [], []

    for student_id in dict.fromkeys(student_ids):
        student = db.query(Student).filter(Student.id == student_id).first()
        if not student:
            errors.append({"student_id": student_id, "error": "Student not found"})
            continue
        user = student.user
        if user.role == UserRole.alumni:
            errors.append({"student_id": student_id, "error": "Student has already graduated"})
            continue

        program_id = student.program_id
        try:
            db.add(
                GraduationRecord(
                    student_id=student.id,
                    user_id=user.id,
                    program_id=program_id,
                    graduation_year=graduation_year,
                    degree=degree,
                    honors=honors,
                    ceremony_date=ceremony_date,
                )
            )

            alumni = user.alumni
            if alumni is None:
                alumni = Alumni(user_id=user.id)
                user.alumni = alumni
            alumni.grad_year = graduation_year
            alumni.degree = degree
            alumni.job_title = job_title
            alumni.contact = student.contact_number
            alumni.image = student.image

            user.role = UserRole.alumni

            db.add(
                StudentPromotionHistory(
                    student_id=student.id,
                    user_id=user.id,
                    previous_program_id=program_id,
                    new_program_id=None,
                    promotion_type=PromotionType.graduation,
                    promotion_date=today,
                    promoted_by=promoted_by,
                    notes=notes or f"Graduated {graduation_year}",
                )
            )

            student.previous_program_id = program_id
            student.program_id = None
            student.promotion_date = today
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Graduation of student %s failed: %s", student_id, e)
            errors.append({"student_id": student_id, "error": str(e)})
            continue

        details.append({"student_id": student_id, "user_id": user.id, "alumni_id": alumni.id})

    logger.info("Graduated %d students (%d errors)", len(details), len(errors))
    return {"graduated": len(details), "errors": errors, "details": details}


def get_promotion_history(
    db: Session,
    student_id: Optional[int] = None,
    user_id: Optional[int] = None,
    promotion_type: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict:
    old_program = aliased(Program)
    new_program = aliased(Program)
    promoter = aliased(User)

    query = (
        db.query(
            StudentPromotionHistory,
            User.full_name,
            User.email,
            Student.student_number,
            old_program.program_code,
            old_program.year_level,
            new_program.program_code,
            new_program.year_level,
            promoter.full_name,
        )
        .join(User, StudentPromotionHistory.user_id == User.id)
        .join(Student, StudentPromotionHistory.student_id == Student.id)
        .outerjoin(old_program, StudentPromotionHistory.previous_program_id == old_program.id)
        .outerjoin(new_program, StudentPromotionHistory.new_program_id == new_program.id)
        .outerjoin(promoter, StudentPromotionHistory.promoted_by == promoter.id)
    )

    if student_id is not None:
        query = query.filter(StudentPromotionHistory.student_id == student_id)
    if user_id is not None:
        query = query.filter(StudentPromotionHistory.user_id == user_id)
    if promotion_type:
        try:
            query = query.filter(StudentPromotionHistory.promotion_type == PromotionType(promotion_type))
        except ValueError:
            raise HTTPException(
                status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=f"Invalid promotion type '{promotion_type}'"
            )
    if start_date:
        query = query.filter(StudentPromotionHistory.promotion_date >= start_date)
    if end_date:
        query = query.filter(StudentPromotionHistory.promotion_date <= end_date)

    total = query.count()
    rows = (
        query.order_by(StudentPromotionHistory.promotion_date.desc(), StudentPromotionHistory.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )

    history = []
    for h, full_name, email, student_number, old_code, old_year, new_code, new_year, promoter_name in rows:
        history.append(
            {
                "id": h.id,
                "student_id": h.student_id,
                "user_id": h.user_id,
                "full_name": full_name,
                "email": email,
                "student_number": student_number,
                "promotion_type": h.promotion_type.value,
                "promotion_date": iso(h.promotion_date),
                "old_program_code": old_code,
                "old_year_level": old_year,
                "new_program_code": new_code,
                "new_year_level": new_year,
                "promoted_by_name": promoter_name,
                "notes": h.notes,
            }
        )
    return {"history": history, "total": total}


def get_all_programs(db: Session) -> Dict:
    """Active programs, flat and grouped as department -> program_code -> [programs]."""
    programs = (
        db.query(Program)
        .filter(Program.status == CatalogStatus.active)
        .order_by(Program.department, Program.program_code, Program.year_level, Program.section)
        .all()
    )
    grouped: Dict[str, Dict[str, List[Dict]]] = {}
    for program in programs:
        by_code = grouped.setdefault(program.department, {})
        by_code.setdefault(program.program_code, []).append(_program_dict(program))

    return {"programs": [_program_dict(p) for p in programs], "grouped": grouped}
