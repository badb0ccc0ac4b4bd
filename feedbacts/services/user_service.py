import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from feedbacts.models.alumni import Alumni
from feedbacts.models.course import CatalogStatus, Program
from feedbacts.models.employer import Employer
from feedbacts.models.instructor import Instructor
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.utils.formatting import format_pagination, iso
from feedbacts.utils.validation import format_name, is_valid_email, sanitize_input

logger = logging.getLogger(__name__)


def _profile_dict(user: User) -> Dict:
    if user.role == UserRole.student and user.student:
        s = user.student
        program = s.program
        return {
            "student_id": s.id,
            "student_number": s.student_number,
            "program_id": s.program_id,
            "course_section": program.course_section if program else None,
            "department": program.department if program else None,
            "academic_year": s.academic_year,
            "contact_number": s.contact_number,
            "image": s.image,
        }
    if user.role == UserRole.instructor and user.instructor:
        return {"instructor_number": user.instructor.instructor_number, "department": user.instructor.department}
    if user.role == UserRole.alumni and user.alumni:
        a = user.alumni
        return {
            "grad_year": a.grad_year,
            "degree": a.degree,
            "job_title": a.job_title,
            "company": a.company,
            "contact": a.contact,
            "image": a.image,
        }
    if user.role == UserRole.employer and user.employer:
        e = user.employer
        return {"company_name": e.company_name, "industry": e.industry, "location": e.location, "contact": e.contact}
    return {}


def serialize_user(user: User, with_profile: bool = False) -> Dict:
    data = {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role.value,
        "status": user.status.value,
        "registration_date": iso(user.registration_date),
    }
    if with_profile:
        data["profile"] = _profile_dict(user)
    return data


def _parse_role(value: str) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=f"Invalid role '{value}'")


def _parse_status(value: str) -> UserStatus:
    try:
        return UserStatus(value)
    except ValueError:
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=f"Invalid status '{value}'")


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def list_users(
    db: Session,
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Dict:
    query = db.query(User)
    if role and role != "all":
        query = query.filter(User.role == _parse_role(role))
    if status and status != "all":
        query = query.filter(User.status == _parse_status(status))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(User.full_name.like(pattern), User.email.like(pattern)))

    total = query.count()
    users = query.order_by(User.registration_date.desc(), User.id.desc()).limit(limit).offset((page - 1) * limit).all()
    return {
        "users": [serialize_user(u, with_profile=True) for u in users],
        "pagination": format_pagination(total, page, limit),
    }


def get_user(db: Session, user_id: int) -> Dict:
    return serialize_user(get_user_or_404(db, user_id), with_profile=True)


PROFILE_MODELS = {
    UserRole.student: Student,
    UserRole.instructor: Instructor,
    UserRole.alumni: Alumni,
    UserRole.employer: Employer,
}


def _ensure_profile(user: User) -> None:
    # audience and promotion queries join on the role's profile table
    model = PROFILE_MODELS.get(user.role)
    if model is not None and getattr(user, user.role.value) is None:
        setattr(user, user.role.value, model(user_id=user.id))
        logger.info("Created empty %s profile for user %s", user.role.value, user.id)


def update_user(db: Session, user_id: int, fields: Dict) -> Dict:
    """Admin edit of name, email, role and status."""
    user = get_user_or_404(db, user_id)
    fields = {k: v for k, v in fields.items() if v is not None}
    if not fields:
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    if "email" in fields:
        email = sanitize_input(fields["email"]).lower()
        if not is_valid_email(email):
            raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="Invalid email address")
        taken = db.query(User.id).filter(User.email == email, User.id != user.id).first()
        if taken:
            raise HTTPException(
                status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="User already exists with this email"
            )
        user.email = email
    if "full_name" in fields:
        name = sanitize_input(fields["full_name"])
        if len(name) < 2:
            raise HTTPException(
                status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="Full name must be at least 2 characters long"
            )
        user.full_name = format_name(name)
    if "role" in fields:
        user.role = _parse_role(fields["role"])
        _ensure_profile(user)
    if "status" in fields:
        user.status = _parse_status(fields["status"])

    db.commit()
    db.refresh(user)
    return serialize_user(user, with_profile=True)


def set_user_status(db: Session, user_id: int, status: str) -> Dict:
    user = get_user_or_404(db, user_id)
    user.status = _parse_status(status)
    db.commit()
    logger.info("User %s status set to %s", user_id, user.status.value)
    return serialize_user(user)


def approve_user(db: Session, user_id: int) -> Dict:
    return set_user_status(db, user_id, UserStatus.active.value)


def reject_user(db: Session, user_id: int) -> Dict:
    return set_user_status(db, user_id, UserStatus.inactive.value)


def delete_user(db: Session, user_id: int, acting_user_id: int) -> None:
    """Soft delete: the account is deactivated, its rows stay."""
    if user_id == acting_user_id:
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    set_user_status(db, user_id, UserStatus.inactive.value)


# == Recipient option lists

def _distinct(db: Session, column, *filters) -> List[str]:
    rows = db.query(column).filter(column.isnot(None), column != "", *filters).distinct().order_by(column).all()
    return [value for (value,) in rows]


def get_departments(db: Session) -> List[str]:
    return _distinct(db, Instructor.department)


def get_course_sections(db: Session) -> List[str]:
    return _distinct(db, Program.course_section, Program.status == CatalogStatus.active)


def get_alumni_companies(db: Session) -> List[str]:
    return _distinct(db, Alumni.company)


def get_employer_companies(db: Session) -> List[str]:
    return _distinct(db, Employer.company_name)
