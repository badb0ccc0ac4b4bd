import logging
from typing import Dict

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedbacts.models.alumni import Alumni
from feedbacts.models.course import Program
from feedbacts.models.employer import Employer
from feedbacts.models.instructor import Instructor
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole, UserStatus
from feedbacts.schemas.auth_schema import SignupRequest
from feedbacts.services.security import create_access_token, hash_password, verify_password
from feedbacts.services.user_service import serialize_user
from feedbacts.utils.validation import format_name, sanitize_input, validate_password, validate_user_data

logger = logging.getLogger(__name__)

# admins are created by the seed script or by another admin
SIGNUP_ROLES = ("student", "instructor", "alumni", "employer")


def _role_profile(user: User, data: SignupRequest):
    role = user.role
    if role == UserRole.student:
        return Student(
            user=user,
            student_number=data.student_number,
            program_id=data.program_id,
            contact_number=data.contact_number,
        )
    if role == UserRole.instructor:
        return Instructor(user=user, instructor_number=data.instructor_number, department=data.department)
    if role == UserRole.alumni:
        return Alumni(
            user=user,
            grad_year=data.grad_year,
            degree=data.degree,
            job_title=data.job_title,
            company=data.company,
            contact=data.contact_number,
        )
    if role == UserRole.employer:
        return Employer(
            user=user,
            company_name=data.company,
            industry=data.industry,
            location=data.location,
            contact=data.contact_number,
        )
    return None


def register_user(db: Session, data: SignupRequest, allowed_roles=SIGNUP_ROLES, status=UserStatus.pending) -> Dict:
    """Create a user plus its role profile. Public signups start pending."""
    email = sanitize_input(data.email or "").lower()
    full_name = sanitize_input(data.full_name or "")

    errors = validate_user_data(email, full_name, data.password, data.role)
    if not errors and data.role not in allowed_roles:
        errors.append(f"Invalid role. Must be one of: {', '.join(allowed_roles)}")
    if errors:
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=", ".join(errors))

    if db.query(User.id).filter(User.email == email).first():
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="User already exists with this email")

    if data.role == UserRole.student.value and data.program_id is not None:
        if not db.query(Program.id).filter(Program.id == data.program_id).first():
            raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="Program not found")

    user = User(
        email=email,
        password_hash=hash_password(data.password),
        full_name=format_name(full_name),
        role=UserRole(data.role),
        status=status,
    )
    try:
        db.add(user)
        profile = _role_profile(user, data)
        if profile is not None:
            db.add(profile)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Registration failed for %s: %s", email, e)
        raise HTTPException(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Registration failed")

    logger.info("Registered %s user %s", user.role.value, user.id)
    return serialize_user(user, with_profile=True)


def login(db: Session, email: str, password: str) -> Dict:
    email = sanitize_input(email or "").lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=fastapi_status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if user.status != UserStatus.active:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Account is not active")

    token = create_access_token({"sub": user.id, "role": user.role.value})
    return {"token": token, "user": serialize_user(user)}


def update_profile(db: Session, user: User, full_name: str) -> Dict:
    name = sanitize_input(full_name or "")
    if len(name) < 2:
        raise HTTPException(
            status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="Full name must be at least 2 characters long"
        )
    user.full_name = format_name(name)
    db.commit()
    db.refresh(user)
    return serialize_user(user, with_profile=True)


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    error = validate_password(new_password)
    if error:
        raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=error)

    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("User %s changed password", user.id)
