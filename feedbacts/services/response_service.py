import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from feedbacts.models.course import Program
from feedbacts.models.form import Form, FormStatus
from feedbacts.models.form_response import FormResponse
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole
from feedbacts.utils.formatting import iso
from feedbacts.utils.validation import validate_answers

logger = logging.getLogger(__name__)

ALREADY_SUBMITTED = "You have already submitted this form"
NOT_ACTIVE = "Form not found or not active"
NOT_OPEN = "Form is not yet open for submission"
ENDED = "Form submission period has ended"


def _bad_request(detail: str):
    raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=detail)


def _has_submitted(db: Session, form_id: int, user_id: int) -> bool:
    return (
        db.query(FormResponse.id)
        .filter(FormResponse.form_id == form_id, FormResponse.user_id == user_id)
        .first()
        is not None
    )


def submit_form_response(db: Session, form_id: int, user_id: int, answers: Dict[str, Any]) -> Dict:
    """Store one answer map for (form, user) after status, window and answer checks."""
    form = db.query(Form).filter(Form.id == form_id, Form.status == FormStatus.active).first()
    if not form:
        _bad_request(NOT_ACTIVE)

    if _has_submitted(db, form_id, user_id):
        _bad_request(ALREADY_SUBMITTED)

    now = datetime.now()
    if form.start_date and form.start_date > now:
        _bad_request(NOT_OPEN)
    if form.end_date and form.end_date < now:
        _bad_request(ENDED)

    answers = {str(key): value for key, value in answers.items()}
    errors = validate_answers(form.questions, answers)
    if errors:
        _bad_request(", ".join(errors))

    response = FormResponse(form_id=form_id, user_id=user_id, answers=answers, submitted_at=datetime.utcnow())
    try:
        db.add(response)
        db.commit()
        db.refresh(response)
    except IntegrityError:
        # lost a race against a concurrent submission of the same user
        db.rollback()
        _bad_request(ALREADY_SUBMITTED)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Submit response failed for form %s user %s: %s", form_id, user_id, e)
        raise HTTPException(
            status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to submit response"
        )

    logger.info("User %s submitted form %s", user_id, form_id)
    return {"response_id": response.id}


def get_form_responses(db: Session, form_id: int, user: User) -> Dict:
    form = db.query(Form).filter(Form.id == form_id).first()
    if not form:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Form not found")
    if form.created_by != user.id and user.role != UserRole.admin:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")

    rows = (
        db.query(FormResponse, User.email, User.full_name, User.role)
        .join(User, FormResponse.user_id == User.id)
        .filter(FormResponse.form_id == form_id)
        .order_by(FormResponse.submitted_at.desc(), FormResponse.id.desc())
        .all()
    )
    return {
        "form": {"id": form.id, "title": form.title},
        "responses": [
            {
                "id": r.id,
                "user_id": r.user_id,
                "email": email,
                "full_name": full_name,
                "role": role.value,
                "answers": r.answers,
                "submitted_at": iso(r.submitted_at),
            }
            for r, email, full_name, role in rows
        ],
    }


def get_form_submission_status(db: Session, form_id: int, user_id: int) -> Dict:
    """Advisory precheck; submit_form_response re-checks everything."""
    form = db.query(Form).filter(Form.id == form_id).first()
    if not form:
        return {
            "can_submit": False,
            "form": None,
            "issues": [{"type": "not_found", "message": "Form not found"}],
        }

    issues = []
    now = datetime.now()
    if form.status != FormStatus.active:
        issues.append({"type": "form_status", "message": f"Form is {form.status.value}"})
    if form.start_date and form.start_date > now:
        issues.append({"type": "not_started", "message": NOT_OPEN})
    if form.end_date and form.end_date < now:
        issues.append({"type": "expired", "message": ENDED})
    if _has_submitted(db, form_id, user_id):
        issues.append({"type": "already_submitted", "message": ALREADY_SUBMITTED})

    return {
        "can_submit": not issues,
        "form": {
            "id": form.id,
            "title": form.title,
            "status": form.status.value,
            "start_date": iso(form.start_date),
            "end_date": iso(form.end_date),
        },
        "issues": issues,
    }


def get_user_responses(db: Session, user_id: int) -> List[Dict]:
    rows = (
        db.query(FormResponse, Form.title, Form.category)
        .join(Form, FormResponse.form_id == Form.id)
        .filter(FormResponse.user_id == user_id)
        .order_by(FormResponse.submitted_at.desc())
        .all()
    )
    return [
        {
            "id": r.id,
            "form_id": r.form_id,
            "form_title": title,
            "category": category,
            "answers": r.answers,
            "submitted_at": iso(r.submitted_at),
        }
        for r, title, category in rows
    ]


def delete_response(db: Session, response_id: int, user_id: int) -> None:
    response = db.query(FormResponse).filter(FormResponse.id == response_id).first()
    if not response:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Response not found")
    if response.user_id != user_id:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")
    db.delete(response)
    db.commit()


# == Instructor shared responses

def _check_shared_access(user: User):
    if user.role not in (UserRole.instructor, UserRole.admin):
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")


def _student_forms(db: Session):
    return db.query(Form).filter(
        Form.status == FormStatus.active,
        or_(Form.target_audience.like("Students%"), Form.target_audience == "All Users"),
    )


def get_shared_responses(db: Session, user: User) -> List[Dict]:
    """Response totals of active student-facing forms and the sections that answered."""
    _check_shared_access(user)

    forms = _student_forms(db).order_by(Form.created_at.desc()).all()
    result = []
    for form in forms:
        total = db.query(func.count(FormResponse.id)).filter(FormResponse.form_id == form.id).scalar()
        sections = (
            db.query(Program.course_section)
            .join(Student, Student.program_id == Program.id)
            .join(FormResponse, FormResponse.user_id == Student.user_id)
            .filter(FormResponse.form_id == form.id)
            .distinct()
            .all()
        )
        result.append(
            {
                "form_id": form.id,
                "title": form.title,
                "category": form.category,
                "target_audience": form.target_audience,
                "total_responses": total or 0,
                "course_sections": sorted(s for (s,) in sections),
                "created_at": iso(form.created_at),
            }
        )
    return result


def get_shared_response_details(db: Session, form_id: int, user: User) -> Dict:
    _check_shared_access(user)

    form = _student_forms(db).filter(Form.id == form_id).first()
    if not form:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Form not found")

    rows = (
        db.query(FormResponse, User.full_name, User.email, Program.course_section, Program.department)
        .join(User, FormResponse.user_id == User.id)
        .outerjoin(Student, Student.user_id == User.id)
        .outerjoin(Program, Student.program_id == Program.id)
        .filter(FormResponse.form_id == form_id)
        .order_by(FormResponse.submitted_at.desc())
        .all()
    )
    return {
        "form": {"id": form.id, "title": form.title, "category": form.category},
        "responses": [
            {
                "id": r.id,
                "full_name": full_name,
                "email": email,
                "course_section": course_section,
                "department": department,
                "answers": r.answers,
                "submitted_at": iso(r.submitted_at),
            }
            for r, full_name, email, course_section, department in rows
        ],
    }
