"""Read side of subject evaluations.

A form linked to a subject-instructor pair collects that pair's evaluations.
Rating statistics come from the answers to the form's rating and
linear-scale questions; only whole values from 1 to 5 are counted.
"""
from typing import Dict, Iterable, List

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy import func
from sqlalchemy.orm import Session

from feedbacts.models.course import CatalogStatus, StudentEnrollment, Subject, SubjectInstructor
from feedbacts.models.form import SCALE_TYPES, Form, Question
from feedbacts.models.form_response import FormResponse
from feedbacts.models.user import User, UserRole
from feedbacts.services.course_service import subject_dict
from feedbacts.utils.formatting import iso

RATING_VALUES = (5, 4, 3, 2, 1)


def _scale_questions(db: Session, form_ids: Iterable[int]) -> Dict[int, List[int]]:
    form_ids = set(form_ids)
    if not form_ids:
        return {}
    rows = (
        db.query(Question.form_id, Question.id)
        .filter(Question.form_id.in_(form_ids), Question.question_type.in_(SCALE_TYPES))
        .all()
    )
    by_form: Dict[int, List[int]] = {}
    for form_id, question_id in rows:
        by_form.setdefault(form_id, []).append(question_id)
    return by_form


def _ratings(responses: List[FormResponse], scale_questions: Dict[int, List[int]]) -> List[int]:
    ratings = []
    for response in responses:
        answers = response.answers or {}
        for question_id in scale_questions.get(response.form_id, ()):
            value = answers.get(str(question_id))
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            if 1 <= value <= 5 and value == int(value):
                ratings.append(int(value))
    return ratings


def rating_statistics(db: Session, responses: List[FormResponse]) -> Dict:
    ratings = _ratings(responses, _scale_questions(db, (r.form_id for r in responses)))
    return {
        "total_responses": len(responses),
        "avg_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0,
        "rating_distribution": {str(n): ratings.count(n) for n in RATING_VALUES},
    }


def _pair_responses(db: Session, pair_ids: Iterable[int]) -> List[FormResponse]:
    pair_ids = set(pair_ids)
    if not pair_ids:
        return []
    return (
        db.query(FormResponse)
        .join(Form, FormResponse.form_id == Form.id)
        .filter(Form.subject_instructor_id.in_(pair_ids))
        .order_by(FormResponse.submitted_at.desc(), FormResponse.id.desc())
        .all()
    )


def get_subject_feedback(db: Session, subject_id: int, user: User) -> Dict:
    subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not subject:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Course section not found")

    pairs = subject.instructors
    allowed = user.role == UserRole.admin or (
        user.role == UserRole.instructor and any(p.instructor_id == user.id for p in pairs)
    )
    if not allowed:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")

    responses = _pair_responses(db, (p.id for p in pairs))
    feedback = [
        {
            "response_id": r.id,
            "form_id": r.form_id,
            "form_title": r.form.title,
            "instructor_name": r.form.subject_instructor.instructor.full_name,
            "answers": r.answers,
            "submitted_at": iso(r.submitted_at),
            "student_name": r.user.full_name if r.user else "Anonymous",
            "student_email": r.user.email if r.user else None,
        }
        for r in responses
    ]
    return {
        "subject": subject_dict(subject, with_instructors=True),
        "feedback": feedback,
        "statistics": rating_statistics(db, responses),
    }


def _get_instructor(db: Session, instructor_id: int) -> User:
    user = db.query(User).filter(User.id == instructor_id, User.role == UserRole.instructor).first()
    if not user:
        raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail="Instructor not found")
    return user


def _active_pairs(db: Session, instructor_id: int) -> List[SubjectInstructor]:
    return (
        db.query(SubjectInstructor)
        .join(Subject, SubjectInstructor.subject_id == Subject.id)
        .filter(SubjectInstructor.instructor_id == instructor_id, Subject.status == CatalogStatus.active)
        .order_by(Subject.subject_code, Subject.section)
        .all()
    )


def get_instructor_subjects(db: Session, instructor_id: int, viewer: User) -> Dict:
    if viewer.role != UserRole.admin and viewer.id != instructor_id:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Access denied")
    instructor = _get_instructor(db, instructor_id)

    subjects = []
    for pair in _active_pairs(db, instructor.id):
        stats = rating_statistics(db, _pair_responses(db, [pair.id]))
        subjects.append(
            {
                **subject_dict(pair.subject),
                "subject_instructor_id": pair.id,
                "student_count": len(pair.enrollments),
                "feedback_count": stats["total_responses"],
                "avg_rating": stats["avg_rating"],
            }
        )

    profile = instructor.instructor
    return {
        "instructor": {
            "user_id": instructor.id,
            "full_name": instructor.full_name,
            "email": instructor.email,
            "department": profile.department if profile else None,
            "instructor_id": profile.instructor_number if profile else None,
        },
        "subjects": subjects,
    }


def get_my_stats(db: Session, user: User) -> Dict:
    if user.role != UserRole.instructor:
        raise HTTPException(
            status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Only instructors have evaluation stats"
        )
    pairs = _active_pairs(db, user.id)
    pair_ids = [p.id for p in pairs]

    total_students = 0
    if pair_ids:
        total_students = (
            db.query(func.count(func.distinct(StudentEnrollment.student_id)))
            .filter(StudentEnrollment.subject_instructor_id.in_(pair_ids))
            .scalar()
        )
    stats = rating_statistics(db, _pair_responses(db, pair_ids))
    return {
        "total_students": total_students or 0,
        "total_courses": len(pairs),
        "total_feedbacks": stats["total_responses"],
        "avg_rating": stats["avg_rating"],
    }
