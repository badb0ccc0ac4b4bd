from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.services import subject_evaluation_service

router = APIRouter()


@router.get("/my-stats")
def my_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "stats": subject_evaluation_service.get_my_stats(db, user)}


@router.get("/subjects/{subject_id}/feedback")
def subject_feedback(subject_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, **subject_evaluation_service.get_subject_feedback(db, subject_id, user)}


@router.get("/instructors/{instructor_id}/subjects")
def instructor_subjects(instructor_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, **subject_evaluation_service.get_instructor_subjects(db, instructor_id, user)}
