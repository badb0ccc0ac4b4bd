from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user, require_admin
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.course_schema import EnrollmentCreate, SubjectCreate, SubjectInstructorCreate, SubjectUpdate
from feedbacts.services import course_service

router = APIRouter()


# --- Subjects ---

@router.get("/sections")
def list_sections(include_inactive: bool = True, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "sections": course_service.list_subjects(db, include_inactive)}


@router.post("/sections", status_code=status.HTTP_201_CREATED)
def create_section(data: SubjectCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    section = course_service.create_subject(db, data)
    return {"success": True, "message": "Course section created successfully", "section": section}


@router.get("/sections/{subject_id}")
def get_section(subject_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "section": course_service.get_subject(db, subject_id)}


@router.put("/sections/{subject_id}")
def update_section(
    subject_id: int, data: SubjectUpdate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    section = course_service.update_subject(db, subject_id, data.model_dump(exclude_unset=True))
    return {"success": True, "message": "Course section updated successfully", "section": section}


@router.patch("/sections/{subject_id}/toggle")
def toggle_section(subject_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    section = course_service.toggle_subject(db, subject_id)
    message = "Course section activated successfully" if section["status"] == "active" else "Course section deactivated successfully"
    return {"success": True, "message": message, "section": section}


@router.delete("/sections/{subject_id}")
def delete_section(subject_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    course_service.delete_subject(db, subject_id)
    return {"success": True, "message": "Course section deleted successfully"}


# --- Subject instructors ---

@router.get("/sections/{subject_id}/instructors")
def list_section_instructors(subject_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "instructors": course_service.list_subject_instructors(db, subject_id)}


@router.post("/sections/{subject_id}/instructors", status_code=status.HTTP_201_CREATED)
def assign_section_instructor(
    subject_id: int, data: SubjectInstructorCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    pair = course_service.assign_instructor(db, subject_id, data.instructor_id)
    return {"success": True, "message": "Instructor assigned successfully", "assignment": pair}


@router.delete("/sections/{subject_id}/instructors/{instructor_id}")
def remove_section_instructor(
    subject_id: int, instructor_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    course_service.remove_instructor(db, subject_id, instructor_id)
    return {"success": True, "message": "Instructor removed successfully"}


# --- Enrollments ---

@router.get("/enrollments")
def list_enrollments(
    student_id: Optional[int] = None,
    subject_instructor_id: Optional[int] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return {"success": True, "enrollments": course_service.list_enrollments(db, student_id, subject_instructor_id)}


@router.post("/enrollments", status_code=status.HTTP_201_CREATED)
def enroll_student(data: EnrollmentCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    enrollment = course_service.enroll_student(db, data.student_id, data.subject_instructor_id)
    return {"success": True, "message": "Student enrolled successfully", "enrollment": enrollment}


@router.delete("/enrollments/{enrollment_id}")
def remove_enrollment(enrollment_id: int, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    course_service.remove_enrollment(db, enrollment_id)
    return {"success": True, "message": "Student removed successfully"}


@router.get("/my-subjects")
def my_subjects(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "subjects": course_service.get_my_subjects(db, user)}
