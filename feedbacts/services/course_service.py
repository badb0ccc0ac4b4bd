import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status as fastapi_status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from feedbacts.models.course import CatalogStatus, Program, StudentEnrollment, Subject, SubjectInstructor
from feedbacts.models.student import Student
from feedbacts.models.user import User, UserRole
from feedbacts.schemas.course_schema import ProgramCreate, SubjectCreate
from feedbacts.utils.formatting import iso

logger = logging.getLogger(__name__)


def _not_found(detail: str):
    raise HTTPException(status_code=fastapi_status.HTTP_404_NOT_FOUND, detail=detail)


def _bad_request(detail: str):
    raise HTTPException(status_code=fastapi_status.HTTP_400_BAD_REQUEST, detail=detail)


def _catalog_status(value: str) -> CatalogStatus:
    try:
        return CatalogStatus(value)
    except ValueError:
        _bad_request(f"Invalid status '{value}'")


def _toggled(current: CatalogStatus) -> CatalogStatus:
    return CatalogStatus.inactive if current == CatalogStatus.active else CatalogStatus.active


def course_section_label(program_code: str, year_level: int, section: str) -> str:
    """'BSIT', 3, 'A' -> 'BSIT 3-A'"""
    return f"{program_code} {year_level}-{section}"


# == Programs

def program_dict(p: Program) -> Dict:
    return {
        "id": p.id,
        "department": p.department,
        "program_name": p.program_name,
        "program_code": p.program_code,
        "year_level": p.year_level,
        "section": p.section,
        "course_section": p.course_section,
        "status": p.status.value,
        "created_at": iso(p.created_at),
    }


def _get_program(db: Session, program_id: int) -> Program:
    program = db.query(Program).filter(Program.id == program_id).first()
    if not program:
        _not_found("Program not found")
    return program


def list_programs(db: Session, department: Optional[str] = None, include_inactive: bool = True) -> List[Dict]:
    query = db.query(Program)
    if department:
        query = query.filter(Program.department == department)
    if not include_inactive:
        query = query.filter(Program.status == CatalogStatus.active)
    programs = query.order_by(Program.department, Program.program_code, Program.year_level, Program.section).all()
    return [program_dict(p) for p in programs]


def get_program(db: Session, program_id: int) -> Dict:
    return program_dict(_get_program(db, program_id))


def list_departments(db: Session) -> List[str]:
    rows = (
        db.query(Program.department)
        .filter(Program.status == CatalogStatus.active)
        .distinct()
        .order_by(Program.department)
        .all()
    )
    return [d for (d,) in rows]


def create_program(db: Session, data: ProgramCreate) -> Dict:
    program = Program(
        department=data.department.strip(),
        program_name=data.program_name.strip(),
        program_code=data.program_code.strip(),
        year_level=data.year_level,
        section=data.section.strip(),
        status=_catalog_status(data.status),
    )
    program.course_section = course_section_label(program.program_code, program.year_level, program.section)
    try:
        db.add(program)
        db.commit()
        db.refresh(program)
    except IntegrityError:
        db.rollback()
        _bad_request("Program with this combination already exists")
    return program_dict(program)


def update_program(db: Session, program_id: int, fields: Dict) -> Dict:
    program = _get_program(db, program_id)
    fields = {k: v for k, v in fields.items() if v is not None}
    if not fields:
        _bad_request("No valid fields to update")

    for key, value in fields.items():
        if key == "status":
            value = _catalog_status(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(program, key, value)
    program.course_section = course_section_label(program.program_code, program.year_level, program.section)

    try:
        db.commit()
        db.refresh(program)
    except IntegrityError:
        db.rollback()
        _bad_request("Program with this combination already exists")
    return program_dict(program)


def toggle_program(db: Session, program_id: int) -> Dict:
    program = _get_program(db, program_id)
    program.status = _toggled(program.status)
    db.commit()
    return program_dict(program)


def delete_program(db: Session, program_id: int) -> None:
    # students keep pointing at the row, so it is only deactivated
    program = _get_program(db, program_id)
    program.status = CatalogStatus.inactive
    db.commit()
    logger.info("Program %s deactivated", program_id)


# == Subjects ("course sections" in the admin screens)

def _instructor_dict(pair: SubjectInstructor) -> Dict:
    return {
        "id": pair.id,
        "subject_id": pair.subject_id,
        "instructor_id": pair.instructor_id,
        "instructor_name": pair.instructor.full_name if pair.instructor else None,
        "assigned_at": iso(pair.assigned_at),
    }


def subject_dict(s: Subject, with_instructors: bool = False) -> Dict:
    data = {
        "id": s.id,
        "subject_code": s.subject_code,
        "subject_name": s.subject_name,
        "department": s.department,
        "year_level": s.year_level,
        "section": s.section,
        "status": s.status.value,
        "created_at": iso(s.created_at),
    }
    if with_instructors:
        data["instructors"] = [_instructor_dict(i) for i in s.instructors]
    return data


def _get_subject(db: Session, subject_id: int) -> Subject:
    subject = db.query(Subject).filter(Subject.id == subject_id).first()
    if not subject:
        _not_found("Course section not found")
    return subject


def list_subjects(db: Session, include_inactive: bool = True) -> List[Dict]:
    query = db.query(Subject)
    if not include_inactive:
        query = query.filter(Subject.status == CatalogStatus.active)
    subjects = query.order_by(Subject.subject_code, Subject.section).all()
    return [subject_dict(s, with_instructors=True) for s in subjects]


def get_subject(db: Session, subject_id: int) -> Dict:
    return subject_dict(_get_subject(db, subject_id), with_instructors=True)


def create_subject(db: Session, data: SubjectCreate) -> Dict:
    subject = Subject(
        subject_code=data.subject_code.strip(),
        subject_name=data.subject_name.strip(),
        department=data.department,
        year_level=data.year_level,
        section=data.section,
        status=CatalogStatus.active,
    )
    try:
        db.add(subject)
        db.commit()
        db.refresh(subject)
    except IntegrityError:
        db.rollback()
        _bad_request("Course section already exists")
    return subject_dict(subject)


def update_subject(db: Session, subject_id: int, fields: Dict) -> Dict:
    subject = _get_subject(db, subject_id)
    fields = {k: v for k, v in fields.items() if v is not None}
    if not fields:
        _bad_request("No valid fields to update")

    for key, value in fields.items():
        if key == "status":
            value = _catalog_status(value)
        setattr(subject, key, value)
    try:
        db.commit()
        db.refresh(subject)
    except IntegrityError:
        db.rollback()
        _bad_request("Course section already exists")
    return subject_dict(subject)


def toggle_subject(db: Session, subject_id: int) -> Dict:
    subject = _get_subject(db, subject_id)
    subject.status = _toggled(subject.status)
    db.commit()
    return subject_dict(subject)


def delete_subject(db: Session, subject_id: int) -> None:
    subject = _get_subject(db, subject_id)
    subject.status = CatalogStatus.inactive
    db.commit()


# == Subject instructors

def list_subject_instructors(db: Session, subject_id: int) -> List[Dict]:
    subject = _get_subject(db, subject_id)
    return [_instructor_dict(i) for i in subject.instructors]


def assign_instructor(db: Session, subject_id: int, instructor_id: int) -> Dict:
    subject = _get_subject(db, subject_id)
    instructor = db.query(User).filter(User.id == instructor_id, User.role == UserRole.instructor).first()
    if not instructor:
        _not_found("Instructor not found")

    pair = SubjectInstructor(subject_id=subject.id, instructor_id=instructor.id)
    try:
        db.add(pair)
        db.commit()
        db.refresh(pair)
    except IntegrityError:
        db.rollback()
        _bad_request("Instructor already assigned to this course section")
    return _instructor_dict(pair)


def remove_instructor(db: Session, subject_id: int, instructor_id: int) -> None:
    pair = (
        db.query(SubjectInstructor)
        .filter(SubjectInstructor.subject_id == subject_id, SubjectInstructor.instructor_id == instructor_id)
        .first()
    )
    if not pair:
        _not_found("Instructor assignment not found")
    db.delete(pair)
    db.commit()


# == Enrollments

def _enrollment_dict(e: StudentEnrollment) -> Dict:
    pair = e.subject_instructor
    subject = pair.subject
    return {
        "id": e.id,
        "student_id": e.student_id,
        "student_name": e.student.user.full_name,
        "subject_instructor_id": pair.id,
        "subject_id": subject.id,
        "subject_code": subject.subject_code,
        "subject_name": subject.subject_name,
        "section": subject.section,
        "instructor_id": pair.instructor_id,
        "instructor_name": pair.instructor.full_name if pair.instructor else None,
        "status": e.status,
        "enrolled_at": iso(e.enrolled_at),
    }


def list_enrollments(
    db: Session, student_id: Optional[int] = None, subject_instructor_id: Optional[int] = None
) -> List[Dict]:
    query = db.query(StudentEnrollment)
    if student_id is not None:
        query = query.filter(StudentEnrollment.student_id == student_id)
    if subject_instructor_id is not None:
        query = query.filter(StudentEnrollment.subject_instructor_id == subject_instructor_id)
    return [_enrollment_dict(e) for e in query.order_by(StudentEnrollment.id).all()]


def enroll_student(db: Session, student_id: int, subject_instructor_id: int) -> Dict:
    if not db.query(Student.id).filter(Student.id == student_id).first():
        _not_found("Student not found")
    if not db.query(SubjectInstructor.id).filter(SubjectInstructor.id == subject_instructor_id).first():
        _not_found("Instructor assignment not found")

    enrollment = StudentEnrollment(student_id=student_id, subject_instructor_id=subject_instructor_id)
    try:
        db.add(enrollment)
        db.commit()
        db.refresh(enrollment)
    except IntegrityError:
        db.rollback()
        _bad_request("Student already enrolled in this section")
    return _enrollment_dict(enrollment)


def remove_enrollment(db: Session, enrollment_id: int) -> None:
    enrollment = db.query(StudentEnrollment).filter(StudentEnrollment.id == enrollment_id).first()
    if not enrollment:
        _not_found("Enrollment not found")
    db.delete(enrollment)
    db.commit()


def get_my_subjects(db: Session, user: User) -> List[Dict]:
    """The (subject, instructor) pairings a student evaluates."""
    student = user.student
    if user.role != UserRole.student or student is None:
        raise HTTPException(status_code=fastapi_status.HTTP_403_FORBIDDEN, detail="Only students have subjects")
    enrollments = [e for e in student.enrollments if e.subject_instructor.subject.status == CatalogStatus.active]
    return [_enrollment_dict(e) for e in enrollments]
