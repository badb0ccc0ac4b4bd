from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLAEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from feedbacts.db.database import Base
import enum


class CatalogStatus(enum.Enum):
    active = "active"
    inactive = "inactive"


class Program(Base):
    """A department/program/year/section row of the course catalog."""
    __tablename__ = "course_management"

    id = Column(Integer, primary_key=True, autoincrement=True)
    department = Column(String(100), nullable=False)
    program_name = Column(String(255), nullable=False)
    program_code = Column(String(50), nullable=False)
    year_level = Column(Integer, nullable=False)
    section = Column(String(20), nullable=False)
    # e.g. "BSIT 3-A"
    course_section = Column(String(100), nullable=False, index=True)
    status = Column(SQLAEnum(CatalogStatus, native_enum=False), default=CatalogStatus.active, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("department", "program_code", "year_level", "section", name="uq_program_year_section"),
    )


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_code = Column(String(50), nullable=False)
    subject_name = Column(String(255), nullable=False)
    department = Column(String(100))
    year_level = Column(Integer)
    section = Column(String(20))
    status = Column(SQLAEnum(CatalogStatus, native_enum=False), default=CatalogStatus.active, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("subject_code", "section", name="uq_subject_section"),)

    instructors = relationship("SubjectInstructor", back_populates="subject", cascade="all, delete-orphan")


class SubjectInstructor(Base):
    __tablename__ = "subject_instructors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("subject_id", "instructor_id", name="uq_subject_instructor"),)

    subject = relationship("Subject", back_populates="instructors")
    instructor = relationship("User")
    enrollments = relationship("StudentEnrollment", back_populates="subject_instructor", cascade="all, delete-orphan")


class StudentEnrollment(Base):
    __tablename__ = "student_enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_instructor_id = Column(Integer, ForeignKey("subject_instructors.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default="enrolled", nullable=False)
    enrolled_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("student_id", "subject_instructor_id", name="uq_student_subject_instructor"),)

    student = relationship("Student", back_populates="enrollments")
    subject_instructor = relationship("SubjectInstructor", back_populates="enrollments")
