from typing import Optional

from pydantic import BaseModel, Field


class ProgramCreate(BaseModel):
    department: str = Field(..., min_length=1)
    program_name: str = Field(..., min_length=1)
    program_code: str = Field(..., min_length=1)
    year_level: int = Field(..., ge=1)
    section: str = Field(..., min_length=1)
    status: str = "active"


class ProgramUpdate(BaseModel):
    department: Optional[str] = None
    program_name: Optional[str] = None
    program_code: Optional[str] = None
    year_level: Optional[int] = Field(None, ge=1)
    section: Optional[str] = None
    status: Optional[str] = None


class SubjectCreate(BaseModel):
    subject_code: str = Field(..., min_length=1)
    subject_name: str = Field(..., min_length=1)
    department: Optional[str] = None
    year_level: Optional[int] = None
    section: Optional[str] = None


class SubjectUpdate(BaseModel):
    subject_code: Optional[str] = None
    subject_name: Optional[str] = None
    department: Optional[str] = None
    year_level: Optional[int] = None
    section: Optional[str] = None
    status: Optional[str] = None


class SubjectInstructorCreate(BaseModel):
    instructor_id: int


class EnrollmentCreate(BaseModel):
    student_id: int
    subject_instructor_id: int
