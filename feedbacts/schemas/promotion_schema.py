from datetime import date
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class PromoteRequest(BaseModel):
    student_ids: List[int] = Field(..., min_length=1, validation_alias=AliasChoices("student_ids", "studentIds"))
    new_program_id: int = Field(..., validation_alias=AliasChoices("new_program_id", "newProgramId"))
    notes: str = ""


class GraduateRequest(BaseModel):
    student_ids: List[int] = Field(..., min_length=1, validation_alias=AliasChoices("student_ids", "studentIds"))
    graduation_year: int = Field(..., validation_alias=AliasChoices("graduation_year", "graduationYear"))
    degree: Optional[str] = None
    honors: Optional[str] = None
    ceremony_date: Optional[date] = Field(None, validation_alias=AliasChoices("ceremony_date", "ceremonyDate"))
    job_title: Optional[str] = Field(None, validation_alias=AliasChoices("job_title", "jobTitle"))
    notes: Optional[str] = None
