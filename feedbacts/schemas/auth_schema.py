from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class SignupRequest(BaseModel):
    email: str
    password: str
    full_name: str = Field(..., validation_alias=AliasChoices("full_name", "fullName"))
    role: str

    # student
    student_number: Optional[str] = Field(None, validation_alias=AliasChoices("student_number", "student_id", "studentNumber"))
    program_id: Optional[int] = Field(None, validation_alias=AliasChoices("program_id", "programId"))
    contact_number: Optional[str] = Field(None, validation_alias=AliasChoices("contact_number", "contactNumber"))
    # instructor
    instructor_number: Optional[str] = Field(None, validation_alias=AliasChoices("instructor_number", "instructor_id"))
    department: Optional[str] = None
    # alumni / employer
    company: Optional[str] = Field(None, validation_alias=AliasChoices("company", "company_name", "alumni_company_name"))
    industry: Optional[str] = None
    location: Optional[str] = None
    grad_year: Optional[int] = Field(None, validation_alias=AliasChoices("grad_year", "gradYear"))
    degree: Optional[str] = None
    job_title: Optional[str] = Field(None, validation_alias=AliasChoices("job_title", "jobTitle"))

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "juan@school.edu",
                "password": "Secret#123",
                "fullName": "Juan Dela Cruz",
                "role": "student",
                "student_id": "2024-0001",
                "program_id": 1,
            }
        }
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class ProfileUpdateRequest(BaseModel):
    full_name: str = Field(..., validation_alias=AliasChoices("full_name", "fullName"))


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., validation_alias=AliasChoices("current_password", "currentPassword"))
    new_password: str = Field(..., validation_alias=AliasChoices("new_password", "newPassword"))
