from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator

# Client-side ids for rows not yet saved ("section_3", "q_17") arrive as
# strings; saved rows carry their integer database id.
ClientId = Union[int, str]


def _naive(value: Optional[datetime]) -> Optional[datetime]:
    # windows are stored and compared as naive local time
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class QuestionOptionIn(BaseModel):
    option_text: str
    order_index: Optional[int] = None


class SectionIn(BaseModel):
    id: Optional[ClientId] = None
    title: str
    description: Optional[str] = None
    order_index: Optional[int] = Field(None, validation_alias=AliasChoices("order_index", "order"))


class QuestionIn(BaseModel):
    id: Optional[ClientId] = None
    question: str = Field("", validation_alias=AliasChoices("question", "question_text"))
    type: str = Field("", validation_alias=AliasChoices("type", "question_type"))
    description: Optional[str] = None
    required: bool = False
    options: List[Union[str, QuestionOptionIn]] = []
    min: Optional[int] = Field(None, validation_alias=AliasChoices("min", "minValue", "min_value"))
    max: Optional[int] = Field(None, validation_alias=AliasChoices("max", "maxValue", "max_value"))
    section_id: Optional[ClientId] = Field(None, validation_alias=AliasChoices("section_id", "sectionId"))
    order_index: Optional[int] = None

    def option_texts(self) -> List[str]:
        texts = [o if isinstance(o, str) else o.option_text for o in self.options]
        return [t.strip() for t in texts if t and t.strip()]


class FormCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    target_audience: Optional[str] = Field(None, validation_alias=AliasChoices("target_audience", "targetAudience"))
    start_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    image_url: Optional[str] = Field(None, validation_alias=AliasChoices("image_url", "imageUrl"))
    subject_instructor_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("subject_instructor_id", "subjectInstructorId")
    )
    is_template: bool = Field(False, validation_alias=AliasChoices("is_template", "isTemplate"))
    sections: List[SectionIn] = []
    questions: List[QuestionIn] = []

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_dates(cls, value):
        return _naive(value)

    model_config = {
        "json_schema_extra": {
            "example": {
                "title": "Course Evaluation - IT 101",
                "category": "Course Evaluation",
                "targetAudience": "Students",
                "questions": [
                    {"question": "Rate the instructor", "type": "rating", "min": 1, "max": 5, "required": True},
                    {"question": "Favourite topic", "type": "multiple-choice", "options": ["A", "B"]},
                ],
            }
        }
    }


class FormUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    target_audience: Optional[str] = Field(None, validation_alias=AliasChoices("target_audience", "targetAudience"))
    start_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[datetime] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    image_url: Optional[str] = Field(None, validation_alias=AliasChoices("image_url", "imageUrl"))
    subject_instructor_id: Optional[int] = Field(
        None, validation_alias=AliasChoices("subject_instructor_id", "subjectInstructorId")
    )
    status: Optional[str] = None
    sections: Optional[List[SectionIn]] = None
    questions: Optional[List[QuestionIn]] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_dates(cls, value):
        return _naive(value)


class DeployRequest(BaseModel):
    target_filters: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("target_filters", "targetFilters"))
    target_audience: Optional[str] = Field(None, validation_alias=AliasChoices("target_audience", "targetAudience"))
    user_ids: Optional[List[int]] = Field(None, validation_alias=AliasChoices("user_ids", "userIds"))
    start_date: Optional[date] = Field(None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[date] = Field(None, validation_alias=AliasChoices("end_date", "endDate"))
    start_time: Optional[time] = Field(None, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: Optional[time] = Field(None, validation_alias=AliasChoices("end_time", "endTime"))

    def audience(self) -> Optional[str]:
        filters = self.target_filters or {}
        for key in ("target_audience", "targetAudience"):
            if filters.get(key):
                return filters[key]
        return self.target_audience


class SubmitRequest(BaseModel):
    # {question_id: answer}
    answers: Dict[str, Any]


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
