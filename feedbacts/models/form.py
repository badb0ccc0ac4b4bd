from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum as SQLAEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from feedbacts.db.database import Base
import enum


class FormStatus(enum.Enum):
    draft = "draft"
    active = "active"
    inactive = "inactive"
    archived = "archived"


QUESTION_TYPES = (
    "text",
    "textarea",
    "multiple-choice",
    "checkbox",
    "dropdown",
    "rating",
    "linear-scale",
)
CHOICE_TYPES = ("multiple-choice", "checkbox", "dropdown")
SCALE_TYPES = ("rating", "linear-scale")


class Form(Base):
    __tablename__ = "forms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100), nullable=False)
    target_audience = Column(String(255), nullable=False)
    status = Column(SQLAEnum(FormStatus, native_enum=False), default=FormStatus.draft, nullable=False)
    is_template = Column(Boolean, default=False, nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    image_url = Column(String(500))
    # evaluation of one subject-instructor pair, when set
    subject_instructor_id = Column(
        Integer, ForeignKey("subject_instructors.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by = Column(Integer, ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    creator = relationship("User", back_populates="forms")
    subject_instructor = relationship("SubjectInstructor")
    sections = relationship(
        "Section", back_populates="form", cascade="all, delete-orphan", order_by="Section.order_index"
    )
    questions = relationship(
        "Question", back_populates="form", cascade="all, delete-orphan", order_by="Question.order_index"
    )
    responses = relationship("FormResponse", back_populates="form", cascade="all, delete-orphan")
    assignments = relationship("FormAssignment", back_populates="form", cascade="all, delete-orphan")
    deployment = relationship("FormDeployment", back_populates="form", uselist=False, cascade="all, delete-orphan")


class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    order_index = Column(Integer, default=0, nullable=False)

    form = relationship("Form", back_populates="sections")
    questions = relationship("Question", back_populates="section")


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    form_id = Column(Integer, ForeignKey("forms.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="SET NULL"), nullable=True, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(30), nullable=False)
    description = Column(Text)
    required = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    min_value = Column(Integer, nullable=True)
    max_value = Column(Integer, nullable=True)

    form = relationship("Form", back_populates="questions")
    section = relationship("Section", back_populates="questions")
    options = relationship(
        "QuestionOption", back_populates="question", cascade="all, delete-orphan", order_by="QuestionOption.order_index"
    )


class QuestionOption(Base):
    __tablename__ = "question_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(String(500), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    question = relationship("Question", back_populates="options")


class FormCategory(Base):
    __tablename__ = "form_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(255))
