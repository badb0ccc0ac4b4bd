from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum as SQLAEnum
from datetime import datetime
from feedbacts.db.database import Base
import enum


class PromotionType(enum.Enum):
    academic_year = "academic_year"
    graduation = "graduation"


class StudentPromotionHistory(Base):
    __tablename__ = "student_promotion_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    previous_program_id = Column(Integer, ForeignKey("course_management.id", ondelete="SET NULL"), nullable=True)
    new_program_id = Column(Integer, ForeignKey("course_management.id", ondelete="SET NULL"), nullable=True)
    promotion_type = Column(SQLAEnum(PromotionType, native_enum=False), nullable=False)
    promotion_date = Column(Date, nullable=False)
    promoted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class GraduationRecord(Base):
    __tablename__ = "graduation_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    program_id = Column(Integer, ForeignKey("course_management.id", ondelete="SET NULL"), nullable=True)
    graduation_year = Column(Integer, nullable=False)
    degree = Column(String(255))
    honors = Column(String(255))
    ceremony_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
